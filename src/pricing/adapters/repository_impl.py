"""Реализации репозиториев ценовых правил."""

from decimal import Decimal
from typing import Iterable, Optional

from pydantic import TypeAdapter
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from base.utils import as_utc
from pricing.adapters.orm import PriceRuleORM
from pricing.domain.models import PriceRule

from .repositories import IPriceRuleRepository

price_rule_adapter = TypeAdapter(PriceRule)


def rule_from_orm(rule_orm: PriceRuleORM) -> PriceRule:
    """Преобразование строки таблицы в правило нужной области."""
    return price_rule_adapter.validate_python(
        {
            "id": rule_orm.id,
            "name": rule_orm.name or "",
            "description": rule_orm.description,
            "scope": rule_orm.scope,
            "discount_type": rule_orm.discount_type,
            "discount_value": Decimal(str(rule_orm.discount_value)),
            "product_id": rule_orm.product_id,
            "category_id": rule_orm.category_id,
            "manufacturer_id": rule_orm.manufacturer_id,
            "customer_tier": rule_orm.customer_tier,
            "customer_id": rule_orm.customer_id,
            "customer_type": rule_orm.customer_type,
            "minimum_quantity": rule_orm.minimum_quantity,
            "maximum_quantity": rule_orm.maximum_quantity,
            "start_date": as_utc(rule_orm.start_date),
            "end_date": as_utc(rule_orm.end_date),
            "is_active": rule_orm.is_active,
            "priority": rule_orm.priority,
            "created_at": as_utc(rule_orm.created_at),
        }
    )


class InMemoryPriceRuleRepository(IPriceRuleRepository):
    """In-memory репозиторий правил для тестов."""

    def __init__(self, rules: Iterable[PriceRule] = ()) -> None:
        """Инициализация репозитория."""
        self.rules: dict[int, PriceRule] = {r.id: r for r in rules}

    def add(self, rule: PriceRule) -> None:
        """Добавление правила."""
        self.rules[rule.id] = rule

    async def list_rules(self, active_only: bool = True) -> list[PriceRule]:
        """Список правил."""
        return [r for r in self.rules.values() if r.is_active or not active_only]

    async def get(self, rule_id: int) -> Optional[PriceRule]:
        """Получение правила по ID."""
        return self.rules.get(rule_id)


class PostgreSQLPriceRuleRepository(IPriceRuleRepository):
    """PostgreSQL репозиторий ценовых правил."""

    def __init__(self, session: AsyncSession) -> None:
        """Инициализация репозитория."""
        self.session = session

    async def list_rules(self, active_only: bool = True) -> list[PriceRule]:
        """Список правил."""
        query = select(PriceRuleORM)
        if active_only:
            query = query.filter_by(is_active=True)
        result = await self.session.execute(query)
        return [rule_from_orm(rule_orm) for rule_orm in result.scalars().all()]

    async def get(self, rule_id: int) -> Optional[PriceRule]:
        """Получение правила по ID."""
        result = await self.session.execute(select(PriceRuleORM).filter_by(id=rule_id))
        rule_orm = result.scalars().first()
        return rule_from_orm(rule_orm) if rule_orm else None
