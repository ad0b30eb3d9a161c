"""Реализации репозиториев акций."""

import asyncio
import logging
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Optional

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from base.utils import ZERO, as_utc
from promotions.adapters.orm import (
    PromotionCustomerUsageORM,
    PromotionORM,
    PromotionUsageORM,
)
from promotions.domain.models import Promotion, PromotionUsage, UsageRecordStatus

from .repositories import IPromotionRepository, IPromotionUsageRepository

logger = logging.getLogger(__name__)


def _money(value) -> Optional[Decimal]:
    return None if value is None else Decimal(str(value))


def promotion_from_orm(promotion_orm: PromotionORM) -> Promotion:
    """Преобразование ORM модели акции в доменную."""
    return Promotion(
        id=promotion_orm.id,
        code=promotion_orm.code,
        name=promotion_orm.name or "",
        description=promotion_orm.description,
        promotion_type=promotion_orm.promotion_type,
        value=_money(promotion_orm.value) or ZERO,
        minimum_order_amount=_money(promotion_orm.minimum_order_amount),
        maximum_discount_amount=_money(promotion_orm.maximum_discount_amount),
        start_date=as_utc(promotion_orm.start_date),
        end_date=as_utc(promotion_orm.end_date),
        is_active=promotion_orm.is_active,
        max_usage_count=promotion_orm.max_usage_count,
        max_usage_per_customer=promotion_orm.max_usage_per_customer,
        current_usage_count=promotion_orm.current_usage_count,
        applies_to_all_products=promotion_orm.applies_to_all_products,
        product_ids=sorted(p.product_id for p in promotion_orm.products),
        category_ids=sorted(c.category_id for c in promotion_orm.categories),
        applies_to_all_customers=promotion_orm.applies_to_all_customers,
        required_customer_tier=promotion_orm.required_customer_tier,
        required_customer_type=promotion_orm.required_customer_type,
        customer_id=promotion_orm.customer_id,
        apply_to_child_customers=promotion_orm.apply_to_child_customers,
        requires_code=promotion_orm.requires_code,
        can_stack_with_other_promotions=promotion_orm.can_stack_with_other_promotions,
        can_stack_with_tier_pricing=promotion_orm.can_stack_with_tier_pricing,
        created_at=as_utc(promotion_orm.created_at),
    )


class InMemoryPromotionRepository(IPromotionRepository):
    """In-memory репозиторий акций для тестов."""

    def __init__(self, promotions: Iterable[Promotion] = ()) -> None:
        """Инициализация репозитория."""
        self.promotions: dict[int, Promotion] = {p.id: p for p in promotions}

    def add(self, promotion: Promotion) -> None:
        """Добавление акции."""
        self.promotions[promotion.id] = promotion

    async def get(self, promotion_id: int) -> Optional[Promotion]:
        """Получение акции по ID."""
        return self.promotions.get(promotion_id)

    async def get_by_code(self, code: str) -> Optional[Promotion]:
        """Получение акции по коду."""
        normalized = code.strip().upper()
        for promotion in self.promotions.values():
            if promotion.code == normalized:
                return promotion
        return None

    async def list_auto_applied(self, now: datetime) -> list[Promotion]:
        """Действующие акции без кода."""
        return sorted(
            (
                p
                for p in self.promotions.values()
                if not p.requires_code and p.is_valid_at(now)
            ),
            key=lambda p: p.id,
        )


class InMemoryPromotionUsageRepository(IPromotionUsageRepository):
    """In-memory учет использований.

    Работает поверх InMemoryPromotionRepository и меняет current_usage_count
    его акций. Проверка и увеличение счетчиков выполняются под asyncio.Lock.
    """

    def __init__(self, promotions: InMemoryPromotionRepository) -> None:
        """Инициализация репозитория."""
        self._promotions = promotions
        self._lock = asyncio.Lock()
        self.usages: dict[tuple[int, int], PromotionUsage] = {}
        self.customer_counts: dict[tuple[int, int], int] = {}

    async def count_customer_usages(self, promotion_id: int, customer_id: int) -> int:
        """Сколько раз клиент использовал акцию."""
        return self.customer_counts.get((promotion_id, customer_id), 0)

    async def try_record_usage(
        self,
        promotion_id: int,
        customer_id: int,
        order_id: int,
        discount_applied: Decimal,
        max_usage_per_customer: Optional[int],
    ) -> UsageRecordStatus:
        """Запись использования под блокировкой."""
        async with self._lock:
            if (promotion_id, order_id) in self.usages:
                return UsageRecordStatus.ALREADY_RECORDED

            promotion = await self._promotions.get(promotion_id)
            if promotion is None or promotion.has_reached_limit:
                return UsageRecordStatus.LIMIT_EXCEEDED

            customer_key = (promotion_id, customer_id)
            customer_count = self.customer_counts.get(customer_key, 0)
            if max_usage_per_customer is not None and customer_count >= max_usage_per_customer:
                return UsageRecordStatus.CUSTOMER_LIMIT_EXCEEDED

            promotion.current_usage_count += 1
            self.customer_counts[customer_key] = customer_count + 1
            self.usages[(promotion_id, order_id)] = PromotionUsage(
                id=len(self.usages) + 1,
                promotion_id=promotion_id,
                customer_id=customer_id,
                order_id=order_id,
                discount_applied=discount_applied,
            )
            return UsageRecordStatus.RECORDED


class PostgreSQLPromotionRepository(IPromotionRepository):
    """PostgreSQL репозиторий акций."""

    def __init__(self, session: AsyncSession) -> None:
        """Инициализация репозитория."""
        self.session = session

    async def get(self, promotion_id: int) -> Optional[Promotion]:
        """Получение акции по ID."""
        result = await self.session.execute(
            select(PromotionORM).filter_by(id=promotion_id)
        )
        promotion_orm = result.scalars().first()
        return promotion_from_orm(promotion_orm) if promotion_orm else None

    async def get_by_code(self, code: str) -> Optional[Promotion]:
        """Получение акции по коду."""
        result = await self.session.execute(
            select(PromotionORM).where(
                func.upper(PromotionORM.code) == code.strip().upper()
            )
        )
        promotion_orm = result.scalars().first()
        return promotion_from_orm(promotion_orm) if promotion_orm else None

    async def list_auto_applied(self, now: datetime) -> list[Promotion]:
        """Действующие акции без кода."""
        result = await self.session.execute(
            select(PromotionORM)
            .filter_by(requires_code=False, is_active=True)
            .order_by(PromotionORM.id)
        )
        promotions = [promotion_from_orm(p) for p in result.scalars().all()]
        return [p for p in promotions if p.is_valid_at(now)]


class PostgreSQLPromotionUsageRepository(IPromotionUsageRepository):
    """PostgreSQL учет использований акций.

    Счетчики увеличиваются условным UPDATE с проверкой rowcount, поэтому
    параллельные заказы не могут превысить лимит.
    """

    def __init__(self, session: AsyncSession) -> None:
        """Инициализация репозитория."""
        self.session = session

    async def count_customer_usages(self, promotion_id: int, customer_id: int) -> int:
        """Сколько раз клиент использовал акцию."""
        result = await self.session.execute(
            select(PromotionCustomerUsageORM.usage_count).filter_by(
                promotion_id=promotion_id, customer_id=customer_id
            )
        )
        return result.scalar() or 0

    async def try_record_usage(
        self,
        promotion_id: int,
        customer_id: int,
        order_id: int,
        discount_applied: Decimal,
        max_usage_per_customer: Optional[int],
    ) -> UsageRecordStatus:
        """Запись использования с условным увеличением счетчиков."""
        existing = await self.session.execute(
            select(PromotionUsageORM.id).filter_by(
                promotion_id=promotion_id, order_id=order_id
            )
        )
        if existing.first() is not None:
            return UsageRecordStatus.ALREADY_RECORDED

        result = await self.session.execute(
            update(PromotionORM)
            .where(
                PromotionORM.id == promotion_id,
                (PromotionORM.max_usage_count.is_(None))
                | (PromotionORM.current_usage_count < PromotionORM.max_usage_count),
            )
            .values(current_usage_count=PromotionORM.current_usage_count + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            return UsageRecordStatus.LIMIT_EXCEEDED

        try:
            async with self.session.begin_nested():
                self.session.add(
                    PromotionUsageORM(
                        promotion_id=promotion_id,
                        customer_id=customer_id,
                        order_id=order_id,
                        discount_applied=discount_applied,
                    )
                )
        except IntegrityError:
            logger.warning(
                f"Concurrent usage record for promotion {promotion_id}, order {order_id}"
            )
            return UsageRecordStatus.ALREADY_RECORDED

        if not await self._bump_customer_counter(
            promotion_id, customer_id, max_usage_per_customer
        ):
            return UsageRecordStatus.CUSTOMER_LIMIT_EXCEEDED

        return UsageRecordStatus.RECORDED

    async def _bump_customer_counter(
        self, promotion_id: int, customer_id: int, limit: Optional[int]
    ) -> bool:
        """Условное увеличение счетчика клиента, строка создается при первом использовании."""
        if await self._conditional_customer_update(promotion_id, customer_id, limit):
            return True

        exists = await self.session.execute(
            select(PromotionCustomerUsageORM.usage_count).filter_by(
                promotion_id=promotion_id, customer_id=customer_id
            )
        )
        if exists.first() is not None:
            return False
        if limit is not None and limit < 1:
            return False

        try:
            async with self.session.begin_nested():
                self.session.add(
                    PromotionCustomerUsageORM(
                        promotion_id=promotion_id, customer_id=customer_id, usage_count=1
                    )
                )
        except IntegrityError:
            # Строку успел создать параллельный заказ
            return await self._conditional_customer_update(promotion_id, customer_id, limit)
        return True

    async def _conditional_customer_update(
        self, promotion_id: int, customer_id: int, limit: Optional[int]
    ) -> bool:
        query = update(PromotionCustomerUsageORM).where(
            PromotionCustomerUsageORM.promotion_id == promotion_id,
            PromotionCustomerUsageORM.customer_id == customer_id,
        )
        if limit is not None:
            query = query.where(PromotionCustomerUsageORM.usage_count < limit)
        result = await self.session.execute(
            query.values(usage_count=PromotionCustomerUsageORM.usage_count + 1)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1
