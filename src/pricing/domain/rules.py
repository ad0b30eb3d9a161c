"""Выбор ценового правила."""

import logging
from datetime import datetime
from typing import Iterable, Optional

from catalog.domain.models import Customer, Product
from pricing.domain.models import PriceRule

logger = logging.getLogger(__name__)


def _precedence(rule: PriceRule) -> tuple:
    return (rule.priority, rule.created_at, rule.id)


class RuleMatcher:
    """Поиск лучшего правила среди пересекающихся.

    Победитель: наибольший priority, затем более новый created_at, затем
    больший id. Результат не зависит от порядка правил на входе.
    """

    def find_best_rule(
        self,
        rules: Iterable[PriceRule],
        product: Product,
        customer: Customer,
        quantity: int,
        now: datetime,
    ) -> Optional[PriceRule]:
        """Лучшее правило для товара, клиента и количества или None."""
        candidates = [
            rule
            for rule in rules
            if rule.matches(product, customer)
            and rule.covers_quantity(quantity)
            and rule.is_valid_at(now)
        ]
        if not candidates:
            return None

        best = max(candidates, key=_precedence)
        logger.debug(
            f"Rule {best.id} selected for product {product.id}, customer {customer.id} "
            f"out of {len(candidates)} candidates"
        )
        return best

    def applicable_rules(
        self, rules: Iterable[PriceRule], customer: Customer, now: datetime
    ) -> list[PriceRule]:
        """Действующие правила, не исключающие клиента, по убыванию приоритета."""
        applicable = [
            rule
            for rule in rules
            if rule.is_valid_at(now) and rule.matches_customer(customer)
        ]
        return sorted(applicable, key=_precedence, reverse=True)
