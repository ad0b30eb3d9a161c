"""Выбор базовой цены товара с учетом переопределений."""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Iterable

from catalog.domain.models import Customer, Product, ProductPrice

logger = logging.getLogger(__name__)


def _precedence(price: ProductPrice) -> tuple:
    # Цена конкретного клиента важнее общей
    return (price.customer_id is not None, price.priority, price.valid_from, price.id)


class BasePriceResolver:
    """Базовая цена: лучшая действующая запись ProductPrice или цена из каталога."""

    def resolve(
        self,
        prices: Iterable[ProductPrice],
        product: Product,
        customer: Customer,
        now: datetime,
    ) -> Decimal:
        candidates = [
            price
            for price in prices
            if price.product_id == product.id
            and price.is_valid_at(now)
            and price.applies_to_customer(customer.id)
        ]
        if not candidates:
            return product.base_price

        best = max(candidates, key=_precedence)
        logger.debug(
            f"Price override {best.id} ({best.unit_price}) used for product {product.id}, "
            f"customer {customer.id}"
        )
        return best.unit_price
