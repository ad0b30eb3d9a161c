"""Доменные модели каталога: товары, цены и клиенты."""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class CustomerTier(str, Enum):
    """Категория клиента по объему закупок."""

    A = "A"  # Премиум: закупки > 10 000 KM в месяц
    B = "B"  # Стандарт: 5 000 - 10 000 KM
    C = "C"  # Базовая: < 5 000 KM


class CustomerType(str, Enum):
    """Тип клиента."""

    RETAIL = "retail"
    PHARMACY = "pharmacy"
    HOSPITAL = "hospital"
    WHOLESALE = "wholesale"
    CLINIC = "clinic"
    OTHER = "other"


class Product(BaseModel):
    """Товар в объеме, нужном для расчета цены."""

    id: int
    name: str = ""
    base_price: Decimal = Field(ge=0)
    category_id: Optional[int] = None
    manufacturer_id: Optional[int] = None


class Customer(BaseModel):
    """Клиент (аптека, больница, филиал сети)."""

    id: int
    name: str = ""
    tier: Optional[CustomerTier] = CustomerTier.C
    customer_type: CustomerType = CustomerType.RETAIL
    parent_customer_id: Optional[int] = None


class ProductPrice(BaseModel):
    """Переопределение базовой цены товара.

    Без customer_id цена действует для всех клиентов.
    """

    id: int
    product_id: int
    customer_id: Optional[int] = None
    unit_price: Decimal = Field(ge=0)
    valid_from: datetime
    valid_to: Optional[datetime] = None
    priority: int = 0
    is_active: bool = True

    def is_valid_at(self, now: datetime) -> bool:
        """Цена активна и now попадает в [valid_from, valid_to]."""
        if not self.is_active or self.valid_from > now:
            return False
        return self.valid_to is None or now <= self.valid_to

    def applies_to_customer(self, customer_id: int) -> bool:
        return self.customer_id is None or self.customer_id == customer_id
