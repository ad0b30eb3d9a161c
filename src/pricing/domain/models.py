"""Доменные модели ценообразования."""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field, model_validator

from base.utils import ZERO, utc_now
from catalog.domain.models import Customer, CustomerTier, CustomerType, Product


class PriceRuleScope(str, Enum):
    """Область действия ценового правила."""

    GLOBAL = "global"
    PRODUCT = "product"
    CATEGORY = "category"
    MANUFACTURER = "manufacturer"
    CUSTOMER_TIER = "customer_tier"
    CUSTOMER = "customer"
    CUSTOMER_TYPE = "customer_type"


class DiscountType(str, Enum):
    """Тип скидки правила."""

    PERCENTAGE = "percentage"  # 10% от цены
    FIXED_AMOUNT = "fixed_amount"  # минус 5 KM с единицы
    FIXED_PRICE = "fixed_price"  # цена за единицу заменяется значением


class PriceRuleBase(BaseModel):
    """Общие поля ценового правила."""

    id: int
    name: str = ""
    description: Optional[str] = None
    discount_type: DiscountType = DiscountType.PERCENTAGE
    discount_value: Decimal = Field(ge=0)
    minimum_quantity: Optional[int] = None
    maximum_quantity: Optional[int] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    is_active: bool = True
    priority: int = 0
    created_at: datetime = Field(default_factory=utc_now)

    @model_validator(mode="after")
    def check_bounds(self):
        """Согласованность границ количества и процента."""
        if (
            self.minimum_quantity is not None
            and self.maximum_quantity is not None
            and self.minimum_quantity > self.maximum_quantity
        ):
            raise ValueError("minimum_quantity must not exceed maximum_quantity")
        if self.discount_type == DiscountType.PERCENTAGE and self.discount_value > 100:
            raise ValueError("percentage discount must be between 0 and 100")
        return self

    def is_valid_at(self, now: datetime) -> bool:
        """Правило активно и now попадает в [start_date, end_date]."""
        if not self.is_active:
            return False
        if self.start_date is not None and now < self.start_date:
            return False
        if self.end_date is not None and now > self.end_date:
            return False
        return True

    def covers_quantity(self, quantity: int) -> bool:
        """Количество попадает в границы правила (включительно)."""
        if self.minimum_quantity is not None and quantity < self.minimum_quantity:
            return False
        if self.maximum_quantity is not None and quantity > self.maximum_quantity:
            return False
        return True

    def matches_product(self, product: Product) -> bool:
        """Правило нацелено на товар (для клиентских областей всегда True)."""
        return True

    def matches_customer(self, customer: Customer) -> bool:
        """Правило нацелено на клиента (для товарных областей всегда True)."""
        return True

    def matches(self, product: Product, customer: Customer) -> bool:
        """Совпадение цели правила с товаром и клиентом."""
        return self.matches_product(product) and self.matches_customer(customer)

    def discount_for(self, unit_price: Decimal) -> Decimal:
        """Скидка на единицу относительно переданной цены, не больше самой цены."""
        if unit_price <= ZERO:
            return ZERO
        if self.discount_type == DiscountType.PERCENTAGE:
            discount = unit_price * self.discount_value / Decimal("100")
        elif self.discount_type == DiscountType.FIXED_AMOUNT:
            discount = self.discount_value
        else:
            discount = unit_price - self.discount_value
        return min(max(discount, ZERO), unit_price)


class GlobalRule(PriceRuleBase):
    """Правило для всех товаров и клиентов."""

    scope: Literal[PriceRuleScope.GLOBAL] = PriceRuleScope.GLOBAL


class ProductRule(PriceRuleBase):
    """Правило для конкретного товара."""

    scope: Literal[PriceRuleScope.PRODUCT] = PriceRuleScope.PRODUCT
    product_id: int

    def matches_product(self, product: Product) -> bool:
        return product.id == self.product_id


class CategoryRule(PriceRuleBase):
    """Правило для категории товаров."""

    scope: Literal[PriceRuleScope.CATEGORY] = PriceRuleScope.CATEGORY
    category_id: int

    def matches_product(self, product: Product) -> bool:
        return product.category_id == self.category_id


class ManufacturerRule(PriceRuleBase):
    """Правило для производителя."""

    scope: Literal[PriceRuleScope.MANUFACTURER] = PriceRuleScope.MANUFACTURER
    manufacturer_id: int

    def matches_product(self, product: Product) -> bool:
        return product.manufacturer_id == self.manufacturer_id


class TierRule(PriceRuleBase):
    """Правило для категории клиентов."""

    scope: Literal[PriceRuleScope.CUSTOMER_TIER] = PriceRuleScope.CUSTOMER_TIER
    customer_tier: CustomerTier

    def matches_customer(self, customer: Customer) -> bool:
        return customer.tier == self.customer_tier


class CustomerRule(PriceRuleBase):
    """Индивидуальное правило клиента."""

    scope: Literal[PriceRuleScope.CUSTOMER] = PriceRuleScope.CUSTOMER
    customer_id: int

    def matches_customer(self, customer: Customer) -> bool:
        return customer.id == self.customer_id


class CustomerTypeRule(PriceRuleBase):
    """Правило для типа клиентов (например, только аптеки)."""

    scope: Literal[PriceRuleScope.CUSTOMER_TYPE] = PriceRuleScope.CUSTOMER_TYPE
    customer_type: CustomerType

    def matches_customer(self, customer: Customer) -> bool:
        return customer.customer_type == self.customer_type


PriceRule = Annotated[
    Union[
        GlobalRule,
        ProductRule,
        CategoryRule,
        ManufacturerRule,
        TierRule,
        CustomerRule,
        CustomerTypeRule,
    ],
    Field(discriminator="scope"),
]


class TierPricingInfo(BaseModel):
    """Описание скидки категории клиента."""

    tier: CustomerTier
    tier_name: str
    discount_percentage: Decimal
    description: str


class PriceCalculationItem(BaseModel):
    """Позиция для расчета цены."""

    product_id: int
    quantity: int = Field(default=1, gt=0)


class PriceCalculationRequest(PriceCalculationItem):
    """Запрос на расчет цены одной позиции."""

    customer_id: int
    promotion_code: Optional[str] = None


class BatchPriceCalculationRequest(BaseModel):
    """Запрос на расчет цен корзины."""

    customer_id: int
    items: list[PriceCalculationItem]
    promotion_code: Optional[str] = None


class PriceCalculationResult(BaseModel):
    """Разбивка цены одной позиции. Суммы *_amount указаны за единицу.

    base_price учитывает переопределения ProductPrice.
    """

    product_id: int
    product_name: str = ""
    quantity: int
    base_price: Decimal
    tier_discount_percent: Decimal = ZERO
    tier_discount_amount: Decimal = ZERO
    rule_discount_percent: Decimal = ZERO
    rule_discount_amount: Decimal = ZERO
    promotion_discount_percent: Decimal = ZERO
    promotion_discount_amount: Decimal = ZERO
    # Скидка акции на всю позицию, line_total считается от нее
    promotion_discount_total: Decimal = ZERO
    final_unit_price: Decimal
    line_total: Decimal
    total_discount: Decimal = ZERO
    total_discount_percent: Decimal = ZERO
    applied_rule_id: Optional[int] = None
    applied_rule_name: Optional[str] = None
    applied_promotion_id: Optional[int] = None
    applied_promotion_code: Optional[str] = None
    promotion_error: Optional[str] = None
    promotion_message: Optional[str] = None
