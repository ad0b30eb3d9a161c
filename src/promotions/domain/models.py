"""Доменные модели акций."""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from base.utils import ZERO, utc_now
from catalog.domain.models import CustomerTier, CustomerType, Product


class PromotionType(str, Enum):
    """Тип акции."""

    PERCENTAGE_DISCOUNT = "percentage_discount"
    FIXED_AMOUNT_DISCOUNT = "fixed_amount_discount"
    FREE_SHIPPING = "free_shipping"
    BUY_ONE_GET_ONE = "buy_one_get_one"
    BUY_X_GET_Y_FREE = "buy_x_get_y_free"
    GIFT_WITH_PURCHASE = "gift_with_purchase"
    BUNDLE_DISCOUNT = "bundle_discount"


class PromotionErrorCode(str, Enum):
    """Причина, по которой акция не применена."""

    NOT_FOUND = "not_found"
    INACTIVE = "inactive"
    NOT_STARTED = "not_started"
    EXPIRED = "expired"
    LIMIT_REACHED = "limit_reached"
    NOT_ELIGIBLE = "not_eligible"
    CUSTOMER_LIMIT_REACHED = "customer_limit_reached"
    MINIMUM_NOT_MET = "minimum_not_met"
    NO_ELIGIBLE_PRODUCTS = "no_eligible_products"


class UsageRecordStatus(str, Enum):
    """Результат записи использования акции."""

    RECORDED = "recorded"
    ALREADY_RECORDED = "already_recorded"
    LIMIT_EXCEEDED = "limit_exceeded"
    CUSTOMER_LIMIT_EXCEEDED = "customer_limit_exceeded"


class Promotion(BaseModel):
    """Акция: промокод или автоматически применяемая скидка."""

    id: int
    code: str
    name: str = ""
    description: Optional[str] = None
    promotion_type: PromotionType = PromotionType.PERCENTAGE_DISCOUNT
    value: Decimal = Field(default=ZERO, ge=0)

    minimum_order_amount: Optional[Decimal] = None
    maximum_discount_amount: Optional[Decimal] = None

    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    is_active: bool = True

    max_usage_count: Optional[int] = None
    max_usage_per_customer: Optional[int] = None
    current_usage_count: int = 0

    applies_to_all_products: bool = True
    product_ids: list[int] = Field(default_factory=list)
    category_ids: list[int] = Field(default_factory=list)

    applies_to_all_customers: bool = True
    required_customer_tier: Optional[CustomerTier] = None
    required_customer_type: Optional[CustomerType] = None
    customer_id: Optional[int] = None
    apply_to_child_customers: bool = True

    requires_code: bool = True
    can_stack_with_other_promotions: bool = False
    can_stack_with_tier_pricing: bool = True
    created_at: datetime = Field(default_factory=utc_now)

    @field_validator("code")
    @classmethod
    def normalize_code(cls, value: str) -> str:
        """Коды хранятся в верхнем регистре."""
        return value.strip().upper()

    @property
    def has_reached_limit(self) -> bool:
        """Общий лимит использований исчерпан."""
        return (
            self.max_usage_count is not None
            and self.current_usage_count >= self.max_usage_count
        )

    def validity_error(self, now: datetime) -> Optional[PromotionErrorCode]:
        """Причина недействительности акции на момент now или None."""
        if not self.is_active:
            return PromotionErrorCode.INACTIVE
        if self.start_date is not None and now < self.start_date:
            return PromotionErrorCode.NOT_STARTED
        if self.end_date is not None and now > self.end_date:
            return PromotionErrorCode.EXPIRED
        if self.has_reached_limit:
            return PromotionErrorCode.LIMIT_REACHED
        return None

    def is_valid_at(self, now: datetime) -> bool:
        """Акция активна, в сроке и не исчерпана."""
        return self.validity_error(now) is None

    def applies_to_product(self, product: Product) -> bool:
        """Распространяется ли акция на товар."""
        if self.applies_to_all_products:
            return True
        if product.id in self.product_ids:
            return True
        return product.category_id is not None and product.category_id in self.category_ids


class PromotionUsage(BaseModel):
    """Факт использования акции в заказе."""

    id: Optional[int] = None
    promotion_id: int
    customer_id: int
    order_id: int
    discount_applied: Decimal = ZERO
    used_at: datetime = Field(default_factory=utc_now)


class PromotionValidationResult(BaseModel):
    """Результат проверки промокода."""

    is_valid: bool
    promotion: Optional[Promotion] = None
    error_code: Optional[PromotionErrorCode] = None
    error_message: Optional[str] = None
    estimated_discount: Decimal = ZERO


class PromotionValidationRequest(BaseModel):
    """Запрос проверки промокода."""

    code: str
    customer_id: int
    order_total: Decimal = Field(ge=0)


class PromotionUsageRequest(BaseModel):
    """Запрос записи использования акции при подтверждении заказа."""

    customer_id: int
    order_id: int
    discount_applied: Decimal = Field(default=ZERO, ge=0)


class PromotionUsageResponse(BaseModel):
    """Ответ на запись использования акции."""

    promotion_id: int
    order_id: int
    status: UsageRecordStatus
