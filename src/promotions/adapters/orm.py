"""ORM модели акций и учета их использования."""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from base.orm import Base
from catalog.domain.models import CustomerTier, CustomerType
from promotions.domain.models import PromotionType


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class PromotionORM(Base):
    """Модель акции."""

    __tablename__ = "promotions"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), default="")
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    promotion_type: Mapped[PromotionType] = mapped_column(
        default=PromotionType.PERCENTAGE_DISCOUNT
    )
    value: Mapped[Decimal] = mapped_column(Numeric(18, 2), default=0)

    minimum_order_amount: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(18, 2), nullable=True
    )
    maximum_discount_amount: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(18, 2), nullable=True
    )

    start_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    end_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    is_active: Mapped[bool] = mapped_column(default=True)

    max_usage_count: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    max_usage_per_customer: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    current_usage_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    applies_to_all_products: Mapped[bool] = mapped_column(default=True)
    applies_to_all_customers: Mapped[bool] = mapped_column(default=True)
    required_customer_tier: Mapped[Optional[CustomerTier]] = mapped_column(nullable=True)
    required_customer_type: Mapped[Optional[CustomerType]] = mapped_column(nullable=True)
    customer_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("customers.id"), nullable=True
    )
    apply_to_child_customers: Mapped[bool] = mapped_column(default=True)

    requires_code: Mapped[bool] = mapped_column(default=True)
    can_stack_with_other_promotions: Mapped[bool] = mapped_column(default=False)
    can_stack_with_tier_pricing: Mapped[bool] = mapped_column(default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now
    )

    products: Mapped[list["PromotionProductORM"]] = relationship(
        cascade="all, delete-orphan", lazy="selectin"
    )
    categories: Mapped[list["PromotionCategoryORM"]] = relationship(
        cascade="all, delete-orphan", lazy="selectin"
    )


class PromotionProductORM(Base):
    """Товар, на который распространяется акция."""

    __tablename__ = "promotion_products"

    promotion_id: Mapped[int] = mapped_column(
        ForeignKey("promotions.id", ondelete="CASCADE"), primary_key=True
    )
    product_id: Mapped[int] = mapped_column(Integer, primary_key=True)


class PromotionCategoryORM(Base):
    """Категория товаров, на которую распространяется акция."""

    __tablename__ = "promotion_categories"

    promotion_id: Mapped[int] = mapped_column(
        ForeignKey("promotions.id", ondelete="CASCADE"), primary_key=True
    )
    category_id: Mapped[int] = mapped_column(Integer, primary_key=True)


class PromotionUsageORM(Base):
    """Использование акции в заказе. Одна запись на пару акция/заказ."""

    __tablename__ = "promotion_usages"
    __table_args__ = (
        UniqueConstraint("promotion_id", "order_id", name="uq_promotion_usage_order"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    promotion_id: Mapped[int] = mapped_column(
        ForeignKey("promotions.id", ondelete="CASCADE"), nullable=False
    )
    customer_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    order_id: Mapped[int] = mapped_column(Integer, nullable=False)
    discount_applied: Mapped[Decimal] = mapped_column(Numeric(18, 2), default=0)
    used_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utc_now)


class PromotionCustomerUsageORM(Base):
    """Счетчик использований акции конкретным клиентом."""

    __tablename__ = "promotion_customer_usages"

    promotion_id: Mapped[int] = mapped_column(
        ForeignKey("promotions.id", ondelete="CASCADE"), primary_key=True
    )
    customer_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    usage_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
