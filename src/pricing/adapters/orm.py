"""ORM модели ценовых правил."""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy import DateTime, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from base.orm import Base
from catalog.domain.models import CustomerTier, CustomerType
from pricing.domain.models import DiscountType, PriceRuleScope


class PriceRuleORM(Base):
    """Модель ценового правила.

    Поле цели заполняется только то, которое соответствует scope.
    """

    __tablename__ = "price_rules"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), default="")
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    scope: Mapped[PriceRuleScope] = mapped_column(nullable=False)
    discount_type: Mapped[DiscountType] = mapped_column(default=DiscountType.PERCENTAGE)
    discount_value: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)

    product_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    category_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    manufacturer_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    customer_tier: Mapped[Optional[CustomerTier]] = mapped_column(nullable=True)
    customer_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    customer_type: Mapped[Optional[CustomerType]] = mapped_column(nullable=True)

    minimum_quantity: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    maximum_quantity: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    start_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    end_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    is_active: Mapped[bool] = mapped_column(default=True)
    priority: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
