"""Скидки по категориям клиентов."""

from decimal import Decimal
from typing import Mapping, Optional

from base.config import get_settings
from base.utils import ZERO, to_percent
from catalog.domain.models import CustomerTier
from pricing.domain.models import TierPricingInfo

DEFAULT_TIER_DISCOUNTS: dict[CustomerTier, Decimal] = {
    CustomerTier.A: Decimal("15"),
    CustomerTier.B: Decimal("10"),
    CustomerTier.C: Decimal("5"),
}

TIER_NAMES = {
    CustomerTier.A: "Tier A",
    CustomerTier.B: "Tier B",
    CustomerTier.C: "Tier C",
}


class TierDiscountTable:
    """Статическая таблица: категория клиента -> процент скидки."""

    def __init__(self, discounts: Optional[Mapping[CustomerTier, Decimal]] = None) -> None:
        self._discounts = dict(DEFAULT_TIER_DISCOUNTS if discounts is None else discounts)

    @classmethod
    def from_settings(cls) -> "TierDiscountTable":
        """Таблица с процентами из настроек приложения."""
        settings = get_settings()
        return cls(
            {
                CustomerTier.A: settings.tier_a_discount_percent,
                CustomerTier.B: settings.tier_b_discount_percent,
                CustomerTier.C: settings.tier_c_discount_percent,
            }
        )

    def get_tier_discount_percentage(self, tier: Optional[CustomerTier]) -> Decimal:
        """Процент скидки категории. Неизвестная категория дает 0."""
        if tier is None:
            return ZERO
        return self._discounts.get(tier, ZERO)

    def describe(self) -> list[TierPricingInfo]:
        """Описание всех категорий для API."""
        return [
            TierPricingInfo(
                tier=tier,
                tier_name=TIER_NAMES.get(tier, tier.value),
                discount_percentage=to_percent(percent),
                description=f"{to_percent(percent)}% discount off base price",
            )
            for tier, percent in sorted(self._discounts.items(), key=lambda i: i[0].value)
        ]
