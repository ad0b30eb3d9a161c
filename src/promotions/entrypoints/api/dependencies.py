"""Зависимости для API акций."""

from typing import Annotated

from fastapi import Depends

from pricing.entrypoints.api.dependencies import PricingUnitOfWorkDependency
from promotions.services.usage_tracker import PromotionUsageTracker
from promotions.services.validator import PromotionValidator


async def get_promotion_validator(uow: PricingUnitOfWorkDependency) -> PromotionValidator:
    """Получение сервиса проверки акций."""
    return PromotionValidator(uow)


async def get_usage_tracker(uow: PricingUnitOfWorkDependency) -> PromotionUsageTracker:
    """Получение сервиса учета использований акций."""
    return PromotionUsageTracker(uow)


PromotionValidatorDependency = Annotated[
    PromotionValidator, Depends(get_promotion_validator)
]
UsageTrackerDependency = Annotated[PromotionUsageTracker, Depends(get_usage_tracker)]
