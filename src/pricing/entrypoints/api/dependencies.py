"""Зависимости для API расчета цен."""

from typing import Annotated

from fastapi import Depends

from base.dependencies import get_db
from pricing.services.calculator import PriceCalculator
from pricing.services.unit_of_work import IPricingUnitOfWork, PostgreSQLPricingUnitOfWork


async def get_pricing_uow(db=Depends(get_db)) -> IPricingUnitOfWork:
    """Единица работы поверх сессии запроса."""
    return PostgreSQLPricingUnitOfWork(lambda: db)


PricingUnitOfWorkDependency = Annotated[IPricingUnitOfWork, Depends(get_pricing_uow)]


async def get_price_calculator(uow: PricingUnitOfWorkDependency) -> PriceCalculator:
    """Получение сервиса расчета цен."""
    return PriceCalculator(uow)


PriceCalculatorDependency = Annotated[PriceCalculator, Depends(get_price_calculator)]
