"""API эндпоинты расчета цен."""

import logging
from typing import List

from fastapi import APIRouter, status

from base.data_structures import ErrorResponse
from pricing.domain.models import (
    BatchPriceCalculationRequest,
    PriceCalculationRequest,
    PriceCalculationResult,
    PriceRule,
    TierPricingInfo,
)
from pricing.entrypoints.api.dependencies import PriceCalculatorDependency

logger = logging.getLogger(__name__)

router = APIRouter()

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
}


@router.post(
    "/calculate/",
    status_code=status.HTTP_200_OK,
    response_model=PriceCalculationResult,
    responses=ERROR_RESPONSES,
)
async def calculate_price(
    request: PriceCalculationRequest, calculator: PriceCalculatorDependency
) -> PriceCalculationResult:
    """Расчет цены одной позиции."""
    return await calculator.calculate_price(
        product_id=request.product_id,
        customer_id=request.customer_id,
        quantity=request.quantity,
        promotion_code=request.promotion_code,
    )


@router.post(
    "/calculate/batch/",
    response_model=List[PriceCalculationResult],
    responses=ERROR_RESPONSES,
)
async def calculate_prices(
    request: BatchPriceCalculationRequest, calculator: PriceCalculatorDependency
) -> List[PriceCalculationResult]:
    """Расчет цен корзины с одной акцией на заказ."""
    logger.debug(
        f"Batch calculation for customer {request.customer_id}, {len(request.items)} items"
    )
    return await calculator.calculate_prices(
        request.items, request.customer_id, request.promotion_code
    )


@router.get("/tiers/", response_model=List[TierPricingInfo])
async def get_tier_pricing(calculator: PriceCalculatorDependency) -> List[TierPricingInfo]:
    """Скидки по категориям клиентов."""
    return await calculator.get_tier_pricing()


@router.get("/rules/applicable/{customer_id}", response_model=List[PriceRule])
async def get_applicable_rules(
    customer_id: int, calculator: PriceCalculatorDependency
) -> List[PriceRule]:
    """Действующие ценовые правила, которые могут примениться к клиенту."""
    return await calculator.get_applicable_rules(customer_id)


@router.get(
    "/rules/{rule_id}",
    response_model=PriceRule,
    responses={404: {"model": ErrorResponse}},
)
async def get_price_rule(rule_id: int, calculator: PriceCalculatorDependency) -> PriceRule:
    """Ценовое правило по ID."""
    return await calculator.get_price_rule(rule_id)
