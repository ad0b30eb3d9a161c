"""API эндпоинты акций."""

from typing import List

from fastapi import APIRouter, HTTPException, status

from base.data_structures import ErrorResponse
from promotions.domain.models import (
    Promotion,
    PromotionUsageRequest,
    PromotionUsageResponse,
    PromotionValidationRequest,
    PromotionValidationResult,
    UsageRecordStatus,
)
from promotions.entrypoints.api.dependencies import (
    PromotionValidatorDependency,
    UsageTrackerDependency,
)

router = APIRouter()


@router.post("/validate/", response_model=PromotionValidationResult)
async def validate_promotion(
    request: PromotionValidationRequest, validator: PromotionValidatorDependency
) -> PromotionValidationResult:
    """Проверка промокода для клиента и суммы заказа."""
    return await validator.validate(request.code, request.customer_id, request.order_total)


@router.get("/available/{customer_id}", response_model=List[Promotion])
async def get_available_promotions(
    customer_id: int, validator: PromotionValidatorDependency
) -> List[Promotion]:
    """Акции без кода, доступные клиенту."""
    return await validator.get_available_promotions(customer_id)


@router.post(
    "/{promotion_id}/usages/",
    status_code=status.HTTP_201_CREATED,
    response_model=PromotionUsageResponse,
    responses={404: {"model": ErrorResponse}, 409: {"description": "Лимит использований исчерпан"}},
)
async def record_promotion_usage(
    promotion_id: int, request: PromotionUsageRequest, tracker: UsageTrackerDependency
) -> PromotionUsageResponse:
    """Запись использования акции при подтверждении заказа."""
    usage_status = await tracker.record_promotion_usage(
        promotion_id, request.customer_id, request.order_id, request.discount_applied
    )
    response = PromotionUsageResponse(
        promotion_id=promotion_id, order_id=request.order_id, status=usage_status
    )
    if usage_status in (
        UsageRecordStatus.LIMIT_EXCEEDED,
        UsageRecordStatus.CUSTOMER_LIMIT_EXCEEDED,
    ):
        raise HTTPException(status_code=409, detail=response.model_dump(mode="json"))
    return response
