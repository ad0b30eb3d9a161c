"""Проверка промокодов и подбор доступных акций."""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Callable, Optional

from base.config import get_max_hierarchy_depth
from base.exceptions import CustomerNotFoundError
from base.utils import utc_now
from catalog.domain.models import Customer
from catalog.services.hierarchy import CustomerHierarchyResolver
from pricing.services.unit_of_work import IPricingUnitOfWork
from promotions.domain.discounts import estimate_discount
from promotions.domain.models import (
    Promotion,
    PromotionErrorCode,
    PromotionValidationResult,
)

logger = logging.getLogger(__name__)

ERROR_MESSAGES = {
    PromotionErrorCode.NOT_FOUND: "Промокод не найден",
    PromotionErrorCode.INACTIVE: "Акция неактивна",
    PromotionErrorCode.NOT_STARTED: "Акция еще не началась",
    PromotionErrorCode.EXPIRED: "Срок действия акции истек",
    PromotionErrorCode.LIMIT_REACHED: "Лимит использований акции исчерпан",
    PromotionErrorCode.NOT_ELIGIBLE: "Акция недоступна для этого клиента",
    PromotionErrorCode.CUSTOMER_LIMIT_REACHED: "Клиент уже использовал акцию максимальное число раз",
    PromotionErrorCode.MINIMUM_NOT_MET: "Сумма заказа меньше минимальной для акции",
    PromotionErrorCode.NO_ELIGIBLE_PRODUCTS: "В заказе нет товаров, на которые распространяется акция",
}


def rejected(
    code: PromotionErrorCode, promotion: Optional[Promotion] = None
) -> PromotionValidationResult:
    """Результат отказа с сообщением для отображения."""
    return PromotionValidationResult(
        is_valid=False,
        promotion=promotion,
        error_code=code,
        error_message=ERROR_MESSAGES[code],
    )


class PromotionValidator:
    """Проверка акции для клиента и суммы заказа.

    Проверки идут по порядку, первая неудачная определяет причину отказа:
    существование, действие акции, право клиента, лимит клиента, минимальная
    сумма заказа.
    """

    def __init__(
        self,
        uow: IPricingUnitOfWork,
        max_hierarchy_depth: Optional[int] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.uow = uow
        self.max_hierarchy_depth = (
            get_max_hierarchy_depth() if max_hierarchy_depth is None else max_hierarchy_depth
        )
        self.clock = clock

    async def validate(
        self,
        code: str,
        customer_id: int,
        order_total: Decimal,
        now: Optional[datetime] = None,
    ) -> PromotionValidationResult:
        """Проверка промокода."""
        async with self.uow:
            customer = await self.get_customer(self.uow, customer_id)
            return await self.validate_for_customer(
                self.uow, code, customer, order_total, now or self.clock()
            )

    async def get_available_promotions(
        self, customer_id: int, now: Optional[datetime] = None
    ) -> list[Promotion]:
        """Акции без кода, доступные клиенту, включая унаследованные от головной организации."""
        async with self.uow:
            customer = await self.get_customer(self.uow, customer_id)
            return await self.available_for_customer(self.uow, customer, now or self.clock())

    @staticmethod
    async def get_customer(uow: IPricingUnitOfWork, customer_id: int) -> Customer:
        """Клиент по ID или CustomerNotFoundError."""
        customer = await uow.customers.get(customer_id)
        if customer is None:
            raise CustomerNotFoundError(customer_id)
        return customer

    async def validate_for_customer(
        self,
        uow: IPricingUnitOfWork,
        code: str,
        customer: Customer,
        order_total: Decimal,
        now: datetime,
    ) -> PromotionValidationResult:
        """Проверка кода в рамках уже открытой единицы работы."""
        promotion = await uow.promotions.get_by_code(code)
        if promotion is None:
            logger.info(f"Promotion code {code!r} not found")
            return rejected(PromotionErrorCode.NOT_FOUND)
        return await self.check_promotion(uow, promotion, customer, order_total, now)

    async def check_promotion(
        self,
        uow: IPricingUnitOfWork,
        promotion: Promotion,
        customer: Customer,
        order_total: Optional[Decimal],
        now: datetime,
    ) -> PromotionValidationResult:
        """Проверки 2-5 для найденной акции.

        Без order_total проверка минимальной суммы пропускается.
        """
        error = promotion.validity_error(now)
        if error is not None:
            return rejected(error, promotion)

        if not await self.is_customer_eligible(uow, promotion, customer):
            return rejected(PromotionErrorCode.NOT_ELIGIBLE, promotion)

        if promotion.max_usage_per_customer is not None:
            used = await uow.promotion_usages.count_customer_usages(promotion.id, customer.id)
            if used >= promotion.max_usage_per_customer:
                return rejected(PromotionErrorCode.CUSTOMER_LIMIT_REACHED, promotion)

        if order_total is None:
            return PromotionValidationResult(is_valid=True, promotion=promotion)

        if (
            promotion.minimum_order_amount is not None
            and order_total < promotion.minimum_order_amount
        ):
            return rejected(PromotionErrorCode.MINIMUM_NOT_MET, promotion)

        return PromotionValidationResult(
            is_valid=True,
            promotion=promotion,
            estimated_discount=estimate_discount(promotion, order_total),
        )

    async def is_customer_eligible(
        self, uow: IPricingUnitOfWork, promotion: Promotion, customer: Customer
    ) -> bool:
        """Клиент подходит под хотя бы одно условие акции."""
        if promotion.applies_to_all_customers:
            return True
        if (
            promotion.required_customer_tier is not None
            and customer.tier == promotion.required_customer_tier
        ):
            return True
        if (
            promotion.required_customer_type is not None
            and customer.customer_type == promotion.required_customer_type
        ):
            return True
        if promotion.customer_id is None:
            return False
        if customer.id == promotion.customer_id:
            return True
        if not promotion.apply_to_child_customers:
            return False

        resolver = CustomerHierarchyResolver(uow.customers, self.max_hierarchy_depth)
        return promotion.customer_id in await resolver.get_ancestor_ids(customer)

    async def available_for_customer(
        self, uow: IPricingUnitOfWork, customer: Customer, now: datetime
    ) -> list[Promotion]:
        """Акции без кода, прошедшие проверки 2-4."""
        available = []
        for promotion in await uow.promotions.list_auto_applied(now):
            result = await self.check_promotion(uow, promotion, customer, None, now)
            if result.is_valid:
                available.append(promotion)
        return available
