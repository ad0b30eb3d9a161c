"""Учет использований акций при подтверждении заказа."""

import logging
from decimal import Decimal

from sqlalchemy.exc import SQLAlchemyError

from base.exceptions import DatabaseError, PromotionNotFoundError
from base.utils import ZERO, to_money
from pricing.services.unit_of_work import IPricingUnitOfWork
from promotions.domain.models import UsageRecordStatus

logger = logging.getLogger(__name__)


class PromotionUsageTracker:
    """Запись использования акции, ровно одна на заказ.

    Вызывается только при подтверждении заказа, расчет цен сюда не ходит.
    """

    def __init__(self, uow: IPricingUnitOfWork) -> None:
        self.uow = uow

    async def record_promotion_usage(
        self,
        promotion_id: int,
        customer_id: int,
        order_id: int,
        discount_applied: Decimal = ZERO,
    ) -> UsageRecordStatus:
        """Атомарно увеличить счетчики акции и клиента."""
        async with self.uow:
            promotion = await self.uow.promotions.get(promotion_id)
            if promotion is None:
                raise PromotionNotFoundError(promotion_id)

            try:
                status = await self.uow.promotion_usages.try_record_usage(
                    promotion_id=promotion_id,
                    customer_id=customer_id,
                    order_id=order_id,
                    discount_applied=to_money(discount_applied),
                    max_usage_per_customer=promotion.max_usage_per_customer,
                )
            except SQLAlchemyError as e:
                logger.error(f"Failed to record usage of promotion {promotion_id}: {e}")
                raise DatabaseError(f"Не удалось записать использование акции: {e}") from e

            if status == UsageRecordStatus.RECORDED:
                await self.uow.commit()
                logger.info(
                    f"Promotion {promotion.code} usage recorded for order {order_id}, "
                    f"customer {customer_id}"
                )
            else:
                await self.uow.rollback()
                logger.warning(
                    f"Promotion {promotion.code} usage for order {order_id} rejected: {status.value}"
                )
            return status
