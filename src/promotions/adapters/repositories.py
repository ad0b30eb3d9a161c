"""Интерфейсы репозиториев акций."""

from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal
from typing import Optional

from promotions.domain.models import Promotion, UsageRecordStatus


class IPromotionRepository(ABC):
    """Интерфейс репозитория акций."""

    @abstractmethod
    async def get(self, promotion_id: int) -> Optional[Promotion]:
        """Получение акции по ID."""
        raise NotImplementedError

    @abstractmethod
    async def get_by_code(self, code: str) -> Optional[Promotion]:
        """Получение акции по коду без учета регистра."""
        raise NotImplementedError

    @abstractmethod
    async def list_auto_applied(self, now: datetime) -> list[Promotion]:
        """Действующие акции, не требующие кода."""
        raise NotImplementedError


class IPromotionUsageRepository(ABC):
    """Интерфейс учета использований акций."""

    @abstractmethod
    async def count_customer_usages(self, promotion_id: int, customer_id: int) -> int:
        """Сколько раз клиент уже использовал акцию."""
        raise NotImplementedError

    @abstractmethod
    async def try_record_usage(
        self,
        promotion_id: int,
        customer_id: int,
        order_id: int,
        discount_applied: Decimal,
        max_usage_per_customer: Optional[int],
    ) -> UsageRecordStatus:
        """Атомарная запись использования с проверкой лимитов.

        Счетчики меняются только при статусе RECORDED. При любом другом
        статусе вызывающий откатывает транзакцию.
        """
        raise NotImplementedError
