"""Интерфейсы репозиториев ценовых правил."""

from abc import ABC, abstractmethod
from typing import Optional

from pricing.domain.models import PriceRule


class IPriceRuleRepository(ABC):
    """Интерфейс репозитория ценовых правил."""

    @abstractmethod
    async def list_rules(self, active_only: bool = True) -> list[PriceRule]:
        """Список правил, по умолчанию только активных."""
        raise NotImplementedError

    @abstractmethod
    async def get(self, rule_id: int) -> Optional[PriceRule]:
        """Получение правила по ID."""
        raise NotImplementedError
