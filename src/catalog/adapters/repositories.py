"""Интерфейсы репозиториев каталога."""

from abc import ABC, abstractmethod
from typing import Optional

from catalog.domain.models import Customer, Product, ProductPrice


class IProductRepository(ABC):
    """Интерфейс репозитория товаров."""

    @abstractmethod
    async def get(self, product_id: int) -> Optional[Product]:
        """Получение товара по ID."""
        raise NotImplementedError


class ICustomerRepository(ABC):
    """Интерфейс репозитория клиентов."""

    @abstractmethod
    async def get(self, customer_id: int) -> Optional[Customer]:
        """Получение клиента по ID."""
        raise NotImplementedError


class IProductPriceRepository(ABC):
    """Интерфейс репозитория переопределенных цен."""

    @abstractmethod
    async def list_for_product(self, product_id: int) -> list[ProductPrice]:
        """Все цены товара, включая неактивные."""
        raise NotImplementedError
