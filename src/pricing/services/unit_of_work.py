"""Модуль для единицы работы (Unit of Work) расчета цен и акций."""

import abc
from typing import Iterable

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from catalog.adapters.repositories import (
    ICustomerRepository,
    IProductPriceRepository,
    IProductRepository,
)
from catalog.adapters.repository_impl import (
    InMemoryCustomerRepository,
    InMemoryProductPriceRepository,
    InMemoryProductRepository,
    PostgreSQLCustomerRepository,
    PostgreSQLProductPriceRepository,
    PostgreSQLProductRepository,
)
from catalog.domain.models import Customer, Product, ProductPrice
from pricing.adapters.repositories import IPriceRuleRepository
from pricing.adapters.repository_impl import (
    InMemoryPriceRuleRepository,
    PostgreSQLPriceRuleRepository,
)
from pricing.domain.models import PriceRule
from promotions.adapters.repositories import (
    IPromotionRepository,
    IPromotionUsageRepository,
)
from promotions.adapters.repository_impl import (
    InMemoryPromotionRepository,
    InMemoryPromotionUsageRepository,
    PostgreSQLPromotionRepository,
    PostgreSQLPromotionUsageRepository,
)
from promotions.domain.models import Promotion


class IPricingUnitOfWork(abc.ABC):
    """Абстракция над атомарной операцией (единицей работы)."""

    products: IProductRepository
    product_prices: IProductPriceRepository
    customers: ICustomerRepository
    price_rules: IPriceRuleRepository
    promotions: IPromotionRepository
    promotion_usages: IPromotionUsageRepository

    async def __aenter__(self) -> "IPricingUnitOfWork":
        """Инициализация UoW через менеджер контекста."""
        return self

    async def __aexit__(self, *args):
        """Откат незафиксированных изменений."""
        await self.rollback()

    @abc.abstractmethod
    async def commit(self):
        """Фиксация транзакции."""

    @abc.abstractmethod
    async def rollback(self):
        """Откат транзакции."""


class InMemoryPricingUnitOfWork(IPricingUnitOfWork):
    """UoW поверх in-memory репозиториев для тестов.

    Изменения счетчиков видны сразу, commit и rollback только считаются.
    """

    def __init__(
        self,
        products: Iterable[Product] = (),
        customers: Iterable[Customer] = (),
        price_rules: Iterable[PriceRule] = (),
        promotions: Iterable[Promotion] = (),
        product_prices: Iterable[ProductPrice] = (),
    ) -> None:
        self.products = InMemoryProductRepository(products)
        self.product_prices = InMemoryProductPriceRepository(product_prices)
        self.customers = InMemoryCustomerRepository(customers)
        self.price_rules = InMemoryPriceRuleRepository(price_rules)
        self.promotions = InMemoryPromotionRepository(promotions)
        self.promotion_usages = InMemoryPromotionUsageRepository(self.promotions)
        self.committed = 0
        self.rolled_back = 0

    async def commit(self) -> None:
        """Фиксация транзакции."""
        self.committed += 1

    async def rollback(self) -> None:
        """Откат транзакции."""
        self.rolled_back += 1


class PostgreSQLPricingUnitOfWork(IPricingUnitOfWork):
    """UoW для PostgreSQL."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory

    async def __aenter__(self) -> "PostgreSQLPricingUnitOfWork":
        """Открытие сессии и создание репозиториев."""
        self._session: AsyncSession = self.session_factory()
        self.products = PostgreSQLProductRepository(self._session)
        self.product_prices = PostgreSQLProductPriceRepository(self._session)
        self.customers = PostgreSQLCustomerRepository(self._session)
        self.price_rules = PostgreSQLPriceRuleRepository(self._session)
        self.promotions = PostgreSQLPromotionRepository(self._session)
        self.promotion_usages = PostgreSQLPromotionUsageRepository(self._session)
        return self

    async def __aexit__(self, *args) -> None:
        """Откат транзакции в случае исключения."""
        await super().__aexit__(*args)
        await self._session.close()

    async def commit(self) -> None:
        """Фиксация транзакции."""
        await self._session.commit()

    async def rollback(self) -> None:
        """Откат транзакции."""
        await self._session.rollback()
