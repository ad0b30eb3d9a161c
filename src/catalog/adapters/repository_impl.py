"""Реализации репозиториев каталога."""

from decimal import Decimal
from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from base.utils import as_utc
from catalog.adapters.orm import CustomerORM, ProductORM, ProductPriceORM
from catalog.domain.models import Customer, Product, ProductPrice

from .repositories import (
    ICustomerRepository,
    IProductPriceRepository,
    IProductRepository,
)


class InMemoryProductRepository(IProductRepository):
    """In-memory репозиторий товаров для тестов."""

    def __init__(self, products: Iterable[Product] = ()) -> None:
        """Инициализация репозитория."""
        self.products: dict[int, Product] = {p.id: p for p in products}

    def add(self, product: Product) -> None:
        """Добавление товара."""
        self.products[product.id] = product

    async def get(self, product_id: int) -> Optional[Product]:
        """Получение товара по ID."""
        return self.products.get(product_id)


class InMemoryCustomerRepository(ICustomerRepository):
    """In-memory репозиторий клиентов для тестов."""

    def __init__(self, customers: Iterable[Customer] = ()) -> None:
        """Инициализация репозитория."""
        self.customers: dict[int, Customer] = {c.id: c for c in customers}

    def add(self, customer: Customer) -> None:
        """Добавление клиента."""
        self.customers[customer.id] = customer

    async def get(self, customer_id: int) -> Optional[Customer]:
        """Получение клиента по ID."""
        return self.customers.get(customer_id)


class InMemoryProductPriceRepository(IProductPriceRepository):
    """In-memory репозиторий цен для тестов."""

    def __init__(self, prices: Iterable[ProductPrice] = ()) -> None:
        """Инициализация репозитория."""
        self.prices: list[ProductPrice] = list(prices)

    async def list_for_product(self, product_id: int) -> list[ProductPrice]:
        """Все цены товара."""
        return [p for p in self.prices if p.product_id == product_id]


class PostgreSQLProductRepository(IProductRepository):
    """PostgreSQL репозиторий товаров."""

    def __init__(self, session: AsyncSession) -> None:
        """Инициализация репозитория."""
        self.session = session

    async def get(self, product_id: int) -> Optional[Product]:
        """Получение товара по ID."""
        result = await self.session.execute(select(ProductORM).filter_by(id=product_id))
        product_orm = result.scalars().first()

        if product_orm:
            return Product(
                id=product_orm.id,
                name=product_orm.name,
                base_price=Decimal(str(product_orm.base_price)),
                category_id=product_orm.category_id,
                manufacturer_id=product_orm.manufacturer_id,
            )
        return None


class PostgreSQLCustomerRepository(ICustomerRepository):
    """PostgreSQL репозиторий клиентов."""

    def __init__(self, session: AsyncSession) -> None:
        """Инициализация репозитория."""
        self.session = session

    async def get(self, customer_id: int) -> Optional[Customer]:
        """Получение клиента по ID."""
        result = await self.session.execute(select(CustomerORM).filter_by(id=customer_id))
        customer_orm = result.scalars().first()

        if customer_orm:
            return Customer(
                id=customer_orm.id,
                name=customer_orm.name,
                tier=customer_orm.tier,
                customer_type=customer_orm.customer_type,
                parent_customer_id=customer_orm.parent_customer_id,
            )
        return None


class PostgreSQLProductPriceRepository(IProductPriceRepository):
    """PostgreSQL репозиторий цен."""

    def __init__(self, session: AsyncSession) -> None:
        """Инициализация репозитория."""
        self.session = session

    async def list_for_product(self, product_id: int) -> list[ProductPrice]:
        """Все цены товара."""
        result = await self.session.execute(
            select(ProductPriceORM).filter_by(product_id=product_id)
        )
        return [
            ProductPrice(
                id=price_orm.id,
                product_id=price_orm.product_id,
                customer_id=price_orm.customer_id,
                unit_price=Decimal(str(price_orm.unit_price)),
                valid_from=as_utc(price_orm.valid_from),
                valid_to=as_utc(price_orm.valid_to),
                priority=price_orm.priority,
                is_active=price_orm.is_active,
            )
            for price_orm in result.scalars().all()
        ]
