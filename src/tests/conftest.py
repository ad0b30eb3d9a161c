"""Конфигурация для тестов."""

import os
import warnings
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

# Устанавливаем тестовые переменные окружения
os.environ.setdefault("DB_USER", "test")
os.environ.setdefault("DB_PASSWORD", "test")
os.environ.setdefault("DB_NAME", "test_db")
os.environ.setdefault("DB_HOST", "localhost")
os.environ.setdefault("DB_PORT", "5432")

import catalog.adapters.orm  # noqa: E402,F401
import pricing.adapters.orm  # noqa: E402,F401
import promotions.adapters.orm  # noqa: E402,F401
from base.orm import Base  # noqa: E402
from catalog.domain.models import (  # noqa: E402
    Customer,
    CustomerTier,
    CustomerType,
    Product,
)
from pricing.domain.tiers import TierDiscountTable  # noqa: E402
from pricing.services.calculator import PriceCalculator  # noqa: E402
from pricing.services.unit_of_work import InMemoryPricingUnitOfWork  # noqa: E402
from promotions.services.validator import PromotionValidator  # noqa: E402

warnings.filterwarnings("ignore", category=DeprecationWarning, module="sqlalchemy.*")

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
YESTERDAY = NOW - timedelta(days=1)
TOMORROW = NOW + timedelta(days=1)


def clock() -> datetime:
    """Фиксированное время для сервисов."""
    return NOW


PRODUCTS = [
    Product(id=1, name="Paracetamol 500mg", base_price=Decimal("100.00"), category_id=10, manufacturer_id=100),
    Product(id=2, name="Ibuprofen 400mg", base_price=Decimal("40.00"), category_id=20, manufacturer_id=200),
    Product(id=3, name="Sample pack", base_price=Decimal("0.00"), category_id=30, manufacturer_id=100),
    Product(id=4, name="Vitamin C 100mg", base_price=Decimal("1.00"), category_id=30, manufacturer_id=300),
]

CUSTOMERS = [
    Customer(id=1, name="Apoteka Centar", tier=CustomerTier.B, customer_type=CustomerType.PHARMACY),
    Customer(id=2, name="KCU Sarajevo", tier=CustomerTier.A, customer_type=CustomerType.HOSPITAL),
    Customer(id=3, name="Apoteka Mala", tier=CustomerTier.C, customer_type=CustomerType.PHARMACY),
    Customer(id=10, name="Lanac Zdravlje HQ", tier=CustomerTier.B, customer_type=CustomerType.WHOLESALE),
    Customer(id=11, name="Lanac Zdravlje Mostar", tier=CustomerTier.C, customer_type=CustomerType.PHARMACY, parent_customer_id=10),
    Customer(id=20, name="Dom zdravlja", tier=None, customer_type=CustomerType.CLINIC),
]


@pytest.fixture
def make_uow():
    """Фабрика in-memory единицы работы с тестовым каталогом."""

    def _make(rules=(), promotions=(), customers=None, prices=()):
        return InMemoryPricingUnitOfWork(
            products=PRODUCTS,
            customers=CUSTOMERS if customers is None else customers,
            price_rules=rules,
            promotions=[p.model_copy(deep=True) for p in promotions],
            product_prices=prices,
        )

    return _make


@pytest.fixture
def make_calculator():
    """Фабрика калькулятора с фиксированным временем и стандартными скидками категорий."""

    def _make(uow, auto_apply_promotions=False):
        return PriceCalculator(
            uow,
            tiers=TierDiscountTable(),
            validator=PromotionValidator(uow, max_hierarchy_depth=5, clock=clock),
            auto_apply_promotions=auto_apply_promotions,
            clock=clock,
        )

    return _make


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    """Фабрика сессий SQLite (aiosqlite) с созданной схемой."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'pricing.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()
