"""Тесты SQLAlchemy репозиториев на SQLite (aiosqlite)."""

import asyncio
from datetime import timedelta
from decimal import Decimal

import pytest
import pytest_asyncio
from sqlalchemy import select

from catalog.adapters.orm import CustomerORM, ProductORM, ProductPriceORM
from catalog.adapters.repository_impl import (
    PostgreSQLCustomerRepository,
    PostgreSQLProductPriceRepository,
    PostgreSQLProductRepository,
)
from catalog.domain.models import CustomerTier, CustomerType
from pricing.adapters.orm import PriceRuleORM
from pricing.adapters.repository_impl import PostgreSQLPriceRuleRepository
from pricing.domain.models import (
    CategoryRule,
    DiscountType,
    PriceRuleScope,
    ProductRule,
)
from pricing.domain.tiers import TierDiscountTable
from pricing.services.calculator import PriceCalculator
from pricing.services.unit_of_work import PostgreSQLPricingUnitOfWork
from promotions.adapters.orm import (
    PromotionCustomerUsageORM,
    PromotionORM,
    PromotionProductORM,
    PromotionUsageORM,
)
from promotions.adapters.repository_impl import (
    PostgreSQLPromotionRepository,
    PostgreSQLPromotionUsageRepository,
)
from promotions.domain.models import PromotionType, UsageRecordStatus
from promotions.services.usage_tracker import PromotionUsageTracker
from promotions.services.validator import PromotionValidator

from conftest import NOW, YESTERDAY, clock


@pytest_asyncio.fixture
async def seeded(session_factory):
    """База с каталогом, правилами и акциями."""
    async with session_factory() as session:
        session.add_all(
            [
                CustomerORM(id=1, name="Apoteka Centar", tier=CustomerTier.B, customer_type=CustomerType.PHARMACY),
                CustomerORM(id=10, name="Lanac HQ", tier=CustomerTier.A, customer_type=CustomerType.WHOLESALE),
                CustomerORM(id=11, name="Lanac filijala", tier=CustomerTier.C, parent_customer_id=10),
                ProductORM(id=1, name="Paracetamol 500mg", base_price=Decimal("100.00"), category_id=10),
                ProductORM(id=2, name="Ibuprofen 400mg", base_price=Decimal("40.00"), category_id=20),
            ]
        )
        session.add_all(
            [
                PriceRuleORM(
                    id=1,
                    name="Paracetamol volume",
                    scope=PriceRuleScope.PRODUCT,
                    product_id=1,
                    discount_value=Decimal("5"),
                    created_at=NOW - timedelta(days=5),
                ),
                PriceRuleORM(
                    id=2,
                    name="Analgesics",
                    scope=PriceRuleScope.CATEGORY,
                    category_id=20,
                    discount_type=DiscountType.FIXED_AMOUNT,
                    discount_value=Decimal("1.50"),
                    minimum_quantity=10,
                    maximum_quantity=20,
                ),
                PriceRuleORM(
                    id=3,
                    name="Disabled",
                    scope=PriceRuleScope.GLOBAL,
                    discount_value=Decimal("50"),
                    is_active=False,
                ),
            ]
        )
        session.add_all(
            [
                PromotionORM(
                    id=1,
                    code="SAVE20",
                    value=Decimal("20"),
                    maximum_discount_amount=Decimal("15.00"),
                    max_usage_count=2,
                    max_usage_per_customer=1,
                ),
                PromotionORM(
                    id=2,
                    code="CHAIN",
                    requires_code=False,
                    value=Decimal("10"),
                    applies_to_all_products=False,
                    applies_to_all_customers=False,
                    customer_id=10,
                    apply_to_child_customers=True,
                    products=[PromotionProductORM(product_id=2)],
                ),
                PromotionORM(
                    id=3,
                    code="OLDAUTO",
                    requires_code=False,
                    promotion_type=PromotionType.FREE_SHIPPING,
                    end_date=YESTERDAY,
                ),
            ]
        )
        await session.commit()
    return session_factory


class TestCatalogRepositories:
    """Репозитории товаров и клиентов."""

    @pytest.mark.asyncio
    async def test_get_product_and_customer(self, seeded):
        async with seeded() as session:
            product = await PostgreSQLProductRepository(session).get(1)
            customer = await PostgreSQLCustomerRepository(session).get(11)

            assert product.base_price == Decimal("100.00")
            assert product.category_id == 10
            assert customer.parent_customer_id == 10
            assert customer.tier == CustomerTier.C
            assert await PostgreSQLProductRepository(session).get(404) is None

    @pytest.mark.asyncio
    async def test_product_prices(self, seeded):
        async with seeded() as session:
            session.add_all(
                [
                    ProductPriceORM(
                        id=1, product_id=1, unit_price=Decimal("80.00"), valid_from=YESTERDAY
                    ),
                    ProductPriceORM(
                        id=2,
                        product_id=1,
                        customer_id=1,
                        unit_price=Decimal("90.00"),
                        valid_from=YESTERDAY,
                        valid_to=NOW + timedelta(days=30),
                        priority=-5,
                    ),
                ]
            )
            await session.commit()

            prices = sorted(
                await PostgreSQLProductPriceRepository(session).list_for_product(1),
                key=lambda p: p.id,
            )

            assert [p.unit_price for p in prices] == [Decimal("80.00"), Decimal("90.00")]
            assert prices[0].valid_from == YESTERDAY
            assert prices[1].customer_id == 1
            assert prices[1].valid_to == NOW + timedelta(days=30)
            assert await PostgreSQLProductPriceRepository(session).list_for_product(2) == []

        calculator = PriceCalculator(
            PostgreSQLPricingUnitOfWork(seeded),
            tiers=TierDiscountTable(),
            auto_apply_promotions=False,
            clock=clock,
        )
        assert (await calculator.calculate_price(1, 1, 1)).base_price == Decimal("90.00")


class TestPriceRuleRepository:
    """Репозиторий ценовых правил."""

    @pytest.mark.asyncio
    async def test_list_rules_maps_scopes(self, seeded):
        async with seeded() as session:
            repository = PostgreSQLPriceRuleRepository(session)

            active = sorted(await repository.list_rules(), key=lambda r: r.id)
            everything = await repository.list_rules(active_only=False)

            assert [type(r) for r in active] == [ProductRule, CategoryRule]
            assert active[0].created_at == NOW - timedelta(days=5)
            assert active[1].minimum_quantity == 10
            assert len(everything) == 3
            assert (await repository.get(3)).scope == PriceRuleScope.GLOBAL


class TestPromotionRepositories:
    """Репозитории акций и учета использований."""

    @pytest.mark.asyncio
    async def test_get_by_code_case_insensitive(self, seeded):
        async with seeded() as session:
            promotion = await PostgreSQLPromotionRepository(session).get_by_code(" save20 ")

            assert promotion.id == 1
            assert promotion.maximum_discount_amount == Decimal("15.00")

    @pytest.mark.asyncio
    async def test_list_auto_applied(self, seeded):
        async with seeded() as session:
            promotions = await PostgreSQLPromotionRepository(session).list_auto_applied(NOW)

            assert [p.code for p in promotions] == ["CHAIN"]
            assert promotions[0].product_ids == [2]

    @pytest.mark.asyncio
    async def test_try_record_usage(self, seeded):
        async with seeded() as session:
            usages = PostgreSQLPromotionUsageRepository(session)

            first = await usages.try_record_usage(1, 1, 100, Decimal("15.00"), None)
            again = await usages.try_record_usage(1, 1, 100, Decimal("15.00"), None)
            await session.commit()

            assert first == UsageRecordStatus.RECORDED
            assert again == UsageRecordStatus.ALREADY_RECORDED
            assert await usages.count_customer_usages(1, 1) == 1
            assert await usages.count_customer_usages(1, 2) == 0

    @pytest.mark.asyncio
    async def test_global_limit(self, seeded):
        async with seeded() as session:
            usages = PostgreSQLPromotionUsageRepository(session)

            statuses = [
                await usages.try_record_usage(1, customer_id, 200 + customer_id, Decimal("0"), None)
                for customer_id in (1, 2, 3)
            ]

            assert statuses == [
                UsageRecordStatus.RECORDED,
                UsageRecordStatus.RECORDED,
                UsageRecordStatus.LIMIT_EXCEEDED,
            ]
            count = await session.scalar(
                select(PromotionORM.current_usage_count).filter_by(id=1)
            )
            assert count == 2


class TestSqlServices:
    """Сервисы поверх PostgreSQLPricingUnitOfWork."""

    @pytest.mark.asyncio
    async def test_calculate_price_end_to_end(self, seeded):
        uow = PostgreSQLPricingUnitOfWork(seeded)
        calculator = PriceCalculator(
            uow, tiers=TierDiscountTable(), auto_apply_promotions=False, clock=clock
        )

        result = await calculator.calculate_price(1, 1, 5, promotion_code="SAVE20")

        assert result.applied_rule_id == 1
        assert result.final_unit_price == Decimal("82.50")
        assert result.applied_promotion_code == "SAVE20"

    @pytest.mark.asyncio
    async def test_rule_quantity_bounds(self, seeded):
        calculator = PriceCalculator(
            PostgreSQLPricingUnitOfWork(seeded),
            tiers=TierDiscountTable(),
            auto_apply_promotions=False,
            clock=clock,
        )

        inside = await calculator.calculate_price(2, 1, 20)
        outside = await calculator.calculate_price(2, 1, 21)

        assert inside.applied_rule_id == 2
        assert inside.final_unit_price == Decimal("34.50")
        assert outside.applied_rule_id is None

    @pytest.mark.asyncio
    async def test_branch_gets_parent_promotion(self, seeded):
        validator = PromotionValidator(
            PostgreSQLPricingUnitOfWork(seeded), max_hierarchy_depth=5, clock=clock
        )

        available = await validator.get_available_promotions(11)

        assert [p.code for p in available] == ["CHAIN"]
        assert await validator.get_available_promotions(1) == []

    @pytest.mark.asyncio
    async def test_tracker_commits_and_rolls_back(self, seeded):
        tracker = PromotionUsageTracker(PostgreSQLPricingUnitOfWork(seeded))

        assert await tracker.record_promotion_usage(1, 1, 300, Decimal("15")) == UsageRecordStatus.RECORDED
        assert await tracker.record_promotion_usage(1, 1, 301) == UsageRecordStatus.CUSTOMER_LIMIT_EXCEEDED
        assert await tracker.record_promotion_usage(1, 1, 300) == UsageRecordStatus.ALREADY_RECORDED

        async with seeded() as session:
            count = await session.scalar(
                select(PromotionORM.current_usage_count).filter_by(id=1)
            )
            customer_count = await session.scalar(
                select(PromotionCustomerUsageORM.usage_count).filter_by(
                    promotion_id=1, customer_id=1
                )
            )
            orders = (
                await session.scalars(select(PromotionUsageORM.order_id).filter_by(promotion_id=1))
            ).all()

        assert count == 1
        assert customer_count == 1
        assert orders == [300]


class TestConcurrentUsageRecording:
    """Параллельные заказы через отдельные сессии одной базы."""

    @staticmethod
    async def add_promotion(session_factory, promotion_id, code, max_usage_count=None):
        async with session_factory() as session:
            session.add(
                PromotionORM(
                    id=promotion_id,
                    code=code,
                    value=Decimal("5"),
                    max_usage_count=max_usage_count,
                )
            )
            await session.commit()

    @staticmethod
    async def record(session_factory, promotion_id, customer_id, order_id):
        tracker = PromotionUsageTracker(PostgreSQLPricingUnitOfWork(session_factory))
        return await tracker.record_promotion_usage(promotion_id, customer_id, order_id)

    @staticmethod
    async def usage_state(session_factory, promotion_id):
        async with session_factory() as session:
            count = await session.scalar(
                select(PromotionORM.current_usage_count).filter_by(id=promotion_id)
            )
            orders = (
                await session.scalars(
                    select(PromotionUsageORM.order_id).filter_by(promotion_id=promotion_id)
                )
            ).all()
        return count, sorted(orders)

    @pytest.mark.asyncio
    async def test_parallel_orders_never_overshoot(self, seeded):
        await self.add_promotion(seeded, 10, "RUSH", max_usage_count=9)

        statuses = await asyncio.gather(
            *(self.record(seeded, 10, order_id, 1000 + order_id) for order_id in range(10))
        )
        count, orders = await self.usage_state(seeded, 10)

        assert statuses.count(UsageRecordStatus.RECORDED) == 9
        assert statuses.count(UsageRecordStatus.LIMIT_EXCEEDED) == 1
        assert count == 9
        assert len(orders) == 9

    @pytest.mark.asyncio
    async def test_parallel_duplicate_order(self, seeded):
        await self.add_promotion(seeded, 11, "ONCE")

        statuses = await asyncio.gather(*(self.record(seeded, 11, 1, 700) for _ in range(3)))
        count, orders = await self.usage_state(seeded, 11)

        assert statuses.count(UsageRecordStatus.RECORDED) == 1
        assert statuses.count(UsageRecordStatus.ALREADY_RECORDED) == 2
        assert count == 1
        assert orders == [700]
