"""Расчет итоговой цены: базовая цена, скидка категории, ценовое правило, акция."""

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from typing import Callable, Optional, Sequence

from base.config import get_auto_apply_promotions
from base.exceptions import (
    CustomerNotFoundError,
    PriceRuleNotFoundError,
    ProductNotFoundError,
    ValidationError,
)
from base.utils import HUNDRED, ZERO, percent_of, to_money, utc_now
from catalog.domain.models import Customer, Product
from pricing.domain.base_prices import BasePriceResolver
from pricing.domain.models import (
    DiscountType,
    PriceCalculationItem,
    PriceCalculationResult,
    PriceRule,
    TierPricingInfo,
)
from pricing.domain.rules import RuleMatcher
from pricing.domain.tiers import TierDiscountTable
from pricing.services.unit_of_work import IPricingUnitOfWork
from promotions.domain.discounts import (
    DiscountLine,
    distribute_discount,
    line_weights,
    order_discount,
)
from promotions.domain.models import Promotion, PromotionErrorCode, PromotionType
from promotions.services.validator import ERROR_MESSAGES, PromotionValidator

logger = logging.getLogger(__name__)


@dataclass
class PricedLine:
    """Промежуточный расчет позиции.

    Скидки категории и правила указаны за единицу, скидка акции на всю позицию.
    """

    product: Product
    quantity: int
    base_price: Decimal
    tier_percent: Decimal
    tier_amount: Decimal
    rule: Optional[PriceRule]
    rule_percent: Decimal
    rule_amount: Decimal
    after_rule: Decimal
    promotion: Optional[Promotion] = None
    promotion_discount: Decimal = ZERO

    @property
    def line_total(self) -> Decimal:
        return max(ZERO, to_money(self.after_rule * self.quantity - self.promotion_discount))

    @property
    def final_unit_price(self) -> Decimal:
        return to_money(self.line_total / self.quantity)

    @property
    def promotion_amount(self) -> Decimal:
        return to_money(self.promotion_discount / self.quantity)


@dataclass
class PromotionOutcome:
    """Итог применения акции к заказу."""

    lines: list[PricedLine]
    promotion: Optional[Promotion] = None
    error_code: Optional[PromotionErrorCode] = None

    @property
    def order_total(self) -> Decimal:
        return sum((line.line_total for line in self.lines), ZERO)


def price_line(
    product: Product,
    base_price: Decimal,
    quantity: int,
    tier_percent: Decimal,
    rule: Optional[PriceRule],
) -> PricedLine:
    """Цена позиции после скидки категории и правила.

    Процентное правило считается от цены после скидки категории.
    """
    tier_amount = min(to_money(base_price * tier_percent / HUNDRED), base_price)
    after_tier = base_price - tier_amount

    rule_amount = ZERO
    rule_percent = ZERO
    if rule is not None:
        rule_amount = to_money(rule.discount_for(after_tier))
        if rule.discount_type == DiscountType.PERCENTAGE:
            rule_percent = rule.discount_value
        else:
            rule_percent = percent_of(after_tier, rule_amount)

    return PricedLine(
        product=product,
        quantity=quantity,
        base_price=base_price,
        tier_percent=tier_percent,
        tier_amount=tier_amount,
        rule=rule,
        rule_percent=rule_percent,
        rule_amount=rule_amount,
        after_rule=after_tier - rule_amount,
    )


def promotion_percent(line: PricedLine) -> Decimal:
    """Процент акции: значение процентной акции, иначе доля от цены после правила."""
    if line.promotion is None:
        return ZERO
    if line.promotion.promotion_type == PromotionType.PERCENTAGE_DISCOUNT:
        return line.promotion.value
    return percent_of(line.after_rule * line.quantity, line.promotion_discount)


def to_result(line: PricedLine, outcome: PromotionOutcome) -> PriceCalculationResult:
    """Итоговая разбивка цены позиции."""
    gross = line.base_price * line.quantity
    line_total = line.line_total
    total_discount = to_money(gross - line_total)
    promotion = line.promotion

    return PriceCalculationResult(
        product_id=line.product.id,
        product_name=line.product.name,
        quantity=line.quantity,
        base_price=line.base_price,
        tier_discount_percent=line.tier_percent,
        tier_discount_amount=line.tier_amount,
        rule_discount_percent=line.rule_percent,
        rule_discount_amount=line.rule_amount,
        promotion_discount_percent=promotion_percent(line),
        promotion_discount_amount=line.promotion_amount,
        promotion_discount_total=line.promotion_discount,
        final_unit_price=line.final_unit_price,
        line_total=line_total,
        total_discount=total_discount,
        total_discount_percent=percent_of(gross, total_discount),
        applied_rule_id=line.rule.id if line.rule else None,
        applied_rule_name=line.rule.name if line.rule else None,
        applied_promotion_id=promotion.id if promotion else None,
        applied_promotion_code=promotion.code if promotion else None,
        promotion_error=outcome.error_code.value if outcome.error_code else None,
        promotion_message=ERROR_MESSAGES[outcome.error_code] if outcome.error_code else None,
    )


class PriceCalculator:
    """Оркестрация базовой цены, скидок категории, правил и акций."""

    def __init__(
        self,
        uow: IPricingUnitOfWork,
        tiers: Optional[TierDiscountTable] = None,
        matcher: Optional[RuleMatcher] = None,
        base_prices: Optional[BasePriceResolver] = None,
        validator: Optional[PromotionValidator] = None,
        auto_apply_promotions: Optional[bool] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.uow = uow
        self.tiers = tiers or TierDiscountTable.from_settings()
        self.matcher = matcher or RuleMatcher()
        self.base_prices = base_prices or BasePriceResolver()
        self.validator = validator or PromotionValidator(uow, clock=clock)
        self.auto_apply_promotions = (
            get_auto_apply_promotions()
            if auto_apply_promotions is None
            else auto_apply_promotions
        )
        self.clock = clock

    async def calculate_price(
        self,
        product_id: int,
        customer_id: int,
        quantity: int,
        promotion_code: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> PriceCalculationResult:
        """Расчет цены одной позиции."""
        if quantity <= 0:
            raise ValidationError("Количество должно быть больше нуля")
        results = await self.calculate_prices(
            [PriceCalculationItem(product_id=product_id, quantity=quantity)],
            customer_id,
            promotion_code,
            now,
        )
        return results[0]

    async def calculate_prices(
        self,
        items: Sequence[PriceCalculationItem],
        customer_id: int,
        promotion_code: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> list[PriceCalculationResult]:
        """Расчет цен корзины. Акция оценивается один раз по сумме всех позиций."""
        if not items:
            raise ValidationError("Список позиций пуст")
        if any(item.quantity <= 0 for item in items):
            raise ValidationError("Количество должно быть больше нуля")
        now = now or self.clock()

        async with self.uow:
            customer = await self.uow.customers.get(customer_id)
            if customer is None:
                raise CustomerNotFoundError(customer_id)

            products = []
            base_prices = []
            for item in items:
                product = await self.uow.products.get(item.product_id)
                if product is None:
                    raise ProductNotFoundError(item.product_id)
                prices = await self.uow.product_prices.list_for_product(product.id)
                products.append(product)
                base_prices.append(self.base_prices.resolve(prices, product, customer, now))

            rules = await self.uow.price_rules.list_rules(active_only=True)
            tier_percent = self.tiers.get_tier_discount_percentage(customer.tier)
            lines = [
                price_line(
                    product,
                    base_price,
                    item.quantity,
                    tier_percent,
                    self.matcher.find_best_rule(rules, product, customer, item.quantity, now),
                )
                for product, base_price, item in zip(products, base_prices, items)
            ]

            if promotion_code:
                outcome = await self._apply_code(lines, customer, promotion_code, now)
            elif self.auto_apply_promotions:
                outcome = await self._apply_best_auto(lines, customer, now)
            else:
                outcome = PromotionOutcome(lines)

        return [to_result(line, outcome) for line in outcome.lines]

    async def get_tier_pricing(self) -> list[TierPricingInfo]:
        """Таблица скидок по категориям клиентов."""
        return self.tiers.describe()

    async def get_price_rule(self, rule_id: int) -> PriceRule:
        """Ценовое правило по ID."""
        async with self.uow:
            rule = await self.uow.price_rules.get(rule_id)
        if rule is None:
            raise PriceRuleNotFoundError(rule_id)
        return rule

    async def get_applicable_rules(
        self, customer_id: int, now: Optional[datetime] = None
    ) -> list[PriceRule]:
        """Действующие правила, которые могут примениться к клиенту."""
        async with self.uow:
            customer = await self.uow.customers.get(customer_id)
            if customer is None:
                raise CustomerNotFoundError(customer_id)
            rules = await self.uow.price_rules.list_rules(active_only=True)
        return self.matcher.applicable_rules(rules, customer, now or self.clock())

    async def _apply_code(
        self, lines: list[PricedLine], customer: Customer, code: str, now: datetime
    ) -> PromotionOutcome:
        subtotal = sum((line.after_rule * line.quantity for line in lines), ZERO)
        validation = await self.validator.validate_for_customer(
            self.uow, code, customer, subtotal, now
        )
        if not validation.is_valid:
            logger.info(
                f"Promotion code {code!r} not applied for customer {customer.id}: "
                f"{validation.error_code.value}"
            )
            return PromotionOutcome(lines, error_code=validation.error_code)
        outcome = self.apply_promotion(lines, validation.promotion)
        if outcome.promotion is not None:
            logger.info(
                f"Promotion {code!r} applied for customer {customer.id}, "
                f"order total {outcome.order_total}"
            )
        return outcome

    async def _apply_best_auto(
        self, lines: list[PricedLine], customer: Customer, now: datetime
    ) -> PromotionOutcome:
        baseline = PromotionOutcome(lines)
        subtotal = sum((line.after_rule * line.quantity for line in lines), ZERO)

        best: Optional[PromotionOutcome] = None
        for promotion in await self.validator.available_for_customer(self.uow, customer, now):
            validation = await self.validator.check_promotion(
                self.uow, promotion, customer, subtotal, now
            )
            if not validation.is_valid:
                continue
            outcome = self.apply_promotion(lines, promotion)
            if outcome.promotion is None or outcome.order_total > baseline.order_total:
                continue
            if best is None or (outcome.order_total, promotion.id) < (
                best.order_total,
                best.promotion.id,
            ):
                best = outcome

        if best is None:
            return baseline
        logger.info(
            f"Auto promotion {best.promotion.code} applied for customer {customer.id}, "
            f"order total {best.order_total}"
        )
        return best

    def apply_promotion(
        self, lines: list[PricedLine], promotion: Promotion
    ) -> PromotionOutcome:
        """Применение проверенной акции к позициям заказа.

        Скидка считается по сумме подходящих позиций, ограничивается
        maximum_discount_amount и распределяется по позициям без потерь
        на округлении.
        """
        eligible = {
            index
            for index, line in enumerate(lines)
            if promotion.applies_to_product(line.product)
        }
        if not eligible:
            return PromotionOutcome(lines, error_code=PromotionErrorCode.NO_ELIGIBLE_PRODUCTS)

        priced = []
        for index, line in enumerate(lines):
            if index in eligible and not promotion.can_stack_with_tier_pricing:
                line = price_line(line.product, line.base_price, line.quantity, ZERO, line.rule)
            else:
                line = replace(line)
            priced.append(line)

        targets = [priced[index] for index in sorted(eligible)]
        discount_lines = [DiscountLine(line.after_rule, line.quantity) for line in targets]
        total = order_discount(promotion, discount_lines)
        shares = distribute_discount(
            total, discount_lines, line_weights(promotion, discount_lines)
        )
        for line, share in zip(targets, shares):
            line.promotion = promotion
            line.promotion_discount = share

        return PromotionOutcome(priced, promotion=promotion)
