"""Расчет скидки акции на уровне заказа и ее распределение по позициям."""

from decimal import Decimal
from typing import NamedTuple, Sequence

from base.utils import CENT, HUNDRED, ZERO, to_money
from promotions.domain.models import Promotion, PromotionType


class DiscountLine(NamedTuple):
    """Позиция, на которую распространяется акция (цена после правила)."""

    unit_price: Decimal
    quantity: int

    @property
    def subtotal(self) -> Decimal:
        return self.unit_price * self.quantity


def _free_units(promotion: Promotion, quantity: int) -> int:
    if promotion.promotion_type == PromotionType.BUY_ONE_GET_ONE:
        return quantity // 2
    # Купи X, получи 1 бесплатно: одна бесплатная единица на каждые X + 1
    group = max(int(promotion.value), 1) + 1
    return quantity // group


def line_weights(promotion: Promotion, lines: Sequence[DiscountLine]) -> list[Decimal]:
    """Вклад каждой позиции в скидку до применения лимитов.

    Для фиксированной скидки вклад пропорционален сумме позиции.
    """
    kind = promotion.promotion_type
    if kind == PromotionType.PERCENTAGE_DISCOUNT:
        return [line.subtotal * promotion.value / HUNDRED for line in lines]
    if kind == PromotionType.FIXED_AMOUNT_DISCOUNT:
        return [line.subtotal for line in lines]
    if kind in (PromotionType.BUY_ONE_GET_ONE, PromotionType.BUY_X_GET_Y_FREE):
        return [line.unit_price * _free_units(promotion, line.quantity) for line in lines]
    # Доставка, подарок и комплект исполняются вне расчета цены
    return [ZERO for _ in lines]


def order_discount(promotion: Promotion, lines: Sequence[DiscountLine]) -> Decimal:
    """Итоговая скидка акции на заказ с учетом лимита и суммы позиций."""
    subtotal = sum((line.subtotal for line in lines), ZERO)
    weights = line_weights(promotion, lines)

    if promotion.promotion_type == PromotionType.FIXED_AMOUNT_DISCOUNT:
        raw = promotion.value if subtotal > ZERO else ZERO
    else:
        raw = sum(weights, ZERO)

    discount = min(raw, subtotal)
    if promotion.maximum_discount_amount is not None:
        discount = min(discount, promotion.maximum_discount_amount)
    return to_money(max(discount, ZERO))


def distribute_discount(
    total: Decimal, lines: Sequence[DiscountLine], weights: Sequence[Decimal]
) -> list[Decimal]:
    """Скидка на каждую позицию целиком пропорционально весам.

    Доли считаются в центах. Оставшиеся после округления вниз центы
    получают позиции с наибольшей дробной частью (при равенстве более
    ранние), поэтому сумма по позициям в точности равна total.
    """
    weight_sum = sum(weights, ZERO)
    if total <= ZERO or weight_sum <= ZERO:
        return [ZERO for _ in lines]

    cents = int(total / CENT)
    exact = [cents * weight / weight_sum for weight in weights]
    shares = [int(share) for share in exact]

    leftover = cents - sum(shares)
    by_remainder = sorted(range(len(exact)), key=lambda i: (shares[i] - exact[i], i))
    for index in by_remainder[:leftover]:
        shares[index] += 1

    return [share * CENT for share in shares]


def estimate_discount(promotion: Promotion, order_total: Decimal) -> Decimal:
    """Ожидаемая скидка на сумму заказа без разбивки по позициям."""
    return order_discount(promotion, [DiscountLine(order_total, 1)])
