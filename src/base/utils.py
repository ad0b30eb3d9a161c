"""Утилиты для денежных расчетов и работы со временем."""

from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

CENT = Decimal("0.01")
ZERO = Decimal("0")
HUNDRED = Decimal("100")


def to_money(value: Decimal) -> Decimal:
    """Округление суммы до копеек (half-up)."""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def to_percent(value: Decimal) -> Decimal:
    """Округление процента до сотых."""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def percent_of(amount: Decimal, part: Decimal) -> Decimal:
    """Доля part от amount в процентах, 0 при нулевой базе."""
    if amount <= ZERO:
        return ZERO
    return to_percent(part / amount * HUNDRED)


def utc_now() -> datetime:
    """Текущее время в UTC."""
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Приведение datetime к aware UTC.

    SQLite возвращает naive значения даже для DateTime(timezone=True).
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
