from __future__ import annotations

from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from libradesk.core.config import settings

_CENTS = Decimal("0.01")


def days_late(due_date: date, as_of: date) -> int:
    """Whole calendar days between ``due_date`` and ``as_of``, never negative.

    Both ends are dates, so the difference is already a whole number of days;
    returning on the due date costs nothing.
    """
    return max(0, (as_of - due_date).days)


def compute_late_fee(
    due_date: date, as_of: date, *, rate_per_day: Decimal | None = None
) -> Decimal:
    """Late fee charged when a loan due on ``due_date`` is returned on ``as_of``.

    Every call site (return, preview on open loans) goes through this function
    so the rate and day-count rule stay consistent.
    """
    rate = settings.late_fee_per_day if rate_per_day is None else Decimal(str(rate_per_day))
    fee = Decimal(days_late(due_date, as_of)) * rate
    return fee.quantize(_CENTS, rounding=ROUND_HALF_UP)
