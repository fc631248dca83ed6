from datetime import date
from decimal import Decimal

from libradesk.services.fees import compute_late_fee, days_late


def test_five_days_late_at_fifty_cents():
    fee = compute_late_fee(date(2024, 1, 10), date(2024, 1, 15), rate_per_day=Decimal("0.50"))
    assert fee == Decimal("2.50")


def test_no_fee_on_or_before_due_date():
    assert compute_late_fee(date(2024, 1, 10), date(2024, 1, 10)) == Decimal("0.00")
    assert compute_late_fee(date(2024, 1, 10), date(2024, 1, 3)) == Decimal("0.00")
    assert days_late(date(2024, 1, 10), date(2024, 1, 3)) == 0


def test_default_rate_comes_from_settings(monkeypatch):
    monkeypatch.setattr("libradesk.services.fees.settings.late_fee_per_day", Decimal("1.25"))
    assert compute_late_fee(date(2024, 2, 28), date(2024, 3, 1)) == Decimal("2.50")


def test_float_rate_is_not_binary_rounded():
    assert compute_late_fee(date(2024, 1, 1), date(2024, 1, 4), rate_per_day=0.1) == Decimal("0.30")
