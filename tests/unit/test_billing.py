"""Unit tests for billing cycle calculation"""

import pytest
from datetime import date, timedelta
from kakeibo_engine.domain.billing import (
    billing_period,
    closing_month,
    compute_payment_date,
    is_billing_configured,
)
from kakeibo_engine.domain.models import BillingType, PaymentInstrument
from kakeibo_engine.utils.date_utils import generate_date_range


def _monthly(closing_day, payment_day, offset):
    return PaymentInstrument(
        id="pm",
        billing_type=BillingType.MONTHLY,
        closing_day=closing_day,
        payment_day=payment_day,
        payment_month_offset=offset,
        linked_account_id="acc",
    )


def test_payment_date_after_closing_rolls_to_next_cycle(card):
    """20th > 15th closes into February, +1 month offset pays in March"""
    assert compute_payment_date(date(2024, 1, 20), card) == date(2024, 3, 10)


def test_closing_day_boundary_one_month_apart(card):
    """A charge on the closing day stays in the cycle; the next day rolls over"""
    on_closing = compute_payment_date(date(2024, 1, 15), card)
    after_closing = compute_payment_date(date(2024, 1, 16), card)

    assert on_closing == date(2024, 2, 10)
    assert after_closing == date(2024, 3, 10)


def test_payment_day_clamped_to_february_end():
    pm = _monthly(closing_day=15, payment_day=31, offset=1)

    assert compute_payment_date(date(2024, 1, 10), pm) == date(2024, 2, 29)
    assert compute_payment_date(date(2023, 1, 10), pm) == date(2023, 2, 28)
    assert compute_payment_date(date(2024, 3, 10), pm) == date(2024, 4, 30)


def test_month_end_closing_day():
    """Closing day 31 closes at the end of short months"""
    pm = _monthly(closing_day=31, payment_day=27, offset=1)

    assert compute_payment_date(date(2024, 2, 29), pm) == date(2024, 3, 27)
    assert compute_payment_date(date(2024, 3, 1), pm) == date(2024, 4, 27)


def test_zero_offset_pays_in_closing_month():
    pm = _monthly(closing_day=25, payment_day=27, offset=0)

    assert compute_payment_date(date(2024, 1, 20), pm) == date(2024, 1, 27)
    assert compute_payment_date(date(2024, 1, 26), pm) == date(2024, 2, 27)


def test_year_rollover(card):
    assert compute_payment_date(date(2024, 12, 20), card) == date(2025, 2, 10)


def test_immediate_instrument_has_no_payment_date(debit_card):
    assert compute_payment_date(date(2024, 1, 20), debit_card) is None
    assert is_billing_configured(debit_card) is False


@pytest.mark.parametrize(
    "closing_day,payment_day,offset",
    [(None, 10, 1), (15, None, 1), (15, 10, None), (0, 10, 1)],
)
def test_malformed_monthly_instrument_returns_none(closing_day, payment_day, offset):
    pm = _monthly(closing_day, payment_day, offset)

    assert is_billing_configured(pm) is False
    assert compute_payment_date(date(2024, 1, 20), pm) is None
    assert billing_period("2024-03", pm) is None
    assert closing_month(date(2024, 1, 20), pm) is None


def test_closing_month(card):
    assert closing_month(date(2024, 1, 15), card) == "2024-01"
    assert closing_month(date(2024, 1, 20), card) == "2024-02"


def test_billing_period_window(card):
    period = billing_period("2024-03", card)

    assert period.start == date(2024, 1, 16)
    assert period.end == date(2024, 2, 15)


def test_billing_period_month_end_closing():
    pm = _monthly(closing_day=31, payment_day=27, offset=1)
    period = billing_period("2024-03", pm)

    assert period.start == date(2024, 2, 1)
    assert period.end == date(2024, 2, 29)


def test_billing_period_is_inverse_of_payment_date(card):
    """Every date in the window pays in the requested month; neighbours do not"""
    period = billing_period("2024-03", card)

    for day in generate_date_range(period.start, period.end):
        assert compute_payment_date(day, card) == date(2024, 3, 10)

    assert compute_payment_date(period.start - timedelta(days=1), card) == date(2024, 2, 10)
    assert compute_payment_date(period.end + timedelta(days=1), card) == date(2024, 4, 10)


def test_billing_period_not_applicable_for_immediate(debit_card):
    assert billing_period("2024-03", debit_card) is None
