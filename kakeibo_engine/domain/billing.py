"""Billing cycle calculation for deferred-payment instruments"""

from datetime import date, timedelta
from typing import Optional

from kakeibo_engine.domain.models import BillingPeriod, BillingType, PaymentInstrument
from kakeibo_engine.utils.date_utils import add_months, clamp_day, month_key, parse_month


def is_billing_configured(instrument: PaymentInstrument) -> bool:
    """True when a monthly instrument carries every field needed to compute due dates"""
    if instrument.billing_type != BillingType.MONTHLY:
        return False
    return bool(instrument.closing_day) and bool(instrument.payment_day) and instrument.payment_month_offset is not None


def _closing_month_start(obligation_date: date, closing_day: int) -> date:
    # A closing day past the month's end means "closes at month end"
    effective_closing = clamp_day(obligation_date.year, obligation_date.month, closing_day)
    first_of_month = obligation_date.replace(day=1)
    if obligation_date <= effective_closing:
        return first_of_month
    return add_months(first_of_month, 1)


def closing_month(obligation_date: date, instrument: PaymentInstrument) -> Optional[str]:
    """yyyy-MM of the billing cycle an obligation closes into, or None if not applicable"""
    if not is_billing_configured(instrument):
        return None
    return month_key(_closing_month_start(obligation_date, instrument.closing_day))


def compute_payment_date(obligation_date: date, instrument: PaymentInstrument) -> Optional[date]:
    """
    Compute the date an obligation is debited from the instrument's linked account.

    Rules:
    - Immediate instruments have no deferred due date (None)
    - Day <= closing day closes into the current month, otherwise the next
    - Payment month = closing month + payment_month_offset
    - Payment day is clamped to the payment month's last day

    A monthly instrument missing its billing fields returns None instead of
    raising, so a single bad record cannot abort a batch run.

    Example:
        closing 15, payment 10, offset 1; obligation 2024-01-20
        20 > 15 → closes in 2024-02 → +1 month → 2024-03-10
    """
    if not is_billing_configured(instrument):
        return None

    closing_start = _closing_month_start(obligation_date, instrument.closing_day)
    payment_month = add_months(closing_start, instrument.payment_month_offset)
    return clamp_day(payment_month.year, payment_month.month, instrument.payment_day)


def billing_period(payment_month: str, instrument: PaymentInstrument) -> Optional[BillingPeriod]:
    """
    Window of obligation dates whose payment falls in payment_month.

    Inverse of compute_payment_date, used for display. Returns None for
    immediate or malformed instruments.
    """
    if not is_billing_configured(instrument):
        return None

    closing = add_months(parse_month(payment_month), -instrument.payment_month_offset)
    end = clamp_day(closing.year, closing.month, instrument.closing_day)
    previous = add_months(closing, -1)
    start = clamp_day(previous.year, previous.month, instrument.closing_day) + timedelta(days=1)
    return BillingPeriod(start=start, end=end)
