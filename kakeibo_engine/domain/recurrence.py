"""Occurrence generation for recurring income and expenses"""

from dataclasses import replace
from datetime import date, timedelta
from typing import Iterable, List, Optional

from kakeibo_engine.domain.models import (
    ObligationKind,
    Occurrence,
    PeriodType,
    RecurringObligation,
    RecurringSummary,
)
from kakeibo_engine.utils.date_utils import add_months, month_key, parse_month


def _nth_occurrence(recurring: RecurringObligation, n: int) -> date:
    start = recurring.anchor_date
    if recurring.period_type == PeriodType.MONTHS:
        # Always step from the anchor so month-end clamping never drifts
        return add_months(start, n * recurring.period_value)
    return start + timedelta(days=n * recurring.period_value)


def next_occurrence(recurring: RecurringObligation, after: date) -> Optional[date]:
    """
    First occurrence strictly after `after`.

    Returns the anchor date itself when `after` precedes it, and None when
    the recurrence is inactive, has a non-positive period, or has run past
    its end date.
    """
    if not recurring.is_active or recurring.period_value < 1:
        return None
    if recurring.period_type not in (PeriodType.MONTHS, PeriodType.DAYS):
        return None

    start = recurring.anchor_date
    if after < start:
        candidate = start
    else:
        if recurring.period_type == PeriodType.MONTHS:
            elapsed = (after.year - start.year) * 12 + (after.month - start.month)
        else:
            elapsed = (after - start).days
        cycles = elapsed // recurring.period_value
        candidate = _nth_occurrence(recurring, cycles)
        if candidate <= after:
            candidate = _nth_occurrence(recurring, cycles + 1)

    if recurring.end_date is not None and candidate > recurring.end_date:
        return None
    return candidate


def effective_amount(recurring: RecurringObligation, on: date) -> int:
    return recurring.monthly_overrides.get(month_key(on), recurring.amount)


def occurrences_in_range(recurring: RecurringObligation, range_start: date, range_end: date) -> List[Occurrence]:
    """
    All occurrences within [range_start, range_end], in date order.

    Recomputed from scratch on every call. Each occurrence carries the
    month's override when one exists, otherwise the baseline amount; the
    sign lives in `kind`.
    """
    if not recurring.is_active or range_end < range_start:
        return []

    occurrences = []
    cursor = range_start - timedelta(days=1)
    while True:
        nxt = next_occurrence(recurring, cursor)
        if nxt is None or nxt > range_end:
            break
        occurrences.append(
            Occurrence(
                recurring_id=recurring.id,
                date=nxt,
                effective_amount=effective_amount(recurring, nxt),
                kind=recurring.kind,
                is_override=month_key(nxt) in recurring.monthly_overrides,
            )
        )
        cursor = nxt
    return occurrences


def occurrences_for_all(
    recurrings: Iterable[RecurringObligation],
    range_start: date,
    range_end: date,
) -> List[Occurrence]:
    """Occurrences of many recurrings merged into one date-ordered list"""
    merged = []
    for recurring in recurrings:
        merged.extend(occurrences_in_range(recurring, range_start, range_end))
    return sorted(merged, key=lambda occ: (occ.date, occ.recurring_id))


def upcoming(recurrings: Iterable[RecurringObligation], today: date, days: int = 31) -> List[RecurringObligation]:
    """Active recurrings whose next occurrence after today is within `days` days"""
    limit = today + timedelta(days=days)
    result = []
    for recurring in recurrings:
        nxt = next_occurrence(recurring, today)
        if nxt is not None and nxt <= limit:
            result.append(recurring)
    return result


def recurrings_for_month(recurrings: Iterable[RecurringObligation], month: str) -> List[RecurringObligation]:
    """Recurrings with at least one occurrence in the given yyyy-MM month"""
    first = parse_month(month)
    last = add_months(first, 1) - timedelta(days=1)
    result = []
    for recurring in recurrings:
        nxt = next_occurrence(recurring, first - timedelta(days=1))
        if nxt is not None and nxt <= last:
            result.append(recurring)
    return result


def summarize(recurrings: Iterable[RecurringObligation], range_start: date, range_end: date) -> RecurringSummary:
    """Total effective expense and income across a date range"""
    summary = RecurringSummary()
    for occ in occurrences_for_all(recurrings, range_start, range_end):
        if occ.kind == ObligationKind.EXPENSE:
            summary.expense += occ.effective_amount
        else:
            summary.income += occ.effective_amount
    return summary


def set_recurring_override(recurring: RecurringObligation, month: str, amount: int) -> RecurringObligation:
    """
    Store a per-month amount. An amount equal to the baseline removes the
    override instead, so only real differences are kept.
    """
    parse_month(month)
    overrides = dict(recurring.monthly_overrides)
    if amount == recurring.amount:
        overrides.pop(month, None)
    else:
        overrides[month] = amount
    return replace(recurring, monthly_overrides=overrides)


def clear_recurring_override(recurring: RecurringObligation, month: str) -> RecurringObligation:
    overrides = dict(recurring.monthly_overrides)
    overrides.pop(month, None)
    return replace(recurring, monthly_overrides=overrides)
