"""Savings goal allocation - monthly contributions with overrides and exclusions"""

from dataclasses import replace
from typing import List, Optional

from kakeibo_engine.domain.models import AllocationState, MonthAllocation, SavingsGoal
from kakeibo_engine.utils.date_utils import months_in_range, parse_month


def eligible_months(goal: SavingsGoal, window_end: Optional[str] = None) -> List[str]:
    """
    Months in the goal's closed window [start_month, end_month].

    An unbounded goal (end_month None) needs a caller-supplied window_end.
    A bounded goal ignores window_end so its divisor never changes with
    the caller's view. With neither, there are no months.
    """
    if window_end is not None:
        parse_month(window_end)
    end = goal.end_month if goal.end_month is not None else window_end
    if end is None:
        return []
    return months_in_range(goal.start_month, end)


def _active_months(goal: SavingsGoal, months: List[str]) -> List[str]:
    return [m for m in months if m not in goal.excluded_months]


def standard_share(goal: SavingsGoal, window_end: Optional[str] = None) -> int:
    """
    Even split of the target over non-excluded months.

    Exclusions shrink the divisor rather than the total, so the remaining
    months still fund the whole target. Overridden months stay in the
    divisor. Zero active months gives 0.
    """
    active = _active_months(goal, eligible_months(goal, window_end))
    if not active:
        return 0
    return goal.target_amount // len(active)


def _standard_amount(goal: SavingsGoal, month: str, active: List[str]) -> int:
    if not active:
        return 0
    base = goal.target_amount // len(active)
    # Last active month absorbs the remainder so the shares sum to the target
    if month == active[-1]:
        return base + goal.target_amount % len(active)
    return base


def month_state(goal: SavingsGoal, month: str) -> AllocationState:
    """Exclusion takes precedence over an override stored for the same month"""
    if month in goal.excluded_months:
        return AllocationState.EXCLUDED
    if month in goal.monthly_overrides:
        return AllocationState.OVERRIDDEN
    return AllocationState.STANDARD


def effective_monthly_amount(goal: SavingsGoal, month: str, window_end: Optional[str] = None) -> int:
    """
    Contribution for a single month.

    - excluded → 0
    - overridden → the stored override, verbatim
    - standard → even share (last active month carries the remainder)
    - outside the goal window → 0
    """
    parse_month(month)
    months = eligible_months(goal, window_end)
    if month not in months:
        return 0

    state = month_state(goal, month)
    if state == AllocationState.EXCLUDED:
        return 0
    if state == AllocationState.OVERRIDDEN:
        return goal.monthly_overrides[month]
    return _standard_amount(goal, month, _active_months(goal, months))


def accumulated_amount(goal: SavingsGoal, upto_month: str, window_end: Optional[str] = None) -> int:
    """Sum of contributions for every eligible month up to and including upto_month, capped at the target"""
    parse_month(upto_month)
    months = eligible_months(goal, window_end)
    active = _active_months(goal, months)

    total = 0
    for month in months:
        if month > upto_month:
            break
        state = month_state(goal, month)
        if state == AllocationState.OVERRIDDEN:
            total += goal.monthly_overrides[month]
        elif state == AllocationState.STANDARD:
            total += _standard_amount(goal, month, active)
    return min(total, goal.target_amount)


def remaining_months_count(goal: SavingsGoal, current_month: str, window_end: Optional[str] = None) -> int:
    """Non-excluded months from current_month to the end of the window"""
    parse_month(current_month)
    return sum(1 for m in _active_months(goal, eligible_months(goal, window_end)) if m >= current_month)


def allocation_schedule(goal: SavingsGoal, window_end: Optional[str] = None) -> List[MonthAllocation]:
    """Per-month state, contribution and running total across the window"""
    months = eligible_months(goal, window_end)
    active = _active_months(goal, months)

    schedule = []
    running = 0
    for month in months:
        state = month_state(goal, month)
        if state == AllocationState.EXCLUDED:
            amount = 0
        elif state == AllocationState.OVERRIDDEN:
            amount = goal.monthly_overrides[month]
        else:
            amount = _standard_amount(goal, month, active)
        running += amount
        schedule.append(
            MonthAllocation(
                month=month,
                state=state,
                amount=amount,
                accumulated=min(running, goal.target_amount),
            )
        )
    return schedule


# Month edits. Each returns a new goal; excluded and overridden never coexist.


def set_override(goal: SavingsGoal, month: str, amount: int, window_end: Optional[str] = None) -> SavingsGoal:
    """
    Override a month's contribution.

    Re-includes the month if it was excluded. An amount equal to the month's
    standard contribution clears the override instead of storing it.
    """
    parse_month(month)
    excluded = set(goal.excluded_months)
    excluded.discard(month)
    overrides = dict(goal.monthly_overrides)
    overrides.pop(month, None)

    baseline = replace(goal, excluded_months=excluded, monthly_overrides=overrides)
    if amount != effective_monthly_amount(baseline, month, window_end):
        overrides[month] = amount
    return replace(goal, excluded_months=excluded, monthly_overrides=overrides)


def clear_override(goal: SavingsGoal, month: str) -> SavingsGoal:
    overrides = dict(goal.monthly_overrides)
    overrides.pop(month, None)
    return replace(goal, monthly_overrides=overrides)


def toggle_excluded(goal: SavingsGoal, month: str) -> SavingsGoal:
    """
    Flip a month between excluded and standard.

    Excluding drops any override for the month; un-excluding returns it to
    the even split.
    """
    parse_month(month)
    excluded = set(goal.excluded_months)
    overrides = dict(goal.monthly_overrides)
    if month in excluded:
        excluded.remove(month)
    else:
        excluded.add(month)
        overrides.pop(month, None)
    return replace(goal, excluded_months=excluded, monthly_overrides=overrides)


def apply_month_edit(
    goal: SavingsGoal,
    month: str,
    excluded: bool,
    override_amount: Optional[int],
    window_end: Optional[str] = None,
) -> SavingsGoal:
    """
    Save a month sheet: excluded wins, otherwise override_amount (None means
    back to the even split).
    """
    parse_month(month)
    if excluded:
        if month in goal.excluded_months:
            return clear_override(goal, month)
        return toggle_excluded(goal, month)

    remaining = set(goal.excluded_months)
    remaining.discard(month)
    included = replace(goal, excluded_months=remaining)
    if override_amount is None:
        return clear_override(included, month)
    return set_override(included, month, override_amount, window_end)
