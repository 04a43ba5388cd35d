"""Savings goal allocation endpoints"""

from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from kakeibo_engine.api.v1.schemas import MonthAllocationSchema, SavingsMonthEditRequest, SavingsScheduleResponse
from kakeibo_engine.api.dependencies import get_today
from kakeibo_engine.infrastructure.database.session import get_db
from kakeibo_engine.infrastructure.database.repositories import SavingsGoalRepository
from kakeibo_engine.domain.allocation import (
    accumulated_amount,
    allocation_schedule,
    apply_month_edit,
    remaining_months_count,
    standard_share,
)
from kakeibo_engine.domain.models import SavingsGoal
from kakeibo_engine.utils.date_utils import add_months, month_key, parse_month
from kakeibo_engine.config import settings

router = APIRouter()


def _window_end(goal: SavingsGoal, requested: Optional[str]) -> Optional[str]:
    # Bounded goals keep their own window; unbounded ones default to the configured horizon
    if goal.end_month is not None:
        return None
    if requested is not None:
        return requested
    horizon = add_months(parse_month(goal.start_month), settings.savings_horizon_months - 1)
    return month_key(horizon)


def _schedule_response(goal: SavingsGoal, window_end: Optional[str], upto: str) -> SavingsScheduleResponse:
    return SavingsScheduleResponse(
        goal_id=goal.id,
        target_amount=goal.target_amount,
        standard_share=standard_share(goal, window_end),
        months=[
            MonthAllocationSchema(month=m.month, state=m.state.value, amount=m.amount, accumulated=m.accumulated)
            for m in allocation_schedule(goal, window_end)
        ],
        accumulated=accumulated_amount(goal, upto, window_end),
        remaining_months=remaining_months_count(goal, upto, window_end),
    )


@router.get("/savings/{goal_id}/schedule", response_model=SavingsScheduleResponse)
def get_schedule(
    goal_id: str,
    window_end: Optional[str] = Query(None, description="Last month considered (yyyy-MM)"),
    upto: Optional[str] = Query(None, description="Month to accumulate through, defaults to the current month"),
    today: date = Depends(get_today),
    db: Session = Depends(get_db),
):
    """Monthly contributions, their states and the accumulated total"""
    goal = SavingsGoalRepository(db).get(goal_id)
    return _schedule_response(goal, _window_end(goal, window_end), upto or month_key(today))


@router.put("/savings/{goal_id}/months/{month}", response_model=SavingsScheduleResponse)
def put_month(
    goal_id: str,
    month: str,
    body: SavingsMonthEditRequest,
    today: date = Depends(get_today),
    db: Session = Depends(get_db),
):
    """Exclude a month or override its contribution, then return the new schedule"""
    repo = SavingsGoalRepository(db)
    goal = repo.get(goal_id)
    window_end = _window_end(goal, None)

    updated = apply_month_edit(goal, month, body.excluded, body.override_amount, window_end)
    saved = repo.save(updated)
    db.commit()

    return _schedule_response(saved, window_end, month_key(today))
