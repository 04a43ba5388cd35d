"""Recurring income/expense endpoints"""

from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from kakeibo_engine.api.v1.schemas import (
    OccurrenceSchema,
    OccurrencesResponse,
    RecurringOverrideRequest,
    RecurringOverridesResponse,
    UpcomingRecurringSchema,
    UpcomingResponse,
)
from kakeibo_engine.api.dependencies import get_today
from kakeibo_engine.infrastructure.database.session import get_db
from kakeibo_engine.infrastructure.database.repositories import RecurringObligationRepository
from kakeibo_engine.domain.recurrence import (
    clear_recurring_override,
    effective_amount,
    next_occurrence,
    occurrences_for_all,
    set_recurring_override,
    summarize,
    upcoming,
)
from kakeibo_engine.config import settings

router = APIRouter()


@router.get("/recurring/occurrences", response_model=OccurrencesResponse)
def get_occurrences(
    start: date = Query(..., description="Range start (inclusive)"),
    end: date = Query(..., description="Range end (inclusive)"),
    db: Session = Depends(get_db),
):
    """Every occurrence of every recurring obligation in [start, end]"""
    if end < start:
        raise HTTPException(status_code=400, detail="end must not precede start")

    recurrings = RecurringObligationRepository(db).get_all()
    summary = summarize(recurrings, start, end)

    return OccurrencesResponse(
        start=start,
        end=end,
        occurrences=[
            OccurrenceSchema(
                recurring_id=occ.recurring_id,
                date=occ.date,
                effective_amount=occ.effective_amount,
                kind=occ.kind.value,
                is_override=occ.is_override,
            )
            for occ in occurrences_for_all(recurrings, start, end)
        ],
        total_expense=summary.expense,
        total_income=summary.income,
    )


@router.put("/recurring/{recurring_id}/overrides/{month}", response_model=RecurringOverridesResponse)
def put_override(
    recurring_id: str,
    month: str,
    body: RecurringOverrideRequest,
    db: Session = Depends(get_db),
):
    """Set or clear the amount used for one month"""
    repo = RecurringObligationRepository(db)
    recurring = repo.get(recurring_id)

    if body.amount is None:
        updated = clear_recurring_override(recurring, month)
    else:
        updated = set_recurring_override(recurring, month, body.amount)

    saved = repo.save(updated)
    db.commit()

    return RecurringOverridesResponse(
        recurring_id=saved.id,
        amount=saved.amount,
        monthly_overrides=saved.monthly_overrides,
    )


@router.get("/recurring/upcoming", response_model=UpcomingResponse)
def get_upcoming(
    days: Optional[int] = Query(None, ge=0, description="Look-ahead in days, defaults to the configured window"),
    today: date = Depends(get_today),
    db: Session = Depends(get_db),
):
    """Recurring obligations due within the next `days` days, soonest first"""
    window = settings.upcoming_window_days if days is None else days
    due = []
    for recurring in upcoming(RecurringObligationRepository(db).get_all(), today, window):
        next_date = next_occurrence(recurring, today)
        due.append(
            UpcomingRecurringSchema(
                recurring_id=recurring.id,
                name=recurring.name,
                kind=recurring.kind.value,
                next_date=next_date,
                effective_amount=effective_amount(recurring, next_date),
            )
        )
    due.sort(key=lambda item: (item.next_date, item.recurring_id))

    return UpcomingResponse(today=today, days=window, upcoming=due)
