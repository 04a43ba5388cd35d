"""Pydantic schemas for API request/response validation"""

from pydantic import BaseModel, Field
from datetime import date
from typing import Dict, List, Optional


class ObligationSchema(BaseModel):
    """Recorded charge or credit"""

    id: str
    date: date
    amount: int
    kind: str
    payment_instrument_id: Optional[str] = None
    account_id: Optional[str] = None
    settled_at: Optional[date] = None


class SettlementRunResponse(BaseModel):
    """Response for POST /v1/settlements/run"""

    as_of: date
    settled_ids: List[str]
    account_deltas: Dict[str, int]


class PendingResponse(BaseModel):
    """Response for GET /v1/settlements/pending"""

    obligations: List[ObligationSchema]
    by_account: Dict[str, int]
    by_instrument: Dict[str, int]


class PaymentDateResponse(BaseModel):
    payment_instrument_id: str
    obligation_date: date
    payment_date: Optional[date] = None


class BillingPeriodResponse(BaseModel):
    payment_instrument_id: str
    payment_month: str
    start: date
    end: date


class StatementSchema(BaseModel):
    due_date: date
    period_start: Optional[date] = None
    period_end: Optional[date] = None
    amount: int
    obligation_ids: List[str]


class StatementsResponse(BaseModel):
    payment_instrument_id: str
    statements: List[StatementSchema]


class OccurrenceSchema(BaseModel):
    recurring_id: str
    date: date
    effective_amount: int
    kind: str
    is_override: bool


class OccurrencesResponse(BaseModel):
    """Response for GET /v1/recurring/occurrences"""

    start: date
    end: date
    occurrences: List[OccurrenceSchema]
    total_expense: int
    total_income: int


class UpcomingRecurringSchema(BaseModel):
    recurring_id: str
    name: str
    kind: str
    next_date: date
    effective_amount: int


class UpcomingResponse(BaseModel):
    """Response for GET /v1/recurring/upcoming"""

    today: date
    days: int
    upcoming: List[UpcomingRecurringSchema]


class RecurringOverrideRequest(BaseModel):
    """Body for PUT /v1/recurring/{id}/overrides/{month}; null resets to baseline"""

    amount: Optional[int] = None


class RecurringOverridesResponse(BaseModel):
    recurring_id: str
    amount: int
    monthly_overrides: Dict[str, int]


class SavingsMonthEditRequest(BaseModel):
    """Body for PUT /v1/savings/{id}/months/{month}"""

    excluded: bool = False
    override_amount: Optional[int] = Field(default=None, description="null means even split")


class MonthAllocationSchema(BaseModel):
    month: str
    state: str
    amount: int
    accumulated: int


class SavingsScheduleResponse(BaseModel):
    """Response for GET /v1/savings/{id}/schedule"""

    goal_id: str
    target_amount: int
    standard_share: int
    months: List[MonthAllocationSchema]
    accumulated: int
    remaining_months: int
