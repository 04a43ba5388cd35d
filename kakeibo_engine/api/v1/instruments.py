"""Billing cycle endpoints for a payment instrument"""

from datetime import date
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from kakeibo_engine.api.v1.schemas import (
    BillingPeriodResponse,
    PaymentDateResponse,
    StatementSchema,
    StatementsResponse,
)
from kakeibo_engine.infrastructure.database.session import get_db
from kakeibo_engine.infrastructure.database.repositories import ObligationRepository, PaymentInstrumentRepository
from kakeibo_engine.domain.billing import billing_period, compute_payment_date
from kakeibo_engine.domain.settlement import billing_statements

router = APIRouter()


@router.get("/instruments/{instrument_id}/payment-date", response_model=PaymentDateResponse)
def get_payment_date(
    instrument_id: str,
    obligation_date: date = Query(..., alias="date", description="Obligation date (yyyy-MM-dd)"),
    db: Session = Depends(get_db),
):
    """Due date for a charge on this instrument; null for immediate or misconfigured instruments"""
    instrument = PaymentInstrumentRepository(db).get(instrument_id)
    return PaymentDateResponse(
        payment_instrument_id=instrument.id,
        obligation_date=obligation_date,
        payment_date=compute_payment_date(obligation_date, instrument),
    )


@router.get("/instruments/{instrument_id}/billing-period", response_model=BillingPeriodResponse)
def get_billing_period(
    instrument_id: str,
    month: str = Query(..., description="Payment month (yyyy-MM)"),
    db: Session = Depends(get_db),
):
    """Window of obligation dates settled in the given payment month"""
    instrument = PaymentInstrumentRepository(db).get(instrument_id)
    period = billing_period(month, instrument)
    if period is None:
        raise HTTPException(status_code=404, detail="Instrument has no monthly billing cycle")

    return BillingPeriodResponse(
        payment_instrument_id=instrument.id,
        payment_month=month,
        start=period.start,
        end=period.end,
    )


@router.get("/instruments/{instrument_id}/statements", response_model=StatementsResponse)
def get_statements(instrument_id: str, db: Session = Depends(get_db)):
    """Pending charges grouped by upcoming due date"""
    instrument = PaymentInstrumentRepository(db).get(instrument_id)
    statements = billing_statements(ObligationRepository(db).get_pending(), instrument)

    return StatementsResponse(
        payment_instrument_id=instrument.id,
        statements=[
            StatementSchema(
                due_date=s.due_date,
                period_start=s.period.start if s.period else None,
                period_end=s.period.end if s.period else None,
                amount=s.amount,
                obligation_ids=s.obligation_ids,
            )
            for s in statements
        ],
    )
