"""Settlement endpoints - maintenance pass and pending totals"""

import time
import logging
from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from kakeibo_engine.api.v1.schemas import ObligationSchema, PendingResponse, SettlementRunResponse
from kakeibo_engine.api.dependencies import get_request_id, get_today
from kakeibo_engine.infrastructure.database.session import get_db
from kakeibo_engine.infrastructure.database.repositories import (
    AccountRepository,
    ObligationRepository,
    PaymentInstrumentRepository,
)
from kakeibo_engine.domain.settlement import (
    pending_amount_by_account,
    pending_amount_by_instrument,
    pending_obligations,
    settle_overdue,
)
from kakeibo_engine.infrastructure.observability.metrics import record_settlement
from kakeibo_engine.infrastructure.observability.logging import log_settlement_run

router = APIRouter()


def _to_schema(obligation) -> ObligationSchema:
    return ObligationSchema(
        id=obligation.id,
        date=obligation.date,
        amount=obligation.amount,
        kind=obligation.kind.value,
        payment_instrument_id=obligation.payment_instrument_id,
        account_id=obligation.account_id,
        settled_at=obligation.settled_at,
    )


@router.post("/settlements/run", response_model=SettlementRunResponse)
def run_settlement(
    request: Request,
    as_of: Optional[date] = Query(None, description="Reference date, defaults to today"),
    today: date = Depends(get_today),
    db: Session = Depends(get_db),
):
    """
    Settle every obligation whose payment date has arrived.

    Flow:
    1. Load instruments and pending obligations
    2. Compute settlements and aggregated account deltas
    3. Persist settled_at and balances in one commit
    """
    start_time = time.time()
    request_id = get_request_id(request)
    now = as_of or today

    try:
        instruments = PaymentInstrumentRepository(db).get_all()
        obligation_repo = ObligationRepository(db)
        result = settle_overdue(obligation_repo.get_pending(), instruments, now)

        obligation_repo.mark_settled(result.settled)
        AccountRepository(db).apply_deltas(result.account_deltas)
        db.commit()

    except Exception as e:
        db.rollback()
        logging.error(f"Settlement run failed: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    duration_ms = (time.time() - start_time) * 1000
    record_settlement(result, instruments)
    log_settlement_run(request_id, now, len(result.settled), len(result.account_deltas), duration_ms)

    return SettlementRunResponse(
        as_of=now,
        settled_ids=[o.id for o in result.settled],
        account_deltas=result.account_deltas,
    )


@router.get("/settlements/pending", response_model=PendingResponse)
def get_pending(
    instrument_id: Optional[str] = Query(None, description="Restrict to one payment instrument"),
    db: Session = Depends(get_db),
):
    """Outstanding obligations with net payable totals per account and instrument"""
    obligations = ObligationRepository(db).get_all()
    instruments = PaymentInstrumentRepository(db).get_all()

    return PendingResponse(
        obligations=[_to_schema(o) for o in pending_obligations(obligations, instrument_id)],
        by_account=pending_amount_by_account(obligations, instruments),
        by_instrument=pending_amount_by_instrument(obligations),
    )
