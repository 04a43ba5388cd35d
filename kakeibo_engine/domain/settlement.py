"""Settlement tracking - pending vs settled obligations and batch settlement"""

import logging
from dataclasses import replace
from datetime import date
from typing import Dict, Iterable, List, Optional

from kakeibo_engine.domain.billing import billing_period, compute_payment_date, is_billing_configured
from kakeibo_engine.domain.models import (
    BillingStatement,
    BillingType,
    Obligation,
    ObligationKind,
    PaymentInstrument,
    SettlementResult,
)
from kakeibo_engine.utils.date_utils import month_key

logger = logging.getLogger(__name__)


def _index_instruments(instruments: Iterable[PaymentInstrument]) -> Dict[str, PaymentInstrument]:
    return {pm.id: pm for pm in instruments}


def _balance_delta(obligation: Obligation) -> int:
    # Settling an expense lowers the account balance, income raises it
    return -obligation.amount if obligation.kind == ObligationKind.EXPENSE else obligation.amount


def pending_obligations(obligations: Iterable[Obligation], instrument_id: Optional[str] = None) -> List[Obligation]:
    """All obligations without settled_at, optionally restricted to one instrument"""
    return [
        o for o in obligations
        if o.is_pending and (instrument_id is None or o.payment_instrument_id == instrument_id)
    ]


def pending_amount_by_account(
    obligations: Iterable[Obligation],
    instruments: Iterable[PaymentInstrument],
) -> Dict[str, int]:
    """
    Net payable per account for outstanding obligations.

    Expenses add, income subtracts. Only obligations on an instrument with a
    linked account count, the same set settle_overdue can clear; direct
    account entries never wait for a payment date.
    """
    by_id = _index_instruments(instruments)
    result: Dict[str, int] = {}

    for o in pending_obligations(obligations):
        pm = by_id.get(o.payment_instrument_id) if o.payment_instrument_id else None
        if pm is None or not pm.linked_account_id:
            continue
        account_id = pm.linked_account_id
        result[account_id] = result.get(account_id, 0) + o.signed_amount

    return result


def pending_amount_by_instrument(obligations: Iterable[Obligation]) -> Dict[str, int]:
    """Net payable per instrument for outstanding obligations"""
    result: Dict[str, int] = {}
    for o in pending_obligations(obligations):
        if not o.payment_instrument_id:
            continue
        result[o.payment_instrument_id] = result.get(o.payment_instrument_id, 0) + o.signed_amount
    return result


def _is_due(obligation: Obligation, instrument: PaymentInstrument, now: date) -> bool:
    if instrument.billing_type == BillingType.IMMEDIATE:
        return True
    payment_date = compute_payment_date(obligation.date, instrument)
    return payment_date is not None and payment_date <= now


def settle_overdue(
    obligations: Iterable[Obligation],
    instruments: Iterable[PaymentInstrument],
    now: date,
) -> SettlementResult:
    """
    Settle every pending obligation whose payment date has arrived.

    Rules:
    - Only obligations on an instrument with a linked account are considered
    - Immediate instruments settle unconditionally (safety net for anything
      missed at creation time)
    - Monthly instruments settle when the payment date is on or before now
    - Deltas are aggregated per account over the whole pass, so each account
      is written exactly once

    Nothing is mutated: returned obligations are copies with settled_at = now.
    Already-settled obligations are ignored, so re-running with the same data
    settles nothing.
    """
    by_id = _index_instruments(instruments)
    result = SettlementResult()
    malformed: set = set()

    for o in pending_obligations(obligations):
        pm = by_id.get(o.payment_instrument_id) if o.payment_instrument_id else None
        if pm is None or not pm.linked_account_id:
            continue

        if pm.billing_type == BillingType.MONTHLY and not is_billing_configured(pm):
            if pm.id not in malformed:
                malformed.add(pm.id)
                logger.warning(
                    "Skipping instrument with incomplete billing configuration",
                    extra={"payment_instrument_id": pm.id},
                )
            continue

        if not _is_due(o, pm, now):
            continue

        result.settled.append(replace(o, settled_at=now))
        account_id = pm.linked_account_id
        result.account_deltas[account_id] = result.account_deltas.get(account_id, 0) + _balance_delta(o)

    return result


def settle_on_creation(obligation: Obligation, instrument: Optional[PaymentInstrument], today: date) -> SettlementResult:
    """
    Creation-time settlement for immediate instruments.

    Monthly instruments, unlinked instruments and already-settled obligations
    produce an empty result; those are handled by settle_overdue later.
    """
    if (
        instrument is None
        or instrument.billing_type != BillingType.IMMEDIATE
        or not instrument.linked_account_id
        or not obligation.is_pending
    ):
        return SettlementResult()

    return SettlementResult(
        settled=[replace(obligation, settled_at=today)],
        account_deltas={instrument.linked_account_id: _balance_delta(obligation)},
    )


def apply_settlement(obligations: Iterable[Obligation], result: SettlementResult) -> List[Obligation]:
    """Return the snapshot with settled copies substituted in place"""
    settled = {o.id: o for o in result.settled}
    return [settled.get(o.id, o) for o in obligations]


def billing_statements(obligations: Iterable[Obligation], instrument: PaymentInstrument) -> List[BillingStatement]:
    """
    Group an instrument's pending obligations into statements by due date.

    Immediate or malformed instruments have no statements.
    """
    if not is_billing_configured(instrument):
        return []

    grouped: Dict[date, List[Obligation]] = {}
    for o in pending_obligations(obligations, instrument.id):
        due = compute_payment_date(o.date, instrument)
        grouped.setdefault(due, []).append(o)

    statements = []
    for due in sorted(grouped):
        items = sorted(grouped[due], key=lambda o: (o.date, o.id))
        statements.append(
            BillingStatement(
                payment_instrument_id=instrument.id,
                due_date=due,
                period=billing_period(month_key(due), instrument),
                amount=sum(o.signed_amount for o in items),
                obligation_ids=[o.id for o in items],
            )
        )
    return statements
