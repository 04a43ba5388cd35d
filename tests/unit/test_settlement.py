"""Unit tests for pending tracking and settlement passes"""

import logging
import pytest
from datetime import date
from kakeibo_engine.domain.models import BillingType, Obligation, ObligationKind, PaymentInstrument
from kakeibo_engine.domain.settlement import (
    apply_settlement,
    billing_statements,
    pending_amount_by_account,
    pending_amount_by_instrument,
    pending_obligations,
    settle_on_creation,
    settle_overdue,
)


@pytest.fixture
def instruments(card, debit_card) -> list[PaymentInstrument]:
    unlinked = PaymentInstrument(
        id="unlinked", billing_type=BillingType.MONTHLY, closing_day=15, payment_day=10, payment_month_offset=1
    )
    broken = PaymentInstrument(
        id="broken", billing_type=BillingType.MONTHLY, closing_day=15, payment_month_offset=1, linked_account_id="acc-bank"
    )
    return [card, debit_card, unlinked, broken]


@pytest.fixture
def obligations(card_obligations) -> list[Obligation]:
    return card_obligations + [
        Obligation(id="o4", date=date(2024, 2, 1), amount=700, kind=ObligationKind.EXPENSE, payment_instrument_id="debit"),
        Obligation(
            id="o5",
            date=date(2024, 1, 5),
            amount=200,
            kind=ObligationKind.EXPENSE,
            payment_instrument_id="card",
            settled_at=date(2024, 2, 10),
        ),
        Obligation(id="o6", date=date(2024, 1, 8), amount=400, kind=ObligationKind.EXPENSE, account_id="acc-cash"),
    ]


def test_pending_obligations_excludes_settled(obligations):
    pending = pending_obligations(obligations)
    assert {o.id for o in pending} == {"o1", "o2", "o3", "o4", "o6"}


def test_pending_obligations_filtered_by_instrument(obligations):
    pending = pending_obligations(obligations, "card")
    assert {o.id for o in pending} == {"o1", "o2", "o3"}


def test_pending_amount_by_account(obligations, instruments):
    """Expenses add, income subtracts, settled obligations never count"""
    totals = pending_amount_by_account(obligations, instruments)

    # 5000 + 3000 - 1000 (refund) + 700 (debit); o5 is settled, o6 has no instrument
    assert totals == {"acc-bank": 7700}


def test_account_only_entry_is_not_pending_on_account():
    """A direct cash entry can never be settled, so it never counts as payable"""
    cash = Obligation(id="cash", date=date(2024, 1, 8), amount=400, kind=ObligationKind.EXPENSE, account_id="acc-cash")

    assert pending_amount_by_account([cash], []) == {}
    assert settle_overdue([cash], [], date(2025, 1, 1)).settled == []


def test_pending_amount_by_account_skips_unresolvable(instruments):
    orphan = Obligation(id="x", date=date(2024, 1, 1), amount=900, kind=ObligationKind.EXPENSE, payment_instrument_id="unlinked")
    missing = Obligation(id="y", date=date(2024, 1, 1), amount=900, kind=ObligationKind.EXPENSE, payment_instrument_id="gone")

    assert pending_amount_by_account([orphan, missing], instruments) == {}


def test_pending_amount_by_instrument(obligations):
    assert pending_amount_by_instrument(obligations) == {"card": 7000, "debit": 700}


def test_settle_overdue_on_payment_date(obligations, instruments):
    """Same-day payment counts as due; later cycles stay pending"""
    result = settle_overdue(obligations, instruments, date(2024, 2, 10))

    assert {o.id for o in result.settled} == {"o1", "o3", "o4"}
    assert all(o.settled_at == date(2024, 2, 10) for o in result.settled)
    # -5000 (o1) + 1000 (o3 refund) - 700 (o4 immediate)
    assert result.account_deltas == {"acc-bank": -4700}


def test_settle_overdue_before_payment_date(obligations, instruments):
    result = settle_overdue(obligations, instruments, date(2024, 2, 9))

    assert [o.id for o in result.settled] == ["o4"]
    assert result.account_deltas == {"acc-bank": -700}


def test_settle_overdue_does_not_mutate_input(obligations, instruments):
    settle_overdue(obligations, instruments, date(2024, 3, 31))
    assert obligations[0].settled_at is None


def test_settle_overdue_is_idempotent(obligations, instruments):
    now = date(2024, 3, 10)
    first = settle_overdue(obligations, instruments, now)
    second = settle_overdue(apply_settlement(obligations, first), instruments, now)

    assert {o.id for o in first.settled} == {"o1", "o2", "o3", "o4"}
    assert second.settled == []
    assert second.account_deltas == {}
    assert second.is_empty


def test_settle_overdue_aggregates_one_delta_per_account(card):
    charges = [
        Obligation(id=f"c{i}", date=date(2024, 1, i + 1), amount=100, kind=ObligationKind.EXPENSE, payment_instrument_id="card")
        for i in range(10)
    ]
    result = settle_overdue(charges, [card], date(2024, 2, 10))

    assert len(result.settled) == 10
    assert result.account_deltas == {"acc-bank": -1000}


def test_settle_overdue_skips_unlinked_and_malformed(instruments, caplog):
    charges = [
        Obligation(id="u", date=date(2023, 1, 1), amount=100, kind=ObligationKind.EXPENSE, payment_instrument_id="unlinked"),
        Obligation(id="b1", date=date(2023, 1, 1), amount=100, kind=ObligationKind.EXPENSE, payment_instrument_id="broken"),
        Obligation(id="b2", date=date(2023, 1, 2), amount=100, kind=ObligationKind.EXPENSE, payment_instrument_id="broken"),
        Obligation(id="n", date=date(2023, 1, 1), amount=100, kind=ObligationKind.EXPENSE),
    ]

    with caplog.at_level(logging.WARNING, logger="kakeibo_engine.domain.settlement"):
        result = settle_overdue(charges, instruments, date(2024, 12, 31))

    assert result.settled == []
    assert result.account_deltas == {}
    warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
    assert len(warnings) == 1  # once per instrument per run


def test_settle_on_creation_immediate(debit_card):
    expense = Obligation(id="e", date=date(2024, 2, 1), amount=700, kind=ObligationKind.EXPENSE, payment_instrument_id="debit")
    income = Obligation(id="i", date=date(2024, 2, 1), amount=300, kind=ObligationKind.INCOME, payment_instrument_id="debit")

    spent = settle_on_creation(expense, debit_card, date(2024, 2, 1))
    refunded = settle_on_creation(income, debit_card, date(2024, 2, 1))

    assert spent.settled[0].settled_at == date(2024, 2, 1)
    assert spent.account_deltas == {"acc-bank": -700}
    assert refunded.account_deltas == {"acc-bank": 300}


def test_settle_on_creation_leaves_monthly_pending(card, card_obligations):
    result = settle_on_creation(card_obligations[0], card, date(2024, 1, 10))
    assert result.is_empty
    assert settle_on_creation(card_obligations[0], None, date(2024, 1, 10)).is_empty


def test_billing_statements_grouped_by_due_date(card, obligations):
    statements = billing_statements(obligations, card)

    assert [s.due_date for s in statements] == [date(2024, 2, 10), date(2024, 3, 10)]

    february, march = statements
    assert february.obligation_ids == ["o1", "o3"]
    assert february.amount == 4000
    assert february.period.start == date(2023, 12, 16)
    assert february.period.end == date(2024, 1, 15)
    assert march.obligation_ids == ["o2"]
    assert march.amount == 3000


def test_billing_statements_empty_for_immediate(debit_card, obligations):
    assert billing_statements(obligations, debit_card) == []
