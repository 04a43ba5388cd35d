"""Data access layer mapping stored records to domain dataclasses"""

from dataclasses import asdict, replace
from typing import Any, Dict, List
from sqlalchemy.orm import Session
from kakeibo_engine.infrastructure.database.models import (
    AccountRecord,
    ObligationRecord,
    PaymentInstrumentRecord,
    RecurringObligationRecord,
    SavingsGoalRecord,
)
from kakeibo_engine.domain.exceptions import RecordNotFoundError
from kakeibo_engine.domain.models import (
    BillingType,
    Obligation,
    ObligationKind,
    PaymentInstrument,
    PeriodType,
    RecurringObligation,
    SavingsGoal,
)


class _Repository:
    """
    Shared get_all/get/create/update/delete over one table.

    Subclasses provide the ORM model plus the row <-> dataclass mapping.
    Writes are flushed, never committed; the caller owns the transaction.
    """

    model = None
    record_type = "Record"

    def __init__(self, db: Session):
        self.db = db

    def _to_domain(self, row):
        raise NotImplementedError

    def _to_columns(self, record) -> Dict[str, Any]:
        return asdict(record)

    def _get_row(self, record_id: str):
        row = self.db.get(self.model, record_id)
        if row is None:
            raise RecordNotFoundError(self.record_type, record_id)
        return row

    def get_all(self) -> List:
        return [self._to_domain(row) for row in self.db.query(self.model).order_by(self.model.id).all()]

    def get(self, record_id: str):
        return self._to_domain(self._get_row(record_id))

    def create(self, record):
        row = self.model(**self._to_columns(record))
        self.db.add(row)
        self.db.flush()
        return self._to_domain(row)

    def update(self, record_id: str, **changes):
        row = self._get_row(record_id)
        columns = self._to_columns(replace(self._to_domain(row), **changes))
        for key, value in columns.items():
            setattr(row, key, value)
        self.db.flush()
        return self._to_domain(row)

    def save(self, record):
        """Write back a whole domain record returned by an engine edit"""
        return self.update(record.id, **asdict(record))

    def delete(self, record_id: str) -> None:
        self.db.delete(self._get_row(record_id))
        self.db.flush()


class AccountRepository:
    """Repository for account balances"""

    def __init__(self, db: Session):
        self.db = db

    def create_account(self, account_id: str, name: str = "", balance: int = 0) -> AccountRecord:
        account = AccountRecord(id=account_id, name=name, balance=balance)
        self.db.add(account)
        self.db.flush()
        return account

    def get_balance(self, account_id: str) -> int:
        account = self.db.get(AccountRecord, account_id)
        if account is None:
            raise RecordNotFoundError("Account", account_id)
        return account.balance

    def apply_deltas(self, deltas: Dict[str, int]) -> List[str]:
        """
        Apply one aggregated delta per account.

        Unknown accounts are skipped; returns the ids actually updated.
        """
        updated = []
        for account_id, delta in deltas.items():
            account = self.db.get(AccountRecord, account_id)
            if account is None:
                continue
            account.balance = account.balance + delta
            updated.append(account_id)
        self.db.flush()
        return updated


class PaymentInstrumentRepository(_Repository):
    model = PaymentInstrumentRecord
    record_type = "PaymentInstrument"

    def _to_domain(self, row: PaymentInstrumentRecord) -> PaymentInstrument:
        return PaymentInstrument(
            id=row.id,
            name=row.name,
            billing_type=BillingType(row.billing_type),
            closing_day=row.closing_day,
            payment_day=row.payment_day,
            payment_month_offset=row.payment_month_offset,
            linked_account_id=row.linked_account_id,
        )

    def _to_columns(self, record: PaymentInstrument) -> Dict[str, Any]:
        columns = asdict(record)
        columns["billing_type"] = BillingType(record.billing_type).value
        return columns


class ObligationRepository(_Repository):
    model = ObligationRecord
    record_type = "Obligation"

    def _to_domain(self, row: ObligationRecord) -> Obligation:
        return Obligation(
            id=row.id,
            date=row.date,
            amount=row.amount,
            kind=ObligationKind(row.kind),
            payment_instrument_id=row.payment_instrument_id,
            account_id=row.account_id,
            settled_at=row.settled_at,
        )

    def _to_columns(self, record: Obligation) -> Dict[str, Any]:
        columns = asdict(record)
        columns["kind"] = ObligationKind(record.kind).value
        return columns

    def get_pending(self) -> List[Obligation]:
        rows = (
            self.db.query(ObligationRecord)
            .filter(ObligationRecord.settled_at.is_(None))
            .order_by(ObligationRecord.date, ObligationRecord.id)
            .all()
        )
        return [self._to_domain(row) for row in rows]

    def mark_settled(self, obligations: List[Obligation]) -> None:
        """Persist settled_at for obligations returned by a settlement pass"""
        for obligation in obligations:
            row = self._get_row(obligation.id)
            row.settled_at = obligation.settled_at
        self.db.flush()


class RecurringObligationRepository(_Repository):
    model = RecurringObligationRecord
    record_type = "RecurringObligation"

    def _to_domain(self, row: RecurringObligationRecord) -> RecurringObligation:
        return RecurringObligation(
            id=row.id,
            name=row.name,
            amount=row.amount,
            kind=ObligationKind(row.kind),
            period_type=PeriodType(row.period_type),
            period_value=row.period_value,
            created_at=row.created_on,
            start_date=row.start_date,
            end_date=row.end_date,
            is_active=row.is_active,
            monthly_overrides=dict(row.monthly_overrides or {}),
            account_id=row.account_id,
            payment_instrument_id=row.payment_instrument_id,
        )

    def _to_columns(self, record: RecurringObligation) -> Dict[str, Any]:
        columns = asdict(record)
        columns["created_on"] = columns.pop("created_at")
        columns["kind"] = ObligationKind(record.kind).value
        columns["period_type"] = PeriodType(record.period_type).value
        columns["monthly_overrides"] = dict(record.monthly_overrides)
        return columns


class SavingsGoalRepository(_Repository):
    model = SavingsGoalRecord
    record_type = "SavingsGoal"

    def _to_domain(self, row: SavingsGoalRecord) -> SavingsGoal:
        return SavingsGoal(
            id=row.id,
            name=row.name,
            target_amount=row.target_amount,
            start_month=row.start_month,
            end_month=row.end_month,
            monthly_overrides=dict(row.monthly_overrides or {}),
            excluded_months=set(row.excluded_months or []),
        )

    def _to_columns(self, record: SavingsGoal) -> Dict[str, Any]:
        columns = asdict(record)
        columns["monthly_overrides"] = dict(record.monthly_overrides)
        columns["excluded_months"] = sorted(record.excluded_months)
        return columns
