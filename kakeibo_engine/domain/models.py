"""Domain models - pure Python dataclasses representing household finance records"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Dict, List, Optional, Set


class BillingType(str, Enum):
    """When charges on an instrument hit the linked account"""

    IMMEDIATE = "immediate"
    MONTHLY = "monthly"


class ObligationKind(str, Enum):
    EXPENSE = "expense"
    INCOME = "income"


class PeriodType(str, Enum):
    MONTHS = "months"
    DAYS = "days"


class AllocationState(str, Enum):
    """State of a single savings month"""

    STANDARD = "standard"
    OVERRIDDEN = "overridden"
    EXCLUDED = "excluded"


@dataclass
class PaymentInstrument:
    """Deferred-payment method such as a credit or debit card"""

    id: str
    billing_type: BillingType
    name: str = ""
    closing_day: Optional[int] = None  # 1-31
    payment_day: Optional[int] = None  # 1-31
    payment_month_offset: Optional[int] = None  # months after the closing month
    linked_account_id: Optional[str] = None


@dataclass
class Obligation:
    """Recorded charge or credit against an instrument or account"""

    id: str
    date: date
    amount: int
    kind: ObligationKind
    payment_instrument_id: Optional[str] = None
    account_id: Optional[str] = None
    settled_at: Optional[date] = None

    @property
    def is_pending(self) -> bool:
        return self.settled_at is None

    @property
    def signed_amount(self) -> int:
        """Net payable: expenses positive, income negative"""
        return self.amount if self.kind == ObligationKind.EXPENSE else -self.amount


@dataclass
class RecurringObligation:
    """Template generating repeating expense/income occurrences"""

    id: str
    name: str
    amount: int
    kind: ObligationKind
    period_type: PeriodType
    period_value: int
    created_at: date
    start_date: Optional[date] = None  # defaults to created_at
    end_date: Optional[date] = None  # unbounded when absent
    is_active: bool = True
    monthly_overrides: Dict[str, int] = field(default_factory=dict)  # yyyy-MM -> amount
    account_id: Optional[str] = None
    payment_instrument_id: Optional[str] = None

    @property
    def anchor_date(self) -> date:
        return self.start_date or self.created_at


@dataclass
class SavingsGoal:
    """Savings target spread over a window of months"""

    id: str
    name: str
    target_amount: int
    start_month: str  # yyyy-MM
    end_month: Optional[str] = None  # yyyy-MM, None = unbounded
    monthly_overrides: Dict[str, int] = field(default_factory=dict)
    excluded_months: Set[str] = field(default_factory=set)


@dataclass
class BillingPeriod:
    """Inclusive window of obligation dates billed together"""

    start: date
    end: date


@dataclass
class BillingStatement:
    """Pending charges of one instrument due on the same date"""

    payment_instrument_id: str
    due_date: date
    period: Optional[BillingPeriod]
    amount: int  # net payable
    obligation_ids: List[str]


@dataclass
class SettlementResult:
    """Outcome of a settlement pass; the caller persists both parts as one batch"""

    settled: List[Obligation] = field(default_factory=list)
    account_deltas: Dict[str, int] = field(default_factory=dict)  # balance change per account

    @property
    def is_empty(self) -> bool:
        return not self.settled


@dataclass
class Occurrence:
    """Single calendar occurrence of a recurring obligation"""

    recurring_id: str
    date: date
    effective_amount: int
    kind: ObligationKind
    is_override: bool = False


@dataclass
class RecurringSummary:
    expense: int = 0
    income: int = 0

    @property
    def net(self) -> int:
        return self.income - self.expense


@dataclass
class MonthAllocation:
    """One month of a savings schedule"""

    month: str
    state: AllocationState
    amount: int
    accumulated: int
