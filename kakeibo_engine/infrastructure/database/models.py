"""SQLAlchemy ORM models for the household record store"""

import uuid
from sqlalchemy import Column, String, BigInteger, Boolean, DateTime, Date, Integer, ForeignKey, Text, JSON
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


def _new_id() -> str:
    return str(uuid.uuid4())


class AccountRecord(Base):
    """Account whose balance receives settlement deltas"""

    __tablename__ = "account"

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(Text, nullable=False, default="")
    balance = Column(BigInteger, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class PaymentInstrumentRecord(Base):
    """Card or other deferred-payment method"""

    __tablename__ = "payment_instrument"

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(Text, nullable=False, default="")
    billing_type = Column(Text, nullable=False)  # immediate | monthly
    closing_day = Column(Integer, nullable=True)
    payment_day = Column(Integer, nullable=True)
    payment_month_offset = Column(Integer, nullable=True)
    linked_account_id = Column(String(36), ForeignKey("account.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class ObligationRecord(Base):
    """Recorded charge or credit"""

    __tablename__ = "obligation"

    id = Column(String(36), primary_key=True, default=_new_id)
    date = Column(Date, nullable=False, index=True)
    amount = Column(BigInteger, nullable=False)
    kind = Column(Text, nullable=False)  # expense | income
    payment_instrument_id = Column(
        String(36), ForeignKey("payment_instrument.id", ondelete="SET NULL"), nullable=True, index=True
    )
    account_id = Column(String(36), ForeignKey("account.id", ondelete="SET NULL"), nullable=True)
    settled_at = Column(Date, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class RecurringObligationRecord(Base):
    """Template for repeating income/expense"""

    __tablename__ = "recurring_obligation"

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(Text, nullable=False)
    amount = Column(BigInteger, nullable=False)
    kind = Column(Text, nullable=False)
    period_type = Column(Text, nullable=False)  # months | days
    period_value = Column(Integer, nullable=False, default=1)
    created_on = Column(Date, nullable=False)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    monthly_overrides = Column(JSON, nullable=False, default=dict)
    account_id = Column(String(36), ForeignKey("account.id", ondelete="SET NULL"), nullable=True)
    payment_instrument_id = Column(
        String(36), ForeignKey("payment_instrument.id", ondelete="SET NULL"), nullable=True
    )


class SavingsGoalRecord(Base):
    """Savings target spread over months"""

    __tablename__ = "savings_goal"

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(Text, nullable=False)
    target_amount = Column(BigInteger, nullable=False)
    start_month = Column(String(7), nullable=False)
    end_month = Column(String(7), nullable=True)
    monthly_overrides = Column(JSON, nullable=False, default=dict)
    excluded_months = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
