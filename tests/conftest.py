"""Pytest fixtures for testing"""

import pytest
from datetime import date
from typing import Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from kakeibo_engine.api.main import create_app
from kakeibo_engine.api.dependencies import get_today
from kakeibo_engine.infrastructure.database.models import Base
from kakeibo_engine.infrastructure.database.session import get_db
from kakeibo_engine.domain.models import (
    BillingType,
    Obligation,
    ObligationKind,
    PaymentInstrument,
)


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Clock used by API tests
TODAY = date(2024, 2, 10)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db: Session) -> TestClient:
    """Create FastAPI test client with test database and a fixed clock"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_today] = lambda: TODAY
    return TestClient(app)


@pytest.fixture
def card() -> PaymentInstrument:
    """Credit card closing on the 15th, paid on the 10th of the following month"""
    return PaymentInstrument(
        id="card",
        name="Visa",
        billing_type=BillingType.MONTHLY,
        closing_day=15,
        payment_day=10,
        payment_month_offset=1,
        linked_account_id="acc-bank",
    )


@pytest.fixture
def debit_card() -> PaymentInstrument:
    return PaymentInstrument(
        id="debit",
        name="Debit",
        billing_type=BillingType.IMMEDIATE,
        linked_account_id="acc-bank",
    )


@pytest.fixture
def card_obligations() -> list[Obligation]:
    """Card charges across two billing cycles plus one refund"""
    return [
        Obligation(id="o1", date=date(2024, 1, 10), amount=5000, kind=ObligationKind.EXPENSE, payment_instrument_id="card"),
        Obligation(id="o2", date=date(2024, 1, 20), amount=3000, kind=ObligationKind.EXPENSE, payment_instrument_id="card"),
        Obligation(id="o3", date=date(2024, 1, 12), amount=1000, kind=ObligationKind.INCOME, payment_instrument_id="card"),
    ]
