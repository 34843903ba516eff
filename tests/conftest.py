"""Pytest fixtures for testing"""

import pytest
import random
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Callable, Generator
import httpx
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from finance_tracker.api.dependencies import get_payment_client
from finance_tracker.api.main import create_app
from finance_tracker.api.rate_limit import limiter
from finance_tracker.infrastructure.clients.payments import PaymentGatewayClient
from finance_tracker.infrastructure.database.models import Base
from finance_tracker.infrastructure.database.session import get_db, get_session_factory
from finance_tracker.domain.models import Currency, Transaction, TransactionKind


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

OWNER = "user_alice"
OTHER_OWNER = "user_bob"


def relay_response(status: str = "SUCCESS", success: bool = True, pk: str = "mesomb_abc123") -> dict:
    """Body the payment relay returns for a collection"""
    return {
        "success": success,
        "message": "Payment collected" if success else "Payment failed",
        "status": status,
        "transaction": {
            "pk": pk,
            "amount": 1000.0,
            "service": "MTN",
            "payer": "677550203",
            "status": status,
            "created_at": "2024-05-01T10:00:00+00:00",
        },
    }


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
def session_factory(db: Session) -> sessionmaker:
    """Factory the live stores open their short-lived sessions from"""
    return TestingSessionLocal


@pytest.fixture
def relay_handler() -> dict:
    """Mutable holder for the function answering relay requests in API tests"""
    return {"handler": lambda request: httpx.Response(200, json=relay_response())}


@pytest.fixture
def client(db: Session, relay_handler: dict) -> TestClient:
    """Create FastAPI test client with test database and a mocked payment relay"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    def override_payment_client():
        return PaymentGatewayClient(
            base_url="http://relay.test",
            simulation_delay=0,
            rng=random.Random(7),
            transport=httpx.MockTransport(lambda request: relay_handler["handler"](request)),
        )

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: TestingSessionLocal
    app.dependency_overrides[get_payment_client] = override_payment_client
    limiter.reset()
    return TestClient(app)


@pytest.fixture
def auth_headers() -> dict:
    return {"X-User-Id": OWNER}


@pytest.fixture
def make_transaction() -> Callable[..., Transaction]:
    """Build domain transactions without touching the database"""
    counter = {"n": 0}

    def _make(kind: str, amount: str, day: date, category: str = "General", description: str = "") -> Transaction:
        counter["n"] += 1
        stamp = datetime(day.year, day.month, day.day, 12, 0, counter["n"], tzinfo=timezone.utc)
        return Transaction(
            id=f"tx_{counter['n']}",
            owner_id=OWNER,
            kind=TransactionKind(kind),
            amount=Decimal(amount),
            currency=Currency.XAF,
            category=category,
            description=description,
            date=day,
            created_at=stamp,
            updated_at=stamp,
        )

    return _make


@pytest.fixture
def sample_transactions(make_transaction) -> list[Transaction]:
    """Two income entries and one expense across January and March 2024"""
    return [
        make_transaction("income", "3000", date(2024, 3, 1), "Salary", "March salary"),
        make_transaction("expense", "2000", date(2024, 1, 20), "Rent", "January rent"),
        make_transaction("income", "5000", date(2024, 1, 15), "Salary", "January salary"),
    ]


@pytest.fixture
def relay_body() -> Callable[..., dict]:
    return relay_response
