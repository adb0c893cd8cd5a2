"""Pytest fixtures for testing"""

import os

# Point the application at the test database before it builds its engine
os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")

import pytest
from typing import Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from budget_ledger.api.main import create_app
from budget_ledger.infrastructure.database.models import Base, CostCenter, CreditCard, User, Wallet
from budget_ledger.infrastructure.database.session import get_db
from budget_ledger.services.cost_centers import CostCenterDirectory


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


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
    """Create FastAPI test client with test database"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)


@pytest.fixture
def directory(db: Session) -> CostCenterDirectory:
    return CostCenterDirectory(db)


@pytest.fixture
def user(directory: CostCenterDirectory) -> User:
    return directory.create_user("Ana Souza", "ana@example.com")


@pytest.fixture
def cost_center(directory: CostCenterDirectory, user: User) -> CostCenter:
    """Household budget with its default zero-balance wallet"""
    return directory.create_cost_center(user.id, "Household", code="2025HOM01")


@pytest.fixture
def wallet_a(directory: CostCenterDirectory, cost_center: CostCenter, user: User) -> Wallet:
    """Checking wallet opened with 100 cents"""
    return directory.create_wallet(cost_center.id, user.id, "Checking", "checking", opening_balance_cents=100)


@pytest.fixture
def wallet_b(directory: CostCenterDirectory, cost_center: CostCenter, user: User) -> Wallet:
    """Savings wallet opened with 50 cents"""
    return directory.create_wallet(cost_center.id, user.id, "Savings", "savings", opening_balance_cents=50)


@pytest.fixture
def credit_card(directory: CostCenterDirectory, cost_center: CostCenter) -> CreditCard:
    """Card with a 500 cent limit and nothing owed"""
    return directory.create_credit_card(cost_center.id, "Visa", limit_cents=500, due_day=10, closing_day=3)
