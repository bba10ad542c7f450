"""Pytest fixtures for testing"""

from datetime import date
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from apargo_ledger.api.dependencies import get_today
from apargo_ledger.api.main import create_app
from apargo_ledger.domain.models import Apartment, Category, Expense
from apargo_ledger.infrastructure.database.models import ApartmentRecord, Base, CategoryRecord, ResidentRecord
from apargo_ledger.infrastructure.database.session import get_db

# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

TODAY = date(2024, 3, 5)


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
def seeded_db(db: Session) -> Session:
    """Three apartments (apt3 has no residents) and two categories"""
    db.add_all(
        [
            ApartmentRecord(id="apt1", name="Apartment 1"),
            ApartmentRecord(id="apt2", name="Apartment 2"),
            ApartmentRecord(id="apt3", name="Apartment 3"),
            ResidentRecord(id="user1", name="Alice", apartment_id="apt1"),
            ResidentRecord(id="user2", name="Bob", apartment_id="apt2"),
            CategoryRecord(
                id="maint",
                name="Building Maintenance",
                is_payment_event=True,
                auto_generate=True,
                monthly_amount=500.0,
                day_of_month=5,
            ),
            CategoryRecord(id="groceries", name="Groceries"),
        ]
    )
    db.commit()
    return db


@pytest.fixture
def client(seeded_db: Session) -> TestClient:
    """Create FastAPI test client with test database and a fixed clock"""
    app = create_app()

    def override_get_db():
        try:
            yield seeded_db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_today] = lambda: TODAY
    return TestClient(app)


@pytest.fixture
def apartments() -> list[Apartment]:
    return [
        Apartment(id="apt1", name="Apartment 1"),
        Apartment(id="apt2", name="Apartment 2"),
        Apartment(id="apt3", name="Apartment 3"),
    ]


@pytest.fixture
def shared_expense() -> Expense:
    """300 split three ways, fronted by apt1, nobody settled yet"""
    return Expense(
        id="exp1",
        amount=300.0,
        date=date(2024, 1, 15),
        category_id="cleaning",
        paid_by_apartment="apt1",
        owed_by_apartments=["apt1", "apt2", "apt3"],
        per_apartment_share=100.0,
        paid_by_apartments=[],
    )


@pytest.fixture
def maintenance_category() -> Category:
    return Category(
        id="maint",
        name="Building Maintenance",
        is_payment_event=True,
        auto_generate=True,
        monthly_amount=500.0,
        day_of_month=5,
    )
