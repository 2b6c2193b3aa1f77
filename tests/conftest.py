"""
conftest.py - Shared pytest fixtures for the loan pricing tests

Provides:
- An in-memory SQLite database with all tables
- A seeded customer, fee configs and loans (derived totals recalculated)
- A FastAPI TestClient wired to the test session
- A PricingApiClient that talks to the app through the TestClient
"""

import os

# Point the application at SQLite before database.py builds its engine
os.environ["DATABASE_URL"] = "sqlite://"

from datetime import date

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import get_session
from main import app
from models import Base, Customer, FeeConfig, Loan, Fee, Invoice
from models.fee_config import FeeCalculationType, FeeBasis
from models.loan import LoanStatus, PricingStatus
from services import calculation_service
from pricing import PricingApiClient


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)()
    yield session
    session.close()


@pytest.fixture
def customer(db):
    customer = Customer(code="ACME", name="Acme Holdings")
    db.add(customer)
    db.commit()
    return customer


@pytest.fixture
def fee_configs(db):
    configs = {
        "ARR": FeeConfig(
            code="ARR", name="Arrangement Fee", fee_type="arrangement",
            calculation_type=FeeCalculationType.FLAT, default_flat_amount=1000.0,
            sort_order=1,
        ),
        "COMM": FeeConfig(
            code="COMM", name="Commitment Fee", fee_type="commitment",
            calculation_type=FeeCalculationType.PERCENTAGE, default_rate=0.01,
            default_basis_amount=FeeBasis.PRINCIPAL, sort_order=2,
        ),
        "FAC": FeeConfig(
            code="FAC", name="Facility Fee", fee_type="facility",
            calculation_type=FeeCalculationType.TIERED,
            default_tiers=[
                {"minAmount": 0, "maxAmount": 50000, "rate": 0.01},
                {"minAmount": 50000, "maxAmount": None, "rate": 0.005},
            ],
            sort_order=3,
        ),
        "OLD": FeeConfig(
            code="OLD", name="Legacy Fee", fee_type="other",
            calculation_type=FeeCalculationType.FLAT, default_flat_amount=10.0,
            is_active=False, sort_order=9,
        ),
    }
    db.add_all(configs.values())
    db.commit()
    return configs


def _make_loan(customer, number, currency, amount, base_rate, spread, maturity,
               status=LoanStatus.ACTIVE, pricing_status=PricingStatus.PRICED):
    return Loan(
        loan_number=number,
        customer_id=customer.id,
        borrower_id=f"B-{number}",
        borrower_name=f"Borrower {number}",
        total_amount=amount,
        outstanding_amount=amount,
        total_invoice_amount=0,
        currency=currency,
        status=status,
        pricing_status=pricing_status,
        start_date=date(2026, 1, 1),
        maturity_date=maturity,
        base_rate=base_rate,
        spread=spread,
    )


@pytest.fixture
def loans(db, customer, fee_configs):
    """
    LN-001: USD 100,000 at 5.0 + 1.5, 181 days, flat ARR fee 1,000, one invoice
    LN-002: EUR 50,000 at 4.0 + 2.0, 365 days, no fees
    LN-003: USD 250,000 at 5.5 + 1.0, pending pricing
    """
    arr = fee_configs["ARR"]
    first = _make_loan(customer, "LN-001", "USD", 100000.0, 5.0, 1.5, date(2026, 7, 1))
    first.fees.append(Fee(
        fee_config_id=arr.id, code=arr.code, name=arr.name,
        calculation_type=FeeCalculationType.FLAT, flat_amount=1000.0, currency="USD",
    ))
    first.invoices.append(Invoice(
        invoice_number="INV-1001", buyer_name="Globex Retail", amount=60000.0,
        currency="USD", issue_date=date(2025, 12, 1), due_date=date(2026, 3, 1),
    ))
    second = _make_loan(customer, "LN-002", "EUR", 50000.0, 4.0, 2.0, date(2027, 1, 1))
    third = _make_loan(customer, "LN-003", "USD", 250000.0, 5.5, 1.0, date(2026, 4, 1),
                       pricing_status=PricingStatus.PENDING)

    for loan in (first, second, third):
        calculation_service.recalculate_loan(loan)
    db.add_all([first, second, third])
    db.commit()
    return {"LN-001": first, "LN-002": second, "LN-003": third}


@pytest.fixture
def client(db):
    def override_get_session():
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise

    app.dependency_overrides[get_session] = override_get_session
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def api(client):
    """PricingApiClient routed through the TestClient."""
    return PricingApiClient(
        base_url="http://testserver/api",
        session=client,
        user_id="u-1",
        user_name="Pat Analyst",
    )
