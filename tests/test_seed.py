"""
test_seed.py - Tests for the demo data seeder

Tests:
- Seeding creates customers, fee templates and loans with derived totals
- A second run is a no-op
- clear_data removes everything
"""

from datetime import date

from models import Customer, FeeConfig, Loan
from seed import clear_data, seed_demo_data


class TestSeed:
    """Tests for seed_demo_data and clear_data."""

    def test_seed_creates_priced_loans(self, db):
        counts = seed_demo_data(db, today=date(2026, 1, 1))

        assert counts == {"customers": 3, "fee_configs": 5, "loans": 6}
        loan = db.query(Loan).filter(Loan.loan_number == "LN-2026-001").one()
        assert loan.effective_rate == 6.75
        # ARR 1% of 500,000 plus DOC 500
        assert loan.total_fees == 5500.0
        assert loan.total_invoice_amount == 500000.0
        assert loan.net_proceeds == round(loan.total_amount - loan.interest_amount - loan.total_fees, 2)

    def test_second_run_is_a_no_op(self, db):
        seed_demo_data(db)

        assert seed_demo_data(db) == {"customers": 0, "fee_configs": 0, "loans": 0}
        assert db.query(Customer).count() == 3

    def test_clear_data(self, db):
        seed_demo_data(db)

        clear_data(db)

        assert db.query(Loan).count() == 0
        assert db.query(FeeConfig).count() == 0
