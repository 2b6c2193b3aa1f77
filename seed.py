# seed.py
"""
Demo data for local development.

Creates customers, the standard fee templates and a handful of loans with
fees and invoices, all with derived totals calculated. Existing rows are
left alone unless reset=True.

Usage:
     python seed.py            # create tables if needed, then seed
     python seed.py --reset    # wipe loan data first
"""
import logging
import sys
from datetime import date, timedelta
from typing import Dict

from sqlalchemy.orm import Session

from database import get_session_context, init_db
from models import AuditEntry, Customer, Fee, FeeConfig, Invoice, Loan, LoanSnapshot
from models.fee_config import FeeCalculationType, FeeBasis
from models.loan import LoanStatus, PricingStatus, DayCountConvention
from services import calculation_service

logger = logging.getLogger(__name__)

CUSTOMERS = [
     ("ACME", "Acme Trading Co."),
     ("EUROTRADE", "EuroTrade GmbH"),
     ("BRITEX", "British Export Ltd"),
]

FEE_CONFIGS = [
     dict(code="ARR", name="Arrangement Fee", fee_type="arrangement",
          calculation_type=FeeCalculationType.PERCENTAGE, default_rate=0.01,
          default_basis_amount=FeeBasis.PRINCIPAL, sort_order=1),
     dict(code="COMM", name="Commitment Fee", fee_type="commitment",
          calculation_type=FeeCalculationType.PERCENTAGE, default_rate=0.005,
          default_basis_amount=FeeBasis.PRINCIPAL, sort_order=2),
     dict(code="UTIL", name="Utilization Fee", fee_type="facility",
          calculation_type=FeeCalculationType.PERCENTAGE, default_rate=0.0025,
          default_basis_amount=FeeBasis.OUTSTANDING, sort_order=3),
     dict(code="DOC", name="Documentation Fee", fee_type="documentation",
          calculation_type=FeeCalculationType.FLAT, default_flat_amount=500.0, sort_order=4),
     dict(code="FAC", name="Facility Fee", fee_type="facility",
          calculation_type=FeeCalculationType.TIERED, default_basis_amount=FeeBasis.PRINCIPAL,
          default_tiers=[
               {"minAmount": 0, "maxAmount": 100000, "rate": 0.01},
               {"minAmount": 100000, "maxAmount": 500000, "rate": 0.0075},
               {"minAmount": 500000, "maxAmount": None, "rate": 0.005},
          ],
          sort_order=5),
]

# (customer, number, currency, amount, base rate, spread, days to maturity, fee codes, status)
LOANS = [
     ("ACME", "LN-2026-001", "USD", 500000.0, 5.25, 1.50, 90, ("ARR", "DOC"), PricingStatus.PRICED),
     ("ACME", "LN-2026-002", "USD", 250000.0, 5.25, 2.00, 25, ("ARR",), PricingStatus.PENDING),
     ("ACME", "LN-2026-003", "EUR", 180000.0, 3.75, 1.75, 200, ("COMM", "FAC"), PricingStatus.PRICED),
     ("EUROTRADE", "LN-2026-004", "EUR", 750000.0, 3.75, 1.25, 45, ("ARR", "UTIL"), PricingStatus.APPROVED),
     ("EUROTRADE", "LN-2026-005", "GBP", 120000.0, 4.50, 2.25, 5, ("DOC",), PricingStatus.PENDING),
     ("BRITEX", "LN-2026-006", "GBP", 300000.0, 4.50, 1.80, 120, ("ARR", "FAC"), PricingStatus.PRICED),
]


def _fee_from_config(config: FeeConfig, currency: str) -> Fee:
     return Fee(
          fee_config_id=config.id,
          code=config.code,
          name=config.name,
          calculation_type=config.calculation_type,
          flat_amount=config.default_flat_amount,
          rate=config.default_rate,
          basis_amount=config.default_basis_amount,
          tiers=config.default_tiers,
          currency=currency,
          is_waived=False,
     )


def clear_data(db: Session) -> None:
     for model in (AuditEntry, LoanSnapshot, Invoice, Fee, Loan, FeeConfig, Customer):
          db.query(model).delete()
     db.flush()


def seed_demo_data(db: Session, today: date = None) -> Dict[str, int]:
     """
     Insert the demo customers, fee templates and loans.

     Returns:
          Counts of created rows by kind; 0 everywhere if customers already exist
     """
     if db.query(Customer).count():
          logger.info("Customers already present; skipping seed")
          return {"customers": 0, "fee_configs": 0, "loans": 0}

     today = today or date.today()
     customers = {code: Customer(code=code, name=name) for code, name in CUSTOMERS}
     configs = {values["code"]: FeeConfig(**values) for values in FEE_CONFIGS}
     db.add_all(list(customers.values()) + list(configs.values()))
     db.flush()

     for index, (customer_code, number, currency, amount, base_rate, spread, days, fee_codes, pricing_status) in enumerate(LOANS):
          start = today - timedelta(days=30)
          loan = Loan(
               loan_number=number,
               customer_id=customers[customer_code].id,
               borrower_id=f"BRW-{index + 1:03d}",
               borrower_name=customers[customer_code].name,
               total_amount=amount,
               outstanding_amount=round(amount * 0.8, 2),
               total_invoice_amount=0,
               currency=currency,
               status=LoanStatus.ACTIVE,
               pricing_status=pricing_status,
               start_date=start,
               maturity_date=today + timedelta(days=days),
               base_rate=base_rate,
               spread=spread,
               day_count_convention=DayCountConvention.ACTUAL_360 if currency == "USD" else DayCountConvention.ACTUAL_365,
          )
          for code in fee_codes:
               loan.fees.append(_fee_from_config(configs[code], currency))
          for n in range(2):
               loan.invoices.append(Invoice(
                    invoice_number=f"INV-{number[-3:]}-{n + 1}",
                    buyer_name=f"{customers[customer_code].name} Buyer {n + 1}",
                    amount=round(amount * 0.6 if n == 0 else amount * 0.4, 2),
                    currency=currency,
                    issue_date=start,
                    due_date=start + timedelta(days=60 + 30 * n),
               ))
          calculation_service.recalculate_loan(loan)
          db.add(loan)

     db.flush()
     counts = {"customers": len(customers), "fee_configs": len(configs), "loans": len(LOANS)}
     logger.info("Seeded %(customers)d customers, %(fee_configs)d fee configs, %(loans)d loans", counts)
     return counts


def main(argv=None) -> None:
     argv = sys.argv[1:] if argv is None else argv
     logging.basicConfig(level=logging.INFO, format="%(levelname)s [%(name)s] %(message)s")
     init_db()
     with get_session_context() as db:
          if "--reset" in argv:
               clear_data(db)
          seed_demo_data(db)


if __name__ == "__main__":
     main()
