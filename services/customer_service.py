# services/customer_service.py
"""
Customer Service - customer lookups and per-currency loan totals.
"""
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from models import Customer, Loan
from services.calculation_service import round2


class CustomerService:
     """Service class for customer-related business logic."""

     @staticmethod
     def list_customers(db: Session) -> List[Customer]:
          return db.query(Customer).order_by(Customer.name).all()

     @staticmethod
     def get_customer(db: Session, customer_id: str) -> Optional[Customer]:
          return db.query(Customer).filter(Customer.id == customer_id).first()

     @staticmethod
     def get_customer_loans(db: Session, customer_id: str) -> List[Loan]:
          """A customer's loans, newest first."""
          return (
               db.query(Loan)
               .filter(Loan.customer_id == customer_id)
               .order_by(Loan.created_at.desc(), Loan.loan_number)
               .all()
          )

     @staticmethod
     def calculate_customer_totals(loans: List[Loan]) -> Dict[str, Dict[str, float]]:
          """
          Sum amount, fees, interest and net proceeds per currency.

          Returns:
               {currency: {total_amount, total_fees, total_interest, net_proceeds, loan_count}}
          """
          totals: Dict[str, Dict[str, float]] = {}
          for loan in loans:
               entry = totals.setdefault(loan.currency, {
                    "total_amount": 0.0,
                    "total_fees": 0.0,
                    "total_interest": 0.0,
                    "net_proceeds": 0.0,
                    "loan_count": 0,
               })
               entry["total_amount"] += loan.total_amount or 0
               entry["total_fees"] += loan.total_fees or 0
               entry["total_interest"] += loan.interest_amount or 0
               entry["net_proceeds"] += loan.net_proceeds or 0
               entry["loan_count"] += 1

          for entry in totals.values():
               for key in ("total_amount", "total_fees", "total_interest", "net_proceeds"):
                    entry[key] = round2(entry[key])
          return totals
