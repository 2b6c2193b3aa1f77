# routers/customers.py
"""
Customer API routes: the customer list, a customer with its loans, and
per-currency loan totals.
"""
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from database import get_session
from models import Customer
from services import CustomerService
from schemas.customer import CustomerResponse, CurrencyTotals, CustomerDetail, CustomerSummary
from .loans import build_loan_response

router = APIRouter(prefix="/api/customers", tags=["customers"])


def _get_or_404(db: Session, customer_id: str) -> Customer:
     customer = CustomerService.get_customer(db, customer_id)
     if customer is None:
          raise HTTPException(
               status_code=status.HTTP_404_NOT_FOUND,
               detail=f"Customer with ID {customer_id} not found"
          )
     return customer


def _totals(loans) -> dict:
     return {
          currency: CurrencyTotals(**values)
          for currency, values in CustomerService.calculate_customer_totals(loans).items()
     }


@router.get(
     "",
     response_model=List[CustomerResponse],
     summary="List customers"
)
def list_customers(db: Session = Depends(get_session)):
     """All customers, sorted by name."""
     return [
          CustomerResponse(id=c.id, code=c.code, name=c.name)
          for c in CustomerService.list_customers(db)
     ]


@router.get(
     "/{customer_id}",
     response_model=CustomerDetail,
     summary="Get a customer with its loans"
)
def get_customer(customer_id: str, db: Session = Depends(get_session)):
     customer = _get_or_404(db, customer_id)
     loans = CustomerService.get_customer_loans(db, customer.id)
     return CustomerDetail(
          customer=CustomerResponse(id=customer.id, code=customer.code, name=customer.name),
          loans=[build_loan_response(loan) for loan in loans],
          totals=_totals(loans),
     )


@router.get(
     "/{customer_id}/summary",
     response_model=CustomerSummary,
     summary="Get a customer's loan totals"
)
def get_customer_summary(customer_id: str, db: Session = Depends(get_session)):
     """Loan count and per-currency totals, without the loans themselves."""
     customer = _get_or_404(db, customer_id)
     loans = CustomerService.get_customer_loans(db, customer.id)
     return CustomerSummary(
          customer=CustomerResponse(id=customer.id, code=customer.code, name=customer.name),
          loan_count=len(loans),
          totals=_totals(loans),
     )
