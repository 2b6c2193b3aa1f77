# schemas/customer.py
"""
Pydantic schemas for customer API responses.
"""
from typing import Dict, List

from .base import ApiModel
from .loan import LoanResponse


class CustomerResponse(ApiModel):
     id: str
     code: str
     name: str


class CurrencyTotals(ApiModel):
     """Aggregates over a customer's loans in one currency."""
     total_amount: float = 0
     total_fees: float = 0
     total_interest: float = 0
     net_proceeds: float = 0
     loan_count: int = 0


class CustomerDetail(ApiModel):
     customer: CustomerResponse
     loans: List[LoanResponse]
     totals: Dict[str, CurrencyTotals]


class CustomerSummary(ApiModel):
     customer: CustomerResponse
     loan_count: int
     totals: Dict[str, CurrencyTotals]
