# schemas/loan.py
"""
Pydantic schemas for Loan, Fee and Invoice API request/response validation.
"""
from datetime import date
from typing import Optional, List
from pydantic import Field, ConfigDict

from .base import ApiModel


class FeeTier(ApiModel):
     """One band of a tiered fee; max_amount None means unbounded."""
     min_amount: float = 0
     max_amount: Optional[float] = None
     rate: float


class FeeResponse(ApiModel):
     """Schema for a fee applied to a loan."""
     id: str
     loan_id: str
     fee_config_id: Optional[str] = None
     code: str
     name: str
     calculation_type: str
     flat_amount: Optional[float] = None
     rate: Optional[float] = None
     basis_amount: Optional[str] = None
     tiers: Optional[List[FeeTier]] = None
     calculated_amount: float = 0
     currency: str
     is_waived: bool = False


class InvoiceResponse(ApiModel):
     """Schema for an invoice financed by a loan."""
     id: str
     loan_id: str
     invoice_number: str
     buyer_name: str
     amount: float
     currency: str
     issue_date: Optional[date] = None
     due_date: date
     status: str


class LoanPricing(ApiModel):
     """Loan pricing; rates are percentages (5.25 = 5.25%)."""
     base_rate: float
     spread: float
     effective_rate: float
     day_count_convention: str = "actual/365"
     accrual_method: str = "simple"


class LoanResponse(ApiModel):
     """Schema for loan response, including fees and invoices."""
     id: str
     loan_number: str
     customer_id: Optional[str] = None
     borrower_id: str
     borrower_name: str
     total_amount: float
     outstanding_amount: float = 0
     total_invoice_amount: float = 0
     currency: str
     status: str
     pricing_status: str
     start_date: date
     maturity_date: date
     pricing: LoanPricing
     interest_amount: float = 0
     total_fees: float = 0
     net_proceeds: float = 0
     fees: List[FeeResponse] = Field(default_factory=list)
     invoices: List[InvoiceResponse] = Field(default_factory=list)

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "id": "5f1c...",
                    "loanNumber": "LN-2026-001",
                    "borrowerId": "b-1",
                    "borrowerName": "Acme Trading",
                    "totalAmount": 100000.0,
                    "currency": "USD",
                    "status": "active",
                    "pricingStatus": "priced",
                    "startDate": "2026-01-01",
                    "maturityDate": "2026-07-01",
                    "pricing": {"baseRate": 5.0, "spread": 1.5, "effectiveRate": 6.5},
                    "interestAmount": 3223.29,
                    "totalFees": 1500.0,
                    "netProceeds": 95276.71,
               }
          }
     )


class PricingUpdate(ApiModel):
     """Partial pricing: omitted fields keep the loan's stored value."""
     base_rate: Optional[float] = None
     spread: Optional[float] = None


class LoanUpdate(ApiModel):
     """Schema for updating an existing loan."""
     pricing: Optional[PricingUpdate] = None
     status: Optional[str] = None
     pricing_status: Optional[str] = None


class BatchUpdateItem(ApiModel):
     loan_id: str
     updates: LoanUpdate


class BatchUpdateResult(ApiModel):
     loan_id: str
     success: bool
     loan: Optional[LoanResponse] = None
     error: Optional[str] = None


class BatchUpdateResponse(ApiModel):
     results: List[BatchUpdateResult]


class FeeCreate(ApiModel):
     """Schema for adding a fee to a loan from a fee config."""
     fee_config_id: str
     flat_amount: Optional[float] = Field(None, ge=0)
     rate: Optional[float] = Field(None, ge=0)


class FeeUpdate(ApiModel):
     """Schema for updating an existing fee."""
     flat_amount: Optional[float] = Field(None, ge=0)
     rate: Optional[float] = Field(None, ge=0)
     calculated_amount: Optional[float] = Field(None, ge=0)
     is_waived: Optional[bool] = None


class FeeConfigResponse(ApiModel):
     id: str
     code: str
     name: str
     fee_type: str
     calculation_type: str
     default_flat_amount: Optional[float] = None
     default_rate: Optional[float] = None
     default_basis_amount: Optional[str] = None
     default_tiers: Optional[List[FeeTier]] = None
     is_active: bool = True
     sort_order: int = 0


class InvoiceCreate(ApiModel):
     """Schema for adding an invoice to a loan; currency follows the loan."""
     invoice_number: str = Field(..., min_length=1, max_length=50)
     buyer_name: str = Field(..., min_length=1, max_length=255)
     amount: float = Field(..., gt=0)
     due_date: date
     issue_date: Optional[date] = None


class InvoiceUpdate(ApiModel):
     """Schema for updating an invoice; omitted fields are left unchanged."""
     invoice_number: Optional[str] = Field(None, min_length=1, max_length=50)
     buyer_name: Optional[str] = Field(None, min_length=1, max_length=255)
     amount: Optional[float] = Field(None, gt=0)
     due_date: Optional[date] = None
     issue_date: Optional[date] = None
     status: Optional[str] = None


class InvoiceMove(ApiModel):
     target_loan_id: str = Field(..., min_length=1)


class InvoiceMoveResponse(ApiModel):
     source_loan: LoanResponse
     target_loan: LoanResponse
