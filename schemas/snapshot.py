# schemas/snapshot.py
"""
Pydantic schemas for snapshot (history playback) API request/response validation.
"""
from datetime import datetime
from typing import Optional, List, Dict, Any, Literal
from pydantic import Field

from .base import ApiModel


class CurrencySummary(ApiModel):
     loan_count: int = 0
     total_amount: float = 0
     total_fees: float = 0
     total_interest: float = 0
     net_proceeds: float = 0
     avg_rate: float = 0  # amount-weighted effective rate


class CurrencyDelta(ApiModel):
     fees_change: float = 0
     interest_change: float = 0
     net_proceeds_change: float = 0
     avg_rate_change: float = 0  # basis points


class FeeChangeDetail(ApiModel):
     action: Literal["added", "deleted", "modified", "moved"]
     loan_id: str
     loan_number: str
     fee_id: str
     fee_name: str
     fee_code: str
     currency: str
     old_amount: Optional[float] = None
     new_amount: Optional[float] = None


class RateChangeDetail(ApiModel):
     action: Literal["modified"] = "modified"
     loan_id: str
     loan_number: str
     currency: str
     field: Literal["baseRate", "spread"]
     old_value: float
     new_value: float
     old_effective_rate: float
     new_effective_rate: float


class InvoiceChangeDetail(ApiModel):
     action: Literal["added", "deleted", "modified", "moved"]
     invoice_id: str
     invoice_number: str
     amount: float
     currency: str
     source_loan_id: Optional[str] = None
     source_loan_number: Optional[str] = None
     target_loan_id: Optional[str] = None
     target_loan_number: Optional[str] = None
     loan_id: Optional[str] = None
     loan_number: Optional[str] = None


class StatusChangeDetail(ApiModel):
     action: Literal["modified"] = "modified"
     loan_id: str
     loan_number: str
     field: Literal["status", "pricingStatus"]
     old_value: str
     new_value: str


class SnapshotChanges(ApiModel):
     fees: List[FeeChangeDetail] = Field(default_factory=list)
     rates: List[RateChangeDetail] = Field(default_factory=list)
     invoices: List[InvoiceChangeDetail] = Field(default_factory=list)
     statuses: List[StatusChangeDetail] = Field(default_factory=list)

     def count(self) -> int:
          return len(self.fees) + len(self.rates) + len(self.invoices) + len(self.statuses)


class SnapshotCreate(ApiModel):
     """Schema for recording a snapshot after changes are saved."""
     customer_id: str
     loans: List[Dict[str, Any]]  # loan structure is stored as-is
     changes: Optional[SnapshotChanges] = None
     change_count: Optional[int] = None
     description: Optional[str] = None


class SnapshotSummary(ApiModel):
     """Timeline entry: everything but the loan data."""
     id: str
     customer_id: str
     timestamp: datetime
     user_id: str
     user_name: str
     summary: Dict[str, CurrencySummary]
     delta: Optional[Dict[str, CurrencyDelta]] = None
     changes: SnapshotChanges = Field(default_factory=SnapshotChanges)
     change_count: int = 0
     description: Optional[str] = None


class SnapshotDetail(SnapshotSummary):
     """Full snapshot with decompressed loans, used for playback."""
     loans: List[Dict[str, Any]]


class SnapshotListResponse(ApiModel):
     snapshots: List[SnapshotSummary]
     total: int
     limit: int = 50
     skip: int = 0
