# schemas/preview.py
"""
Pydantic schemas for the pricing preview endpoints.

These are the only wire contract the live preview engine consumes:
a loan id, optional pricing override and optional fee changes in; the
recomputed totals out.
"""
from typing import Optional, List
from pydantic import ConfigDict

from .base import ApiModel
from .loan import PricingUpdate


class FeeAddPreview(ApiModel):
     fee_config_id: str


class FeeUpdatePreview(ApiModel):
     fee_id: str
     calculated_amount: float


class FeeDeletePreview(ApiModel):
     fee_id: str


class FeeChangesPreview(ApiModel):
     """Pending fee mutations; an empty list is sent as absent."""
     adds: Optional[List[FeeAddPreview]] = None
     updates: Optional[List[FeeUpdatePreview]] = None
     deletes: Optional[List[FeeDeletePreview]] = None


class FullPreviewRequest(ApiModel):
     pricing: Optional[PricingUpdate] = None
     fee_changes: Optional[FeeChangesPreview] = None

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "pricing": {"baseRate": 5.25, "spread": 1.5},
                    "feeChanges": {
                         "adds": [{"feeConfigId": "fc-arr"}],
                         "deletes": [{"feeId": "fee-1"}],
                    },
               }
          }
     )


class PricingPreviewResponse(ApiModel):
     """Result of a pricing-only preview; fees are unchanged."""
     effective_rate: float
     interest_amount: float
     total_fees: float
     net_proceeds: float


class FullPreviewResponse(ApiModel):
     """Authoritative recomputation of a loan under pending edits."""
     effective_rate: float
     interest_amount: float
     original_interest_amount: Optional[float] = None
     total_fees: float
     original_total_fees: float
     net_proceeds: float
     original_net_proceeds: float


class BatchPreviewItem(ApiModel):
     loan_id: str
     pricing: PricingUpdate


class BatchPreviewResult(ApiModel):
     loan_id: str
     success: bool
     preview: Optional[PricingPreviewResponse] = None
     error: Optional[str] = None


class BatchPreviewResponse(ApiModel):
     results: List[BatchPreviewResult]
