# schemas/__init__.py
from .base import ApiModel
from .loan import (
     FeeTier,
     FeeResponse,
     InvoiceResponse,
     LoanPricing,
     LoanResponse,
     PricingUpdate,
     LoanUpdate,
     BatchUpdateItem,
     BatchUpdateResult,
     BatchUpdateResponse,
     FeeCreate,
     FeeUpdate,
     FeeConfigResponse,
     InvoiceCreate,
     InvoiceUpdate,
     InvoiceMove,
     InvoiceMoveResponse,
)
from .audit import AuditEntryResponse, AuditHistoryResponse
from .customer import CustomerResponse, CurrencyTotals, CustomerDetail, CustomerSummary
from .preview import (
     FeeAddPreview,
     FeeUpdatePreview,
     FeeDeletePreview,
     FeeChangesPreview,
     FullPreviewRequest,
     PricingPreviewResponse,
     FullPreviewResponse,
     BatchPreviewItem,
     BatchPreviewResult,
     BatchPreviewResponse,
)
from .snapshot import (
     CurrencySummary,
     CurrencyDelta,
     FeeChangeDetail,
     RateChangeDetail,
     InvoiceChangeDetail,
     StatusChangeDetail,
     SnapshotChanges,
     SnapshotCreate,
     SnapshotSummary,
     SnapshotDetail,
     SnapshotListResponse,
)

__all__ = [
     "ApiModel",
     "FeeTier",
     "FeeResponse",
     "InvoiceResponse",
     "LoanPricing",
     "LoanResponse",
     "PricingUpdate",
     "LoanUpdate",
     "BatchUpdateItem",
     "BatchUpdateResult",
     "BatchUpdateResponse",
     "FeeCreate",
     "FeeUpdate",
     "FeeConfigResponse",
     "InvoiceCreate",
     "InvoiceUpdate",
     "InvoiceMove",
     "InvoiceMoveResponse",
     "AuditEntryResponse",
     "AuditHistoryResponse",
     "CustomerResponse",
     "CurrencyTotals",
     "CustomerDetail",
     "CustomerSummary",
     "FeeAddPreview",
     "FeeUpdatePreview",
     "FeeDeletePreview",
     "FeeChangesPreview",
     "FullPreviewRequest",
     "PricingPreviewResponse",
     "FullPreviewResponse",
     "BatchPreviewItem",
     "BatchPreviewResult",
     "BatchPreviewResponse",
     "CurrencySummary",
     "CurrencyDelta",
     "FeeChangeDetail",
     "RateChangeDetail",
     "InvoiceChangeDetail",
     "StatusChangeDetail",
     "SnapshotChanges",
     "SnapshotCreate",
     "SnapshotSummary",
     "SnapshotDetail",
     "SnapshotListResponse",
]
