# pricing/__init__.py
from .change_ledger import (
     ChangeLedger,
     FeeChangeKind,
     LedgerSnapshot,
     PendingFieldChange,
     PendingFeeChange,
)
from .api_client import ApiError, PricingApiClient, call_client
from .live_calculation import LiveCalculation, PreviewResult
from .batch_preview import batch_preview_pricing
from .loan_filters import (
     MATURITY_BUCKETS,
     LoanFilters,
     FilterCounts,
     FilterResult,
     has_active_filters,
     get_days_until,
     get_maturity_bucket,
     matches_maturity_bucket,
     filter_loans,
     calculate_filter_counts,
     apply_filters,
)
from .save_changes import CommitResult, build_loan_updates, build_snapshot_changes, commit_changes
from .playback import LoanDiff, SnapshotPlayback, compare_snapshot_loans

__all__ = [
     "ChangeLedger",
     "FeeChangeKind",
     "LedgerSnapshot",
     "PendingFieldChange",
     "PendingFeeChange",
     "ApiError",
     "PricingApiClient",
     "call_client",
     "LiveCalculation",
     "PreviewResult",
     "batch_preview_pricing",
     "MATURITY_BUCKETS",
     "LoanFilters",
     "FilterCounts",
     "FilterResult",
     "has_active_filters",
     "get_days_until",
     "get_maturity_bucket",
     "matches_maturity_bucket",
     "filter_loans",
     "calculate_filter_counts",
     "apply_filters",
     "CommitResult",
     "build_loan_updates",
     "build_snapshot_changes",
     "commit_changes",
     "LoanDiff",
     "SnapshotPlayback",
     "compare_snapshot_loans",
]
