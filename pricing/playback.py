# pricing/playback.py
"""
Snapshot playback: step through a customer's recorded snapshots.

The timeline is held in chronological order (oldest first), so "previous"
is the older neighbour and "next" the newer one. Each step loads the
snapshot's loans and those of the snapshot before it for comparison.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from schemas.snapshot import SnapshotDetail, SnapshotSummary
from .api_client import ApiError

logger = logging.getLogger(__name__)

# Loan fields compared between snapshots (camelCase as stored)
COMPARED_FIELDS = (
     "totalAmount",
     "pricing.baseRate",
     "pricing.spread",
     "pricing.effectiveRate",
     "interestAmount",
     "totalFees",
     "netProceeds",
     "status",
     "pricingStatus",
)


@dataclass
class LoanDiff:
     loan_id: str
     loan_number: str
     change: str  # added, removed, modified
     fields: Dict[str, Tuple[Any, Any]] = field(default_factory=dict)


def _get_path(data: Dict[str, Any], path: str) -> Any:
     value: Any = data
     for part in path.split("."):
          if not isinstance(value, dict):
               return None
          value = value.get(part)
     return value


def compare_snapshot_loans(
     previous_loans: Optional[Sequence[Dict[str, Any]]],
     current_loans: Sequence[Dict[str, Any]],
) -> List[LoanDiff]:
     """
     Per-loan differences between two snapshots' loan data. Loans are matched
     by id; unchanged loans are left out.
     """
     previous = {loan["id"]: loan for loan in previous_loans or []}
     current = {loan["id"]: loan for loan in current_loans}
     diffs = []

     for loan_id, loan in current.items():
          before = previous.get(loan_id)
          if before is None:
               diffs.append(LoanDiff(loan_id=loan_id, loan_number=loan.get("loanNumber", ""), change="added"))
               continue
          fields = {}
          for path in COMPARED_FIELDS:
               old, new = _get_path(before, path), _get_path(loan, path)
               if old != new:
                    fields[path] = (old, new)
          if fields:
               diffs.append(LoanDiff(
                    loan_id=loan_id,
                    loan_number=loan.get("loanNumber", ""),
                    change="modified",
                    fields=fields,
               ))

     for loan_id, loan in previous.items():
          if loan_id not in current:
               diffs.append(LoanDiff(loan_id=loan_id, loan_number=loan.get("loanNumber", ""), change="removed"))

     return diffs


class SnapshotPlayback:
     """
     Playback state over one customer's timeline.

     Load failures are recorded in `error` rather than raised; the previous
     playback state is kept.
     """

     def __init__(self, client):
          self._client = client
          self.is_playback_mode = False
          self.snapshots: List[SnapshotSummary] = []
          self.current_index = -1
          self.current: Optional[SnapshotDetail] = None
          self.previous_summary: Optional[SnapshotSummary] = None
          self.previous_loans: Optional[List[Dict[str, Any]]] = None
          self.error: Optional[str] = None

     @property
     def current_snapshot_id(self) -> Optional[str]:
          return self.current.id if self.current is not None else None

     @property
     def snapshot_loans(self) -> List[Dict[str, Any]]:
          return self.current.loans if self.current is not None else []

     @property
     def has_previous(self) -> bool:
          return self.current_index > 0

     @property
     def has_next(self) -> bool:
          return 0 <= self.current_index < len(self.snapshots) - 1

     def diff(self) -> List[LoanDiff]:
          """Changes from the previous snapshot to the current one."""
          return compare_snapshot_loans(self.previous_loans, self.snapshot_loans)

     def _load(self, index: int, snapshots: List[SnapshotSummary]) -> bool:
          if index < 0 or index >= len(snapshots):
               return False
          try:
               current = self._client.get_snapshot(snapshots[index].id)
               previous_summary = snapshots[index - 1] if index > 0 else None
               previous_loans = None
               if previous_summary is not None:
                    previous_loans = self._client.get_snapshot(previous_summary.id).loans
          except ApiError as exc:
               logger.error("Failed to load snapshot %s: %s", snapshots[index].id, exc)
               self.error = exc.message or "Failed to load snapshot"
               return False

          self.snapshots = snapshots
          self.current_index = index
          self.current = current
          self.previous_summary = previous_summary
          self.previous_loans = previous_loans
          self.is_playback_mode = True
          self.error = None
          return True

     def enter(self, snapshot_id: str, snapshots: Sequence[SnapshotSummary]) -> bool:
          """
          Start playback at a snapshot. snapshots may come in any order (the
          API lists newest first); they are held oldest first.
          """
          timeline = sorted(snapshots, key=lambda s: s.timestamp)
          for index, summary in enumerate(timeline):
               if summary.id == snapshot_id:
                    return self._load(index, timeline)
          self.error = f"Snapshot {snapshot_id} is not in the timeline"
          return False

     def go_to_previous(self) -> bool:
          if not self.has_previous:
               return False
          return self._load(self.current_index - 1, self.snapshots)

     def go_to_next(self) -> bool:
          if not self.has_next:
               return False
          return self._load(self.current_index + 1, self.snapshots)

     def exit(self) -> None:
          self.is_playback_mode = False
          self.snapshots = []
          self.current_index = -1
          self.current = None
          self.previous_summary = None
          self.previous_loans = None
          self.error = None
