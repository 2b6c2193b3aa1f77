# pricing/change_ledger.py
"""
Change Ledger - uncommitted edits across many loans.

Two keyed collections:
- field changes: at most one per (loan_id, field_path), e.g. "pricing.baseRate"
- fee changes: add / update / delete, at most one update per (loan_id, fee_id)

Records are immutable. An edit never mutates a stored record; it replaces it
with a new record carrying a new id. Collections are rebound rather than
mutated, so a LedgerSnapshot taken earlier is never affected by later edits.

Usage:
     ledger = ChangeLedger()
     ledger.track_field_change(loan_id, "pricing.baseRate", "Base Rate", 5.0, 5.25)
     ledger.track_fee_add(loan_id, fee_config_id, "Arrangement Fee")

     state = ledger.snapshot()   # synchronous read for the preview engine
"""
import enum
import itertools
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping, Optional, Tuple


class FeeChangeKind(str, enum.Enum):
     ADD = "add"
     UPDATE = "update"
     DELETE = "delete"


@dataclass(frozen=True)
class PendingFieldChange:
     id: str
     loan_id: str
     field_path: str
     field_label: str
     original_value: Any
     new_value: Any
     timestamp: datetime = field(default_factory=datetime.utcnow)


@dataclass(frozen=True)
class PendingFeeChange:
     id: str
     loan_id: str
     kind: FeeChangeKind
     fee_name: str
     fee_id: Optional[str] = None
     fee_config_id: Optional[str] = None
     original_fee: Any = None  # FeeResponse or fee dict (update/delete)
     updates: Optional[Mapping[str, Any]] = None  # partial FeeUpdate fields (update)
     timestamp: datetime = field(default_factory=datetime.utcnow)


@dataclass(frozen=True)
class LedgerSnapshot:
     """Immutable view of both ledgers at one point in time."""
     changes: Tuple[PendingFieldChange, ...] = ()
     fee_changes: Tuple[PendingFeeChange, ...] = ()

     def changes_for_loan(self, loan_id: str) -> Tuple[PendingFieldChange, ...]:
          return tuple(c for c in self.changes if c.loan_id == loan_id)

     def fee_changes_for_loan(self, loan_id: str) -> Tuple[PendingFeeChange, ...]:
          return tuple(c for c in self.fee_changes if c.loan_id == loan_id)

     def find_change(self, loan_id: str, field_path: str) -> Optional[PendingFieldChange]:
          for change in self.changes:
               if change.loan_id == loan_id and change.field_path == field_path:
                    return change
          return None

     @property
     def count(self) -> int:
          return len(self.changes) + len(self.fee_changes)


def fee_attr(fee: Any, name: str, default: Any = None) -> Any:
     """Read a fee attribute from a FeeResponse or a snake/camelCase dict."""
     if fee is None:
          return default
     if isinstance(fee, Mapping):
          if name in fee:
               return fee[name]
          head, *rest = name.split("_")
          camel = head + "".join(part.title() for part in rest)
          return fee.get(camel, default)
     return getattr(fee, name, default)


class ChangeLedger:
     """Single source of truth for uncommitted field and fee edits."""

     def __init__(self):
          self._changes: Tuple[PendingFieldChange, ...] = ()
          self._fee_changes: Tuple[PendingFeeChange, ...] = ()
          self._change_ids = itertools.count(1)
          self._fee_change_ids = itertools.count(1)

     # ------------------------------------------------------------------
     # Field changes
     # ------------------------------------------------------------------

     def track_field_change(
          self,
          loan_id: str,
          field_path: str,
          field_label: str,
          original_value: Any,
          new_value: Any,
     ) -> None:
          """
          Record an edit of one field. A later edit of the same field replaces
          the earlier one; editing back to the original value removes it.
          """
          if original_value == new_value:
               self._changes = tuple(
                    c for c in self._changes
                    if not (c.loan_id == loan_id and c.field_path == field_path)
               )
               return

          change = PendingFieldChange(
               id=f"change-{next(self._change_ids)}",
               loan_id=loan_id,
               field_path=field_path,
               field_label=field_label,
               original_value=original_value,
               new_value=new_value,
          )
          changes = list(self._changes)
          for index, existing in enumerate(changes):
               if existing.loan_id == loan_id and existing.field_path == field_path:
                    changes[index] = change
                    break
          else:
               changes.append(change)
          self._changes = tuple(changes)

     def revert(self, change_id: str) -> None:
          self._changes = tuple(c for c in self._changes if c.id != change_id)

     def revert_all_for_loan(self, loan_id: str, include_fees: bool = True) -> None:
          """
          Drop every pending edit of a loan. Fee changes are dropped too unless
          include_fees is False.
          """
          self._changes = tuple(c for c in self._changes if c.loan_id != loan_id)
          if include_fees:
               self._fee_changes = tuple(c for c in self._fee_changes if c.loan_id != loan_id)

     def clear_all(self) -> None:
          self._changes = ()
          self._fee_changes = ()

     # ------------------------------------------------------------------
     # Fee changes
     # ------------------------------------------------------------------

     def track_fee_add(self, loan_id: str, fee_config_id: str, fee_name: str) -> None:
          self._fee_changes = self._fee_changes + (
               PendingFeeChange(
                    id=f"fee-change-{next(self._fee_change_ids)}",
                    loan_id=loan_id,
                    kind=FeeChangeKind.ADD,
                    fee_name=fee_name,
                    fee_config_id=fee_config_id,
               ),
          )

     def track_fee_update(self, loan_id: str, fee_id: str, original_fee: Any, updates: Mapping[str, Any]) -> None:
          """Record a fee update; the last update of a fee wins."""
          change = PendingFeeChange(
               id=f"fee-change-{next(self._fee_change_ids)}",
               loan_id=loan_id,
               kind=FeeChangeKind.UPDATE,
               fee_name=fee_attr(original_fee, "name", ""),
               fee_id=fee_id,
               original_fee=original_fee,
               updates=dict(updates),
          )
          fee_changes = list(self._fee_changes)
          for index, existing in enumerate(fee_changes):
               if (existing.loan_id == loan_id and existing.fee_id == fee_id
                         and existing.kind == FeeChangeKind.UPDATE):
                    fee_changes[index] = change
                    break
          else:
               fee_changes.append(change)
          self._fee_changes = tuple(fee_changes)

     def track_fee_delete(self, loan_id: str, fee_id: str, original_fee: Any) -> None:
          """
          Record a fee deletion. Deleting a fee whose config has a pending add
          on the loan cancels that add instead.
          """
          fee_config_id = fee_attr(original_fee, "fee_config_id")
          for existing in self._fee_changes:
               if (existing.loan_id == loan_id and existing.kind == FeeChangeKind.ADD
                         and existing.fee_config_id == fee_config_id):
                    self._fee_changes = tuple(c for c in self._fee_changes if c is not existing)
                    return

          self._fee_changes = self._fee_changes + (
               PendingFeeChange(
                    id=f"fee-change-{next(self._fee_change_ids)}",
                    loan_id=loan_id,
                    kind=FeeChangeKind.DELETE,
                    fee_name=fee_attr(original_fee, "name", ""),
                    fee_id=fee_id,
                    fee_config_id=fee_config_id,
                    original_fee=original_fee,
               ),
          )

     def revert_fee(self, change_id: str) -> None:
          self._fee_changes = tuple(c for c in self._fee_changes if c.id != change_id)

     # ------------------------------------------------------------------
     # Queries
     # ------------------------------------------------------------------

     def snapshot(self) -> LedgerSnapshot:
          """The sanctioned synchronous read of the whole ledger."""
          return LedgerSnapshot(changes=self._changes, fee_changes=self._fee_changes)

     @property
     def changes(self) -> Tuple[PendingFieldChange, ...]:
          return self._changes

     @property
     def fee_changes(self) -> Tuple[PendingFeeChange, ...]:
          return self._fee_changes

     def _find(self, loan_id: str, field_path: str) -> Optional[PendingFieldChange]:
          return self.snapshot().find_change(loan_id, field_path)

     def is_field_modified(self, loan_id: str, field_path: str) -> bool:
          return self._find(loan_id, field_path) is not None

     def get_original_value(self, loan_id: str, field_path: str) -> Any:
          change = self._find(loan_id, field_path)
          return change.original_value if change else None

     def get_new_value(self, loan_id: str, field_path: str) -> Any:
          change = self._find(loan_id, field_path)
          return change.new_value if change else None

     def get_changes_for_loan(self, loan_id: str) -> Tuple[PendingFieldChange, ...]:
          return self.snapshot().changes_for_loan(loan_id)

     def get_fee_changes_for_loan(self, loan_id: str) -> Tuple[PendingFeeChange, ...]:
          return self.snapshot().fee_changes_for_loan(loan_id)

     def _fee_changes_of_kind(self, loan_id: str, kind: FeeChangeKind) -> Tuple[PendingFeeChange, ...]:
          return tuple(c for c in self._fee_changes if c.loan_id == loan_id and c.kind == kind)

     def get_pending_fee_adds(self, loan_id: str) -> Tuple[PendingFeeChange, ...]:
          return self._fee_changes_of_kind(loan_id, FeeChangeKind.ADD)

     def get_pending_fee_updates(self, loan_id: str) -> Tuple[PendingFeeChange, ...]:
          return self._fee_changes_of_kind(loan_id, FeeChangeKind.UPDATE)

     def get_pending_fee_deletes(self, loan_id: str) -> Tuple[PendingFeeChange, ...]:
          return self._fee_changes_of_kind(loan_id, FeeChangeKind.DELETE)

     def is_fee_deleted(self, loan_id: str, fee_id: str) -> bool:
          return any(c.fee_id == fee_id for c in self.get_pending_fee_deletes(loan_id))

     def get_fee_updates(self, loan_id: str, fee_id: str) -> Optional[Mapping[str, Any]]:
          for change in self.get_pending_fee_updates(loan_id):
               if change.fee_id == fee_id:
                    return change.updates
          return None

     def has_changes(self) -> bool:
          return bool(self._changes) or bool(self._fee_changes)

     def has_changes_for_loan(self, loan_id: str) -> bool:
          return (
               any(c.loan_id == loan_id for c in self._changes)
               or any(c.loan_id == loan_id for c in self._fee_changes)
          )
