# pricing/save_changes.py
"""
Commit pending ledger edits.

The ledger is translated into persistence requests:
1. One batch update with each loan's pricing and status field changes
2. Fee adds, updates and deletes, in the order they were recorded
3. The customer's loans are reloaded and the ledger is cleared
4. A snapshot of the reloaded loans is recorded with structured change details

Any ApiError in steps 1-2 propagates and leaves the ledger untouched. Fee
mutations already applied before a failure stay applied on the server.
"""
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from schemas.loan import (
     LoanResponse,
     PricingUpdate,
     LoanUpdate,
     BatchUpdateItem,
     FeeCreate,
     FeeUpdate,
)
from schemas.snapshot import (
     SnapshotChanges,
     SnapshotCreate,
     SnapshotSummary,
     FeeChangeDetail,
     RateChangeDetail,
     StatusChangeDetail,
)
from .api_client import ApiError
from .change_ledger import ChangeLedger, FeeChangeKind, LedgerSnapshot, PendingFeeChange, fee_attr
from .live_calculation import PRICING_FIELDS

logger = logging.getLogger(__name__)

STATUS_FIELDS = {
     "status": "status",
     "pricingStatus": "pricing_status",
}


@dataclass
class CommitResult:
     loans: List[LoanResponse]
     snapshot: Optional[SnapshotSummary]
     change_count: int


def build_loan_updates(state: LedgerSnapshot) -> List[BatchUpdateItem]:
     """
     One BatchUpdateItem per loan with pricing or status edits, in the order
     loans were first edited. Unknown field paths are skipped.
     """
     updates: Dict[str, Dict[str, object]] = {}
     for change in state.changes:
          if change.field_path in PRICING_FIELDS:
               entry = updates.setdefault(change.loan_id, {})
               entry.setdefault("pricing", {})[PRICING_FIELDS[change.field_path]] = change.new_value
          elif change.field_path in STATUS_FIELDS:
               entry = updates.setdefault(change.loan_id, {})
               entry[STATUS_FIELDS[change.field_path]] = change.new_value
          else:
               logger.debug("Skipping unsupported field change %s on loan %s", change.field_path, change.loan_id)

     items = []
     for loan_id, entry in updates.items():
          pricing = entry.pop("pricing", None)
          items.append(BatchUpdateItem(
               loan_id=loan_id,
               updates=LoanUpdate(
                    pricing=PricingUpdate(**pricing) if pricing else None,
                    **entry,
               ),
          ))
     return items


def _find_added_fee(loan: Optional[LoanResponse], original: Optional[LoanResponse], fee_config_id: str):
     if loan is None:
          return None
     existing = {fee.id for fee in original.fees} if original is not None else set()
     for fee in loan.fees:
          if fee.fee_config_id == fee_config_id and fee.id not in existing:
               return fee
     return None


def _fee_detail(
     change: PendingFeeChange,
     original: Optional[LoanResponse],
     refreshed: Optional[LoanResponse],
) -> FeeChangeDetail:
     loan = refreshed or original
     loan_number = loan.loan_number if loan is not None else change.loan_id
     currency = loan.currency if loan is not None else ""

     if change.kind == FeeChangeKind.ADD:
          fee = _find_added_fee(refreshed, original, change.fee_config_id)
          return FeeChangeDetail(
               action="added",
               loan_id=change.loan_id,
               loan_number=loan_number,
               fee_id=fee.id if fee is not None else change.fee_config_id,
               fee_name=change.fee_name,
               fee_code=fee.code if fee is not None else "",
               currency=currency,
               new_amount=fee.calculated_amount if fee is not None else None,
          )

     old_amount = fee_attr(change.original_fee, "calculated_amount")
     if change.kind == FeeChangeKind.DELETE:
          return FeeChangeDetail(
               action="deleted",
               loan_id=change.loan_id,
               loan_number=loan_number,
               fee_id=change.fee_id,
               fee_name=change.fee_name,
               fee_code=fee_attr(change.original_fee, "code", ""),
               currency=currency,
               old_amount=old_amount,
          )

     new_amount = (change.updates or {}).get("calculated_amount")
     if refreshed is not None:
          for fee in refreshed.fees:
               if fee.id == change.fee_id:
                    new_amount = fee.calculated_amount
     return FeeChangeDetail(
          action="modified",
          loan_id=change.loan_id,
          loan_number=loan_number,
          fee_id=change.fee_id,
          fee_name=change.fee_name,
          fee_code=fee_attr(change.original_fee, "code", ""),
          currency=currency,
          old_amount=old_amount,
          new_amount=new_amount,
     )


def build_snapshot_changes(
     state: LedgerSnapshot,
     loans: Sequence[LoanResponse],
     refreshed: Sequence[LoanResponse] = (),
) -> SnapshotChanges:
     """
     Structured change details for the audit trail.

     loans are the loans as they were before saving; refreshed (if given)
     are the reloaded loans, used for new effective rates and fee amounts.
     """
     before = {loan.id: loan for loan in loans}
     after = {loan.id: loan for loan in refreshed}
     changes = SnapshotChanges()

     for change in state.changes:
          original = before.get(change.loan_id)
          loan_number = original.loan_number if original is not None else change.loan_id
          if change.field_path in PRICING_FIELDS:
               field_name = change.field_path.split(".", 1)[1]
               old_rate = original.pricing.effective_rate if original is not None else 0
               if change.loan_id in after:
                    new_rate = after[change.loan_id].pricing.effective_rate
               else:
                    new_rate = old_rate + (change.new_value - change.original_value)
               changes.rates.append(RateChangeDetail(
                    loan_id=change.loan_id,
                    loan_number=loan_number,
                    currency=original.currency if original is not None else "",
                    field=field_name,
                    old_value=change.original_value,
                    new_value=change.new_value,
                    old_effective_rate=old_rate,
                    new_effective_rate=new_rate,
               ))
          elif change.field_path in STATUS_FIELDS:
               changes.statuses.append(StatusChangeDetail(
                    loan_id=change.loan_id,
                    loan_number=loan_number,
                    field=change.field_path,
                    old_value=str(change.original_value),
                    new_value=str(change.new_value),
               ))

     for fee_change in state.fee_changes:
          changes.fees.append(_fee_detail(fee_change, before.get(fee_change.loan_id), after.get(fee_change.loan_id)))

     return changes


def _apply_fee_change(client, change: PendingFeeChange) -> None:
     if change.kind == FeeChangeKind.ADD and change.fee_config_id:
          client.add_fee(change.loan_id, FeeCreate(fee_config_id=change.fee_config_id))
     elif change.kind == FeeChangeKind.UPDATE and change.fee_id and change.updates:
          client.update_fee(change.loan_id, change.fee_id, FeeUpdate(**change.updates))
     elif change.kind == FeeChangeKind.DELETE and change.fee_id:
          client.remove_fee(change.loan_id, change.fee_id)


def commit_changes(
     ledger: ChangeLedger,
     client,
     customer_id: str,
     loans: Sequence[LoanResponse],
     description: Optional[str] = None,
     live=None,
) -> Optional[CommitResult]:
     """
     Persist every pending edit, clear the ledger and record a snapshot.

     Args:
          ledger: Pending edits
          client: PricingApiClient (or compatible)
          customer_id: Owner of the loans
          loans: Loans as currently displayed, before saving
          description: Optional snapshot description
          live: LiveCalculation whose previews are cleared on success

     Returns:
          CommitResult, or None if there was nothing to save

     Raises:
          ApiError: If a loan or fee update fails
     """
     state = ledger.snapshot()
     if state.count == 0:
          return None

     items = build_loan_updates(state)
     if items:
          response = client.batch_update_loans(items)
          failed = [r for r in response.results if not r.success]
          if failed:
               raise ApiError(f"Failed to update loan {failed[0].loan_id}: {failed[0].error}")

     for fee_change in state.fee_changes:
          _apply_fee_change(client, fee_change)

     refreshed = client.get_loans(customer_id=customer_id)
     ledger.clear_all()
     if live is not None:
          live.clear_all_previews()
     logger.info("Saved %d changes for customer %s", state.count, customer_id)

     changes = build_snapshot_changes(state, loans, refreshed)
     snapshot = client.create_snapshot(SnapshotCreate(
          customer_id=customer_id,
          loans=[loan.to_payload() for loan in refreshed],
          changes=changes,
          change_count=state.count,
          description=description,
     ))
     return CommitResult(loans=refreshed, snapshot=snapshot, change_count=state.count)
