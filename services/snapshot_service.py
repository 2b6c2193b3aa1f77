# services/snapshot_service.py
"""
Snapshot Service - immutable point-in-time captures of a customer's loans.

When changes are saved:
1. Summarize the loan set per currency
2. Compute the delta against the customer's most recent prior snapshot
3. Store the loans gzip-compressed next to summary and delta

Snapshots are insert-only: a delta is computed once at creation and never
recomputed, even if an older snapshot is inserted later. Playback reads
them back in timeline order.
"""
import gzip
import json
import logging
import os
from datetime import datetime
from typing import Optional, List, Dict, Any

from sqlalchemy.orm import Session
from sqlalchemy import desc

from models import LoanSnapshot
from schemas.snapshot import SnapshotChanges

logger = logging.getLogger(__name__)

SNAPSHOT_RETENTION_LIMIT = int(os.getenv("SNAPSHOT_RETENTION_LIMIT", "100"))

SUMMARY_FIELDS = ("loanCount", "totalAmount", "totalFees", "totalInterest", "netProceeds", "avgRate")


def _empty_summary() -> Dict[str, float]:
     return {field: 0 for field in SUMMARY_FIELDS}


# ---------------------------------------------------------------------------
# Compression
# ---------------------------------------------------------------------------

def compress_loans(loans: List[Dict[str, Any]]) -> bytes:
     """Serialize loans to JSON and gzip them for storage."""
     payload = json.dumps(loans, separators=(",", ":"), default=str)
     return gzip.compress(payload.encode("utf-8"))


def decompress_loans(data: bytes) -> List[Dict[str, Any]]:
     """Inverse of compress_loans."""
     return json.loads(gzip.decompress(data).decode("utf-8"))


# ---------------------------------------------------------------------------
# Summary and delta
# ---------------------------------------------------------------------------

def calculate_summary(loans: List[Dict[str, Any]]) -> Dict[str, Dict[str, float]]:
     """
     Per-currency totals for a loan set (camelCase loan dicts as sent by clients).

     avgRate is the effective rate weighted by loan amount.
     """
     summary: Dict[str, Dict[str, float]] = {}
     weighted_rates: Dict[str, float] = {}

     for loan in loans:
          currency = loan["currency"]
          entry = summary.setdefault(currency, _empty_summary())
          amount = loan.get("totalAmount", 0) or 0
          entry["loanCount"] += 1
          entry["totalAmount"] += amount
          entry["totalFees"] += loan.get("totalFees", 0) or 0
          entry["totalInterest"] += loan.get("interestAmount", 0) or 0
          entry["netProceeds"] += loan.get("netProceeds", 0) or 0
          effective_rate = (loan.get("pricing") or {}).get("effectiveRate", 0) or 0
          weighted_rates[currency] = weighted_rates.get(currency, 0) + effective_rate * amount

     for currency, entry in summary.items():
          if entry["totalAmount"] > 0:
               entry["avgRate"] = weighted_rates[currency] / entry["totalAmount"]

     return summary


def calculate_delta(
     current_summary: Dict[str, Dict[str, float]],
     previous_summary: Optional[Dict[str, Dict[str, float]]],
) -> Optional[Dict[str, Dict[str, float]]]:
     """
     Change per currency between two summaries.

     Returns None when there is no previous summary. A currency present on
     only one side is compared against an all-zero summary. avgRateChange is
     in basis points (rates are percentages, so 1bp = 0.01).
     """
     if previous_summary is None:
          return None

     delta = {}
     for currency in sorted(set(current_summary) | set(previous_summary)):
          current = current_summary.get(currency) or _empty_summary()
          previous = previous_summary.get(currency) or _empty_summary()
          delta[currency] = {
               "feesChange": current["totalFees"] - previous["totalFees"],
               "interestChange": current["totalInterest"] - previous["totalInterest"],
               "netProceedsChange": current["netProceeds"] - previous["netProceeds"],
               "avgRateChange": (current["avgRate"] - previous["avgRate"]) * 100,
          }
     return delta


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------

def get_latest_snapshot(db: Session, customer_id: str, as_of: Optional[datetime] = None) -> Optional[LoanSnapshot]:
     """Most recent snapshot for the customer by timestamp (at or before as_of if given), or None."""
     query = db.query(LoanSnapshot).filter(LoanSnapshot.customer_id == customer_id)
     if as_of is not None:
          query = query.filter(LoanSnapshot.timestamp <= as_of)
     return (
          query
          .order_by(desc(LoanSnapshot.timestamp))
          .limit(1)
          .first()
     )


def create_snapshot(
     db: Session,
     customer_id: str,
     loans: List[Dict[str, Any]],
     user_id: Optional[str] = None,
     user_name: Optional[str] = None,
     change_count: Optional[int] = None,
     description: Optional[str] = None,
     changes: Optional[SnapshotChanges] = None,
     timestamp: Optional[datetime] = None,
     retention_limit: int = SNAPSHOT_RETENTION_LIMIT,
) -> LoanSnapshot:
     """
     Record a snapshot after changes are saved.

     The delta is taken against the customer's snapshot immediately preceding
     timestamp and is stored as-is from then on; snapshots recorded later,
     whatever their timestamp, never rewrite it.
     """
     if timestamp is None:
          timestamp = datetime.utcnow()

     previous = get_latest_snapshot(db, customer_id, as_of=timestamp)
     summary = calculate_summary(loans)
     delta = calculate_delta(summary, previous.summary if previous is not None else None)

     if changes is None:
          changes = SnapshotChanges()

     snapshot = LoanSnapshot(
          customer_id=customer_id,
          timestamp=timestamp,
          user_id=user_id or "system",
          user_name=user_name or "System",
          loans_compressed=compress_loans(loans),
          summary=summary,
          delta=delta,
          changes=changes.model_dump(by_alias=True, exclude_none=True, mode="json"),
          change_count=change_count if change_count is not None else 0,
          description=description,
     )
     db.add(snapshot)
     db.flush()
     logger.info(
          "Recorded snapshot %s for customer %s (%d loans, %d changes)",
          snapshot.id, customer_id, len(loans), snapshot.change_count,
     )

     prune_old_snapshots(db, customer_id, retention_limit)
     return snapshot


def get_snapshots_for_customer(db: Session, customer_id: str, limit: int = 50, skip: int = 0) -> List[LoanSnapshot]:
     """Timeline for a customer, newest first."""
     return (
          db.query(LoanSnapshot)
          .filter(LoanSnapshot.customer_id == customer_id)
          .order_by(desc(LoanSnapshot.timestamp))
          .offset(skip)
          .limit(limit)
          .all()
     )


def get_snapshot_by_id(db: Session, snapshot_id: str) -> Optional[Dict[str, Any]]:
     """
     Full snapshot with decompressed loans.

     Returns:
          dict of snapshot fields plus "loans", or None if not found
     """
     snapshot = db.query(LoanSnapshot).filter(LoanSnapshot.id == snapshot_id).first()
     if snapshot is None:
          return None

     return {
          "id": snapshot.id,
          "customer_id": snapshot.customer_id,
          "timestamp": snapshot.timestamp,
          "user_id": snapshot.user_id,
          "user_name": snapshot.user_name,
          "summary": snapshot.summary,
          "delta": snapshot.delta,
          "changes": snapshot.changes or SnapshotChanges().model_dump(by_alias=True),
          "change_count": snapshot.change_count,
          "description": snapshot.description,
          "loans": decompress_loans(snapshot.loans_compressed),
     }


def snapshot_exists(db: Session, snapshot_id: str) -> bool:
     return db.query(LoanSnapshot.id).filter(LoanSnapshot.id == snapshot_id).first() is not None


def get_snapshot_count(db: Session, customer_id: str) -> int:
     return db.query(LoanSnapshot).filter(LoanSnapshot.customer_id == customer_id).count()


def prune_old_snapshots(db: Session, customer_id: str, retention_limit: int = SNAPSHOT_RETENTION_LIMIT) -> int:
     """
     Delete a customer's oldest snapshots beyond the retention limit.

     Returns:
          Number of snapshots deleted
     """
     if get_snapshot_count(db, customer_id) <= retention_limit:
          return 0

     to_delete = (
          db.query(LoanSnapshot)
          .filter(LoanSnapshot.customer_id == customer_id)
          .order_by(desc(LoanSnapshot.timestamp))
          .offset(retention_limit)
          .all()
     )
     for snapshot in to_delete:
          db.delete(snapshot)
     db.flush()

     logger.info("Pruned %d snapshots for customer %s", len(to_delete), customer_id)
     return len(to_delete)


def delete_all_snapshots(db: Session) -> int:
     """Delete every snapshot (test cleanup). Returns the number deleted."""
     deleted = db.query(LoanSnapshot).delete()
     db.flush()
     return deleted
