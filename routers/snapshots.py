# routers/snapshots.py
"""
Snapshot API routes (history playback).

A snapshot is recorded by the client after a successful commit; the server
summarizes the loans, computes the delta against the previous snapshot and
stores the loan data compressed.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from database import get_session
from dependencies import UserContext, get_user_context
from models import LoanSnapshot
from schemas.snapshot import (
     SnapshotCreate,
     SnapshotSummary,
     SnapshotDetail,
     SnapshotListResponse,
)
from services import snapshot_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/snapshots", tags=["snapshots"])


def _build_summary(snapshot: LoanSnapshot) -> SnapshotSummary:
     return SnapshotSummary(
          id=snapshot.id,
          customer_id=snapshot.customer_id,
          timestamp=snapshot.timestamp,
          user_id=snapshot.user_id,
          user_name=snapshot.user_name,
          summary=snapshot.summary or {},
          delta=snapshot.delta,
          changes=snapshot.changes or {},
          change_count=snapshot.change_count,
          description=snapshot.description,
     )


@router.get(
     "",
     response_model=SnapshotListResponse,
     summary="List snapshots for a customer"
)
def list_snapshots(
     customer_id: str = Query(..., alias="customerId", description="Customer whose timeline to list"),
     limit: int = Query(50, ge=1, le=500),
     skip: int = Query(0, ge=0),
     db: Session = Depends(get_session),
):
     """
     Timeline for a customer, newest first. Loan data is omitted; fetch a
     single snapshot to play it back.
     """
     snapshots = snapshot_service.get_snapshots_for_customer(db, customer_id, limit=limit, skip=skip)
     return SnapshotListResponse(
          snapshots=[_build_summary(s) for s in snapshots],
          total=snapshot_service.get_snapshot_count(db, customer_id),
          limit=limit,
          skip=skip,
     )


@router.get(
     "/{snapshot_id}",
     response_model=SnapshotDetail,
     summary="Get snapshot with loan data"
)
def get_snapshot(snapshot_id: str, db: Session = Depends(get_session)):
     snapshot = snapshot_service.get_snapshot_by_id(db, snapshot_id)
     if snapshot is None:
          raise HTTPException(
               status_code=status.HTTP_404_NOT_FOUND,
               detail=f"Snapshot with ID {snapshot_id} not found"
          )
     return SnapshotDetail(**snapshot)


@router.post(
     "",
     response_model=SnapshotSummary,
     status_code=status.HTTP_201_CREATED,
     summary="Record a snapshot"
)
def create_snapshot(
     request: SnapshotCreate,
     user: UserContext = Depends(get_user_context),
     db: Session = Depends(get_session),
):
     """
     Record a snapshot of the customer's loans after saving changes.

     - **customerId**: owner of the loans
     - **loans**: full loan state as shown to the user
     - **changes**: optional structured change details
     - **changeCount**: defaults to the number of change details
     """
     change_count = request.change_count
     if change_count is None and request.changes is not None:
          change_count = request.changes.count()

     snapshot = snapshot_service.create_snapshot(
          db,
          customer_id=request.customer_id,
          loans=request.loans,
          user_id=user.user_id,
          user_name=user.user_name,
          change_count=change_count,
          description=request.description,
          changes=request.changes,
     )
     return _build_summary(snapshot)


@router.delete(
     "",
     summary="Delete all snapshots"
)
def delete_snapshots(db: Session = Depends(get_session)):
     """Delete every snapshot. Intended for test and demo resets."""
     deleted = snapshot_service.delete_all_snapshots(db)
     logger.warning("Deleted all snapshots (%d)", deleted)
     return {"deleted": deleted}
