# routers/loans.py
"""
Loan API routes.

Provides loan reads and updates, fee and invoice management, the per-loan
audit trail, and the pricing preview endpoints consumed by the live preview
engine:
- POST /api/loans/{id}/preview-pricing: pricing-only preview
- POST /api/loans/{id}/preview-full: pricing and pending fee changes
- POST /api/loans/batch-preview-pricing: many loans at once
"""
import logging
from datetime import datetime
from typing import Optional, List

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from database import get_session
from dependencies import UserContext, get_user_context
from models import Loan
from services import LoanService, audit_service
from schemas.loan import (
     LoanResponse,
     LoanPricing,
     FeeResponse,
     InvoiceResponse,
     PricingUpdate,
     LoanUpdate,
     BatchUpdateItem,
     BatchUpdateResult,
     BatchUpdateResponse,
     FeeCreate,
     FeeUpdate,
     InvoiceCreate,
     InvoiceUpdate,
     InvoiceMove,
     InvoiceMoveResponse,
)
from schemas.audit import AuditEntryResponse, AuditHistoryResponse
from schemas.preview import (
     FullPreviewRequest,
     FullPreviewResponse,
     PricingPreviewResponse,
     BatchPreviewItem,
     BatchPreviewResult,
     BatchPreviewResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/loans", tags=["loans"])


def _value(enum_or_str) -> Optional[str]:
     return enum_or_str.value if hasattr(enum_or_str, "value") else enum_or_str


def build_loan_response(loan: Loan) -> LoanResponse:
     """Build a LoanResponse with nested pricing, fees and invoices."""
     return LoanResponse(
          id=loan.id,
          loan_number=loan.loan_number,
          customer_id=loan.customer_id,
          borrower_id=loan.borrower_id,
          borrower_name=loan.borrower_name,
          total_amount=loan.total_amount,
          outstanding_amount=loan.outstanding_amount or 0,
          total_invoice_amount=loan.total_invoice_amount or 0,
          currency=loan.currency,
          status=_value(loan.status),
          pricing_status=_value(loan.pricing_status),
          start_date=loan.start_date,
          maturity_date=loan.maturity_date,
          pricing=LoanPricing(
               base_rate=loan.base_rate,
               spread=loan.spread,
               effective_rate=loan.effective_rate,
               day_count_convention=_value(loan.day_count_convention),
               accrual_method=_value(loan.accrual_method),
          ),
          interest_amount=loan.interest_amount,
          total_fees=loan.total_fees,
          net_proceeds=loan.net_proceeds,
          fees=[
               FeeResponse(
                    id=fee.id,
                    loan_id=fee.loan_id,
                    fee_config_id=fee.fee_config_id,
                    code=fee.code,
                    name=fee.name,
                    calculation_type=_value(fee.calculation_type),
                    flat_amount=fee.flat_amount,
                    rate=fee.rate,
                    basis_amount=_value(fee.basis_amount),
                    tiers=fee.tiers,
                    calculated_amount=fee.calculated_amount,
                    currency=fee.currency,
                    is_waived=fee.is_waived,
               )
               for fee in loan.fees
          ],
          invoices=[
               InvoiceResponse(
                    id=inv.id,
                    loan_id=inv.loan_id,
                    invoice_number=inv.invoice_number,
                    buyer_name=inv.buyer_name,
                    amount=inv.amount,
                    currency=inv.currency,
                    issue_date=inv.issue_date,
                    due_date=inv.due_date,
                    status=_value(inv.status),
               )
               for inv in loan.invoices
          ],
     )


def _not_found(loan_id: str) -> HTTPException:
     return HTTPException(
          status_code=status.HTTP_404_NOT_FOUND,
          detail=f"Loan with ID {loan_id} not found"
     )


def _update_error(exc: ValueError) -> HTTPException:
     message = str(exc)
     code = status.HTTP_404_NOT_FOUND if "not found" in message else status.HTTP_400_BAD_REQUEST
     return HTTPException(status_code=code, detail=message)


@router.get(
     "",
     response_model=List[LoanResponse],
     summary="List loans with filters"
)
def list_loans(
     customer_id: Optional[str] = Query(None, alias="customerId", description="Filter by customer ID"),
     currency: Optional[str] = Query(None, description="Filter by currency"),
     loan_status: Optional[str] = Query(None, alias="status", description="Filter by loan status"),
     db: Session = Depends(get_session),
):
     """
     Retrieve loans, optionally filtered by customer, currency and status.
     """
     try:
          loans = LoanService.list_loans(db, customer_id=customer_id, currency=currency, status=loan_status)
     except ValueError as exc:
          raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
     return [build_loan_response(loan) for loan in loans]


# ---------------------------------------------------------------------------
# Batch routes (must come before /{loan_id} routes)
# ---------------------------------------------------------------------------

@router.post(
     "/batch-preview-pricing",
     response_model=BatchPreviewResponse,
     summary="Preview pricing for multiple loans"
)
def batch_preview_pricing(
     items: List[BatchPreviewItem],
     db: Session = Depends(get_session),
):
     """
     Preview pricing for many loans at once (bulk edit flows).

     Each item succeeds or fails on its own; a missing loan is reported as a
     failed item rather than failing the whole request.
     """
     results = []
     for item in items:
          preview = LoanService.preview_loan_pricing(db, item.loan_id, item.pricing)
          if preview is None:
               results.append(BatchPreviewResult(
                    loan_id=item.loan_id,
                    success=False,
                    error=f"Loan with ID {item.loan_id} not found",
               ))
               continue
          results.append(BatchPreviewResult(
               loan_id=item.loan_id,
               success=True,
               preview=PricingPreviewResponse(**preview),
          ))
     return BatchPreviewResponse(results=results)


@router.put(
     "/batch",
     response_model=BatchUpdateResponse,
     summary="Update multiple loans"
)
def batch_update_loans(
     items: List[BatchUpdateItem],
     user: UserContext = Depends(get_user_context),
     db: Session = Depends(get_session),
):
     """
     Apply updates to many loans; each item reports its own outcome.
     """
     results = []
     for item in items:
          try:
               loan = LoanService.update_loan(db, item.loan_id, item.updates, user)
          except ValueError as exc:
               logger.warning("Batch update of loan %s failed: %s", item.loan_id, exc)
               results.append(BatchUpdateResult(loan_id=item.loan_id, success=False, error=str(exc)))
               continue
          results.append(BatchUpdateResult(loan_id=item.loan_id, success=True, loan=build_loan_response(loan)))
     return BatchUpdateResponse(results=results)


# ---------------------------------------------------------------------------
# Single loan
# ---------------------------------------------------------------------------

@router.get(
     "/{loan_id}",
     response_model=LoanResponse,
     summary="Get loan by ID"
)
def get_loan(loan_id: str, db: Session = Depends(get_session)):
     loan = LoanService.get_loan(db, loan_id)
     if loan is None:
          raise _not_found(loan_id)
     return build_loan_response(loan)


@router.put(
     "/{loan_id}",
     response_model=LoanResponse,
     summary="Update loan pricing or status"
)
def update_loan(
     loan_id: str,
     updates: LoanUpdate,
     user: UserContext = Depends(get_user_context),
     db: Session = Depends(get_session),
):
     """
     Update a loan's pricing (baseRate, spread), status or pricing status.
     Derived totals are recalculated.
     """
     try:
          loan = LoanService.update_loan(db, loan_id, updates, user)
     except ValueError as exc:
          raise _update_error(exc)
     return build_loan_response(loan)


@router.post(
     "/{loan_id}/preview-pricing",
     response_model=PricingPreviewResponse,
     summary="Preview pricing without saving"
)
def preview_pricing(loan_id: str, pricing: PricingUpdate, db: Session = Depends(get_session)):
     preview = LoanService.preview_loan_pricing(db, loan_id, pricing)
     if preview is None:
          raise _not_found(loan_id)
     return PricingPreviewResponse(**preview)


@router.post(
     "/{loan_id}/preview-full",
     response_model=FullPreviewResponse,
     summary="Preview pricing and fee changes without saving"
)
def preview_full(loan_id: str, body: FullPreviewRequest, db: Session = Depends(get_session)):
     """
     Preview full loan state including pending fee changes.

     - **pricing**: optional baseRate / spread override
     - **feeChanges**: optional adds (feeConfigId), updates (feeId, calculatedAmount), deletes (feeId)

     Returns recalculated totals next to the stored originals.
     """
     preview = LoanService.preview_full_loan_state(db, loan_id, body.pricing, body.fee_changes)
     if preview is None:
          raise _not_found(loan_id)
     return FullPreviewResponse(**preview)


# ---------------------------------------------------------------------------
# Fees
# ---------------------------------------------------------------------------

@router.post(
     "/{loan_id}/fees",
     response_model=LoanResponse,
     status_code=status.HTTP_201_CREATED,
     summary="Add a fee to a loan"
)
def add_fee(
     loan_id: str,
     request: FeeCreate,
     user: UserContext = Depends(get_user_context),
     db: Session = Depends(get_session),
):
     try:
          loan = LoanService.add_fee_to_loan(db, loan_id, request, user)
     except ValueError as exc:
          raise _update_error(exc)
     return build_loan_response(loan)


@router.put(
     "/{loan_id}/fees/{fee_id}",
     response_model=LoanResponse,
     summary="Update a loan fee"
)
def update_fee(
     loan_id: str,
     fee_id: str,
     request: FeeUpdate,
     user: UserContext = Depends(get_user_context),
     db: Session = Depends(get_session),
):
     try:
          loan = LoanService.update_fee(db, loan_id, fee_id, request, user)
     except ValueError as exc:
          raise _update_error(exc)
     return build_loan_response(loan)


@router.delete(
     "/{loan_id}/fees/{fee_id}",
     response_model=LoanResponse,
     summary="Remove a fee from a loan"
)
def remove_fee(
     loan_id: str,
     fee_id: str,
     user: UserContext = Depends(get_user_context),
     db: Session = Depends(get_session),
):
     try:
          loan = LoanService.remove_fee(db, loan_id, fee_id, user)
     except ValueError as exc:
          raise _update_error(exc)
     return build_loan_response(loan)


# ---------------------------------------------------------------------------
# Invoices
# ---------------------------------------------------------------------------

@router.post(
     "/{loan_id}/invoices",
     response_model=LoanResponse,
     status_code=status.HTTP_201_CREATED,
     summary="Add an invoice to a loan"
)
def add_invoice(
     loan_id: str,
     request: InvoiceCreate,
     user: UserContext = Depends(get_user_context),
     db: Session = Depends(get_session),
):
     try:
          loan = LoanService.add_invoice(db, loan_id, request, user)
     except ValueError as exc:
          raise _update_error(exc)
     return build_loan_response(loan)


@router.put(
     "/{loan_id}/invoices/{invoice_id}",
     response_model=LoanResponse,
     summary="Update an invoice on a loan"
)
def update_invoice(
     loan_id: str,
     invoice_id: str,
     request: InvoiceUpdate,
     user: UserContext = Depends(get_user_context),
     db: Session = Depends(get_session),
):
     try:
          loan = LoanService.update_invoice(db, loan_id, invoice_id, request, user)
     except ValueError as exc:
          raise _update_error(exc)
     return build_loan_response(loan)


@router.delete(
     "/{loan_id}/invoices/{invoice_id}",
     response_model=LoanResponse,
     summary="Remove an invoice from a loan"
)
def remove_invoice(
     loan_id: str,
     invoice_id: str,
     user: UserContext = Depends(get_user_context),
     db: Session = Depends(get_session),
):
     """Remove an invoice. A loan's last invoice cannot be removed (400)."""
     try:
          loan = LoanService.remove_invoice(db, loan_id, invoice_id, user)
     except ValueError as exc:
          raise _update_error(exc)
     return build_loan_response(loan)


@router.post(
     "/{loan_id}/invoices/{invoice_id}/move",
     response_model=InvoiceMoveResponse,
     summary="Move an invoice to another loan"
)
def move_invoice(
     loan_id: str,
     invoice_id: str,
     request: InvoiceMove,
     user: UserContext = Depends(get_user_context),
     db: Session = Depends(get_session),
):
     """
     Move an invoice to another loan in the same currency.

     Returns both loans with their totals recalculated.
     """
     try:
          moved = LoanService.move_invoice(db, loan_id, invoice_id, request.target_loan_id, user)
     except ValueError as exc:
          raise _update_error(exc)
     return InvoiceMoveResponse(
          source_loan=build_loan_response(moved["source_loan"]),
          target_loan=build_loan_response(moved["target_loan"]),
     )


# ---------------------------------------------------------------------------
# Audit trail
# ---------------------------------------------------------------------------

@router.get(
     "/{loan_id}/audit",
     response_model=AuditHistoryResponse,
     summary="Get a loan's audit history"
)
def get_loan_audit(
     loan_id: str,
     limit: int = Query(100, ge=1, le=500),
     skip: int = Query(0, ge=0),
     start_date: Optional[datetime] = Query(None, alias="startDate"),
     end_date: Optional[datetime] = Query(None, alias="endDate"),
     field_name: Optional[str] = Query(None, alias="fieldName"),
     db: Session = Depends(get_session),
):
     """
     Changes to the loan and to its fees and invoices, newest first.
     """
     if LoanService.get_loan(db, loan_id) is None:
          raise _not_found(loan_id)
     entries, total = audit_service.get_loan_audit_history(
          db,
          loan_id,
          limit=limit,
          skip=skip,
          start_date=start_date,
          end_date=end_date,
          field_name=field_name,
     )
     return AuditHistoryResponse(
          entries=[
               AuditEntryResponse(
                    id=entry.id,
                    entity_type=_value(entry.entity_type),
                    entity_id=entry.entity_id,
                    loan_id=entry.loan_id,
                    action=_value(entry.action),
                    field_name=entry.field_name,
                    old_value=entry.old_value,
                    new_value=entry.new_value,
                    user_id=entry.user_id,
                    user_name=entry.user_name,
                    timestamp=entry.timestamp,
               )
               for entry in entries
          ],
          total=total,
     )
