# services/loan_service.py
"""
Loan Service - Business logic layer for loan pricing operations.

This service handles loan lookups, pricing previews, pricing/status updates,
fee and invoice management, separate from the API layer. Every mutation
leaves the loan's derived totals recalculated and its changes written to
the audit trail in the same session. Requests are validated in full before
anything is changed, so a rejected update leaves the loan untouched.
"""
import logging
from typing import Optional, List, Dict, Any

from sqlalchemy.orm import Session

from dependencies import UserContext
from models import Loan, Fee, FeeConfig, Invoice, AuditEntityType, AuditAction
from models.fee_config import FeeCalculationType
from models.invoice import InvoiceStatus
from models.loan import LoanStatus, PricingStatus
from schemas.loan import (
     PricingUpdate,
     LoanUpdate,
     FeeCreate,
     FeeUpdate,
     InvoiceCreate,
     InvoiceUpdate,
)
from schemas.preview import FeeChangesPreview
from services import audit_service, calculation_service
from services.audit_service import to_json_value

logger = logging.getLogger(__name__)


def _loan_state(loan: Loan) -> Dict[str, Any]:
     return {
          "pricing.baseRate": loan.base_rate,
          "pricing.spread": loan.spread,
          "status": to_json_value(loan.status),
          "pricingStatus": to_json_value(loan.pricing_status),
     }


def _fee_state(fee: Fee) -> Dict[str, Any]:
     return {
          "code": fee.code,
          "name": fee.name,
          "calculationType": to_json_value(fee.calculation_type),
          "flatAmount": fee.flat_amount,
          "rate": fee.rate,
          "calculatedAmount": fee.calculated_amount,
          "isWaived": fee.is_waived,
     }


def _invoice_state(invoice: Invoice) -> Dict[str, Any]:
     return {
          "invoiceNumber": invoice.invoice_number,
          "buyerName": invoice.buyer_name,
          "amount": invoice.amount,
          "currency": invoice.currency,
          "issueDate": to_json_value(invoice.issue_date),
          "dueDate": to_json_value(invoice.due_date),
          "status": to_json_value(invoice.status),
     }


class LoanService:
     """Service class for loan-related business logic."""

     @staticmethod
     def list_loans(
          db: Session,
          customer_id: Optional[str] = None,
          currency: Optional[str] = None,
          status: Optional[str] = None,
     ) -> List[Loan]:
          """
          List loans, optionally narrowed by customer, currency or status.

          Returns:
               Loans ordered by maturity date
          """
          query = db.query(Loan)
          if customer_id:
               query = query.filter(Loan.customer_id == customer_id)
          if currency:
               query = query.filter(Loan.currency == currency)
          if status:
               query = query.filter(Loan.status == LoanStatus(status))
          return query.order_by(Loan.maturity_date, Loan.loan_number).all()

     @staticmethod
     def get_loan(db: Session, loan_id: str) -> Optional[Loan]:
          return db.query(Loan).filter(Loan.id == loan_id).first()

     @staticmethod
     def _require_loan(db: Session, loan_id: str) -> Loan:
          loan = LoanService.get_loan(db, loan_id)
          if loan is None:
               raise ValueError(f"Loan with ID {loan_id} not found")
          return loan

     @staticmethod
     def preview_loan_pricing(db: Session, loan_id: str, pricing: Optional[PricingUpdate]) -> Optional[dict]:
          """
          Preview pricing for a single loan without saving.

          Returns:
               Preview dict, or None if the loan doesn't exist or no pricing was given
          """
          loan = LoanService.get_loan(db, loan_id)
          if loan is None or pricing is None:
               return None
          return calculation_service.preview_pricing(loan, pricing)

     @staticmethod
     def preview_full_loan_state(
          db: Session,
          loan_id: str,
          pricing: Optional[PricingUpdate] = None,
          fee_changes: Optional[FeeChangesPreview] = None,
     ) -> Optional[dict]:
          """
          Preview full loan calculations including pending fee changes.

          Allows the client to show accurate before/after totals without saving.

          Returns:
               Preview dict, or None if the loan doesn't exist
          """
          loan = LoanService.get_loan(db, loan_id)
          if loan is None:
               return None

          configs = []
          if fee_changes is not None and fee_changes.adds:
               config_ids = [add.fee_config_id for add in fee_changes.adds]
               configs = db.query(FeeConfig).filter(FeeConfig.id.in_(config_ids)).all()

          return calculation_service.preview_full_loan_state(loan, pricing, fee_changes, configs)

     @staticmethod
     def update_loan(db: Session, loan_id: str, updates: LoanUpdate, user: Optional[UserContext] = None) -> Loan:
          """
          Apply pricing and status updates and recalculate derived totals.

          Status values are checked before any field is touched.

          Raises:
               ValueError: If the loan doesn't exist or a status value is unknown
          """
          loan = LoanService._require_loan(db, loan_id)
          new_status = LoanStatus(updates.status) if updates.status is not None else None
          new_pricing_status = (
               PricingStatus(updates.pricing_status) if updates.pricing_status is not None else None
          )

          before = _loan_state(loan)
          if updates.pricing is not None:
               if updates.pricing.base_rate is not None:
                    loan.base_rate = updates.pricing.base_rate
               if updates.pricing.spread is not None:
                    loan.spread = updates.pricing.spread
          if new_status is not None:
               loan.status = new_status
          if new_pricing_status is not None:
               loan.pricing_status = new_pricing_status

          calculation_service.recalculate_loan(loan)
          audit_service.track_update(db, AuditEntityType.LOAN, loan.id, loan.id, before, _loan_state(loan), user)
          db.flush()
          logger.info("Updated loan %s (effective rate %s)", loan.loan_number, loan.effective_rate)
          return loan

     # ------------------------------------------------------------------
     # Fees
     # ------------------------------------------------------------------

     @staticmethod
     def add_fee_to_loan(db: Session, loan_id: str, request: FeeCreate, user: Optional[UserContext] = None) -> Loan:
          """
          Add a fee to a loan from a fee config, applying optional overrides.

          Raises:
               ValueError: If the loan or fee config doesn't exist
          """
          loan = LoanService._require_loan(db, loan_id)
          config = db.query(FeeConfig).filter(FeeConfig.id == request.fee_config_id).first()
          if config is None:
               raise ValueError(f"Fee config with ID {request.fee_config_id} not found")

          flat_amount = request.flat_amount if request.flat_amount is not None else config.default_flat_amount
          rate = request.rate if request.rate is not None else config.default_rate
          fee = Fee(
               fee_config_id=config.id,
               code=config.code,
               name=config.name,
               calculation_type=config.calculation_type,
               flat_amount=flat_amount,
               rate=rate,
               basis_amount=config.default_basis_amount,
               tiers=config.default_tiers,
               currency=loan.currency,
               is_overridden=request.flat_amount is not None or request.rate is not None,
          )
          loan.fees.append(fee)

          calculation_service.recalculate_loan(loan)
          db.flush()
          audit_service.track_create(db, AuditEntityType.FEE, fee.id, loan.id, _fee_state(fee), user)
          return loan

     @staticmethod
     def update_fee(db: Session, loan_id: str, fee_id: str, request: FeeUpdate,
                    user: Optional[UserContext] = None) -> Loan:
          """
          Update a loan fee. An explicit calculated_amount is applied as a
          flat override of the fee.

          Raises:
               ValueError: If the loan or fee doesn't exist
          """
          loan = LoanService._require_loan(db, loan_id)
          fee = loan.find_fee(fee_id)
          if fee is None:
               raise ValueError(f"Fee with ID {fee_id} not found on loan {loan_id}")

          before = _fee_state(fee)
          if request.calculated_amount is not None:
               fee.calculation_type = FeeCalculationType.FLAT
               fee.flat_amount = request.calculated_amount
               fee.is_overridden = True
          if request.flat_amount is not None:
               fee.flat_amount = request.flat_amount
               fee.is_overridden = True
          if request.rate is not None:
               fee.rate = request.rate
               fee.is_overridden = True
          if request.is_waived is not None:
               fee.is_waived = request.is_waived

          calculation_service.recalculate_loan(loan)
          audit_service.track_update(db, AuditEntityType.FEE, fee.id, loan.id, before, _fee_state(fee), user)
          db.flush()
          return loan

     @staticmethod
     def remove_fee(db: Session, loan_id: str, fee_id: str, user: Optional[UserContext] = None) -> Loan:
          """
          Remove a fee from a loan.

          Raises:
               ValueError: If the loan or fee doesn't exist
          """
          loan = LoanService._require_loan(db, loan_id)
          fee = loan.find_fee(fee_id)
          if fee is None:
               raise ValueError(f"Fee with ID {fee_id} not found on loan {loan_id}")

          audit_service.track_delete(db, AuditEntityType.FEE, fee.id, loan.id, _fee_state(fee), user)
          loan.fees.remove(fee)
          calculation_service.recalculate_loan(loan)
          db.flush()
          return loan

     # ------------------------------------------------------------------
     # Invoices
     # ------------------------------------------------------------------

     @staticmethod
     def _require_invoice(loan: Loan, invoice_id: str) -> Invoice:
          invoice = loan.find_invoice(invoice_id)
          if invoice is None:
               raise ValueError(f"Invoice with ID {invoice_id} not found on loan {loan.id}")
          return invoice

     @staticmethod
     def add_invoice(db: Session, loan_id: str, request: InvoiceCreate, user: Optional[UserContext] = None) -> Loan:
          """
          Add an invoice to a loan in the loan's currency.

          Raises:
               ValueError: If the loan doesn't exist
          """
          loan = LoanService._require_loan(db, loan_id)
          invoice = Invoice(
               invoice_number=request.invoice_number,
               buyer_name=request.buyer_name,
               amount=request.amount,
               currency=loan.currency,
               issue_date=request.issue_date,
               due_date=request.due_date,
               status=InvoiceStatus.PENDING,
          )
          loan.invoices.append(invoice)

          calculation_service.recalculate_loan(loan)
          db.flush()
          audit_service.track_create(db, AuditEntityType.INVOICE, invoice.id, loan.id, _invoice_state(invoice), user)
          return loan

     @staticmethod
     def update_invoice(db: Session, loan_id: str, invoice_id: str, request: InvoiceUpdate,
                        user: Optional[UserContext] = None) -> Loan:
          """
          Update an invoice's details, amount or collection status.

          Raises:
               ValueError: If the loan or invoice doesn't exist or the status is unknown
          """
          loan = LoanService._require_loan(db, loan_id)
          invoice = LoanService._require_invoice(loan, invoice_id)
          new_status = InvoiceStatus(request.status) if request.status is not None else None

          before = _invoice_state(invoice)
          for attr in ("invoice_number", "buyer_name", "amount", "due_date", "issue_date"):
               value = getattr(request, attr)
               if value is not None:
                    setattr(invoice, attr, value)
          if new_status is not None:
               invoice.status = new_status

          calculation_service.recalculate_loan(loan)
          audit_service.track_update(
               db, AuditEntityType.INVOICE, invoice.id, loan.id, before, _invoice_state(invoice), user,
          )
          db.flush()
          return loan

     @staticmethod
     def remove_invoice(db: Session, loan_id: str, invoice_id: str, user: Optional[UserContext] = None) -> Loan:
          """
          Remove an invoice from a loan.

          Raises:
               ValueError: If the loan or invoice doesn't exist, or it is the loan's last invoice
          """
          loan = LoanService._require_loan(db, loan_id)
          invoice = LoanService._require_invoice(loan, invoice_id)
          if len(loan.invoices) == 1:
               raise ValueError("Cannot remove the last invoice from a loan")

          audit_service.track_delete(db, AuditEntityType.INVOICE, invoice.id, loan.id, _invoice_state(invoice), user)
          loan.invoices.remove(invoice)
          calculation_service.recalculate_loan(loan)
          db.flush()
          return loan

     @staticmethod
     def move_invoice(db: Session, loan_id: str, invoice_id: str, target_loan_id: str,
                      user: Optional[UserContext] = None) -> Dict[str, Loan]:
          """
          Move an invoice to another loan of the same currency.

          Both loans are recalculated and each gets a move entry in its trail.

          Returns:
               {"source_loan": ..., "target_loan": ...}

          Raises:
               ValueError: If either loan or the invoice doesn't exist, the
                    currencies differ, the loans are the same, or the invoice
                    is the source loan's last one
          """
          source = LoanService._require_loan(db, loan_id)
          target = LoanService.get_loan(db, target_loan_id)
          if target is None:
               raise ValueError(f"Target loan with ID {target_loan_id} not found")
          invoice = LoanService._require_invoice(source, invoice_id)
          if target.id == source.id:
               raise ValueError("Invoice is already on the target loan")
          if source.currency != target.currency:
               raise ValueError("Cannot move invoice between loans with different currencies")
          if len(source.invoices) == 1:
               raise ValueError("Cannot move the last invoice from a loan")

          source.invoices.remove(invoice)
          target.invoices.append(invoice)
          calculation_service.recalculate_loan(source)
          calculation_service.recalculate_loan(target)

          for audited_loan in (source, target):
               audit_service.create_audit_entry(
                    db, AuditEntityType.INVOICE, invoice.id, AuditAction.MOVE,
                    loan_id=audited_loan.id,
                    field_name="loanId",
                    old_value=source.id,
                    new_value=target.id,
                    user=user,
               )
          db.flush()
          logger.info("Moved invoice %s from %s to %s", invoice.invoice_number, source.loan_number, target.loan_number)
          return {"source_loan": source, "target_loan": target}
