# models/__init__.py
from .base import Base, generate_id
from .customer import Customer
from .fee_config import FeeConfig, FeeCalculationType, FeeBasis
from .loan import Loan, LoanStatus, PricingStatus, DayCountConvention, AccrualMethod
from .fee import Fee
from .invoice import Invoice, InvoiceStatus
from .snapshot import LoanSnapshot
from .audit_entry import AuditEntry, AuditEntityType, AuditAction

__all__ = [
     "Base",
     "generate_id",
     "Customer",
     "FeeConfig",
     "FeeCalculationType",
     "FeeBasis",
     "Loan",
     "LoanStatus",
     "PricingStatus",
     "DayCountConvention",
     "AccrualMethod",
     "Fee",
     "Invoice",
     "InvoiceStatus",
     "LoanSnapshot",
     "AuditEntry",
     "AuditEntityType",
     "AuditAction",
]
