# services/__init__.py
from . import calculation_service
from . import audit_service
from . import snapshot_service
from .loan_service import LoanService
from .customer_service import CustomerService

__all__ = [
     "calculation_service",
     "audit_service",
     "snapshot_service",
     "LoanService",
     "CustomerService",
]
