# models/loan.py
import enum
from sqlalchemy import Column, String, Float, Date, DateTime, ForeignKey, Enum, func
from sqlalchemy.orm import relationship
from .base import Base, generate_id


class LoanStatus(str, enum.Enum):
     """Lifecycle status of a loan."""
     DRAFT = "draft"
     PENDING = "pending"
     ACTIVE = "active"
     CLOSED = "closed"
     DEFAULTED = "defaulted"


class PricingStatus(str, enum.Enum):
     """Approval state of a loan's pricing."""
     PENDING = "pending"
     PRICED = "priced"
     APPROVED = "approved"
     REJECTED = "rejected"


class DayCountConvention(str, enum.Enum):
     THIRTY_360 = "30/360"
     ACTUAL_360 = "actual/360"
     ACTUAL_365 = "actual/365"


class AccrualMethod(str, enum.Enum):
     SIMPLE = "simple"
     COMPOUND = "compound"


def _enum_values(enum_cls):
     return [m.value for m in enum_cls]


class Loan(Base):
     """
     Loan model - an invoice-backed loan with its pricing and derived totals.

     Pricing rates are stored as percentages (5.25 means 5.25%).
     interest_amount, total_fees and net_proceeds are derived values kept in
     sync by services.calculation_service.recalculate_loan.
     """
     __tablename__ = "loans"

     id = Column(String(36), primary_key=True, default=generate_id)
     loan_number = Column(String(50), unique=True, nullable=False, index=True)

     # Foreign keys
     customer_id = Column(
          String(36),
          ForeignKey("customers.id", ondelete="CASCADE"),
          nullable=True,
          index=True
     )

     borrower_id = Column(String(36), nullable=False)
     borrower_name = Column(String(255), nullable=False)

     # Amounts
     total_amount = Column(Float, nullable=False)
     outstanding_amount = Column(Float, nullable=False, default=0)
     total_invoice_amount = Column(Float, nullable=False, default=0)
     currency = Column(String(3), nullable=False, index=True)

     # Status
     status = Column(
          Enum(LoanStatus, name="loan_status", create_constraint=True,
               values_callable=_enum_values),
          default=LoanStatus.DRAFT,
          nullable=False,
          index=True
     )
     pricing_status = Column(
          Enum(PricingStatus, name="pricing_status", create_constraint=True,
               values_callable=_enum_values),
          default=PricingStatus.PENDING,
          nullable=False
     )

     # Dates
     start_date = Column(Date, nullable=False)
     maturity_date = Column(Date, nullable=False, index=True)

     # Pricing
     base_rate = Column(Float, nullable=False, default=0)
     spread = Column(Float, nullable=False, default=0)
     effective_rate = Column(Float, nullable=False, default=0)
     day_count_convention = Column(
          Enum(DayCountConvention, name="day_count_convention", create_constraint=True,
               values_callable=_enum_values),
          default=DayCountConvention.ACTUAL_365,
          nullable=False
     )
     accrual_method = Column(
          Enum(AccrualMethod, name="accrual_method", create_constraint=True,
               values_callable=_enum_values),
          default=AccrualMethod.SIMPLE,
          nullable=False
     )

     # Derived totals
     interest_amount = Column(Float, nullable=False, default=0)
     total_fees = Column(Float, nullable=False, default=0)
     net_proceeds = Column(Float, nullable=False, default=0)

     # Timestamps
     created_at = Column(DateTime, server_default=func.now(), nullable=False)
     updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

     # Relationships
     customer = relationship("Customer", back_populates="loans")
     fees = relationship(
          "Fee",
          back_populates="loan",
          cascade="all, delete-orphan",
          order_by="Fee.created_at"
     )
     invoices = relationship(
          "Invoice",
          back_populates="loan",
          cascade="all, delete-orphan"
     )

     def __repr__(self):
          return f"<Loan(id={self.id}, loan_number='{self.loan_number}', amount={self.total_amount} {self.currency})>"

     def find_fee(self, fee_id: str):
          """Return the loan's fee with the given id, or None."""
          return next((fee for fee in self.fees if fee.id == fee_id), None)

     def find_invoice(self, invoice_id: str):
          """Return the loan's invoice with the given id, or None."""
          return next((invoice for invoice in self.invoices if invoice.id == invoice_id), None)
