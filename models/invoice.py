import enum
from sqlalchemy import Column, String, Float, Date, DateTime, ForeignKey, Enum, func
from sqlalchemy.orm import relationship
from .base import Base, generate_id


class InvoiceStatus(str, enum.Enum):
     """Enumeration for financed invoice collection status."""
     PENDING = "pending"
     COLLECTED = "collected"
     OVERDUE = "overdue"
     DISPUTED = "disputed"


class Invoice(Base):
     """
     Invoice model - trade receivables financed by a loan.

     A loan's total_invoice_amount is the sum of its invoices; invoice
     numbers and buyer names are part of the loan search index.
     """
     __tablename__ = "invoices"

     id = Column(String(36), primary_key=True, default=generate_id)

     # Foreign keys
     loan_id = Column(
          String(36),
          ForeignKey("loans.id", ondelete="CASCADE"),
          nullable=False,
          index=True
     )

     # Invoice details
     invoice_number = Column(String(50), nullable=False, index=True)
     buyer_name = Column(String(255), nullable=False)
     amount = Column(Float, nullable=False)
     currency = Column(String(3), nullable=False)
     issue_date = Column(Date, nullable=True)
     due_date = Column(Date, nullable=False, index=True)
     status = Column(
          Enum(InvoiceStatus, name="invoice_status", create_constraint=True,
               values_callable=lambda e: [m.value for m in e]),
          default=InvoiceStatus.PENDING,
          nullable=False
     )

     # Timestamps
     created_at = Column(DateTime, server_default=func.now(), nullable=False)

     # Relationships
     loan = relationship("Loan", back_populates="invoices")

     def __repr__(self):
          return f"<Invoice(id={self.id}, number='{self.invoice_number}', amount={self.amount}, due_date={self.due_date})>"

     @property
     def is_overdue(self) -> bool:
          """Check if invoice is past due date and not collected."""
          from datetime import date
          return self.status == InvoiceStatus.PENDING and self.due_date < date.today()
