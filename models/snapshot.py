# models/snapshot.py
"""
LoanSnapshot model - immutable point-in-time capture of a customer's loans.

The loan array is stored as gzip-compressed JSON. The per-currency summary
and the delta against the preceding snapshot are computed once when the
snapshot is created and never rewritten; records are insert-only at the
application layer (pruning aside).
"""
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, LargeBinary, JSON, Text
from sqlalchemy.orm import relationship
from .base import Base, generate_id


class LoanSnapshot(Base):
     __tablename__ = "loan_snapshots"

     id = Column(String(36), primary_key=True, default=generate_id)
     customer_id = Column(
          String(36),
          ForeignKey("customers.id", ondelete="CASCADE"),
          nullable=False,
          index=True
     )
     timestamp = Column(DateTime, nullable=False, index=True)

     # Actor
     user_id = Column(String(100), nullable=False, default="system")
     user_name = Column(String(255), nullable=False, default="System")

     loans_compressed = Column(LargeBinary, nullable=False)
     summary = Column(JSON, nullable=False)  # {currency: CurrencySummary}
     delta = Column(JSON, nullable=True)  # None for a customer's first snapshot
     changes = Column(JSON, nullable=False)  # {fees, rates, invoices, statuses}

     change_count = Column(Integer, nullable=False, default=0)
     description = Column(Text, nullable=True)

     # Relationships
     customer = relationship("Customer", back_populates="snapshots")

     def __repr__(self):
          return f"<LoanSnapshot(id={self.id}, customer_id={self.customer_id}, timestamp={self.timestamp})>"
