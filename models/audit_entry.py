# models/audit_entry.py
import enum
from sqlalchemy import Column, String, DateTime, JSON, Enum, Index
from .base import Base, generate_id


class AuditEntityType(str, enum.Enum):
     LOAN = "loan"
     FEE = "fee"
     INVOICE = "invoice"


class AuditAction(str, enum.Enum):
     CREATE = "create"
     UPDATE = "update"
     DELETE = "delete"
     MOVE = "move"


class AuditEntry(Base):
     """
     AuditEntry model - one persisted change to a loan, fee or invoice.

     Updates are recorded one row per changed field; create/delete rows carry
     the whole entity in new_value/old_value. loan_id ties fee and invoice
     rows to their loan so a loan's trail is a single indexed query.
     """
     __tablename__ = "audit_entries"

     id = Column(String(36), primary_key=True, default=generate_id)
     entity_type = Column(
          Enum(AuditEntityType, name="audit_entity_type", create_constraint=True,
               values_callable=lambda e: [m.value for m in e]),
          nullable=False
     )
     entity_id = Column(String(36), nullable=False)
     loan_id = Column(String(36), nullable=True, index=True)
     action = Column(
          Enum(AuditAction, name="audit_action", create_constraint=True,
               values_callable=lambda e: [m.value for m in e]),
          nullable=False
     )
     field_name = Column(String(100), nullable=True)
     old_value = Column(JSON, nullable=True)
     new_value = Column(JSON, nullable=True)

     # Actor
     user_id = Column(String(100), nullable=False, default="system")
     user_name = Column(String(255), nullable=False, default="System")
     timestamp = Column(DateTime, nullable=False, index=True)

     __table_args__ = (
          Index("ix_audit_entries_entity", "entity_type", "entity_id"),
     )

     def __repr__(self):
          return f"<AuditEntry(id={self.id}, {self.entity_type} {self.action} {self.field_name or ''})>"
