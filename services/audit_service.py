# services/audit_service.py
"""
Audit Service - per-field change history for loans, fees and invoices.

Loan mutations in LoanService record their changes here in the same
session, so an audit row is committed exactly when the change it describes
is. Values are stored as JSON: dates as ISO strings, enums as their values.
"""
import enum
import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Session

from dependencies import UserContext
from models import AuditEntry, AuditEntityType, AuditAction

logger = logging.getLogger(__name__)

SYSTEM_USER = UserContext(user_id="system", user_name="System")


def to_json_value(value: Any) -> Any:
     if isinstance(value, enum.Enum):
          return value.value
     if isinstance(value, (date, datetime)):
          return value.isoformat()
     return value


def detect_changes(old: Dict[str, Any], new: Dict[str, Any]) -> List[Tuple[str, Any, Any]]:
     """
     Field-level differences between two entity states.

     Returns:
          (field_name, old_value, new_value) for every key whose value differs
     """
     changes = []
     for key in list(old) + [k for k in new if k not in old]:
          before, after = old.get(key), new.get(key)
          if before != after:
               changes.append((key, before, after))
     return changes


def create_audit_entry(
     db: Session,
     entity_type: AuditEntityType,
     entity_id: str,
     action: AuditAction,
     loan_id: Optional[str] = None,
     field_name: Optional[str] = None,
     old_value: Any = None,
     new_value: Any = None,
     user: Optional[UserContext] = None,
     timestamp: Optional[datetime] = None,
) -> AuditEntry:
     user = user or SYSTEM_USER
     entry = AuditEntry(
          entity_type=entity_type,
          entity_id=entity_id,
          loan_id=loan_id,
          action=action,
          field_name=field_name,
          old_value=old_value,
          new_value=new_value,
          user_id=user.user_id,
          user_name=user.user_name,
          timestamp=timestamp or datetime.utcnow(),
     )
     db.add(entry)
     return entry


def track_create(db: Session, entity_type: AuditEntityType, entity_id: str, loan_id: str,
                 state: Dict[str, Any], user: Optional[UserContext] = None) -> AuditEntry:
     return create_audit_entry(
          db, entity_type, entity_id, AuditAction.CREATE,
          loan_id=loan_id, new_value=state, user=user,
     )


def track_update(db: Session, entity_type: AuditEntityType, entity_id: str, loan_id: str,
                 old_state: Dict[str, Any], new_state: Dict[str, Any],
                 user: Optional[UserContext] = None) -> List[AuditEntry]:
     """One update row per changed field; nothing when the states are equal."""
     timestamp = datetime.utcnow()
     return [
          create_audit_entry(
               db, entity_type, entity_id, AuditAction.UPDATE,
               loan_id=loan_id, field_name=field_name,
               old_value=before, new_value=after,
               user=user, timestamp=timestamp,
          )
          for field_name, before, after in detect_changes(old_state, new_state)
     ]


def track_delete(db: Session, entity_type: AuditEntityType, entity_id: str, loan_id: str,
                 state: Dict[str, Any], user: Optional[UserContext] = None) -> AuditEntry:
     return create_audit_entry(
          db, entity_type, entity_id, AuditAction.DELETE,
          loan_id=loan_id, old_value=state, user=user,
     )


def get_loan_audit_history(
     db: Session,
     loan_id: str,
     limit: int = 100,
     skip: int = 0,
     start_date: Optional[datetime] = None,
     end_date: Optional[datetime] = None,
     field_name: Optional[str] = None,
) -> Tuple[List[AuditEntry], int]:
     """
     Audit trail of a loan and of its fees and invoices, newest first.

     Args:
          db: Database session
          loan_id: Loan whose history to read
          limit: Page size
          skip: Entries to skip
          start_date: Only entries at or after this time
          end_date: Only entries at or before this time
          field_name: Only updates of this field

     Returns:
          (entries for the page, total matching entries)
     """
     query = db.query(AuditEntry).filter(
          or_(AuditEntry.entity_id == loan_id, AuditEntry.loan_id == loan_id)
     )
     if start_date is not None:
          query = query.filter(AuditEntry.timestamp >= start_date)
     if end_date is not None:
          query = query.filter(AuditEntry.timestamp <= end_date)
     if field_name:
          query = query.filter(AuditEntry.field_name == field_name)

     total = query.count()
     entries = (
          query.order_by(AuditEntry.timestamp.desc(), AuditEntry.field_name)
          .offset(skip)
          .limit(limit)
          .all()
     )
     return entries, total
