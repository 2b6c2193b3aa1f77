# schemas/audit.py
"""
Pydantic schemas for the loan audit trail.
"""
from datetime import datetime
from typing import Any, List, Optional

from .base import ApiModel


class AuditEntryResponse(ApiModel):
     id: str
     entity_type: str
     entity_id: str
     loan_id: Optional[str] = None
     action: str
     field_name: Optional[str] = None
     old_value: Any = None
     new_value: Any = None
     user_id: str
     user_name: str
     timestamp: datetime


class AuditHistoryResponse(ApiModel):
     entries: List[AuditEntryResponse]
     total: int
