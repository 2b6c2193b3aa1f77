# dependencies.py
"""
Shared FastAPI dependencies.

Authentication is a stub: the acting user is taken from the X-User-Id and
X-User-Name headers and only recorded on snapshots for the audit trail.
"""
from dataclasses import dataclass
from typing import Optional

from fastapi import Header


@dataclass(frozen=True)
class UserContext:
     user_id: str
     user_name: str


def get_user_context(
     x_user_id: Optional[str] = Header(None),
     x_user_name: Optional[str] = Header(None),
) -> UserContext:
     """Acting user from request headers, defaulting to the system user."""
     return UserContext(
          user_id=x_user_id or "system",
          user_name=x_user_name or "System",
     )
