"""Pydantic model for audit log entries."""

from typing import Any, Optional

from .base import CamelModel


class AuditLogRead(CamelModel):
    id: int
    user_id: Optional[int] = None
    action: str
    object_type: Optional[str] = None
    object_id: Optional[int] = None
    timestamp: str
    details: Any = None
