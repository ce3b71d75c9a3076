"""Audit log endpoints for API v1 (administrators only)."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from event_hub_api.app.core.security import require_roles
from event_hub_api.app.schemas.audit import AuditLogRead
from event_hub_api.app.services.audit_service import AuditService


router = APIRouter()


@router.get("/", response_model=List[AuditLogRead])
async def list_audit_logs(
    object_type: Optional[str] = Query(None, alias="objectType", description="event, payment or user"),
    object_id: Optional[int] = Query(None, alias="objectId"),
    action: Optional[str] = Query(None, description="create, update, delete or register"),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    current_user: dict = Depends(require_roles("admin")),
) -> List[AuditLogRead]:
    """Audit trail, newest first."""
    return await AuditService.list_logs(
        object_type=object_type,
        object_id=object_id,
        action=action,
        limit=limit,
        offset=offset,
    )
