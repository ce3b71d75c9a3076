"""
Event endpoints for API v1.

Any authenticated user may create an event and becomes its organizer.
Updates and deletion are limited to the organizer and administrators.
Free events are joined through ``POST /events/{event_id}/register``;
paid events go through the payments router.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query, status

from event_hub_api.app.core.errors import to_http_exception
from event_hub_api.app.core.security import get_current_user
from event_hub_api.app.schemas.event import EventCreate, EventRead, EventRegistrationResponse, EventUpdate
from event_hub_api.app.services.event_service import EventService


router = APIRouter()


@router.post("/", response_model=EventRead, status_code=status.HTTP_201_CREATED)
async def create_event(event: EventCreate, current_user: dict = Depends(get_current_user)) -> EventRead:
    try:
        return await EventService.create_event(event, current_user)
    except ValueError as e:
        raise to_http_exception(e)


@router.get("/", response_model=List[EventRead])
async def list_events(
    category: Optional[str] = None,
    is_paid: Optional[bool] = Query(None, alias="isPaid"),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    current_user: dict = Depends(get_current_user),
) -> List[EventRead]:
    """List events ordered by start time, optionally filtered."""
    return await EventService.list_events(category=category, is_paid=is_paid, limit=limit, offset=offset)


@router.get("/{event_id}", response_model=EventRead)
async def get_event(
    event_id: int = Path(..., description="ID of the event"),
    current_user: dict = Depends(get_current_user),
) -> EventRead:
    try:
        return await EventService.get_event(event_id)
    except LookupError as e:
        raise to_http_exception(e)


@router.put("/{event_id}", response_model=EventRead)
async def update_event(
    update: EventUpdate,
    event_id: int = Path(..., description="ID of the event"),
    current_user: dict = Depends(get_current_user),
) -> EventRead:
    """Update an event (organizer or administrator)."""
    try:
        return await EventService.update_event(event_id, update, current_user)
    except (LookupError, PermissionError, ValueError) as e:
        raise to_http_exception(e)


@router.delete("/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_event(
    event_id: int = Path(..., description="ID of the event"),
    current_user: dict = Depends(get_current_user),
) -> None:
    """Delete an event with its registrations and payments."""
    try:
        await EventService.delete_event(event_id, current_user)
    except (LookupError, PermissionError) as e:
        raise to_http_exception(e)


@router.post("/{event_id}/register", response_model=EventRegistrationResponse)
async def register_for_free_event(
    event_id: int = Path(..., description="ID of the event"),
    current_user: dict = Depends(get_current_user),
) -> EventRegistrationResponse:
    """Register the caller for a free event."""
    try:
        event = await EventService.register_free(event_id, current_user)
    except (LookupError, ValueError) as e:
        raise to_http_exception(e)
    return EventRegistrationResponse(msg="Registered successfully!", event=event)
