"""
Pydantic models for event data.

``EventBase`` contains the fields shared by requests and responses;
``EventCreate`` is used for creation, ``EventUpdate`` for partial
updates and ``EventRead`` extends the base with server-managed fields
such as the registrant set.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from .base import CamelModel


class EventBase(CamelModel):
    title: str = Field(..., min_length=1, examples=["Campus Hackathon"])
    description: Optional[str] = Field(None, examples=["24 hour build sprint"])
    category: Optional[str] = Field(None, examples=["Technology"])
    location: Optional[str] = Field(None, examples=["Main Auditorium"])
    start_at: datetime = Field(..., examples=["2026-11-01T10:00:00Z"])
    end_at: Optional[datetime] = Field(None, examples=["2026-11-02T10:00:00Z"])
    is_paid: bool = Field(False, examples=[True])
    price: float = Field(0, ge=0, examples=[500])
    currency: Optional[str] = Field(None, examples=["INR"])
    # ``None`` or ``0`` means the event has no attendance limit.
    max_attendees: Optional[int] = Field(None, ge=0, examples=[100])


class EventCreate(EventBase):
    """Schema for creating an event."""
    pass


class EventUpdate(CamelModel):
    """Schema for updating an event.

    All fields are optional; only provided fields will be updated.
    """

    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    category: Optional[str] = None
    location: Optional[str] = None
    start_at: Optional[datetime] = None
    end_at: Optional[datetime] = None
    is_paid: Optional[bool] = None
    price: Optional[float] = Field(None, ge=0)
    currency: Optional[str] = None
    max_attendees: Optional[int] = Field(None, ge=0)


class EventRead(EventBase):
    """Schema for reading an event from the API."""

    id: int
    currency: str
    created_by: Optional[int] = None
    registered_users: List[int] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class EventSummary(CamelModel):
    """Limited event fields joined into payment listings."""

    id: int
    title: str
    start_at: datetime
    end_at: Optional[datetime] = None
    location: Optional[str] = None


class EventRegistrationResponse(CamelModel):
    msg: str
    event: EventRead
