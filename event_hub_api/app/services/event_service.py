"""
Business logic for events and their registrant sets.

Besides plain CRUD, this module owns the registration rules shared by
free and paid registration: an event must not have started, a user
may only be registered once, and the registrant set must not exceed
``max_attendees``.  Seats are claimed with a single conditional
``INSERT`` so that the capacity limit and the one-row-per-user primary
key are enforced by SQLite rather than by a separate read.
"""

import logging
import sqlite3
from typing import Any, Dict, List, Optional

from event_hub_api.app.core.config import settings
from event_hub_api.app.core.db import (
    from_db_timestamp,
    get_connection,
    now_timestamp,
    to_db_timestamp,
    utc_now,
)
from event_hub_api.app.core.permissions import ADMIN, ORGANIZER, check_access
from event_hub_api.app.schemas.event import EventCreate, EventRead, EventUpdate
from event_hub_api.app.services.audit_service import AuditService


logger = logging.getLogger(__name__)

EVENT_COLUMNS = (
    "id, title, description, category, location, start_at, end_at, is_paid, price, "
    "currency, max_attendees, created_by, created_at, updated_at"
)
NOT_NULL_COLUMNS = {"title", "start_at", "is_paid", "price", "currency"}


def fetch_event_row(cursor: sqlite3.Cursor, event_id: int) -> Optional[sqlite3.Row]:
    return cursor.execute(
        f"SELECT {EVENT_COLUMNS} FROM events WHERE id = ?",
        (event_id,),
    ).fetchone()


def fetch_registered_users(cursor: sqlite3.Cursor, event_id: int) -> List[int]:
    rows = cursor.execute(
        "SELECT user_id FROM event_registrations WHERE event_id = ? ORDER BY registered_at, user_id",
        (event_id,),
    ).fetchall()
    return [row["user_id"] for row in rows]


def row_to_event(row: sqlite3.Row, registered_users: List[int]) -> EventRead:
    return EventRead(
        id=row["id"],
        title=row["title"],
        description=row["description"],
        category=row["category"],
        location=row["location"],
        start_at=row["start_at"],
        end_at=row["end_at"],
        is_paid=bool(row["is_paid"]),
        price=row["price"],
        currency=row["currency"],
        max_attendees=row["max_attendees"],
        created_by=row["created_by"],
        registered_users=registered_users,
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def is_event_paid(event_row: sqlite3.Row) -> bool:
    return bool(event_row["is_paid"]) and (event_row["price"] or 0) > 0


def check_registration_open(event_row: sqlite3.Row, registered_users: List[int], user_id: int) -> None:
    """Apply the past/duplicate/capacity rules in that order.

    Raises ``ValueError`` with the message for the first rule that fails.
    """
    start_at = from_db_timestamp(event_row["start_at"])
    if start_at is not None and start_at < utc_now():
        raise ValueError("Cannot register for past events")
    if user_id in registered_users:
        raise ValueError("Already registered for this event")
    max_attendees = event_row["max_attendees"]
    if max_attendees and len(registered_users) >= max_attendees:
        raise ValueError("Event is full")


def claim_seat(cursor: sqlite3.Cursor, event_id: int, user_id: int) -> None:
    """Add ``user_id`` to the registrant set if a seat is still free.

    Runs inside the caller's transaction; the caller commits.  Raises
    ``ValueError`` when the user is already registered or the event is
    full at the moment of the write.
    """
    try:
        cursor.execute(
            """
            INSERT INTO event_registrations (event_id, user_id, registered_at)
            SELECT e.id, ?, ? FROM events e
            WHERE e.id = ?
              AND (e.max_attendees IS NULL OR e.max_attendees <= 0
                   OR (SELECT COUNT(*) FROM event_registrations r WHERE r.event_id = e.id) < e.max_attendees)
            """,
            (user_id, now_timestamp(), event_id),
        )
    except sqlite3.IntegrityError:
        raise ValueError("Already registered for this event")
    if cursor.rowcount == 0:
        raise ValueError("Event is full")


def _column_value(value: Any) -> Any:
    if isinstance(value, bool):
        return int(value)
    if hasattr(value, "isoformat"):
        return to_db_timestamp(value)
    return value


class EventService:
    """Service for managing events."""

    @classmethod
    async def create_event(cls, data: EventCreate, current_user: Dict[str, Any]) -> EventRead:
        """Create an event organised by the caller."""
        logger.info("User %s is creating event '%s'", current_user.get("user_id"), data.title)
        if data.end_at is not None and data.end_at < data.start_at:
            raise ValueError("Event cannot end before it starts")
        timestamp = now_timestamp()
        conn = get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO events (title, description, category, location, start_at, end_at, is_paid,
                                    price, currency, max_attendees, created_by, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    data.title,
                    data.description,
                    data.category,
                    data.location,
                    to_db_timestamp(data.start_at),
                    to_db_timestamp(data.end_at) if data.end_at else None,
                    int(data.is_paid),
                    data.price,
                    data.currency or settings.default_currency,
                    data.max_attendees,
                    current_user.get("user_id"),
                    timestamp,
                    timestamp,
                ),
            )
            event_id = cursor.lastrowid
            conn.commit()
            event = row_to_event(fetch_event_row(cursor, event_id), [])
        finally:
            conn.close()
        await AuditService.log(
            user_id=current_user.get("user_id"),
            action="create",
            object_type="event",
            object_id=event_id,
            details={"title": data.title, "is_paid": data.is_paid, "price": data.price},
        )
        return event

    @classmethod
    async def list_events(
        cls,
        category: Optional[str] = None,
        is_paid: Optional[bool] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[EventRead]:
        """Return events ordered by start time with optional filters."""
        query = f"SELECT {EVENT_COLUMNS} FROM events"
        params: list = []
        where_clauses: list[str] = []
        if category:
            where_clauses.append("category = ?")
            params.append(category)
        if is_paid is not None:
            where_clauses.append("is_paid = ?")
            params.append(1 if is_paid else 0)
        if where_clauses:
            query += " WHERE " + " AND ".join(where_clauses)
        query += " ORDER BY start_at ASC, id ASC LIMIT ? OFFSET ?"
        params.extend([limit, offset])
        conn = get_connection()
        try:
            cursor = conn.cursor()
            rows = cursor.execute(query, tuple(params)).fetchall()
            return [row_to_event(row, fetch_registered_users(cursor, row["id"])) for row in rows]
        finally:
            conn.close()

    @classmethod
    async def get_event(cls, event_id: int) -> EventRead:
        """Retrieve a single event.  Raises ``LookupError`` if missing."""
        conn = get_connection()
        try:
            cursor = conn.cursor()
            row = fetch_event_row(cursor, event_id)
            if not row:
                raise LookupError("Event not found")
            return row_to_event(row, fetch_registered_users(cursor, event_id))
        finally:
            conn.close()

    @classmethod
    async def update_event(cls, event_id: int, data: EventUpdate, current_user: Dict[str, Any]) -> EventRead:
        """Update the provided fields of an event.

        Only the organizer or an administrator may update an event.
        """
        updates = {
            key: value
            for key, value in data.model_dump(exclude_unset=True).items()
            if value is not None or key not in NOT_NULL_COLUMNS
        }
        conn = get_connection()
        try:
            cursor = conn.cursor()
            row = fetch_event_row(cursor, event_id)
            if not row:
                raise LookupError("Event not found")
            check_access(current_user, ORGANIZER, ADMIN, organizer_id=row["created_by"])
            if updates:
                fields = [f"{key} = ?" for key in updates]
                values = [_column_value(value) for value in updates.values()]
                values.extend([now_timestamp(), event_id])
                cursor.execute(
                    f"UPDATE events SET {', '.join(fields)}, updated_at = ? WHERE id = ?",
                    tuple(values),
                )
                conn.commit()
            event = row_to_event(fetch_event_row(cursor, event_id), fetch_registered_users(cursor, event_id))
        finally:
            conn.close()
        if updates:
            await AuditService.log(
                user_id=current_user.get("user_id"),
                action="update",
                object_type="event",
                object_id=event_id,
                details=updates,
            )
        return event

    @classmethod
    async def delete_event(cls, event_id: int, current_user: Dict[str, Any]) -> None:
        """Delete an event together with its registrations and payments."""
        conn = get_connection()
        try:
            cursor = conn.cursor()
            row = fetch_event_row(cursor, event_id)
            if not row:
                raise LookupError("Event not found")
            check_access(current_user, ORGANIZER, ADMIN, organizer_id=row["created_by"])
            cursor.execute("DELETE FROM events WHERE id = ?", (event_id,))
            conn.commit()
        finally:
            conn.close()
        logger.info("Event %s deleted by user %s", event_id, current_user.get("user_id"))
        await AuditService.log(
            user_id=current_user.get("user_id"),
            action="delete",
            object_type="event",
            object_id=event_id,
        )

    @classmethod
    async def register_free(cls, event_id: int, current_user: Dict[str, Any]) -> EventRead:
        """Register the caller for a free event."""
        user_id = current_user.get("user_id")
        conn = get_connection()
        try:
            cursor = conn.cursor()
            row = fetch_event_row(cursor, event_id)
            if not row:
                raise LookupError("Event not found")
            if is_event_paid(row):
                raise ValueError("This is a paid event. Use paid registration.")
            check_registration_open(row, fetch_registered_users(cursor, event_id), user_id)
            try:
                claim_seat(cursor, event_id, user_id)
            except ValueError:
                conn.rollback()
                raise
            conn.commit()
            event = row_to_event(row, fetch_registered_users(cursor, event_id))
        finally:
            conn.close()
        logger.info("User %s registered for free event %s", user_id, event_id)
        await AuditService.log(
            user_id=user_id,
            action="register",
            object_type="event",
            object_id=event_id,
        )
        return event
