"""
Audit service for recording and querying system actions.

Significant actions (user registration, event changes, payment
creation and status updates) are written to the ``audit_logs`` table.
Only administrators can read the trail back.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from typing import Any, List, Optional

from event_hub_api.app.core.db import get_connection, now_timestamp
from event_hub_api.app.schemas.audit import AuditLogRead


logger = logging.getLogger(__name__)


def _row_to_entry(row: sqlite3.Row) -> AuditLogRead:
    details: Any = None
    if row["details"]:
        try:
            details = json.loads(row["details"])
        except json.JSONDecodeError:
            details = row["details"]
    return AuditLogRead(
        id=row["id"],
        user_id=row["user_id"],
        action=row["action"],
        object_type=row["object_type"],
        object_id=row["object_id"],
        timestamp=row["timestamp"],
        details=details,
    )


class AuditService:
    """Service class for writing and retrieving audit logs."""

    @classmethod
    async def log(
        cls,
        user_id: Optional[int],
        action: str,
        object_type: str,
        object_id: Optional[int] = None,
        details: Optional[dict] = None,
    ) -> None:
        """Insert a new audit record.

        A failure to write the record is logged and does not propagate;
        the action being audited has already been committed.

        Parameters
        ----------
        user_id : Optional[int]
            ID of the user performing the action, ``None`` for
            system-initiated actions.
        action : str
            Short description of the action (``create``, ``update``, ``delete``).
        object_type : str
            Type of object affected (``event``, ``payment``, ``user``).
        object_id : Optional[int]
            Primary key of the affected object, if applicable.
        details : Optional[dict]
            Additional structured data, stored as JSON.
        """
        details_json = json.dumps(details, default=str) if details else None
        conn = get_connection()
        try:
            conn.execute(
                """
                INSERT INTO audit_logs (user_id, action, object_type, object_id, timestamp, details)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (user_id, action, object_type, object_id, now_timestamp(), details_json),
            )
            conn.commit()
        except sqlite3.Error as exc:
            logger.warning("Failed to write audit log for %s %s: %s", object_type, object_id, exc)
        finally:
            conn.close()

    @classmethod
    async def list_logs(
        cls,
        object_type: Optional[str] = None,
        object_id: Optional[int] = None,
        action: Optional[str] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[AuditLogRead]:
        """Retrieve audit records, newest first.

        ``object_type`` together with ``object_id`` gives the history of
        a single record, e.g. every status change of one payment.
        """
        filters = {"object_type": object_type, "object_id": object_id, "action": action}
        conditions = [f"{column} = ?" for column, value in filters.items() if value is not None]
        params: List[Any] = [value for value in filters.values() if value is not None]
        query = "SELECT id, user_id, action, object_type, object_id, timestamp, details FROM audit_logs"
        if conditions:
            query += " WHERE " + " AND ".join(conditions)
        query += " ORDER BY timestamp DESC, id DESC LIMIT ? OFFSET ?"
        conn = get_connection()
        try:
            rows = conn.execute(query, (*params, limit, offset)).fetchall()
        finally:
            conn.close()
        return [_row_to_entry(row) for row in rows]
