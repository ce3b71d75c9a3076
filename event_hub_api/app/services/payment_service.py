"""
Business logic for paid-event registration and payment bookkeeping.

A payment is created when a user registers for a paid event.  Digital
methods (GPay, PhonePe, Paytm) are recorded as ``completed`` straight
away; ``Cash on Registration`` stays ``pending`` until the organizer,
an administrator or the payer marks it completed.

The registration writes (claiming a seat and inserting the payment)
run in one SQLite transaction.  The partial unique index
``idx_payments_completed_once`` guarantees at most one completed
payment per (event, user) even when two requests race past the
pre-checks.
"""

import logging
import sqlite3
import time
from typing import Any, Dict, List, Optional, Tuple

from event_hub_api.app.core.db import get_connection, now_timestamp
from event_hub_api.app.core.permissions import ADMIN, ORGANIZER, OWNER, check_access
from event_hub_api.app.schemas.event import EventRead, EventSummary
from event_hub_api.app.schemas.payment import (
    CASH_ON_REGISTRATION,
    DEFAULT_PAYMENT_METHOD,
    PAYMENT_METHODS,
    ContactInfo,
    EventPaymentsResponse,
    PaidRegistrationCreate,
    PaymentCheck,
    PaymentRead,
    PaymentStats,
    PaymentStatusUpdate,
)
from event_hub_api.app.schemas.user import UserSummary
from event_hub_api.app.services.audit_service import AuditService
from event_hub_api.app.services.event_service import (
    check_registration_open,
    claim_seat,
    fetch_event_row,
    fetch_registered_users,
    is_event_paid,
    row_to_event,
)


logger = logging.getLogger(__name__)

PAYMENT_COLUMNS = (
    "p.id, p.event_id, p.user_id, p.amount, p.currency, p.payment_method, p.payment_status, "
    "p.transaction_id, p.payment_date, p.contact_full_name, p.contact_email, p.contact_phone, "
    "p.contact_address, p.created_at, p.updated_at"
)

DUPLICATE_PAYMENT_MESSAGE = "Payment already completed for this event"
INVALID_METHOD_MESSAGE = f"Payment method must be one of: {', '.join(PAYMENT_METHODS)}"


def _row_to_payment(
    row: sqlite3.Row,
    event: Optional[EventSummary] = None,
    user: Optional[UserSummary] = None,
) -> PaymentRead:
    return PaymentRead(
        id=row["id"],
        event_id=row["event_id"],
        user_id=row["user_id"],
        amount=row["amount"],
        currency=row["currency"],
        payment_method=row["payment_method"],
        payment_status=row["payment_status"],
        transaction_id=row["transaction_id"],
        payment_date=row["payment_date"],
        contact_info=ContactInfo(
            full_name=row["contact_full_name"],
            email=row["contact_email"],
            phone=row["contact_phone"],
            address=row["contact_address"],
        ),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
        event=event,
        user=user,
    )


def _fetch_payment(cursor: sqlite3.Cursor, payment_id: int) -> Optional[PaymentRead]:
    row = cursor.execute(
        f"SELECT {PAYMENT_COLUMNS} FROM payments p WHERE p.id = ?",
        (payment_id,),
    ).fetchone()
    return _row_to_payment(row) if row else None


def _find_completed_payment(cursor: sqlite3.Cursor, event_id: int, user_id: int) -> Optional[PaymentRead]:
    row = cursor.execute(
        f"""
        SELECT {PAYMENT_COLUMNS} FROM payments p
        WHERE p.event_id = ? AND p.user_id = ? AND p.payment_status = 'completed'
        """,
        (event_id, user_id),
    ).fetchone()
    return _row_to_payment(row) if row else None


def _has_complete_contact(contact: Optional[ContactInfo]) -> bool:
    if contact is None:
        return False
    return all(
        value and value.strip()
        for value in (contact.full_name, contact.email, contact.phone)
    )


def generate_transaction_id(user_id: int) -> str:
    """Placeholder transaction id used when the client does not send one."""
    return f"TXN_{int(time.time() * 1000)}_{user_id}"


def compute_stats(payments: List[PaymentRead]) -> PaymentStats:
    """Aggregate counts per status and revenue over completed payments."""
    completed = [p for p in payments if p.payment_status == "completed"]
    return PaymentStats(
        total=len(payments),
        completed=len(completed),
        pending=sum(1 for p in payments if p.payment_status == "pending"),
        failed=sum(1 for p in payments if p.payment_status == "failed"),
        total_revenue=sum(p.amount for p in completed),
    )


class PaymentService:
    """Service for payments attached to paid events."""

    @classmethod
    async def register_paid_event(
        cls,
        event_id: int,
        data: PaidRegistrationCreate,
        current_user: Dict[str, Any],
    ) -> Tuple[PaymentRead, EventRead]:
        """Register the caller for a paid event and record the payment.

        Preconditions are checked in order and the first failure is
        raised: ``LookupError`` if the event does not exist, otherwise
        ``ValueError`` for a free event, a past event, an existing
        registration, a full event, an existing completed payment,
        incomplete contact information or an unknown payment method.

        Returns the stored payment and the event with its updated
        registrant set.
        """
        user_id = current_user.get("user_id")
        conn = get_connection()
        try:
            cursor = conn.cursor()
            event_row = fetch_event_row(cursor, event_id)
            if not event_row:
                raise LookupError("Event not found")
            if not is_event_paid(event_row):
                raise ValueError("This event is free. Use regular registration.")
            check_registration_open(event_row, fetch_registered_users(cursor, event_id), user_id)
            if _find_completed_payment(cursor, event_id, user_id):
                raise ValueError(DUPLICATE_PAYMENT_MESSAGE)
            contact = data.contact_info
            if not _has_complete_contact(contact):
                raise ValueError("Please provide complete contact information")
            payment_method = data.payment_method or DEFAULT_PAYMENT_METHOD
            if payment_method not in PAYMENT_METHODS:
                raise ValueError(INVALID_METHOD_MESSAGE)

            payment_status = "pending" if payment_method == CASH_ON_REGISTRATION else "completed"
            transaction_id = data.transaction_id or generate_transaction_id(user_id)
            timestamp = now_timestamp()
            payment_date = timestamp if payment_status == "completed" else None

            try:
                claim_seat(cursor, event_id, user_id)
                cursor.execute(
                    """
                    INSERT INTO payments (event_id, user_id, amount, currency, payment_method, payment_status,
                                          transaction_id, payment_date, contact_full_name, contact_email,
                                          contact_phone, contact_address, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        event_id,
                        user_id,
                        event_row["price"],
                        event_row["currency"],
                        payment_method,
                        payment_status,
                        transaction_id,
                        payment_date,
                        contact.full_name,
                        contact.email,
                        contact.phone,
                        contact.address,
                        timestamp,
                        timestamp,
                    ),
                )
            except sqlite3.IntegrityError:
                conn.rollback()
                raise ValueError(DUPLICATE_PAYMENT_MESSAGE)
            except ValueError:
                conn.rollback()
                raise
            payment_id = cursor.lastrowid
            conn.commit()

            payment = _fetch_payment(cursor, payment_id)
            event = row_to_event(event_row, fetch_registered_users(cursor, event_id))
        finally:
            conn.close()

        logger.info(
            "User %s registered for paid event %s via %s (payment %s, %s)",
            user_id,
            event_id,
            payment_method,
            payment_id,
            payment_status,
        )
        await AuditService.log(
            user_id=user_id,
            action="create",
            object_type="payment",
            object_id=payment_id,
            details={
                "event_id": event_id,
                "amount": payment.amount,
                "payment_method": payment_method,
                "payment_status": payment_status,
            },
        )
        return payment, event

    @classmethod
    async def update_status(
        cls,
        payment_id: int,
        data: PaymentStatusUpdate,
        current_user: Dict[str, Any],
    ) -> PaymentRead:
        """Overwrite the status and/or transaction id of a payment.

        Allowed for the payer, the event organizer or an administrator.
        ``payment_date`` is stamped only when the payment becomes
        ``completed`` and has no date yet, so repeated completions keep
        the original date.
        """
        conn = get_connection()
        try:
            cursor = conn.cursor()
            row = cursor.execute(
                """
                SELECT p.id, p.user_id, p.payment_status, e.created_by AS organizer_id
                FROM payments p JOIN events e ON e.id = p.event_id
                WHERE p.id = ?
                """,
                (payment_id,),
            ).fetchone()
            if not row:
                raise LookupError("Payment record not found")
            check_access(
                current_user,
                OWNER,
                ORGANIZER,
                ADMIN,
                owner_id=row["user_id"],
                organizer_id=row["organizer_id"],
            )

            fields: List[str] = []
            params: List[Any] = []
            timestamp = now_timestamp()
            if data.payment_status:
                fields.append("payment_status = ?")
                params.append(data.payment_status)
                if data.payment_status == "completed":
                    fields.append("payment_date = COALESCE(payment_date, ?)")
                    params.append(timestamp)
            if data.transaction_id:
                fields.append("transaction_id = ?")
                params.append(data.transaction_id)
            if fields:
                fields.append("updated_at = ?")
                params.extend([timestamp, payment_id])
                try:
                    cursor.execute(
                        f"UPDATE payments SET {', '.join(fields)} WHERE id = ?",
                        tuple(params),
                    )
                except sqlite3.IntegrityError:
                    conn.rollback()
                    raise ValueError(DUPLICATE_PAYMENT_MESSAGE)
                conn.commit()
            payment = _fetch_payment(cursor, payment_id)
        finally:
            conn.close()

        if fields:
            logger.info(
                "Payment %s updated by user %s: %s -> %s",
                payment_id,
                current_user.get("user_id"),
                row["payment_status"],
                payment.payment_status,
            )
            await AuditService.log(
                user_id=current_user.get("user_id"),
                action="update",
                object_type="payment",
                object_id=payment_id,
                details=data.model_dump(exclude_none=True),
            )
        return payment

    @classmethod
    async def list_my_payments(cls, current_user: Dict[str, Any]) -> List[PaymentRead]:
        """Return the caller's payments, newest first, with event summaries."""
        conn = get_connection()
        try:
            rows = conn.execute(
                f"""
                SELECT {PAYMENT_COLUMNS},
                       e.title AS event_title, e.start_at AS event_start_at,
                       e.end_at AS event_end_at, e.location AS event_location
                FROM payments p LEFT JOIN events e ON e.id = p.event_id
                WHERE p.user_id = ?
                ORDER BY p.created_at DESC, p.id DESC
                """,
                (current_user.get("user_id"),),
            ).fetchall()
        finally:
            conn.close()
        results: List[PaymentRead] = []
        for row in rows:
            event = None
            if row["event_title"] is not None:
                event = EventSummary(
                    id=row["event_id"],
                    title=row["event_title"],
                    start_at=row["event_start_at"],
                    end_at=row["event_end_at"],
                    location=row["event_location"],
                )
            results.append(_row_to_payment(row, event=event))
        return results

    @classmethod
    async def list_event_payments(cls, event_id: int, current_user: Dict[str, Any]) -> EventPaymentsResponse:
        """Return all payments of an event with aggregate statistics.

        Only the event organizer or an administrator may view them.
        """
        conn = get_connection()
        try:
            cursor = conn.cursor()
            event_row = fetch_event_row(cursor, event_id)
            if not event_row:
                raise LookupError("Event not found")
            check_access(current_user, ORGANIZER, ADMIN, organizer_id=event_row["created_by"])
            rows = cursor.execute(
                f"""
                SELECT {PAYMENT_COLUMNS},
                       u.full_name AS user_full_name, u.email AS user_email
                FROM payments p LEFT JOIN users u ON u.id = p.user_id
                WHERE p.event_id = ?
                ORDER BY p.created_at DESC, p.id DESC
                """,
                (event_id,),
            ).fetchall()
        finally:
            conn.close()
        payments = []
        for row in rows:
            user = None
            if row["user_email"] is not None:
                user = UserSummary(id=row["user_id"], full_name=row["user_full_name"], email=row["user_email"])
            payments.append(_row_to_payment(row, user=user))
        return EventPaymentsResponse(payments=payments, stats=compute_stats(payments))

    @classmethod
    async def check_payment(cls, event_id: int, current_user: Dict[str, Any]) -> PaymentCheck:
        """Report whether the caller has a completed payment for the event."""
        conn = get_connection()
        try:
            payment = _find_completed_payment(conn.cursor(), event_id, current_user.get("user_id"))
        finally:
            conn.close()
        return PaymentCheck(has_paid=payment is not None, payment=payment)
