"""
Pydantic models for payment data.

A payment records what a user paid (or promised to pay in cash) for a
paid event, together with the contact details collected at
registration.
"""

from datetime import datetime
from typing import List, Literal, Optional, get_args

from pydantic import ConfigDict, Field

from .base import CamelModel
from .event import EventRead, EventSummary
from .user import UserSummary


CASH_ON_REGISTRATION = "Cash on Registration"
DEFAULT_PAYMENT_METHOD = "GPay"

PaymentMethod = Literal["GPay", "PhonePe", "Paytm", "Cash on Registration"]
PAYMENT_METHODS = get_args(PaymentMethod)
PaymentStatus = Literal["pending", "completed", "failed"]


class ContactInfo(CamelModel):
    # Name, email and phone are required; PaymentService enforces it.
    # Numbers sent for any field are kept as text.
    model_config = ConfigDict(coerce_numbers_to_str=True)

    full_name: Optional[str] = Field(None, examples=["Asha Rao"])
    email: Optional[str] = Field(None, examples=["asha@example.com"])
    phone: Optional[str] = Field(None, examples=["9876543210"])
    address: Optional[str] = Field(None, examples=["12 MG Road, Bengaluru"])


class PaidRegistrationCreate(CamelModel):
    """Body of ``POST /payments/register-paid-event/{event_id}``."""

    model_config = ConfigDict(coerce_numbers_to_str=True)

    # Checked by PaymentService after the registration rules.
    payment_method: Optional[str] = Field(None, examples=["GPay"])
    contact_info: Optional[ContactInfo] = None
    transaction_id: Optional[str] = Field(None, examples=["T1"])


class PaymentStatusUpdate(CamelModel):
    """Body of ``PATCH /payments/update-status/{payment_id}``."""

    payment_status: Optional[PaymentStatus] = Field(None, examples=["completed"])
    transaction_id: Optional[str] = None


class PaymentRead(CamelModel):
    """Schema for reading a payment."""

    id: int
    event_id: int
    user_id: int
    amount: float
    currency: str
    payment_method: PaymentMethod
    payment_status: PaymentStatus
    transaction_id: Optional[str] = None
    payment_date: Optional[datetime] = None
    contact_info: ContactInfo
    created_at: datetime
    updated_at: datetime
    event: Optional[EventSummary] = None
    user: Optional[UserSummary] = None


class PaidRegistrationResponse(CamelModel):
    msg: str
    payment: PaymentRead
    event: EventRead


class PaymentStatusResponse(CamelModel):
    msg: str
    payment: PaymentRead


class PaymentStats(CamelModel):
    total: int = 0
    completed: int = 0
    pending: int = 0
    failed: int = 0
    total_revenue: float = 0


class EventPaymentsResponse(CamelModel):
    payments: List[PaymentRead]
    stats: PaymentStats


class PaymentCheck(CamelModel):
    has_paid: bool
    payment: Optional[PaymentRead] = None
