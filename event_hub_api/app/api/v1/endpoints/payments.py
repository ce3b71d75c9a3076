"""
Payment endpoints for API v1.

These routes register users for paid events, let the payer, the
organizer or an administrator update a payment's status (typically to
confirm a cash payment), and report payments per user and per event.
"""

from typing import List

from fastapi import APIRouter, Depends, Path

from event_hub_api.app.core.errors import to_http_exception
from event_hub_api.app.core.security import get_current_user
from event_hub_api.app.schemas.payment import (
    EventPaymentsResponse,
    PaidRegistrationCreate,
    PaidRegistrationResponse,
    PaymentCheck,
    PaymentRead,
    PaymentStatusResponse,
    PaymentStatusUpdate,
)
from event_hub_api.app.services.payment_service import PaymentService


router = APIRouter()


@router.post("/register-paid-event/{event_id}", response_model=PaidRegistrationResponse)
async def register_paid_event(
    body: PaidRegistrationCreate,
    event_id: int = Path(..., description="ID of the paid event"),
    current_user: dict = Depends(get_current_user),
) -> PaidRegistrationResponse:
    """Register for a paid event and record the payment.

    Digital methods are recorded as ``completed``; ``Cash on
    Registration`` is recorded as ``pending`` until confirmed.
    """
    try:
        payment, event = await PaymentService.register_paid_event(event_id, body, current_user)
    except (LookupError, ValueError) as e:
        raise to_http_exception(e)
    return PaidRegistrationResponse(
        msg="Registration and payment successful!",
        payment=payment,
        event=event,
    )


@router.patch("/update-status/{payment_id}", response_model=PaymentStatusResponse)
async def update_payment_status(
    body: PaymentStatusUpdate,
    payment_id: int = Path(..., description="ID of the payment"),
    current_user: dict = Depends(get_current_user),
) -> PaymentStatusResponse:
    """Update a payment's status and/or transaction id.

    Allowed for the payer, the event organizer or an administrator.
    """
    try:
        payment = await PaymentService.update_status(payment_id, body, current_user)
    except (LookupError, PermissionError, ValueError) as e:
        raise to_http_exception(e)
    return PaymentStatusResponse(msg="Payment status updated successfully!", payment=payment)


@router.get("/my-payments", response_model=List[PaymentRead])
async def my_payments(current_user: dict = Depends(get_current_user)) -> List[PaymentRead]:
    """Payment history of the caller, newest first."""
    return await PaymentService.list_my_payments(current_user)


@router.get("/event/{event_id}", response_model=EventPaymentsResponse)
async def event_payments(
    event_id: int = Path(..., description="ID of the event"),
    current_user: dict = Depends(get_current_user),
) -> EventPaymentsResponse:
    """Payments of an event with totals (organizer or administrator)."""
    try:
        return await PaymentService.list_event_payments(event_id, current_user)
    except (LookupError, PermissionError) as e:
        raise to_http_exception(e)


@router.get("/check/{event_id}", response_model=PaymentCheck)
async def check_payment(
    event_id: int = Path(..., description="ID of the event"),
    current_user: dict = Depends(get_current_user),
) -> PaymentCheck:
    """Whether the caller has a completed payment for the event."""
    return await PaymentService.check_payment(event_id, current_user)
