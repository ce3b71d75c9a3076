"""Tests for paid-event registration and payment bookkeeping."""
import sqlite3

import pytest
from fastapi.testclient import TestClient

from conftest import API, contact_info, in_days
from event_hub_api.app.core.db import get_connection, now_timestamp
from event_hub_api.app.main import app
from event_hub_api.app.services.event_service import claim_seat
from event_hub_api.app.services.payment_service import PaymentService


def register_paid(client, user, event_id, **body):
    payload = {"paymentMethod": "GPay", "contactInfo": contact_info(), "transactionId": "T1"}
    payload.update(body)
    return client.post(
        f"{API}/payments/register-paid-event/{event_id}",
        json=payload,
        headers=user["headers"],
    )


def test_digital_payment_completes_and_registers(client, organizer, attendee, make_event):
    event = make_event(organizer, price=500, currency="INR", maxAttendees=1)

    resp = register_paid(client, attendee, event["id"], paymentMethod="GPay", transactionId="T1")

    assert resp.status_code == 200, resp.text
    data = resp.json()
    assert data["msg"] == "Registration and payment successful!"
    assert data["payment"]["paymentStatus"] == "completed"
    assert data["payment"]["paymentDate"] is not None
    assert data["payment"]["transactionId"] == "T1"
    assert data["payment"]["amount"] == 500
    assert data["payment"]["currency"] == "INR"
    assert data["payment"]["contactInfo"]["fullName"] == "Asha Rao"
    assert attendee["id"] in data["event"]["registeredUsers"]


def test_cash_on_registration_stays_pending(client, organizer, attendee, make_event):
    event = make_event(organizer)

    resp = register_paid(client, attendee, event["id"], paymentMethod="Cash on Registration", transactionId=None)

    assert resp.status_code == 200, resp.text
    payment = resp.json()["payment"]
    assert payment["paymentStatus"] == "pending"
    assert payment["paymentDate"] is None
    assert payment["transactionId"].startswith("TXN_")
    assert payment["transactionId"].endswith(f"_{attendee['id']}")


def test_payment_method_defaults_to_gpay(client, organizer, attendee, make_event):
    event = make_event(organizer)

    resp = client.post(
        f"{API}/payments/register-paid-event/{event['id']}",
        json={"contactInfo": contact_info()},
        headers=attendee["headers"],
    )

    assert resp.status_code == 200, resp.text
    assert resp.json()["payment"]["paymentMethod"] == "GPay"
    assert resp.json()["payment"]["paymentStatus"] == "completed"


@pytest.mark.parametrize("overrides", [{"isPaid": False, "price": 500}, {"isPaid": True, "price": 0}])
def test_free_event_is_rejected(client, organizer, attendee, make_event, overrides):
    event = make_event(organizer, **overrides)

    resp = register_paid(client, attendee, event["id"])

    assert resp.status_code == 400
    assert resp.json() == {"error": "This event is free. Use regular registration."}


def test_free_check_comes_before_past_check(client, organizer, attendee, make_event):
    event = make_event(organizer, isPaid=False, startAt=in_days(-2), endAt=None)

    resp = register_paid(client, attendee, event["id"], contactInfo=None)

    assert resp.json()["error"] == "This event is free. Use regular registration."


def test_past_event_is_rejected(client, organizer, attendee, make_event):
    event = make_event(organizer, startAt=in_days(-1), endAt=None)

    resp = register_paid(client, attendee, event["id"])

    assert resp.status_code == 400
    assert resp.json()["error"] == "Cannot register for past events"


def test_unknown_event_returns_404(client, attendee):
    resp = register_paid(client, attendee, 9999)

    assert resp.status_code == 404
    assert resp.json()["error"] == "Event not found"


def test_second_registration_is_rejected(client, organizer, attendee, make_event):
    event = make_event(organizer)
    assert register_paid(client, attendee, event["id"]).status_code == 200

    resp = register_paid(client, attendee, event["id"], transactionId="T2")

    assert resp.status_code == 400
    assert resp.json()["error"] == "Already registered for this event"


def test_full_event_is_rejected(client, organizer, attendee, make_user, make_event):
    event = make_event(organizer, maxAttendees=1)
    assert register_paid(client, make_user(), event["id"]).status_code == 200

    resp = register_paid(client, attendee, event["id"])

    assert resp.status_code == 400
    assert resp.json()["error"] == "Event is full"


def test_zero_max_attendees_means_unlimited(client, organizer, make_user, make_event):
    event = make_event(organizer, maxAttendees=0)

    for _ in range(3):
        assert register_paid(client, make_user(), event["id"]).status_code == 200


@pytest.mark.parametrize(
    "contact",
    [None, contact_info(fullName=""), contact_info(email=None), contact_info(phone="  ")],
)
def test_incomplete_contact_info_is_rejected(client, organizer, attendee, make_event, contact):
    event = make_event(organizer)

    resp = register_paid(client, attendee, event["id"], contactInfo=contact)

    assert resp.status_code == 400
    assert resp.json()["error"] == "Please provide complete contact information"


def test_address_is_optional_on_the_server(client, organizer, attendee, make_event):
    event = make_event(organizer)

    resp = register_paid(client, attendee, event["id"], contactInfo=contact_info(address=None))

    assert resp.status_code == 200


def test_unknown_payment_method_is_rejected_after_registration_rules(client, organizer, attendee, make_event):
    event = make_event(organizer)

    resp = register_paid(client, attendee, event["id"], paymentMethod="Bitcoin")

    assert resp.status_code == 400
    assert resp.json() == {"error": "Payment method must be one of: GPay, PhonePe, Paytm, Cash on Registration"}
    assert client.get(f"{API}/payments/my-payments", headers=attendee["headers"]).json() == []


def test_missing_event_wins_over_unknown_payment_method(client, attendee):
    resp = register_paid(client, attendee, 9999, paymentMethod="Bitcoin")

    assert resp.status_code == 404
    assert resp.json() == {"error": "Event not found"}


def test_incomplete_contact_wins_over_unknown_payment_method(client, organizer, attendee, make_event):
    event = make_event(organizer)

    resp = register_paid(client, attendee, event["id"], paymentMethod="Bitcoin", contactInfo=None)

    assert resp.json() == {"error": "Please provide complete contact information"}


def test_numeric_contact_values_are_stored_as_text(client, organizer, attendee, make_event):
    event = make_event(organizer)

    resp = register_paid(client, attendee, event["id"], contactInfo=contact_info(phone=9876543210), transactionId=42)

    assert resp.status_code == 200, resp.text
    assert resp.json()["payment"]["contactInfo"]["phone"] == "9876543210"
    assert resp.json()["payment"]["transactionId"] == "42"


def insert_payment(event_id, user_id, status):
    timestamp = now_timestamp()
    conn = get_connection()
    try:
        cursor = conn.execute(
            """
            INSERT INTO payments (event_id, user_id, amount, currency, payment_method, payment_status,
                                  payment_date, contact_full_name, contact_email, contact_phone,
                                  created_at, updated_at)
            VALUES (?, ?, 500, 'INR', 'GPay', ?, ?, 'A', 'a@example.com', '1', ?, ?)
            """,
            (event_id, user_id, status, timestamp if status == "completed" else None, timestamp, timestamp),
        )
        conn.commit()
        return cursor.lastrowid
    finally:
        conn.close()


def test_existing_completed_payment_blocks_registration(client, organizer, attendee, make_event):
    event = make_event(organizer)
    insert_payment(event["id"], attendee["id"], "completed")

    resp = register_paid(client, attendee, event["id"])

    assert resp.status_code == 400
    assert resp.json() == {"error": "Payment already completed for this event"}
    assert attendee["id"] not in client.get(f"{API}/events/{event['id']}", headers=attendee["headers"]).json()[
        "registeredUsers"
    ]


def test_completing_a_second_payment_for_the_same_event_is_rejected(client, organizer, attendee, make_event):
    event = make_event(organizer)
    assert register_paid(client, attendee, event["id"]).status_code == 200
    extra_id = insert_payment(event["id"], attendee["id"], "pending")

    resp = client.patch(
        f"{API}/payments/update-status/{extra_id}",
        json={"paymentStatus": "completed"},
        headers=organizer["headers"],
    )

    assert resp.status_code == 400
    assert resp.json() == {"error": "Payment already completed for this event"}
    check = client.get(f"{API}/payments/check/{event['id']}", headers=attendee["headers"]).json()
    assert check["payment"]["id"] != extra_id


def test_registration_requires_token(client, organizer, make_event):
    event = make_event(organizer)

    missing = client.post(f"{API}/payments/register-paid-event/{event['id']}", json={})
    invalid = client.post(
        f"{API}/payments/register-paid-event/{event['id']}",
        json={},
        headers={"Authorization": "Bearer not.a.token"},
    )

    assert missing.status_code == 401
    assert missing.json() == {"error": "No token, authorization denied"}
    assert invalid.status_code == 401
    assert invalid.json() == {"error": "Invalid token"}


def test_completed_payment_date_is_set_once(client, organizer, attendee, make_event):
    event = make_event(organizer)
    payment = register_paid(client, attendee, event["id"], paymentMethod="Cash on Registration").json()["payment"]
    url = f"{API}/payments/update-status/{payment['id']}"

    first = client.patch(url, json={"paymentStatus": "completed"}, headers=organizer["headers"])
    second = client.patch(url, json={"paymentStatus": "completed"}, headers=organizer["headers"])

    assert first.status_code == 200, first.text
    assert first.json()["msg"] == "Payment status updated successfully!"
    first_date = first.json()["payment"]["paymentDate"]
    assert first_date is not None
    assert second.json()["payment"]["paymentDate"] == first_date


def test_status_update_can_change_transaction_id_only(client, organizer, attendee, make_event):
    event = make_event(organizer)
    payment = register_paid(client, attendee, event["id"], paymentMethod="Cash on Registration").json()["payment"]

    resp = client.patch(
        f"{API}/payments/update-status/{payment['id']}",
        json={"transactionId": "CASH-42"},
        headers=attendee["headers"],
    )

    assert resp.status_code == 200
    assert resp.json()["payment"]["transactionId"] == "CASH-42"
    assert resp.json()["payment"]["paymentStatus"] == "pending"


def test_status_update_authorization(client, organizer, attendee, admin, make_user, make_event):
    event = make_event(organizer)
    payment = register_paid(client, attendee, event["id"], paymentMethod="Cash on Registration").json()["payment"]
    url = f"{API}/payments/update-status/{payment['id']}"

    stranger = client.patch(url, json={"paymentStatus": "failed"}, headers=make_user()["headers"])
    owner = client.patch(url, json={"paymentStatus": "failed"}, headers=attendee["headers"])
    by_admin = client.patch(url, json={"paymentStatus": "completed"}, headers=admin["headers"])

    assert stranger.status_code == 403
    assert stranger.json() == {"error": "Unauthorized"}
    assert owner.status_code == 200
    assert owner.json()["payment"]["paymentStatus"] == "failed"
    assert by_admin.status_code == 200
    assert by_admin.json()["payment"]["paymentStatus"] == "completed"


def test_status_update_unknown_payment(client, admin):
    resp = client.patch(f"{API}/payments/update-status/404", json={"paymentStatus": "completed"}, headers=admin["headers"])

    assert resp.status_code == 404
    assert resp.json()["error"] == "Payment record not found"


def test_invalid_status_value_is_rejected(client, organizer, attendee, make_event):
    event = make_event(organizer)
    payment = register_paid(client, attendee, event["id"]).json()["payment"]

    resp = client.patch(
        f"{API}/payments/update-status/{payment['id']}",
        json={"paymentStatus": "refunded"},
        headers=organizer["headers"],
    )

    assert resp.status_code == 400


def test_my_payments_newest_first_with_event_summary(client, organizer, attendee, make_event):
    first = make_event(organizer, title="Workshop")
    second = make_event(organizer, title="Concert")
    register_paid(client, attendee, first["id"])
    register_paid(client, attendee, second["id"], transactionId="T2")

    resp = client.get(f"{API}/payments/my-payments", headers=attendee["headers"])

    assert resp.status_code == 200
    payments = resp.json()
    assert [p["event"]["title"] for p in payments] == ["Concert", "Workshop"]
    assert set(payments[0]["event"]) == {"id", "title", "startAt", "endAt", "location"}


def test_my_payments_only_lists_own_payments(client, organizer, attendee, make_user, make_event):
    event = make_event(organizer)
    register_paid(client, make_user(), event["id"])

    resp = client.get(f"{API}/payments/my-payments", headers=attendee["headers"])

    assert resp.json() == []


def test_event_payments_stats(client, organizer, make_user, make_event):
    event = make_event(organizer, price=250)
    register_paid(client, make_user(), event["id"])
    register_paid(client, make_user(), event["id"], transactionId="T2")
    cash_user = make_user()
    cash = register_paid(client, cash_user, event["id"], paymentMethod="Cash on Registration").json()["payment"]
    failed_user = make_user()
    failed = register_paid(client, failed_user, event["id"], paymentMethod="Cash on Registration").json()["payment"]
    client.patch(
        f"{API}/payments/update-status/{failed['id']}",
        json={"paymentStatus": "failed"},
        headers=organizer["headers"],
    )

    resp = client.get(f"{API}/payments/event/{event['id']}", headers=organizer["headers"])

    assert resp.status_code == 200
    body = resp.json()
    assert body["stats"] == {"total": 4, "completed": 2, "pending": 1, "failed": 1, "totalRevenue": 500}
    assert body["payments"][0]["user"]["email"] == failed_user["email"]
    assert cash["id"] in [p["id"] for p in body["payments"]]


def test_event_payments_authorization(client, organizer, attendee, admin, make_event):
    event = make_event(organizer)

    assert client.get(f"{API}/payments/event/{event['id']}", headers=attendee["headers"]).status_code == 403
    assert client.get(f"{API}/payments/event/{event['id']}", headers=admin["headers"]).status_code == 200
    missing = client.get(f"{API}/payments/event/999", headers=admin["headers"])
    assert missing.status_code == 404
    assert missing.json()["error"] == "Event not found"


def test_check_payment(client, organizer, attendee, make_user, make_event):
    paid = make_event(organizer)
    cash = make_event(organizer, title="Cash event")

    before = client.get(f"{API}/payments/check/{paid['id']}", headers=attendee["headers"]).json()
    register_paid(client, attendee, paid["id"])
    register_paid(client, attendee, cash["id"], paymentMethod="Cash on Registration")
    after = client.get(f"{API}/payments/check/{paid['id']}", headers=attendee["headers"]).json()
    pending = client.get(f"{API}/payments/check/{cash['id']}", headers=attendee["headers"]).json()

    assert before == {"hasPaid": False, "payment": None}
    assert after["hasPaid"] is True
    assert after["payment"]["eventId"] == paid["id"]
    assert pending == {"hasPaid": False, "payment": None}


def test_storage_allows_one_completed_payment_per_user_and_event(client, organizer, attendee, make_event):
    event = make_event(organizer)
    register_paid(client, attendee, event["id"])
    timestamp = now_timestamp()

    conn = get_connection()
    try:
        with pytest.raises(sqlite3.IntegrityError):
            conn.execute(
                """
                INSERT INTO payments (event_id, user_id, amount, currency, payment_method, payment_status,
                                      contact_full_name, contact_email, contact_phone, created_at, updated_at)
                VALUES (?, ?, 500, 'INR', 'GPay', 'completed', 'A', 'a@example.com', '1', ?, ?)
                """,
                (event["id"], attendee["id"], timestamp, timestamp),
            )
    finally:
        conn.close()


def test_claim_seat_enforces_capacity_without_prechecks(client, organizer, attendee, make_user, make_event):
    full = make_event(organizer, maxAttendees=1)
    roomy = make_event(organizer, title="Roomy event")
    register_paid(client, attendee, full["id"])
    register_paid(client, attendee, roomy["id"])
    latecomer = make_user()

    conn = get_connection()
    try:
        cursor = conn.cursor()
        with pytest.raises(ValueError, match="Event is full"):
            claim_seat(cursor, full["id"], latecomer["id"])
        with pytest.raises(ValueError, match="Already registered for this event"):
            claim_seat(cursor, roomy["id"], attendee["id"])
    finally:
        conn.rollback()
        conn.close()


def test_unhandled_errors_do_not_leak_details(organizer, monkeypatch):
    async def boom(cls, event_id, current_user):
        raise RuntimeError("database file is locked at /secret/path")

    monkeypatch.setattr(PaymentService, "check_payment", classmethod(boom))

    with TestClient(app, raise_server_exceptions=False) as test_client:
        resp = test_client.get(f"{API}/payments/check/1", headers=organizer["headers"])

    assert resp.status_code == 500
    assert resp.json() == {"error": "Internal server error"}
