import pytest

from conftest import API, contact_info
from event_hub_api.app.core.db import utc_now


def pay(client, user, event_id, method="GPay"):
    resp = client.post(
        f"{API}/payments/register-paid-event/{event_id}",
        json={"paymentMethod": method, "contactInfo": contact_info(), "transactionId": "T1"},
        headers=user["headers"],
    )
    assert resp.status_code == 200, resp.text
    return resp.json()["payment"]


def test_dashboard_summary(client, organizer, make_user, make_event):
    workshop = make_event(organizer, title="Workshop", category="Technology", price=500)
    concert = make_event(organizer, title="Concert", category="Music", price=300)
    meetup = make_event(organizer, title="Meetup", category=None, isPaid=False, price=0)
    alice, bob = make_user(), make_user()
    pay(client, alice, workshop["id"])
    pay(client, bob, workshop["id"])
    pay(client, alice, concert["id"], method="Cash on Registration")
    client.post(f"{API}/events/{meetup['id']}/register", headers=bob["headers"])

    resp = client.get(f"{API}/analytics/dashboard", params={"days": 7}, headers=organizer["headers"])

    assert resp.status_code == 200, resp.text
    data = resp.json()
    assert data["days"] == 7
    assert data["totalEvents"] == 3
    assert data["totalRegistrations"] == 4
    assert data["totalRevenue"] == 1000
    assert data["activeUsers"] == 2
    assert {item["name"]: item["value"] for item in data["categoryData"]} == {
        "Technology": 1,
        "Music": 1,
        "Uncategorized": 1,
    }
    assert data["revenueByCategory"] == [{"category": "Technology", "revenue": 1000}]
    assert data["registrationTrends"] == [{"date": utc_now().date().isoformat(), "registrations": 4}]
    assert data["topEvents"][0]["title"] == "Workshop"
    assert data["topEvents"][0]["registrations"] == 2


def test_confirmed_cash_payment_counts_as_revenue(client, organizer, attendee, make_event):
    event = make_event(organizer, price=300)
    payment = pay(client, attendee, event["id"], method="Cash on Registration")
    client.patch(
        f"{API}/payments/update-status/{payment['id']}",
        json={"paymentStatus": "completed"},
        headers=organizer["headers"],
    )

    data = client.get(f"{API}/analytics/dashboard", headers=organizer["headers"]).json()

    assert data["totalRevenue"] == 300


def test_dashboard_scope(client, organizer, admin, make_user, make_event):
    other = make_user()
    make_event(organizer, title="Mine")
    make_event(other, title="Theirs")

    mine = client.get(f"{API}/analytics/dashboard", headers=organizer["headers"]).json()
    everything = client.get(f"{API}/analytics/dashboard", headers=admin["headers"]).json()
    nothing = client.get(f"{API}/analytics/dashboard", headers=make_user()["headers"]).json()

    assert mine["totalEvents"] == 1
    assert everything["totalEvents"] == 2
    assert nothing["totalEvents"] == 0
    assert nothing["categoryData"] == []


@pytest.mark.parametrize("days", [0, 14, 400])
def test_unsupported_range_is_rejected(client, organizer, days):
    resp = client.get(f"{API}/analytics/dashboard", params={"days": days}, headers=organizer["headers"])

    assert resp.status_code == 400
    assert resp.json()["error"] == "days must be one of 7, 30, 90, 365"
