"""
Common test fixtures for the Event Hub API tests.

Every test gets its own SQLite file.  The ``make_user`` fixture
registers a user through the API and returns its id together with
ready-to-use ``Authorization`` headers; ``make_event`` creates an event
as a given organizer.
"""
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from event_hub_api.app.core.config import settings
from event_hub_api.app.core.db import get_connection, init_db
from event_hub_api.app.core.security import create_user_token
from event_hub_api.app.main import app


API = "/api/v1"


def in_days(days: float) -> str:
    """ISO timestamp ``days`` from now (negative for the past)."""
    return (datetime.now(timezone.utc) + timedelta(days=days)).isoformat()


def contact_info(**overrides):
    info = {
        "fullName": "Asha Rao",
        "email": "asha@example.com",
        "phone": "9876543210",
        "address": "12 MG Road, Bengaluru",
    }
    info.update(overrides)
    return info


@pytest.fixture(autouse=True)
def database(tmp_path, monkeypatch):
    """Point the application at a fresh database file."""
    monkeypatch.setattr(settings, "database_url", str(tmp_path / "event_hub_test.db"))
    init_db()
    yield tmp_path / "event_hub_test.db"


@pytest.fixture
def client(database):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def make_user(client):
    counter = {"n": 0}

    def _make(role="user", email=None, full_name="Test User"):
        counter["n"] += 1
        email = email or f"user{counter['n']}@example.com"
        resp = client.post(
            f"{API}/users/",
            json={"email": email, "password": "secret123", "fullName": full_name},
        )
        assert resp.status_code == 201, resp.text
        user_id = resp.json()["id"]
        if role != "user":
            conn = get_connection()
            try:
                conn.execute("UPDATE users SET role = ? WHERE id = ?", (role, user_id))
                conn.commit()
            finally:
                conn.close()
        token = create_user_token(user_id, role)
        return {
            "id": user_id,
            "email": email,
            "token": token,
            "headers": {"Authorization": f"Bearer {token}"},
        }

    return _make


@pytest.fixture
def organizer(make_user):
    return make_user(full_name="Olga Organizer")


@pytest.fixture
def attendee(make_user):
    return make_user(full_name="Asha Rao")


@pytest.fixture
def admin(make_user):
    return make_user(role="admin", full_name="Adam Admin")


@pytest.fixture
def make_event(client):
    def _make(owner, **overrides):
        body = {
            "title": "Campus Hackathon",
            "category": "Technology",
            "location": "Main Auditorium",
            "startAt": in_days(7),
            "endAt": in_days(8),
            "isPaid": True,
            "price": 500,
            "currency": "INR",
            "maxAttendees": 100,
        }
        body.update(overrides)
        resp = client.post(f"{API}/events/", json=body, headers=owner["headers"])
        assert resp.status_code == 201, resp.text
        return resp.json()

    return _make
