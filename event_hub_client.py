"""Event Hub API client.

A thin wrapper around the Event Hub REST API built on ``requests``.
Every high-level method returns a tuple ``(data, error)``: on success
``data`` holds the decoded JSON body and ``error`` is ``None``; on
failure ``data`` is ``None`` and ``error`` is a dictionary with the
keys ``status_code`` and ``message``.  Transport failures (connection
refused, timeouts) are reported with ``status_code`` set to ``None``.

Operations:

* :meth:`register`, :meth:`login`, :meth:`me` – accounts and bearer tokens.
* :meth:`list_events`, :meth:`get_event`, :meth:`create_event`,
  :meth:`update_event`, :meth:`delete_event` – events.
* :meth:`register_free_event` – join a free event.
* :meth:`register_paid_event` – register and pay for a paid event.
* :meth:`update_payment_status` – confirm or fail a payment.
* :meth:`my_payments`, :meth:`event_payments`, :meth:`check_payment` –
  payment reports.
* :meth:`analytics_dashboard` – fetch the dashboard summary.
* :meth:`audit_logs` – read the audit trail (administrators).

The base URL and token default to the ``EVENT_HUB_BASE_URL`` and
``EVENT_HUB_API_KEY`` environment variables.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, List, Optional, Tuple

import requests


logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:8000/api/v1"
DEFAULT_TIMEOUT = 15

Result = Tuple[Optional[Any], Optional[Dict[str, Any]]]


class EventHubAPI:
    """Client for the Event Hub API."""

    def __init__(
        self,
        *,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        """Initialise the API client.

        Args:
            base_url: Base URL including the version prefix, e.g.
                ``https://events.example.com/api/v1``.
            api_key: Bearer token sent in the ``Authorization`` header.
            session: Optional requests session.  If not supplied a
                session is created automatically.
            timeout: Per-request timeout in seconds.
        """
        self.base_url = (base_url or os.getenv("EVENT_HUB_BASE_URL", DEFAULT_BASE_URL)).rstrip("/")
        self.api_key = api_key if api_key is not None else os.getenv("EVENT_HUB_API_KEY") or None
        self.session = session or requests.Session()
        self.timeout = timeout

    # ------------------------------------------------------------------
    # Low level HTTP helpers
    # ------------------------------------------------------------------
    def _request(
        self, method: str, path: str, *, params: Dict[str, Any] | None = None,
        json_body: Any | None = None
    ) -> Result:
        """Perform an HTTP request to the API.

        Args:
            method: HTTP method (``GET``, ``POST``, ``PATCH``, ...).
            path: Path relative to :attr:`base_url` (e.g. ``/events/``).
            params: Query parameters to include in the request.
            json_body: JSON body to send with the request.
        Returns:
            A tuple ``(data, error)`` as described in the module docstring.
        """
        url = f"{self.base_url}{path}"
        headers: Dict[str, str] = {}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        try:
            logger.debug("Sending %s request to %s", method, url)
            response = self.session.request(
                method=method,
                url=url,
                params=params,
                json=json_body,
                headers=headers,
                timeout=self.timeout,
            )
            response.raise_for_status()
            if response.content:
                return response.json(), None
            return None, None
        except requests.HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else None
            message = ""
            if exc.response is not None:
                try:
                    err_json = exc.response.json()
                    message = err_json.get("error") or err_json.get("detail") or str(err_json)
                except (ValueError, AttributeError):
                    message = exc.response.text
            if not message:
                message = str(exc)
            logger.error("API request failed (%s): %s", status, message)
            return None, {"status_code": status, "message": message}
        except requests.RequestException as exc:
            logger.error("API request failed: %s", exc)
            return None, {"status_code": None, "message": str(exc)}

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------
    def login(self, email: str, password: str) -> Result:
        """Log in and keep the returned token for subsequent requests."""
        data, error = self._request("POST", "/users/login", json_body={"email": email, "password": password})
        if error:
            return None, error
        if isinstance(data, dict) and data.get("accessToken"):
            self.api_key = data["accessToken"]
        return data, None

    def register(self, email: str, password: str, full_name: Optional[str] = None) -> Result:
        """Create an account; the API answers with the stored user."""
        body: Dict[str, Any] = {"email": email, "password": password}
        if full_name:
            body["fullName"] = full_name
        return self._request("POST", "/users/", json_body=body)

    def me(self) -> Result:
        return self._request("GET", "/users/me")

    # ------------------------------------------------------------------
    # Event operations
    # ------------------------------------------------------------------
    def list_events(self, **filters: Any) -> Tuple[List[Dict[str, Any]], Optional[Dict[str, Any]]]:
        """Retrieve events; ``filters`` are passed as query parameters."""
        data, error = self._request("GET", "/events/", params=filters or None)
        if error:
            return [], error
        return (data if isinstance(data, list) else []), None

    def get_event(self, event_id: Any) -> Result:
        return self._request("GET", f"/events/{event_id}")

    def create_event(self, payload: Dict[str, Any]) -> Result:
        """Create an event organised by the token's user.

        ``payload`` uses the API field names (``title``, ``startAt``,
        ``isPaid``, ``price``, ``maxAttendees``, ...).
        """
        return self._request("POST", "/events/", json_body=payload)

    def update_event(self, event_id: Any, changes: Dict[str, Any]) -> Result:
        return self._request("PUT", f"/events/{event_id}", json_body=changes)

    def delete_event(self, event_id: Any) -> Result:
        """Delete an event; ``data`` is ``None`` on success."""
        return self._request("DELETE", f"/events/{event_id}")

    def register_free_event(self, event_id: Any) -> Result:
        return self._request("POST", f"/events/{event_id}/register")

    # ------------------------------------------------------------------
    # Payment operations
    # ------------------------------------------------------------------
    def register_paid_event(self, event_id: Any, payload: Dict[str, Any]) -> Result:
        """Register for a paid event.

        Args:
            event_id: Identifier of the paid event.
            payload: ``{"paymentMethod", "contactInfo", "transactionId"}``.
        """
        return self._request("POST", f"/payments/register-paid-event/{event_id}", json_body=payload)

    def update_payment_status(
        self,
        payment_id: Any,
        payment_status: Optional[str] = None,
        transaction_id: Optional[str] = None,
    ) -> Result:
        body: Dict[str, Any] = {}
        if payment_status:
            body["paymentStatus"] = payment_status
        if transaction_id:
            body["transactionId"] = transaction_id
        return self._request("PATCH", f"/payments/update-status/{payment_id}", json_body=body)

    def my_payments(self) -> Tuple[List[Dict[str, Any]], Optional[Dict[str, Any]]]:
        data, error = self._request("GET", "/payments/my-payments")
        if error:
            return [], error
        return (data if isinstance(data, list) else []), None

    def event_payments(self, event_id: Any) -> Result:
        """Payments and totals of an event (organizer or admin token required)."""
        return self._request("GET", f"/payments/event/{event_id}")

    def check_payment(self, event_id: Any) -> Result:
        return self._request("GET", f"/payments/check/{event_id}")

    # ------------------------------------------------------------------
    # Analytics
    # ------------------------------------------------------------------
    def analytics_dashboard(self, days: Any = 30) -> Result:
        """Fetch the analytics summary for the last ``days`` days."""
        return self._request("GET", "/analytics/dashboard", params={"days": days})

    # ------------------------------------------------------------------
    # Audit trail
    # ------------------------------------------------------------------
    def audit_logs(self, **filters: Any) -> Tuple[List[Dict[str, Any]], Optional[Dict[str, Any]]]:
        """Audit records, newest first (admin token required).

        ``filters`` may hold ``objectType``, ``objectId``, ``action``,
        ``limit`` and ``offset``.
        """
        data, error = self._request("GET", "/audit/", params=filters or None)
        if error:
            return [], error
        return (data if isinstance(data, list) else []), None
