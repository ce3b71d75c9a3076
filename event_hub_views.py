"""Presentational views built on :class:`event_hub_client.EventHubAPI`.

Two views are provided:

* :class:`AnalyticsDashboard` fetches the pre-aggregated analytics
  summary for a selectable time range, exposes the stat cards and
  chart series exactly as the server computed them, renders a text
  report and exports a CSV report.
* :class:`PaymentPage` is a controlled form for registering to a paid
  event: it collects contact information and a payment method,
  performs the required-field checks and posts the form to the
  registration endpoint.  The outcome is exposed through ``success``
  and ``alert``.

Neither view retries failed requests.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from event_hub_client import EventHubAPI


logger = logging.getLogger(__name__)

TIME_RANGES: Dict[str, str] = {
    "7": "Last 7 days",
    "30": "Last 30 days",
    "90": "Last 90 days",
    "365": "Last year",
}
DEFAULT_TIME_RANGE = "30"
TOP_EVENTS_SHOWN = 5

CASH_ON_REGISTRATION = "Cash on Registration"
PAYMENT_METHODS: Dict[str, str] = {
    "GPay": "Google Pay (GPay)",
    "PhonePe": "PhonePe",
    "Paytm": "Paytm",
    CASH_ON_REGISTRATION: "Cash on Registration",
}
CONTACT_FIELDS = ("fullName", "email", "phone", "address")
CURRENCY_SYMBOLS = {"INR": "₹"}


def _format_number(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value)


def generate_csv_report(data: Optional[Dict[str, Any]]) -> str:
    """Format the summary and category breakdown as CSV text.

    Missing totals are written as ``0``; an empty summary yields ``""``.
    """
    if not data:
        return ""
    csv = "Event Analytics Report\n\n"
    csv += "Summary Statistics\n"
    csv += f"Total Events,{_format_number(data.get('totalEvents') or 0)}\n"
    csv += f"Total Registrations,{_format_number(data.get('totalRegistrations') or 0)}\n"
    csv += f"Total Revenue,{_format_number(data.get('totalRevenue') or 0)}\n"
    csv += f"Active Users,{_format_number(data.get('activeUsers') or 0)}\n\n"
    csv += "Category Breakdown\n"
    csv += "Category,Count\n"
    for item in data.get("categoryData") or []:
        csv += f"{item.get('name')},{_format_number(item.get('value'))}\n"
    return csv


def report_filename(day: Optional[date] = None) -> str:
    day = day or date.today()
    return f"analytics-report-{day.isoformat()}.csv"


class AnalyticsDashboard:
    """Analytics dashboard backed by ``GET /analytics/dashboard``."""

    def __init__(self, api: EventHubAPI, time_range: str = DEFAULT_TIME_RANGE) -> None:
        if str(time_range) not in TIME_RANGES:
            raise ValueError(f"Unsupported time range: {time_range}")
        self.api = api
        self.time_range = str(time_range)
        self.analytics: Optional[Dict[str, Any]] = None
        self.error: Optional[Dict[str, Any]] = None
        self.loading = False

    def set_time_range(self, time_range: str) -> Optional[Dict[str, Any]]:
        """Select a new range and refetch the summary."""
        if str(time_range) not in TIME_RANGES:
            raise ValueError(f"Unsupported time range: {time_range}")
        self.time_range = str(time_range)
        return self.fetch_analytics()

    def fetch_analytics(self) -> Optional[Dict[str, Any]]:
        """Fetch the summary for the current range.

        Failures are logged and leave ``analytics`` empty; ``error``
        keeps the client's error dictionary.
        """
        self.loading = True
        try:
            data, error = self.api.analytics_dashboard(days=self.time_range)
            if error:
                logger.error("Error fetching analytics: %s", error.get("message"))
                self.analytics, self.error = None, error
            else:
                self.analytics, self.error = data, None
        finally:
            self.loading = False
        return self.analytics

    def _value(self, key: str, default: Any = 0) -> Any:
        if not self.analytics:
            return default
        return self.analytics.get(key) or default

    def stat_cards(self) -> List[Tuple[str, Any]]:
        return [
            ("Total Events", self._value("totalEvents")),
            ("Total Registrations", self._value("totalRegistrations")),
            ("Total Revenue", self._value("totalRevenue")),
            ("Active Users", self._value("activeUsers")),
        ]

    def chart_series(self) -> Dict[str, List[Dict[str, Any]]]:
        """Series for the trend, category and revenue charts."""
        return {
            "registrationTrends": list(self._value("registrationTrends", [])),
            "categoryData": list(self._value("categoryData", [])),
            "revenueByCategory": list(self._value("revenueByCategory", [])),
        }

    def category_shares(self) -> List[Tuple[str, int]]:
        """Pie chart labels: each category's share in whole percent."""
        data = self._value("categoryData", [])
        total = sum(item.get("value") or 0 for item in data)
        if not total:
            return []
        return [(item.get("name"), round((item.get("value") or 0) * 100 / total)) for item in data]

    def top_events(self, limit: int = TOP_EVENTS_SHOWN) -> List[Dict[str, Any]]:
        return list(self._value("topEvents", []))[:limit]

    def export_report(self, directory: str | Path = ".", day: Optional[date] = None) -> Path:
        """Write the CSV report into ``directory`` and return its path."""
        path = Path(directory) / report_filename(day)
        path.write_text(generate_csv_report(self.analytics), encoding="utf-8")
        logger.info("Analytics report exported to %s", path)
        return path

    def render(self) -> str:
        if self.loading:
            return "Loading analytics..."
        lines = [f"Analytics Dashboard ({TIME_RANGES[self.time_range]})", ""]
        for label, value in self.stat_cards():
            lines.append(f"{label}: {_format_number(value)}")
        shares = self.category_shares()
        if shares:
            lines.extend(["", "Categories:"])
            lines.extend(f"  {name} {percent}%" for name, percent in shares)
        top = self.top_events()
        if top:
            lines.extend(["", "Top Events:"])
            for index, event in enumerate(top, start=1):
                lines.append(
                    f"  {index}. {event.get('title')} ({event.get('category') or 'Uncategorized'})"
                    f" - {event.get('registrations', 0)} registrations"
                )
        return "\n".join(lines)


class PaymentPage:
    """Registration form for a paid event."""

    def __init__(self, api: EventHubAPI, event: Optional[Dict[str, Any]]) -> None:
        if not event:
            raise ValueError("No event selected")
        self.api = api
        self.event = event
        self.contact_info: Dict[str, str] = {field: "" for field in CONTACT_FIELDS}
        self.payment_method = "GPay"
        self.transaction_id = ""
        self.loading = False
        self.success = False
        self.alert: Optional[str] = None
        self.result: Optional[Dict[str, Any]] = None

    def set_contact(self, field: str, value: str) -> None:
        if field not in CONTACT_FIELDS:
            raise KeyError(field)
        self.contact_info[field] = value

    def select_payment_method(self, method: str) -> None:
        if method not in PAYMENT_METHODS:
            raise ValueError(f"Unsupported payment method: {method}")
        self.payment_method = method

    def set_transaction_id(self, transaction_id: str) -> None:
        self.transaction_id = transaction_id

    @property
    def requires_transaction_id(self) -> bool:
        return self.payment_method != CASH_ON_REGISTRATION

    def validate(self) -> Optional[str]:
        """Return the message to show for an incomplete form, else ``None``."""
        if not all(self.contact_info[field].strip() for field in CONTACT_FIELDS):
            return "Please fill all contact information"
        if self.requires_transaction_id and not self.transaction_id.strip():
            return "Please enter transaction ID for digital payments"
        return None

    def payload(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "paymentMethod": self.payment_method,
            "contactInfo": dict(self.contact_info),
        }
        if self.transaction_id.strip():
            body["transactionId"] = self.transaction_id.strip()
        return body

    def submit(self) -> bool:
        """Validate and post the form.  Returns True on success."""
        self.alert = None
        message = self.validate()
        if message:
            self.alert = message
            return False
        self.loading = True
        try:
            data, error = self.api.register_paid_event(self.event.get("id"), self.payload())
        finally:
            self.loading = False
        if error:
            if error.get("status_code") is None:
                self.alert = "Network error. Please try again."
            else:
                self.alert = error.get("message") or "Payment failed"
            return False
        if isinstance(data, dict) and data.get("msg"):
            self.result = data
            self.success = True
            logger.info("Registered for event %s: %s", self.event.get("id"), data["msg"])
            return True
        error_message = data.get("error") if isinstance(data, dict) else None
        self.alert = error_message or "Payment failed"
        return False

    def price_label(self) -> str:
        currency = self.event.get("currency") or ""
        symbol = CURRENCY_SYMBOLS.get(currency, currency)
        return f"{symbol} {_format_number(self.event.get('price', 0))}".strip()

    def event_date_label(self) -> str:
        start_at = self.event.get("startAt")
        if not start_at:
            return ""
        parsed = datetime.fromisoformat(str(start_at).replace("Z", "+00:00"))
        return f"{parsed.strftime('%B')} {parsed.day}, {parsed.year}"

    def render(self) -> str:
        lines = [
            f"Register for {self.event.get('title', '(untitled event)')}",
            f"Date: {self.event_date_label()}",
            f"Price: {self.price_label()}",
            "",
            "Contact Information",
            f"  Full name: {self.contact_info['fullName']}",
            f"  Email: {self.contact_info['email']}",
            f"  Phone: {self.contact_info['phone']}",
            f"  Address: {self.contact_info['address']}",
            "",
            f"Payment method: {PAYMENT_METHODS[self.payment_method]}",
        ]
        if self.requires_transaction_id:
            lines.append(f"Transaction ID: {self.transaction_id}")
        else:
            lines.append("Pay in cash at the venue; the organizer will confirm your payment.")
        if self.success:
            lines.extend(["", "Payment successful! You are registered for this event."])
        elif self.alert:
            lines.extend(["", self.alert])
        return "\n".join(lines)
