"""
Service layer for the analytics dashboard.

Produces the pre-aggregated summary the dashboard renders: totals for
events, registrations, revenue and active users over a time window,
plus category breakdowns, a per-day registration trend and the most
registered events.  Administrators see every event; other callers see
the events they organise.

Rows are fetched with parameterised queries and grouped in Python, as
the number of events handled by a single organiser is small.
"""

from __future__ import annotations

import logging
from collections import Counter, defaultdict
from datetime import timedelta
from typing import Any, Dict, List, Tuple

from event_hub_api.app.core.db import get_connection, to_db_timestamp, utc_now
from event_hub_api.app.core.permissions import is_admin
from event_hub_api.app.schemas.analytics import (
    AnalyticsDashboardRead,
    CategoryCount,
    CategoryRevenue,
    RegistrationTrendPoint,
    TopEvent,
)


logger = logging.getLogger(__name__)

ALLOWED_RANGES = (7, 30, 90, 365)
DEFAULT_RANGE = 30
TOP_EVENTS_LIMIT = 10
UNCATEGORIZED = "Uncategorized"


def _scope(current_user: Dict[str, Any]) -> Tuple[str, tuple]:
    """SQL fragment restricting rows to the events the caller may see."""
    if is_admin(current_user):
        return "", ()
    return " AND e.created_by = ?", (current_user.get("user_id"),)


class AnalyticsService:
    """Service computing the dashboard summary."""

    @classmethod
    async def dashboard(cls, current_user: Dict[str, Any], days: int = DEFAULT_RANGE) -> AnalyticsDashboardRead:
        """Return the summary for the last ``days`` days.

        Raises ``ValueError`` when ``days`` is not one of
        ``ALLOWED_RANGES``.
        """
        if days not in ALLOWED_RANGES:
            raise ValueError(f"days must be one of {', '.join(str(d) for d in ALLOWED_RANGES)}")
        now = utc_now()
        since = to_db_timestamp(now - timedelta(days=days))
        scope_sql, scope_params = _scope(current_user)

        conn = get_connection()
        try:
            cursor = conn.cursor()
            event_rows = cursor.execute(
                f"SELECT e.id, e.category FROM events e WHERE e.created_at >= ?{scope_sql}",
                (since, *scope_params),
            ).fetchall()
            registration_rows = cursor.execute(
                f"""
                SELECT r.event_id, r.user_id, r.registered_at, e.title, e.category
                FROM event_registrations r JOIN events e ON e.id = r.event_id
                WHERE r.registered_at >= ?{scope_sql}
                """,
                (since, *scope_params),
            ).fetchall()
            revenue_rows = cursor.execute(
                f"""
                SELECT p.amount, e.category
                FROM payments p JOIN events e ON e.id = p.event_id
                WHERE p.payment_status = 'completed' AND p.payment_date >= ?{scope_sql}
                """,
                (since, *scope_params),
            ).fetchall()
        finally:
            conn.close()

        category_counts = Counter(row["category"] or UNCATEGORIZED for row in event_rows)

        trend_counts: Counter = Counter()
        event_registrations: Counter = Counter()
        event_info: Dict[int, Tuple[str, Any]] = {}
        for row in registration_rows:
            trend_counts[row["registered_at"][:10]] += 1
            event_registrations[row["event_id"]] += 1
            event_info[row["event_id"]] = (row["title"], row["category"])

        revenue_by_category: Dict[str, float] = defaultdict(float)
        for row in revenue_rows:
            revenue_by_category[row["category"] or UNCATEGORIZED] += row["amount"]

        top_events: List[TopEvent] = [
            TopEvent(
                id=event_id,
                title=event_info[event_id][0],
                category=event_info[event_id][1],
                registrations=count,
            )
            for event_id, count in sorted(event_registrations.items(), key=lambda item: (-item[1], item[0]))
        ][:TOP_EVENTS_LIMIT]

        summary = AnalyticsDashboardRead(
            days=days,
            generated_at=now,
            total_events=len(event_rows),
            total_registrations=len(registration_rows),
            total_revenue=round(sum(revenue_by_category.values()), 2),
            active_users=len({row["user_id"] for row in registration_rows}),
            category_data=[
                CategoryCount(name=name, value=value)
                for name, value in sorted(category_counts.items(), key=lambda item: (-item[1], item[0]))
            ],
            registration_trends=[
                RegistrationTrendPoint(date=date, registrations=count)
                for date, count in sorted(trend_counts.items())
            ],
            revenue_by_category=[
                CategoryRevenue(category=category, revenue=round(revenue, 2))
                for category, revenue in sorted(revenue_by_category.items(), key=lambda item: (-item[1], item[0]))
            ],
            top_events=top_events,
        )
        logger.debug(
            "Analytics for user %s over %s days: %s events, %s registrations",
            current_user.get("user_id"),
            days,
            summary.total_events,
            summary.total_registrations,
        )
        return summary
