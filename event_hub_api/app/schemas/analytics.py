"""Pydantic models for the analytics dashboard summary."""

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from .base import CamelModel


class CategoryCount(CamelModel):
    name: str
    value: int


class RegistrationTrendPoint(CamelModel):
    date: str
    registrations: int


class CategoryRevenue(CamelModel):
    category: str
    revenue: float


class TopEvent(CamelModel):
    id: int
    title: str
    category: Optional[str] = None
    registrations: int


class AnalyticsDashboardRead(CamelModel):
    """Pre-aggregated summary rendered by the analytics dashboard."""

    days: int
    generated_at: datetime
    total_events: int = 0
    total_registrations: int = 0
    total_revenue: float = 0
    active_users: int = 0
    category_data: List[CategoryCount] = Field(default_factory=list)
    registration_trends: List[RegistrationTrendPoint] = Field(default_factory=list)
    revenue_by_category: List[CategoryRevenue] = Field(default_factory=list)
    top_events: List[TopEvent] = Field(default_factory=list)
