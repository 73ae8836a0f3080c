"""
Domain payloads for the dashboard client.

The query cache never looks inside these; hooks parse gateway responses into
them and views read them.
"""

from .models import (
    AdminDashboard,
    DailyRevenue,
    DashboardRevenue,
    Event,
    EventImpact,
    EventInput,
    EventType,
    LoginResponse,
    PaginatedEvents,
    PaginatedRevenue,
    PaginatedUsers,
    RevenueInput,
    RevenueRecord,
    User,
    UserRole,
    WeekData,
    WeeklySummary,
)

__all__ = [
    "AdminDashboard",
    "DailyRevenue",
    "DashboardRevenue",
    "Event",
    "EventImpact",
    "EventInput",
    "EventType",
    "LoginResponse",
    "PaginatedEvents",
    "PaginatedRevenue",
    "PaginatedUsers",
    "RevenueInput",
    "RevenueRecord",
    "User",
    "UserRole",
    "WeekData",
    "WeeklySummary",
]
