"""
Shared fixtures for dashboard client tests.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from dashboard_client.app.adapters.session_store import MemorySessionStore
from dashboard_client.app.caching.query_cache import QueryCache


DAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


def make_week(start_day: int, base: float, with_events: bool = False) -> dict:
    daily = []
    for index, day in enumerate(DAYS):
        row = {
            "date": f"2024-01-{start_day + index:02d}",
            "dayOfWeek": day,
            "posRevenue": base + index * 100,
            "eatclubRevenue": base / 4,
            "labourCosts": base / 2,
            "covers": 40 + index,
        }
        if with_events and index == 2:
            row["events"] = [{"type": "positive", "impact": 850, "description": "Live music night"}]
        if with_events and index == 5:
            row["events"] = [{"type": "negative", "impact": -400, "description": "Storm"}]
        daily.append(row)
    return {
        "weekStart": daily[0]["date"],
        "weekEnd": daily[-1]["date"],
        "dailyData": daily,
        "summary": {
            "totalRevenue": 16177,
            "averagePerDay": 2311,
            "totalCovers": 301,
            "previousWeekComparison": {
                "totalRevenue": 15023,
                "averagePerDay": 2146,
                "totalCovers": 288,
                "revenueChangePercent": 7.68,
                "averageChangePercent": 7.69,
                "coversChangePercent": 4.51,
            },
        },
    }


@pytest.fixture
def current_week_payload():
    return make_week(8, 2000.0, with_events=True)


@pytest.fixture
def previous_week_payload():
    return make_week(1, 1800.0)


@pytest.fixture
def dashboard_payload(current_week_payload, previous_week_payload):
    return {"currentWeek": current_week_payload, "previousWeek": previous_week_payload}


@pytest.fixture
def session_store():
    return MemorySessionStore()


@pytest.fixture
def gateway(session_store):
    """Gateway double with awaitable verbs."""
    gateway = MagicMock()
    gateway.session_store = session_store
    gateway.get = AsyncMock(return_value=None)
    gateway.post = AsyncMock(return_value=None)
    gateway.put = AsyncMock(return_value=None)
    gateway.patch = AsyncMock(return_value=None)
    gateway.delete = AsyncMock(return_value=None)
    return gateway


@pytest.fixture
def cache():
    return QueryCache(sleep=AsyncMock())
