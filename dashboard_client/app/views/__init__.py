"""
View-layer glue for the dashboard screens.
"""

from .dashboard import (
    ChartFilters,
    ChartPoint,
    DashboardView,
    EventMarker,
    KpiCard,
    build_chart_data,
    event_markers,
    filter_chart_data,
    kpi_cards,
)

__all__ = [
    "ChartFilters",
    "ChartPoint",
    "DashboardView",
    "EventMarker",
    "KpiCard",
    "build_chart_data",
    "event_markers",
    "filter_chart_data",
    "kpi_cards",
]
