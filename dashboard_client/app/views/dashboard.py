"""
Dashboard view transforms.

Turns the weekly revenue payload into what the dashboard draws: merged
chart rows, the visible series, event overlay markers and KPI cards.
Nothing here fetches; ``DashboardView`` reads through a subscription.
"""

from dataclasses import dataclass, field, replace
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, Optional

from shared.errors import ErrorInfo

from ..caching.query_cache import Subscription
from ..domain.models import DashboardRevenue, EventImpact, EventType, WeekData, WeeklySummary
from ..hooks.revenue import RevenueHooks


DAYS_IN_WEEK = 7
MARKER_OFFSET_PERCENT = 7.14
DEFAULT_TITLE = "This Week's Revenue Trend"


@dataclass
class ChartPoint:
    day: str
    pos_revenue: float
    eatclub_revenue: float
    labour_costs: float
    pos_revenue_previous: Optional[float] = None
    eatclub_revenue_previous: Optional[float] = None
    labour_costs_previous: Optional[float] = None
    events: List[EventImpact] = field(default_factory=list)


@dataclass(frozen=True)
class ChartFilters:
    show_pos_revenue: bool = True
    show_eatclub_revenue: bool = True
    show_labour_costs: bool = True


@dataclass(frozen=True)
class EventMarker:
    day_index: int
    left_percent: float
    type: EventType
    impact: float
    description: Optional[str] = None


@dataclass(frozen=True)
class KpiCard:
    title: str
    value: float
    formatted_value: str
    previous_value: Optional[float] = None
    formatted_previous: Optional[str] = None
    change_percent: Optional[float] = None
    change_label: Optional[str] = None

    @property
    def trend(self) -> str:
        if not self.change_percent:
            return "neutral"
        return "positive" if self.change_percent > 0 else "negative"


def build_chart_data(current_week: Optional[WeekData],
                     previous_week: Optional[WeekData]) -> List[ChartPoint]:
    """Merge the two weeks day by day; previous-week values may be missing."""
    if current_week is None or previous_week is None:
        return []

    points = []
    for index, day in enumerate(current_week.daily_data):
        previous = previous_week.daily_data[index] if index < len(previous_week.daily_data) else None
        points.append(ChartPoint(
            day=day.day_of_week,
            pos_revenue=day.pos_revenue,
            eatclub_revenue=day.eatclub_revenue,
            labour_costs=day.labour_costs,
            pos_revenue_previous=previous.pos_revenue if previous else None,
            eatclub_revenue_previous=previous.eatclub_revenue if previous else None,
            labour_costs_previous=previous.labour_costs if previous else None,
            events=list(day.events),
        ))
    return points


_SERIES = (
    ("show_pos_revenue", "pos_revenue"),
    ("show_eatclub_revenue", "eatclub_revenue"),
    ("show_labour_costs", "labour_costs"),
)


def filter_chart_data(points: List[ChartPoint], filters: ChartFilters,
                      show_comparison: bool = True) -> List[Dict[str, Any]]:
    """Rows with only the visible series; events are always kept for the overlay."""
    rows = []
    for point in points:
        row: Dict[str, Any] = {"day": point.day}
        for flag, series in _SERIES:
            if not getattr(filters, flag):
                continue
            row[series] = getattr(point, series)
            if show_comparison:
                row[f"{series}_previous"] = getattr(point, f"{series}_previous")
        row["events"] = point.events
        rows.append(row)
    return rows


def marker_position(index: int) -> float:
    return index * 100 / DAYS_IN_WEEK + MARKER_OFFSET_PERCENT


def event_markers(points: List[Any]) -> List[EventMarker]:
    """One marker per event, placed over its day's column."""
    markers = []
    for index, point in enumerate(points):
        events = point["events"] if isinstance(point, dict) else point.events
        for event in events or []:
            markers.append(EventMarker(
                day_index=index,
                left_percent=marker_position(index),
                type=event.type,
                impact=event.impact,
                description=event.description,
            ))
    return markers


def format_currency(value: float) -> str:
    """Whole US dollars with thousands separators, e.g. ``$12,346``."""
    rounded = Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    sign = "-" if rounded < 0 else ""
    return f"{sign}${abs(rounded):,}"


def format_number(value: float) -> str:
    rounded = Decimal(str(value)).quantize(Decimal("0.001"), rounding=ROUND_HALF_UP)
    if rounded == rounded.to_integral_value():
        return f"{int(rounded):,}"
    return f"{rounded:,}".rstrip("0").rstrip(".")


def format_change(change_percent: float) -> str:
    sign = "+" if change_percent > 0 else ""
    return f"({sign}{change_percent:.1f}%)"


def _card(title: str, value: float, formatter, previous: Optional[float],
          change_percent: Optional[float]) -> KpiCard:
    # A zero or missing previous value shows no comparison
    if not previous or change_percent is None:
        return KpiCard(title=title, value=value, formatted_value=formatter(value))
    return KpiCard(
        title=title,
        value=value,
        formatted_value=formatter(value),
        previous_value=previous,
        formatted_previous=formatter(previous),
        change_percent=change_percent,
        change_label=format_change(change_percent),
    )


def kpi_cards(summary: WeeklySummary, show_comparison: bool = True) -> List[KpiCard]:
    comparison = summary.previous_week_comparison if show_comparison else None
    return [
        _card("Total Revenue", summary.total_revenue, format_currency,
              comparison.total_revenue if comparison else None,
              comparison.revenue_change_percent if comparison else None),
        _card("Average per Day", summary.average_per_day, format_currency,
              comparison.average_per_day if comparison else None,
              comparison.average_change_percent if comparison else None),
        _card("Total Covers", summary.total_covers, format_number,
              comparison.total_covers if comparison else None,
              comparison.covers_change_percent if comparison else None),
    ]


class DashboardView:
    """The weekly revenue dashboard, bound to the cached dashboard query."""

    def __init__(self, revenue: RevenueHooks, title: str = DEFAULT_TITLE):
        self.base_title = title
        self.show_comparison = True
        self.filters = ChartFilters()
        self.subscription: Subscription = revenue.dashboard()

    @property
    def dashboard(self) -> Optional[DashboardRevenue]:
        return self.subscription.data

    @property
    def is_loading(self) -> bool:
        return self.subscription.result.is_loading

    @property
    def is_refreshing(self) -> bool:
        result = self.subscription.result
        return result.is_success and result.is_fetching

    @property
    def error(self) -> Optional[ErrorInfo]:
        result = self.subscription.result
        if result.is_error:
            return result.error_info
        if result.is_success and self.dashboard is None:
            return ErrorInfo(code="NO_DATA", message="No data available")
        return None

    @property
    def title(self) -> str:
        if self.show_comparison:
            return f"{self.base_title} vs Previous Period"
        return self.base_title

    def chart_rows(self) -> List[Dict[str, Any]]:
        dashboard = self.dashboard
        if dashboard is None:
            return []
        points = build_chart_data(dashboard.current_week, dashboard.previous_week)
        return filter_chart_data(points, self.filters, self.show_comparison)

    def markers(self) -> List[EventMarker]:
        return event_markers(self.chart_rows())

    def kpis(self) -> List[KpiCard]:
        dashboard = self.dashboard
        if dashboard is None:
            return []
        return kpi_cards(dashboard.current_week.summary, self.show_comparison)

    def toggle_comparison(self) -> bool:
        self.show_comparison = not self.show_comparison
        return self.show_comparison

    def set_filters(self, **flags: bool) -> ChartFilters:
        self.filters = replace(self.filters, **flags)
        return self.filters

    async def load(self):
        return await self.subscription.settled()

    async def retry(self):
        return await self.subscription.refetch()

    def close(self):
        self.subscription.unsubscribe()

    def __enter__(self) -> "DashboardView":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
