"""
Payload models for the revenue dashboard API.

Field names are snake_case; the backend speaks camelCase (and ``_id`` for
document ids), so every model accepts either and serializes with aliases.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """Base for wire models: camelCase aliases, populate by field name too."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self, **kwargs) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, **kwargs)


class EventType(str, Enum):
    """Direction of an event's effect on revenue."""
    POSITIVE = "positive"
    NEGATIVE = "negative"


class UserRole(str, Enum):
    """User roles."""
    ADMIN = "admin"
    USER = "user"


class Pagination(ApiModel):
    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool = False
    has_prev: bool = False


# Revenue

class EventImpact(ApiModel):
    """Event marker attached to a daily revenue row."""
    type: EventType
    impact: float
    description: Optional[str] = None


class DailyRevenue(ApiModel):
    """One day of the weekly trend as returned by the revenue endpoints."""
    date: str
    day_of_week: str
    pos_revenue: float
    eatclub_revenue: float
    labour_costs: float
    covers: int
    events: List[EventImpact] = Field(default_factory=list)


class WeekComparison(ApiModel):
    total_revenue: float
    average_per_day: float
    total_covers: int
    revenue_change_percent: float
    average_change_percent: float
    covers_change_percent: float


class WeeklySummary(ApiModel):
    total_revenue: float
    average_per_day: float
    total_covers: int
    previous_week_comparison: Optional[WeekComparison] = None


class WeekData(ApiModel):
    week_start: str
    week_end: str
    daily_data: List[DailyRevenue] = Field(default_factory=list)
    summary: WeeklySummary


class DashboardRevenue(ApiModel):
    current_week: WeekData
    previous_week: WeekData


class RevenueRecord(ApiModel):
    """Stored revenue for one date; ``date`` is unique."""
    id: Optional[str] = Field(default=None, alias="_id")
    date: str
    pos_revenue: float
    eatclub_revenue: float
    labour_costs: float
    covers: int
    total_revenue: Optional[float] = None
    net_revenue: Optional[float] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @model_validator(mode="after")
    def _derive_totals(self) -> "RevenueRecord":
        if self.total_revenue is None:
            self.total_revenue = self.pos_revenue + self.eatclub_revenue
        if self.net_revenue is None:
            self.net_revenue = self.total_revenue - self.labour_costs
        return self


class RevenueInput(ApiModel):
    """Body for creating or replacing a revenue record."""
    date: str
    pos_revenue: float
    eatclub_revenue: float
    labour_costs: float
    covers: int


class DayRevenue(ApiModel):
    date: str
    revenue: float


class RevenueStatistics(ApiModel):
    total_revenue: float
    average_per_day: float
    total_covers: int
    total_days: int
    highest_day: Optional[DayRevenue] = None
    lowest_day: Optional[DayRevenue] = None


class RevenueTrend(ApiModel):
    date: str
    day_of_week: str
    current_revenue: float
    previous_revenue: float
    change: float
    change_percent: float
    is_positive: bool
    is_negative: bool


class PaginatedRevenue(ApiModel):
    data: List[RevenueRecord]
    pagination: Pagination


class BulkSaveResult(ApiModel):
    success: bool = True
    created: int = 0
    updated: int = 0


class BulkDeleteResult(ApiModel):
    success: bool = True
    deleted: int = 0


# Events

class Event(ApiModel):
    id: str = Field(alias="_id")
    date: str
    type: EventType
    impact: float
    description: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class EventInput(ApiModel):
    date: str
    type: EventType
    impact: float
    description: Optional[str] = None


class EventStatistics(ApiModel):
    total_events: int
    positive_events: int
    negative_events: int
    average_impact: float
    positive_percentage: float
    negative_percentage: float


class MonthlyEvents(ApiModel):
    month: str
    month_number: int
    count: int
    positive_count: int
    negative_count: int
    average_impact: float


class PaginatedEvents(ApiModel):
    events: List[Event]
    pagination: Pagination


class BulkCreateResult(ApiModel):
    success: bool = True
    created: int = 0


# Users

class User(ApiModel):
    id: str = Field(alias="_id")
    name: str
    email: str
    role: UserRole = UserRole.USER
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


class LoginResponse(ApiModel):
    user: User
    token: str


class TokenResponse(ApiModel):
    token: str


class PaginatedUsers(ApiModel):
    users: List[User]
    pagination: Pagination


# Admin

class ReportPeriod(ApiModel):
    start_date: str
    end_date: str
    days: int


class AdminDashboard(ApiModel):
    """Admin overview; the nested revenue/event breakdowns are passed through as-is."""
    revenue: Dict[str, Any] = Field(default_factory=dict)
    events: Dict[str, Any] = Field(default_factory=dict)
    trends: List[RevenueTrend] = Field(default_factory=list)
    period: Optional[ReportPeriod] = None


# Health

class HealthStatus(ApiModel):
    success: bool
    message: str
    timestamp: str
    version: str
