"""
Cache keys and the query key factory.

A key is an ordered tuple of segments. Keys form a prefix hierarchy, so
``("revenue",)`` names the whole revenue family and
``("revenue", "byDate", "2024-01-01")`` one query inside it.
"""

import math
from dataclasses import dataclass
from typing import Any, Iterator, Mapping, Optional, Tuple, Union

from shared.errors import InvalidCacheKeyError


@dataclass(frozen=True)
class KeyParams:
    """Hashable form of a mapping segment such as ``{"page": 1, "limit": 10}``."""

    items: Tuple[Tuple[str, Any], ...]

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> "KeyParams":
        items = []
        for name, value in mapping.items():
            if not isinstance(name, str):
                raise InvalidCacheKeyError(
                    "Key parameter names must be strings",
                    details={"name": repr(name)}
                )
            # Unset parameters do not change query identity
            if value is None:
                continue
            items.append((name, _normalize_segment(value)))
        return cls(tuple(sorted(items)))

    def as_dict(self) -> dict:
        return dict(self.items)

    def __repr__(self) -> str:
        inner = ", ".join(f"{name}={value!r}" for name, value in self.items)
        return f"{{{inner}}}"


Segment = Union[str, int, float, bool, None, KeyParams, Tuple[Any, ...]]


def _normalize_segment(value: Any) -> Segment:
    if value is None or isinstance(value, (str, bool, int)):
        return value
    if isinstance(value, float):
        if math.isnan(value):
            raise InvalidCacheKeyError("NaN cannot be used in a cache key")
        return value
    if isinstance(value, KeyParams):
        return value
    if isinstance(value, Mapping):
        return KeyParams.from_mapping(value)
    if isinstance(value, (list, tuple)):
        return tuple(_normalize_segment(item) for item in value)
    raise InvalidCacheKeyError(
        f"Unsupported cache key segment type: {type(value).__name__}",
        details={"segment": repr(value)}
    )


@dataclass(frozen=True)
class CacheKey:
    """Immutable, structurally compared query identity."""

    segments: Tuple[Segment, ...]

    def __post_init__(self):
        if not isinstance(self.segments, tuple) or not self.segments:
            raise InvalidCacheKeyError("A cache key needs at least one segment")

    @classmethod
    def of(cls, *segments: Any) -> "CacheKey":
        return cls(tuple(_normalize_segment(segment) for segment in segments))

    @classmethod
    def coerce(cls, value: Union["CacheKey", str, Tuple[Any, ...], list]) -> "CacheKey":
        """Accept a key, a bare family name, or a raw segment sequence."""
        if isinstance(value, CacheKey):
            return value
        if isinstance(value, str):
            return cls.of(value)
        if isinstance(value, (list, tuple)):
            return cls.of(*value)
        raise InvalidCacheKeyError(
            f"Cannot build a cache key from {type(value).__name__}",
            details={"value": repr(value)}
        )

    @property
    def family(self) -> str:
        return str(self.segments[0])

    def child(self, *segments: Any) -> "CacheKey":
        return CacheKey(self.segments + tuple(_normalize_segment(s) for s in segments))

    def starts_with(self, prefix: "CacheKey") -> bool:
        """True when ``prefix`` equals this key or is a prefix of it."""
        if len(prefix.segments) > len(self.segments):
            return False
        return self.segments[:len(prefix.segments)] == prefix.segments

    def is_descendant_of(self, ancestor: "CacheKey") -> bool:
        return len(ancestor.segments) < len(self.segments) and self.starts_with(ancestor)

    def __iter__(self) -> Iterator[Segment]:
        return iter(self.segments)

    def __len__(self) -> int:
        return len(self.segments)

    def __str__(self) -> str:
        return "/".join(repr(s) if not isinstance(s, str) else s for s in self.segments)


KeyLike = Union[CacheKey, str, Tuple[Any, ...], list]


def _params(**values: Any) -> KeyParams:
    return KeyParams.from_mapping(values)


class RevenueKeys:
    all = CacheKey.of("revenue")

    @staticmethod
    def current_week() -> CacheKey:
        return RevenueKeys.all.child("currentWeek")

    @staticmethod
    def previous_week() -> CacheKey:
        return RevenueKeys.all.child("previousWeek")

    @staticmethod
    def dashboard() -> CacheKey:
        return RevenueKeys.all.child("dashboard")

    @staticmethod
    def by_date(date: str) -> CacheKey:
        return RevenueKeys.all.child("byDate", date)

    @staticmethod
    def by_date_range(start_date: str, end_date: str) -> CacheKey:
        return RevenueKeys.all.child("byDateRange", start_date, end_date)

    @staticmethod
    def statistics(start_date: str, end_date: str) -> CacheKey:
        return RevenueKeys.all.child("statistics", start_date, end_date)

    @staticmethod
    def trends(start_date: str, end_date: str) -> CacheKey:
        return RevenueKeys.all.child("trends", start_date, end_date)


class EventKeys:
    all = CacheKey.of("events")

    @staticmethod
    def list(page: Optional[int] = None, limit: Optional[int] = None,
             sort_by: Optional[str] = None, sort_order: Optional[str] = None) -> CacheKey:
        return EventKeys.all.child(
            "list", _params(page=page, limit=limit, sortBy=sort_by, sortOrder=sort_order)
        )

    @staticmethod
    def by_date(date: str) -> CacheKey:
        return EventKeys.all.child("byDate", date)

    @staticmethod
    def by_date_range(start_date: str, end_date: str) -> CacheKey:
        return EventKeys.all.child("byDateRange", start_date, end_date)

    @staticmethod
    def by_type(event_type: str) -> CacheKey:
        return EventKeys.all.child("byType", event_type)

    @staticmethod
    def by_id(event_id: str) -> CacheKey:
        return EventKeys.all.child("byId", event_id)

    @staticmethod
    def statistics(start_date: Optional[str] = None, end_date: Optional[str] = None) -> CacheKey:
        return EventKeys.all.child("statistics", _params(startDate=start_date, endDate=end_date))

    @staticmethod
    def monthly(year: int) -> CacheKey:
        return EventKeys.all.child("monthly", year)


class AuthKeys:
    all = CacheKey.of("auth")

    @staticmethod
    def user(user_id: str) -> CacheKey:
        return AuthKeys.all.child("user", user_id)

    @staticmethod
    def users(page: Optional[int] = None, limit: Optional[int] = None) -> CacheKey:
        return AuthKeys.all.child("users", _params(page=page, limit=limit))


class AdminKeys:
    all = CacheKey.of("admin")
    dashboard_all = all.child("dashboard")
    analytics_all = all.child("analytics")
    revenue_all = all.child("revenue")

    @staticmethod
    def dashboard() -> CacheKey:
        return AdminKeys.dashboard_all

    @staticmethod
    def analytics(start_date: Optional[str] = None, end_date: Optional[str] = None) -> CacheKey:
        return AdminKeys.analytics_all.child(_params(startDate=start_date, endDate=end_date))

    @staticmethod
    def revenue(page: Optional[int] = None, limit: Optional[int] = None) -> CacheKey:
        return AdminKeys.revenue_all.child(_params(page=page, limit=limit))


class HealthKeys:
    all = CacheKey.of("health")


class QueryKeys:
    """Single entry point for every key the hooks use."""

    revenue = RevenueKeys
    events = EventKeys
    auth = AuthKeys
    admin = AdminKeys
    health = HealthKeys


query_keys = QueryKeys
