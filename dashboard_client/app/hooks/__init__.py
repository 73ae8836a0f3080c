"""
Entity hooks: one class per backend family.

Query methods return a live ``Subscription``; mutation methods are
coroutines that run through the cache and invalidate from the central map.
"""

from .admin import AdminHooks
from .base import CombinedQuery, EntityHooks
from .events import EventHooks
from .health import HealthHooks
from .revenue import RevenueHooks
from .users import UserHooks

__all__ = [
    "AdminHooks",
    "CombinedQuery",
    "EntityHooks",
    "EventHooks",
    "HealthHooks",
    "RevenueHooks",
    "UserHooks",
]
