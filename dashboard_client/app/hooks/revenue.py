"""
Revenue queries and mutations.
"""

from typing import Any, Dict, List, Optional, Union

from ..caching.invalidation import MutationKind
from ..caching.keys import query_keys
from ..caching.query_cache import Listener, Subscription
from ..domain.models import (
    DailyRevenue,
    DashboardRevenue,
    RevenueInput,
    RevenueRecord,
    RevenueStatistics,
    RevenueTrend,
    WeekData,
)
from .base import FIVE_MINUTES, CombinedQuery, EntityHooks, parse_list, parse_model


RevenueBody = Union[RevenueInput, Dict[str, Any]]


def _body(data: Any) -> Any:
    return data.to_wire() if hasattr(data, "to_wire") else data


class RevenueHooks(EntityHooks):
    """Weekly revenue, date lookups, aggregates and revenue writes."""

    # Gateway calls

    async def fetch_current_week(self) -> Optional[WeekData]:
        return parse_model(WeekData, await self.gateway.get("/revenue/current-week"))

    async def fetch_previous_week(self) -> Optional[WeekData]:
        return parse_model(WeekData, await self.gateway.get("/revenue/previous-week"))

    async def fetch_dashboard(self) -> Optional[DashboardRevenue]:
        return parse_model(DashboardRevenue, await self.gateway.get("/revenue/dashboard"))

    async def fetch_by_date_range(self, start_date: str, end_date: str) -> Optional[WeekData]:
        data = await self.gateway.get(
            "/revenue/range", params={"startDate": start_date, "endDate": end_date}
        )
        return parse_model(WeekData, data)

    async def fetch_by_date(self, date: str) -> Optional[DailyRevenue]:
        return parse_model(DailyRevenue, await self.gateway.get(f"/revenue/date/{date}"))

    async def fetch_statistics(self, start_date: str, end_date: str) -> Optional[RevenueStatistics]:
        data = await self.gateway.get(
            "/revenue/statistics", params={"startDate": start_date, "endDate": end_date}
        )
        return parse_model(RevenueStatistics, data)

    async def fetch_trends(self, start_date: str, end_date: str) -> List[RevenueTrend]:
        data = await self.gateway.get(
            "/revenue/trends", params={"startDate": start_date, "endDate": end_date}
        )
        return parse_list(RevenueTrend, data)

    # Queries

    def current_week(self, listener: Optional[Listener] = None) -> Subscription:
        return self._query(query_keys.revenue.current_week(), self.fetch_current_week,
                           listener=listener)

    def previous_week(self, listener: Optional[Listener] = None) -> Subscription:
        return self._query(query_keys.revenue.previous_week(), self.fetch_previous_week,
                           listener=listener)

    def dashboard(self, listener: Optional[Listener] = None) -> Subscription:
        return self._query(query_keys.revenue.dashboard(), self.fetch_dashboard,
                           listener=listener)

    def by_date_range(self, start_date: str, end_date: str, enabled: bool = True,
                      listener: Optional[Listener] = None) -> Subscription:
        return self._query(
            query_keys.revenue.by_date_range(start_date, end_date),
            lambda: self.fetch_by_date_range(start_date, end_date),
            enabled=enabled and bool(start_date) and bool(end_date),
            listener=listener
        )

    def by_date(self, date: str, enabled: bool = True,
                listener: Optional[Listener] = None) -> Subscription:
        return self._query(
            query_keys.revenue.by_date(date),
            lambda: self.fetch_by_date(date),
            enabled=enabled and bool(date),
            listener=listener
        )

    def statistics(self, start_date: str, end_date: str, enabled: bool = True,
                   listener: Optional[Listener] = None) -> Subscription:
        return self._query(
            query_keys.revenue.statistics(start_date, end_date),
            lambda: self.fetch_statistics(start_date, end_date),
            stale_time=FIVE_MINUTES,
            enabled=enabled and bool(start_date) and bool(end_date),
            listener=listener
        )

    def trends(self, start_date: str, end_date: str, enabled: bool = True,
               listener: Optional[Listener] = None) -> Subscription:
        return self._query(
            query_keys.revenue.trends(start_date, end_date),
            lambda: self.fetch_trends(start_date, end_date),
            stale_time=FIVE_MINUTES,
            enabled=enabled and bool(start_date) and bool(end_date),
            listener=listener
        )

    def comparison(self) -> CombinedQuery:
        """Current and previous week side by side."""
        return CombinedQuery(self.current_week(), self.previous_week())

    # Mutations

    async def create_or_update(self, record: RevenueBody) -> Optional[RevenueRecord]:
        async def _save():
            return parse_model(RevenueRecord, await self.gateway.post("/revenue", _body(record)))
        return await self._mutate(MutationKind.REVENUE_CREATE_OR_UPDATE, _save)

    async def update(self, date: str, changes: Dict[str, Any]) -> Optional[RevenueRecord]:
        async def _update():
            return parse_model(RevenueRecord, await self.gateway.put(f"/revenue/{date}", changes))
        return await self._mutate(MutationKind.REVENUE_UPDATE, _update)

    async def delete(self, date: str) -> None:
        async def _delete():
            await self.gateway.delete(f"/revenue/{date}")
        await self._mutate(MutationKind.REVENUE_DELETE, _delete)
