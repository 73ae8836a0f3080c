"""
Event queries and mutations.
"""

from typing import Any, Dict, List, Optional, Union

from ..caching.invalidation import MutationKind
from ..caching.keys import query_keys
from ..caching.query_cache import Listener, Subscription
from ..domain.models import (
    Event,
    EventInput,
    EventStatistics,
    EventType,
    MonthlyEvents,
    PaginatedEvents,
)
from .base import FIVE_MINUTES, TEN_MINUTES, CombinedQuery, EntityHooks, parse_list, parse_model


class EventHooks(EntityHooks):
    """Revenue-affecting events: listings, lookups, statistics and writes."""

    async def fetch_list(self, page: Optional[int] = None, limit: Optional[int] = None,
                         sort_by: Optional[str] = None,
                         sort_order: Optional[str] = None) -> Optional[PaginatedEvents]:
        params = {"page": page, "limit": limit, "sortBy": sort_by, "sortOrder": sort_order}
        return parse_model(PaginatedEvents, await self.gateway.get("/events", params=params))

    async def fetch_by_date(self, date: str) -> List[Event]:
        return parse_list(Event, await self.gateway.get(f"/events/date/{date}"))

    async def fetch_by_date_range(self, start_date: str, end_date: str) -> List[Event]:
        data = await self.gateway.get(
            "/events/range", params={"startDate": start_date, "endDate": end_date}
        )
        return parse_list(Event, data)

    async def fetch_by_type(self, event_type: str) -> List[Event]:
        return parse_list(Event, await self.gateway.get(f"/events/type/{event_type}"))

    async def fetch_by_id(self, event_id: str) -> Optional[Event]:
        return parse_model(Event, await self.gateway.get(f"/events/{event_id}"))

    async def fetch_statistics(self, start_date: Optional[str] = None,
                               end_date: Optional[str] = None) -> Optional[EventStatistics]:
        data = await self.gateway.get(
            "/events/statistics", params={"startDate": start_date, "endDate": end_date}
        )
        return parse_model(EventStatistics, data)

    async def fetch_monthly(self, year: int) -> List[MonthlyEvents]:
        return parse_list(MonthlyEvents, await self.gateway.get(f"/events/monthly/{year}"))

    # Queries

    def list(self, page: Optional[int] = None, limit: Optional[int] = None,
             sort_by: Optional[str] = None, sort_order: Optional[str] = None,
             listener: Optional[Listener] = None) -> Subscription:
        return self._query(
            query_keys.events.list(page, limit, sort_by, sort_order),
            lambda: self.fetch_list(page, limit, sort_by, sort_order),
            listener=listener
        )

    def by_date(self, date: str, enabled: bool = True,
                listener: Optional[Listener] = None) -> Subscription:
        return self._query(
            query_keys.events.by_date(date),
            lambda: self.fetch_by_date(date),
            enabled=enabled and bool(date),
            listener=listener
        )

    def by_date_range(self, start_date: str, end_date: str, enabled: bool = True,
                      listener: Optional[Listener] = None) -> Subscription:
        return self._query(
            query_keys.events.by_date_range(start_date, end_date),
            lambda: self.fetch_by_date_range(start_date, end_date),
            enabled=enabled and bool(start_date) and bool(end_date),
            listener=listener
        )

    def by_type(self, event_type: Union[EventType, str], enabled: bool = True,
                listener: Optional[Listener] = None) -> Subscription:
        value = event_type.value if isinstance(event_type, EventType) else event_type
        return self._query(
            query_keys.events.by_type(value),
            lambda: self.fetch_by_type(value),
            enabled=enabled and bool(value),
            listener=listener
        )

    def by_id(self, event_id: str, enabled: bool = True,
              listener: Optional[Listener] = None) -> Subscription:
        return self._query(
            query_keys.events.by_id(event_id),
            lambda: self.fetch_by_id(event_id),
            enabled=enabled and bool(event_id),
            listener=listener
        )

    def statistics(self, start_date: Optional[str] = None, end_date: Optional[str] = None,
                   listener: Optional[Listener] = None) -> Subscription:
        return self._query(
            query_keys.events.statistics(start_date, end_date),
            lambda: self.fetch_statistics(start_date, end_date),
            stale_time=FIVE_MINUTES,
            listener=listener
        )

    def monthly(self, year: int, enabled: bool = True,
                listener: Optional[Listener] = None) -> Subscription:
        return self._query(
            query_keys.events.monthly(year),
            lambda: self.fetch_monthly(year),
            stale_time=TEN_MINUTES,
            enabled=enabled and bool(year),
            listener=listener
        )

    def for_date_range(self, start_date: str, end_date: str, enabled: bool = True) -> CombinedQuery:
        """Events in a range together with their statistics."""
        return CombinedQuery(
            self.by_date_range(start_date, end_date, enabled),
            self.statistics(start_date, end_date)
        )

    # Mutations

    async def create(self, event: Union[EventInput, Dict[str, Any]]) -> Optional[Event]:
        body = event.to_wire() if isinstance(event, EventInput) else event

        async def _create():
            return parse_model(Event, await self.gateway.post("/events", body))
        return await self._mutate(MutationKind.EVENT_CREATE, _create)

    async def update(self, event_id: str, changes: Dict[str, Any]) -> Optional[Event]:
        async def _update():
            return parse_model(Event, await self.gateway.put(f"/events/{event_id}", changes))
        return await self._mutate(MutationKind.EVENT_UPDATE, _update)

    async def delete(self, event_id: str) -> None:
        async def _delete():
            await self.gateway.delete(f"/events/{event_id}")
        await self._mutate(MutationKind.EVENT_DELETE, _delete)
