"""
Admin dashboard queries and the admin CRUD surface for revenue and events.
"""

from typing import Any, Dict, Iterable, Optional, Union

from ..caching.invalidation import MutationKind
from ..caching.keys import query_keys
from ..caching.query_cache import Listener, Subscription
from ..domain.models import (
    AdminDashboard,
    BulkCreateResult,
    BulkDeleteResult,
    BulkSaveResult,
    Event,
    EventInput,
    PaginatedRevenue,
    RevenueInput,
    RevenueRecord,
)
from .base import EntityHooks, parse_model


def _wire(item: Any) -> Any:
    return item.to_wire() if isinstance(item, (RevenueInput, EventInput)) else item


class AdminHooks(EntityHooks):
    """Admin overview, analytics and revenue table."""

    async def fetch_dashboard(self) -> Optional[AdminDashboard]:
        return parse_model(AdminDashboard, await self.gateway.get("/admin/dashboard"))

    async def fetch_analytics(self, start_date: Optional[str] = None,
                              end_date: Optional[str] = None) -> Optional[AdminDashboard]:
        data = await self.gateway.get(
            "/admin/analytics", params={"startDate": start_date, "endDate": end_date}
        )
        return parse_model(AdminDashboard, data)

    async def fetch_revenue(self, page: Optional[int] = None,
                            limit: Optional[int] = None) -> Optional[PaginatedRevenue]:
        data = await self.gateway.get("/admin/revenue", params={"page": page, "limit": limit})
        return parse_model(PaginatedRevenue, data)

    # Queries

    def dashboard(self, listener: Optional[Listener] = None) -> Subscription:
        return self._query(query_keys.admin.dashboard(), self.fetch_dashboard, listener=listener)

    def analytics(self, start_date: Optional[str] = None, end_date: Optional[str] = None,
                  listener: Optional[Listener] = None) -> Subscription:
        return self._query(
            query_keys.admin.analytics(start_date, end_date),
            lambda: self.fetch_analytics(start_date, end_date),
            listener=listener
        )

    def revenue(self, page: Optional[int] = None, limit: Optional[int] = None,
                listener: Optional[Listener] = None) -> Subscription:
        return self._query(
            query_keys.admin.revenue(page, limit),
            lambda: self.fetch_revenue(page, limit),
            listener=listener
        )

    # Revenue mutations

    async def save_revenue(self, record: Union[RevenueInput, Dict[str, Any]]) -> Optional[RevenueRecord]:
        async def _save():
            # The backend upserts single records through the bulk endpoint
            data = await self.gateway.post("/admin/revenue/bulk", _wire(record))
            return parse_model(RevenueRecord, data)
        return await self._mutate(MutationKind.ADMIN_REVENUE_SAVE, _save)

    async def update_revenue(self, date: str, changes: Dict[str, Any]) -> Optional[RevenueRecord]:
        async def _update():
            return parse_model(RevenueRecord, await self.gateway.put(f"/admin/revenue/{date}", changes))
        return await self._mutate(MutationKind.ADMIN_REVENUE_UPDATE, _update)

    async def delete_revenue(self, date: str) -> Any:
        async def _delete():
            return await self.gateway.delete(f"/admin/revenue/{date}")
        return await self._mutate(MutationKind.ADMIN_REVENUE_DELETE, _delete)

    async def bulk_save_revenue(self, records: Iterable[Union[RevenueInput, Dict[str, Any]]]) -> BulkSaveResult:
        body = {"records": [_wire(record) for record in records]}

        async def _bulk_save():
            return BulkSaveResult.model_validate(await self.gateway.post("/admin/revenue/bulk", body) or {})
        return await self._mutate(MutationKind.ADMIN_REVENUE_BULK_SAVE, _bulk_save)

    async def bulk_delete_revenue(self, dates: Iterable[str]) -> BulkDeleteResult:
        body = {"dates": list(dates)}

        async def _bulk_delete():
            return BulkDeleteResult.model_validate(await self.gateway.delete("/admin/revenue/bulk", body) or {})
        return await self._mutate(MutationKind.ADMIN_REVENUE_BULK_DELETE, _bulk_delete)

    # Event mutations

    async def create_event(self, event: Union[EventInput, Dict[str, Any]]) -> Optional[Event]:
        async def _create():
            return parse_model(Event, await self.gateway.post("/admin/events", _wire(event)))
        return await self._mutate(MutationKind.ADMIN_EVENT_CREATE, _create)

    async def update_event(self, event_id: str, changes: Dict[str, Any]) -> Optional[Event]:
        async def _update():
            return parse_model(Event, await self.gateway.put(f"/admin/events/{event_id}", changes))
        return await self._mutate(MutationKind.ADMIN_EVENT_UPDATE, _update)

    async def delete_event(self, event_id: str) -> Any:
        async def _delete():
            return await self.gateway.delete(f"/admin/events/{event_id}")
        return await self._mutate(MutationKind.ADMIN_EVENT_DELETE, _delete)

    async def bulk_create_events(self, events: Iterable[Union[EventInput, Dict[str, Any]]]) -> BulkCreateResult:
        body = {"events": [_wire(event) for event in events]}

        async def _bulk_create():
            return BulkCreateResult.model_validate(await self.gateway.post("/admin/events/bulk", body) or {})
        return await self._mutate(MutationKind.ADMIN_EVENT_BULK_CREATE, _bulk_create)
