"""
API health check, polled while mounted.
"""

from typing import Optional

from ..caching.keys import query_keys
from ..caching.query_cache import Listener, Subscription
from ..domain.models import HealthStatus
from .base import EntityHooks, parse_model


HEALTH_STALE_TIME = 30.0
HEALTH_POLL_INTERVAL = 60.0
HEALTH_RETRIES = 3


class HealthHooks(EntityHooks):

    async def fetch_health(self) -> Optional[HealthStatus]:
        # The health payload is the envelope itself
        return parse_model(HealthStatus, await self.gateway.get("/health", unwrap=False))

    def check(self, enabled: bool = True, listener: Optional[Listener] = None) -> Subscription:
        return self._query(
            query_keys.health.all,
            self.fetch_health,
            stale_time=HEALTH_STALE_TIME,
            enabled=enabled,
            listener=listener,
            refetch_interval=HEALTH_POLL_INTERVAL,
            retry=HEALTH_RETRIES
        )
