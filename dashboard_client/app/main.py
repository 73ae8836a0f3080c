"""
Revenue dashboard client application.

``DashboardApp`` is the composition root: it owns the settings, the query
cache, the gateway and the hooks, and tears them down together.
"""

import asyncio
from typing import Optional

import httpx

from shared.config import DashboardSettings, get_settings
from shared.logging import configure_logging, get_logger
from shared.metrics import MetricsCollector, get_metrics_collector

from .adapters.gateway import RemoteDataGateway
from .adapters.session_store import SessionStore, get_session_store
from .auth.session import AuthSession
from .caching.query_cache import QueryCache
from .hooks import AdminHooks, EventHooks, HealthHooks, RevenueHooks, UserHooks
from .views.dashboard import DashboardView


class DashboardApp:
    """Dashboard client wiring."""

    def __init__(
        self,
        settings: DashboardSettings,
        *,
        session_store: Optional[SessionStore] = None,
        metrics: Optional[MetricsCollector] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        cache: Optional[QueryCache] = None,
    ):
        self.settings = settings
        self.logger = get_logger(settings.service_name)
        self.metrics = metrics or get_metrics_collector(settings.service_name)
        self.session_store = session_store or get_session_store(settings.session_file)
        self.cache = cache or QueryCache.create(settings, metrics=self.metrics)

        self.gateway = RemoteDataGateway(
            settings.api_url,
            self.session_store,
            timeout=settings.request_timeout,
            metrics=self.metrics,
            on_unauthorized=self._on_unauthorized,
            transport=transport,
        )

        self.revenue = RevenueHooks(self.cache, self.gateway)
        self.events = EventHooks(self.cache, self.gateway)
        self.users = UserHooks(self.cache, self.gateway)
        self.admin = AdminHooks(self.cache, self.gateway)
        self.health = HealthHooks(self.cache, self.gateway)
        self.auth = AuthSession(self.cache, self.users, self.session_store)

    @classmethod
    def create(cls, settings: Optional[DashboardSettings] = None, **kwargs) -> "DashboardApp":
        """Build the app from settings (environment when omitted) with logging configured."""
        settings = settings or get_settings()
        configure_logging(settings.service_name, settings.log_level)
        app = cls(settings, **kwargs)
        app.logger.info(
            "Dashboard client created",
            api_url=settings.api_url,
            env=settings.env,
            authenticated=app.auth.is_authenticated
        )
        return app

    def dashboard_view(self, **kwargs) -> DashboardView:
        return DashboardView(self.revenue, **kwargs)

    def _on_unauthorized(self):
        # Runs inside the rejected fetch; clear once that fetch has stored its error
        self.logger.warning("Session expired, clearing cached queries")
        asyncio.get_running_loop().call_soon(self.cache.clear)

    def dispose(self):
        self.cache.dispose()
        self.logger.info("Dashboard client disposed")

    async def __aenter__(self) -> "DashboardApp":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.dispose()


def create_app(settings: Optional[DashboardSettings] = None, **kwargs) -> DashboardApp:
    return DashboardApp.create(settings, **kwargs)
