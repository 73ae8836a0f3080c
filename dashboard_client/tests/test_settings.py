"""
Unit tests for settings, metrics and logging setup.
"""

import pytest
from pydantic import ValidationError

from shared.config import DashboardSettings, get_settings
from shared.logging import add_correlation_context, get_logger, request_id_var, request_scope
from shared.metrics import MetricsCollector


class TestSettings:
    """Test cases for DashboardSettings."""

    def test_defaults(self, monkeypatch):
        for name in ("DASHBOARD_API_URL", "DASHBOARD_REQUEST_TIMEOUT", "DASHBOARD_GC_TIME"):
            monkeypatch.delenv(name, raising=False)

        settings = get_settings()

        assert settings.api_url == "http://localhost:3001/api"
        assert settings.request_timeout == 10.0
        assert settings.gc_time == 600.0
        assert settings.query_retries == 3
        assert settings.mutation_retries == 2

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("DASHBOARD_API_URL", "https://api.example.com/api")
        monkeypatch.setenv("DASHBOARD_QUERY_RETRIES", "1")

        settings = DashboardSettings()

        assert settings.api_url == "https://api.example.com/api"
        assert settings.query_retries == 1

    def test_invalid_timeout_is_rejected(self):
        with pytest.raises(ValidationError):
            get_settings(request_timeout=0)


class TestMetricsCollector:
    """Test cases for MetricsCollector."""

    def test_collectors_are_isolated(self):
        first = MetricsCollector("one")
        second = MetricsCollector("two")

        first.increment_counter("cache_hits_total", family="revenue")

        assert first.get_sample_value("cache_hits_total", family="revenue") == 1
        assert second.get_sample_value("cache_hits_total", family="revenue") == 0

    def test_unknown_metric_is_ignored(self):
        metrics = MetricsCollector("test")

        metrics.increment_counter("no_such_metric")
        assert metrics.get_metric("no_such_metric") is None

    def test_request_metrics(self):
        metrics = MetricsCollector("test")

        metrics.record_http_request("GET", "/revenue/dashboard", 200, 0.05)

        assert metrics.get_sample_value(
            "http_request_duration_seconds_count", method="GET", endpoint="/revenue/dashboard"
        ) == 1


class TestLogging:
    """Test cases for logging context."""

    def test_request_scope_restores_outer_id(self):
        with request_scope("outer"):
            with request_scope() as inner:
                assert request_id_var.get() == inner
                assert inner != "outer"
            assert request_id_var.get() == "outer"
        assert request_id_var.get() is None

    def test_correlation_context_is_added_to_events(self):
        with request_scope("req-1"):
            event = add_correlation_context(None, "info", {"event": "API response"})

        assert event["request_id"] == "req-1"

    def test_logger_accepts_keyword_fields(self):
        get_logger("test").info("Structured event", key="revenue/dashboard", generation=1)
