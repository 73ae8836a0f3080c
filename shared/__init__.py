"""
Shared utilities for the revenue dashboard client.

This package aggregates common building blocks consumed by the client:

- config: Client configuration via pydantic-settings
- logging: Structured logging with correlation context
- metrics: Prometheus metrics helpers
- errors: Canonical error types and responses
- retry: Backoff calculation and retry runner

Any cross-cutting logic should live here to avoid import cycles across
client packages. Do not import from dashboard_client into shared/.
"""
