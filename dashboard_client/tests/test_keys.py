"""
Unit tests for cache keys and the key factory.
"""

import pytest

from dashboard_client.app.caching.keys import CacheKey, KeyParams, query_keys
from shared.errors import InvalidCacheKeyError


class TestCacheKey:
    """Test cases for CacheKey."""

    def test_same_parameters_produce_equal_keys(self):
        """Keys are compared structurally, not by identity."""
        assert query_keys.revenue.by_date("2024-01-01") == query_keys.revenue.by_date("2024-01-01")
        assert hash(query_keys.events.list(1, 10)) == hash(query_keys.events.list(1, 10))

    def test_different_parameters_produce_different_keys(self):
        assert query_keys.revenue.by_date("2024-01-01") != query_keys.revenue.by_date("2024-01-02")
        assert query_keys.events.list(1, 10) != query_keys.events.list(2, 10)

    def test_mapping_segments_ignore_order_and_unset_values(self):
        first = CacheKey.of("events", "list", {"page": 1, "limit": 10})
        second = CacheKey.of("events", "list", {"limit": 10, "page": 1, "sortBy": None})

        assert first == second
        assert isinstance(first.segments[2], KeyParams)
        assert first.segments[2].as_dict() == {"limit": 10, "page": 1}

    def test_factory_list_key_uses_wire_parameter_names(self):
        key = query_keys.events.list(page=2, sort_by="date", sort_order="desc")

        assert key.segments[:2] == ("events", "list")
        assert key.segments[2].as_dict() == {"page": 2, "sortBy": "date", "sortOrder": "desc"}

    def test_lists_are_normalized_to_tuples(self):
        assert CacheKey.of("a", [1, 2]) == CacheKey.of("a", (1, 2))

    def test_prefix_matching(self):
        """A key starts with itself and with every ancestor."""
        key = query_keys.revenue.by_date("2024-01-01")

        assert key.starts_with(query_keys.revenue.all)
        assert key.starts_with(key)
        assert key.is_descendant_of(query_keys.revenue.all)
        assert not key.is_descendant_of(key)
        assert not key.starts_with(query_keys.events.all)
        assert not query_keys.revenue.all.starts_with(key)

    def test_admin_family_prefixes(self):
        assert query_keys.admin.dashboard() == CacheKey.of("admin", "dashboard")
        assert query_keys.admin.analytics("2024-01-01", "2024-01-31").starts_with(
            CacheKey.of("admin", "analytics")
        )
        assert not query_keys.admin.revenue(1, 10).starts_with(query_keys.revenue.all)

    def test_coerce_accepts_strings_and_sequences(self):
        assert CacheKey.coerce("revenue") == query_keys.revenue.all
        assert CacheKey.coerce(["admin", "dashboard"]) == query_keys.admin.dashboard()
        assert CacheKey.coerce(query_keys.health.all) is query_keys.health.all

    def test_family_and_string_form(self):
        key = query_keys.events.monthly(2024)

        assert key.family == "events"
        assert str(key) == "events/monthly/2024"
        assert len(key) == 3

    def test_empty_key_is_rejected(self):
        with pytest.raises(InvalidCacheKeyError):
            CacheKey.of()

    def test_unsupported_segment_is_rejected(self):
        with pytest.raises(InvalidCacheKeyError):
            CacheKey.of("revenue", object())

    def test_nan_segment_is_rejected(self):
        with pytest.raises(InvalidCacheKeyError):
            CacheKey.of("revenue", float("nan"))

    def test_non_string_parameter_name_is_rejected(self):
        with pytest.raises(InvalidCacheKeyError):
            CacheKey.of("events", {1: "a"})

    def test_coerce_rejects_other_types(self):
        with pytest.raises(InvalidCacheKeyError) as exc_info:
            CacheKey.coerce(42)

        assert exc_info.value.code == "INVALID_CACHE_KEY"
