"""
Unit tests for the mutation invalidation map.
"""

import pytest

from dashboard_client.app.caching.invalidation import (
    INVALIDATIONS,
    MUTATION_ENTITIES,
    QUERY_FAMILIES,
    Entity,
    MutationKind,
    build_invalidation_map,
    check_invalidation_map,
    invalidations_for,
)
from dashboard_client.app.caching.keys import CacheKey, query_keys
from shared.errors import InvalidationMapError


class TestInvalidationMap:
    """Test cases for the derived invalidation map."""

    def test_map_is_complete(self):
        check_invalidation_map(INVALIDATIONS)
        assert set(INVALIDATIONS) == set(MutationKind)

    def test_revenue_update_invalidates_every_revenue_view(self):
        prefixes = invalidations_for(MutationKind.REVENUE_UPDATE)

        assert prefixes == (
            CacheKey.of("revenue"),
            CacheKey.of("admin", "dashboard"),
            CacheKey.of("admin", "analytics"),
            CacheKey.of("admin", "revenue"),
        )

    def test_event_writes_reach_revenue_rows(self):
        """Weekly revenue rows carry event markers."""
        prefixes = invalidations_for(MutationKind.ADMIN_EVENT_CREATE)

        assert query_keys.revenue.all in prefixes
        assert query_keys.events.all in prefixes
        assert CacheKey.of("admin", "revenue") not in prefixes

    def test_user_writes_only_touch_auth(self):
        assert invalidations_for(MutationKind.LOGIN) == (query_keys.auth.all,)
        assert invalidations_for(MutationKind.USER_DELETE) == (query_keys.auth.all,)

    def test_password_change_invalidates_nothing(self):
        assert invalidations_for(MutationKind.USER_CHANGE_PASSWORD) == ()
        assert invalidations_for(MutationKind.REFRESH_TOKEN) == ()

    def test_health_is_never_invalidated(self):
        for prefixes in INVALIDATIONS.values():
            assert query_keys.health.all not in prefixes

    def test_missing_mutation_is_reported(self):
        incomplete = dict(INVALIDATIONS)
        del incomplete[MutationKind.EVENT_DELETE]

        with pytest.raises(InvalidationMapError) as exc_info:
            check_invalidation_map(incomplete)

        assert exc_info.value.details["mutation"] == MutationKind.EVENT_DELETE.value

    def test_forgotten_dependent_view_is_reported(self):
        """Dropping admin/dashboard from a revenue write leaves that view stale."""
        broken = dict(INVALIDATIONS)
        broken[MutationKind.REVENUE_UPDATE] = (CacheKey.of("revenue"), CacheKey.of("admin", "revenue"))

        with pytest.raises(InvalidationMapError) as exc_info:
            check_invalidation_map(broken)

        assert "stale" in exc_info.value.message

    def test_unknown_prefix_is_reported(self):
        broken = dict(INVALIDATIONS)
        broken[MutationKind.USER_UPDATE] = (CacheKey.of("auth"), CacheKey.of("profiles"))

        with pytest.raises(InvalidationMapError):
            check_invalidation_map(broken)

    def test_undeclared_family_is_reported(self):
        families = {k: v for k, v in QUERY_FAMILIES.items() if k != query_keys.health.all}

        with pytest.raises(InvalidationMapError):
            check_invalidation_map(INVALIDATIONS, families=families)

    def test_new_dependency_flows_into_derived_map(self):
        """Declaring that admin/revenue also reads events makes event writes cover it."""
        families = dict(QUERY_FAMILIES)
        families[CacheKey.of("admin", "revenue")] = frozenset({Entity.REVENUE, Entity.EVENT})

        derived = build_invalidation_map(families, MUTATION_ENTITIES)

        assert CacheKey.of("admin", "revenue") in derived[MutationKind.EVENT_CREATE]
        check_invalidation_map(derived, families=families)

    def test_lookup_of_unmapped_kind_raises(self):
        with pytest.raises(InvalidationMapError):
            invalidations_for(MutationKind.LOGIN, invalidations={})
