"""
Central mapping from mutation kind to the key prefixes it invalidates.

Nothing here is hand-listed per mutation. Each query family declares which
entities its payload is built from, each mutation declares which entities it
writes, and the invalidation list is every family that reads something the
mutation wrote. ``check_invalidation_map`` guards the result.
"""

from enum import Enum
from typing import Dict, FrozenSet, Iterable, Mapping, Optional, Tuple

from shared.errors import InvalidationMapError

from .keys import AdminKeys, AuthKeys, CacheKey, EventKeys, HealthKeys, QueryKeys, RevenueKeys


class Entity(str, Enum):
    """Backend record types a write can touch."""
    REVENUE = "revenue"
    EVENT = "event"
    USER = "user"


class MutationKind(str, Enum):
    """Every write the client can perform."""
    REVENUE_CREATE_OR_UPDATE = "revenue.create_or_update"
    REVENUE_UPDATE = "revenue.update"
    REVENUE_DELETE = "revenue.delete"
    ADMIN_REVENUE_SAVE = "admin.revenue.save"
    ADMIN_REVENUE_UPDATE = "admin.revenue.update"
    ADMIN_REVENUE_DELETE = "admin.revenue.delete"
    ADMIN_REVENUE_BULK_SAVE = "admin.revenue.bulk_save"
    ADMIN_REVENUE_BULK_DELETE = "admin.revenue.bulk_delete"
    EVENT_CREATE = "event.create"
    EVENT_UPDATE = "event.update"
    EVENT_DELETE = "event.delete"
    ADMIN_EVENT_CREATE = "admin.event.create"
    ADMIN_EVENT_UPDATE = "admin.event.update"
    ADMIN_EVENT_DELETE = "admin.event.delete"
    ADMIN_EVENT_BULK_CREATE = "admin.event.bulk_create"
    LOGIN = "auth.login"
    REGISTER = "auth.register"
    REFRESH_TOKEN = "auth.refresh_token"
    USER_UPDATE = "user.update"
    USER_CHANGE_PASSWORD = "user.change_password"
    USER_DELETE = "user.delete"


# Weekly revenue rows carry the day's event markers, so revenue reads events too.
QUERY_FAMILIES: Dict[CacheKey, FrozenSet[Entity]] = {
    RevenueKeys.all: frozenset({Entity.REVENUE, Entity.EVENT}),
    EventKeys.all: frozenset({Entity.EVENT}),
    AdminKeys.dashboard_all: frozenset({Entity.REVENUE, Entity.EVENT}),
    AdminKeys.analytics_all: frozenset({Entity.REVENUE, Entity.EVENT}),
    AdminKeys.revenue_all: frozenset({Entity.REVENUE}),
    AuthKeys.all: frozenset({Entity.USER}),
    HealthKeys.all: frozenset(),
}

_REVENUE_WRITE = frozenset({Entity.REVENUE})
_EVENT_WRITE = frozenset({Entity.EVENT})
_USER_WRITE = frozenset({Entity.USER})
_NO_WRITE: FrozenSet[Entity] = frozenset()

MUTATION_ENTITIES: Dict[MutationKind, FrozenSet[Entity]] = {
    MutationKind.REVENUE_CREATE_OR_UPDATE: _REVENUE_WRITE,
    MutationKind.REVENUE_UPDATE: _REVENUE_WRITE,
    MutationKind.REVENUE_DELETE: _REVENUE_WRITE,
    MutationKind.ADMIN_REVENUE_SAVE: _REVENUE_WRITE,
    MutationKind.ADMIN_REVENUE_UPDATE: _REVENUE_WRITE,
    MutationKind.ADMIN_REVENUE_DELETE: _REVENUE_WRITE,
    MutationKind.ADMIN_REVENUE_BULK_SAVE: _REVENUE_WRITE,
    MutationKind.ADMIN_REVENUE_BULK_DELETE: _REVENUE_WRITE,
    MutationKind.EVENT_CREATE: _EVENT_WRITE,
    MutationKind.EVENT_UPDATE: _EVENT_WRITE,
    MutationKind.EVENT_DELETE: _EVENT_WRITE,
    MutationKind.ADMIN_EVENT_CREATE: _EVENT_WRITE,
    MutationKind.ADMIN_EVENT_UPDATE: _EVENT_WRITE,
    MutationKind.ADMIN_EVENT_DELETE: _EVENT_WRITE,
    MutationKind.ADMIN_EVENT_BULK_CREATE: _EVENT_WRITE,
    MutationKind.LOGIN: _USER_WRITE,
    MutationKind.REGISTER: _USER_WRITE,
    MutationKind.REFRESH_TOKEN: _NO_WRITE,
    MutationKind.USER_UPDATE: _USER_WRITE,
    MutationKind.USER_CHANGE_PASSWORD: _NO_WRITE,
    MutationKind.USER_DELETE: _USER_WRITE,
}

KNOWN_ROOTS: Tuple[CacheKey, ...] = (
    QueryKeys.revenue.all,
    QueryKeys.events.all,
    QueryKeys.auth.all,
    QueryKeys.admin.all,
    QueryKeys.health.all,
)


def derive_invalidations(
    kind: MutationKind,
    families: Mapping[CacheKey, FrozenSet[Entity]] = QUERY_FAMILIES,
    mutation_entities: Mapping[MutationKind, FrozenSet[Entity]] = MUTATION_ENTITIES,
) -> Tuple[CacheKey, ...]:
    """Every family that reads an entity ``kind`` writes, in declaration order."""
    if kind not in mutation_entities:
        raise InvalidationMapError(
            f"Mutation {kind.value} does not declare the entities it writes",
            details={"mutation": kind.value}
        )
    written = mutation_entities[kind]
    return tuple(family for family, reads in families.items() if reads & written)


def build_invalidation_map(
    families: Mapping[CacheKey, FrozenSet[Entity]] = QUERY_FAMILIES,
    mutation_entities: Mapping[MutationKind, FrozenSet[Entity]] = MUTATION_ENTITIES,
) -> Dict[MutationKind, Tuple[CacheKey, ...]]:
    return {
        kind: derive_invalidations(kind, families, mutation_entities)
        for kind in MutationKind
    }


def check_invalidation_map(
    invalidations: Mapping[MutationKind, Iterable[CacheKey]],
    families: Mapping[CacheKey, FrozenSet[Entity]] = QUERY_FAMILIES,
    mutation_entities: Mapping[MutationKind, FrozenSet[Entity]] = MUTATION_ENTITIES,
    roots: Iterable[CacheKey] = KNOWN_ROOTS,
) -> None:
    """Raise ``InvalidationMapError`` unless the map covers every dependent family."""
    for root in roots:
        if not any(family.starts_with(root) for family in families):
            raise InvalidationMapError(
                f"Key family {root} has no declared dependencies",
                details={"family": str(root)}
            )

    for kind in MutationKind:
        if kind not in invalidations:
            raise InvalidationMapError(
                f"Mutation {kind.value} has no invalidation entry",
                details={"mutation": kind.value}
            )
        if kind not in mutation_entities:
            raise InvalidationMapError(
                f"Mutation {kind.value} does not declare the entities it writes",
                details={"mutation": kind.value}
            )

        prefixes = tuple(invalidations[kind])
        for prefix in prefixes:
            if not any(family.starts_with(prefix) or prefix.starts_with(family) for family in families):
                raise InvalidationMapError(
                    f"Mutation {kind.value} invalidates unknown key {prefix}",
                    details={"mutation": kind.value, "prefix": str(prefix)}
                )

        written = mutation_entities[kind]
        for family, reads in families.items():
            if not reads & written:
                continue
            if not any(family.starts_with(prefix) for prefix in prefixes):
                raise InvalidationMapError(
                    f"Mutation {kind.value} leaves {family} stale",
                    details={"mutation": kind.value, "family": str(family)}
                )


INVALIDATIONS: Dict[MutationKind, Tuple[CacheKey, ...]] = build_invalidation_map()
check_invalidation_map(INVALIDATIONS)


def invalidations_for(kind: MutationKind,
                      invalidations: Optional[Mapping[MutationKind, Tuple[CacheKey, ...]]] = None
                      ) -> Tuple[CacheKey, ...]:
    table = INVALIDATIONS if invalidations is None else invalidations
    try:
        return tuple(table[kind])
    except KeyError:
        raise InvalidationMapError(
            f"Mutation {kind.value} has no invalidation entry",
            details={"mutation": kind.value}
        ) from None
