"""
Client caching package.

Holds the query cache every hook reads through, the key factory that gives
each query a deterministic identity, and the mutation invalidation map.
Prefer narrow keys for reads and family prefixes for invalidation.
"""

from .entry import EntryState, QueryOptions, QueryResult, QueryStatus
from .invalidation import INVALIDATIONS, MutationKind, check_invalidation_map, invalidations_for
from .keys import CacheKey, KeyParams, query_keys
from .query_cache import QueryCache, Subscription

__all__ = [
    "CacheKey",
    "EntryState",
    "INVALIDATIONS",
    "KeyParams",
    "MutationKind",
    "QueryCache",
    "QueryOptions",
    "QueryResult",
    "QueryStatus",
    "Subscription",
    "check_invalidation_map",
    "invalidations_for",
    "query_keys",
]
