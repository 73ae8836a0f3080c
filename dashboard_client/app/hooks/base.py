"""
Common plumbing for the entity hooks.
"""

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, List, Optional, Type, TypeVar

from pydantic import BaseModel

from shared.logging import get_logger

from ..adapters.gateway import RemoteDataGateway
from ..caching.invalidation import MutationKind, invalidations_for
from ..caching.keys import CacheKey
from ..caching.query_cache import Listener, QueryCache, Subscription
from ..caching.entry import QueryOptions


ModelT = TypeVar("ModelT", bound=BaseModel)

TWO_MINUTES = 2 * 60.0
FIVE_MINUTES = 5 * 60.0
TEN_MINUTES = 10 * 60.0


def parse_model(model: Type[ModelT], data: Any) -> Optional[ModelT]:
    if data is None:
        return None
    return model.model_validate(data)


def parse_list(model: Type[ModelT], data: Any) -> List[ModelT]:
    return [model.model_validate(item) for item in (data or [])]


class EntityHooks:
    """Binds keys, gateway calls and freshness for one entity family."""

    def __init__(self, cache: QueryCache, gateway: RemoteDataGateway):
        self.cache = cache
        self.gateway = gateway
        self.logger = get_logger(f"hooks.{self.__class__.__name__.lower()}")

    def _query(self, key: CacheKey, fetch_fn: Callable[[], Awaitable[Any]], *,
               stale_time: Optional[float] = TWO_MINUTES, enabled: bool = True,
               listener: Optional[Listener] = None, **options) -> Subscription:
        return self.cache.subscribe(
            key,
            fetch_fn,
            QueryOptions(enabled=enabled, stale_time=stale_time, **options),
            listener=listener
        )

    async def _mutate(self, kind: MutationKind, mutation_fn: Callable[..., Awaitable[Any]],
                      *args, **kwargs) -> Any:
        self.logger.debug("Running mutation", mutation=kind.value)
        return await self.cache.mutate(
            mutation_fn,
            *args,
            invalidates=invalidations_for(kind),
            **kwargs
        )


@dataclass
class CombinedQuery:
    """Two subscriptions read together, e.g. current and previous week."""

    first: Subscription
    second: Subscription

    @property
    def is_loading(self) -> bool:
        return self.first.result.is_loading or self.second.result.is_loading

    @property
    def is_error(self) -> bool:
        return self.first.result.is_error or self.second.result.is_error

    @property
    def error(self) -> Optional[BaseException]:
        return self.first.result.error or self.second.result.error

    async def settled(self) -> "CombinedQuery":
        await self.first.settled()
        await self.second.settled()
        return self

    def unsubscribe(self):
        self.first.unsubscribe()
        self.second.unsubscribe()

    def __enter__(self) -> "CombinedQuery":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.unsubscribe()
