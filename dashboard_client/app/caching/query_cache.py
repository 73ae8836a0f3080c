"""
Query cache shared by every hook and view of the dashboard client.

One entry per cache key. Subscribing to a key serves whatever is cached
(even when stale) and starts at most one fetch per key; every subscriber of
the key observes that fetch's outcome. Mutations invalidate key prefixes,
which refetches mounted queries and leaves unmounted ones stale until they
are subscribed again.
"""

import asyncio
import time
from typing import Any, Callable, Iterable, Optional, Set

from shared.config import DashboardSettings
from shared.errors import CacheDisposedError, QueryCancelledError
from shared.logging import get_logger
from shared.metrics import MetricsCollector
from shared.retry import RetryConfig, retry_async

from .entry import CacheEntry, FetchFn, FetchRun, QueryOptions, QueryResult
from .keys import CacheKey, KeyLike


Listener = Callable[[QueryResult], None]


class Subscription:
    """A live binding between one consumer and one cache entry."""

    def __init__(self, cache: "QueryCache", entry: CacheEntry, enabled: bool,
                 listener: Optional[Listener] = None):
        self._cache = cache
        self._entry = entry
        self.enabled = enabled
        self._listener = listener
        self.active = True

    @property
    def key(self) -> CacheKey:
        return self._entry.key

    @property
    def result(self) -> QueryResult:
        return self._entry.snapshot(self._cache.now())

    @property
    def data(self) -> Any:
        return self._entry.data

    async def settled(self) -> QueryResult:
        """Wait until the entry has no fetch in flight and return the snapshot."""
        while self.active:
            run = self._entry.current_run
            if run is None or run.task is None or run.task.done():
                break
            await asyncio.wait({run.task})
        return self.result

    async def refetch(self) -> QueryResult:
        """Force a new fetch for this key, e.g. from an error view's retry button."""
        self._cache.refetch(self.key)
        return await self.settled()

    def unsubscribe(self):
        self._cache._unsubscribe(self)

    def _deliver(self, result: QueryResult):
        if self._listener is None or not self.active:
            return
        try:
            self._listener(result)
        except Exception as exc:
            self._cache.logger.error(
                "Subscriber listener failed",
                key=str(self.key),
                error=str(exc)
            )

    def _detach(self):
        self.active = False

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.unsubscribe()

    def __repr__(self) -> str:
        return f"Subscription(key={self.key}, active={self.active})"


class QueryCache:
    """Keyed store of in-flight and completed fetches."""

    def __init__(
        self,
        *,
        stale_time: float = 0.0,
        gc_time: float = 600.0,
        query_retry: Optional[RetryConfig] = None,
        mutation_retry: Optional[RetryConfig] = None,
        metrics: Optional[MetricsCollector] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Any] = asyncio.sleep,
    ):
        self.default_stale_time = stale_time
        self.default_gc_time = gc_time
        self.query_retry = query_retry or RetryConfig(max_retries=3)
        self.mutation_retry = mutation_retry or RetryConfig(max_retries=2)
        self.metrics = metrics
        self.logger = get_logger("cache.query_cache")
        self._clock = clock
        self._sleep = sleep
        self._entries: dict = {}
        self._fetch_tasks: Set["asyncio.Task[Any]"] = set()
        self._disposed = False

    @classmethod
    def create(cls, settings: Optional[DashboardSettings] = None, **kwargs) -> "QueryCache":
        """Build a cache from settings; keyword arguments override them."""
        settings = settings or DashboardSettings()
        params = dict(
            stale_time=settings.stale_time,
            gc_time=settings.gc_time,
            query_retry=RetryConfig(
                max_retries=settings.query_retries,
                base_delay=settings.retry_base_delay,
                max_delay=settings.retry_max_delay,
            ),
            mutation_retry=RetryConfig(
                max_retries=settings.mutation_retries,
                base_delay=settings.retry_base_delay,
                max_delay=settings.retry_max_delay,
            ),
        )
        params.update(kwargs)
        return cls(**params)

    def now(self) -> float:
        return self._clock()

    # Inspection

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: KeyLike) -> bool:
        return CacheKey.coerce(key) in self._entries

    def get_entry(self, key: KeyLike) -> Optional[CacheEntry]:
        return self._entries.get(CacheKey.coerce(key))

    def get_query_data(self, key: KeyLike) -> Any:
        entry = self.get_entry(key)
        return entry.data if entry is not None else None

    def find_entries(self, prefix: KeyLike) -> list:
        prefix = CacheKey.coerce(prefix)
        return [entry for key, entry in self._entries.items() if key.starts_with(prefix)]

    # Queries

    def subscribe(self, key: KeyLike, fetch_fn: FetchFn,
                  options: Optional[QueryOptions] = None,
                  listener: Optional[Listener] = None) -> Subscription:
        """Bind a consumer to ``key``, fetching only if nothing fresh is cached."""
        self._ensure_active()
        key = CacheKey.coerce(key)
        options = options or QueryOptions()

        entry = self._entries.get(key)
        if entry is None:
            entry = CacheEntry(key=key)
            self._entries[key] = entry
            self._set_entry_gauge()
        elif entry.has_data:
            self._count("cache_hits_total", family=key.family)

        self._cancel_gc(entry)
        if options.enabled or entry.fetch_fn is None:
            entry.fetch_fn = fetch_fn
            entry.options = options

        subscription = Subscription(self, entry, options.enabled, listener)
        entry.subscriptions.append(subscription)
        entry.subscriber_count += 1

        if options.enabled:
            if not entry.is_fetching and entry.is_stale(self.now()):
                self._start_fetch(entry, "subscribe")
            self._ensure_polling(entry)

        return subscription

    async def fetch_query(self, key: KeyLike, fetch_fn: FetchFn,
                          options: Optional[QueryOptions] = None) -> Any:
        """Subscribe, wait for the outcome, unsubscribe; raise the stored error on failure."""
        with self.subscribe(key, fetch_fn, options) as subscription:
            result = await subscription.settled()
            cleared = not subscription.active
        if result.is_error:
            raise result.error
        if cleared and not result.is_success:
            raise QueryCancelledError(str(result.key))
        return result.data

    def refetch(self, key: KeyLike) -> bool:
        """Start a new generation for ``key`` even if a fetch is already running."""
        self._ensure_active()
        entry = self.get_entry(key)
        if entry is None or entry.fetch_fn is None:
            return False
        self._start_fetch(entry, "refetch")
        return True

    def invalidate(self, key_or_prefix: KeyLike) -> int:
        """Mark every entry under ``key_or_prefix`` stale; refetch the mounted ones."""
        self._ensure_active()
        prefix = CacheKey.coerce(key_or_prefix)
        matched = self.find_entries(prefix)
        refetched = 0

        for entry in matched:
            self._count("cache_invalidations_total", family=entry.key.family)
            if entry.active_subscriber_count == 0:
                entry.mark_invalidated()
                self._cancel_poll(entry)
                continue

            run = entry.current_run
            if run is not None and run.reason == "invalidate":
                # The running refetch may predate this write; its result must stay stale
                entry.mark_invalidated()
                continue

            entry.mark_invalidated()
            self._start_fetch(entry, "invalidate")
            refetched += 1

        self.logger.info(
            "Invalidated queries",
            prefix=str(prefix),
            matched=len(matched),
            refetched=refetched
        )
        return len(matched)

    # Mutations

    async def mutate(self, mutation_fn: Callable[..., Any], *args,
                     invalidates: Iterable[KeyLike] = (),
                     retry: Optional[RetryConfig] = None,
                     **kwargs) -> Any:
        """Run a write, then invalidate the declared prefixes if it succeeded."""
        self._ensure_active()
        prefixes = [CacheKey.coerce(prefix) for prefix in invalidates]
        name = getattr(mutation_fn, "__name__", "mutation")

        try:
            result = await retry_async(
                mutation_fn,
                *args,
                config=retry or self.mutation_retry,
                sleep=self._sleep,
                name=f"mutation.{name}",
                **kwargs
            )
        except Exception as exc:
            self._count("mutations_total", outcome="failure")
            self.logger.warning("Mutation failed", mutation=name, error=str(exc))
            raise

        self._count("mutations_total", outcome="success")
        for prefix in prefixes:
            self.invalidate(prefix)
        return result

    # Lifecycle

    def clear(self):
        """Evict everything and cancel outstanding work; used on logout."""
        for entry in list(self._entries.values()):
            self._cancel_gc(entry)
            self._cancel_poll(entry)
            if entry.current_run is not None and entry.current_run.task is not None:
                entry.current_run.task.cancel()
            entry.current_run = None
            for subscription in entry.subscriptions:
                subscription._detach()
            entry.subscriptions.clear()
            entry.subscriber_count = 0

        for task in list(self._fetch_tasks):
            task.cancel()

        evicted = len(self._entries)
        self._entries.clear()
        self._set_entry_gauge()
        self.logger.info("Query cache cleared", evicted=evicted)

    def dispose(self):
        if self._disposed:
            return
        self.clear()
        self._disposed = True
        self.logger.debug("Query cache disposed")

    async def wait_idle(self):
        """Wait until no fetch task is outstanding."""
        while self._fetch_tasks:
            await asyncio.wait(set(self._fetch_tasks))

    async def __aenter__(self) -> "QueryCache":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.dispose()

    # Internals

    def _ensure_active(self):
        if self._disposed:
            raise CacheDisposedError()

    def _stale_time(self, entry: CacheEntry) -> float:
        if entry.options.stale_time is not None:
            return entry.options.stale_time
        return self.default_stale_time

    def _gc_time(self, entry: CacheEntry) -> float:
        if entry.options.gc_time is not None:
            return entry.options.gc_time
        return self.default_gc_time

    def _retry_config(self, entry: CacheEntry) -> RetryConfig:
        if entry.options.retry is None:
            return self.query_retry
        base = self.query_retry
        return RetryConfig(
            max_retries=entry.options.retry,
            base_delay=base.base_delay,
            max_delay=base.max_delay,
            exponential_base=base.exponential_base,
            jitter=base.jitter,
            backoff_strategy=base.backoff_strategy,
        )

    def _start_fetch(self, entry: CacheEntry, reason: str) -> FetchRun:
        run = entry.begin_fetch(reason)
        run.task = asyncio.get_running_loop().create_task(
            self._run_fetch(entry, run, entry.fetch_fn)
        )
        self._fetch_tasks.add(run.task)
        run.task.add_done_callback(self._fetch_tasks.discard)
        self.logger.debug(
            "Fetch started",
            key=str(entry.key),
            generation=run.generation,
            reason=reason
        )
        self._notify(entry)
        return run

    async def _run_fetch(self, entry: CacheEntry, run: FetchRun, fetch_fn: FetchFn):
        try:
            data = await retry_async(
                fetch_fn,
                config=self._retry_config(entry),
                sleep=self._sleep,
                is_cancelled=lambda: not entry.is_current(run),
                name=f"query.{entry.key.family}",
            )
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            if not self._is_live(entry, run):
                self._discard(entry, run, "error")
                return
            entry.reject(run, exc)
            self._count("cache_fetches_total", family=entry.key.family, outcome="error")
            self.logger.warning(
                "Fetch failed",
                key=str(entry.key),
                generation=run.generation,
                error=str(exc)
            )
            self._notify(entry)
            self._after_settle(entry)
            return

        if not self._is_live(entry, run):
            self._discard(entry, run, "success")
            return

        entry.resolve(run, data, self.now(), self._stale_time(entry))
        self._count("cache_fetches_total", family=entry.key.family, outcome="success")
        self.logger.debug("Fetch succeeded", key=str(entry.key), generation=run.generation)
        self._notify(entry)
        self._after_settle(entry)

    def _is_live(self, entry: CacheEntry, run: FetchRun) -> bool:
        return self._entries.get(entry.key) is entry and entry.is_current(run)

    def _discard(self, entry: CacheEntry, run: FetchRun, outcome: str):
        self._count("cache_fetches_total", family=entry.key.family, outcome="superseded")
        self.logger.debug(
            "Discarding superseded fetch result",
            key=str(entry.key),
            generation=run.generation,
            current_generation=entry.generation,
            outcome=outcome
        )

    def _after_settle(self, entry: CacheEntry):
        if entry.subscriber_count == 0:
            self._schedule_gc(entry)

    def _notify(self, entry: CacheEntry):
        if not entry.subscriptions:
            return
        result = entry.snapshot(self.now())
        for subscription in list(entry.subscriptions):
            subscription._deliver(result)

    def _unsubscribe(self, subscription: Subscription):
        if not subscription.active:
            return
        subscription._detach()
        entry = subscription._entry
        if subscription in entry.subscriptions:
            entry.subscriptions.remove(subscription)
        entry.subscriber_count = max(0, entry.subscriber_count - 1)

        if entry.active_subscriber_count == 0:
            self._cancel_poll(entry)
        if entry.subscriber_count == 0:
            self._schedule_gc(entry)

    def _schedule_gc(self, entry: CacheEntry):
        # An entry with a fetch in flight is rescheduled when that fetch settles
        if entry.is_fetching or self._entries.get(entry.key) is not entry:
            return
        self._cancel_gc(entry)
        entry.gc_handle = asyncio.get_running_loop().call_later(
            self._gc_time(entry), self._collect, entry
        )

    def _cancel_gc(self, entry: CacheEntry):
        if entry.gc_handle is not None:
            entry.gc_handle.cancel()
            entry.gc_handle = None

    def _collect(self, entry: CacheEntry):
        entry.gc_handle = None
        if self._entries.get(entry.key) is not entry:
            return
        if entry.subscriber_count > 0 or entry.is_fetching:
            return
        del self._entries[entry.key]
        self._count("cache_evictions_total", family=entry.key.family)
        self._set_entry_gauge()
        self.logger.debug("Evicted unused query", key=str(entry.key))

    def _ensure_polling(self, entry: CacheEntry):
        interval = entry.options.refetch_interval
        if not interval or entry.poll_task is not None:
            return
        entry.poll_task = asyncio.get_running_loop().create_task(self._poll(entry, interval))

    async def _poll(self, entry: CacheEntry, interval: float):
        while True:
            await asyncio.sleep(interval)
            if self._entries.get(entry.key) is not entry or entry.active_subscriber_count == 0:
                entry.poll_task = None
                return
            if not entry.is_fetching:
                self._start_fetch(entry, "interval")

    def _cancel_poll(self, entry: CacheEntry):
        if entry.poll_task is not None:
            entry.poll_task.cancel()
            entry.poll_task = None

    def _count(self, metric_name: str, **labels):
        if self.metrics:
            self.metrics.increment_counter(metric_name, **labels)

    def _set_entry_gauge(self):
        if self.metrics:
            self.metrics.set_gauge("cache_entries", len(self._entries))
