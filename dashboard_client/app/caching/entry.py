"""
Cache entry records and their state machine.
"""

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

from shared.errors import ErrorInfo, InvalidTransitionError, DashboardClientError

from .keys import CacheKey


FetchFn = Callable[[], Awaitable[Any]]


class EntryState(str, Enum):
    """Lifecycle of one cache entry."""
    IDLE = "idle"
    LOADING = "loading"
    REFRESHING = "refreshing"  # stale data is served while a refetch runs
    SUCCESS = "success"
    ERROR = "error"


class EntryEvent(str, Enum):
    """Inputs that move an entry between states."""
    FETCH = "fetch"            # start a fetch with nothing to serve
    REVALIDATE = "revalidate"  # start a fetch while serving existing data
    RESOLVE = "resolve"
    REJECT = "reject"


class QueryStatus(str, Enum):
    """Status reported to subscribers."""
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


TRANSITIONS: Dict[Tuple[EntryState, EntryEvent], EntryState] = {
    (EntryState.IDLE, EntryEvent.FETCH): EntryState.LOADING,
    (EntryState.ERROR, EntryEvent.FETCH): EntryState.LOADING,
    (EntryState.LOADING, EntryEvent.FETCH): EntryState.LOADING,
    (EntryState.SUCCESS, EntryEvent.REVALIDATE): EntryState.REFRESHING,
    (EntryState.ERROR, EntryEvent.REVALIDATE): EntryState.REFRESHING,
    (EntryState.REFRESHING, EntryEvent.REVALIDATE): EntryState.REFRESHING,
    (EntryState.LOADING, EntryEvent.RESOLVE): EntryState.SUCCESS,
    (EntryState.REFRESHING, EntryEvent.RESOLVE): EntryState.SUCCESS,
    (EntryState.LOADING, EntryEvent.REJECT): EntryState.ERROR,
    (EntryState.REFRESHING, EntryEvent.REJECT): EntryState.ERROR,
}

_PUBLIC_STATUS = {
    EntryState.IDLE: QueryStatus.IDLE,
    EntryState.LOADING: QueryStatus.LOADING,
    EntryState.REFRESHING: QueryStatus.SUCCESS,
    EntryState.SUCCESS: QueryStatus.SUCCESS,
    EntryState.ERROR: QueryStatus.ERROR,
}


def next_state(state: EntryState, event: EntryEvent) -> EntryState:
    try:
        return TRANSITIONS[(state, event)]
    except KeyError:
        raise InvalidTransitionError(state.value, event.value) from None


@dataclass(frozen=True)
class QueryOptions:
    """Per-query behaviour; ``None`` fields fall back to the cache defaults."""

    enabled: bool = True
    stale_time: Optional[float] = None
    gc_time: Optional[float] = None
    retry: Optional[int] = None
    refetch_interval: Optional[float] = None


@dataclass(frozen=True)
class QueryResult:
    """Snapshot of an entry as a subscriber sees it."""

    key: CacheKey
    status: QueryStatus
    data: Any = None
    error: Optional[BaseException] = None
    is_fetching: bool = False
    is_stale: bool = True
    updated_at: Optional[float] = None

    @property
    def is_loading(self) -> bool:
        return self.status == QueryStatus.LOADING

    @property
    def is_success(self) -> bool:
        return self.status == QueryStatus.SUCCESS

    @property
    def is_error(self) -> bool:
        return self.status == QueryStatus.ERROR

    @property
    def error_info(self) -> Optional[ErrorInfo]:
        if self.error is None:
            return None
        if isinstance(self.error, DashboardClientError):
            return self.error.to_response()
        return ErrorInfo(code="UNEXPECTED_ERROR", message=str(self.error))


@dataclass
class FetchRun:
    """One initiated fetch for a key."""

    generation: int
    reason: str
    task: Optional["asyncio.Task[Any]"] = None


@dataclass
class CacheEntry:
    """Everything the cache holds for one key."""

    key: CacheKey
    fetch_fn: Optional[FetchFn] = None
    options: QueryOptions = field(default_factory=QueryOptions)
    state: EntryState = EntryState.IDLE
    data: Any = None
    has_data: bool = False
    error: Optional[BaseException] = None
    fetched_at: Optional[float] = None
    stale_at: Optional[float] = None
    invalidated: bool = False
    # Only runs newer than this generation can clear ``invalidated``
    invalidated_generation: int = 0
    subscriber_count: int = 0
    generation: int = 0
    current_run: Optional[FetchRun] = None
    gc_handle: Optional[asyncio.TimerHandle] = None
    poll_task: Optional["asyncio.Task[Any]"] = None
    subscriptions: list = field(default_factory=list)

    @property
    def status(self) -> QueryStatus:
        return _PUBLIC_STATUS[self.state]

    @property
    def is_fetching(self) -> bool:
        return self.state in (EntryState.LOADING, EntryState.REFRESHING)

    @property
    def active_subscriber_count(self) -> int:
        return sum(1 for sub in self.subscriptions if sub.enabled)

    def is_stale(self, now: float) -> bool:
        if self.invalidated or not self.has_data or self.stale_at is None:
            return True
        return now >= self.stale_at

    def transition(self, event: EntryEvent) -> EntryState:
        self.state = next_state(self.state, event)
        return self.state

    def begin_fetch(self, reason: str) -> FetchRun:
        """Start a new generation; any older run is superseded."""
        self.transition(EntryEvent.REVALIDATE if self.has_data else EntryEvent.FETCH)
        self.generation += 1
        self.current_run = FetchRun(generation=self.generation, reason=reason)
        return self.current_run

    def is_current(self, run: FetchRun) -> bool:
        return self.current_run is run and run.generation == self.generation

    def resolve(self, run: FetchRun, data: Any, now: float, stale_time: float):
        self.transition(EntryEvent.RESOLVE)
        self.data = data
        self.has_data = True
        self.error = None
        self.fetched_at = now
        self.stale_at = now + stale_time
        if run.generation > self.invalidated_generation:
            self.invalidated = False
        self.current_run = None

    def mark_invalidated(self):
        self.invalidated = True
        self.invalidated_generation = self.generation

    def reject(self, run: FetchRun, error: BaseException):
        self.transition(EntryEvent.REJECT)
        self.error = error
        self.current_run = None

    def snapshot(self, now: float) -> QueryResult:
        return QueryResult(
            key=self.key,
            status=self.status,
            data=self.data,
            error=self.error,
            is_fetching=self.is_fetching,
            is_stale=self.is_stale(now),
            updated_at=self.fetched_at,
        )
