"""Client-side synchronization of one item's projection.

A ``SyncController`` is created per client session. It keeps the last
projection it fetched and decides which refresh requests actually reach the
service:

- single flight: requests arriving while a fetch runs are dropped, except
  the first ``initial`` request for an item
- throttle: requests within ``min_gap`` of the last fetch are dropped,
  except user actions
- debounce: external notifications are coalesced within ``debounce``
- backoff: a rate-limited fetch is retried once after ``rate_limit_backoff``

Everything runs on one event loop; the controller is not thread-safe.
"""

import asyncio
import time
from enum import Enum
from typing import Any, Awaitable, Callable, List, Optional, Set

from reviewgate.core.approval.projection import Projection
from reviewgate.core.errors import AlreadyTransitionedError, GateError, RateLimitError, UpstreamError
from reviewgate.core.logger import get_logger
from .notifications import CallLater, NotificationSource, Unsubscribe

logger = get_logger("sync")

Fetch = Callable[[str], Awaitable[Projection]]


class RefreshTrigger(str, Enum):
    """Why a refresh was requested."""

    INITIAL = "initial"
    USER_ACTION = "userAction"
    EXTERNAL_NOTIFICATION = "externalNotification"


class SyncController:
    """Keeps a cached projection fresh without flooding the service."""

    def __init__(
        self,
        fetch: Fetch,
        item_ref: Optional[str] = None,
        *,
        min_gap: float = 0.8,
        debounce: float = 0.4,
        rate_limit_backoff: float = 5.0,
        clock: Optional[Callable[[], float]] = None,
        call_later: Optional[CallLater] = None,
        on_update: Optional[Callable[["SyncController"], None]] = None,
    ):
        """
        Initialize the controller.

        Args:
            fetch: Coroutine function returning the projection of an item
            item_ref: Item to follow; see ``set_identity``
            min_gap: Minimum seconds between fetches not caused by the user
            debounce: Window in seconds for coalescing notifications
            rate_limit_backoff: Seconds to wait before the single retry
            clock: Monotonic time source, in seconds
            call_later: Timer scheduler; defaults to the running event loop
            on_update: Called after every fetch, successful or not
        """
        self._fetch = fetch
        self.min_gap = min_gap
        self.debounce = debounce
        self.rate_limit_backoff = rate_limit_backoff
        self._clock = clock or time.monotonic
        self._call_later = call_later
        self._on_update = on_update

        self.item_ref: Optional[str] = item_ref
        self.projection: Optional[Projection] = None
        self.error: Optional[GateError] = None
        self.last_fetch_time: Optional[float] = None

        self._generation = 0
        self._initial_done = False
        self._active_fetches = 0
        self._debounce_handle: Any = None
        self._retry_handle: Any = None
        self._tasks: Set[asyncio.Task] = set()
        self._unsubscribes: List[Unsubscribe] = []
        self._closed = False

    @property
    def in_flight(self) -> bool:
        return self._active_fetches > 0

    @property
    def has_pending_debounce(self) -> bool:
        return self._debounce_handle is not None

    def _schedule(self, delay: float, callback: Callable[[], None]) -> Any:
        if self._call_later is not None:
            return self._call_later(delay, callback)
        return asyncio.get_running_loop().call_later(delay, callback)

    def set_identity(self, item_ref: Optional[str]) -> None:
        """Follow another item. Drops cached state and pending timers."""
        if item_ref == self.item_ref:
            return
        self._cancel_timers()
        self._generation += 1
        self.item_ref = item_ref
        self.projection = None
        self.error = None
        self.last_fetch_time = None
        self._initial_done = False

    def attach(self, source: NotificationSource) -> Unsubscribe:
        """Refresh on notifications from ``source`` until closed."""
        unsubscribe = source.on_possible_change(
            lambda: self.request_refresh(RefreshTrigger.EXTERNAL_NOTIFICATION)
        )
        self._unsubscribes.append(unsubscribe)
        logger.debug(f"Attached to {source.source_name} notifications")
        return unsubscribe

    def request_refresh(self, trigger: RefreshTrigger) -> bool:
        """
        Ask for a fresh projection.

        Returns:
            True if a fetch was started or scheduled, False if dropped
        """
        trigger = RefreshTrigger(trigger)
        if self._closed or self.item_ref is None:
            return False

        if trigger is RefreshTrigger.INITIAL and not self._initial_done:
            self._initial_done = True
            self._start(allow_retry=True)
            return True

        if self.in_flight:
            logger.debug(f"Dropped {trigger.value} refresh of {self.item_ref}: fetch in flight")
            return False

        if trigger is not RefreshTrigger.USER_ACTION and self._throttled():
            logger.debug(f"Dropped {trigger.value} refresh of {self.item_ref}: throttled")
            return False

        if trigger is RefreshTrigger.EXTERNAL_NOTIFICATION:
            if self._debounce_handle is not None:
                self._debounce_handle.cancel()
            self._debounce_handle = self._schedule(self.debounce, self._debounce_elapsed)
            return True

        self._start(allow_retry=True)
        return True

    def _throttled(self) -> bool:
        if self.last_fetch_time is None:
            return False
        return (self._clock() - self.last_fetch_time) < self.min_gap

    def _debounce_elapsed(self) -> None:
        self._debounce_handle = None
        if self._closed or self.in_flight:
            return
        self._start(allow_retry=True)

    def _retry_elapsed(self) -> None:
        self._retry_handle = None
        if self._closed or self.in_flight:
            return
        # The retry itself never schedules another one
        self._start(allow_retry=False)

    def _start(self, *, allow_retry: bool) -> asyncio.Task:
        # Counted before the task runs so requests arriving meanwhile see it
        self._active_fetches += 1
        task = asyncio.ensure_future(self._execute(self.item_ref, self._generation, allow_retry))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _execute(self, item_ref: str, generation: int, allow_retry: bool) -> None:
        try:
            projection = await self._fetch(item_ref)
        except RateLimitError as e:
            self._record_error(generation, e)
            if allow_retry and generation == self._generation and not self._closed:
                logger.warning(
                    f"Rate limited fetching {item_ref}, retrying in {self.rate_limit_backoff}s"
                )
                if self._retry_handle is not None:
                    self._retry_handle.cancel()
                self._retry_handle = self._schedule(self.rate_limit_backoff, self._retry_elapsed)
        except GateError as e:
            logger.warning(f"Refresh of {item_ref} failed: {e.message}")
            self._record_error(generation, e)
        except Exception as e:
            logger.exception(f"Refresh of {item_ref} failed unexpectedly")
            error = UpstreamError(f"Projection fetch failed: {e}")
            error.__cause__ = e
            self._record_error(generation, error)
        else:
            if generation == self._generation:
                self.projection = projection
                self.error = None
        finally:
            self._active_fetches -= 1
            if generation == self._generation:
                self.last_fetch_time = self._clock()
                if self._on_update is not None:
                    self._on_update(self)

    def _record_error(self, generation: int, error: GateError) -> None:
        # The previous projection stays visible next to the error
        if generation == self._generation:
            self.error = error

    async def perform(self, action: Callable[[], Awaitable[Any]]) -> Any:
        """
        Run a mutation, then refresh so the caller sees its effect.

        The refresh happens whether or not the mutation succeeded. A lost
        approval race (``AlreadyTransitionedError``) is reported through the
        projection's message instead of being raised.

        Returns:
            The action's result, None for a lost race

        Raises:
            GateError: Any other classified failure of the action
            Exception: Unclassified failures of the action, after the refresh
        """
        failure: Optional[Exception] = None
        result: Any = None
        try:
            result = await action()
            message = result.get("message") if isinstance(result, dict) else None
        except AlreadyTransitionedError as e:
            message = e.message
        except GateError as e:
            failure = e
            message = e.message
        except Exception as e:
            failure = e
            message = None

        while self._tasks:
            await asyncio.gather(*list(self._tasks))

        if self.request_refresh(RefreshTrigger.USER_ACTION):
            await asyncio.gather(*list(self._tasks))

        if message and self.projection is not None:
            self.projection = self.projection.with_message(message)
        if failure is not None:
            raise failure
        return result

    async def wait_idle(self) -> None:
        """Wait for every fetch already started. Timers are not awaited."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    def _cancel_timers(self) -> None:
        for handle in (self._debounce_handle, self._retry_handle):
            if handle is not None:
                handle.cancel()
        self._debounce_handle = None
        self._retry_handle = None

    def close(self) -> None:
        """Stop listening and cancel pending timers. Running fetches finish."""
        self._closed = True
        self._cancel_timers()
        for unsubscribe in self._unsubscribes:
            unsubscribe()
        self._unsubscribes.clear()
