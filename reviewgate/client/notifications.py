"""Sources of "this item may have changed" notifications.

Notifications are a liveness mechanism only: they may be lost, duplicated
or arrive in bursts, and the controller coalesces them before fetching.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Callable, List, Optional

from reviewgate.core.logger import get_logger

logger = get_logger("notifications")

Callback = Callable[[], None]
Unsubscribe = Callable[[], None]
# call_later(delay, callback) -> handle with cancel()
CallLater = Callable[[float, Callback], Any]


class NotificationSource(ABC):
    """Something the sync controller can subscribe to."""

    @property
    @abstractmethod
    def source_name(self) -> str:
        pass

    @abstractmethod
    def on_possible_change(self, callback: Callback) -> Unsubscribe:
        """Register ``callback``; the returned function removes it again."""
        pass

    def is_available(self) -> bool:
        return True


class EventNotificationSource(NotificationSource):
    """Push hub: whoever receives change events calls ``emit()``."""

    def __init__(self, connected: bool = True):
        self.connected = connected
        self._callbacks: List[Callback] = []

    @property
    def source_name(self) -> str:
        return "events"

    def is_available(self) -> bool:
        return self.connected

    def on_possible_change(self, callback: Callback) -> Unsubscribe:
        self._callbacks.append(callback)

        def unsubscribe() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return unsubscribe

    def emit(self) -> int:
        """Notify every subscriber. Returns how many were notified."""
        callbacks = list(self._callbacks)
        for callback in callbacks:
            callback()
        return len(callbacks)


class PollingNotificationSource(NotificationSource):
    """Fires on a fixed interval, for hosts without change events."""

    def __init__(self, interval: float = 3.0, *, call_later: Optional[CallLater] = None):
        if interval <= 0:
            raise ValueError("Polling interval must be positive")
        self.interval = interval
        self._call_later = call_later

    @property
    def source_name(self) -> str:
        return "polling"

    def _schedule(self, delay: float, callback: Callback) -> Any:
        if self._call_later is not None:
            return self._call_later(delay, callback)
        return asyncio.get_running_loop().call_later(delay, callback)

    def on_possible_change(self, callback: Callback) -> Unsubscribe:
        state = {"handle": None, "active": True}

        def tick() -> None:
            if not state["active"]:
                return
            state["handle"] = self._schedule(self.interval, tick)
            callback()

        state["handle"] = self._schedule(self.interval, tick)

        def unsubscribe() -> None:
            state["active"] = False
            if state["handle"] is not None:
                state["handle"].cancel()

        return unsubscribe


def first_available_source(
    *candidates: Optional[NotificationSource],
    poll_interval: float = 3.0,
    call_later: Optional[CallLater] = None,
) -> NotificationSource:
    """Pick the first usable source, falling back to polling."""
    for source in candidates:
        if source is not None and source.is_available():
            return source
    logger.info(f"No change events available, polling every {poll_interval}s")
    return PollingNotificationSource(poll_interval, call_later=call_later)
