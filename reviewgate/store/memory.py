"""Process-local item store."""

import copy
import json
import threading
from typing import Any, Dict, Optional

from .base import ItemStore


class MemoryItemStore(ItemStore):
    """Dict-backed store.

    Values are copied in and out so callers never share mutable state with
    the store, matching the behavior of the networked backends.
    """

    def __init__(self):
        self._data: Dict[str, Any] = {}
        self._lock = threading.Lock()

    @property
    def store_name(self) -> str:
        return "memory"

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            return copy.deepcopy(self._data.get(key))

    def set(self, key: str, value: Any) -> None:
        # Reject values the networked backends could not store
        json.dumps(value)
        with self._lock:
            self._data[key] = copy.deepcopy(value)

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def keys(self) -> list[str]:
        with self._lock:
            return sorted(self._data)
