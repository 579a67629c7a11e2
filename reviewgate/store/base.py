"""Item store contract.

The item store is a plain key-value store addressed by namespaced string
keys; values are JSON-serializable. The gate is its only writer and always
rewrites whole values (read-modify-write), so concurrent writers can lose
each other's updates. Callers accept that trade-off.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional


def store_key(prefix: str, kind: str, item_id: str) -> str:
    """Build the namespaced key for one kind of per-item value."""
    return f"{prefix}:{kind}:{item_id}"


class ItemStore(ABC):
    """Abstract base class for item stores."""

    @property
    @abstractmethod
    def store_name(self) -> str:
        """Name of this backend (e.g., 'redis')."""
        pass

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """Return the stored value, or None when the key is absent."""
        pass

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """Store a JSON-serializable value."""
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove a key. Deleting an absent key is not an error."""
        pass

    def ping(self) -> bool:
        """Check connectivity; used by readiness probes."""
        return True

    def close(self) -> None:
        return None
