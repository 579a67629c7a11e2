"""Item store backends."""

from .base import ItemStore, store_key
from .memory import MemoryItemStore

__all__ = ["ItemStore", "MemoryItemStore", "store_key"]
