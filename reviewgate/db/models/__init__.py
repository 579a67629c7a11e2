from .item_entry import ItemEntry

__all__ = ["ItemEntry"]
