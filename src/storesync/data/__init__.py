from .types import Item, ItemId, PageRequest

__all__ = ["Item", "ItemId", "PageRequest"]
