"""
SCOUR Navigation

Generic ordered-list storage shared by every panel plugin, with cursor
movement layered on top as a separate capability. The search/replace panel
only needs the storage; the references browser also walks a cursor.
"""

from __future__ import annotations

from typing import Generic, TypeVar

T = TypeVar("T")


class ItemStore(Generic[T]):
    """An ordered sequence handed out by reference, never copied."""

    def __init__(self) -> None:
        self._items: list[T] = []

    def set_items(self, items: list[T]) -> None:
        self._items = items

    def get_items(self) -> list[T]:
        return self._items

    def reset(self) -> None:
        self._items = []

    @property
    def is_empty(self) -> bool:
        return not self._items

    def __len__(self) -> int:
        return len(self._items)


class NavigationController(ItemStore[T]):
    """
    ItemStore plus a cursor.

    The cursor is always a valid index into a non-empty list, or 0 when the
    list is empty. With `wrap` the cursor cycles past either end, otherwise
    it stops at the first/last item.
    """

    def __init__(self, item_label: str = "Item", wrap: bool = False) -> None:
        super().__init__()
        self.item_label = item_label
        self.wrap = wrap
        self._cursor = 0

    @property
    def cursor(self) -> int:
        return self._cursor

    def set_items(self, items: list[T]) -> None:
        super().set_items(items)
        self._cursor = 0

    def reset(self) -> None:
        super().reset()
        self._cursor = 0

    def current(self) -> T | None:
        if self.is_empty:
            return None
        return self._items[self._cursor]

    def next(self) -> T | None:
        if self.is_empty:
            return None
        if self.wrap:
            self._cursor = (self._cursor + 1) % len(self._items)
        else:
            self._cursor = min(self._cursor + 1, len(self._items) - 1)
        return self.current()

    def prev(self) -> T | None:
        if self.is_empty:
            return None
        if self.wrap:
            self._cursor = (self._cursor - 1) % len(self._items)
        else:
            self._cursor = max(self._cursor - 1, 0)
        return self.current()

    def move_to(self, index: int) -> bool:
        if not 0 <= index < len(self._items):
            return False
        self._cursor = index
        return True

    def position_label(self) -> str:
        if self.is_empty:
            return f"{self.item_label} 0/0"
        return f"{self.item_label} {self._cursor + 1}/{len(self._items)}"
