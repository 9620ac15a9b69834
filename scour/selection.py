"""
SCOUR Selection Model

Owns the "will be replaced" flag of each match. Works directly on the
session's match list, so changes show up in the panel without copying.
"""

from __future__ import annotations

from scour.state import SearchMatch


class SelectionModel:
    def __init__(self, matches: list[SearchMatch]):
        self._matches = matches

    def __len__(self) -> int:
        return len(self._matches)

    def toggle(self, index: int) -> bool:
        """Flip the flag at `index`. Returns False (and does nothing) when out of range."""
        if not 0 <= index < len(self._matches):
            return False
        match = self._matches[index]
        match.selected = not match.selected
        return True

    def select_all(self) -> None:
        for match in self._matches:
            match.selected = True

    def select_none(self) -> None:
        for match in self._matches:
            match.selected = False

    def selected_items(self) -> list[SearchMatch]:
        return [m for m in self._matches if m.selected]

    def count_selected(self) -> int:
        return sum(1 for m in self._matches if m.selected)

    def summary(self) -> str:
        return f"{self.count_selected()}/{len(self._matches)} selected"
