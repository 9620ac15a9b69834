"""
SCOUR Session State

The in-memory data model for one search-and-replace run. Nothing here is
persisted; a session lives until the panel closes or a new search starts.
"""

from __future__ import annotations

from contextlib import contextmanager
from enum import Enum
from typing import Any, Iterator

from pydantic import BaseModel, Field, PrivateAttr


class OperationInProgressError(RuntimeError):
    """Raised when a session is asked to start a second concurrent operation."""
    pass


class WorkflowState(str, Enum):
    IDLE = "idle"
    AWAITING_PATTERN = "awaiting_pattern"
    AWAITING_REPLACEMENT = "awaiting_replacement"
    SEARCHING = "searching"
    REVIEWING = "reviewing"
    EXECUTING = "executing"


class Location(BaseModel):
    file: str
    line: int = Field(ge=1)
    column: int = Field(default=0, ge=0)  # 0 when the source does not report one


class SearchMatch(BaseModel):
    """One located occurrence of the search pattern."""
    file: str
    line: int = Field(ge=1)
    column: int = Field(ge=1)
    content: str = ""
    selected: bool = True

    def __setattr__(self, name: str, value: Any) -> None:
        # Only the review flag may change after discovery.
        if name != "selected":
            raise AttributeError(f"SearchMatch.{name} is read-only")
        super().__setattr__(name, value)

    @property
    def location(self) -> Location:
        return Location(file=self.file, line=self.line, column=self.column)


class SearchSession(BaseModel):
    """
    The pattern/replacement/match-set bundle for one in-progress search.

    Owned by the WorkflowStateMachine. SelectionModel and the panel's
    NavigationController are handed `matches` itself, so a toggle made
    through one is immediately visible through the other.
    """

    pattern: str
    replacement: str = ""
    is_regex: bool = False
    matches: list[SearchMatch] = Field(default_factory=list)

    _in_flight: str | None = PrivateAttr(default=None)

    @property
    def in_flight(self) -> bool:
        return self._in_flight is not None

    @contextmanager
    def begin_operation(self, name: str) -> Iterator[None]:
        """Hold the session's single operation slot for the duration of the block."""
        if self._in_flight is not None:
            raise OperationInProgressError(
                f"Cannot start {name}: {self._in_flight} is still running"
            )
        self._in_flight = name
        try:
            yield
        finally:
            self._in_flight = None


class PanelState(BaseModel):
    is_open: bool = False
    buffer_id: int | None = None
    source_split_id: int | None = None
    cursor_index: int = 0


class PanelEntry(BaseModel):
    """A single rendered line of a panel plus the properties the host attaches to it."""
    text: str
    properties: dict[str, Any] = Field(default_factory=dict)

    @property
    def kind(self) -> str:
        return self.properties.get("type", "")


class ReplacementReport(BaseModel):
    files_modified: int = 0
    occurrences: int = 0
    errors: list[str] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors
