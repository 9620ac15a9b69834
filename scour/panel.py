"""
SCOUR Panel Presenter

Owns the lifecycle of one read-only results split: open it once, push new
content into it, close it. It knows nothing about what the entries mean;
plugins build the entries, the presenter only ships them to the host.
"""

from __future__ import annotations

from typing import Any

from loguru import logger

from scour.host import BufferSpec, EditorHost
from scour.state import Location, PanelEntry, PanelState


class PanelError(RuntimeError):
    """Raised on panel lifecycle misuse (e.g. opening an already open panel)."""
    pass


class PanelPresenter:
    def __init__(self, host: EditorHost, name: str, mode: str, panel_id: str | None = None):
        self.host = host
        self.name = name
        self.mode = mode
        self.panel_id = panel_id
        self.state = PanelState()

    @property
    def is_open(self) -> bool:
        return self.state.is_open

    @property
    def buffer_id(self) -> int | None:
        return self.state.buffer_id

    @property
    def source_split_id(self) -> int | None:
        return self.state.source_split_id

    async def open(self, entries: list[PanelEntry], ratio: float = 0.5, show_cursors: bool = True) -> int:
        """
        Dock the panel beside the focused split.

        The focused split is remembered as the source split; every jump or
        preview from this panel lands there, never in the panel itself.
        """
        if self.state.is_open:
            raise PanelError(f"{self.name} is already open; use update_content()")

        source_split_id = self.host.get_active_split_id()
        buffer_id = await self.host.create_virtual_buffer_in_split(
            BufferSpec(
                name=self.name,
                mode=self.mode,
                entries=entries,
                ratio=ratio,
                panel_id=self.panel_id,
                read_only=True,
                show_cursors=show_cursors,
            )
        )

        self.state = PanelState(
            is_open=True,
            buffer_id=buffer_id,
            source_split_id=source_split_id,
        )
        logger.debug(f"[PANEL] {self.name} opened with buffer ID {buffer_id}")
        return buffer_id

    def update_content(self, entries: list[PanelEntry]) -> None:
        if not self.state.is_open or self.state.buffer_id is None:
            return
        self.host.set_virtual_buffer_content(self.state.buffer_id, entries)

    def close(self) -> None:
        if not self.state.is_open:
            return
        if self.state.buffer_id is not None:
            self.host.close_buffer(self.state.buffer_id)
        logger.debug(f"[PANEL] {self.name} closed")
        self.state = PanelState()

    def entry_at_cursor(self) -> dict[str, Any] | None:
        """Properties of the panel line under the host cursor, if any."""
        if not self.state.is_open or self.state.buffer_id is None:
            return None
        props = self.host.get_text_properties_at_cursor(self.state.buffer_id)
        if not props:
            return None
        entry = props[0]
        if isinstance(entry.get("index"), int):
            self.state.cursor_index = entry["index"]
        return entry

    def jump_to(self, location: Location) -> bool:
        if self.state.source_split_id is None:
            return False
        self.host.open_file_in_split(
            self.state.source_split_id, location.file, location.line, location.column
        )
        return True
