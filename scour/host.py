"""
SCOUR Host Boundary

Everything a plugin may ask of the editor that embeds it. The host owns
buffer storage, rendering, prompts and splits; plugins only describe what
they want shown and react to the events the host delivers.

Events a host delivers (through PluginRuntime.emit):
  - prompt_confirmed  {prompt_type, input, selected_index}
  - prompt_cancelled  {prompt_type}
  - lsp_references    {symbol, locations: [{file, line, column}]}
  - buffer_activated  {buffer_id}
Commands a host invokes (through PluginRuntime.run_command) are the action
names declared in CommandSpec and ModeSpec bindings.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from scour.state import PanelEntry


class CommandSpec(BaseModel):
    """A discoverable command the host lists in its command palette."""
    name: str
    description: str
    action: str
    context: str = "normal"


class ModeSpec(BaseModel):
    """A keymap attached to a buffer. Bindings are (key, action) pairs."""
    name: str
    bindings: list[tuple[str, str]] = Field(default_factory=list)
    read_only: bool = True

    def action_for(self, key: str) -> str | None:
        for bound_key, action in self.bindings:
            if bound_key == key:
                return action
        return None


class BufferSpec(BaseModel):
    """Request for a read-only virtual buffer docked in a new split."""
    name: str
    mode: str
    entries: list[PanelEntry] = Field(default_factory=list)
    ratio: float = Field(default=0.5, gt=0.0, lt=1.0)
    panel_id: str | None = None
    read_only: bool = True
    show_line_numbers: bool = False
    show_cursors: bool = True


class BufferInfo(BaseModel):
    """What the host knows about an editable (file-backed) buffer."""
    buffer_id: int
    path: str
    view_mode: str = "source"


class EditorHost(ABC):
    """The editor a plugin runs inside of."""

    @abstractmethod
    def define_mode(self, mode: ModeSpec) -> None:
        ...

    @abstractmethod
    def register_command(self, command: CommandSpec) -> None:
        ...

    @abstractmethod
    def set_status(self, message: str) -> None:
        """Show a terse one-line message to the user."""
        ...

    @abstractmethod
    def start_prompt(self, label: str, prompt_type: str) -> None:
        """Open a prompt. The answer arrives later as a prompt_confirmed/cancelled event."""
        ...

    @abstractmethod
    def get_cwd(self) -> Path:
        ...

    @abstractmethod
    def get_active_split_id(self) -> int:
        ...

    @abstractmethod
    async def create_virtual_buffer_in_split(self, spec: BufferSpec) -> int:
        """Create the buffer, dock it and return its id."""
        ...

    @abstractmethod
    def set_virtual_buffer_content(self, buffer_id: int, entries: list[PanelEntry]) -> None:
        ...

    @abstractmethod
    def close_buffer(self, buffer_id: int) -> None:
        ...

    @abstractmethod
    def get_text_properties_at_cursor(self, buffer_id: int) -> list[dict[str, Any]]:
        ...

    @abstractmethod
    def open_file_in_split(self, split_id: int, path: str, line: int, column: int) -> None:
        ...

    # Editable buffers

    @abstractmethod
    def get_active_buffer(self) -> BufferInfo | None:
        """The focused file buffer, or None when focus is on a panel or nothing."""
        ...

    @abstractmethod
    def get_cursor_line(self) -> int:
        """0-based line of the primary cursor in the active buffer."""
        ...

    @abstractmethod
    def get_line_text(self, buffer_id: int, line: int) -> str | None:
        """Text of a 0-based line without its newline, or None if out of range."""
        ...

    @abstractmethod
    def insert_at_cursor(self, text: str) -> None:
        ...

    @abstractmethod
    def execute_action(self, action: str) -> None:
        """Run one of the host's built-in actions (e.g. insert_newline)."""
        ...

    @abstractmethod
    def get_editor_mode(self) -> str | None:
        ...

    @abstractmethod
    def set_editor_mode(self, mode: str | None) -> None:
        """Switch the global editing mode. None returns to the host default."""
        ...


def relative_path(path: str, cwd: Path) -> str:
    """Display form of `path`: relative to the host cwd when it lives below it."""
    prefix = str(cwd).rstrip("/") + "/"
    if path.startswith(prefix):
        return path[len(prefix):]
    return path
