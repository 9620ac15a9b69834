"""
SCOUR Terminal Host

A rich-console stand-in for an editor, so the plugins can be driven from a
shell. Prompts are read with rich.prompt, panels are redrawn after every
key, and previews are printed with syntax highlighting.

Keys are typed one per line: an empty line is Return, a blank line of
spaces (or "space") is space, "esc" is Escape. j/k/up/down move the panel
cursor unless the panel's mode binds them itself; a number jumps the cursor
to that result.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from loguru import logger
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt
from rich.syntax import Syntax
from rich.text import Text

from scour.host import BufferInfo, BufferSpec, CommandSpec, EditorHost, ModeSpec
from scour.plugins import PluginRuntime
from scour.state import PanelEntry

EDITOR_SPLIT = 1
PREVIEW_CONTEXT = 3

ENTRY_STYLES = {
    "header": "bold bright_green",
    "info": "cyan",
    "count": "yellow",
    "empty": "dim",
    "separator": "dim",
    "help": "dim",
}

CURSOR_UP = {"k", "Up"}
CURSOR_DOWN = {"j", "Down"}


@dataclass
class _Buffer:
    buffer_id: int
    split_id: int
    spec: BufferSpec
    entries: list[PanelEntry] = field(default_factory=list)
    cursor: int = 0


def normalize_key(raw: str) -> str:
    if raw == "":
        return "Return"
    if not raw.strip():
        return "space"
    key = raw.strip()
    named = {"esc": "Escape", "escape": "Escape", "up": "Up", "down": "Down",
             "space": "space", "spc": "space", "enter": "Return", "ret": "Return"}
    return named.get(key.lower(), key)


class TerminalHost(EditorHost):
    def __init__(self, cwd: Path, console: Console | None = None):
        self.cwd = cwd
        self.console = console or Console()
        self.runtime: PluginRuntime | None = None
        self.modes: dict[str, ModeSpec] = {}
        self.commands: dict[str, CommandSpec] = {}
        self.status = ""
        self.editor_mode: str | None = None
        self._prompts: list[tuple[str, str]] = []
        self._buffers: dict[int, _Buffer] = {}
        self._focus: list[int] = []
        self._next_id = EDITOR_SPLIT + 1

    def attach(self, runtime: PluginRuntime) -> None:
        self.runtime = runtime

    # ------------------------------------------------------------------
    # EditorHost
    # ------------------------------------------------------------------

    def define_mode(self, mode: ModeSpec) -> None:
        self.modes[mode.name] = mode

    def register_command(self, command: CommandSpec) -> None:
        self.commands[command.action] = command

    def set_status(self, message: str) -> None:
        self.status = message
        self.console.print(Text.assemble(("» ", "bold"), message), highlight=False)

    def start_prompt(self, label: str, prompt_type: str) -> None:
        self._prompts.append((label, prompt_type))

    def get_cwd(self) -> Path:
        return self.cwd

    def get_active_split_id(self) -> int:
        buf = self._focused()
        return buf.split_id if buf else EDITOR_SPLIT

    async def create_virtual_buffer_in_split(self, spec: BufferSpec) -> int:
        buffer_id = self._allocate_id()
        buf = _Buffer(buffer_id=buffer_id, split_id=self._allocate_id(), spec=spec)
        self._buffers[buffer_id] = buf
        self._focus.append(buffer_id)
        self.set_virtual_buffer_content(buffer_id, spec.entries)
        buf.cursor = self._first_selectable(buf)
        return buffer_id

    def set_virtual_buffer_content(self, buffer_id: int, entries: list[PanelEntry]) -> None:
        buf = self._buffers.get(buffer_id)
        if buf is None:
            return
        buf.entries = list(entries)
        buf.cursor = min(buf.cursor, max(len(buf.entries) - 1, 0))

    def close_buffer(self, buffer_id: int) -> None:
        self._buffers.pop(buffer_id, None)
        if buffer_id in self._focus:
            self._focus.remove(buffer_id)

    def get_text_properties_at_cursor(self, buffer_id: int) -> list[dict[str, Any]]:
        buf = self._buffers.get(buffer_id)
        if buf is None or not 0 <= buf.cursor < len(buf.entries):
            return []
        return [buf.entries[buf.cursor].properties]

    def open_file_in_split(self, split_id: int, path: str, line: int, column: int) -> None:
        full = Path(path) if Path(path).is_absolute() else self.cwd / path
        try:
            code = full.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            self.set_status(f"Cannot open {path}: {e.strerror or e}")
            return

        syntax = Syntax(
            code,
            Syntax.guess_lexer(str(full), code),
            line_numbers=True,
            line_range=(max(1, line - PREVIEW_CONTEXT), line + PREVIEW_CONTEXT),
            highlight_lines={line},
        )
        self.console.print(Panel(syntax, title=f"{path}:{line}:{column}", border_style="cyan"))
        logger.debug(f"[TERM] opened {path}:{line}:{column} in split {split_id}")

    # The terminal has panels only; there is never a file buffer to edit.

    def get_active_buffer(self) -> BufferInfo | None:
        return None

    def get_cursor_line(self) -> int:
        return 0

    def get_line_text(self, buffer_id: int, line: int) -> str | None:
        return None

    def insert_at_cursor(self, text: str) -> None:
        logger.debug(f"[TERM] no editable buffer, dropped insert of {text!r}")

    def execute_action(self, action: str) -> None:
        logger.debug(f"[TERM] no editable buffer, dropped action {action}")

    def get_editor_mode(self) -> str | None:
        return self.editor_mode

    def set_editor_mode(self, mode: str | None) -> None:
        self.editor_mode = mode

    # ------------------------------------------------------------------
    # Event loop
    # ------------------------------------------------------------------

    async def run(self, action: str) -> None:
        """Invoke `action`, then keep serving prompts and panel keys until nothing is left open."""
        if self.runtime is None:
            raise RuntimeError("TerminalHost.run() called before attach()")

        await self.runtime.run_command(action)
        while True:
            if self._prompts:
                await self._serve_prompt(*self._prompts.pop(0))
                continue
            buf = self._focused()
            if buf is None:
                break
            self.render(buf)
            await self.press(self._read_key())

    async def press(self, key: str) -> None:
        buf = self._focused()
        if buf is None or self.runtime is None:
            return

        mode = self.modes.get(buf.spec.mode)
        action = mode.action_for(key) if mode else None
        if action:
            await self.runtime.run_command(action)
        elif key in CURSOR_UP or key in CURSOR_DOWN:
            self._step_cursor(buf, -1 if key in CURSOR_UP else 1)
        elif key.isdigit():
            self._cursor_to_index(buf, int(key) - 1)
        elif key == "Escape":
            # Nothing in the mode closes the panel; do not leave it stranded.
            self.close_buffer(buf.buffer_id)
        else:
            self.set_status(f"Key not bound: {key}")

    def render(self, buf: _Buffer) -> None:
        body = Text()
        for i, entry in enumerate(buf.entries):
            style = ENTRY_STYLES.get(entry.kind, "")
            if i == buf.cursor and buf.spec.show_cursors:
                style = f"{style} reverse".strip()
            body.append(entry.text, style=style or None)
        self.console.print(Panel(body, title=buf.spec.name, subtitle=Text(self.status) if self.status else None, border_style="green"))

    async def _serve_prompt(self, label: str, prompt_type: str) -> None:
        try:
            answer = Prompt.ask(label.rstrip(": ").rstrip(), console=self.console)
        except (EOFError, KeyboardInterrupt):
            await self.runtime.emit("prompt_cancelled", {"prompt_type": prompt_type})
            return
        await self.runtime.emit(
            "prompt_confirmed",
            {"prompt_type": prompt_type, "input": answer, "selected_index": None},
        )

    def _read_key(self) -> str:
        try:
            return normalize_key(self.console.input("[dim]key>[/] "))
        except (EOFError, KeyboardInterrupt):
            return "Escape"

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _focused(self) -> _Buffer | None:
        return self._buffers.get(self._focus[-1]) if self._focus else None

    def _allocate_id(self) -> int:
        value = self._next_id
        self._next_id += 1
        return value

    @staticmethod
    def _selectable(buf: _Buffer) -> list[int]:
        return [i for i, e in enumerate(buf.entries) if isinstance(e.properties.get("index"), int)]

    def _first_selectable(self, buf: _Buffer) -> int:
        rows = self._selectable(buf)
        return rows[0] if rows else 0

    def _step_cursor(self, buf: _Buffer, step: int) -> None:
        rows = self._selectable(buf)
        if not rows:
            return
        if buf.cursor not in rows:
            buf.cursor = rows[0]
            return
        pos = rows.index(buf.cursor) + step
        buf.cursor = rows[max(0, min(pos, len(rows) - 1))]

    def _cursor_to_index(self, buf: _Buffer, index: int) -> None:
        for row, entry in enumerate(buf.entries):
            if entry.properties.get("index") == index:
                buf.cursor = row
                return
        self.set_status(f"No result #{index + 1}")
