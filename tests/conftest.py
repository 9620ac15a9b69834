from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Any

import pytest

from scour.discovery import BackendResult, Discovery
from scour.host import BufferInfo, BufferSpec, CommandSpec, EditorHost, ModeSpec
from scour.state import PanelEntry


class FakeHost(EditorHost):
    """Records everything plugins ask of the editor."""

    def __init__(self, cwd: Path, active_split: int = 7):
        self.cwd = cwd
        self.active_split = active_split
        self.modes: dict[str, ModeSpec] = {}
        self.commands: list[CommandSpec] = []
        self.statuses: list[str] = []
        self.prompts: list[tuple[str, str]] = []
        self.specs: dict[int, BufferSpec] = {}
        self.buffers: dict[int, list[PanelEntry]] = {}
        self.closed: list[int] = []
        self.jumps: list[tuple[int, str, int, int]] = []
        self.cursor_row: dict[int, int] = {}
        self.fail_open = False
        # Editable buffer
        self.active_buffer: BufferInfo | None = None
        self.lines: list[str] = []
        self.cursor_line = 0
        self.inserted: list[str] = []
        self.actions: list[str] = []
        self.editor_mode: str | None = None
        self._next_id = 100

    # EditorHost

    def define_mode(self, mode: ModeSpec) -> None:
        self.modes[mode.name] = mode

    def register_command(self, command: CommandSpec) -> None:
        self.commands.append(command)

    def set_status(self, message: str) -> None:
        self.statuses.append(message)

    def start_prompt(self, label: str, prompt_type: str) -> None:
        self.prompts.append((label, prompt_type))

    def get_cwd(self) -> Path:
        return self.cwd

    def get_active_split_id(self) -> int:
        return self.active_split

    async def create_virtual_buffer_in_split(self, spec: BufferSpec) -> int:
        if self.fail_open:
            raise RuntimeError("no room for a split")
        buffer_id = self._next_id
        self._next_id += 1
        self.specs[buffer_id] = spec
        self.buffers[buffer_id] = list(spec.entries)
        self.cursor_row[buffer_id] = 0
        # The panel takes focus once it is docked
        self.active_split = 1000 + buffer_id
        return buffer_id

    def set_virtual_buffer_content(self, buffer_id: int, entries: list[PanelEntry]) -> None:
        self.buffers[buffer_id] = list(entries)

    def close_buffer(self, buffer_id: int) -> None:
        self.buffers.pop(buffer_id, None)
        self.closed.append(buffer_id)

    def get_text_properties_at_cursor(self, buffer_id: int) -> list[dict[str, Any]]:
        entries = self.buffers.get(buffer_id, [])
        row = self.cursor_row.get(buffer_id, 0)
        if not 0 <= row < len(entries):
            return []
        return [entries[row].properties]

    def open_file_in_split(self, split_id: int, path: str, line: int, column: int) -> None:
        self.jumps.append((split_id, path, line, column))

    def get_active_buffer(self) -> BufferInfo | None:
        return self.active_buffer

    def get_cursor_line(self) -> int:
        return self.cursor_line

    def get_line_text(self, buffer_id: int, line: int) -> str | None:
        if not 0 <= line < len(self.lines):
            return None
        return self.lines[line]

    def insert_at_cursor(self, text: str) -> None:
        self.inserted.append(text)

    def execute_action(self, action: str) -> None:
        self.actions.append(action)

    def get_editor_mode(self) -> str | None:
        return self.editor_mode

    def set_editor_mode(self, mode: str | None) -> None:
        self.editor_mode = mode

    # Test helpers

    @property
    def status(self) -> str:
        return self.statuses[-1] if self.statuses else ""

    def place_cursor(self, buffer_id: int, index: int) -> None:
        """Put the cursor on the panel line carrying result `index`."""
        for row, entry in enumerate(self.buffers[buffer_id]):
            if entry.properties.get("index") == index:
                self.cursor_row[buffer_id] = row
                return
        raise AssertionError(f"no entry with index {index}")

    def texts(self, buffer_id: int) -> list[str]:
        return [e.text for e in self.buffers[buffer_id]]


def grep_runner(lines: list[str], exit_code: int = 0, stderr: str = ""):
    """A Discovery runner that replays canned git grep output."""
    calls: list[list[str]] = []

    async def runner(cmd: list[str], cwd: Path) -> BackendResult:
        calls.append(cmd)
        return BackendResult(exit_code=exit_code, stdout="\n".join(lines), stderr=stderr)

    runner.calls = calls
    return runner


@pytest.fixture
def host(tmp_path: Path) -> FakeHost:
    return FakeHost(tmp_path)


@pytest.fixture
def make_discovery(tmp_path: Path):
    def _make(lines: list[str], **kwargs) -> Discovery:
        return Discovery(tmp_path, runner=grep_runner(lines, **kwargs))
    return _make


@pytest.fixture
def git_repo(tmp_path: Path) -> Path:
    """A throwaway git repository with a couple of tracked files."""
    try:
        subprocess.run(["git", "init", "-q"], cwd=tmp_path, check=True, capture_output=True)
    except (OSError, subprocess.CalledProcessError):
        pytest.skip("git is not available")

    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "app.py").write_text("import foo\n\nfoo.run()\nprint('done')\n")
    (tmp_path / "notes.txt").write_text("foo foo\nbaz\n")
    (tmp_path / "untracked.txt").write_text("foo is not tracked\n")
    subprocess.run(["git", "add", "src/app.py", "notes.txt"], cwd=tmp_path, check=True, capture_output=True)
    return tmp_path
