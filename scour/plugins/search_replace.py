"""
Search & Replace in Project

Project-wide search and replace over git-tracked files. Results are shown
in a read-only panel where each match can be toggled before the selected
ones are rewritten.
"""

from __future__ import annotations

from pathlib import Path

from scour.config_loader import SearchConfig
from scour.discovery import Discovery
from scour.event_bus import HostEvent
from scour.files import FileStore
from scour.host import CommandSpec, EditorHost, ModeSpec, relative_path
from scour.panel import PanelPresenter
from scour.plugins import Action, Hook, Plugin
from scour.replace import ReplacementEngine
from scour.state import PanelEntry, SearchMatch, SearchSession
from scour.workflow import PATTERN_PROMPT, REPLACE_PROMPT, WorkflowStateMachine

MODE = "search-replace-list"
PANEL_NAME = "*Search/Replace*"

MAX_LOCATION_LEN = 40
MAX_CONTENT_LEN = 50

SEPARATOR = "─" * 79
HELP_LINE = "[SPC] toggle  [a] all  [n] none  [r] REPLACE  [RET] preview  [q] close"


def format_result(match: SearchMatch, cwd: Path) -> str:
    checkbox = "[x]" if match.selected else "[ ]"
    location = f"{relative_path(match.file, cwd)}:{match.line}"

    if len(location) > MAX_LOCATION_LEN:
        location = "..." + location[-(MAX_LOCATION_LEN - 3):]
    else:
        location = location.ljust(MAX_LOCATION_LEN)

    content = match.content.strip()
    if len(content) > MAX_CONTENT_LEN:
        content = content[:MAX_CONTENT_LEN - 3] + "..."

    return f"{checkbox} {location}  {content}\n"


def build_entries(session: SearchSession, cwd: Path, max_results: int) -> list[PanelEntry]:
    entries: list[PanelEntry] = []
    results = session.matches
    selected = sum(1 for m in results if m.selected)
    regex_note = " (regex)" if session.is_regex else ""

    entries.append(PanelEntry(text="═══ Search & Replace ═══\n", properties={"type": "header"}))
    entries.append(PanelEntry(text=f'Search:  "{session.pattern}"{regex_note}\n', properties={"type": "info"}))
    entries.append(PanelEntry(text=f'Replace: "{session.replacement}"\n', properties={"type": "info"}))
    entries.append(PanelEntry(text="\n", properties={"type": "spacer"}))

    if not results:
        entries.append(PanelEntry(text="  No matches found\n", properties={"type": "empty"}))
    else:
        limit_note = f" (limited to {max_results})" if len(results) >= max_results else ""
        entries.append(PanelEntry(
            text=f"Results: {len(results)}{limit_note} ({selected} selected)\n",
            properties={"type": "count"},
        ))
        entries.append(PanelEntry(text="\n", properties={"type": "spacer"}))

        for i, match in enumerate(results):
            entries.append(PanelEntry(
                text=format_result(match, cwd),
                properties={
                    "type": "result",
                    "index": i,
                    "location": match.location.model_dump(),
                },
            ))

    entries.append(PanelEntry(text=f"{SEPARATOR}\n", properties={"type": "separator"}))
    entries.append(PanelEntry(text=f"{HELP_LINE}\n", properties={"type": "help"}))
    return entries


class SearchReplacePlugin(Plugin):
    name = "search_replace"

    def __init__(self, host: EditorHost, repo_path: Path, config: SearchConfig | None = None,
                 discovery: Discovery | None = None, files: FileStore | None = None):
        super().__init__(host)
        self.config = config or SearchConfig()
        self.repo_path = repo_path

        presenter = PanelPresenter(host, PANEL_NAME, MODE, panel_id="search-replace-panel")
        self.workflow = WorkflowStateMachine(
            host=host,
            discovery=discovery or Discovery(repo_path, max_results=self.config.max_results),
            engine=ReplacementEngine(files or FileStore(repo_path)),
            presenter=presenter,
            render=self._render,
            panel_ratio=self.config.panel_ratio,
            default_regex=self.config.regex,
        )

    @property
    def commands(self) -> list[CommandSpec]:
        return [
            CommandSpec(
                name="Search and Replace in Project",
                description="Search and replace text across all git-tracked files",
                action="start_search_replace",
                context="normal",
            ),
        ]

    @property
    def modes(self) -> list[ModeSpec]:
        keys = self.config.keys
        bindings: list[tuple[str, str]] = []
        for key_list, action in (
            (keys.preview, "search_replace_preview"),
            (keys.toggle, "search_replace_toggle_item"),
            (keys.select_all, "search_replace_select_all"),
            (keys.select_none, "search_replace_select_none"),
            (keys.execute, "search_replace_execute"),
            (keys.close, "search_replace_close"),
        ):
            bindings.extend((key, action) for key in key_list)
        return [ModeSpec(name=MODE, bindings=bindings, read_only=True)]

    def dispatch_table(self) -> dict[str, Action]:
        wf = self.workflow
        return {
            "start_search_replace": wf.start,
            "search_replace_preview": wf.preview,
            "search_replace_toggle_item": wf.toggle_at_cursor,
            "search_replace_select_all": wf.select_all,
            "search_replace_select_none": wf.select_none,
            "search_replace_execute": wf.execute,
            "search_replace_close": wf.close,
        }

    def hooks(self) -> dict[str, Hook]:
        return {
            "prompt_confirmed": self.on_prompt_confirmed,
            "prompt_cancelled": self.on_prompt_cancelled,
        }

    async def on_prompt_confirmed(self, event: HostEvent) -> None:
        prompt_type = event.payload.get("prompt_type")
        text = event.payload.get("input", "")
        if prompt_type == PATTERN_PROMPT:
            self.workflow.pattern_confirmed(text)
        elif prompt_type == REPLACE_PROMPT:
            await self.workflow.replacement_confirmed(text)

    def on_prompt_cancelled(self, event: HostEvent) -> None:
        if event.payload.get("prompt_type") in (PATTERN_PROMPT, REPLACE_PROMPT):
            self.workflow.cancel()

    def _render(self, session: SearchSession) -> list[PanelEntry]:
        return build_entries(session, self.host.get_cwd(), self.config.max_results)
