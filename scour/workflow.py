"""
SCOUR Workflow — The Conductor

Sequences one search-and-replace run:

    IDLE → AWAITING_PATTERN → AWAITING_REPLACEMENT → SEARCHING → REVIEWING
         → EXECUTING → IDLE

with a cancel/close edge from every waiting state back to IDLE.

The machine owns the live SearchSession and, through its PanelPresenter,
the panel state. Starting a new search or closing the panel throws the
session (and every selection flag in it) away.
"""

from __future__ import annotations

import re
from typing import Callable

from loguru import logger

from scour.discovery import Discovery, DiscoveryError
from scour.host import EditorHost, relative_path
from scour.navigation import NavigationController
from scour.panel import PanelPresenter
from scour.replace import ReplacementEngine, compile_pattern
from scour.selection import SelectionModel
from scour.state import (
    Location,
    OperationInProgressError,
    PanelEntry,
    ReplacementReport,
    SearchMatch,
    SearchSession,
    WorkflowState,
)

PATTERN_PROMPT = "search-replace-search"
REPLACE_PROMPT = "search-replace-replace"

Renderer = Callable[[SearchSession], list[PanelEntry]]


class EmptyInputError(ValueError):
    """Raised when the search pattern is blank at confirmation."""
    pass


def validate_pattern(text: str) -> str:
    pattern = text.strip()
    if not pattern:
        raise EmptyInputError("empty pattern")
    return pattern


class WorkflowStateMachine:
    def __init__(
        self,
        host: EditorHost,
        discovery: Discovery,
        engine: ReplacementEngine,
        presenter: PanelPresenter,
        render: Renderer,
        panel_ratio: float = 0.4,
        default_regex: bool = False,
    ):
        self.host = host
        self.discovery = discovery
        self.engine = engine
        self.presenter = presenter
        self.render = render
        self.panel_ratio = panel_ratio
        self.default_regex = default_regex

        self.state = WorkflowState.IDLE
        self.session: SearchSession | None = None
        self.nav: NavigationController[SearchMatch] = NavigationController(item_label="Match", wrap=False)
        self.selection = SelectionModel(self.nav.get_items())

        # Prompt answers collected before the session exists
        self._pattern = ""
        self._is_regex = default_regex

    # ------------------------------------------------------------------
    # Prompts
    # ------------------------------------------------------------------

    def start(self, is_regex: bool | None = None) -> None:
        if self._busy():
            self.host.set_status("Search/Replace busy - wait for the current operation")
            return

        self._discard()
        self._pattern = ""
        self._is_regex = self.default_regex if is_regex is None else is_regex
        self._transition(WorkflowState.AWAITING_PATTERN)
        self.host.start_prompt("Search (in project): ", PATTERN_PROMPT)
        self.host.set_status("Enter search pattern...")

    def pattern_confirmed(self, text: str) -> None:
        if self.state is not WorkflowState.AWAITING_PATTERN:
            self._ignored("pattern_confirmed")
            return
        try:
            self._pattern = validate_pattern(text)
        except EmptyInputError:
            self._transition(WorkflowState.IDLE)
            self.host.set_status("Search cancelled - empty pattern")
            return

        self._transition(WorkflowState.AWAITING_REPLACEMENT)
        self.host.start_prompt("Replace with: ", REPLACE_PROMPT)

    async def replacement_confirmed(self, text: str) -> None:
        if self.state is not WorkflowState.AWAITING_REPLACEMENT:
            self._ignored("replacement_confirmed")
            return

        # Taken verbatim: an empty replacement deletes the matches.
        replacement = text
        self._transition(WorkflowState.SEARCHING)

        try:
            matches = await self.discovery.run(self._pattern, self._is_regex)
        except DiscoveryError as e:
            logger.debug(f"[WORKFLOW] discovery failed: {e}")
            self.host.set_status(f"Search error: {e}")
            self._transition(WorkflowState.IDLE)
            return

        session = SearchSession(
            pattern=self._pattern,
            replacement=replacement,
            is_regex=self._is_regex,
            matches=matches,
        )
        self._adopt(session)

        if session.matches:
            self.host.set_status(f"Found {len(session.matches)} matches")
        else:
            self.host.set_status(f'No matches found for "{session.pattern}"')

        try:
            await self.presenter.open(self.render(session), ratio=self.panel_ratio)
        except Exception as e:
            logger.debug(f"[WORKFLOW] ERROR: panel.open failed: {e}")
            self.host.set_status("Failed to open search/replace panel")
            self._discard()
            self._transition(WorkflowState.IDLE)
            return

        self._transition(WorkflowState.REVIEWING)

    def cancel(self) -> None:
        if self.state not in (WorkflowState.AWAITING_PATTERN, WorkflowState.AWAITING_REPLACEMENT):
            self._ignored("cancel")
            return
        self._discard()
        self._transition(WorkflowState.IDLE)
        self.host.set_status("Search/Replace cancelled")

    # ------------------------------------------------------------------
    # Review
    # ------------------------------------------------------------------

    def toggle_at_cursor(self) -> None:
        if not self._reviewing() or self.nav.is_empty:
            return
        entry = self.presenter.entry_at_cursor()
        if entry is None or not isinstance(entry.get("index"), int):
            return
        index = entry["index"]
        if self.selection.toggle(index):
            self.nav.move_to(index)
            self._refresh()
            self.host.set_status(self.selection.summary())

    def select_all(self) -> None:
        if not self._reviewing():
            return
        self.selection.select_all()
        self._refresh()
        self.host.set_status(self.selection.summary())

    def select_none(self) -> None:
        if not self._reviewing():
            return
        self.selection.select_none()
        self._refresh()
        self.host.set_status(self.selection.summary())

    def preview(self) -> None:
        if not self._reviewing() or self.presenter.source_split_id is None:
            return
        entry = self.presenter.entry_at_cursor()
        if entry is None or not entry.get("location"):
            return
        location = Location(**entry["location"])
        if self.presenter.jump_to(location):
            display = relative_path(location.file, self.host.get_cwd())
            self.host.set_status(f"Preview: {display}:{location.line}")

    async def execute(self) -> ReplacementReport | None:
        if not self._reviewing() or self.session is None:
            self._ignored("execute")
            return None

        session = self.session
        selected = self.selection.selected_items()
        if not selected:
            self.host.set_status("No items selected")
            return None

        if session.is_regex:
            try:
                compile_pattern(session.pattern)
            except re.error as e:
                self.host.set_status(f"Invalid pattern: {e}")
                return None

        try:
            with session.begin_operation("replace"):
                self._transition(WorkflowState.EXECUTING)
                self.host.set_status(f"Replacing {len(selected)} occurrences...")
                report = await self.engine.apply(
                    selected, session.pattern, session.replacement, session.is_regex
                )
        except OperationInProgressError as e:
            self.host.set_status(str(e))
            return None
        except Exception as e:
            logger.exception("[WORKFLOW] replacement aborted")
            self.host.set_status(f"Replace failed: {e}")
            self._discard()
            self._transition(WorkflowState.IDLE)
            return None

        self._report(report)
        self._discard()
        self._transition(WorkflowState.IDLE)
        return report

    def close(self) -> None:
        if self._busy():
            self._ignored("close")
            return
        if not self.presenter.is_open and self.session is None:
            return
        self._discard()
        self._transition(WorkflowState.IDLE)
        self.host.set_status("Search/Replace closed")

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _adopt(self, session: SearchSession) -> None:
        self.session = session
        self.nav.set_items(session.matches)
        self.selection = SelectionModel(self.nav.get_items())

    def _discard(self) -> None:
        self.presenter.close()
        self.session = None
        self.nav.reset()
        self.selection = SelectionModel(self.nav.get_items())

    def _refresh(self) -> None:
        if self.session is not None:
            self.presenter.update_content(self.render(self.session))

    def _report(self, report: ReplacementReport) -> None:
        if report.errors:
            self.host.set_status(
                f"Replaced in {report.files_modified} files ({len(report.errors)} errors)"
            )
            logger.debug(f"[WORKFLOW] Replacement errors: {', '.join(report.errors)}")
        else:
            self.host.set_status(
                f"Replaced {report.occurrences} occurrences in {report.files_modified} files"
            )

    def _reviewing(self) -> bool:
        return self.state is WorkflowState.REVIEWING

    def _busy(self) -> bool:
        if self.state in (WorkflowState.SEARCHING, WorkflowState.EXECUTING):
            return True
        return self.session is not None and self.session.in_flight

    def _transition(self, new_state: WorkflowState) -> None:
        if new_state is not self.state:
            logger.debug(f"[WORKFLOW] {self.state.value} → {new_state.value}")
        self.state = new_state

    def _ignored(self, what: str) -> None:
        logger.debug(f"[WORKFLOW] {what} ignored in state {self.state.value}")
