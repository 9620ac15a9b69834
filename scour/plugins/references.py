"""
Find References

Shows the locations delivered by the `lsp_references` hook in a read-only
panel. The cursor is walked with n/p (wrapping), and Return jumps to the
reference in the split that was focused when the panel opened.
"""

from __future__ import annotations

from loguru import logger
from pydantic import BaseModel, Field

from scour.config_loader import ReferencesConfig
from scour.event_bus import HostEvent
from scour.files import FileStore, FileStoreError
from scour.host import CommandSpec, EditorHost, ModeSpec, relative_path
from scour.navigation import NavigationController
from scour.panel import PanelPresenter
from scour.plugins import Action, Hook, Plugin
from scour.state import Location, PanelEntry

MODE = "references-list"
PANEL_NAME = "*References*"

MAX_LOCATION_LEN = 50
MAX_LINE_LEN = 60

SEPARATOR = "─" * 79
HELP_LINE = "[↑/↓/n/p] navigate  [RET] jump  [q/Esc] close"


class ReferenceItem(BaseModel):
    file: str
    line: int = Field(ge=1)
    column: int = Field(default=0, ge=0)
    line_text: str = ""

    @property
    def location(self) -> Location:
        return Location(file=self.file, line=self.line, column=self.column)


class ReferencesPlugin(Plugin):
    name = "references"

    def __init__(self, host: EditorHost, files: FileStore, config: ReferencesConfig | None = None):
        super().__init__(host)
        self.files = files
        self.config = config or ReferencesConfig()
        self.presenter = PanelPresenter(host, PANEL_NAME, MODE, panel_id="references-panel")
        self.nav: NavigationController[ReferenceItem] = NavigationController(item_label="Reference", wrap=True)
        self.symbol = ""
        self._line_cache: dict[str, list[str]] = {}

    @property
    def commands(self) -> list[CommandSpec]:
        return [
            CommandSpec(
                name="Hide References Panel",
                description="Close the references panel",
                action="hide_references_panel",
                context="normal",
            ),
        ]

    @property
    def modes(self) -> list[ModeSpec]:
        return [
            ModeSpec(
                name=MODE,
                bindings=[
                    ("Return", "references_goto"),
                    ("n", "references_next"),
                    ("p", "references_prev"),
                    ("j", "references_next"),
                    ("k", "references_prev"),
                    ("Up", "references_prev"),
                    ("Down", "references_next"),
                    ("q", "references_close"),
                    ("Escape", "references_close"),
                ],
                read_only=True,
            )
        ]

    def dispatch_table(self) -> dict[str, Action]:
        return {
            "references_goto": self.goto,
            "references_next": self.next,
            "references_prev": self.prev,
            "references_close": self.hide,
            "hide_references_panel": self.hide,
        }

    def hooks(self) -> dict[str, Hook]:
        return {"lsp_references": self.on_lsp_references}

    # ------------------------------------------------------------------
    # Hook
    # ------------------------------------------------------------------

    async def on_lsp_references(self, event: HostEvent) -> None:
        symbol = event.payload.get("symbol", "")
        locations = event.payload.get("locations") or []
        logger.debug(f"[REFS] Received {len(locations)} references for '{symbol}'")

        if not locations:
            self.host.set_status(f"No references found for '{symbol}'")
            return

        self._line_cache.clear()
        await self.show(symbol, [ReferenceItem(**loc) for loc in locations])

    async def show(self, symbol: str, references: list[ReferenceItem]) -> None:
        # The source split is re-captured on every open
        self.presenter.close()

        limited = references[:self.config.max_results]
        self.symbol = symbol
        self.nav.set_items(limited)
        await self._load_line_texts(limited)

        try:
            await self.presenter.open(
                self.build_entries(), ratio=self.config.panel_ratio, show_cursors=False
            )
        except Exception as e:
            self.host.set_status("Failed to open references panel")
            logger.debug(f"[REFS] ERROR: panel open failed: {e}")
            return

        limit_msg = (
            f" (showing first {self.config.max_results})"
            if len(references) > self.config.max_results else ""
        )
        self.host.set_status(
            f"Found {len(references)} reference(s){limit_msg} - ↑/↓ navigate, RET jump, q close"
        )

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def goto(self) -> None:
        if self.nav.is_empty:
            self.host.set_status("No references to jump to")
            return
        if self.presenter.source_split_id is None:
            self.host.set_status("Source split not available")
            return

        # The panel hides the host cursor; the `>` marker is the cursor.
        location = self.nav.current().location
        self.presenter.jump_to(location)
        display = relative_path(location.file, self.host.get_cwd())
        self.host.set_status(f"Jumped to {display}:{location.line}")

    def next(self) -> None:
        if self.nav.is_empty:
            return
        self.nav.next()
        self.presenter.update_content(self.build_entries())
        self.host.set_status(self.nav.position_label())

    def prev(self) -> None:
        if self.nav.is_empty:
            return
        self.nav.prev()
        self.presenter.update_content(self.build_entries())
        self.host.set_status(self.nav.position_label())

    def hide(self) -> None:
        if not self.presenter.is_open:
            return
        self.presenter.close()
        self.nav.reset()
        self.symbol = ""
        self._line_cache.clear()
        self.host.set_status("References panel closed")

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def build_entries(self) -> list[PanelEntry]:
        refs = self.nav.get_items()
        limit_note = f" (limited to {self.config.max_results})" if len(refs) >= self.config.max_results else ""
        symbol_display = f"'{self.symbol}'" if self.symbol else "symbol"

        entries = [PanelEntry(
            text=f"═══ References to {symbol_display} ({len(refs)}{limit_note}) ═══\n",
            properties={"type": "header"},
        )]

        if not refs:
            entries.append(PanelEntry(text="  No references found\n", properties={"type": "empty"}))
        for i, ref in enumerate(refs):
            entries.append(PanelEntry(
                text=self._format(ref, i),
                properties={"type": "reference", "index": i, "location": ref.location.model_dump()},
            ))

        entries.append(PanelEntry(text=f"{SEPARATOR}\n", properties={"type": "separator"}))
        entries.append(PanelEntry(text=f"{HELP_LINE}\n", properties={"type": "help"}))
        return entries

    def _format(self, ref: ReferenceItem, index: int) -> str:
        marker = ">" if index == self.nav.cursor else " "
        location = f"{relative_path(ref.file, self.host.get_cwd())}:{ref.line}:{ref.column}"
        if len(location) > MAX_LOCATION_LEN:
            location = "..." + location[-(MAX_LOCATION_LEN - 3):]
        else:
            location = location.ljust(MAX_LOCATION_LEN)

        text = ref.line_text.strip()
        if len(text) > MAX_LINE_LEN:
            text = text[:MAX_LINE_LEN - 3] + "..."
        return f"{marker} {location} │ {text}\n"

    async def _load_line_texts(self, refs: list[ReferenceItem]) -> None:
        for ref in refs:
            lines = self._line_cache.get(ref.file)
            if lines is None:
                try:
                    lines = (await self.files.read(ref.file)).split("\n")
                except FileStoreError:
                    lines = []
                self._line_cache[ref.file] = lines
            idx = ref.line - 1
            ref.line_text = lines[idx] if 0 <= idx < len(lines) else ""
