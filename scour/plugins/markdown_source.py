"""
Markdown Source Editing

Small conveniences for Markdown files edited as source:
  - Enter starts the new line with the current line's leading whitespace
  - Tab inserts spaces, never a literal tab

The mode is editable (read_only=False), so every key it does not bind
inserts as usual. It switches itself on when a Markdown buffer gains focus
and off again when focus moves elsewhere, but never displaces a mode some
other plugin has already set.
"""

from __future__ import annotations

from loguru import logger

from scour.config_loader import MarkdownConfig
from scour.event_bus import HostEvent
from scour.host import EditorHost, ModeSpec
from scour.plugins import Action, Hook, Plugin

MODE = "markdown-source"


def leading_whitespace(text: str) -> str:
    return text[:len(text) - len(text.lstrip(" \t"))]


class MarkdownSourcePlugin(Plugin):
    name = "markdown-source"

    def __init__(self, host: EditorHost, config: MarkdownConfig | None = None):
        super().__init__(host)
        self.config = config or MarkdownConfig()

    @property
    def modes(self) -> list[ModeSpec]:
        # Shift+Tab is left unbound: it falls through to the host's dedent.
        return [
            ModeSpec(
                name=MODE,
                bindings=[("Enter", "md_src_enter"), ("Tab", "md_src_tab")],
                read_only=False,
            )
        ]

    def dispatch_table(self) -> dict[str, Action]:
        return {
            "md_src_enter": self.enter,
            "md_src_tab": self.tab,
        }

    def hooks(self) -> dict[str, Hook]:
        return {"buffer_activated": self.on_buffer_activated}

    def is_markdown(self, path: str) -> bool:
        return path.endswith(tuple(self.config.extensions))

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def enter(self) -> None:
        buffer = self.host.get_active_buffer()
        if buffer is None:
            self.host.execute_action("insert_newline")
            return

        text = self.host.get_line_text(buffer.buffer_id, self.host.get_cursor_line())
        if text is None:
            self.host.execute_action("insert_newline")
            return

        self.host.insert_at_cursor("\n" + leading_whitespace(text))

    def tab(self) -> None:
        self.host.insert_at_cursor(" " * self.config.tab_size)

    # ------------------------------------------------------------------
    # Hook
    # ------------------------------------------------------------------

    def on_buffer_activated(self, event: HostEvent) -> None:
        buffer = self.host.get_active_buffer()
        if buffer is None:
            return

        current = self.host.get_editor_mode()
        if self.is_markdown(buffer.path) and buffer.view_mode == "source":
            if current is None:
                self.host.set_editor_mode(MODE)
                logger.debug(f"[MARKDOWN] {MODE} on for {buffer.path}")
        elif current == MODE:
            self.host.set_editor_mode(None)
            logger.debug(f"[MARKDOWN] {MODE} off ({buffer.path}, {buffer.view_mode})")
