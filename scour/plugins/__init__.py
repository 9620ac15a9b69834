"""
SCOUR Plugin Roster

Each plugin is:
  - A set of commands the host lists
  - A set of keymaps (modes) for its panels
  - A dispatch table: action name → handler
  - A hook table: host event → handler

Plugins never register anything behind the runtime's back, so the surface
the host can call is exactly what these tables declare.
"""

from __future__ import annotations

import inspect
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable

from loguru import logger

from scour.event_bus import EventBus, HostEvent
from scour.host import CommandSpec, EditorHost, ModeSpec

Action = Callable[[], Awaitable[None] | None]
Hook = Callable[[HostEvent], Awaitable[None] | None]


class Plugin(ABC):
    """
    Base class for all SCOUR plugins.

    Subclasses define:
      - name: str — used in logs
      - commands / modes — what the host should register
      - dispatch_table() — action handlers invoked by keybindings and commands
      - hooks() — host event handlers (optional)
    """

    name: str = "unknown"

    def __init__(self, host: EditorHost):
        self.host = host

    @property
    def commands(self) -> list[CommandSpec]:
        return []

    @property
    def modes(self) -> list[ModeSpec]:
        return []

    @abstractmethod
    def dispatch_table(self) -> dict[str, Action]:
        """Map every action name this plugin answers to its handler."""
        ...

    def hooks(self) -> dict[str, Hook]:
        return {}


class PluginRuntime:
    """Installs plugins on a host and routes host calls into their tables."""

    def __init__(self, host: EditorHost, bus: EventBus | None = None):
        self.host = host
        self.bus = bus or EventBus()
        self.plugins: list[Plugin] = []
        self._actions: dict[str, Action] = {}

    def install(self, plugin: Plugin) -> None:
        table = plugin.dispatch_table()
        clashes = set(table) & set(self._actions)
        if clashes:
            raise ValueError(f"{plugin.name} redefines actions: {', '.join(sorted(clashes))}")

        for mode in plugin.modes:
            self.host.define_mode(mode)
        for command in plugin.commands:
            self.host.register_command(command)
        for event_type, hook in plugin.hooks().items():
            self.bus.subscribe(event_type, hook)

        self._actions.update(table)
        self.plugins.append(plugin)
        logger.debug(f"[PLUGINS] {plugin.name} installed ({len(table)} actions)")

    @property
    def actions(self) -> list[str]:
        return sorted(self._actions)

    async def run_command(self, action: str) -> bool:
        """Invoke an action by name. Returns False if nothing answers to it."""
        handler = self._actions.get(action)
        if handler is None:
            logger.debug(f"[PLUGINS] unknown action: {action}")
            return False
        try:
            result = handler()
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception(f"[PLUGINS] action {action} failed")
        return True

    async def emit(self, event_type: str, payload: dict[str, Any] | None = None) -> HostEvent:
        return await self.bus.emit(event_type, payload or {})
