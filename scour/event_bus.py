import inspect
import uuid
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional

from loguru import logger
from pydantic import BaseModel, Field


class HostEvent(BaseModel):
    event_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    event_type: str
    payload: Dict[str, Any] = Field(default_factory=dict)


Subscriber = Callable[[HostEvent], Optional[Awaitable[Any]]]


class EventBus:
    """A lightweight event bus delivering host hooks to the plugins that asked for them."""

    def __init__(self):
        self._subscribers: Dict[str, List[Subscriber]] = {}

    def subscribe(self, event_type: str, callback: Subscriber) -> None:
        """Register a callback for one event type. Sync and async callbacks are both accepted."""
        self._subscribers.setdefault(event_type, []).append(callback)

    def subscribers(self, event_type: str) -> List[Subscriber]:
        return list(self._subscribers.get(event_type, []))

    async def emit(self, event_type: str, payload: Dict[str, Any]) -> HostEvent:
        """Construct a HostEvent and deliver it to every subscriber of its type, in order."""
        event = HostEvent(event_type=event_type, payload=payload)

        for subscriber in self.subscribers(event_type):
            try:
                result = subscriber(event)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                # A failing plugin must not take the host down with it.
                logger.exception(f"[BUS] subscriber failed on {event_type}")

        return event
