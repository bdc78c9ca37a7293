"""
Minimal in-process event publishing.

Adapters own an :class:`EventPublisher` instead of inheriting from an emitter
base class. Subscribers register per event name and receive the payload
mapping; publishing never deduplicates repeated events.
"""

from __future__ import annotations

from logging import LoggerAdapter
from typing import Callable, Dict, List, Mapping, MutableMapping, Optional

from .logging import get_logger

EventHandler = Callable[[Mapping[str, object]], None]


class EventPublisher:
    """Registry of event name to subscriber callbacks."""

    def __init__(self, *, logger: Optional[LoggerAdapter] = None) -> None:
        self._subscribers: MutableMapping[str, List[EventHandler]] = {}
        self.logger = logger or get_logger(f"{__name__}.{self.__class__.__name__}")

    def subscribe(self, event: str, handler: EventHandler) -> None:
        """Register ``handler`` for ``event``. Registering twice delivers twice."""

        self._subscribers.setdefault(event, []).append(handler)

    def unsubscribe(self, event: str, handler: EventHandler) -> None:
        """Remove the first registration of ``handler`` for ``event`` if present."""

        handlers = self._subscribers.get(event)
        if not handlers:
            return
        try:
            handlers.remove(handler)
        except ValueError:
            return
        if not handlers:
            del self._subscribers[event]

    def subscribers(self, event: str) -> List[EventHandler]:
        return list(self._subscribers.get(event, ()))

    def publish(self, event: str, payload: Mapping[str, object]) -> int:
        """
        Deliver ``payload`` to every subscriber of ``event``.

        A failing subscriber is logged and does not prevent delivery to the
        remaining ones. Returns the number of subscribers that received the event.
        """

        delivered = 0
        for handler in self.subscribers(event):
            try:
                handler(dict(payload))
            except Exception:
                self.logger.exception("Event subscriber failed", extra={"status": event})
                continue
            delivered += 1
        return delivered

    def snapshot(self) -> Dict[str, int]:
        """Return the subscriber count per event name."""

        return {event: len(handlers) for event, handlers in self._subscribers.items()}
