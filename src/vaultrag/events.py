"""Lifecycle notifications published by the index coordinator.

A coordinator owns one ``IndexEvents`` hub, injected by its host, so
listeners are registered explicitly instead of through global state.
"""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

logger = logging.getLogger(__name__)


class IndexEventKind(str, Enum):
    INDEX_BUILT = "index_built"
    SOURCE_UPDATED = "source_updated"
    SOURCE_REMOVED = "source_removed"
    INDEX_CLEARED = "index_cleared"
    ERROR = "error"


@dataclass(frozen=True)
class IndexEvent:
    kind: IndexEventKind
    data: dict[str, Any] = field(default_factory=dict)
    timestamp: int = field(default_factory=lambda: int(time.time() * 1000))


Listener = Callable[[IndexEvent], None]


class IndexEvents:
    """Publish/subscribe hub for index lifecycle events."""

    def __init__(self):
        self._listeners: dict[IndexEventKind, list[Listener]] = {}

    def subscribe(self, kind: IndexEventKind, callback: Listener) -> Callable[[], None]:
        """Register a listener; returns a function that unregisters it."""
        self._listeners.setdefault(kind, []).append(callback)
        return lambda: self.unsubscribe(kind, callback)

    def unsubscribe(self, kind: IndexEventKind, callback: Listener) -> None:
        callbacks = self._listeners.get(kind)
        if callbacks and callback in callbacks:
            callbacks.remove(callback)
            if not callbacks:
                del self._listeners[kind]

    def emit(self, kind: IndexEventKind, **data: Any) -> None:
        """Deliver an event to every listener of its kind.

        A failing listener is logged and does not stop delivery to the rest.
        """
        event = IndexEvent(kind=kind, data=data)
        for callback in list(self._listeners.get(kind, ())):
            try:
                callback(event)
            except Exception:
                logger.exception(f"Listener for {kind.value} failed")
