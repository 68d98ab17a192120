from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, List, Optional

from .move import Move


logger = logging.getLogger(__name__)


class GameEvent(str, Enum):
    MOVED = "moved"
    CAPTURED = "captured"
    CHECK = "check"
    GAME_ENDED = "game_ended"
    ILLEGAL_ATTEMPT = "illegal_attempt"


Listener = Callable[[GameEvent, Optional[Move]], None]


class EventBus:
    """Fan-out of game events to notification collaborators (audio, UI).

    Listeners are called synchronously in subscription order and return
    nothing. A failing listener is logged and skipped; it never affects the
    state that produced the event.
    """

    def __init__(self) -> None:
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` and return a callable that removes it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def emit(self, event: GameEvent, move: Optional[Move] = None) -> None:
        for listener in list(self._listeners):
            try:
                listener(event, move)
            except Exception:
                logger.exception("event listener failed", extra={"event": event.value})
