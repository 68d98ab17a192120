from __future__ import annotations

import threading
import uuid
from typing import Dict, Optional

from ..session import GameSession


class InMemorySessionStore:
    """Thread-safe in-memory game session store.

    Responsibilities:
    - Create new sessions with unique `game_id`s
    - Retrieve existing sessions by `game_id`
    - Delete sessions (closing their adapters)
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._sessions: Dict[str, GameSession] = {}

    def new_id(self) -> str:
        return str(uuid.uuid4())

    def add(self, game_id: str, session: GameSession) -> None:
        with self._lock:
            self._sessions[game_id] = session

    def get(self, game_id: str) -> Optional[GameSession]:
        with self._lock:
            return self._sessions.get(game_id)

    def delete(self, game_id: str) -> None:
        with self._lock:
            session = self._sessions.pop(game_id, None)
        if session is not None:
            session.close()

    def close_all(self) -> None:
        with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
        for session in sessions:
            session.close()
