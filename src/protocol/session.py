from __future__ import annotations

import logging
import threading
from contextlib import contextmanager, nullcontext
from enum import Enum
from typing import Any, Dict, Iterator, Optional

from ..engine.errors import MoveInFlight, NotYourTurn
from ..engine.game import Game
from ..engine.move import Move
from ..engine.pieces import Color
from .sync.adapter import SyncAdapter
from .uci.adapter import Suggestion, SuggestionAdapter


logger = logging.getLogger(__name__)


class SessionMode(str, Enum):
    IDLE = "idle"
    AWAITING_SUGGESTION = "awaiting_suggestion"
    COMMITTING = "committing"


class GameSession:
    """Coordinates one game with its suggestion and sync adapters.

    Only one request may hold the game at a time: a move, undo, redo or
    adoption issued while a suggestion is outstanding (or while another
    commit runs) is rejected with ``MoveInFlight``.
    """

    def __init__(
        self,
        game: Optional[Game] = None,
        suggestions: Optional[SuggestionAdapter] = None,
        sync: Optional[SyncAdapter] = None,
    ) -> None:
        self.game = game or Game.new()
        self.suggestions = suggestions or SuggestionAdapter()
        self.sync = sync
        self._lock = threading.Lock()
        self._mode = SessionMode.IDLE

    @property
    def mode(self) -> SessionMode:
        return self._mode

    def attach_sync(self, sync: SyncAdapter) -> None:
        self.sync = sync
        sync.attach()

    @contextmanager
    def _hold(self, mode: SessionMode) -> Iterator[None]:
        with self._lock:
            if self._mode is not SessionMode.IDLE:
                raise MoveInFlight(f"game is busy ({self._mode.value})")
            self._mode = mode
        try:
            yield
        finally:
            with self._lock:
                self._mode = SessionMode.IDLE

    def _committing(self):
        return self.sync.local_commit() if self.sync is not None else nullcontext()

    # --- Commands ---
    def apply_move(self, move: Move, seat: Optional[Color] = None) -> Move:
        """Commit ``move``; a given ``seat`` may only move on its own turn."""
        with self._hold(SessionMode.COMMITTING), self._committing():
            if seat is not None and seat is not self.game.side_to_move:
                turn = self.game.side_to_move.value
                raise NotYourTurn(f"{seat.value} cannot move on {turn}'s turn")
            return self.game.apply_move(move)

    def undo(self, count: int = 1) -> None:
        with self._hold(SessionMode.COMMITTING), self._committing():
            self.game.undo(count)

    def redo(self, count: int = 1) -> None:
        with self._hold(SessionMode.COMMITTING), self._committing():
            self.game.redo(count)

    def set_position(self, fen: str) -> None:
        game = Game.from_fen(fen)
        with self._hold(SessionMode.COMMITTING), self._committing():
            game.events = self.game.events
            self.game = game

    def adopt(self, record: Dict[str, Any]) -> None:
        with self._hold(SessionMode.COMMITTING), self._committing():
            self.game.adopt(record)

    def suggest(self, level: Optional[int] = None, apply: bool = False) -> Optional[Suggestion]:
        """Ask for a move; optionally commit it.

        A suggestion that comes back after the game ended, or after the
        position changed underneath it, is discarded and None is returned.
        """
        with self._hold(SessionMode.AWAITING_SUGGESTION):
            game = self.game
            before = game.to_fen(), len(game.state.move_log)
            suggestion = self.suggestions.suggest(game, level)
            if suggestion is None:
                return None
            # Remote adoption is held off from the staleness check through the commit
            with self._committing() if apply else nullcontext():
                if self.game is not game or game.is_over:
                    logger.info("suggestion discarded: game replaced or over")
                    return None
                if (game.to_fen(), len(game.state.move_log)) != before:
                    logger.info("suggestion discarded: position changed while waiting")
                    return None
                if apply:
                    game.apply_move(suggestion.move)
        return suggestion

    def close(self) -> None:
        self.suggestions.close()
        if self.sync is not None:
            self.sync.detach()
