from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

from ...engine.errors import ExternalEngineDesync
from ...engine.game import Game
from ...engine.move import Move, parse_uci
from ...engine.movegen import is_capture, promotes
from ...engine.pieces import PieceKind
from .engine import SuggestionEngine, clamp_level


logger = logging.getLogger(__name__)

EngineFactory = Callable[[], SuggestionEngine]


@dataclass(frozen=True)
class Suggestion:
    move: Move
    source: str  # "engine" or "fallback"


class SuggestionAdapter:
    """Keeps an external engine in step with a game and vets its answers.

    Notes:
    - Whenever the game's move log stops extending what the engine has seen
      (undo, adopt, new game) the engine is replaced by a fresh instance and
      the whole log is replayed; otherwise only the new moves are pushed.
    - Suggestions are translated to internal squares and must be members of
      the core's legal moves. Any failure falls back to the first legal
      capture, else the first legal move.
    """

    def __init__(self, factory: Optional[EngineFactory] = None, default_level: int = 3) -> None:
        self._factory = factory
        self.default_level = clamp_level(default_level)
        self._engine: Optional[SuggestionEngine] = None
        self._start_fen: Optional[str] = None
        self._synced: List[str] = []
        self.replays = 0

    def suggest(self, game: Game, level: Optional[int] = None) -> Optional[Suggestion]:
        """Return a vetted move for the side to move, or None if there is none."""
        legal = game.legal_moves()
        if not legal:
            return None
        if self._factory is None:
            return Suggestion(self.fallback(game), "fallback")
        try:
            move = self._ask_engine(game, clamp_level(level or self.default_level))
        except ExternalEngineDesync as e:
            logger.warning("engine suggestion rejected, using fallback: %s", e)
            self._discard()
            return Suggestion(self.fallback(game), "fallback")
        return Suggestion(move, "engine")

    @staticmethod
    def fallback(game: Game) -> Move:
        """First legal capture in stable order, else the first legal move."""
        legal = game.legal_moves()
        if not legal:
            raise ExternalEngineDesync("no legal moves to fall back on")
        for m in legal:
            if is_capture(game.state, m):
                return m
        return legal[0]

    def sync(self, game: Game) -> None:
        """Bring the engine up to date with ``game``'s move log."""
        log = game.state.move_log
        start = game.state.start_fen
        seen = len(self._synced)
        if (
            self._engine is None
            or start != self._start_fen
            or len(log) < seen
            or log[:seen] != self._synced
        ):
            self._replay(start, log)
            return
        for uci in log[seen:]:
            self._engine.push(uci)
            self._synced.append(uci)

    def close(self) -> None:
        self._discard()

    # ---- Internal helpers ----
    def _ask_engine(self, game: Game, level: int) -> Move:
        try:
            self.sync(game)
            assert self._engine is not None
            answer = self._engine.best_move(level)
        except ExternalEngineDesync:
            raise
        except Exception as e:
            raise ExternalEngineDesync(f"engine call failed: {e}") from e
        if answer is None:
            raise ExternalEngineDesync("engine returned no move")
        try:
            move = parse_uci(answer)
        except ValueError as e:
            raise ExternalEngineDesync(f"untranslatable engine move {answer!r}") from e

        piece = game.board.piece_at(move.from_sq)
        if piece is not None and move.promotion is None and promotes(piece, move.to_sq):
            move = Move(move.from_sq, move.to_sq, PieceKind.QUEEN)
        if move not in game.legal_moves():
            raise ExternalEngineDesync(f"engine move {answer!r} is not legal here")
        return move

    def _replay(self, start_fen: str, log: List[str]) -> None:
        self._discard()
        assert self._factory is not None
        engine = self._factory()
        try:
            engine.new_game(start_fen)
            for uci in log:
                engine.push(uci)
        except Exception:
            self._close_quietly(engine)
            raise
        self._engine = engine
        self._start_fen = start_fen
        self._synced = list(log)
        self.replays += 1
        logger.debug("engine replayed", extra={"moves": len(log)})

    def _discard(self) -> None:
        if self._engine is not None:
            self._close_quietly(self._engine)
        self._engine = None
        self._start_fen = None
        self._synced = []

    @staticmethod
    def _close_quietly(engine: SuggestionEngine) -> None:
        try:
            engine.close()
        except Exception:
            logger.warning("engine close failed", exc_info=True)
