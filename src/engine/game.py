from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import FrozenSet, List, Optional, Set, Tuple

from .board import Board
from .errors import HistoryExhausted, IllegalMove, TerminalGame
from .events import EventBus, GameEvent
from .executor import advance, classify
from .history import History, Record, Snapshot
from .move import Move, parse_uci
from .movegen import legal_move_list, legal_moves, promotes
from .pieces import PROMOTION_KINDS, Color, Piece
from .state import GameState, Outcome


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PositionView:
    """Read-only picture of a position, enough for a renderer to draw it."""

    board: Tuple[Optional[Piece], ...]
    side_to_move: Color
    selected: Optional[int]
    legal_targets: FrozenSet[int]
    last_move: Optional[Tuple[int, int]]
    outcome: Outcome
    winner: Optional[Color]
    check_square: Optional[int]


@dataclass
class Game:
    """Game wrapper around a state with history and notifications.

    Responsibility: own the ``GameState``, expose legal moves, apply moves,
    undo/redo them, and save or adopt whole states.
    """

    state: GameState
    history: History = field(default_factory=History)
    events: EventBus = field(default_factory=EventBus)

    @classmethod
    def new(cls) -> "Game":
        return cls(state=GameState.startpos())

    @classmethod
    def from_fen(cls, fen: str) -> "Game":
        return cls(state=GameState.from_fen(fen))

    @classmethod
    def from_record(cls, record: Record) -> "Game":
        game = cls.new()
        game.adopt(record)
        return game

    def __post_init__(self) -> None:
        # Derived fields always follow the board, whatever the state came from
        classify(self.state)

    def to_fen(self) -> str:
        return self.state.to_fen()

    @property
    def board(self) -> Board:
        return self.state.board

    @property
    def side_to_move(self) -> Color:
        return self.state.side_to_move

    @property
    def outcome(self) -> Outcome:
        return self.state.outcome

    @property
    def is_over(self) -> bool:
        return self.state.outcome.is_terminal

    # --- Queries ---
    def legal_targets(self, sq: int) -> Set[int]:
        """Legal destinations for the side-to-move piece on ``sq``."""
        if self.is_over or self.state.board.color_at(sq) is not self.state.side_to_move:
            return set()
        return legal_moves(self.state, sq)

    def legal_moves(self) -> List[Move]:
        if self.is_over:
            return []
        return legal_move_list(self.state)

    def in_check(self) -> bool:
        return self.state.check_square is not None

    def checkmate(self) -> bool:
        return self.state.outcome is Outcome.CHECKMATE

    def stalemate(self) -> bool:
        return self.state.outcome is Outcome.STALEMATE

    def move_history_uci(self) -> List[str]:
        return list(self.state.move_log)

    def view(self, square: Optional[int] = None) -> PositionView:
        targets = self.legal_targets(square) if square is not None else set()
        return PositionView(
            board=self.state.board.as_tuple(),
            side_to_move=self.state.side_to_move,
            selected=square,
            legal_targets=frozenset(targets),
            last_move=self.state.last_move,
            outcome=self.state.outcome,
            winner=self.state.winner,
            check_square=self.state.check_square,
        )

    # --- Mutations ---
    def apply_uci(self, uci: str) -> Move:
        return self.apply_move(parse_uci(uci))

    def apply_move(self, move: Move) -> Move:
        """Validate and commit ``move`` for the side to move.

        Returns:
            Move: The committed move with its promotion resolved.

        Raises:
            TerminalGame: If the game already ended.
            IllegalMove: If the move is not legal here. State is unchanged.
        """
        state = self.state
        if state.outcome.is_terminal:
            self.events.emit(GameEvent.ILLEGAL_ATTEMPT, move)
            raise TerminalGame(f"game is over ({state.outcome.value})")

        piece = state.board.piece_at(move.from_sq)
        reason: Optional[str] = None
        if piece is None:
            reason = "no piece on origin square"
        elif piece.color is not state.side_to_move:
            reason = "piece does not belong to the side to move"
        elif move.to_sq not in legal_moves(state, move.from_sq):
            reason = "destination is not a legal target"
        elif move.promotion is not None and (
            not promotes(piece, move.to_sq) or move.promotion not in PROMOTION_KINDS
        ):
            reason = "promotion not allowed for this move"
        if reason is not None:
            logger.debug("illegal move %s: %s", move.to_uci(), reason)
            self.events.emit(GameEvent.ILLEGAL_ATTEMPT, move)
            raise IllegalMove(f"illegal move {move.to_uci()}: {reason}")

        before = Snapshot.capture(state)
        captured = advance(state, move)
        classify(state)
        self.history.commit(before)

        committed = parse_uci(state.move_log[-1])
        self.events.emit(GameEvent.CAPTURED if captured is not None else GameEvent.MOVED, committed)
        if state.outcome.is_terminal:
            self.events.emit(GameEvent.GAME_ENDED, committed)
        elif state.outcome is Outcome.CHECK:
            self.events.emit(GameEvent.CHECK, committed)
        return committed

    def undo(self, count: int = 1) -> None:
        """Step back ``count`` moves.

        Raises:
            ValueError: If ``count`` is not positive.
            HistoryExhausted: If fewer than ``count`` moves can be undone.
        """
        if count < 1:
            raise ValueError("count must be >= 1")
        if self.history.undo_depth < count:
            raise HistoryExhausted("no moves to undo")
        for _ in range(count):
            self.state = self.history.undo(Snapshot.capture(self.state)).restore()

    def redo(self, count: int = 1) -> None:
        """Step forward ``count`` previously undone moves.

        Raises:
            ValueError: If ``count`` is not positive.
            HistoryExhausted: If fewer than ``count`` moves can be redone.
        """
        if count < 1:
            raise ValueError("count must be >= 1")
        if self.history.redo_depth < count:
            raise HistoryExhausted("no moves to redo")
        for _ in range(count):
            self.state = self.history.redo(Snapshot.capture(self.state)).restore()

    # --- Persistence ---
    def snapshot(self) -> Snapshot:
        return Snapshot.capture(self.state)

    def to_record(self, include_history: bool = False) -> Record:
        record: Record = {"state": self.snapshot().to_record()}
        if include_history:
            record.update(self.history.to_record())
        return record

    def adopt(self, record: Record) -> None:
        """Replace the whole state with an externally supplied record.

        Moves are not re-validated; outcome, winner and check square are
        recomputed from the adopted board. History in the record replaces
        ours; without it both stacks are cleared.

        Raises:
            ValueError: If the record is malformed. State is unchanged.
        """
        if not isinstance(record, dict):
            raise ValueError("record must be a mapping")
        state_record = record.get("state", record)
        snapshot = Snapshot.from_record(state_record)
        history = History.from_record(record) if "state" in record else History()
        state = snapshot.restore()
        classify(state)
        self.state = state
        self.history = history
        logger.info(
            "adopted state", extra={"moves": len(state.move_log), "outcome": state.outcome.value}
        )
