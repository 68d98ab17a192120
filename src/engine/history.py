from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .board import NUM_SQUARES, STARTPOS_FEN, Board
from .move import square_to_str, str_to_square
from .pieces import Color, Piece
from .state import CastlingRights, GameState, Outcome


Record = Dict[str, Any]


@dataclass(frozen=True)
class Snapshot:
    """Immutable copy of a ``GameState``.

    Used identically by the undo/redo stacks and by the persistence record,
    so both paths agree on what a saved game contains. Tuples everywhere keep
    it free of mutable sub-structure.
    """

    board: Tuple[Optional[Piece], ...]
    side_to_move: Color
    castling: CastlingRights
    ep_square: Optional[int]
    last_move: Optional[Tuple[int, int]]
    outcome: Outcome
    winner: Optional[Color]
    move_log: Tuple[str, ...]
    captured_by_white: Tuple[Piece, ...]
    captured_by_black: Tuple[Piece, ...]
    halfmove_clock: int
    fullmove_number: int
    check_square: Optional[int]
    start_fen: str

    @classmethod
    def capture(cls, state: GameState) -> "Snapshot":
        return cls(
            board=state.board.as_tuple(),
            side_to_move=state.side_to_move,
            castling=state.castling,
            ep_square=state.ep_square,
            last_move=state.last_move,
            outcome=state.outcome,
            winner=state.winner,
            move_log=tuple(state.move_log),
            captured_by_white=tuple(state.captured[Color.WHITE]),
            captured_by_black=tuple(state.captured[Color.BLACK]),
            halfmove_clock=state.halfmove_clock,
            fullmove_number=state.fullmove_number,
            check_square=state.check_square,
            start_fen=state.start_fen,
        )

    def restore(self) -> GameState:
        """Build a fresh, independently mutable ``GameState`` from this snapshot."""
        return GameState(
            board=Board(list(self.board)),
            side_to_move=self.side_to_move,
            castling=self.castling,
            ep_square=self.ep_square,
            last_move=self.last_move,
            outcome=self.outcome,
            winner=self.winner,
            move_log=list(self.move_log),
            captured={
                Color.WHITE: list(self.captured_by_white),
                Color.BLACK: list(self.captured_by_black),
            },
            halfmove_clock=self.halfmove_clock,
            fullmove_number=self.fullmove_number,
            check_square=self.check_square,
            start_fen=self.start_fen,
        )

    # --- Plain structured record (JSON compatible) ---
    def to_record(self) -> Record:
        return {
            "board": [p.symbol if p is not None else "" for p in self.board],
            "side_to_move": self.side_to_move.value,
            "castling": self.castling.to_fen(),
            "en_passant": _sq_name(self.ep_square),
            "last_move": (
                {"from": square_to_str(self.last_move[0]), "to": square_to_str(self.last_move[1])}
                if self.last_move is not None
                else None
            ),
            "outcome": self.outcome.value,
            "winner": self.winner.value if self.winner is not None else None,
            "move_log": list(self.move_log),
            "captured": {
                Color.WHITE.value: [p.symbol for p in self.captured_by_white],
                Color.BLACK.value: [p.symbol for p in self.captured_by_black],
            },
            "halfmove_clock": self.halfmove_clock,
            "fullmove_number": self.fullmove_number,
            "check_square": _sq_name(self.check_square),
            "start_fen": self.start_fen,
        }

    @classmethod
    def from_record(cls, record: Record) -> "Snapshot":
        """Parse a record produced by ``to_record``.

        Only ``board`` and ``side_to_move`` are required; the remaining keys
        fall back to the values of a game that has just started.

        Raises:
            ValueError: If the record is malformed.
        """
        if not isinstance(record, dict):
            raise ValueError("record must be a mapping")
        raw_board = record.get("board")
        if not isinstance(raw_board, list) or len(raw_board) != NUM_SQUARES:
            raise ValueError("record board must list exactly 64 squares")
        board = tuple(Piece.from_symbol(s) if s else None for s in raw_board)

        try:
            side = Color(record.get("side_to_move"))
            outcome = Outcome(record.get("outcome", Outcome.IN_PROGRESS.value))
            winner_raw = record.get("winner")
            winner = Color(winner_raw) if winner_raw is not None else None
        except ValueError as e:
            raise ValueError(f"invalid record field: {e}") from e

        last_raw = record.get("last_move")
        last_move: Optional[Tuple[int, int]] = None
        if last_raw is not None:
            if not isinstance(last_raw, dict):
                raise ValueError("record last_move must be a mapping")
            last_move = (str_to_square(last_raw.get("from")), str_to_square(last_raw.get("to")))

        captured = record.get("captured") or {}
        move_log = record.get("move_log") or []
        if not isinstance(captured, dict) or not isinstance(move_log, list):
            raise ValueError("record captured/move_log have the wrong shape")
        by_white = captured.get(Color.WHITE.value) or []
        by_black = captured.get(Color.BLACK.value) or []
        if not isinstance(by_white, list) or not isinstance(by_black, list):
            raise ValueError("record captured lists have the wrong shape")
        if not all(isinstance(m, str) for m in move_log):
            raise ValueError("record move_log must hold strings")
        try:
            halfmove = int(record.get("halfmove_clock", 0))
            fullmove = int(record.get("fullmove_number", 1))
        except (TypeError, ValueError) as e:
            raise ValueError("invalid move counters in record") from e

        castling = record.get("castling") or "-"
        start_fen = record.get("start_fen") or STARTPOS_FEN
        if not isinstance(castling, str) or not isinstance(start_fen, str):
            raise ValueError("record castling/start_fen must be strings")
        # Engines are replayed from start_fen, so it has to parse
        GameState.from_fen(start_fen)

        return cls(
            board=board,
            side_to_move=side,
            castling=CastlingRights.from_fen(castling),
            ep_square=_sq_index(record.get("en_passant")),
            last_move=last_move,
            outcome=outcome,
            winner=winner,
            move_log=tuple(move_log),
            captured_by_white=_pieces(by_white),
            captured_by_black=_pieces(by_black),
            halfmove_clock=halfmove,
            fullmove_number=fullmove,
            check_square=_sq_index(record.get("check_square")),
            start_fen=start_fen,
        )


class History:
    """Undo and redo stacks of snapshots.

    ``commit`` stores the state from before a move and drops the redo branch;
    ``undo``/``redo`` swap the current snapshot with the top of one stack.
    """

    def __init__(
        self, undo: Iterable[Snapshot] = (), redo: Iterable[Snapshot] = ()
    ) -> None:
        self._undo: List[Snapshot] = list(undo)
        self._redo: List[Snapshot] = list(redo)

    @property
    def undo_depth(self) -> int:
        return len(self._undo)

    @property
    def redo_depth(self) -> int:
        return len(self._redo)

    def commit(self, before: Snapshot) -> None:
        self._undo.append(before)
        self._redo.clear()

    def undo(self, current: Snapshot) -> Snapshot:
        if not self._undo:
            raise IndexError("undo stack is empty")
        previous = self._undo.pop()
        self._redo.append(current)
        return previous

    def redo(self, current: Snapshot) -> Snapshot:
        if not self._redo:
            raise IndexError("redo stack is empty")
        following = self._redo.pop()
        self._undo.append(current)
        return following

    def to_record(self) -> Record:
        return {
            "history": [s.to_record() for s in self._undo],
            "redo": [s.to_record() for s in self._redo],
        }

    @classmethod
    def from_record(cls, record: Record) -> "History":
        """Parse the ``history``/``redo`` lists of a record.

        Raises:
            ValueError: If either is not a list of state records.
        """
        undo = record.get("history") or []
        redo = record.get("redo") or []
        if not isinstance(undo, list) or not isinstance(redo, list):
            raise ValueError("record history/redo must be lists")
        return cls(
            undo=[Snapshot.from_record(r) for r in undo],
            redo=[Snapshot.from_record(r) for r in redo],
        )


def _sq_name(sq: Optional[int]) -> Optional[str]:
    return square_to_str(sq) if sq is not None else None


def _sq_index(name: Optional[str]) -> Optional[int]:
    return str_to_square(name) if name else None


def _pieces(symbols: Iterable[str]) -> Tuple[Piece, ...]:
    return tuple(Piece.from_symbol(s) for s in symbols)
