from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, List, Optional, Tuple

from .board import STARTPOS_FEN, Board
from .move import square_to_str, str_to_square
from .pieces import Color, Piece


class Outcome(str, Enum):
    IN_PROGRESS = "in_progress"
    CHECK = "check"
    CHECKMATE = "checkmate"
    STALEMATE = "stalemate"

    @property
    def is_terminal(self) -> bool:
        return self in (Outcome.CHECKMATE, Outcome.STALEMATE)


@dataclass(frozen=True)
class CastlingRights:
    """Four independent castling flags.

    Rights only ever go from True to False; ``revoke`` never re-grants.
    """

    white_king: bool = True
    white_queen: bool = True
    black_king: bool = True
    black_queen: bool = True

    @classmethod
    def none(cls) -> "CastlingRights":
        return cls(False, False, False, False)

    @classmethod
    def from_fen(cls, text: str) -> "CastlingRights":
        """Parse the FEN castling field (``"KQkq"``, ``"Kq"``, ``"-"`` ...).

        Raises:
            ValueError: On letters other than ``KQkq``.
        """
        if text == "-":
            return cls.none()
        for ch in text:
            if ch not in "KQkq":
                raise ValueError("invalid castling rights")
        return cls("K" in text, "Q" in text, "k" in text, "q" in text)

    def to_fen(self) -> str:
        out = ""
        if self.white_king:
            out += "K"
        if self.white_queen:
            out += "Q"
        if self.black_king:
            out += "k"
        if self.black_queen:
            out += "q"
        return out or "-"

    def has(self, color: Color, king_side: bool) -> bool:
        if color is Color.WHITE:
            return self.white_king if king_side else self.white_queen
        return self.black_king if king_side else self.black_queen

    def revoke(self, color: Color, king_side: Optional[bool] = None) -> "CastlingRights":
        """Return rights with ``color``'s king side, queen side, or both (None) cleared."""
        if color is Color.WHITE:
            return replace(
                self,
                white_king=self.white_king and king_side is False,
                white_queen=self.white_queen and king_side is True,
            )
        return replace(
            self,
            black_king=self.black_king and king_side is False,
            black_queen=self.black_queen and king_side is True,
        )


def empty_captures() -> Dict[Color, List[Piece]]:
    return {Color.WHITE: [], Color.BLACK: []}


@dataclass
class GameState:
    """Complete mutable state of one game, exclusively owned by a ``Game``.

    ``captured`` maps the capturing side to the pieces it took. ``check_square``
    is the square of the side-to-move's king when it is in check, kept for
    renderers that highlight it.
    """

    board: Board
    side_to_move: Color = Color.WHITE
    castling: CastlingRights = field(default_factory=CastlingRights)
    ep_square: Optional[int] = None
    last_move: Optional[Tuple[int, int]] = None
    outcome: Outcome = Outcome.IN_PROGRESS
    winner: Optional[Color] = None
    move_log: List[str] = field(default_factory=list)
    captured: Dict[Color, List[Piece]] = field(default_factory=empty_captures)
    halfmove_clock: int = 0
    fullmove_number: int = 1
    check_square: Optional[int] = None
    start_fen: str = STARTPOS_FEN

    @classmethod
    def startpos(cls) -> "GameState":
        return cls.from_fen(STARTPOS_FEN)

    @classmethod
    def from_fen(cls, fen: str) -> "GameState":
        """Create a state from a Forsyth–Edwards Notation (FEN) string.

        The outcome and check square are left at their defaults; callers that
        need them derived go through ``Game``.

        Args:
            fen (str): FEN string describing the position to load.

        Returns:
            GameState: State initialized with the position encoded in ``fen``.

        Raises:
            ValueError: If ``fen`` is empty, has the wrong number of fields, or
                contains invalid piece placement, castling rights, en passant
                square, or move counters.
        """
        if not fen or not isinstance(fen, str):
            raise ValueError("FEN must be a non-empty string")
        parts = fen.strip().split()
        if len(parts) != 6:
            raise ValueError("FEN must have 6 fields")
        placement, stm, castling, ep, halfmove, fullmove = parts

        board = Board.from_placement(placement)
        side = Color.from_fen(stm)
        rights = CastlingRights.from_fen(castling)

        ep_square: Optional[int]
        if ep == "-":
            ep_square = None
        else:
            try:
                ep_square = str_to_square(ep)
            except ValueError as e:
                raise ValueError("invalid en passant square") from e
            # Target squares only exist on ranks 3 and 6
            if ep_square // 8 not in (2, 5):
                raise ValueError("invalid en passant square rank")

        try:
            halfmove_clock = int(halfmove)
            fullmove_number = int(fullmove)
        except ValueError as e:
            raise ValueError("invalid move counters in FEN") from e
        if halfmove_clock < 0 or fullmove_number <= 0:
            raise ValueError("invalid move counters in FEN")

        state = cls(
            board=board,
            side_to_move=side,
            castling=rights,
            ep_square=ep_square,
            halfmove_clock=halfmove_clock,
            fullmove_number=fullmove_number,
        )
        state.start_fen = state.to_fen()
        return state

    def to_fen(self) -> str:
        """Serialize the current position into a normalized FEN string."""
        ep = square_to_str(self.ep_square) if self.ep_square is not None else "-"
        return (
            f"{self.board.to_placement()} {self.side_to_move.fen} {self.castling.to_fen()} "
            f"{ep} {self.halfmove_clock} {self.fullmove_number}"
        )

    def copy(self) -> "GameState":
        """Deep copy with no mutable sub-structure shared with ``self``."""
        return replace(
            self,
            board=self.board.copy(),
            move_log=list(self.move_log),
            captured={color: list(pieces) for color, pieces in self.captured.items()},
        )
