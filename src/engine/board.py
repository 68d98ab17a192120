from __future__ import annotations

from typing import Iterator, List, Optional, Tuple

from .pieces import Color, Piece, PieceKind


STARTPOS_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"

NUM_SQUARES = 64


def rank_of(sq: int) -> int:
    return sq // 8


def file_of(sq: int) -> int:
    return sq % 8


def square_at(rank: int, file: int) -> Optional[int]:
    """Return the square for ``(rank, file)`` or ``None`` when off the board."""
    if 0 <= rank < 8 and 0 <= file < 8:
        return rank * 8 + file
    return None


class Board:
    """Square-indexed piece storage.

    Notes:
    - Squares are 0..63 (a8=0 .. h1=63), rank 0 is Black's back rank.
    - Pure data container: no legality knowledge. The mutators are raw and
      only used by the move executor and the legality simulator.
    """

    __slots__ = ("_squares",)

    def __init__(self, squares: Optional[List[Optional[Piece]]] = None) -> None:
        if squares is None:
            squares = [None] * NUM_SQUARES
        if len(squares) != NUM_SQUARES:
            raise ValueError("board must have exactly 64 squares")
        self._squares: List[Optional[Piece]] = list(squares)

    @classmethod
    def startpos(cls) -> "Board":
        """Create a board with the standard starting placement."""
        return cls.from_placement(STARTPOS_FEN.split()[0])

    @classmethod
    def from_placement(cls, placement: str) -> "Board":
        """Create a board from the piece-placement field of a FEN string.

        Args:
            placement (str): First FEN field, e.g. ``"8/8/8/8/8/8/8/K6k"``.

        Returns:
            Board: Board holding the described pieces.

        Raises:
            ValueError: If the field does not describe exactly 8 ranks of
                8 squares or contains an unknown piece letter.
        """
        ranks = placement.split("/")
        if len(ranks) != 8:
            raise ValueError("FEN board must have 8 ranks")
        squares: List[Optional[Piece]] = [None] * NUM_SQUARES
        # FEN lists rank 8 first, which is rank index 0 here
        for rank_idx, rank in enumerate(ranks):
            file_idx = 0
            for ch in rank:
                if ch.isdigit():
                    n = int(ch)
                    if n < 1 or n > 8:
                        raise ValueError("invalid empty count in FEN rank")
                    file_idx += n
                else:
                    if file_idx >= 8:
                        raise ValueError("too many squares in FEN rank")
                    squares[rank_idx * 8 + file_idx] = Piece.from_symbol(ch)
                    file_idx += 1
            if file_idx != 8:
                raise ValueError("rank does not sum to 8 squares in FEN")
        return cls(squares)

    def to_placement(self) -> str:
        """Serialize the pieces into the FEN piece-placement field."""
        ranks_str: List[str] = []
        for rank_idx in range(8):
            run = 0
            row = []
            for file_idx in range(8):
                piece = self._squares[rank_idx * 8 + file_idx]
                if piece is None:
                    run += 1
                else:
                    if run > 0:
                        row.append(str(run))
                        run = 0
                    row.append(piece.symbol)
            if run > 0:
                row.append(str(run))
            ranks_str.append("".join(row))
        return "/".join(ranks_str)

    # --- Queries ---
    def piece_at(self, sq: int) -> Optional[Piece]:
        return self._squares[sq]

    def is_empty(self, sq: int) -> bool:
        return self._squares[sq] is None

    def color_at(self, sq: int) -> Optional[Color]:
        piece = self._squares[sq]
        return piece.color if piece is not None else None

    def king_square(self, color: Color) -> Optional[int]:
        """Return the square of ``color``'s king, or ``None`` if absent."""
        king = Piece(color, PieceKind.KING)
        for sq, piece in enumerate(self._squares):
            if piece == king:
                return sq
        return None

    def squares_of(self, color: Color) -> Iterator[int]:
        """Yield the occupied squares of ``color`` in ascending order."""
        for sq, piece in enumerate(self._squares):
            if piece is not None and piece.color is color:
                yield sq

    # --- Raw mutators ---
    def place(self, sq: int, piece: Piece) -> None:
        self._squares[sq] = piece

    def remove(self, sq: int) -> Optional[Piece]:
        piece = self._squares[sq]
        self._squares[sq] = None
        return piece

    def relocate(self, from_sq: int, to_sq: int) -> Optional[Piece]:
        """Move whatever stands on ``from_sq`` to ``to_sq``.

        Returns:
            Optional[Piece]: The piece previously on ``to_sq``, if any.
        """
        captured = self._squares[to_sq]
        self._squares[to_sq] = self._squares[from_sq]
        self._squares[from_sq] = None
        return captured

    def copy(self) -> "Board":
        return Board(self._squares)

    def as_tuple(self) -> Tuple[Optional[Piece], ...]:
        return tuple(self._squares)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Board):
            return NotImplemented
        return self._squares == other._squares

    def __repr__(self) -> str:
        return f"Board({self.to_placement()!r})"
