from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Color(str, Enum):
    WHITE = "white"
    BLACK = "black"

    @property
    def other(self) -> "Color":
        return Color.BLACK if self is Color.WHITE else Color.WHITE

    @property
    def fen(self) -> str:
        return "w" if self is Color.WHITE else "b"

    @classmethod
    def from_fen(cls, ch: str) -> "Color":
        if ch == "w":
            return cls.WHITE
        if ch == "b":
            return cls.BLACK
        raise ValueError("side to move must be 'w' or 'b'")


class PieceKind(str, Enum):
    PAWN = "p"
    KNIGHT = "n"
    BISHOP = "b"
    ROOK = "r"
    QUEEN = "q"
    KING = "k"


# Kinds a pawn may promote to, in the order moves are enumerated
PROMOTION_KINDS = (PieceKind.QUEEN, PieceKind.ROOK, PieceKind.BISHOP, PieceKind.KNIGHT)


@dataclass(frozen=True)
class Piece:
    """A colored piece. Immutable, so boards can share instances freely.

    Attributes:
        color (Color): Owning side.
        kind (PieceKind): Piece type.
    """

    color: Color
    kind: PieceKind

    @property
    def symbol(self) -> str:
        """FEN letter: uppercase for White, lowercase for Black."""
        ch = self.kind.value
        return ch.upper() if self.color is Color.WHITE else ch

    @classmethod
    def from_symbol(cls, ch: str) -> "Piece":
        """Parse a FEN piece letter.

        Raises:
            ValueError: If ``ch`` is not one of ``PNBRQKpnbrqk``.
        """
        try:
            kind = PieceKind(ch.lower())
        except (AttributeError, ValueError) as e:
            raise ValueError(f"invalid piece symbol: {ch!r}") from e
        return cls(Color.WHITE if ch.isupper() else Color.BLACK, kind)

    def __str__(self) -> str:
        return self.symbol
