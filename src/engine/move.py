from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .pieces import PROMOTION_KINDS, PieceKind


@dataclass(frozen=True)
class Move:
    """Engine-internal move representation.

    Side, capture, en passant and castling are not stored; they are derived
    from the board the move is applied to.

    Attributes:
        from_sq (int): Origin square index (0 = a8 .. 63 = h1).
        to_sq (int): Destination square index.
        promotion (Optional[PieceKind]): Requested promotion kind, if any.
    """

    from_sq: int
    to_sq: int
    promotion: Optional[PieceKind] = None

    def to_uci(self) -> str:
        """Serialize the move into long algebraic UCI form.

        Returns:
            str: Move encoded like ``"e2e4"`` or ``"e7e8q"``.
        """
        promo = self.promotion.value if self.promotion else ""
        return square_to_str(self.from_sq) + square_to_str(self.to_sq) + promo


def parse_uci(uci: str) -> Move:
    """Parse a UCI move string.

    Args:
        uci (str): Move encoded in long algebraic notation (e.g. ``"e2e4"``).

    Returns:
        Move: Parsed move.

    Raises:
        ValueError: If the string has an invalid length, squares, or promotion
            piece.
    """
    if not isinstance(uci, str) or len(uci) not in (4, 5):
        raise ValueError(f"invalid UCI move length: {uci!r}")
    from_sq = str_to_square(uci[0:2])
    to_sq = str_to_square(uci[2:4])
    promo: Optional[PieceKind] = None
    if len(uci) == 5:
        promo = promotion_kind(uci[4])
    return Move(from_sq, to_sq, promo)


def promotion_kind(ch: str) -> PieceKind:
    """Map a promotion letter (any case) to its piece kind.

    Raises:
        ValueError: If ``ch`` does not name a knight, bishop, rook or queen.
    """
    try:
        kind = PieceKind(ch.lower())
    except ValueError as e:
        raise ValueError(f"invalid promotion piece: {ch!r}") from e
    if kind not in PROMOTION_KINDS:
        raise ValueError(f"invalid promotion piece: {ch!r}")
    return kind


def str_to_square(s: str) -> int:
    """Convert algebraic notation into a square index.

    Squares are numbered from Black's back rank: ``a8`` is 0, ``h8`` is 7,
    ``a1`` is 56 and ``h1`` is 63.

    Args:
        s (str): Square name such as ``"e4"``.

    Returns:
        int: Square index.

    Raises:
        ValueError: If ``s`` is not a valid square.
    """
    if not isinstance(s, str) or len(s) != 2:
        raise ValueError(f"invalid square: {s!r}")
    if s[0] < "a" or s[0] > "h" or s[1] < "1" or s[1] > "8":
        raise ValueError(f"invalid square: {s!r}")
    file = ord(s[0]) - ord("a")
    rank = 8 - int(s[1])
    return rank * 8 + file


def square_to_str(idx: int) -> str:
    """Convert a square index into algebraic notation.

    Args:
        idx (int): Square index in range 0..63.

    Returns:
        str: Algebraic notation for ``idx``.

    Raises:
        ValueError: If ``idx`` is outside the valid square range.
    """
    if idx < 0 or idx > 63:
        raise ValueError(f"invalid square index: {idx}")
    file = idx % 8
    rank = idx // 8
    return chr(ord("a") + file) + str(8 - rank)
