from __future__ import annotations

from .board import Board, file_of, rank_of, square_at
from .pieces import Color, PieceKind


KNIGHT_OFFSETS = ((-1, 2), (1, 2), (-2, 1), (2, 1), (-2, -1), (2, -1), (-1, -2), (1, -2))
KING_OFFSETS = ((-1, -1), (0, -1), (1, -1), (-1, 0), (1, 0), (-1, 1), (0, 1), (1, 1))
DIAGONALS = ((-1, -1), (1, -1), (-1, 1), (1, 1))
ORTHOGONALS = ((-1, 0), (1, 0), (0, -1), (0, 1))


def pawn_direction(color: Color) -> int:
    """Rank delta of a pawn advance; White moves toward rank 0."""
    return -1 if color is Color.WHITE else 1


def is_attacked(board: Board, sq: int, by: Color) -> bool:
    """Return True if square ``sq`` is attacked by side ``by`` on ``board``.

    Covers: pawns, knights, king, and slider rays for bishops/rooks/queens.
    The board is taken as given, so hypothetical post-move boards work too.
    """
    r = rank_of(sq)
    f = file_of(sq)

    # Pawn attacks: an attacking pawn stands one rank behind sq from its side's view
    pr = r - pawn_direction(by)
    for df in (-1, 1):
        o = square_at(pr, f + df)
        if o is not None and _holds(board, o, by, PieceKind.PAWN):
            return True

    # Knight attacks
    for df, dr in KNIGHT_OFFSETS:
        o = square_at(r + dr, f + df)
        if o is not None and _holds(board, o, by, PieceKind.KNIGHT):
            return True

    # King attacks
    for df, dr in KING_OFFSETS:
        o = square_at(r + dr, f + df)
        if o is not None and _holds(board, o, by, PieceKind.KING):
            return True

    # Bishop-like directions
    if _ray_hits(board, r, f, DIAGONALS, by, PieceKind.BISHOP):
        return True
    # Rook-like directions
    return _ray_hits(board, r, f, ORTHOGONALS, by, PieceKind.ROOK)


def in_check(board: Board, color: Color) -> bool:
    """Return True if ``color``'s king is attacked.

    A missing king counts as in check so that no position without a king is
    ever treated as safe.
    """
    king_sq = board.king_square(color)
    if king_sq is None:
        return True
    return is_attacked(board, king_sq, color.other)


def _holds(board: Board, sq: int, color: Color, kind: PieceKind) -> bool:
    piece = board.piece_at(sq)
    return piece is not None and piece.color is color and piece.kind is kind


def _ray_hits(board: Board, r: int, f: int, dirs, by: Color, slider: PieceKind) -> bool:
    for df, dr in dirs:
        tr, tf = r + dr, f + df
        while True:
            o = square_at(tr, tf)
            if o is None:
                break
            piece = board.piece_at(o)
            if piece is not None:
                if piece.color is by and piece.kind in (slider, PieceKind.QUEEN):
                    return True
                break
            tr += dr
            tf += df
    return False
