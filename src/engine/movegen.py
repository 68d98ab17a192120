from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Set

from .attacks import (
    DIAGONALS,
    KING_OFFSETS,
    KNIGHT_OFFSETS,
    ORTHOGONALS,
    in_check,
    is_attacked,
    pawn_direction,
)
from .board import Board, file_of, rank_of, square_at
from .move import Move
from .pieces import PROMOTION_KINDS, Color, Piece, PieceKind
from .state import GameState


@dataclass(frozen=True)
class CastleRule:
    """Squares involved in one of the four castling moves."""

    color: Color
    king_side: bool
    king_from: int
    king_to: int
    rook_from: int
    rook_to: int
    must_be_empty: tuple
    transit: int


CASTLE_RULES = (
    # e1g1 / h1f1, e1c1 / a1d1
    CastleRule(Color.WHITE, True, 60, 62, 63, 61, (61, 62), 61),
    CastleRule(Color.WHITE, False, 60, 58, 56, 59, (57, 58, 59), 59),
    # e8g8 / h8f8, e8c8 / a8d8
    CastleRule(Color.BLACK, True, 4, 6, 7, 5, (5, 6), 5),
    CastleRule(Color.BLACK, False, 4, 2, 0, 3, (1, 2, 3), 3),
)


def castle_rule_for(piece: Piece, from_sq: int, to_sq: int) -> Optional[CastleRule]:
    """Return the rule when ``piece`` moving ``from_sq -> to_sq`` is a castle."""
    if piece.kind is not PieceKind.KING:
        return None
    for rule in CASTLE_RULES:
        if rule.color is piece.color and rule.king_from == from_sq and rule.king_to == to_sq:
            return rule
    return None


def promotes(piece: Piece, to_sq: int) -> bool:
    """True when a pawn landing on ``to_sq`` reaches the farthest rank."""
    if piece.kind is not PieceKind.PAWN:
        return False
    return rank_of(to_sq) == (0 if piece.color is Color.WHITE else 7)


def en_passant_victim(board: Board, move: Move, ep_square: Optional[int]) -> Optional[int]:
    """Return the square of the pawn captured en passant by ``move``, if any.

    The victim stands directly behind the destination relative to the mover,
    never on the destination itself.
    """
    piece = board.piece_at(move.from_sq)
    if piece is None or piece.kind is not PieceKind.PAWN:
        return None
    if ep_square is None or move.to_sq != ep_square:
        return None
    if file_of(move.to_sq) == file_of(move.from_sq):
        return None
    return square_at(rank_of(move.to_sq) - pawn_direction(piece.color), file_of(move.to_sq))


def play_on_board(board: Board, move: Move, ep_square: Optional[int]) -> Optional[Piece]:
    """Apply the board side of ``move`` in-place and return the captured piece.

    Handles castling rook relocation, en passant victim removal and promotion
    (Queen unless ``move.promotion`` says otherwise). Shared by the legality
    simulator and the executor so both see identical boards.
    """
    piece = board.piece_at(move.from_sq)
    if piece is None:
        raise ValueError("no piece to move from from_sq")

    captured: Optional[Piece] = None
    victim = en_passant_victim(board, move, ep_square)
    if victim is not None:
        captured = board.remove(victim)

    rule = castle_rule_for(piece, move.from_sq, move.to_sq)
    if rule is not None:
        board.relocate(rule.rook_from, rule.rook_to)

    landed = piece
    if promotes(piece, move.to_sq):
        landed = Piece(piece.color, move.promotion or PieceKind.QUEEN)

    taken = board.relocate(move.from_sq, move.to_sq)
    board.place(move.to_sq, landed)
    return taken if taken is not None else captured


def pseudo_moves(state: GameState, sq: int) -> Set[int]:
    """Return geometry-only destinations for the piece on ``sq``.

    Ignores whether the mover's own king is left in check. Squares occupied
    by either king are never returned.
    """
    board = state.board
    piece = board.piece_at(sq)
    if piece is None:
        return set()

    kind = piece.kind
    if kind is PieceKind.PAWN:
        targets = _pawn_targets(state, sq, piece)
    elif kind is PieceKind.KNIGHT:
        targets = _step_targets(board, sq, piece, KNIGHT_OFFSETS)
    elif kind is PieceKind.BISHOP:
        targets = _ray_targets(board, sq, piece, DIAGONALS)
    elif kind is PieceKind.ROOK:
        targets = _ray_targets(board, sq, piece, ORTHOGONALS)
    elif kind is PieceKind.QUEEN:
        targets = _ray_targets(board, sq, piece, DIAGONALS + ORTHOGONALS)
    elif kind is PieceKind.KING:
        targets = _step_targets(board, sq, piece, KING_OFFSETS)
        targets |= _castle_targets(state, sq, piece)
    else:
        raise ValueError(f"unknown piece kind: {kind!r}")

    return {t for t in targets if not _is_king(board, t)}


def legal_moves(state: GameState, sq: int) -> Set[int]:
    """Return the destinations for ``sq`` that do not leave its king attacked.

    Every pseudo move is played on a scratch copy of the board, castling and
    en passant included, and kept only if the mover's king is safe there.
    """
    piece = state.board.piece_at(sq)
    if piece is None:
        return set()
    legal: Set[int] = set()
    for to_sq in pseudo_moves(state, sq):
        scratch = state.board.copy()
        play_on_board(scratch, Move(sq, to_sq), state.ep_square)
        if not in_check(scratch, piece.color):
            legal.add(to_sq)
    return legal


def side_has_any_legal_move(state: GameState, side: Color) -> bool:
    for sq in state.board.squares_of(side):
        if legal_moves(state, sq):
            return True
    return False


def legal_move_list(state: GameState) -> List[Move]:
    """Return every legal move of the side to move in a stable order.

    Origins ascend, then destinations; promotions expand to Q, R, B, N.
    """
    moves: List[Move] = []
    board = state.board
    for from_sq, piece in enumerate(board.as_tuple()):
        if piece is None or piece.color is not state.side_to_move:
            continue
        for to_sq in sorted(legal_moves(state, from_sq)):
            if promotes(piece, to_sq):
                for kind in PROMOTION_KINDS:
                    moves.append(Move(from_sq, to_sq, kind))
            else:
                moves.append(Move(from_sq, to_sq))
    return moves


def is_capture(state: GameState, move: Move) -> bool:
    if not state.board.is_empty(move.to_sq):
        return True
    return en_passant_victim(state.board, move, state.ep_square) is not None


# --- Per-kind geometry ---
def _pawn_targets(state: GameState, sq: int, piece: Piece) -> Set[int]:
    board = state.board
    out: Set[int] = set()
    r, f = rank_of(sq), file_of(sq)
    d = pawn_direction(piece.color)
    start_rank = 6 if piece.color is Color.WHITE else 1

    one = square_at(r + d, f)
    if one is not None and board.is_empty(one):
        out.add(one)
        if r == start_rank:
            two = square_at(r + 2 * d, f)
            if two is not None and board.is_empty(two):
                out.add(two)

    for df in (-1, 1):
        cap = square_at(r + d, f + df)
        if cap is None:
            continue
        target = board.piece_at(cap)
        if target is not None:
            if target.color is not piece.color:
                out.add(cap)
        elif cap == state.ep_square:
            # Only when an enemy pawn actually sits beside us to be taken
            if board.piece_at(cap - 8 * d) == Piece(piece.color.other, PieceKind.PAWN):
                out.add(cap)
    return out


def _step_targets(board: Board, sq: int, piece: Piece, offsets) -> Set[int]:
    out: Set[int] = set()
    r, f = rank_of(sq), file_of(sq)
    for df, dr in offsets:
        to_sq = square_at(r + dr, f + df)
        if to_sq is None:
            continue
        if board.color_at(to_sq) is not piece.color:
            out.add(to_sq)
    return out


def _ray_targets(board: Board, sq: int, piece: Piece, dirs) -> Set[int]:
    out: Set[int] = set()
    r, f = rank_of(sq), file_of(sq)
    for df, dr in dirs:
        tr, tf = r + dr, f + df
        while True:
            to_sq = square_at(tr, tf)
            if to_sq is None:
                break
            occupant = board.color_at(to_sq)
            if occupant is None:
                out.add(to_sq)
            else:
                if occupant is not piece.color:
                    out.add(to_sq)
                break
            tr += dr
            tf += df
    return out


def _castle_targets(state: GameState, sq: int, piece: Piece) -> Set[int]:
    board = state.board
    out: Set[int] = set()
    enemy = piece.color.other
    own_rook = Piece(piece.color, PieceKind.ROOK)
    for rule in CASTLE_RULES:
        if rule.color is not piece.color or rule.king_from != sq:
            continue
        if not state.castling.has(piece.color, rule.king_side):
            continue
        if board.piece_at(rule.rook_from) != own_rook:
            continue
        if not all(board.is_empty(s) for s in rule.must_be_empty):
            continue
        if is_attacked(board, sq, enemy):
            continue
        if is_attacked(board, rule.transit, enemy) or is_attacked(board, rule.king_to, enemy):
            continue
        out.add(rule.king_to)
    return out


def _is_king(board: Board, sq: int) -> bool:
    piece = board.piece_at(sq)
    return piece is not None and piece.kind is PieceKind.KING
