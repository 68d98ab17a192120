from __future__ import annotations

from typing import Optional

from .attacks import in_check
from .board import rank_of
from .move import Move
from .movegen import CASTLE_RULES, play_on_board, promotes, side_has_any_legal_move
from .pieces import Color, Piece, PieceKind
from .state import CastlingRights, GameState, Outcome


def advance(state: GameState, move: Move) -> Optional[Piece]:
    """Apply an already validated ``move`` to ``state`` in-place.

    Performs the board change (castling rook, en passant victim, promotion),
    then updates castling rights, the en passant target, counters, side to
    move, capture lists, the move log and ``last_move``. The outcome is not
    touched; see ``classify``.

    Returns:
        Optional[Piece]: The captured piece, if any.
    """
    board = state.board
    piece = board.piece_at(move.from_sq)
    if piece is None:
        raise ValueError("no piece to move from from_sq")
    mover = piece.color

    # Record the resolved promotion so the log replays exactly
    if promotes(piece, move.to_sq):
        move = Move(move.from_sq, move.to_sq, move.promotion or PieceKind.QUEEN)
    elif move.promotion is not None:
        move = Move(move.from_sq, move.to_sq)

    captured = play_on_board(board, move, state.ep_square)

    state.castling = _updated_rights(state.castling, piece, move, captured)

    # Clear en passant by default; set only on double pawn pushes
    state.ep_square = None
    if piece.kind is PieceKind.PAWN and abs(rank_of(move.to_sq) - rank_of(move.from_sq)) == 2:
        state.ep_square = (move.from_sq + move.to_sq) // 2

    if piece.kind is PieceKind.PAWN or captured is not None:
        state.halfmove_clock = 0
    else:
        state.halfmove_clock += 1
    if mover is Color.BLACK:
        state.fullmove_number += 1

    state.side_to_move = mover.other

    if captured is not None:
        state.captured[mover].append(captured)
    state.move_log.append(move.to_uci())
    state.last_move = (move.from_sq, move.to_sq)
    return captured


def classify(state: GameState) -> None:
    """Recompute outcome, winner and check square for the side to move."""
    side = state.side_to_move
    checked = in_check(state.board, side)
    has_moves = side_has_any_legal_move(state, side)
    if checked and not has_moves:
        state.outcome = Outcome.CHECKMATE
        state.winner = side.other
    elif not has_moves:
        state.outcome = Outcome.STALEMATE
        state.winner = None
    elif checked:
        state.outcome = Outcome.CHECK
        state.winner = None
    else:
        state.outcome = Outcome.IN_PROGRESS
        state.winner = None
    state.check_square = state.board.king_square(side) if checked else None


def _updated_rights(
    rights: CastlingRights, piece: Piece, move: Move, captured: Optional[Piece]
) -> CastlingRights:
    """Revoke castling rights on king/rook moves and rook captures."""
    if piece.kind is PieceKind.KING:
        rights = rights.revoke(piece.color)
    elif piece.kind is PieceKind.ROOK:
        for rule in CASTLE_RULES:
            if rule.color is piece.color and rule.rook_from == move.from_sq:
                rights = rights.revoke(piece.color, rule.king_side)
    # Rook captured on its original square
    if captured is not None and captured.kind is PieceKind.ROOK:
        for rule in CASTLE_RULES:
            if rule.color is captured.color and rule.rook_from == move.to_sq:
                rights = rights.revoke(captured.color, rule.king_side)
    return rights
