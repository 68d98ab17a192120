from __future__ import annotations

import pytest

from src.engine.board import STARTPOS_FEN, Board
from src.engine.move import square_to_str, str_to_square
from src.engine.pieces import Color, Piece, PieceKind
from src.engine.state import CastlingRights, GameState


def test_square_numbering_runs_from_a8_to_h1() -> None:
    assert str_to_square("a8") == 0
    assert str_to_square("h8") == 7
    assert str_to_square("a1") == 56
    assert str_to_square("h1") == 63
    assert square_to_str(52) == "e2"


@pytest.mark.parametrize("bad", ["", "e9", "i1", "e", "e22", "E2"])
def test_str_to_square_rejects_bad_names(bad: str) -> None:
    with pytest.raises(ValueError):
        str_to_square(bad)


def test_startpos_round_trips_and_places_pieces() -> None:
    st = GameState.from_fen(STARTPOS_FEN)
    assert st.to_fen() == STARTPOS_FEN
    assert st.side_to_move is Color.WHITE
    assert st.castling == CastlingRights(True, True, True, True)
    assert st.board.piece_at(str_to_square("e1")) == Piece(Color.WHITE, PieceKind.KING)
    assert st.board.piece_at(str_to_square("d8")) == Piece(Color.BLACK, PieceKind.QUEEN)
    assert st.board.is_empty(str_to_square("e4"))
    assert st.start_fen == STARTPOS_FEN


def test_fen_round_trip_keeps_rights_ep_and_counters() -> None:
    fen = "rnbqkbnr/ppp1pppp/8/3pP3/8/8/PPPP1PPP/RNBQKBNR w Kq d6 0 3"
    st = GameState.from_fen(fen)
    assert st.ep_square == str_to_square("d6")
    assert st.castling.has(Color.WHITE, True)
    assert not st.castling.has(Color.WHITE, False)
    assert st.castling.has(Color.BLACK, False)
    assert st.fullmove_number == 3
    assert st.to_fen() == fen


@pytest.mark.parametrize(
    "fen",
    [
        "",
        "8/8/8/8/8/8/8 w - - 0 1",
        "9/8/8/8/8/8/8/8 w - - 0 1",
        "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNX w KQkq - 0 1",
        "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR x KQkq - 0 1",
        "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQxq - 0 1",
        "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq e4 0 1",
        "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - -1 1",
        "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 0",
        "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq -",
    ],
)
def test_invalid_fen_raises(fen: str) -> None:
    with pytest.raises(ValueError):
        GameState.from_fen(fen)


def test_board_copy_is_independent() -> None:
    b = Board.startpos()
    c = b.copy()
    c.relocate(str_to_square("e2"), str_to_square("e4"))
    assert b.piece_at(str_to_square("e2")) == Piece(Color.WHITE, PieceKind.PAWN)
    assert b != c
    assert b.king_square(Color.BLACK) == str_to_square("e8")
