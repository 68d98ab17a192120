from __future__ import annotations

from src.engine.game import Game
from src.engine.move import str_to_square
from src.engine.pieces import Color, Piece, PieceKind


def moves_set(game: Game) -> set[str]:
    return {m.to_uci() for m in game.legal_moves()}


def test_white_castling_available_when_clear_and_not_in_check() -> None:
    game = Game.from_fen("r3k2r/8/8/8/8/8/8/R3K2R w KQkq - 0 1")
    ms = moves_set(game)
    assert "e1g1" in ms
    assert "e1c1" in ms


def test_white_castling_blocked_when_in_check() -> None:
    # Black rook on e8 gives check on e1
    game = Game.from_fen("k3r3/8/8/8/8/8/8/R3K2R w KQ - 0 1")
    ms = moves_set(game)
    assert "e1g1" not in ms
    assert "e1c1" not in ms


def test_king_may_not_castle_through_an_attacked_square() -> None:
    # Bishop on c4 covers f1; the queen side stays available
    game = Game.from_fen("4k3/8/8/8/2b5/8/8/R3K2R w KQ - 0 1")
    targets = game.legal_targets(str_to_square("e1"))
    assert str_to_square("g1") not in targets
    assert str_to_square("c1") in targets


def test_king_may_not_castle_into_check() -> None:
    game = Game.from_fen("4k1r1/8/8/8/8/8/8/R3K2R w KQ - 0 1")
    ms = moves_set(game)
    assert "e1g1" not in ms
    assert "e1c1" in ms


def test_castling_needs_every_square_between_king_and_rook_empty() -> None:
    # Knight on b1 is not on the king's path but still blocks the queen side
    game = Game.from_fen("4k3/8/8/8/8/8/8/RN2K2R w KQ - 0 1")
    ms = moves_set(game)
    assert "e1c1" not in ms
    assert "e1g1" in ms


def test_castling_needs_the_rook_on_its_home_square() -> None:
    game = Game.from_fen("4k3/8/8/8/8/8/8/4K2R w KQ - 0 1")
    ms = moves_set(game)
    assert "e1c1" not in ms
    assert "e1g1" in ms


def test_castling_moves_rook_correctly() -> None:
    game = Game.from_fen("r3k2r/8/8/8/8/8/8/R3K2R w KQkq - 0 1")
    game.apply_uci("e1g1")
    board = game.board
    assert board.piece_at(str_to_square("g1")) == Piece(Color.WHITE, PieceKind.KING)
    assert board.piece_at(str_to_square("f1")) == Piece(Color.WHITE, PieceKind.ROOK)
    assert board.is_empty(str_to_square("h1"))
    assert board.is_empty(str_to_square("e1"))
    assert game.to_fen() == "r3k2r/8/8/8/8/8/8/R4RK1 b kq - 1 1"


def test_black_queen_side_castle() -> None:
    game = Game.from_fen("r3k2r/8/8/8/8/8/8/R3K2R b KQkq - 0 1")
    game.apply_uci("e8c8")
    assert game.to_fen() == "2kr3r/8/8/8/8/8/8/R3K2R w KQ - 1 2"


def test_rook_move_revokes_only_its_side() -> None:
    game = Game.from_fen("r3k2r/8/8/8/8/8/8/R3K2R w KQkq - 0 1")
    game.apply_uci("h1h2")
    assert game.state.castling.to_fen() == "Qkq"
    # Moving the rook back does not restore the right
    game.apply_uci("a8b8")
    game.apply_uci("h2h1")
    assert game.state.castling.to_fen() == "Qk"


def test_capturing_a_rook_on_its_home_square_revokes_that_right() -> None:
    game = Game.from_fen("r3k2r/8/8/8/8/8/8/R3K2R w KQkq - 0 1")
    game.apply_uci("a1a8")
    assert game.state.castling.to_fen() == "Kk"
    assert "e8c8" not in moves_set(game)
