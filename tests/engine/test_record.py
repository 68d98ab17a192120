from __future__ import annotations

import copy

import pytest

from src.engine.game import Game
from src.engine.history import Snapshot
from src.engine.state import Outcome


def play(game: Game, moves: list[str]) -> Game:
    for uci in moves:
        game.apply_uci(uci)
    return game


def test_record_shape() -> None:
    game = play(Game.new(), ["e2e4", "d7d5", "e4d5"])
    record = game.to_record()["state"]
    assert len(record["board"]) == 64
    assert record["board"][60] == "K"
    assert record["board"][36] == ""
    assert record["side_to_move"] == "black"
    assert record["castling"] == "KQkq"
    assert record["en_passant"] is None
    assert record["last_move"] == {"from": "e4", "to": "d5"}
    assert record["move_log"] == ["e2e4", "d7d5", "e4d5"]
    assert record["captured"] == {"white": ["p"], "black": []}
    assert record["outcome"] == "in_progress"


def test_record_round_trips_through_a_fresh_game() -> None:
    game = play(Game.new(), ["e2e4", "c7c5", "g1f3", "d7d6"])
    other = Game.from_record(game.to_record())
    assert other.snapshot() == game.snapshot()
    assert Snapshot.from_record(game.snapshot().to_record()) == game.snapshot()


def test_adopt_with_history_keeps_undo_available() -> None:
    source = play(Game.new(), ["e2e4", "e7e5"])
    source.undo()
    record = source.to_record(include_history=True)
    assert len(record["history"]) == 1
    assert len(record["redo"]) == 1

    target = Game.new()
    target.adopt(record)
    assert target.history.undo_depth == 1
    target.redo()
    assert target.move_history_uci() == ["e2e4", "e7e5"]


def test_adopt_without_history_clears_both_stacks() -> None:
    target = play(Game.new(), ["d2d4", "d7d5"])
    target.undo()
    target.adopt(play(Game.new(), ["e2e4"]).to_record())
    assert target.history.undo_depth == 0
    assert target.history.redo_depth == 0
    assert target.move_history_uci() == ["e2e4"]


def test_adopt_recomputes_outcome_from_the_board() -> None:
    mated = play(Game.new(), ["f2f3", "e7e5", "g2g4", "d8h4"])
    record = copy.deepcopy(mated.to_record())
    record["state"]["outcome"] = "in_progress"
    record["state"]["winner"] = None

    game = Game.new()
    game.adopt(record)
    assert game.outcome is Outcome.CHECKMATE
    assert game.state.winner is not None


def test_adopt_accepts_a_bare_state_record() -> None:
    source = play(Game.new(), ["g1f3"])
    game = Game.new()
    game.adopt(source.snapshot().to_record())
    assert game.to_fen() == source.to_fen()


@pytest.mark.parametrize(
    "mutate",
    [
        lambda r: r["state"].update(board=["" for _ in range(10)]),
        lambda r: r["state"].update(side_to_move="green"),
        lambda r: r["state"].update(castling="XYZ"),
        lambda r: r["state"].update(en_passant="z9"),
        lambda r: r["state"].update(move_log="e2e4"),
        lambda r: r["state"]["board"].__setitem__(0, "x"),
        lambda r: r["state"].update(castling=5),
        lambda r: r["state"].update(start_fen=7),
        lambda r: r["state"].update(start_fen="not a fen"),
        lambda r: r["state"]["captured"].update(white=3),
        lambda r: r.update(history=7),
        lambda r: r.update(redo={"board": []}),
    ],
)
def test_malformed_record_is_rejected_without_changes(mutate) -> None:
    game = play(Game.new(), ["e2e4"])
    before = game.snapshot()
    record = game.to_record()
    mutate(record)
    with pytest.raises(ValueError):
        game.adopt(record)
    assert game.snapshot() == before


def test_adopt_rejects_non_mapping() -> None:
    with pytest.raises(ValueError):
        Game.new().adopt(["not", "a", "record"])  # type: ignore[arg-type]
