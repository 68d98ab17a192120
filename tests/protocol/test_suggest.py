from __future__ import annotations

from typing import Optional

from fastapi.testclient import TestClient

from src.config import Settings
from src.engine.game import Game
from src.protocol.http.app import create_app
from src.protocol.uci.engine import SuggestionEngine


class LastMoveEngine(SuggestionEngine):
    """Suggests the last legal move of its own copy of the game."""

    def new_game(self, start_fen: str) -> None:
        self.game = Game.from_fen(start_fen)

    def push(self, uci: str) -> None:
        self.game.apply_uci(uci)

    def best_move(self, level: int) -> Optional[str]:
        legal = self.game.legal_moves()
        return legal[-1].to_uci() if legal else None


def test_suggest_without_engine_uses_fallback() -> None:
    client = TestClient(create_app(Settings(sync_enabled=False)))
    game_id = client.post("/api/games").json()["game_id"]

    r = client.post(f"/api/games/{game_id}/suggest")
    assert r.status_code == 200
    body = r.json()
    assert body == {"move": "a2a4", "source": "fallback", "state": None}


def test_suggest_with_engine_and_apply() -> None:
    app = create_app(Settings(sync_enabled=False), engine_factory=LastMoveEngine)
    client = TestClient(app)
    game_id = client.post("/api/games").json()["game_id"]

    r = client.post(f"/api/games/{game_id}/suggest", json={"level": 5, "apply": True})
    body = r.json()
    assert body["move"] == "g1h3"
    assert body["source"] == "engine"
    assert body["state"]["move_history"] == ["g1h3"]
    assert body["state"]["mode"] == "idle"

    # The engine follows moves made through the API
    client.post(f"/api/games/{game_id}/move", json={"move": "a7a6"})
    r = client.post(f"/api/games/{game_id}/suggest")
    assert r.json()["move"] == "h1g1"


def test_suggest_rejects_out_of_range_level() -> None:
    client = TestClient(create_app(Settings(sync_enabled=False)))
    game_id = client.post("/api/games").json()["game_id"]
    r = client.post(f"/api/games/{game_id}/suggest", json={"level": 11})
    assert r.status_code == 422


def test_suggest_on_finished_game_returns_no_move() -> None:
    client = TestClient(create_app(Settings(sync_enabled=False)))
    game_id = client.post("/api/games").json()["game_id"]
    client.post(
        f"/api/games/{game_id}/position", json={"fen": "7k/6Q1/6K1/8/8/8/8/8 b - - 0 1"}
    )
    r = client.post(f"/api/games/{game_id}/suggest")
    assert r.json() == {"move": None, "source": None, "state": None}
