from __future__ import annotations

from fastapi import FastAPI, HTTPException
from fastapi.testclient import TestClient

from src.config import Settings
from src.engine.errors import IllegalMove, MoveInFlight
from src.protocol.http.app import create_app


def test_error_envelope_for_http_exception() -> None:
    app: FastAPI = create_app(Settings())

    @app.get("/boom")
    def boom():  # type: ignore[no-redef]
        raise HTTPException(status_code=400, detail="oops")

    client = TestClient(app)
    r = client.get("/boom")
    assert r.status_code == 400
    body = r.json()
    assert "error" in body
    err = body["error"]
    assert err["code"] == "bad_request"
    assert err["message"] == "oops"
    assert err["type"] == "client_error"
    assert err["request_id"]


def test_chess_errors_map_to_400_and_409() -> None:
    app: FastAPI = create_app(Settings())

    @app.get("/illegal")
    def illegal():  # type: ignore[no-redef]
        raise IllegalMove("illegal move e2e5")

    @app.get("/busy")
    def busy():  # type: ignore[no-redef]
        raise MoveInFlight("game is busy")

    client = TestClient(app)
    r = client.get("/illegal")
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "bad_request"

    r = client.get("/busy")
    assert r.status_code == 409
    assert r.json()["error"]["code"] == "conflict"


def test_unhandled_error_is_500_envelope() -> None:
    app: FastAPI = create_app(Settings())

    @app.get("/crash")
    def crash():  # type: ignore[no-redef]
        raise RuntimeError("kaboom")

    client = TestClient(app, raise_server_exceptions=False)
    r = client.get("/crash")
    assert r.status_code == 500
    err = r.json()["error"]
    assert err["code"] == "internal_error"
    assert err["type"] == "server_error"
    assert "kaboom" not in err["message"]


def test_validation_error_is_422_with_field_errors() -> None:
    client = TestClient(create_app(Settings()))
    game_id = client.post("/api/games").json()["game_id"]
    r = client.post(f"/api/games/{game_id}/move", json={})
    assert r.status_code == 422
    err = r.json()["error"]
    assert err["code"] == "unprocessable_entity"
    assert any(fe["field"].endswith("move") for fe in err["field_errors"])
