from __future__ import annotations

from src.config import Settings


def test_defaults_without_environment(monkeypatch) -> None:
    for name in (
        "CHESS_LOG_LEVEL",
        "CHESS_HOST",
        "CHESS_PORT",
        "CHESS_UCI_ENGINE",
        "CHESS_UCI_TIMEOUT_S",
        "CHESS_DEFAULT_LEVEL",
        "CHESS_SYNC",
    ):
        monkeypatch.delenv(name, raising=False)
    s = Settings.from_env()
    assert s == Settings()
    assert s.uci_engine is None
    assert s.sync_enabled is True


def test_environment_overrides(monkeypatch) -> None:
    monkeypatch.setenv("CHESS_LOG_LEVEL", "debug")
    monkeypatch.setenv("CHESS_PORT", "9001")
    monkeypatch.setenv("CHESS_UCI_ENGINE", "/usr/bin/stockfish")
    monkeypatch.setenv("CHESS_UCI_TIMEOUT_S", "2.5")
    monkeypatch.setenv("CHESS_DEFAULT_LEVEL", "8")
    monkeypatch.setenv("CHESS_SYNC", "off")
    s = Settings.from_env()
    assert s.log_level == "DEBUG"
    assert s.port == 9001
    assert s.uci_engine == "/usr/bin/stockfish"
    assert s.uci_timeout_s == 2.5
    assert s.default_level == 8
    assert s.sync_enabled is False
