from __future__ import annotations

import os
import stat
import sys
import textwrap

import pytest

from src.engine.board import STARTPOS_FEN
from src.engine.game import Game
from src.protocol.uci.adapter import SuggestionAdapter
from src.protocol.uci.engine import UCIProcessEngine


FAKE_ENGINE = """
import sys

position = ""
log = open(sys.argv[0] + ".log", "w")
for line in sys.stdin:
    cmd = line.strip()
    log.write(cmd + "\\n")
    log.flush()
    if cmd == "uci":
        print("id name fake")
        print("uciok", flush=True)
    elif cmd == "isready":
        print("readyok", flush=True)
    elif cmd.startswith("position"):
        position = cmd
    elif cmd.startswith("go"):
        print("info depth 1 score cp 0")
        if position.endswith("e2e4"):
            print("bestmove e7e5", flush=True)
        elif "moves" in position:
            print("bestmove (none)", flush=True)
        else:
            print("bestmove e2e4 ponder e7e5", flush=True)
    elif cmd == "quit":
        break
"""


@pytest.fixture
def engine_path(tmp_path) -> str:
    path = tmp_path / "fake_engine.py"
    path.write_text(f"#!{sys.executable}\n" + textwrap.dedent(FAKE_ENGINE))
    os.chmod(path, os.stat(path).st_mode | stat.S_IEXEC)
    return str(path)


def test_process_engine_plays_through_uci(engine_path: str) -> None:
    engine = UCIProcessEngine(engine_path, timeout_s=10.0)
    try:
        engine.new_game(STARTPOS_FEN)
        assert engine.best_move(3) == "e2e4"
        engine.push("e2e4")
        assert engine.best_move(3) == "e7e5"
        engine.push("e7e5")
        assert engine.best_move(3) is None
    finally:
        engine.close()

    with open(engine_path + ".log") as fh:
        sent = [line.strip() for line in fh]
    assert sent[0] == "uci"
    assert "ucinewgame" in sent
    assert "setoption name Skill Level value 6" in sent
    assert f"position fen {STARTPOS_FEN} moves e2e4" in sent
    assert "go depth 3" in sent
    assert sent[-1] == "quit"


def test_process_engine_behind_the_adapter(engine_path: str) -> None:
    adapter = SuggestionAdapter(lambda: UCIProcessEngine(engine_path, timeout_s=10.0))
    game = Game.new()
    try:
        s = adapter.suggest(game)
        assert s is not None and s.source == "engine"
        assert s.move.to_uci() == "e2e4"
        game.apply_move(s.move)
        s = adapter.suggest(game)
        assert s is not None and s.move.to_uci() == "e7e5"
    finally:
        adapter.close()


def test_missing_binary_falls_back(tmp_path) -> None:
    missing = str(tmp_path / "no-such-engine")
    adapter = SuggestionAdapter(lambda: UCIProcessEngine(missing, timeout_s=1.0))
    s = adapter.suggest(Game.new())
    assert s is not None
    assert s.source == "fallback"


STUBBORN_ENGINE = """
import signal
import sys

signal.signal(signal.SIGTERM, signal.SIG_IGN)
for line in sys.stdin:
    cmd = line.strip()
    if cmd == "uci":
        print("uciok", flush=True)
    elif cmd == "isready":
        print("readyok", flush=True)
"""


def test_close_kills_an_engine_that_ignores_quit(tmp_path) -> None:
    path = tmp_path / "stubborn_engine.py"
    path.write_text(f"#!{sys.executable}\n" + textwrap.dedent(STUBBORN_ENGINE))
    os.chmod(path, os.stat(path).st_mode | stat.S_IEXEC)

    engine = UCIProcessEngine(str(path), timeout_s=10.0)
    engine.start()
    proc = engine.proc
    assert proc is not None

    engine.close()

    assert engine.proc is None
    assert proc.returncode is not None
