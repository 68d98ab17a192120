from __future__ import annotations

import logging
import queue
import subprocess
import threading
import time
from abc import ABC, abstractmethod
from typing import List, Optional


logger = logging.getLogger(__name__)

MIN_LEVEL = 1
MAX_LEVEL = 10


def clamp_level(level: int) -> int:
    return max(MIN_LEVEL, min(MAX_LEVEL, int(level)))


class SuggestionEngine(ABC):
    """A move-suggestion engine that speaks UCI square names.

    The engine keeps its own copy of the game: a start position plus the moves
    pushed since. It is never trusted to agree with the rules core.
    """

    @abstractmethod
    def new_game(self, start_fen: str) -> None:
        """Forget everything and start from ``start_fen``."""

    @abstractmethod
    def push(self, uci: str) -> None:
        """Append one move in long algebraic notation."""

    @abstractmethod
    def best_move(self, level: int) -> Optional[str]:
        """Return the suggested move for ``level``, or None if it has none."""

    def close(self) -> None:
        """Release any process or connection held by the engine."""


class UCIProcessEngine(SuggestionEngine):
    """Drives an external UCI engine binary over stdin/stdout.

    Levels 1..10 map to ``go depth <level>`` and the common ``Skill Level``
    option (``2 * level``, capped at 20).
    """

    def __init__(self, path: str, timeout_s: float = 5.0) -> None:
        self.path = path
        self.timeout_s = timeout_s
        self.proc: Optional[subprocess.Popen] = None
        self._lines: "queue.Queue[str]" = queue.Queue()
        self._start_fen: Optional[str] = None
        self._moves: List[str] = []

    # ---- Process lifecycle ----
    def start(self) -> None:
        self.proc = subprocess.Popen(
            [self.path],
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            bufsize=1,
        )
        reader = threading.Thread(target=self._pump, name="uci-reader", daemon=True)
        reader.start()
        self.send("uci")
        if not self._read_until(lambda line: line.strip() == "uciok", self.timeout_s):
            raise RuntimeError("Engine did not respond to 'uci'")
        self._sync_ready()
        logger.info("uci engine started", extra={"path": self.path})

    def _pump(self) -> None:
        assert self.proc and self.proc.stdout
        for line in self.proc.stdout:
            self._lines.put(line)

    def send(self, cmd: str) -> None:
        if self.proc is None:
            self.start()
        assert self.proc and self.proc.stdin
        self.proc.stdin.write(cmd + "\n")
        self.proc.stdin.flush()

    def set_option(self, name: str, value: str) -> None:
        self.send(f"setoption name {name} value {value}")

    def _read_until(self, predicate, timeout: float) -> Optional[str]:
        end = time.monotonic() + timeout
        while True:
            remaining = end - time.monotonic()
            if remaining <= 0:
                return None
            try:
                line = self._lines.get(timeout=remaining)
            except queue.Empty:
                return None
            if predicate(line):
                return line

    def _sync_ready(self) -> None:
        self.send("isready")
        if not self._read_until(lambda line: line.strip() == "readyok", self.timeout_s):
            raise RuntimeError("Engine not ready")

    # ---- SuggestionEngine ----
    def new_game(self, start_fen: str) -> None:
        self._start_fen = start_fen
        self._moves = []
        self.send("ucinewgame")
        self._sync_ready()

    def push(self, uci: str) -> None:
        self._moves.append(uci)

    def best_move(self, level: int) -> Optional[str]:
        if self._start_fen is None:
            raise RuntimeError("new_game must be called before best_move")
        level = clamp_level(level)
        self.set_option("Skill Level", str(min(20, level * 2)))
        position = f"position fen {self._start_fen}"
        if self._moves:
            position += " moves " + " ".join(self._moves)
        self.send(position)
        self._sync_ready()
        self.send(f"go depth {level}")
        line = self._read_until(lambda ln: ln.startswith("bestmove"), self.timeout_s)
        if line is None:
            raise RuntimeError("Engine did not return a bestmove in time")
        parts = line.strip().split()
        if len(parts) < 2 or parts[1] in ("(none)", "0000"):
            return None
        return parts[1].lower()

    def close(self) -> None:
        if self.proc is None:
            return
        try:
            self.send("quit")
            self.proc.wait(timeout=1.0)
        except subprocess.TimeoutExpired:
            self.proc.terminate()
            try:
                self.proc.wait(timeout=1.0)
            except subprocess.TimeoutExpired:
                self.proc.kill()
                self.proc.wait()
        except OSError:
            # Pipe already gone; the process exited on its own
            logger.debug("uci engine pipe closed before quit", exc_info=True)
        finally:
            self.proc = None
