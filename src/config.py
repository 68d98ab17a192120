from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() not in ("0", "false", "no", "off")


@dataclass(frozen=True)
class Settings:
    """Runtime settings, read from the environment.

    Attributes:
        log_level (str): Root logging level name.
        host (str): Bind address for the HTTP server.
        port (int): Bind port for the HTTP server.
        uci_engine (Optional[str]): Path to a UCI engine binary used for move
            suggestions. Unset means suggestions come from the fallback policy.
        uci_timeout_s (float): Seconds to wait for the engine to answer.
        default_level (int): Difficulty used when a request names none.
        sync_enabled (bool): Publish committed games to the sync store.
    """

    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000
    uci_engine: Optional[str] = None
    uci_timeout_s: float = 5.0
    default_level: int = 3
    sync_enabled: bool = True

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            log_level=os.getenv("CHESS_LOG_LEVEL", "INFO").upper(),
            host=os.getenv("CHESS_HOST", "0.0.0.0"),
            port=int(os.getenv("CHESS_PORT", "8000")),
            uci_engine=os.getenv("CHESS_UCI_ENGINE") or None,
            uci_timeout_s=float(os.getenv("CHESS_UCI_TIMEOUT_S", "5.0")),
            default_level=int(os.getenv("CHESS_DEFAULT_LEVEL", "3")),
            sync_enabled=_env_bool("CHESS_SYNC", True),
        )
