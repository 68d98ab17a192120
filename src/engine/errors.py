from __future__ import annotations


class ChessError(ValueError):
    """Base for every recoverable condition raised by the rules core.

    Subclasses ``ValueError`` so callers catching ``ValueError`` for bad input
    keep working.
    """


class IllegalMove(ChessError):
    """Origin empty, wrong side's piece, or destination not legal."""


class TerminalGame(ChessError):
    """A move was attempted after checkmate or stalemate."""


class HistoryExhausted(ChessError):
    """Undo or redo requested with too few recorded snapshots."""


class MoveInFlight(ChessError):
    """A move was attempted while another request holds the game."""


class ExternalEngineDesync(ChessError):
    """The suggestion engine failed or returned an unusable move."""


class SyncAdoptionConflict(ChessError):
    """A remote snapshot arrived while a local move was being committed."""


class NotYourTurn(ChessError):
    """A seated player tried to move while it is the other side's turn."""
