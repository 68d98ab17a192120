from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from .error import install_error_handlers
from .logging_middleware import RequestIDLoggingMiddleware
from .session import InMemorySessionStore
from ..session import GameSession
from ..sync.adapter import SyncAdapter
from ..sync.store import InMemorySyncStore
from ..uci.adapter import EngineFactory, SuggestionAdapter
from ..uci.engine import MAX_LEVEL, MIN_LEVEL, UCIProcessEngine
from ...config import Settings
from ...engine.errors import ChessError
from ...engine.game import Game
from ...engine.move import parse_uci, square_to_str, str_to_square
from ...engine.perft import perft as perft_nodes
from ...engine.pieces import Color
from ...engine.state import GameState as CoreState


logger = logging.getLogger(__name__)


class CreateGameResponse(BaseModel):
    game_id: str
    fen: str


class SetPositionRequest(BaseModel):
    fen: str = Field(..., description="FEN string")


class MoveRequest(BaseModel):
    move: str = Field(..., description="UCI move string, e.g., e2e4 or e7e8n")
    seat: Optional[Color] = Field(default=None, description="Side the caller plays, if seated")


class StepRequest(BaseModel):
    count: int = Field(default=1, ge=1, le=1024)


class SuggestRequest(BaseModel):
    level: Optional[int] = Field(default=None, ge=MIN_LEVEL, le=MAX_LEVEL)
    apply: bool = False


class AdoptRequest(BaseModel):
    record: Dict[str, Any]


class PerftRequest(BaseModel):
    fen: str
    depth: int = Field(default=1, ge=0, le=5)


class GameState(BaseModel):
    game_id: str
    fen: str
    board: list[str]
    side_to_move: str
    legal_moves: list[str]
    selected: Optional[str]
    legal_targets: list[str]
    in_check: bool
    check_square: Optional[str]
    checkmate: bool
    stalemate: bool
    outcome: str
    winner: Optional[str]
    last_move: Optional[str]
    move_history: list[str]
    captured: Dict[str, list[str]]
    can_undo: int
    can_redo: int
    mode: str


class SuggestResponse(BaseModel):
    move: Optional[str]
    source: Optional[str]
    state: Optional[GameState] = None


def create_app(
    settings: Optional[Settings] = None,
    engine_factory: Optional[EngineFactory] = None,
    sync_store: Optional[InMemorySyncStore] = None,
) -> FastAPI:
    settings = settings or Settings.from_env()

    # Basic logging setup
    logging.basicConfig(level=settings.log_level)

    if engine_factory is None and settings.uci_engine:
        path, timeout = settings.uci_engine, settings.uci_timeout_s

        def engine_factory() -> UCIProcessEngine:
            return UCIProcessEngine(path, timeout_s=timeout)

    if sync_store is None and settings.sync_enabled:
        sync_store = InMemorySyncStore()

    # In-memory session store for games
    store = InMemorySessionStore()

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        yield
        store.close_all()

    app = FastAPI(title="Chess Rules API", version="0.1.0", lifespan=lifespan)
    app.state.sessions = store
    app.state.sync_store = sync_store

    # Middleware & error handling
    app.add_middleware(RequestIDLoggingMiddleware)
    install_error_handlers(app)

    def _open_session(game: Game) -> str:
        game_id = store.new_id()
        session = GameSession(game, SuggestionAdapter(engine_factory, settings.default_level))
        if sync_store is not None:
            sync = SyncAdapter(sync_store, game_id, f"server:{game_id}", lambda: session.game)
            session.attach_sync(sync)
            sync.publish()
        store.add(game_id, session)
        logger.info("game created", extra={"game_id": game_id})
        return game_id

    @app.get("/healthz")
    async def healthz() -> Dict[str, str]:
        return {"status": "ok"}

    @app.post("/api/games", response_model=CreateGameResponse)
    async def create_game() -> CreateGameResponse:
        game_id = _open_session(Game.new())
        session = _require_session(store, game_id)
        return CreateGameResponse(game_id=game_id, fen=session.game.to_fen())

    @app.delete("/api/games/{game_id}")
    async def delete_game(game_id: str) -> Dict[str, str]:
        _require_session(store, game_id)
        store.delete(game_id)
        return {"status": "deleted"}

    @app.get("/api/games/{game_id}/state", response_model=GameState)
    async def get_state(game_id: str, square: Optional[str] = None) -> GameState:
        session = _require_session(store, game_id)
        selected = None
        if square is not None:
            try:
                selected = str_to_square(square)
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))
        return _state_response(game_id, session, selected)

    @app.post("/api/games/{game_id}/position", response_model=GameState)
    async def set_position(game_id: str, req: SetPositionRequest) -> GameState:
        session = _require_session(store, game_id)
        try:
            session.set_position(req.fen)
        except ChessError:
            raise
        except ValueError:
            raise HTTPException(status_code=400, detail="invalid FEN")
        return _state_response(game_id, session)

    @app.post("/api/games/{game_id}/move", response_model=GameState)
    async def make_move(game_id: str, req: MoveRequest) -> GameState:
        session = _require_session(store, game_id)
        try:
            move = parse_uci(req.move)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        session.apply_move(move, seat=req.seat)
        return _state_response(game_id, session)

    @app.post("/api/games/{game_id}/undo", response_model=GameState)
    async def undo(game_id: str, req: Optional[StepRequest] = None) -> GameState:
        session = _require_session(store, game_id)
        session.undo((req or StepRequest()).count)
        return _state_response(game_id, session)

    @app.post("/api/games/{game_id}/redo", response_model=GameState)
    async def redo(game_id: str, req: Optional[StepRequest] = None) -> GameState:
        session = _require_session(store, game_id)
        session.redo((req or StepRequest()).count)
        return _state_response(game_id, session)

    @app.post("/api/games/{game_id}/suggest", response_model=SuggestResponse)
    def suggest(game_id: str, req: Optional[SuggestRequest] = None) -> SuggestResponse:
        session = _require_session(store, game_id)
        req = req or SuggestRequest()
        result = session.suggest(level=req.level, apply=req.apply)
        return SuggestResponse(
            move=result.move.to_uci() if result else None,
            source=result.source if result else None,
            state=_state_response(game_id, session) if req.apply else None,
        )

    @app.get("/api/games/{game_id}/record")
    async def get_record(game_id: str, history: bool = False) -> Dict[str, Any]:
        session = _require_session(store, game_id)
        return session.game.to_record(include_history=history)

    @app.post("/api/games/{game_id}/adopt", response_model=GameState)
    async def adopt(game_id: str, req: AdoptRequest) -> GameState:
        session = _require_session(store, game_id)
        try:
            session.adopt(req.record)
        except ChessError:
            raise
        except ValueError as e:
            raise HTTPException(status_code=400, detail=f"invalid record: {e}")
        return _state_response(game_id, session)

    @app.post("/api/perft")
    async def perft(req: PerftRequest) -> Dict[str, Any]:
        try:
            state = CoreState.from_fen(req.fen)
        except ValueError:
            raise HTTPException(status_code=400, detail="invalid FEN")
        return {"nodes": perft_nodes(state, req.depth)}

    return app


def _require_session(store: InMemorySessionStore, game_id: str) -> GameSession:
    session = store.get(game_id)
    if session is None:
        raise HTTPException(status_code=404, detail="game not found")
    return session


def _state_response(
    game_id: str, session: GameSession, selected: Optional[int] = None
) -> GameState:
    game = session.game
    view = game.view(selected)
    state = game.state
    history: List[str] = game.move_history_uci()
    return GameState(
        game_id=game_id,
        fen=game.to_fen(),
        board=[p.symbol if p is not None else "" for p in view.board],
        side_to_move=view.side_to_move.value,
        legal_moves=[m.to_uci() for m in game.legal_moves()],
        selected=square_to_str(selected) if selected is not None else None,
        legal_targets=[square_to_str(t) for t in sorted(view.legal_targets)],
        in_check=view.check_square is not None,
        check_square=square_to_str(view.check_square) if view.check_square is not None else None,
        checkmate=game.checkmate(),
        stalemate=game.stalemate(),
        outcome=view.outcome.value,
        winner=view.winner.value if view.winner is not None else None,
        last_move=history[-1] if history else None,
        move_history=history,
        captured={c.value: [p.symbol for p in state.captured[c]] for c in Color},
        can_undo=game.history.undo_depth,
        can_redo=game.history.redo_depth,
        mode=session.mode.value,
    )


# Default app for non-factory servers
app = create_app()
