from __future__ import annotations

import logging
from typing import Dict, Optional

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, Field

from .error import (
    exception_handler,
    http_exception_handler,
    illegal_move_exception_handler,
    notation_exception_handler,
    request_validation_exception_handler,
)
from .logging_middleware import RequestIDLoggingMiddleware
from ...config import Settings, load_settings
from ...engine.board import STARTPOS_FEN
from ...engine.errors import IllegalMoveError, NotationError
from ...engine.game import Game
from ...engine.move import parse_uci
from ...engine.perft import perft as perft_nodes
from .session import InMemorySessionStore


logger = logging.getLogger(__name__)

MAX_PERFT_DEPTH = 3


class CreateGameResponse(BaseModel):
    game_id: str
    fen: str


class SetPositionRequest(BaseModel):
    fen: str = Field(..., description="FEN string")


class MoveRequest(BaseModel):
    move: str = Field(..., description="UCI move string, e.g., e2e4")


class PerftRequest(BaseModel):
    fen: str = Field(default=STARTPOS_FEN, description="FEN string")
    depth: int = Field(default=1, ge=0, le=MAX_PERFT_DEPTH)


class PerftResponse(BaseModel):
    fen: str
    depth: int
    nodes: int


class GameState(BaseModel):
    game_id: str
    fen: str
    board: str
    side_to_move: str
    legal_moves: list[str]
    in_check: bool
    checkmate: bool
    insufficient_material: bool
    last_move: Optional[str]
    move_history: list[str]


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or load_settings()
    app = FastAPI(title="bitchess API", version="0.1.0")
    app.state.settings = settings

    # Basic logging setup
    logging.basicConfig(level=settings.log_level)

    # Middleware & error handling
    app.add_middleware(RequestIDLoggingMiddleware)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
    app.add_exception_handler(IllegalMoveError, illegal_move_exception_handler)
    app.add_exception_handler(NotationError, notation_exception_handler)
    app.add_exception_handler(Exception, exception_handler)

    # In-memory session store for games
    store = InMemorySessionStore()

    @app.get("/healthz")
    async def healthz() -> Dict[str, str]:
        return {"status": "ok"}

    @app.post("/api/games", response_model=CreateGameResponse)
    async def create_game() -> CreateGameResponse:
        game_id = store.create(Game.new())
        game = _require_game(store, game_id)
        logger.info("game created", extra={"game_id": game_id})
        return CreateGameResponse(game_id=game_id, fen=game.to_fen())

    @app.get("/api/games/{game_id}/state", response_model=GameState)
    async def get_state(game_id: str) -> GameState:
        return _game_state(game_id, _require_game(store, game_id))

    @app.post("/api/games/{game_id}/position", response_model=GameState)
    async def set_position(game_id: str, req: SetPositionRequest) -> GameState:
        _require_game(store, game_id)
        try:
            game = Game.from_fen(req.fen)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=f"invalid FEN: {e}")
        store.set(game_id, game)
        return _game_state(game_id, game)

    @app.post("/api/games/{game_id}/move", response_model=GameState)
    async def make_move(game_id: str, req: MoveRequest) -> GameState:
        game = _require_game(store, game_id)
        # NotationError and IllegalMoveError map to 400 through their handlers
        move = parse_uci(req.move, game.side_to_move)
        game.apply_move(move)
        logger.debug("move applied", extra={"game_id": game_id, "move": move.to_uci()})
        return _game_state(game_id, game)

    # Plain def: FastAPI runs the CPU-bound count in its threadpool
    @app.post("/api/perft", response_model=PerftResponse)
    def perft(req: PerftRequest) -> PerftResponse:
        try:
            game = Game.from_fen(req.fen)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=f"invalid FEN: {e}")
        nodes = perft_nodes(game.board, req.depth)
        return PerftResponse(fen=game.to_fen(), depth=req.depth, nodes=nodes)

    return app


def _require_game(store: InMemorySessionStore, game_id: str) -> Game:
    game = store.get(game_id)
    if game is None:
        raise HTTPException(status_code=404, detail="game not found")
    return game


def _game_state(game_id: str, game: Game) -> GameState:
    last = game.last_move()
    return GameState(
        game_id=game_id,
        fen=game.to_fen(),
        board=game.board.render(),
        side_to_move=game.side_to_move.name.lower(),
        legal_moves=[m.to_uci() for m in game.legal_moves()],
        in_check=game.in_check(),
        checkmate=game.checkmate(),
        insufficient_material=game.insufficient_material(),
        last_move=last.to_uci() if last else None,
        move_history=game.move_history_uci(),
    )


# Default app for non-factory servers
app = create_app()
