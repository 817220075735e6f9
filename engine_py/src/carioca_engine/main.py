"""FastAPI main application for the Carioca game backend"""

import logging
import os
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .engine import CariocaEngine
from .errors import GameError, MoveResult
from .repository import InMemoryHistoryRecorder, InMemorySessionRepository, JsonFileSessionRepository
from .schemas import (
    AddBotRequest,
    CreateGameRequest,
    CreateGameResponse,
    HostRequest,
    JoinGameRequest,
    JoinGameResponse,
    MoveRequest,
)
from .serialization import sanitize_state

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def create_engine(store_path: Optional[str] = None) -> CariocaEngine:
    """Build an engine backed by a JSON file when a path is configured, in memory otherwise."""
    store_path = store_path or os.getenv("CARIOCA_STORE")
    if store_path:
        store = JsonFileSessionRepository(store_path)
        logger.info(f"Using JSON session store at {store_path}")
        return CariocaEngine(repository=store, history=store)
    return CariocaEngine(repository=InMemorySessionRepository(), history=InMemoryHistoryRecorder())


app = FastAPI(title="Carioca Card Game API", version="1.0.0")
app.state.engine = create_engine()

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_engine() -> CariocaEngine:
    return app.state.engine


@app.exception_handler(GameError)
async def game_error_handler(request: Request, exc: GameError):
    return JSONResponse(
        status_code=exc.status,
        content={"success": False, "error": exc.message, "code": exc.code},
    )


def move_response(result: MoveResult) -> JSONResponse:
    status_code = 200 if result.success else result.status
    return JSONResponse(status_code=status_code, content=result.to_dict())


@app.get("/")
async def root():
    return {"message": "Carioca Card Game API", "version": "1.0.0"}


@app.get("/health")
async def health_check():
    return {"status": "healthy"}


@app.post("/games", response_model=CreateGameResponse)
def create_game(request: CreateGameRequest):
    game_id, player_id = get_engine().create_session(request.name)
    return CreateGameResponse(game_id=game_id, player_id=player_id)


@app.post("/games/{game_id}/join", response_model=JoinGameResponse)
def join_game(game_id: str, request: JoinGameRequest):
    return JoinGameResponse(player_id=get_engine().join_session(game_id, request.name))


@app.post("/games/{game_id}/bots")
def add_bot(game_id: str, request: AddBotRequest):
    bot_id = get_engine().add_bot(game_id, request.difficulty)
    return {"success": True, "player_id": bot_id}


@app.post("/games/{game_id}/start")
def start_game(game_id: str, request: HostRequest):
    state = get_engine().start_game(game_id, request.player_id)
    return {"success": True, "state": sanitize_state(state, request.player_id)}


@app.post("/games/{game_id}/move")
def make_move(game_id: str, request: MoveRequest):
    result = get_engine().process_move(game_id, request.player_id, request.action, request.payload)
    return move_response(result)


@app.post("/games/{game_id}/skip-bot-turn")
def skip_bot_turn(game_id: str, request: HostRequest):
    return move_response(get_engine().skip_bot_turn(game_id, request.player_id))


@app.post("/games/{game_id}/end")
def end_game(game_id: str, request: HostRequest):
    state = get_engine().end_game(game_id, request.player_id)
    return {"success": True, "gameStatus": state.status}


@app.get("/games/{game_id}/state")
def game_state(game_id: str, player_id: Optional[str] = None):
    return get_engine().get_player_view(game_id, player_id)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
