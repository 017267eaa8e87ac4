"""
FastAPI server for the Gambit chess engine.

Provides a REST API over in-memory games: a human plays through
select/move/promote, and the computer side moves on request.
"""

from __future__ import annotations
import logging
import uuid
from typing import Optional
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from gambit.core.board import Color
from gambit.core.game import ChessGame
from gambit.ai.player import ComputerPlayer

logger = logging.getLogger(__name__)

VERSION = "0.1.0"


# --- Pydantic Models ---

class CreateGameRequest(BaseModel):
    difficulty: int = Field(2, ge=1, le=3)
    computer_color: Optional[Color] = Color.BLACK  # None for hot-seat play
    seed: Optional[int] = None


class CreateGameResponse(BaseModel):
    game_id: str


class PieceModel(BaseModel):
    type: str
    color: str


class MoveModel(BaseModel):
    from_row: int
    from_col: int
    row: int
    col: int
    kind: str
    capture_row: Optional[int] = None
    capture_col: Optional[int] = None
    rook_from_col: Optional[int] = None
    rook_to_col: Optional[int] = None
    promotion: bool = False
    algebraic: Optional[str] = None


class GameStateResponse(BaseModel):
    game_id: str
    difficulty: int
    computer_color: Optional[str]
    board: list[list[Optional[PieceModel]]]
    current_player: str
    selected: Optional[list[int]]
    possible_moves: list[MoveModel]
    in_check: dict[str, bool]
    checkmate: bool
    stalemate: bool
    draw: bool
    draw_reason: Optional[str]
    game_over: bool
    status: str
    winner: Optional[str]
    promotion_pending: bool
    move_history: list[dict]
    captured_pieces: dict[str, list[PieceModel]]
    last_move: Optional[dict]
    move_list: str
    half_move_clock: int
    full_move_number: int


class SelectRequest(BaseModel):
    row: int = Field(ge=0, le=7)
    col: int = Field(ge=0, le=7)


class MakeMoveRequest(BaseModel):
    row: Optional[int] = Field(None, ge=0, le=7)
    col: Optional[int] = Field(None, ge=0, le=7)
    notation: Optional[str] = None  # e.g. "e2-e4"


class PromoteRequest(BaseModel):
    piece_type: str = "queen"


class AIMoveRequest(BaseModel):
    delay: float = Field(0.0, ge=0.0, le=5.0)


class AIMoveResponse(BaseModel):
    move: Optional[str]
    notation: Optional[str]
    source: Optional[str]
    score: Optional[float]
    depth: int
    nodes: int
    time_ms: int
    game_state: GameStateResponse


class DifficultyRequest(BaseModel):
    level: int = Field(ge=1, le=3)


class LegalMovesResponse(BaseModel):
    moves: list[MoveModel]


class HealthResponse(BaseModel):
    status: str
    version: str
    games: int


# --- Game Storage ---

class Session:
    """An active game plus its computer opponent."""

    def __init__(
        self,
        game_id: str,
        difficulty: int = 2,
        computer_color: Optional[Color] = Color.BLACK,
        seed: Optional[int] = None,
    ):
        self.game_id = game_id
        self.game = ChessGame()
        self.player = ComputerPlayer(self.game, difficulty=difficulty, seed=seed)
        self.computer_color = computer_color

    def to_response(self) -> GameStateResponse:
        """Convert to API response."""
        data = self.game.get_game_state()
        data["possible_moves"] = [move_model(m) for m in self.game.possible_moves()]
        return GameStateResponse(
            game_id=self.game_id,
            difficulty=self.player.difficulty,
            computer_color=self.computer_color.value if self.computer_color else None,
            **data,
        )


# Global game storage (memory only)
games: dict[str, Session] = {}


def get_session(game_id: str) -> Session:
    if game_id not in games:
        raise HTTPException(status_code=404, detail="Game not found")
    return games[game_id]


def require_active(session: Session) -> ChessGame:
    game = session.game
    if game.game_over:
        raise HTTPException(status_code=409, detail="Game already finished")
    return game


def move_model(move) -> MoveModel:
    return MoveModel(algebraic=move.to_algebraic(), **move.to_dict())


# --- App Setup ---

@asynccontextmanager
async def lifespan(app: FastAPI):
    """App lifespan handler."""
    logger.info("Gambit engine %s starting", VERSION)
    yield
    games.clear()


app = FastAPI(
    title="Gambit Chess Engine",
    description="Chess rules engine and computer opponent",
    version=VERSION,
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- REST Endpoints ---

@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return HealthResponse(status="ok", version=VERSION, games=len(games))


@app.post("/games", response_model=CreateGameResponse)
async def create_game(request: Optional[CreateGameRequest] = None):
    """Create a new game."""
    if request is None:
        request = CreateGameRequest()

    game_id = str(uuid.uuid4())[:8]
    games[game_id] = Session(
        game_id=game_id,
        difficulty=request.difficulty,
        computer_color=request.computer_color,
        seed=request.seed,
    )
    logger.info("Created game %s (difficulty %d)", game_id, request.difficulty)
    return CreateGameResponse(game_id=game_id)


@app.get("/games/{game_id}", response_model=GameStateResponse)
async def get_game(game_id: str):
    """Get current game state."""
    return get_session(game_id).to_response()


@app.post("/games/{game_id}/select", response_model=GameStateResponse)
async def select_piece(game_id: str, request: SelectRequest):
    """Select a piece of the side to move."""
    session = get_session(game_id)
    game = require_active(session)

    if not game.select_piece(request.row, request.col):
        raise HTTPException(status_code=400, detail="Cannot select that square")
    return session.to_response()


@app.get("/games/{game_id}/moves", response_model=LegalMovesResponse)
async def get_legal_moves(game_id: str):
    """All legal moves for the side to move."""
    game = get_session(game_id).game
    return LegalMovesResponse(moves=[move_model(m) for m in game.legal_moves()])


@app.post("/games/{game_id}/move", response_model=GameStateResponse)
async def make_move(game_id: str, request: MakeMoveRequest):
    """Move the selected piece to (row, col), or play a move in 'e2-e4' notation."""
    session = get_session(game_id)
    game = require_active(session)

    if request.notation is not None:
        record = game.play_move(request.notation)
    elif request.row is not None and request.col is not None:
        record = game.move_piece(request.row, request.col)
    else:
        raise HTTPException(status_code=400, detail="Provide either 'notation' or 'row' and 'col'")

    if record is None:
        raise HTTPException(status_code=400, detail="Invalid move")
    return session.to_response()


@app.post("/games/{game_id}/promote", response_model=GameStateResponse)
async def promote_pawn(game_id: str, request: PromoteRequest):
    """Finish a pending pawn promotion."""
    session = get_session(game_id)
    game = require_active(session)

    if not game.promote_pawn(request.piece_type):
        raise HTTPException(status_code=400, detail="No promotion pending or invalid piece type")
    return session.to_response()


@app.post("/games/{game_id}/ai", response_model=AIMoveResponse)
async def get_ai_move(game_id: str, request: Optional[AIMoveRequest] = None):
    """Get the computer to calculate and play a move for the side to move."""
    if request is None:
        request = AIMoveRequest()

    session = get_session(game_id)
    game = require_active(session)
    if game.promotion_pending:
        raise HTTPException(status_code=400, detail="Promotion pending")

    record = await session.player.compute_move_async(delay=request.delay)
    if record is None:
        raise HTTPException(status_code=400, detail="No legal move")

    result = session.player.last_result
    return AIMoveResponse(
        move=result.move.to_algebraic() if result and result.move else None,
        notation=record.notation,
        source=result.source if result else None,
        score=result.score if result else None,
        depth=result.depth if result else 0,
        nodes=result.nodes if result else 0,
        time_ms=int(result.elapsed_ms) if result else 0,
        game_state=session.to_response(),
    )


@app.post("/games/{game_id}/difficulty", response_model=GameStateResponse)
async def set_difficulty(game_id: str, request: DifficultyRequest):
    """Change the computer's difficulty."""
    session = get_session(game_id)
    try:
        session.player.set_difficulty(request.level)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return session.to_response()


@app.post("/games/{game_id}/undo", response_model=GameStateResponse)
async def undo_move(game_id: str):
    """Undo the last move."""
    session = get_session(game_id)

    if not session.game.undo_move():
        raise HTTPException(status_code=400, detail="Nothing to undo")
    return session.to_response()


# --- Entry Point ---

def run_server(host: str = "0.0.0.0", port: int = 8000):
    """Run the server."""
    import uvicorn
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    run_server()
