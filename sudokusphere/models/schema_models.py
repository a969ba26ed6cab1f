from pydantic import BaseModel
from typing import Dict, List
from uuid import UUID
from datetime import datetime

from sudokusphere.models.dc_models import Difficulty, GameMode, GameStatus


class CellSchema(BaseModel):
    row: int
    col: int


class PlayerSessionSchema(BaseModel):
    player_id: str
    board: str  # 81-character encoding
    notes: str  # JSON encoding of the candidate grid
    errors: int = 0
    elapsed_seconds: float = 0.0
    hints: int
    error_cells: List[CellSchema] = []


class GameSessionSchema(BaseModel):
    """Full game record as kept in the session store, solution included."""

    game_id: UUID
    puzzle: str
    solution: str
    difficulty: Difficulty
    mode: GameMode
    status: GameStatus
    players: Dict[str, PlayerSessionSchema]
    winner: str | None = None
    created_at: datetime
    started_at: datetime | None = None
    finished_at: datetime | None = None
    expires_at: datetime


class ActiveGameSchema(BaseModel):
    game_id: UUID
    difficulty: Difficulty
    mode: GameMode
    player_count: int
    max_players: int
    created_at: datetime


class GameRecordSchema(BaseModel):
    game_id: UUID
    players: List[str]
    difficulty: str
    mode: str
    completed_at: datetime
    winner: str | None
    duration: float
    total_errors: int
    total_hints: int
    is_completed: bool

    class Config:
        from_attributes = True


class RateLimitSchema(BaseModel):
    allowed: bool
    limit: int
    remaining: int
    reset_time: int  # epoch milliseconds at which the window closes
