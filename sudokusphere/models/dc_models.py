from pydantic import BaseModel, Field, StringConstraints
from enum import Enum
from uuid import UUID
from datetime import datetime
from typing import Annotated, Optional, Dict, List


class Difficulty(str, Enum):
    easy = "Easy"
    medium = "Medium"
    hard = "Hard"
    very_hard = "Very Hard"
    impossible = "Impossible"


class GameMode(str, Enum):
    solo = "Solo"
    coop = "Co-op"  # players share one board
    versus = "Versus"  # each player races on a private copy


class GameStatus(str, Enum):
    waiting = "waiting"
    active = "active"
    finished = "finished"


PlayerId = Annotated[str, StringConstraints(strip_whitespace=True, min_length=5, max_length=50)]


class CreateGameModel(BaseModel):
    difficulty: Difficulty
    mode: GameMode
    player_id: PlayerId


class JoinGameModel(BaseModel):
    game_id: UUID
    player_id: PlayerId


class PlayerActionModel(BaseModel):
    player_id: PlayerId


class MoveModel(BaseModel):
    player_id: PlayerId
    row: int = Field(ge=0, le=8)
    col: int = Field(ge=0, le=8)
    value: Optional[int] = Field(default=None, ge=1, le=9)  # None erases the cell
    is_note: bool = False


class CellModel(BaseModel):
    row: int
    col: int

    class Config:
        from_attributes = True


class PlayerStateModel(BaseModel):
    player_id: str
    board: str
    notes: List[List[List[int]]]
    errors: int
    elapsed_seconds: float
    hints: int
    error_cells: List[CellModel]


class GameStateModel(BaseModel):
    """Player-facing view of a game. It never carries the solution."""

    game_id: UUID
    puzzle: str
    difficulty: Difficulty
    mode: GameMode
    status: GameStatus
    players: Dict[str, PlayerStateModel]
    max_players: int
    winner: str | None
    created_at: datetime
    started_at: datetime | None
    expires_at: datetime


class GameSummaryModel(BaseModel):
    game_id: UUID
    difficulty: Difficulty
    mode: GameMode
    status: GameStatus
    player_count: int
    max_players: int


class MoveResultModel(BaseModel):
    is_valid: bool
    is_complete: bool
    winner: str | None = None


class MoveResponseModel(BaseModel):
    game_state: GameStateModel
    move_result: MoveResultModel


class HintResultModel(BaseModel):
    row: int
    col: int
    value: int
    hints_remaining: int
    is_complete: bool
    winner: str | None = None


class HintResponseModel(BaseModel):
    game_state: GameStateModel
    hint: HintResultModel


class HealthModel(BaseModel):
    status: str
    redis: str
