from datetime import datetime, timedelta
from typing import List
from uuid import UUID

import fakeredis
import pytest

from sudokusphere.domain import session_machine
from sudokusphere.domain.board import decode_board
from sudokusphere.models.dc_models import Difficulty, GameMode
from sudokusphere.models.schema_models import GameRecordSchema, GameSessionSchema

SOLUTION = "534678912672195348198342567859761423426853791713924856961537284287419635345286179"
PUZZLE = "53..7....6..195....98....6.8...6...34..8.3..17...2...6.6....28....419..5....8..79"

GAME_ID = UUID("01890a5d-ac96-774b-bcce-b302099a8057")
NOW = datetime(2026, 1, 1, 12, 0, 0)


def fixed_puzzle_factory(difficulty: Difficulty):
    return decode_board(PUZZLE), decode_board(SOLUTION)


def make_game(mode: GameMode = GameMode.solo, creator_id: str = "alice", now: datetime = NOW) -> GameSessionSchema:
    puzzle, solution = fixed_puzzle_factory(Difficulty.easy)
    return session_machine.create_game(
        GAME_ID, Difficulty.easy, mode, creator_id, puzzle, solution, now, timedelta(hours=24)
    )


class FakeRecordStore:
    def __init__(self):
        self.records: List[GameRecordSchema] = []

    async def save(self, record: GameRecordSchema) -> None:
        self.records.append(record)


class FailingRecordStore:
    def __init__(self):
        self.calls = 0

    async def save(self, record: GameRecordSchema) -> None:
        self.calls += 1
        raise RuntimeError("database is down")


class FakeClock:
    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def redis_server():
    return fakeredis.FakeServer()


@pytest.fixture
def redis(redis_server):
    return fakeredis.FakeAsyncRedis(server=redis_server, decode_responses=True)


@pytest.fixture
def clock():
    return FakeClock()
