"""Historical record of finished games.

- The game service only depends on the ``HistoricalRecordStore`` protocol.
- ``GameRecordStore`` is the SQLAlchemy-backed implementation; it owns the
  session/transaction boundaries and calls the CRUD helpers.
"""

from typing import Protocol
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker

from sudokusphere.crud import CreateData, ReadData
from sudokusphere.models.schema_models import GameRecordSchema


class HistoricalRecordStore(Protocol):
    async def save(self, record: GameRecordSchema) -> None: ...


class GameRecordStore:
    def __init__(self, Session: async_sessionmaker, engine: AsyncEngine):
        self.Session: async_sessionmaker = Session
        self.engine: AsyncEngine = engine

    async def create_table(self) -> None:
        await CreateData.create_table(self.engine)

    async def save(self, record: GameRecordSchema) -> None:
        async with self.Session() as session:
            success = await CreateData.create_game_record(record, session)
            if not success:
                raise RuntimeError("Failed to create game record")

    async def read(self, game_id: UUID) -> GameRecordSchema | None:
        async with self.Session() as session:
            return await ReadData.read_game_record(game_id, session)
