from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession
from sqlalchemy.exc import IntegrityError
from sqlalchemy import select
from uuid import UUID
import logging

from sudokusphere.models.schema_models import GameRecordSchema
from sudokusphere.models.schemas import Base, GameRecord


class CreateData:
    @staticmethod
    async def create_table(engine: AsyncEngine) -> None:
        """Create table if not exists"""
        try:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except IntegrityError as e:
            logging.warning(f"Table already exists or other integrity error: {e}")

    @staticmethod
    async def create_game_record(record: GameRecordSchema, session: AsyncSession) -> bool:
        """Create the game record, or overwrite the one stored for the same game

        Args:
            record (GameRecordSchema): Summary of a finished game
            session (AsyncSession): AsyncSession object to interact with database

        Returns:
            bool: True if the record was committed
        """
        async with session:
            try:
                new_record = GameRecord(
                    game_id=record.game_id,
                    players=record.players,
                    difficulty=record.difficulty,
                    mode=record.mode,
                    completed_at=record.completed_at,
                    winner=record.winner,
                    duration=record.duration,
                    total_errors=record.total_errors,
                    total_hints=record.total_hints,
                    is_completed=record.is_completed,
                )
                await session.merge(new_record)
                await session.commit()
                return True
            except Exception as e:
                logging.error(f"Failed to create game record: {e}")
                await session.rollback()
                return False


class ReadData:
    @staticmethod
    async def read_game_record(game_id: UUID, session: AsyncSession) -> GameRecordSchema | None:
        """Read the record of a finished game

        Args:
            game_id (UUID): To identify the game

        Returns:
            GameRecordSchema | None: The stored record, None if the game was never archived
        """
        async with session:
            stmt = select(GameRecord).where(GameRecord.game_id == game_id)
            result = await session.execute(stmt)
            result = result.scalars().first()

            if result is None:
                return None
            return GameRecordSchema.model_validate(result)
