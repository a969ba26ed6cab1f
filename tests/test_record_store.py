import asyncio
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from conftest import GAME_ID, NOW, make_game
from sudokusphere.converter import DataConverter
from sudokusphere.domain import session_machine
from sudokusphere.services.record_store import GameRecordStore

data_converter = DataConverter()


def build_record_store() -> GameRecordStore:
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Session = async_sessionmaker(autocommit=False, class_=AsyncSession, autoflush=True, bind=engine)
    return GameRecordStore(Session, engine)


def test_record_is_stored_and_read_back():
    game = make_game()
    for row, col in [(0, 2), (0, 3), (0, 5)]:
        session_machine.apply_move(game, "alice", row, col, 1, False, NOW)
    record = data_converter.convert_gamesession_to_gamerecordschema(game, NOW)

    async def scenario():
        record_store = build_record_store()
        await record_store.create_table()
        await record_store.save(record)
        # saving the same game twice overwrites the first record
        await record_store.save(record)
        stored = await record_store.read(GAME_ID)
        missing = await record_store.read(UUID(int=0))
        await record_store.engine.dispose()
        return stored, missing

    stored, missing = asyncio.run(scenario())
    assert missing is None
    assert stored.game_id == GAME_ID
    assert stored.players == ["alice"]
    assert stored.difficulty == "Easy"
    assert stored.mode == "Solo"
    assert stored.winner is None
    assert stored.total_errors == 3
    assert stored.total_hints == 0
    assert not stored.is_completed


def test_record_counts_hints_used():
    game = make_game()
    session_machine.use_hint(game, "alice", NOW)
    session_machine.use_hint(game, "alice", NOW)
    record = data_converter.convert_gamesession_to_gamerecordschema(game, NOW)
    assert record.total_hints == 2
    assert not record.is_completed
