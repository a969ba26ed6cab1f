from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from sudokusphere.create_postgres_engine import engine

# Centralized session factory for the game record archive.
Session = async_sessionmaker(
    autocommit=False,
    class_=AsyncSession,
    autoflush=True,
    bind=engine,
)
