import logging
from contextlib import asynccontextmanager
from datetime import timedelta

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi import FastAPI
from redis.asyncio import Redis

from sudokusphere.create_postgres_engine import engine
from sudokusphere.db import Session
from sudokusphere.load_secrets import (
    cleanup_interval_minutes,
    log_level,
    redis_url,
    session_expiration_hours,
)
from sudokusphere.routers import game, restapi
from sudokusphere.services.game_service import GameService
from sudokusphere.services.rate_limiter import RateLimiter
from sudokusphere.services.record_store import GameRecordStore
from sudokusphere.services.session_store import SessionStore
from sudokusphere.session_lock_manager import SessionLockManager

logging.basicConfig(level=log_level)
logging.getLogger("aiosqlite").setLevel(logging.WARNING)
logging.getLogger("apscheduler").setLevel(logging.WARNING)

scheduler = AsyncIOScheduler()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Connect the stores and start the cleanup job.
    This function is called to start the server.
    """
    redis = Redis.from_url(redis_url, decode_responses=True, health_check_interval=30)
    record_store = GameRecordStore(Session, engine)
    try:
        await record_store.create_table()
    except Exception as e:
        logging.error(f"Failed to create game record table: {e}")

    app.state.redis = redis
    app.state.rate_limiter = RateLimiter(redis)
    app.state.game_service = GameService(
        SessionStore(redis),
        record_store=record_store,
        lock_manager=SessionLockManager(),
        session_ttl=timedelta(hours=session_expiration_hours),
    )

    # Drop lobby and player entries whose game has expired
    scheduler.add_job(
        app.state.game_service.reconcile,
        "interval",
        minutes=cleanup_interval_minutes,
    )
    scheduler.start()
    logging.info("Start Server")
    try:
        yield
    finally:
        scheduler.shutdown()
        await redis.aclose()
        await engine.dispose()
        logging.info("Stop Server")


app = FastAPI(lifespan=lifespan)
app.include_router(game.game_router)
app.include_router(restapi.rest_router)


# if __name__ == "__main__":
#     uvicorn.run(app, host="0.0.0.0", port=8080)
