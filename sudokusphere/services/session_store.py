"""Redis gateway for live games.

Three kinds of keys, each with its own expiry:

- ``game:{game_id}``: the full ``GameSessionSchema`` as JSON (primary record)
- ``active_games:{game_id}``: ``ActiveGameSchema`` for the lobby listing
- ``player_session:{player_id}``: id of the game the player is in

Redis evicts each key on its own, so an index can outlive its game.
``reconcile`` drops such orphans.
"""

import logging
from datetime import datetime
from typing import List
from uuid import UUID

from pydantic import ValidationError as SchemaValidationError
from redis.asyncio import Redis
from redis.exceptions import RedisError, WatchError

from sudokusphere.errors import InternalError
from sudokusphere.models.schema_models import ActiveGameSchema, GameSessionSchema

GAME_KEY_PREFIX = "game:"
ACTIVE_GAME_KEY_PREFIX = "active_games:"
PLAYER_SESSION_KEY_PREFIX = "player_session:"
UPDATE_CHANNEL_PREFIX = "game_updates:"


def game_key(game_id: UUID | str) -> str:
    return f"{GAME_KEY_PREFIX}{game_id}"


def active_game_key(game_id: UUID | str) -> str:
    return f"{ACTIVE_GAME_KEY_PREFIX}{game_id}"


def player_session_key(player_id: str) -> str:
    return f"{PLAYER_SESSION_KEY_PREFIX}{player_id}"


def update_channel(game_id: UUID | str) -> str:
    return f"{UPDATE_CHANNEL_PREFIX}{game_id}"


def remaining_ttl_seconds(expires_at: datetime, now: datetime) -> int:
    """Seconds until ``expires_at``, at least 1 so that SETEX accepts it."""
    return max(1, int((expires_at - now).total_seconds()))


class SessionStore:
    def __init__(self, redis: Redis):
        self.redis: Redis = redis

    async def save_game(self, game: GameSessionSchema, now: datetime) -> None:
        """Store the game until its ``expires_at``. Saving again never extends its lifetime."""
        ttl = remaining_ttl_seconds(game.expires_at, now)
        try:
            await self.redis.setex(game_key(game.game_id), ttl, game.model_dump_json())
        except RedisError as e:
            logging.error(f"Failed to save game {game.game_id}: {e}")
            raise InternalError("store_unavailable", "The session store is unavailable.") from e

    async def load_game(self, game_id: UUID) -> GameSessionSchema | None:
        """Load a game, None if it never existed or has been evicted."""
        try:
            data = await self.redis.get(game_key(game_id))
        except RedisError as e:
            logging.error(f"Failed to load game {game_id}: {e}")
            raise InternalError("store_unavailable", "The session store is unavailable.") from e

        if data is None:
            return None
        try:
            return GameSessionSchema.model_validate_json(data)
        except SchemaValidationError as e:
            logging.error(f"Failed to parse game {game_id}: {e}")
            return None

    async def add_active_game(self, active_game: ActiveGameSchema, ttl: int) -> None:
        try:
            await self.redis.setex(
                active_game_key(active_game.game_id), ttl, active_game.model_dump_json()
            )
        except RedisError as e:
            logging.error(f"Failed to index game {active_game.game_id}: {e}")
            raise InternalError("store_unavailable", "The session store is unavailable.") from e

    async def remove_active_game(self, game_id: UUID) -> None:
        try:
            await self.redis.delete(active_game_key(game_id))
        except RedisError as e:
            logging.error(f"Failed to remove game {game_id} from the index: {e}")
            raise InternalError("store_unavailable", "The session store is unavailable.") from e

    async def list_active_games(self) -> List[ActiveGameSchema]:
        active_games: List[ActiveGameSchema] = []
        try:
            async for key in self.redis.scan_iter(match=f"{ACTIVE_GAME_KEY_PREFIX}*"):
                data = await self.redis.get(key)
                if data is None:
                    continue
                try:
                    active_games.append(ActiveGameSchema.model_validate_json(data))
                except SchemaValidationError as e:
                    logging.error(f"Failed to parse active game info {key}: {e}")
        except RedisError as e:
            logging.error(f"Failed to list active games: {e}")
            raise InternalError("store_unavailable", "The session store is unavailable.") from e
        return sorted(active_games, key=lambda game: game.created_at)

    async def set_player_session(self, player_id: str, game_id: UUID, ttl: int) -> None:
        try:
            await self.redis.setex(player_session_key(player_id), ttl, str(game_id))
        except RedisError as e:
            logging.error(f"Failed to set player session for {player_id}: {e}")
            raise InternalError("store_unavailable", "The session store is unavailable.") from e

    async def get_player_session(self, player_id: str) -> str | None:
        try:
            return await self.redis.get(player_session_key(player_id))
        except RedisError as e:
            logging.error(f"Failed to read player session for {player_id}: {e}")
            raise InternalError("store_unavailable", "The session store is unavailable.") from e

    async def remove_player_session(self, player_id: str, game_id: UUID) -> bool:
        """Delete the player's pointer only while it still points at ``game_id``.

        The compare and the delete run under WATCH/MULTI, so a pointer moved to
        another game in between is left alone.

        Returns:
            bool: True if the pointer was deleted
        """
        key = player_session_key(player_id)
        try:
            async with self.redis.pipeline(transaction=True) as pipe:
                await pipe.watch(key)
                if await pipe.get(key) != str(game_id):
                    await pipe.unwatch()
                    return False
                pipe.multi()
                pipe.delete(key)
                await pipe.execute()
                return True
        except WatchError:
            logging.info(f"Player session for {player_id} changed, keeping it")
            return False
        except RedisError as e:
            logging.error(f"Failed to remove player session for {player_id}: {e}")
            raise InternalError("store_unavailable", "The session store is unavailable.") from e

    async def publish_update(self, game_id: UUID) -> None:
        """Tell subscribers of the game channel that a new state is stored."""
        await self.redis.publish(update_channel(game_id), str(game_id))

    async def reconcile(self) -> int:
        """Drop index entries whose game record has disappeared.

        A GET that returns no value is the eviction signal; nothing else is
        treated as "missing". Running the sweep twice is harmless.

        Returns:
            int: Number of index keys removed
        """
        cleaned = 0
        async for key in self.redis.scan_iter(match=f"{ACTIVE_GAME_KEY_PREFIX}*"):
            game_id = key[len(ACTIVE_GAME_KEY_PREFIX):]
            if await self.redis.get(game_key(game_id)) is None:
                cleaned += await self.redis.delete(key)

        async for key in self.redis.scan_iter(match=f"{PLAYER_SESSION_KEY_PREFIX}*"):
            game_id = await self.redis.get(key)
            if game_id is None:
                continue
            if await self.redis.get(game_key(game_id)) is None:
                cleaned += await self.redis.delete(key)
        return cleaned

    async def health_check(self) -> bool:
        try:
            return bool(await self.redis.ping())
        except RedisError as e:
            logging.error(f"Redis health check failed: {e}")
            return False
