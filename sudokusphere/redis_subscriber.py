import json
import logging
from typing import AsyncGenerator
from uuid import UUID

from redis.asyncio import Redis

from sudokusphere.errors import NotFoundError
from sudokusphere.models.dc_models import GameStateModel, GameStatus
from sudokusphere.services.game_service import GameService
from sudokusphere.services.session_store import update_channel

HEART_BEAT = 15


class RedisSubscriber:
    """Redis subscriber class to handle SSE events."""

    def __init__(self, game_service: GameService, game_id: UUID, player_id: str):
        """Initialize RedisSubscriber with the game service, game_id and player_id."""
        self.game_service: GameService = game_service
        self.game_id: UUID = game_id
        self.player_id: str = player_id

    def format_state(self, game_state: GameStateModel) -> str:
        payload = json.dumps(game_state.model_dump(mode="json"))
        logging.debug(f"Payload: {payload}")
        return f"event: latest_state_update\ndata: {payload}\n\n"

    async def event_generator(self, redis: Redis) -> AsyncGenerator[str, None]:
        """Event generator to handle SSE events.

        Sends the player's current view first, then a fresh view each time an
        update is published on the game's channel. Stops once the game is
        finished or gone.

        Args:
            redis (Redis): Redis connection object.
        """
        channel = update_channel(self.game_id)
        pubsub = redis.pubsub()
        # 購読してから最初の状態を読むことで、その間の更新を取りこぼさない
        await pubsub.subscribe(channel)
        try:
            game_state = await self.game_service.get_state(self.game_id, self.player_id)
            yield self.format_state(game_state)
            if game_state.status == GameStatus.finished:
                return

            while True:
                msg = await pubsub.get_message(ignore_subscribe_messages=True, timeout=HEART_BEAT)
                if msg is None:
                    yield ": heartbeat\n\n"
                    continue
                if msg["type"] != "message":
                    continue

                try:
                    game_state = await self.game_service.get_state(self.game_id, self.player_id)
                except NotFoundError:
                    logging.info(f"Game {self.game_id} is gone, closing stream")
                    yield 'event: game_closed\ndata: {"reason": "game_not_found"}\n\n'
                    return
                yield self.format_state(game_state)
                if game_state.status == GameStatus.finished:
                    return
        finally:
            logging.info("Unsubscribing from channel")
            await pubsub.unsubscribe(channel)
            await pubsub.aclose()
