"""Game use cases: the only writer of live game state.

- Routers call this module; they never touch the session store directly.
- Every mutation runs load -> transition -> store while holding the game's
  lock, so concurrent requests for the same game cannot overwrite each other.
- Archiving a finished game is best-effort and never fails the response.
"""

import asyncio
import logging
import random
from datetime import datetime, timedelta
from typing import Callable, List
from uuid import UUID

import numpy as np
from redis.exceptions import RedisError
from uuid6 import uuid7

from sudokusphere.converter import DataConverter
from sudokusphere.domain import session_machine
from sudokusphere.domain.board import check_cell
from sudokusphere.domain.carver import generate_puzzle
from sudokusphere.domain.game_rules import SESSION_EXPIRATION_HOURS
from sudokusphere.errors import InternalError, NotFoundError, ValidationError
from sudokusphere.models.dc_models import (
    Difficulty,
    GameMode,
    GameStateModel,
    GameStatus,
    GameSummaryModel,
    HintResponseModel,
    MoveResponseModel,
)
from sudokusphere.models.schema_models import ActiveGameSchema, GameSessionSchema
from sudokusphere.services.record_store import HistoricalRecordStore
from sudokusphere.services.session_store import SessionStore, remaining_ttl_seconds
from sudokusphere.session_lock_manager import SessionLockManager

PLAYER_ID_MIN_LENGTH = 5
PLAYER_ID_MAX_LENGTH = 50

data_converter = DataConverter()


def check_player_id(player_id: str) -> None:
    if not isinstance(player_id, str) or not PLAYER_ID_MIN_LENGTH <= len(player_id) <= PLAYER_ID_MAX_LENGTH:
        raise ValidationError(
            "invalid_player_id", "Player ID must be a string of 5 to 50 characters."
        )


class GameService:
    def __init__(
        self,
        session_store: SessionStore,
        record_store: HistoricalRecordStore | None = None,
        lock_manager: SessionLockManager | None = None,
        session_ttl: timedelta = timedelta(hours=SESSION_EXPIRATION_HOURS),
        puzzle_factory: Callable[[Difficulty], tuple[np.ndarray, np.ndarray]] = generate_puzzle,
        rng: random.Random | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.session_store = session_store
        self.record_store = record_store
        self.lock_manager = lock_manager or SessionLockManager()
        self.session_ttl = session_ttl
        self.puzzle_factory = puzzle_factory
        self.rng = rng or random.Random()
        self.clock = clock

    async def _load(self, game_id: UUID, now: datetime) -> GameSessionSchema:
        game = await self.session_store.load_game(game_id)
        if game is None or session_machine.is_expired(game, now):
            raise NotFoundError(
                "game_not_found", "The requested game does not exist or has expired."
            )
        return game

    async def _index(self, game: GameSessionSchema, player_id: str, now: datetime) -> None:
        ttl = remaining_ttl_seconds(game.expires_at, now)
        await self.session_store.add_active_game(
            data_converter.convert_gamesession_to_activegameschema(game), ttl
        )
        await self.session_store.set_player_session(player_id, game.game_id, ttl)

    async def _publish(self, game_id: UUID) -> None:
        try:
            await self.session_store.publish_update(game_id)
        except RedisError as e:
            logging.error(f"Failed to publish update for game {game_id}: {e}")

    async def _close_finished_game(self, game: GameSessionSchema, now: datetime) -> None:
        """Archive a finished game and drop its lobby and player indices."""
        record = data_converter.convert_gamesession_to_gamerecordschema(game, now)
        if self.record_store is not None:
            try:
                await self.record_store.save(record)
            except Exception as e:
                logging.error(f"Failed to save game record for {game.game_id}: {e}")

        try:
            await self.session_store.remove_active_game(game.game_id)
            for player_id in game.players:
                await self.session_store.remove_player_session(player_id, game.game_id)
        except InternalError as e:
            logging.error(f"Failed to clean up indices for game {game.game_id}: {e}")

    async def create_game(
        self, difficulty: Difficulty, mode: GameMode, player_id: str
    ) -> GameSummaryModel:
        """Generate a puzzle and store a new game with ``player_id`` as its creator

        Args:
            difficulty (Difficulty): Selects how many cells are carved out
            mode (GameMode): Solo games start immediately, others wait for a second player
            player_id (str): Creator of the game

        Returns:
            GameSummaryModel: The new game's id, status and player count
        """
        check_player_id(player_id)
        loop = asyncio.get_running_loop()
        puzzle, solution = await loop.run_in_executor(None, self.puzzle_factory, Difficulty(difficulty))

        now = self.clock()
        game = session_machine.create_game(
            uuid7(), Difficulty(difficulty), GameMode(mode), player_id, puzzle, solution, now, self.session_ttl
        )
        await self.session_store.save_game(game, now)
        await self._index(game, player_id, now)
        logging.info(f"Created game {game.game_id} ({game.difficulty.value}, {game.mode.value})")
        return data_converter.convert_gamesession_to_summarymodel(game)

    async def join_game(self, game_id: UUID, player_id: str) -> GameSummaryModel:
        check_player_id(player_id)
        async with self.lock_manager.hold(game_id):
            now = self.clock()
            game = await self._load(game_id, now)
            session_machine.join_game(game, player_id)
            await self.session_store.save_game(game, now)
            await self._index(game, player_id, now)

        logging.info(f"Player {player_id} joined game {game_id}")
        await self._publish(game_id)
        return data_converter.convert_gamesession_to_summarymodel(game)

    async def start_game(self, game_id: UUID, player_id: str) -> GameSummaryModel:
        check_player_id(player_id)
        async with self.lock_manager.hold(game_id):
            now = self.clock()
            game = await self._load(game_id, now)
            session_machine.start_game(game, player_id, now)
            await self.session_store.save_game(game, now)

        logging.info(f"Game {game_id} started")
        await self._publish(game_id)
        return data_converter.convert_gamesession_to_summarymodel(game)

    async def apply_move(
        self,
        game_id: UUID,
        player_id: str,
        row: int,
        col: int,
        value: int | None,
        is_note: bool = False,
    ) -> MoveResponseModel:
        """Apply one move for ``player_id`` and store the result

        Args:
            game_id (UUID): To identify the game
            player_id (str): Player making the move
            row (int): 0-8
            col (int): 0-8
            value (int | None): 1-9, or None to erase the cell
            is_note (bool, optional): Toggle a candidate note instead of placing. Defaults to False.

        Returns:
            MoveResponseModel: The player's view of the game and the move result
        """
        check_player_id(player_id)
        check_cell(row, col, value)
        async with self.lock_manager.hold(game_id):
            now = self.clock()
            game = await self._load(game_id, now)
            move_result = session_machine.apply_move(game, player_id, row, col, value, is_note, now)
            await self.session_store.save_game(game, now)

        if game.status == GameStatus.finished:
            logging.info(f"Game {game_id} finished, winner: {game.winner}")
            await self._close_finished_game(game, now)
        await self._publish(game_id)
        return MoveResponseModel(
            game_state=data_converter.convert_gamesession_to_gamestatemodel(game),
            move_result=move_result,
        )

    async def use_hint(self, game_id: UUID, player_id: str) -> HintResponseModel:
        check_player_id(player_id)
        async with self.lock_manager.hold(game_id):
            now = self.clock()
            game = await self._load(game_id, now)
            hint = session_machine.use_hint(game, player_id, now, self.rng)
            await self.session_store.save_game(game, now)

        if game.status == GameStatus.finished:
            logging.info(f"Game {game_id} finished, winner: {game.winner}")
            await self._close_finished_game(game, now)
        await self._publish(game_id)
        return HintResponseModel(
            game_state=data_converter.convert_gamesession_to_gamestatemodel(game),
            hint=hint,
        )

    async def get_state(self, game_id: UUID, player_id: str) -> GameStateModel:
        """Return the game as ``player_id`` may see it, never including the solution."""
        check_player_id(player_id)
        game = await self._load(game_id, self.clock())
        session_machine.require_player(game, player_id)
        return data_converter.convert_gamesession_to_gamestatemodel(game)

    async def get_player_game(self, player_id: str) -> GameSummaryModel:
        """Return the game ``player_id`` is currently part of."""
        check_player_id(player_id)
        game_id = await self.session_store.get_player_session(player_id)
        if game_id is None:
            raise NotFoundError("no_current_game", "You are not part of any running game.")
        try:
            current_game_id = UUID(game_id)
        except ValueError:
            logging.warning(f"Player session for {player_id} holds an invalid game id: {game_id!r}")
            raise NotFoundError("no_current_game", "You are not part of any running game.")
        game = await self._load(current_game_id, self.clock())
        return data_converter.convert_gamesession_to_summarymodel(game)

    async def list_active_games(self) -> List[ActiveGameSchema]:
        return await self.session_store.list_active_games()

    async def reconcile(self) -> int:
        """Drop lobby and player indices whose game has expired. Run periodically."""
        try:
            cleaned = await self.session_store.reconcile()
        except RedisError as e:
            logging.error(f"Error during cleanup: {e}")
            return 0
        if cleaned > 0:
            logging.info(f"Cleaned up {cleaned} expired game entries")
        return cleaned

    async def health_check(self) -> bool:
        return await self.session_store.health_check()
