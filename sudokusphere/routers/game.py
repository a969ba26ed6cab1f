import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import StreamingResponse

from sudokusphere.dependencies import get_game_service, rate_limit, to_http_exception
from sudokusphere.errors import SudokuSphereError
from sudokusphere.load_secrets import game_action_max_requests, game_action_window_ms
from sudokusphere.models.dc_models import (
    CreateGameModel,
    GameSummaryModel,
    HintResponseModel,
    JoinGameModel,
    MoveModel,
    MoveResponseModel,
    PlayerActionModel,
    PlayerId,
)
from sudokusphere.redis_subscriber import RedisSubscriber
from sudokusphere.services.game_service import GameService

game_router = APIRouter(prefix="/games")
game_action_limit = rate_limit("game_action", game_action_max_requests, game_action_window_ms)


class LobbyServer:
    @staticmethod
    @game_router.post(
        "/create",
        response_model=GameSummaryModel,
        status_code=status.HTTP_201_CREATED,
        dependencies=[Depends(game_action_limit)],
    )
    async def create_game(
        create_data: CreateGameModel,
        game_service: GameService = Depends(get_game_service),
    ) -> GameSummaryModel:
        """Generate a puzzle and open a new game

        Args:
            create_data (CreateGameModel):
                    difficulty: Easy, Medium, Hard, Very Hard or Impossible
                    mode: Solo, Co-op or Versus
                    player_id: The creator, 5 to 50 characters

        Returns:
            GameSummaryModel: The new game. Solo games are already active.
        """
        try:
            return await game_service.create_game(
                create_data.difficulty, create_data.mode, create_data.player_id
            )
        except SudokuSphereError as e:
            raise to_http_exception(e) from e

    @staticmethod
    @game_router.post(
        "/join",
        response_model=GameSummaryModel,
        dependencies=[Depends(game_action_limit)],
    )
    async def join_game(
        join_data: JoinGameModel,
        game_service: GameService = Depends(get_game_service),
    ) -> GameSummaryModel:
        try:
            return await game_service.join_game(join_data.game_id, join_data.player_id)
        except SudokuSphereError as e:
            raise to_http_exception(e) from e

    @staticmethod
    @game_router.post(
        "/{game_id}/start",
        response_model=GameSummaryModel,
        dependencies=[Depends(game_action_limit)],
    )
    async def start_game(
        game_id: UUID,
        action_data: PlayerActionModel,
        game_service: GameService = Depends(get_game_service),
    ) -> GameSummaryModel:
        try:
            return await game_service.start_game(game_id, action_data.player_id)
        except SudokuSphereError as e:
            raise to_http_exception(e) from e


class PlayServer:
    @staticmethod
    @game_router.post(
        "/{game_id}/move",
        response_model=MoveResponseModel,
        dependencies=[Depends(game_action_limit)],
    )
    async def make_move(
        game_id: UUID,
        move: MoveModel,
        game_service: GameService = Depends(get_game_service),
    ) -> MoveResponseModel:
        """Place a value, erase a cell or toggle a note

        Args:
            game_id (UUID): To identify the game
            move (MoveModel): row and col in 0-8, value in 1-9 or null to erase, is_note to toggle a note

        Returns:
            MoveResponseModel: The updated game state and whether the move was correct
        """
        try:
            return await game_service.apply_move(
                game_id, move.player_id, move.row, move.col, move.value, move.is_note
            )
        except SudokuSphereError as e:
            raise to_http_exception(e) from e

    @staticmethod
    @game_router.post(
        "/{game_id}/hint",
        response_model=HintResponseModel,
        dependencies=[Depends(game_action_limit)],
    )
    async def use_hint(
        game_id: UUID,
        action_data: PlayerActionModel,
        game_service: GameService = Depends(get_game_service),
    ) -> HintResponseModel:
        try:
            return await game_service.use_hint(game_id, action_data.player_id)
        except SudokuSphereError as e:
            raise to_http_exception(e) from e

    @staticmethod
    @game_router.get("/{game_id}/stream")
    async def stream_game_state(
        game_id: UUID,
        request: Request,
        player_id: PlayerId = Query(...),
        game_service: GameService = Depends(get_game_service),
    ):
        # 接続前に参加者かどうかを確認し、エラーはSSEではなく通常のレスポンスで返す
        try:
            await game_service.get_state(game_id, player_id)
        except SudokuSphereError as e:
            raise to_http_exception(e) from e

        logging.info(f"Player {player_id} subscribed to game {game_id}")
        redis_subscriber = RedisSubscriber(game_service, game_id, player_id)
        return StreamingResponse(
            redis_subscriber.event_generator(request.app.state.redis),
            media_type="text/event-stream; charset=utf-8",
            headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
        )
