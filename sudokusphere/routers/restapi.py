from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from sudokusphere.dependencies import get_game_service, rate_limit, to_http_exception
from sudokusphere.errors import SudokuSphereError
from sudokusphere.load_secrets import rate_limit_max_requests, rate_limit_window_ms
from sudokusphere.models.dc_models import GameStateModel, GameSummaryModel, HealthModel, PlayerId
from sudokusphere.models.schema_models import ActiveGameSchema
from sudokusphere.services.game_service import GameService

rest_router = APIRouter()
general_limit = rate_limit("general", rate_limit_max_requests, rate_limit_window_ms)


class GameAPI:
    @staticmethod
    @rest_router.get(
        "/games",
        response_model=List[ActiveGameSchema],
        dependencies=[Depends(general_limit)],
    )
    async def list_active_games(game_service: GameService = Depends(get_game_service)):
        try:
            return await game_service.list_active_games()
        except SudokuSphereError as e:
            raise to_http_exception(e) from e

    @staticmethod
    @rest_router.get(
        "/games/{game_id}",
        response_model=GameStateModel,
        dependencies=[Depends(general_limit)],
    )
    async def get_game_state(
        game_id: UUID,
        player_id: PlayerId = Query(...),
        game_service: GameService = Depends(get_game_service),
    ):
        try:
            return await game_service.get_state(game_id, player_id)
        except SudokuSphereError as e:
            raise to_http_exception(e) from e


class PlayerAPI:
    @staticmethod
    @rest_router.get(
        "/players/{player_id}/game",
        response_model=GameSummaryModel,
        dependencies=[Depends(general_limit)],
    )
    async def get_player_game(
        player_id: str, game_service: GameService = Depends(get_game_service)
    ):
        try:
            return await game_service.get_player_game(player_id)
        except SudokuSphereError as e:
            raise to_http_exception(e) from e


class HealthAPI:
    @staticmethod
    @rest_router.get("/health", response_model=HealthModel)
    async def health(game_service: GameService = Depends(get_game_service)):
        redis_ok = await game_service.health_check()
        return HealthModel(
            status="ok" if redis_ok else "degraded",
            redis="connected" if redis_ok else "disconnected",
        )
