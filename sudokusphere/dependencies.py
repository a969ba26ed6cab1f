"""FastAPI dependencies shared by the routers."""

import logging
import math
from typing import Callable

from fastapi import HTTPException, Request, Response, status

from sudokusphere.errors import (
    ConflictError,
    InternalError,
    NotFoundError,
    StateError,
    SudokuSphereError,
    ValidationError,
)
from sudokusphere.services.game_service import GameService
from sudokusphere.services.rate_limiter import RateLimiter

STATUS_BY_ERROR = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ConflictError: status.HTTP_409_CONFLICT,
    StateError: status.HTTP_400_BAD_REQUEST,
    InternalError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def to_http_exception(error: SudokuSphereError) -> HTTPException:
    status_code = STATUS_BY_ERROR.get(type(error), status.HTTP_500_INTERNAL_SERVER_ERROR)
    return HTTPException(
        status_code=status_code,
        detail={"reason": error.reason, "message": error.message},
    )


def get_game_service(request: Request) -> GameService:
    return request.app.state.game_service


def client_identity(request: Request) -> str:
    if request.client is None:
        return "unknown"
    return request.client.host


def rate_limit(action: str, limit: int, window_ms: int) -> Callable:
    """Build a dependency that admits at most ``limit`` hits of ``action`` per window

    Args:
        action (str): Name of the limited action, part of the counter key
        limit (int): Hits allowed per window
        window_ms (int): Window size in milliseconds

    Returns:
        Callable: Dependency that sets the X-RateLimit-* headers and raises 429 when refused
    """

    async def check_rate_limit(request: Request, response: Response) -> None:
        rate_limiter: RateLimiter = request.app.state.rate_limiter
        identity = client_identity(request)
        result = await rate_limiter.check_and_increment(identity, action, limit, window_ms)

        headers = {
            "X-RateLimit-Limit": str(result.limit),
            "X-RateLimit-Remaining": str(result.remaining),
            "X-RateLimit-Reset": str(result.reset_time),
        }
        if not result.allowed:
            retry_after = max(1, math.ceil((result.reset_time - rate_limiter.clock()) / 1000))
            logging.warning(f"Rate limit exceeded for {identity} on {action}")
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail={
                    "reason": "rate_limited",
                    "message": "Too many requests, please try again later.",
                },
                headers={**headers, "Retry-After": str(retry_after)},
            )
        response.headers.update(headers)

    return check_rate_limit
