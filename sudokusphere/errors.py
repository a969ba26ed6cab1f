"""Named rejection outcomes raised by the engine and the services.

Every rejection carries a short ``reason`` code so that callers can tell
"game full" from "game over" without parsing messages.
"""


class SudokuSphereError(Exception):
    def __init__(self, reason: str, message: str | None = None):
        super().__init__(message or reason)
        self.reason = reason
        self.message = message or reason


class ValidationError(SudokuSphereError):
    """Malformed coordinates, values or identifiers."""


class NotFoundError(SudokuSphereError):
    """Unknown or expired game, or a player that is not part of it."""


class ConflictError(SudokuSphereError):
    """Game full, player already joined, game already started."""


class StateError(SudokuSphereError):
    """Action not allowed in the game's current status."""


class InternalError(SudokuSphereError):
    """Session store I/O failure."""
