"""Game rules that are independent from HTTP and storage.

Rule of thumb:
- OK: constants, per-mode and per-difficulty lookups.
- Not OK: touching Redis, DB sessions, FastAPI, datetime.now(), etc.
"""

from sudokusphere.models.dc_models import Difficulty, GameMode

HINTS_PER_PLAYER = 3
ERROR_THRESHOLD = 3
SESSION_EXPIRATION_HOURS = 24

SOLO_MAX_PLAYERS = 1
MULTIPLAYER_MAX_PLAYERS = 2

# Target number of empty cells out of 81.
HOLES_BY_DIFFICULTY = {
    Difficulty.easy: 35,
    Difficulty.medium: 45,
    Difficulty.hard: 50,
    Difficulty.very_hard: 55,
    Difficulty.impossible: 60,
}


def holes_for(difficulty: Difficulty) -> int:
    """Return the target empty-cell count for the given difficulty."""
    return HOLES_BY_DIFFICULTY[Difficulty(difficulty)]


def max_players(mode: GameMode) -> int:
    """Return the player ceiling for the given mode."""
    if GameMode(mode) == GameMode.solo:
        return SOLO_MAX_PLAYERS
    return MULTIPLAYER_MAX_PLAYERS


def min_players_to_start(mode: GameMode) -> int:
    if GameMode(mode) == GameMode.solo:
        return 1
    return MULTIPLAYER_MAX_PLAYERS


def shares_board(mode: GameMode) -> bool:
    """Co-op players write to one board; everyone else plays a private copy."""
    return GameMode(mode) == GameMode.coop
