"""Game lifecycle and move application.

Every function here works on a ``GameSessionSchema`` loaded by the caller and
mutates it in place. All checks run before the first mutation, so a rejected
action leaves the session exactly as it was loaded.

States: waiting -> active -> finished (terminal).
"""

import random
from datetime import datetime, timedelta
from uuid import UUID

import numpy as np

from sudokusphere.domain.board import (
    EMPTY,
    decode_board,
    empty_cells,
    encode_board,
    is_complete,
    is_fully_valid,
)
from sudokusphere.domain.game_rules import (
    ERROR_THRESHOLD,
    HINTS_PER_PLAYER,
    max_players,
    min_players_to_start,
    shares_board,
)
from sudokusphere.domain.notes import (
    clear_cell_notes,
    clear_value_around,
    decode_notes,
    empty_notes,
    encode_notes,
    toggle_note,
)
from sudokusphere.errors import ConflictError, NotFoundError, StateError, ValidationError
from sudokusphere.models.dc_models import (
    Difficulty,
    GameMode,
    GameStatus,
    HintResultModel,
    MoveResultModel,
)
from sudokusphere.models.schema_models import CellSchema, GameSessionSchema, PlayerSessionSchema


def new_player(player_id: str, board: str, notes: str) -> PlayerSessionSchema:
    return PlayerSessionSchema(
        player_id=player_id,
        board=board,
        notes=notes,
        errors=0,
        elapsed_seconds=0.0,
        hints=HINTS_PER_PLAYER,
        error_cells=[],
    )


def create_game(
    game_id: UUID,
    difficulty: Difficulty,
    mode: GameMode,
    creator_id: str,
    puzzle: np.ndarray,
    solution: np.ndarray,
    now: datetime,
    ttl: timedelta,
) -> GameSessionSchema:
    """Build a new game with its creator as the first player.

    Solo games skip the lobby and start immediately.
    """
    puzzle_string = encode_board(puzzle)
    solo = GameMode(mode) == GameMode.solo
    return GameSessionSchema(
        game_id=game_id,
        puzzle=puzzle_string,
        solution=encode_board(solution),
        difficulty=difficulty,
        mode=mode,
        status=GameStatus.active if solo else GameStatus.waiting,
        players={creator_id: new_player(creator_id, puzzle_string, encode_notes(empty_notes()))},
        winner=None,
        created_at=now,
        started_at=now if solo else None,
        finished_at=None,
        expires_at=now + ttl,
    )


def is_expired(game: GameSessionSchema, now: datetime) -> bool:
    return now >= game.expires_at


def require_player(game: GameSessionSchema, player_id: str) -> PlayerSessionSchema:
    player = game.players.get(player_id)
    if player is None:
        raise NotFoundError("player_not_in_game", "You are not part of this game.")
    return player


def _require_active(game: GameSessionSchema) -> None:
    if game.status == GameStatus.finished:
        raise StateError("game_over", "The game is already over.")
    if game.status != GameStatus.active:
        raise StateError("game_not_active", "The game is not currently active.")


def join_game(game: GameSessionSchema, player_id: str) -> PlayerSessionSchema:
    """Add ``player_id`` to the game.

    Co-op joiners pick up the shared board and notes as they are now; every
    other mode starts the joiner from the puzzle.

    Raises:
        StateError: The game is finished
        ConflictError: The game is full, or the player is already in it
    """
    if game.status == GameStatus.finished:
        raise StateError("game_over", "The game is already over.")
    if len(game.players) >= max_players(game.mode):
        raise ConflictError("game_full", "This game already has the maximum number of players.")
    if player_id in game.players:
        raise ConflictError("already_joined", "You are already part of this game.")

    board, notes = game.puzzle, encode_notes(empty_notes())
    if shares_board(game.mode) and game.players:
        shared = next(iter(game.players.values()))
        board, notes = shared.board, shared.notes

    player = new_player(player_id, board, notes)
    game.players[player_id] = player
    return player


def start_game(game: GameSessionSchema, player_id: str, now: datetime) -> None:
    """Move a waiting game to active.

    Raises:
        NotFoundError: The player is not part of the game
        StateError: The game is finished, or a multiplayer game lacks players
        ConflictError: The game has already started
    """
    require_player(game, player_id)
    if game.status == GameStatus.finished:
        raise StateError("game_over", "The game is already over.")
    if game.status == GameStatus.active:
        raise ConflictError("already_started", "The game has already started.")
    if len(game.players) < min_players_to_start(game.mode):
        raise StateError("not_enough_players", "Multiplayer games require at least 2 players.")
    game.status = GameStatus.active
    game.started_at = now


def _touch(game: GameSessionSchema, player: PlayerSessionSchema, now: datetime) -> None:
    if game.started_at is not None:
        player.elapsed_seconds = max(0.0, (now - game.started_at).total_seconds())


def _drop_error_cell(game: GameSessionSchema, player: PlayerSessionSchema, row: int, col: int) -> None:
    """Unmark (row, col) as mis-filled. On a shared board the mark is dropped for every player."""
    players = game.players.values() if shares_board(game.mode) else [player]
    for owner in players:
        owner.error_cells = [cell for cell in owner.error_cells if (cell.row, cell.col) != (row, col)]


def _mirror_shared_board(game: GameSessionSchema, player: PlayerSessionSchema) -> None:
    if not shares_board(game.mode):
        return
    for other in game.players.values():
        if other.player_id != player.player_id:
            other.board = player.board
            other.notes = player.notes


def _finish_if_over(
    game: GameSessionSchema,
    player: PlayerSessionSchema,
    board: np.ndarray,
    solution: np.ndarray,
    now: datetime,
) -> None:
    if is_complete(board) and is_fully_valid(board) and np.array_equal(board, solution):
        game.status = GameStatus.finished
        game.winner = player.player_id
        game.finished_at = now
    elif player.errors >= ERROR_THRESHOLD:
        game.status = GameStatus.finished
        game.winner = None
        game.finished_at = now


def apply_move(
    game: GameSessionSchema,
    player_id: str,
    row: int,
    col: int,
    value: int | None,
    is_note: bool,
    now: datetime,
) -> MoveResultModel:
    """Apply a placement, an erase (``value`` None) or a note toggle.

    Coordinates and value must already be range-checked.

    Raises:
        ValidationError: A note toggle without a value
        StateError: The game is not active, or (row, col) is a given cell
        NotFoundError: The player is not part of the game
    """
    if is_note and value is None:
        raise ValidationError("note_requires_value", "A note needs a value between 1 and 9.")
    _require_active(game)
    player = require_player(game, player_id)
    if decode_board(game.puzzle)[row, col] != EMPTY:
        raise StateError("given_cell", "Cannot modify a given cell.")

    board = decode_board(player.board)
    notes = decode_notes(player.notes)
    _touch(game, player, now)

    if is_note:
        toggle_note(notes, row, col, value)
        player.notes = encode_notes(notes)
        _mirror_shared_board(game, player)
        return MoveResultModel(is_valid=True, is_complete=False, winner=None)

    solution = decode_board(game.solution)
    is_valid = True
    if value is None:
        board[row, col] = EMPTY
        clear_cell_notes(notes, row, col)
        _drop_error_cell(game, player, row, col)
    elif solution[row, col] == value:
        board[row, col] = value
        clear_value_around(notes, row, col, value)
        _drop_error_cell(game, player, row, col)
    else:
        # Every wrong placement counts, even on a cell that already held one.
        board[row, col] = value
        player.errors += 1
        player.error_cells.append(CellSchema(row=row, col=col))
        is_valid = False

    player.board = encode_board(board)
    player.notes = encode_notes(notes)
    _mirror_shared_board(game, player)
    _finish_if_over(game, player, board, solution, now)
    return MoveResultModel(
        is_valid=is_valid,
        is_complete=game.status == GameStatus.finished,
        winner=game.winner,
    )


def use_hint(
    game: GameSessionSchema,
    player_id: str,
    now: datetime,
    rng: random.Random | None = None,
) -> HintResultModel:
    """Reveal the solution value of one random empty cell on the player's board.

    Raises:
        StateError: The game is not active, no hints are left, or no cell is empty
        NotFoundError: The player is not part of the game
    """
    rng = rng or random.Random()
    _require_active(game)
    player = require_player(game, player_id)
    if player.hints <= 0:
        raise StateError("no_hints_left", "You have no hints left.")

    board = decode_board(player.board)
    candidates = empty_cells(board)
    if not candidates:
        raise StateError("no_empty_cells", "There is no empty cell to reveal.")

    row, col = candidates[rng.randrange(len(candidates))]
    solution = decode_board(game.solution)
    value = int(solution[row, col])
    notes = decode_notes(player.notes)
    _touch(game, player, now)

    board[row, col] = value
    clear_value_around(notes, row, col, value)
    player.hints -= 1
    _drop_error_cell(game, player, row, col)
    player.board = encode_board(board)
    player.notes = encode_notes(notes)
    _mirror_shared_board(game, player)
    _finish_if_over(game, player, board, solution, now)
    return HintResultModel(
        row=row,
        col=col,
        value=value,
        hints_remaining=player.hints,
        is_complete=game.status == GameStatus.finished,
        winner=game.winner,
    )
