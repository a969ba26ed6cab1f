"""Board model for the fixed 9x9 grid.

A board is a ``numpy.int8`` array of shape (9, 9). ``0`` marks an empty cell,
``1``-``9`` are placed digits. Rows and columns are indexed 0-8.
"""

import logging

import numpy as np

from sudokusphere.errors import ValidationError

SIZE = 9
BOX_SIZE = 3
CELL_COUNT = SIZE * SIZE
EMPTY = 0
EMPTY_SYMBOL = "."
DIGITS = range(1, SIZE + 1)


def empty_board() -> np.ndarray:
    return np.zeros((SIZE, SIZE), dtype=np.int8)


def box_origin(row: int, col: int) -> tuple[int, int]:
    """Return the top-left coordinate of the 3x3 box containing (row, col)."""
    return (row // BOX_SIZE) * BOX_SIZE, (col // BOX_SIZE) * BOX_SIZE


def check_cell(row: int, col: int, value: int | None = None) -> None:
    """Reject coordinates or values outside the grid before they reach the engine.

    Args:
        row (int): 0-8
        col (int): 0-8
        value (int | None): 1-9, or None for "no value"

    Raises:
        ValidationError: Any argument is out of range or not an integer
    """
    for name, index in (("row", row), ("col", col)):
        if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < SIZE:
            raise ValidationError("invalid_coordinates", f"{name} must be between 0 and 8.")
    if value is None:
        return
    if isinstance(value, bool) or not isinstance(value, int) or value not in DIGITS:
        raise ValidationError("invalid_value", "Value must be null or a number between 1 and 9.")


def is_placement_legal(board: np.ndarray, row: int, col: int, value: int) -> bool:
    """Check that ``value`` does not already appear in the row, column or box of (row, col).

    The target cell itself is ignored, so a placed digit can be checked against
    the rest of the board.
    """
    if value in np.delete(board[row, :], col):
        return False
    if value in np.delete(board[:, col], row):
        return False
    box_row, box_col = box_origin(row, col)
    box = board[box_row:box_row + BOX_SIZE, box_col:box_col + BOX_SIZE].copy()
    box[row - box_row, col - box_col] = EMPTY
    return value not in box


def is_complete(board: np.ndarray) -> bool:
    return bool((board != EMPTY).all())


def is_fully_valid(board: np.ndarray) -> bool:
    """Every non-empty cell is legal against the rest of the board."""
    for row, col in np.argwhere(board != EMPTY):
        value = int(board[row, col])
        if value not in DIGITS or not is_placement_legal(board, int(row), int(col), value):
            return False
    return True


def empty_cells(board: np.ndarray) -> list[tuple[int, int]]:
    """Return the coordinates of every empty cell in row-major order."""
    return [(int(row), int(col)) for row, col in np.argwhere(board == EMPTY)]


def encode_board(board: np.ndarray) -> str:
    """Encode the board as 81 characters, row-major, ``.`` for empty."""
    return "".join(
        EMPTY_SYMBOL if value == EMPTY else str(int(value)) for value in board.flat
    )


def decode_board(board_string: str | None) -> np.ndarray:
    """Decode an 81-character board string.

    A string of the wrong length, or one holding a symbol other than ``1``-``9``
    and ``.``, decodes to an all-empty board instead of raising. Partial writes
    must never take a session down.
    """
    if not isinstance(board_string, str) or len(board_string) != CELL_COUNT:
        logging.warning("Board string has the wrong length, using an empty board")
        return empty_board()

    values = []
    for symbol in board_string:
        if symbol == EMPTY_SYMBOL:
            values.append(EMPTY)
        elif symbol in "123456789":
            values.append(int(symbol))
        else:
            logging.warning(f"Board string contains invalid symbol {symbol!r}, using an empty board")
            return empty_board()
    return np.array(values, dtype=np.int8).reshape(SIZE, SIZE)


def count_filled(board: np.ndarray) -> int:
    return int(np.count_nonzero(board))
