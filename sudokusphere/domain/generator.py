"""Backtracking solver used to build full solutions and to count solutions.

Both searches work on plain lists and per-row/column/box bitmasks (bit ``d``
set means digit ``d`` is used) instead of numpy indexing, which keeps the
inner loops cheap.
"""

import random

import numpy as np

from sudokusphere.domain.board import BOX_SIZE, DIGITS, EMPTY, SIZE

ALL_DIGITS_MASK = 0b1111111110


def _box_index(row: int, col: int) -> int:
    return (row // BOX_SIZE) * BOX_SIZE + col // BOX_SIZE


def _load_masks(grid: list[list[int]]) -> tuple[list[int], list[int], list[int]] | None:
    """Build row/column/box masks, or return None if the givens already clash."""
    rows, cols, boxes = [0] * SIZE, [0] * SIZE, [0] * SIZE
    for row in range(SIZE):
        for col in range(SIZE):
            value = grid[row][col]
            if value == EMPTY:
                continue
            bit = 1 << value
            box = _box_index(row, col)
            if (rows[row] | cols[col] | boxes[box]) & bit:
                return None
            rows[row] |= bit
            cols[col] |= bit
            boxes[box] |= bit
    return rows, cols, boxes


def solve(board: np.ndarray, rng: random.Random | None = None) -> np.ndarray | None:
    """Fill every empty cell of ``board`` by randomized backtracking.

    Empty cells are visited in row-major order. At each cell the digits 1-9
    are tried in a freshly shuffled order, and the cell is reset to empty when
    every digit leads to a dead end.

    Args:
        board (np.ndarray): Starting board, left untouched
        rng (random.Random | None): Random source. Defaults to a new ``random.Random()``

    Returns:
        np.ndarray | None: A complete valid board, or None if the givens have no solution
    """
    rng = rng or random.Random()
    grid = board.tolist()
    masks = _load_masks(grid)
    if masks is None:
        return None
    rows, cols, boxes = masks
    cells = [(row, col) for row in range(SIZE) for col in range(SIZE) if grid[row][col] == EMPTY]

    def backtrack(index: int) -> bool:
        if index == len(cells):
            return True
        row, col = cells[index]
        box = _box_index(row, col)
        used = rows[row] | cols[col] | boxes[box]
        digits = list(DIGITS)
        rng.shuffle(digits)
        for digit in digits:
            bit = 1 << digit
            if used & bit:
                continue
            grid[row][col] = digit
            rows[row] |= bit
            cols[col] |= bit
            boxes[box] |= bit
            if backtrack(index + 1):
                return True
            rows[row] &= ~bit
            cols[col] &= ~bit
            boxes[box] &= ~bit
        grid[row][col] = EMPTY
        return False

    if not backtrack(0):
        return None
    return np.array(grid, dtype=np.int8)


def generate_solution(rng: random.Random | None = None) -> np.ndarray:
    """Return a random complete, valid board.

    Starting from an empty grid the search cannot fail, so there is no error
    outcome here.
    """
    return solve(np.zeros((SIZE, SIZE), dtype=np.int8), rng)


def count_solutions(board: np.ndarray, limit: int = 2) -> int:
    """Count the solutions of ``board``, stopping as soon as ``limit`` is reached.

    The search always branches on the empty cell with the fewest candidates,
    so a puzzle with a second solution is detected without enumerating the
    whole tree.
    """
    grid = board.tolist()
    masks = _load_masks(grid)
    if masks is None:
        return 0
    rows, cols, boxes = masks
    empties = [(row, col) for row in range(SIZE) for col in range(SIZE) if grid[row][col] == EMPTY]
    count = 0

    def search() -> None:
        nonlocal count
        best = None
        best_options = 0
        best_size = SIZE + 1
        for row, col in empties:
            if grid[row][col] != EMPTY:
                continue
            options = ~(rows[row] | cols[col] | boxes[_box_index(row, col)]) & ALL_DIGITS_MASK
            size = bin(options).count("1")
            if size == 0:
                return
            if size < best_size:
                best, best_options, best_size = (row, col), options, size
                if size == 1:
                    break
        if best is None:
            count += 1
            return

        row, col = best
        box = _box_index(row, col)
        for digit in DIGITS:
            bit = 1 << digit
            if not best_options & bit:
                continue
            grid[row][col] = digit
            rows[row] |= bit
            cols[col] |= bit
            boxes[box] |= bit
            search()
            rows[row] &= ~bit
            cols[col] &= ~bit
            boxes[box] &= ~bit
            grid[row][col] = EMPTY
            if count >= limit:
                return

    search()
    return min(count, limit)


def has_unique_solution(board: np.ndarray) -> bool:
    return count_solutions(board, limit=2) == 1
