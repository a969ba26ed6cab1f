"""Turn a solved board into a playable puzzle for a difficulty."""

import logging
import random

import numpy as np

from sudokusphere.domain.board import EMPTY, SIZE
from sudokusphere.domain.game_rules import holes_for
from sudokusphere.domain.generator import count_solutions, generate_solution
from sudokusphere.models.dc_models import Difficulty


def carve(solution: np.ndarray, difficulty: Difficulty, rng: random.Random | None = None) -> np.ndarray:
    """Remove cells from ``solution`` while the puzzle keeps exactly one solution.

    Filled cells are visited in random order. Each one is emptied tentatively
    and stays empty only if the bounded solver still finds a single solution;
    otherwise its value is restored. Removing more cells can only add
    solutions, so a cell that fails once is never retried.

    Args:
        solution (np.ndarray): Complete, valid board
        difficulty (Difficulty): Selects the target number of empty cells
        rng (random.Random | None): Random source

    Returns:
        np.ndarray: The puzzle. It has fewer holes than the target when no
        further cell could be removed without losing uniqueness.
    """
    rng = rng or random.Random()
    target = holes_for(difficulty)
    puzzle = solution.copy()
    cells = [(row, col) for row in range(SIZE) for col in range(SIZE)]
    rng.shuffle(cells)

    removed = 0
    for row, col in cells:
        if removed >= target:
            break
        value = puzzle[row, col]
        puzzle[row, col] = EMPTY
        if count_solutions(puzzle, limit=2) == 1:
            removed += 1
        else:
            puzzle[row, col] = value

    if removed < target:
        logging.info(f"Carved {removed} of {target} cells for {Difficulty(difficulty).value}")
    return puzzle


def generate_puzzle(difficulty: Difficulty, rng: random.Random | None = None) -> tuple[np.ndarray, np.ndarray]:
    """Return ``(puzzle, solution)`` for a new game."""
    rng = rng or random.Random()
    solution = generate_solution(rng)
    puzzle = carve(solution, difficulty, rng)
    return puzzle, solution
