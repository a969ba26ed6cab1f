import random

import numpy as np
import pytest

from conftest import SOLUTION
from sudokusphere.domain.board import EMPTY, count_filled, decode_board
from sudokusphere.domain.carver import carve, generate_puzzle
from sudokusphere.domain.game_rules import holes_for
from sudokusphere.domain.generator import count_solutions
from sudokusphere.models.dc_models import Difficulty


def test_easy_puzzle_has_exact_hole_count():
    puzzle, solution = generate_puzzle(Difficulty.easy, random.Random(3))
    assert count_filled(puzzle) == 81 - holes_for(Difficulty.easy)
    assert count_solutions(puzzle) == 1


@pytest.mark.parametrize("difficulty", list(Difficulty))
def test_carved_puzzle_is_unique_and_matches_solution(difficulty):
    solution = decode_board(SOLUTION)
    puzzle = carve(solution, difficulty, random.Random(11))

    assert count_filled(puzzle) >= 81 - holes_for(difficulty)
    assert count_solutions(puzzle, limit=2) == 1
    givens = puzzle != EMPTY
    assert np.array_equal(puzzle[givens], solution[givens])


def test_carve_leaves_solution_untouched():
    solution = decode_board(SOLUTION)
    carve(solution, Difficulty.medium, random.Random(5))
    assert np.array_equal(solution, decode_board(SOLUTION))
