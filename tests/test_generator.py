import random

import numpy as np

from conftest import PUZZLE, SOLUTION
from sudokusphere.domain.board import decode_board, is_complete, is_fully_valid
from sudokusphere.domain.generator import (
    count_solutions,
    generate_solution,
    has_unique_solution,
    solve,
)


def test_generate_solution_is_complete_and_valid():
    rng = random.Random(7)
    for _ in range(5):
        board = generate_solution(rng)
        assert board.shape == (9, 9)
        assert is_complete(board)
        assert is_fully_valid(board)


def test_generate_solution_is_reproducible_with_seed():
    assert np.array_equal(generate_solution(random.Random(42)), generate_solution(random.Random(42)))


def test_solve_finds_the_known_solution():
    puzzle = decode_board(PUZZLE)
    solved = solve(puzzle, random.Random(1))
    assert np.array_equal(solved, decode_board(SOLUTION))
    # the input is left untouched
    assert np.array_equal(puzzle, decode_board(PUZZLE))


def test_solve_returns_none_for_clashing_givens():
    board = decode_board(PUZZLE)
    board[0, 2] = 5
    assert solve(board) is None
    assert count_solutions(board) == 0


def test_count_solutions_unique_puzzle():
    assert count_solutions(decode_board(PUZZLE)) == 1
    assert has_unique_solution(decode_board(PUZZLE))


def test_count_solutions_stops_at_limit():
    empty = np.zeros((9, 9), dtype=np.int8)
    assert count_solutions(empty, limit=2) == 2
    assert count_solutions(empty, limit=5) == 5
    assert not has_unique_solution(empty)


def test_count_solutions_complete_board():
    assert count_solutions(decode_board(SOLUTION)) == 1
