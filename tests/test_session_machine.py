import random
from datetime import timedelta

import pytest

from conftest import NOW, PUZZLE, SOLUTION, make_game
from sudokusphere.domain import session_machine
from sudokusphere.domain.board import decode_board, empty_cells
from sudokusphere.domain.notes import cell_candidates, decode_notes, encode_notes, toggle_note
from sudokusphere.errors import ConflictError, NotFoundError, StateError, ValidationError
from sudokusphere.models.dc_models import GameMode, GameStatus


def fill_notes_with(game, player_id, value):
    notes = decode_notes(game.players[player_id].notes)
    for row in range(9):
        for col in range(9):
            toggle_note(notes, row, col, value)
    game.players[player_id].notes = encode_notes(notes)


def solve_all_but_last(game, player_id):
    solution = decode_board(SOLUTION)
    cells = empty_cells(decode_board(PUZZLE))
    for row, col in cells[:-1]:
        session_machine.apply_move(game, player_id, row, col, int(solution[row, col]), False, NOW)
    return cells[-1]


def test_create_solo_game_is_active():
    game = make_game(GameMode.solo)
    assert game.status == GameStatus.active
    assert game.started_at == NOW
    assert game.expires_at == NOW + timedelta(hours=24)
    player = game.players["alice"]
    assert player.board == PUZZLE
    assert player.hints == 3
    assert player.errors == 0


def test_create_multiplayer_game_is_waiting():
    game = make_game(GameMode.versus)
    assert game.status == GameStatus.waiting
    assert game.started_at is None


def test_correct_move_clears_notes_in_row_col_box():
    game = make_game()
    fill_notes_with(game, "alice", 4)

    result = session_machine.apply_move(game, "alice", 0, 2, 4, False, NOW + timedelta(seconds=30))

    assert result.is_valid
    assert not result.is_complete
    player = game.players["alice"]
    assert player.errors == 0
    assert decode_board(player.board)[0, 2] == 4
    notes = decode_notes(player.notes)
    assert 4 not in cell_candidates(notes, 0, 3)
    assert 4 not in cell_candidates(notes, 2, 0)
    assert 4 not in cell_candidates(notes, 5, 2)
    assert 4 in cell_candidates(notes, 4, 4)
    assert player.elapsed_seconds == 30.0


def test_three_wrong_moves_lose_the_game():
    game = make_game()
    for count, (row, col) in enumerate([(0, 2), (0, 3), (0, 5)], start=1):
        result = session_machine.apply_move(game, "alice", row, col, 1, False, NOW)
        assert not result.is_valid
        assert game.players["alice"].errors == count

    assert game.status == GameStatus.finished
    assert game.winner is None
    assert game.finished_at == NOW
    assert len(game.players["alice"].error_cells) == 3


def test_repeated_wrong_move_on_same_cell_counts():
    game = make_game()
    session_machine.apply_move(game, "alice", 0, 2, 1, False, NOW)
    session_machine.apply_move(game, "alice", 0, 2, 2, False, NOW)
    assert game.players["alice"].errors == 2


def test_correcting_a_cell_drops_its_error_marker():
    game = make_game()
    session_machine.apply_move(game, "alice", 0, 2, 1, False, NOW)
    session_machine.apply_move(game, "alice", 0, 2, 4, False, NOW)
    player = game.players["alice"]
    assert player.error_cells == []
    assert player.errors == 1


def test_filling_last_cell_wins():
    game = make_game()
    row, col = solve_all_but_last(game, "alice")
    value = int(decode_board(SOLUTION)[row, col])

    result = session_machine.apply_move(game, "alice", row, col, value, False, NOW)

    assert result.is_complete
    assert result.winner == "alice"
    assert game.status == GameStatus.finished
    assert game.players["alice"].board == SOLUTION


def test_no_moves_after_finish():
    game = make_game()
    row, col = solve_all_but_last(game, "alice")
    session_machine.apply_move(game, "alice", row, col, int(decode_board(SOLUTION)[row, col]), False, NOW)
    before = game.model_copy(deep=True)

    with pytest.raises(StateError) as excinfo:
        session_machine.apply_move(game, "alice", 0, 2, None, False, NOW)
    assert excinfo.value.reason == "game_over"
    assert game == before


def test_given_cell_is_rejected_without_changes():
    game = make_game()
    fill_notes_with(game, "alice", 2)
    before = game.model_copy(deep=True)

    with pytest.raises(StateError) as excinfo:
        session_machine.apply_move(game, "alice", 0, 0, 1, False, NOW)
    assert excinfo.value.reason == "given_cell"
    with pytest.raises(StateError):
        session_machine.apply_move(game, "alice", 0, 0, 3, True, NOW)
    assert game == before


def test_note_toggle_and_erase():
    game = make_game()
    result = session_machine.apply_move(game, "alice", 0, 2, 7, True, NOW)
    assert result.is_valid
    assert cell_candidates(decode_notes(game.players["alice"].notes), 0, 2) == [7]

    session_machine.apply_move(game, "alice", 0, 2, 4, False, NOW)
    session_machine.apply_move(game, "alice", 0, 2, None, False, NOW)
    player = game.players["alice"]
    assert decode_board(player.board)[0, 2] == 0
    assert cell_candidates(decode_notes(player.notes), 0, 2) == []


def test_note_requires_value():
    game = make_game()
    with pytest.raises(ValidationError) as excinfo:
        session_machine.apply_move(game, "alice", 0, 2, None, True, NOW)
    assert excinfo.value.reason == "note_requires_value"


def test_unknown_player_is_rejected():
    game = make_game()
    with pytest.raises(NotFoundError) as excinfo:
        session_machine.apply_move(game, "mallory", 0, 2, 4, False, NOW)
    assert excinfo.value.reason == "player_not_in_game"


def test_join_rules():
    game = make_game(GameMode.versus)
    session_machine.join_game(game, "bobby")
    assert set(game.players) == {"alice", "bobby"}

    with pytest.raises(ConflictError) as excinfo:
        session_machine.join_game(game, "carol")
    assert excinfo.value.reason == "game_full"

    solo = make_game(GameMode.solo)
    with pytest.raises(ConflictError) as excinfo:
        session_machine.join_game(solo, "bobby")
    assert excinfo.value.reason == "game_full"


def test_join_twice_is_rejected():
    game = make_game(GameMode.coop)
    with pytest.raises(ConflictError) as excinfo:
        session_machine.join_game(game, "alice")
    assert excinfo.value.reason == "already_joined"


def test_start_rules():
    game = make_game(GameMode.versus)
    with pytest.raises(StateError) as excinfo:
        session_machine.start_game(game, "alice", NOW)
    assert excinfo.value.reason == "not_enough_players"

    session_machine.join_game(game, "bobby")
    with pytest.raises(StateError) as excinfo:
        session_machine.apply_move(game, "alice", 0, 2, 4, False, NOW)
    assert excinfo.value.reason == "game_not_active"

    session_machine.start_game(game, "bobby", NOW)
    assert game.status == GameStatus.active
    assert game.started_at == NOW

    with pytest.raises(ConflictError) as excinfo:
        session_machine.start_game(game, "alice", NOW)
    assert excinfo.value.reason == "already_started"


def test_versus_players_have_private_boards():
    game = make_game(GameMode.versus)
    session_machine.join_game(game, "bobby")
    session_machine.start_game(game, "alice", NOW)

    session_machine.apply_move(game, "alice", 0, 2, 4, False, NOW)
    assert decode_board(game.players["alice"].board)[0, 2] == 4
    assert decode_board(game.players["bobby"].board)[0, 2] == 0


def test_coop_players_share_board_and_notes():
    game = make_game(GameMode.coop)
    session_machine.join_game(game, "bobby")
    session_machine.start_game(game, "alice", NOW)

    session_machine.apply_move(game, "alice", 0, 2, 4, False, NOW)
    session_machine.apply_move(game, "bobby", 0, 3, 2, True, NOW)

    alice, bobby = game.players["alice"], game.players["bobby"]
    assert alice.board == bobby.board
    assert alice.notes == bobby.notes
    assert decode_board(bobby.board)[0, 2] == 4

    session_machine.apply_move(game, "bobby", 0, 5, 1, False, NOW)
    assert bobby.errors == 1
    assert alice.errors == 0


def test_coop_fix_clears_every_players_error_marker():
    game = make_game(GameMode.coop)
    session_machine.join_game(game, "bobby")
    session_machine.start_game(game, "alice", NOW)

    session_machine.apply_move(game, "alice", 0, 2, 1, False, NOW)
    session_machine.apply_move(game, "alice", 0, 3, 1, False, NOW)
    session_machine.apply_move(game, "bobby", 0, 2, 4, False, NOW)
    session_machine.apply_move(game, "bobby", 0, 3, None, False, NOW)

    alice, bobby = game.players["alice"], game.players["bobby"]
    assert decode_board(alice.board)[0, 2] == 4
    assert alice.error_cells == []
    assert bobby.error_cells == []
    assert alice.errors == 2
    assert bobby.errors == 0


def test_versus_error_markers_stay_private():
    game = make_game(GameMode.versus)
    session_machine.join_game(game, "bobby")
    session_machine.start_game(game, "alice", NOW)

    session_machine.apply_move(game, "alice", 0, 2, 1, False, NOW)
    session_machine.apply_move(game, "bobby", 0, 2, 4, False, NOW)

    assert len(game.players["alice"].error_cells) == 1


def test_hint_reveals_solution_value():
    game = make_game()
    result = session_machine.use_hint(game, "alice", NOW, random.Random(0))

    solution = decode_board(SOLUTION)
    assert result.value == solution[result.row, result.col]
    assert decode_board(PUZZLE)[result.row, result.col] == 0
    assert decode_board(game.players["alice"].board)[result.row, result.col] == result.value
    assert result.hints_remaining == 2
    assert game.players["alice"].hints == 2


def test_hints_run_out():
    game = make_game()
    for _ in range(3):
        session_machine.use_hint(game, "alice", NOW)
    with pytest.raises(StateError) as excinfo:
        session_machine.use_hint(game, "alice", NOW)
    assert excinfo.value.reason == "no_hints_left"


def test_hint_on_last_cell_wins():
    game = make_game()
    row, col = solve_all_but_last(game, "alice")
    result = session_machine.use_hint(game, "alice", NOW)
    assert (result.row, result.col) == (row, col)
    assert result.is_complete
    assert result.winner == "alice"
    assert game.status == GameStatus.finished


def test_hint_with_no_empty_cell():
    game = make_game()
    # a wrong value fills the last cell without finishing the game
    row, col = solve_all_but_last(game, "alice")
    wrong = 1 if decode_board(SOLUTION)[row, col] != 1 else 2
    session_machine.apply_move(game, "alice", row, col, wrong, False, NOW)
    assert game.status == GameStatus.active
    with pytest.raises(StateError) as excinfo:
        session_machine.use_hint(game, "alice", NOW)
    assert excinfo.value.reason == "no_empty_cells"


def test_is_expired():
    game = make_game()
    assert not session_machine.is_expired(game, NOW + timedelta(hours=23))
    assert session_machine.is_expired(game, NOW + timedelta(hours=24))
