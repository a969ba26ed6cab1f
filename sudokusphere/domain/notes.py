"""Candidate notes for player boards.

Notes are a ``numpy.uint16`` array of shape (9, 9). Each cell is a 9-bit mask:
bit ``d - 1`` set means digit ``d`` is pencilled in.
"""

import json
import logging
from typing import List

import numpy as np

from sudokusphere.domain.board import BOX_SIZE, DIGITS, SIZE, box_origin

FULL_MASK = 0x1FF


def empty_notes() -> np.ndarray:
    return np.zeros((SIZE, SIZE), dtype=np.uint16)


def digit_bit(value: int) -> np.uint16:
    return np.uint16(1 << (value - 1))


def toggle_note(notes: np.ndarray, row: int, col: int, value: int) -> None:
    """Add ``value`` to the cell's candidates if absent, otherwise remove it."""
    notes[row, col] ^= digit_bit(value)


def clear_cell_notes(notes: np.ndarray, row: int, col: int) -> None:
    notes[row, col] = 0


def clear_value_around(notes: np.ndarray, row: int, col: int, value: int) -> None:
    """Remove ``value`` from every cell sharing the row, column or box of (row, col)."""
    mask = np.uint16(FULL_MASK ^ (1 << (value - 1)))
    notes[row, :] &= mask
    notes[:, col] &= mask
    box_row, box_col = box_origin(row, col)
    notes[box_row:box_row + BOX_SIZE, box_col:box_col + BOX_SIZE] &= mask


def cell_candidates(notes: np.ndarray, row: int, col: int) -> List[int]:
    mask = int(notes[row, col])
    return [digit for digit in DIGITS if mask & (1 << (digit - 1))]


def notes_to_lists(notes: np.ndarray) -> List[List[List[int]]]:
    return [[cell_candidates(notes, row, col) for col in range(SIZE)] for row in range(SIZE)]


def encode_notes(notes: np.ndarray) -> str:
    """Encode notes as JSON: 9 rows of 9 sorted candidate lists."""
    return json.dumps(notes_to_lists(notes), separators=(",", ":"))


def _cells_from(parsed) -> list | None:
    if not isinstance(parsed, list):
        return None
    if len(parsed) == SIZE and all(isinstance(row, list) and len(row) == SIZE for row in parsed):
        return [cell for row in parsed for cell in row]
    if len(parsed) == SIZE * SIZE:
        return parsed
    return None


def decode_notes(notes_string) -> np.ndarray:
    """Decode notes from JSON (or an already parsed list).

    Accepts the nested 9x9 layout or a flat list of 81 cells. Missing or
    malformed input yields an all-empty grid.
    """
    if not notes_string:
        return empty_notes()

    try:
        parsed = json.loads(notes_string) if isinstance(notes_string, str) else notes_string
    except (TypeError, ValueError) as e:
        logging.warning(f"Failed to parse notes string: {e}")
        return empty_notes()

    cells = _cells_from(parsed)
    if cells is None:
        logging.warning("Notes have an unexpected shape, using empty notes")
        return empty_notes()

    notes = empty_notes()
    for index, cell in enumerate(cells):
        if not isinstance(cell, list) or len(cell) > SIZE:
            logging.warning("Notes contain a malformed cell, using empty notes")
            return empty_notes()
        mask = 0
        for digit in cell:
            if isinstance(digit, bool) or not isinstance(digit, int) or digit not in DIGITS:
                logging.warning("Notes contain an invalid digit, using empty notes")
                return empty_notes()
            mask |= 1 << (digit - 1)
        notes[index // SIZE, index % SIZE] = mask
    return notes
