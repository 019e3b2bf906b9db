"""Card editing rules: which numbers a cell may take, and card completeness."""

from __future__ import annotations

from collections import Counter
from typing import Dict, List, Optional, Set

from .models import (
    CELL_COUNT,
    COLUMN_RANGES,
    FREE_INDEX,
    GRID_SIZE,
    Card,
    column_letter,
    is_valid_number_for_column,
)


class CardValidationError(ValueError):
    """Raised when an edit would break the card's column rules."""


def used_numbers_in_column(card: Card, col: int) -> Set[int]:
    used: Set[int] = set()
    for row in range(GRID_SIZE):
        index = row * GRID_SIZE + col
        if index == FREE_INDEX:
            continue
        num = card.cells[index].number
        if num is not None:
            used.add(num)
    return used


def check_cell_number(card: Card, index: int, number: int) -> None:
    if index < 0 or index >= CELL_COUNT:
        raise CardValidationError(f"Cell index must be within 0..{CELL_COUNT - 1}, got {index}")
    if index == FREE_INDEX:
        raise CardValidationError("The center cell is FREE and cannot hold a number")
    col = index % GRID_SIZE
    letter = column_letter(col)
    if not is_valid_number_for_column(number, col):
        lo, hi, _ = COLUMN_RANGES[col]
        raise CardValidationError(
            f"Number {number} is not valid for column {letter} ({lo}-{hi})"
        )
    current = card.cells[index].number
    if number != current and number in used_numbers_in_column(card, col):
        raise CardValidationError(f"Number {number} already used in column {letter}")


def filled_count(card: Card) -> int:
    return sum(1 for cell in card.cells if cell.is_free or cell.number is not None)


def is_card_complete(card: Card) -> bool:
    return all(cell.is_free or cell.number is not None for cell in card.cells)


def next_cell_index(index: int) -> Optional[int]:
    """Next cell in column-major fill order, skipping the free center."""
    col = index % GRID_SIZE
    row = index // GRID_SIZE
    if row < GRID_SIZE - 1:
        nxt = (row + 1) * GRID_SIZE + col
        if nxt == FREE_INDEX:
            if row + 1 < GRID_SIZE - 1:
                return (row + 2) * GRID_SIZE + col
            return col + 1 if col < GRID_SIZE - 1 else None
        return nxt
    if col < GRID_SIZE - 1:
        return col + 1
    return None


def fill_order() -> List[int]:
    order: List[int] = []
    cursor: Optional[int] = 0
    while cursor is not None:
        order.append(cursor)
        cursor = next_cell_index(cursor)
    return order


def verify_card(card: Card) -> Dict[str, object]:
    out_of_range: List[int] = []
    duplicates: Dict[str, List[int]] = {}
    numbered_free = False
    for cell in card.cells:
        if cell.is_free:
            numbered_free = numbered_free or cell.number is not None
            continue
        if cell.number is not None and not is_valid_number_for_column(cell.number, cell.col):
            out_of_range.append(cell.index)
    for col in range(GRID_SIZE):
        counts: Counter[int] = Counter(
            cell.number
            for cell in card.cells
            if cell.col == col and not cell.is_free and cell.number is not None
        )
        dupes = sorted(num for num, c in counts.items() if c > 1)
        if dupes:
            duplicates[column_letter(col)] = dupes
    free_ok = (
        len(card.cells) == CELL_COUNT
        and [c.index for c in card.cells if c.is_free] == [FREE_INDEX]
        and not numbered_free
    )
    ok_shape = len(card.cells) == CELL_COUNT
    # Marks and line geometry are positional, so cell i must carry index i.
    ok_indices = [c.index for c in card.cells] == list(range(CELL_COUNT))
    complete = ok_shape and is_card_complete(card)
    return {
        "cell_count": len(card.cells),
        "ok_cell_count": ok_shape,
        "ok_free_center": free_ok,
        "ok_indices": ok_indices,
        "out_of_range_cells": out_of_range,
        "column_duplicates": duplicates,
        "filled": filled_count(card),
        "complete": complete,
        "ok": ok_shape and ok_indices and free_ok and not out_of_range and not duplicates,
    }
