"""Card model for 75-ball bingo.

Columns: B(1-15), I(16-30), N(31-45), G(46-60), O(61-75). The center cell
(index 12) is the free space.
"""

from __future__ import annotations

import random
import string
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

GRID_SIZE = 5
CELL_COUNT = GRID_SIZE * GRID_SIZE
FREE_INDEX = 12
NOT_FOUND = -1


class RuleMode(str, Enum):
    STANDARD = "STANDARD"
    DOUBLE = "DOUBLE"
    BOX = "BOX"
    X = "X"
    BLACKOUT = "BLACKOUT"
    NONE = "NONE"


RULE_MODES: List[RuleMode] = list(RuleMode)

RULE_MODE_LABELS: Dict[RuleMode, Tuple[str, str]] = {
    RuleMode.STANDARD: ("Single Line", "Any row, column, or diagonal"),
    RuleMode.DOUBLE: ("Double Bingo", "Complete 2 lines"),
    RuleMode.BOX: ("Picture Frame", "All 16 outer edge squares"),
    RuleMode.X: ("X Pattern", "Both diagonals"),
    RuleMode.BLACKOUT: ("Blackout", "All 25 squares"),
    RuleMode.NONE: ("Free Play", "No win detection"),
}

BINGO_LETTERS: Tuple[str, ...] = ("B", "I", "N", "G", "O")

# col -> (min, max, letter)
COLUMN_RANGES: Dict[int, Tuple[int, int, str]] = {
    col: (15 * col + 1, 15 * col + 15, BINGO_LETTERS[col]) for col in range(GRID_SIZE)
}


def _build_line_indices() -> Dict[str, Tuple[int, ...]]:
    lines: Dict[str, Tuple[int, ...]] = {}
    for r in range(GRID_SIZE):
        lines[f"row{r}"] = tuple(r * GRID_SIZE + c for c in range(GRID_SIZE))
    for c in range(GRID_SIZE):
        lines[f"col{c}"] = tuple(r * GRID_SIZE + c for r in range(GRID_SIZE))
    lines["diagMain"] = tuple(i * GRID_SIZE + i for i in range(GRID_SIZE))
    lines["diagAnti"] = tuple(i * GRID_SIZE + (GRID_SIZE - 1 - i) for i in range(GRID_SIZE))
    return lines


# Insertion order is the enumeration order used for completed-line reporting.
LINE_INDICES: Dict[str, Tuple[int, ...]] = _build_line_indices()
LINE_IDS: Tuple[str, ...] = tuple(LINE_INDICES)

PERIMETER_INDICES: Tuple[int, ...] = (
    0, 1, 2, 3, 4,
    20, 21, 22, 23, 24,
    5, 10, 15,
    9, 14, 19,
)


@dataclass(frozen=True)
class Cell:
    index: int
    row: int
    col: int
    number: Optional[int] = None
    is_free: bool = False


@dataclass
class Card:
    id: str
    name: str
    created_at: int
    cells: List[Cell] = field(default_factory=list)
    has_free_center: bool = True

    def numbers(self) -> List[Optional[int]]:
        return [cell.number for cell in self.cells]


def create_cell(index: int, number: Optional[int] = None) -> Cell:
    is_free = index == FREE_INDEX
    return Cell(
        index=index,
        row=index // GRID_SIZE,
        col=index % GRID_SIZE,
        number=None if is_free else number,
        is_free=is_free,
    )


def now_ms() -> int:
    return int(time.time() * 1000)


def create_empty_card(id: str, name: str) -> Card:
    return Card(
        id=id,
        name=name,
        created_at=now_ms(),
        cells=[create_cell(i) for i in range(CELL_COUNT)],
        has_free_center=True,
    )


def is_valid_number_for_column(num: int, col: int) -> bool:
    bounds = COLUMN_RANGES.get(col)
    if bounds is None:
        return False
    lo, hi, _letter = bounds
    return lo <= num <= hi


def get_column_for_number(num: int) -> int:
    """Return the column (0..4) a number belongs to, or NOT_FOUND outside 1..75."""
    if num < 1 or num > 75:
        return NOT_FOUND
    return (num - 1) // 15


def column_letter(col: int) -> str:
    return BINGO_LETTERS[col]


def generate_id() -> str:
    alphabet = string.ascii_lowercase + string.digits
    suffix = "".join(random.choice(alphabet) for _ in range(9))
    return f"{now_ms()}-{suffix}"


@dataclass
class GameSession:
    id: str
    started_at: int
    card_ids: List[str] = field(default_factory=list)
    # Call order is kept for display only; marks ignore it.
    called_numbers: List[int] = field(default_factory=list)
    rule_mode: RuleMode = RuleMode.STANDARD
    detect_wins: bool = True
