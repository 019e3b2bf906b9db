from __future__ import annotations

from typing import List, Optional

import pytest

from bingo_assist.models import Card, create_cell, create_empty_card

# Column-major: B column top to bottom, then I, N (4 numbers, center is FREE), G, O.
SAMPLE_COLUMNS: List[List[Optional[int]]] = [
    [1, 2, 3, 4, 5],
    [16, 17, 18, 19, 20],
    [31, 32, None, 33, 34],
    [46, 47, 48, 49, 50],
    [61, 62, 63, 64, 65],
]


def build_card(columns: List[List[Optional[int]]], card_id: str = "card-1", name: str = "Sample") -> Card:
    card = create_empty_card(card_id, name)
    for col, values in enumerate(columns):
        for row, num in enumerate(values):
            index = row * 5 + col
            card.cells[index] = create_cell(index, num)
    return card


def numbers_at(card: Card, indices) -> List[int]:
    return [card.cells[i].number for i in indices if card.cells[i].number is not None]


@pytest.fixture
def sample_card() -> Card:
    return build_card(SAMPLE_COLUMNS)


@pytest.fixture(autouse=True)
def _wide_terminal(monkeypatch):
    # Rich wraps output at the terminal width (80 columns when not a TTY);
    # long tmp paths would otherwise split asserted messages across lines.
    monkeypatch.setenv("COLUMNS", "200")
