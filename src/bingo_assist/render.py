"""Terminal rendering of cards and called numbers with rich."""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence, Set

from rich.table import Table
from rich.text import Text

from .models import BINGO_LETTERS, COLUMN_RANGES, GRID_SIZE, RULE_MODE_LABELS, Card, RuleMode, get_column_for_number
from .rules import WinResult

COLUMN_STYLES = ("red", "dark_orange", "green", "blue", "magenta")


def _cell_text(card: Card, index: int, marks: Optional[Sequence[bool]], winning: Set[int]) -> Text:
    cell = card.cells[index]
    label = "FREE" if cell.is_free else ("" if cell.number is None else str(cell.number))
    if not label:
        return Text("·", style="dim")
    if index in winning:
        return Text(label, style="bold black on yellow")
    if marks is not None and marks[index]:
        return Text(label, style=f"bold white on {COLUMN_STYLES[cell.col]}")
    if cell.is_free:
        return Text(label, style="green")
    return Text(label)


def card_table(
    card: Card,
    marks: Optional[Sequence[bool]] = None,
    winning: Optional[Set[int]] = None,
    *,
    title: Optional[str] = None,
) -> Table:
    table = Table(title=title or card.name, show_lines=True, header_style="bold")
    for col, letter in enumerate(BINGO_LETTERS):
        lo, hi, _ = COLUMN_RANGES[col]
        table.add_column(f"{letter}\n{lo}-{hi}", justify="center", style=COLUMN_STYLES[col], min_width=5)
    win_cells = winning or set()
    for row in range(GRID_SIZE):
        table.add_row(
            *[_cell_text(card, row * GRID_SIZE + col, marks, win_cells) for col in range(GRID_SIZE)]
        )
    return table


def describe_result(result: WinResult, rule_mode: RuleMode) -> str:
    if result.is_win:
        lines = ", ".join(result.winning_lines) if result.winning_lines else ""
        suffix = f" ({lines})" if lines else ""
        return f"[bold green]BINGO![/] {result.win_type}{suffix}"
    name, _description = RULE_MODE_LABELS[rule_mode]
    if result.completed_line_count is None:
        return f"{name}: no win detection"
    return f"{name}: {result.completed_line_count} line(s) complete"


def called_numbers_table(called: Iterable[int]) -> Table:
    """Called numbers grouped under their column letter, in call order."""
    groups: Dict[str, List[str]] = {letter: [] for letter in BINGO_LETTERS}
    for num in called:
        col = get_column_for_number(num)
        if col >= 0:
            groups[BINGO_LETTERS[col]].append(str(num))
    table = Table(title="Called numbers", show_header=True, header_style="bold")
    table.add_column("Col")
    table.add_column("Numbers")
    for letter in BINGO_LETTERS:
        table.add_row(letter, " ".join(groups[letter]) or "-")
    return table
