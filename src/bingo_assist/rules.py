"""Rules engine: marks from called numbers, win verdicts from marks.

Every function here is pure. Callers may evaluate on each state change
without caching.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Dict, Iterable, List, Optional, Sequence, Set, Tuple, Union

from .models import LINE_IDS, LINE_INDICES, PERIMETER_INDICES, Card, RuleMode


@dataclass(frozen=True)
class NotWon:
    completed_line_count: Optional[int] = None

    is_win: ClassVar[bool] = False
    win_type: ClassVar[Optional[str]] = None
    winning_lines: ClassVar[Optional[Tuple[str, ...]]] = None

    def to_dict(self) -> Dict[str, object]:
        out: Dict[str, object] = {"isWin": False}
        if self.completed_line_count is not None:
            out["completedLineCount"] = self.completed_line_count
        return out


@dataclass(frozen=True)
class Won:
    win_type: str
    winning_lines: Optional[Tuple[str, ...]] = None
    completed_line_count: Optional[int] = None

    is_win: ClassVar[bool] = True

    def to_dict(self) -> Dict[str, object]:
        out: Dict[str, object] = {"isWin": True, "winType": self.win_type}
        if self.winning_lines is not None:
            out["winningLines"] = list(self.winning_lines)
        if self.completed_line_count is not None:
            out["completedLineCount"] = self.completed_line_count
        return out


WinResult = Union[NotWon, Won]

WIN_TYPES: Dict[RuleMode, str] = {
    RuleMode.STANDARD: "Standard Bingo",
    RuleMode.DOUBLE: "Double Bingo",
    RuleMode.BOX: "Box Bingo",
    RuleMode.X: "X Bingo",
    RuleMode.BLACKOUT: "Blackout",
}


def compute_marks(card: Card, called_numbers: Iterable[int]) -> List[bool]:
    called = set(called_numbers)
    return [cell.is_free or (cell.number is not None and cell.number in called) for cell in card.cells]


def is_line_complete(marks: Sequence[bool], line_id: str) -> bool:
    return all(marks[i] for i in LINE_INDICES[line_id])


def get_completed_lines(marks: Sequence[bool]) -> List[str]:
    return [line_id for line_id in LINE_IDS if is_line_complete(marks, line_id)]


def is_box_complete(marks: Sequence[bool]) -> bool:
    return all(marks[i] for i in PERIMETER_INDICES)


def is_x_complete(marks: Sequence[bool]) -> bool:
    return is_line_complete(marks, "diagMain") and is_line_complete(marks, "diagAnti")


def is_blackout(marks: Sequence[bool]) -> bool:
    return all(marks)


def _coerce_mode(rule_mode: object) -> Optional[RuleMode]:
    if isinstance(rule_mode, RuleMode):
        return rule_mode
    try:
        return RuleMode(str(rule_mode).upper())
    except ValueError:
        return None


def detect_wins(card: Optional[Card], marks: Sequence[bool], rule_mode: Union[RuleMode, str]) -> WinResult:
    """Evaluate marks under a rule mode.

    The card argument is accepted for symmetry with compute_marks; the verdict
    depends on the marks only. Unknown modes produce a bare NotWon.
    """
    mode = _coerce_mode(rule_mode)
    if mode is None or mode is RuleMode.NONE:
        return NotWon()

    completed = tuple(get_completed_lines(marks))
    count = len(completed)

    if mode is RuleMode.STANDARD:
        if count >= 1:
            return Won(WIN_TYPES[mode], winning_lines=completed, completed_line_count=count)
        return NotWon(completed_line_count=0)

    if mode is RuleMode.DOUBLE:
        if count >= 2:
            return Won(WIN_TYPES[mode], winning_lines=completed, completed_line_count=count)
        return NotWon(completed_line_count=count)

    if mode is RuleMode.BOX:
        if is_box_complete(marks):
            return Won(WIN_TYPES[mode])
        return NotWon(completed_line_count=count)

    if mode is RuleMode.X:
        if is_x_complete(marks):
            return Won(WIN_TYPES[mode], winning_lines=("diagMain", "diagAnti"))
        return NotWon(completed_line_count=count)

    if mode is RuleMode.BLACKOUT:
        if is_blackout(marks):
            return Won(WIN_TYPES[mode])
        return NotWon(completed_line_count=count)

    return NotWon()


def winning_indices(marks: Sequence[bool], rule_mode: Union[RuleMode, str]) -> Set[int]:
    """Cells belonging to the winning lines, for highlighting."""
    result = detect_wins(None, marks, rule_mode)
    cells: Set[int] = set()
    if result.is_win and result.winning_lines:
        for line_id in result.winning_lines:
            cells.update(LINE_INDICES[line_id])
    return cells
