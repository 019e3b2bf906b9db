from __future__ import annotations

from hypothesis import given, strategies as st

from bingo_assist.models import LINE_IDS, LINE_INDICES, PERIMETER_INDICES, RuleMode, create_cell, create_empty_card
from bingo_assist.rules import (
    NotWon,
    Won,
    compute_marks,
    detect_wins,
    get_completed_lines,
    is_blackout,
    is_box_complete,
    is_line_complete,
    is_x_complete,
    winning_indices,
)
from conftest import SAMPLE_COLUMNS, build_card, numbers_at

marks_strategy = st.lists(st.booleans(), min_size=25, max_size=25).map(
    lambda m: [True if i == 12 else v for i, v in enumerate(m)]
)


@given(called=st.sets(st.integers(min_value=-5, max_value=90)))
def test_free_center_always_marked_and_membership_rule(called):
    card = build_card(SAMPLE_COLUMNS)
    card.cells[0] = create_cell(0)
    marks = compute_marks(card, called)
    assert len(marks) == 25
    assert marks[12] is True
    assert marks[0] is False
    for cell in card.cells[1:]:
        if not cell.is_free:
            assert marks[cell.index] == (cell.number in called)


def test_order_and_duplicates_of_called_numbers_are_irrelevant(sample_card):
    a = compute_marks(sample_card, [1, 16, 1, 31, 99])
    b = compute_marks(sample_card, [31, 16, 1])
    assert a == b


def test_empty_card_never_marked_beyond_center():
    card = create_empty_card("c", "Empty")
    marks = compute_marks(card, range(1, 76))
    assert marks == [i == 12 for i in range(25)]


@given(marks=marks_strategy)
def test_completed_lines_ordered_subsequence_and_idempotent(marks):
    lines = get_completed_lines(marks)
    assert lines == get_completed_lines(marks)
    positions = [LINE_IDS.index(line) for line in lines]
    assert positions == sorted(positions)
    for line in LINE_IDS:
        assert (line in lines) == all(marks[i] for i in LINE_INDICES[line])


@given(marks=marks_strategy, extra=st.sets(st.integers(min_value=0, max_value=24)))
def test_completed_lines_monotonic(marks, extra):
    more = [v or i in extra for i, v in enumerate(marks)]
    before = get_completed_lines(marks)
    after = get_completed_lines(more)
    assert set(before) <= set(after)


def test_fresh_card_never_wins():
    card = create_empty_card("c", "Empty")
    marks = compute_marks(card, [])
    for mode in RuleMode:
        assert detect_wins(card, marks, mode).is_win is False


def test_scenario_standard_single_row(sample_card):
    marks = compute_marks(sample_card, [1, 16, 31, 46, 61])
    result = detect_wins(sample_card, marks, RuleMode.STANDARD)
    assert result == Won("Standard Bingo", winning_lines=("row0",), completed_line_count=1)
    assert result.to_dict() == {
        "isWin": True,
        "winType": "Standard Bingo",
        "winningLines": ["row0"],
        "completedLineCount": 1,
    }


def test_standard_loss_reports_zero(sample_card):
    marks = compute_marks(sample_card, [1, 16])
    assert detect_wins(sample_card, marks, "STANDARD") == NotWon(completed_line_count=0)


def test_scenario_blackout(sample_card):
    every = [n for n in numbers_at(sample_card, range(25))]
    assert len(every) == 24
    assert is_blackout(compute_marks(sample_card, every)) is True
    marks = compute_marks(sample_card, every[1:])
    assert is_blackout(marks) is False
    result = detect_wins(sample_card, compute_marks(sample_card, every), RuleMode.BLACKOUT)
    assert result.to_dict() == {"isWin": True, "winType": "Blackout"}


def test_scenario_x(sample_card):
    diag_main = numbers_at(sample_card, LINE_INDICES["diagMain"])
    diag_anti = numbers_at(sample_card, LINE_INDICES["diagAnti"])
    marks = compute_marks(sample_card, diag_main + diag_anti)
    assert is_x_complete(marks) is True
    result = detect_wins(sample_card, marks, RuleMode.X)
    assert result.is_win
    assert result.winning_lines == ("diagMain", "diagAnti")
    assert result.to_dict() == {
        "isWin": True,
        "winType": "X Bingo",
        "winningLines": ["diagMain", "diagAnti"],
    }

    only_main = compute_marks(sample_card, diag_main)
    assert is_line_complete(only_main, "diagMain") is True
    assert is_x_complete(only_main) is False
    assert detect_wins(sample_card, only_main, RuleMode.X) == NotWon(completed_line_count=1)


def test_scenario_box(sample_card):
    perimeter = numbers_at(sample_card, PERIMETER_INDICES)
    assert len(perimeter) == 16
    marks = compute_marks(sample_card, perimeter)
    assert is_box_complete(marks) is True
    assert is_blackout(marks) is False
    result = detect_wins(sample_card, marks, RuleMode.BOX)
    assert result.to_dict() == {"isWin": True, "winType": "Box Bingo"}
    # rows 0 and 4 plus columns 0 and 4 are complete along the way
    assert get_completed_lines(marks) == ["row0", "row4", "col0", "col4"]


def test_scenario_double(sample_card):
    row0 = numbers_at(sample_card, LINE_INDICES["row0"])
    one_line = compute_marks(sample_card, row0)
    result = detect_wins(sample_card, one_line, RuleMode.DOUBLE)
    assert result.is_win is False
    assert result.completed_line_count == 1

    col4 = numbers_at(sample_card, LINE_INDICES["col4"])
    two_lines = compute_marks(sample_card, row0 + col4)
    result = detect_wins(sample_card, two_lines, RuleMode.DOUBLE)
    assert result.is_win is True
    assert result.win_type == "Double Bingo"
    assert result.winning_lines == ("row0", "col4")
    assert result.completed_line_count == 2


def test_none_mode_and_unknown_mode_are_bare_losses(sample_card):
    marks = [True] * 25
    assert detect_wins(sample_card, marks, RuleMode.NONE).to_dict() == {"isWin": False}
    assert detect_wins(sample_card, marks, "DIAMOND") == NotWon()
    assert detect_wins(sample_card, marks, 42) == NotWon()


def test_non_line_losses_report_progress(sample_card):
    row0 = numbers_at(sample_card, LINE_INDICES["row0"])
    marks = compute_marks(sample_card, row0)
    for mode in (RuleMode.BOX, RuleMode.X, RuleMode.BLACKOUT):
        assert detect_wins(sample_card, marks, mode).completed_line_count == 1


def test_winning_indices_cover_winning_lines(sample_card):
    row0 = numbers_at(sample_card, LINE_INDICES["row0"])
    marks = compute_marks(sample_card, row0)
    assert winning_indices(marks, RuleMode.STANDARD) == {0, 1, 2, 3, 4}
    assert winning_indices(marks, RuleMode.DOUBLE) == set()
    assert winning_indices([True] * 25, RuleMode.BLACKOUT) == set()
