"""Track 75-ball bingo cards against called numbers and detect wins."""

from .models import (
    LINE_IDS,
    LINE_INDICES,
    NOT_FOUND,
    PERIMETER_INDICES,
    Card,
    Cell,
    GameSession,
    RuleMode,
    create_cell,
    create_empty_card,
    get_column_for_number,
    is_valid_number_for_column,
)
from .rules import (
    NotWon,
    WinResult,
    Won,
    compute_marks,
    detect_wins,
    get_completed_lines,
    is_blackout,
    is_box_complete,
    is_line_complete,
    is_x_complete,
)
from .version import __version__

__all__ = [
    "LINE_IDS",
    "LINE_INDICES",
    "NOT_FOUND",
    "PERIMETER_INDICES",
    "Card",
    "Cell",
    "GameSession",
    "RuleMode",
    "create_cell",
    "create_empty_card",
    "get_column_for_number",
    "is_valid_number_for_column",
    "NotWon",
    "WinResult",
    "Won",
    "compute_marks",
    "detect_wins",
    "get_completed_lines",
    "is_blackout",
    "is_box_complete",
    "is_line_complete",
    "is_x_complete",
    "__version__",
]
