from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .models import Card, Cell, GameSession, RuleMode, create_cell
from .store import ensure_parent


def cell_to_dict(cell: Cell) -> Dict[str, object]:
    out: Dict[str, object] = {
        "index": cell.index,
        "row": cell.row,
        "col": cell.col,
        "isFree": cell.is_free,
    }
    if cell.number is not None:
        out["number"] = cell.number
    return out


def cell_from_dict(data: Mapping[str, Any]) -> Cell:
    # row/col/isFree are derived from the index; stored copies are informational.
    number = data.get("number")
    return create_cell(int(data["index"]), None if number is None else int(number))


def card_to_dict(card: Card) -> Dict[str, object]:
    return {
        "id": card.id,
        "name": card.name,
        "createdAt": card.created_at,
        "cells": [cell_to_dict(c) for c in card.cells],
        "hasFreeCenter": card.has_free_center,
    }


def card_from_dict(data: Mapping[str, Any]) -> Card:
    return Card(
        id=str(data["id"]),
        name=str(data.get("name", "")),
        created_at=int(data.get("createdAt", 0)),
        cells=[cell_from_dict(c) for c in data.get("cells", [])],
        has_free_center=bool(data.get("hasFreeCenter", True)),
    )


def session_to_dict(session: GameSession) -> Dict[str, object]:
    return {
        "id": session.id,
        "startedAt": session.started_at,
        "cardIds": list(session.card_ids),
        "calledNumbers": list(session.called_numbers),
        "ruleMode": session.rule_mode.value,
        "detectWins": session.detect_wins,
    }


def session_from_dict(data: Mapping[str, Any]) -> GameSession:
    return GameSession(
        id=str(data["id"]),
        started_at=int(data.get("startedAt", 0)),
        card_ids=[str(x) for x in data.get("cardIds", [])],
        called_numbers=[int(x) for x in data.get("calledNumbers", [])],
        rule_mode=RuleMode(str(data.get("ruleMode", RuleMode.STANDARD.value))),
        detect_wins=bool(data.get("detectWins", True)),
    )


def write_json(path: Path, data: object, *, mkdirs: bool, overwrite: bool) -> None:
    if path.exists() and not overwrite:
        raise FileExistsError(
            f"Refusing to overwrite existing file without --force: {path}"
        )
    ensure_parent(path, mkdirs=mkdirs)
    text = json.dumps(data, ensure_ascii=True, sort_keys=True, indent=2)
    path.write_text(text + "\n", encoding="utf-8")


def emit_cards_json(
    path: Path,
    *,
    cards: Sequence[Card],
    mkdirs: bool,
    overwrite: bool,
) -> None:
    write_json(path, {"cards": [card_to_dict(c) for c in cards]}, mkdirs=mkdirs, overwrite=overwrite)


def load_cards_json(path: Path) -> List[Card]:
    data = json.loads(path.read_text(encoding="utf-8"))
    entries: Optional[List[Any]] = data.get("cards") if isinstance(data, dict) else data
    if not isinstance(entries, list):
        raise ValueError(f"Expected a list of cards in {path}")
    cards: List[Card] = []
    for pos, entry in enumerate(entries):
        try:
            cards.append(card_from_dict(entry))
        except (KeyError, TypeError, ValueError) as exc:
            raise ValueError(f"Malformed card entry #{pos} in {path}: {exc!r}") from exc
    return cards
