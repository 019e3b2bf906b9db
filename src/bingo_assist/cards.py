"""Card repository backed by a key-value store."""

from __future__ import annotations

import dataclasses
import logging
from typing import Any, List, Optional, Sequence

from .editor import CardValidationError, check_cell_number
from .models import FREE_INDEX, Card, Cell, create_cell, create_empty_card, generate_id, now_ms
from .serialize import card_from_dict, card_to_dict
from .store import KeyValueStore

logger = logging.getLogger(__name__)

CARDS_KEY = "bingo-cards-storage"


class CardNotFoundError(KeyError):
    def __init__(self, card_id: str):
        super().__init__(card_id)
        self.card_id = card_id

    def __str__(self) -> str:
        return f"Card not found: {self.card_id}"


class CardRepository:
    def __init__(self, store: KeyValueStore):
        self.store = store

    def _load(self) -> List[Card]:
        return [card_from_dict(d) for d in self.store.get(CARDS_KEY, [])]

    def _save(self, cards: Sequence[Card]) -> None:
        self.store.set(CARDS_KEY, [card_to_dict(c) for c in cards])

    def list_cards(self) -> List[Card]:
        return self._load()

    def get_card(self, card_id: str) -> Optional[Card]:
        for card in self._load():
            if card.id == card_id:
                return card
        return None

    def require_card(self, card_id: str) -> Card:
        card = self.get_card(card_id)
        if card is None:
            raise CardNotFoundError(card_id)
        return card

    def add_card(self, card: Card) -> str:
        if not card.id:
            card = dataclasses.replace(card, id=generate_id())
        if not card.created_at:
            card = dataclasses.replace(card, created_at=now_ms())
        cards = self._load()
        cards.append(card)
        self._save(cards)
        logger.debug("Added card %s (%s)", card.id, card.name)
        return card.id

    def create_new_card(self, name: str) -> str:
        card = create_empty_card(generate_id(), name)
        return self.add_card(card)

    def update_card(self, card_id: str, **updates: Any) -> Card:
        cards = self._load()
        for pos, card in enumerate(cards):
            if card.id == card_id:
                updated = dataclasses.replace(card, **updates)
                cards[pos] = updated
                self._save(cards)
                return updated
        raise CardNotFoundError(card_id)

    def set_card_cells(self, card_id: str, cells: Sequence[Cell]) -> Card:
        return self.update_card(card_id, cells=list(cells))

    def set_cell_number(self, card_id: str, index: int, number: Optional[int]) -> Card:
        """Assign (or clear, with None) the number of one cell."""
        card = self.require_card(card_id)
        if index < 0 or index >= len(card.cells):
            raise CardValidationError(f"Cell index must be within 0..{len(card.cells) - 1}, got {index}")
        if number is not None:
            check_cell_number(card, index, number)
        cells = list(card.cells)
        cells[index] = create_cell(index, None if index == FREE_INDEX else number)
        return self.set_card_cells(card_id, cells)

    def delete_card(self, card_id: str) -> None:
        cards = self._load()
        remaining = [c for c in cards if c.id != card_id]
        if len(remaining) == len(cards):
            raise CardNotFoundError(card_id)
        self._save(remaining)
        logger.debug("Deleted card %s", card_id)

    def clear_cards(self) -> None:
        self._save([])
