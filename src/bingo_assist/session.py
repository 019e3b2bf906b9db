"""Game session state and win announcement bookkeeping."""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Set, Tuple, Union

from .models import GameSession, Card, RuleMode, generate_id, now_ms
from .rules import NotWon, WinResult, compute_marks, detect_wins
from .serialize import session_from_dict, session_to_dict
from .store import KeyValueStore

logger = logging.getLogger(__name__)

SESSION_KEY = "bingo-session-storage"
CELEBRATED_KEY = "bingo-celebrated-wins"


class NoActiveSessionError(RuntimeError):
    def __init__(self) -> None:
        super().__init__("No active session; start one first")


@dataclass(frozen=True)
class CardStatus:
    card: Card
    marks: List[bool]
    result: WinResult


class SessionManager:
    def __init__(self, store: KeyValueStore):
        self.store = store

    @property
    def current(self) -> Optional[GameSession]:
        data = self.store.get(SESSION_KEY)
        if data is None:
            return None
        return session_from_dict(data)

    def _require(self) -> GameSession:
        session = self.current
        if session is None:
            raise NoActiveSessionError()
        return session

    def _save(self, session: Optional[GameSession]) -> None:
        self.store.set(SESSION_KEY, None if session is None else session_to_dict(session))

    def start_session(
        self,
        card_ids: Sequence[str],
        rule_mode: Union[RuleMode, str] = RuleMode.STANDARD,
        detect_wins: bool = True,
    ) -> GameSession:
        """Start a session over the given cards.

        A session already in progress hands over its called numbers and rule
        mode, so restarting with a different card selection keeps the game.
        """
        previous = self.current
        session = GameSession(
            id=generate_id(),
            started_at=now_ms(),
            card_ids=list(card_ids),
            called_numbers=list(previous.called_numbers) if previous else [],
            rule_mode=previous.rule_mode if previous else RuleMode(rule_mode),
            detect_wins=detect_wins,
        )
        self._save(session)
        logger.debug("Started session %s with %d cards", session.id, len(session.card_ids))
        return session

    def end_session(self) -> None:
        self._save(None)

    def toggle_called_number(self, num: int) -> GameSession:
        if num < 1 or num > 75:
            raise ValueError(f"Called numbers must be within 1..75, got {num}")
        session = self._require()
        called = list(session.called_numbers)
        if num in called:
            called.remove(num)
        else:
            called.append(num)
        session = dataclasses.replace(session, called_numbers=called)
        self._save(session)
        return session

    def set_rule_mode(self, mode: Union[RuleMode, str]) -> GameSession:
        session = dataclasses.replace(self._require(), rule_mode=RuleMode(mode))
        self._save(session)
        return session

    def reset_marks(self) -> GameSession:
        session = dataclasses.replace(self._require(), called_numbers=[])
        self._save(session)
        return session

    def set_detect_wins(self, detect: bool) -> GameSession:
        session = dataclasses.replace(self._require(), detect_wins=detect)
        self._save(session)
        return session


def evaluate(cards: Sequence[Card], session: GameSession) -> List[CardStatus]:
    statuses: List[CardStatus] = []
    for card in cards:
        marks = compute_marks(card, session.called_numbers)
        result: WinResult = NotWon()
        if session.detect_wins:
            result = detect_wins(card, marks, session.rule_mode)
        statuses.append(CardStatus(card=card, marks=marks, result=result))
    return statuses


WinKey = Tuple[str, str, Tuple[str, ...]]


def win_key(card_id: str, rule_mode: Union[RuleMode, str], result: WinResult) -> WinKey:
    mode = rule_mode.value if isinstance(rule_mode, RuleMode) else str(rule_mode)
    return (card_id, mode, tuple(sorted(result.winning_lines or ())))


class WinTracker:
    """Remembers which wins have been announced.

    A win is identified by card, rule mode and the sorted winning lines, so a
    second line completing on the same card counts as a new win.
    """

    def __init__(self, store: Optional[KeyValueStore] = None):
        self.store = store
        self._seen: Set[WinKey] = set()
        if store is not None:
            for entry in store.get(CELEBRATED_KEY, []):
                card_id, mode, lines = entry
                self._seen.add((card_id, mode, tuple(lines)))

    def _persist(self) -> None:
        if self.store is not None:
            self.store.set(CELEBRATED_KEY, [[k[0], k[1], list(k[2])] for k in sorted(self._seen)])

    def new_wins(self, statuses: Sequence[CardStatus], rule_mode: Union[RuleMode, str]) -> List[CardStatus]:
        fresh: List[CardStatus] = []
        for status in statuses:
            if not status.result.is_win:
                continue
            key = win_key(status.card.id, rule_mode, status.result)
            if key in self._seen:
                continue
            self._seen.add(key)
            fresh.append(status)
            logger.info("BINGO! %s on card %s", status.result.win_type, status.card.name)
        if fresh:
            self._persist()
        return fresh

    def forget_when_uncalled(self, session: GameSession) -> None:
        """Drop announced wins once every number has been un-called."""
        if not session.called_numbers and self._seen:
            self.clear()

    def clear(self) -> None:
        self._seen.clear()
        self._persist()
