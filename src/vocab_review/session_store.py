"""In-memory state of one review pass: the due queue, the cursor and per-card UI flags."""

from __future__ import annotations

from typing import Iterable, Optional

from .models import CardSnapshot


class SessionStore:
    """Pure state container; the review controller is its only writer."""

    __slots__ = ("_cards", "position", "answer_revealed", "submitting")

    def __init__(self) -> None:
        self._cards: tuple[CardSnapshot, ...] = ()
        self.position = 0
        self.answer_revealed = False
        self.submitting = False

    def initialize(self, cards: Iterable[CardSnapshot]) -> None:
        self._cards = tuple(cards)
        self.position = 0
        self.answer_revealed = False
        self.submitting = False

    @property
    def cards(self) -> tuple[CardSnapshot, ...]:
        return self._cards

    @property
    def length(self) -> int:
        return len(self._cards)

    @property
    def is_complete(self) -> bool:
        return self.position >= len(self._cards)

    def reveal(self) -> None:
        if self.submitting or self.is_complete:
            return
        self.answer_revealed = True

    def begin_submit(self) -> None:
        self.submitting = True

    def end_submit(self) -> None:
        self.submitting = False

    def advance(self) -> None:
        if self.position + 1 < len(self._cards):
            self.position += 1
        else:
            self.position = len(self._cards)
        self.answer_revealed = False

    def current(self) -> Optional[CardSnapshot]:
        if self.is_complete:
            return None
        return self._cards[self.position]

    def progress(self) -> tuple[int, int]:
        """Return the 1-indexed (shown, total) pair for the progress bar."""
        total = len(self._cards)
        if self.is_complete:
            return total, total
        return self.position + 1, total


__all__ = ["SessionStore"]
