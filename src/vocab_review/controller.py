"""Review session controller: drives one pass through the due queue.

The controller is the only writer of the session state. Its two suspension
points are the backend calls ``fetch_due_cards`` and ``submit_review`` (plus
the short settle delay after a successful rating). While they are awaited
the help overlay and ``cancel`` keep working; a rating request that arrives
while another is in flight is rejected by the ``submitting`` lock.

Cancellation is cooperative. ``cancel`` bumps a generation counter; any
backend call that resolves afterwards sees a stale generation and drops its
result instead of writing to the session.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Literal, Optional, Sequence

from .api import ApiError
from .keyboard import KeyAction, KeyEvent, dispatch_key
from .models import CardSnapshot, QualityBucket, ReviewPhase, ReviewView
from .session_store import SessionStore

logger = logging.getLogger(__name__)

DEFAULT_SETTLE_DELAY = 0.3  # seconds

FetchDueCards = Callable[[], Awaitable[Sequence[CardSnapshot]]]
SubmitReview = Callable[[int, QualityBucket], Awaitable[None]]
Sleep = Callable[[float], Awaitable[None]]

SubmitOutcome = Literal["rejected", "advanced", "complete", "cancelled"]


class ReviewError(Exception):
    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class LoadFailure(ReviewError):
    """The due queue could not be fetched; the session never starts."""


class SubmitFailure(ReviewError):
    """A rating was not acknowledged; the card stays on screen for another try."""

    def __init__(self, message: str, *, card_id: int, quality: QualityBucket) -> None:
        super().__init__(message)
        self.card_id = card_id
        self.quality = quality


def _reason(exc: Exception) -> str:
    if isinstance(exc, ApiError):
        return exc.message
    return "unexpected error"


class ReviewController:
    def __init__(
        self,
        fetch_due_cards: FetchDueCards,
        submit_review: SubmitReview,
        *,
        settle_delay: float = DEFAULT_SETTLE_DELAY,
        sleep: Sleep = asyncio.sleep,
        store: SessionStore | None = None,
    ) -> None:
        if settle_delay < 0:
            raise ValueError("settle_delay must not be negative")
        self._fetch_due_cards = fetch_due_cards
        self._submit_review = submit_review
        self._sleep = sleep
        self.settle_delay = settle_delay
        self.store = store or SessionStore()
        self.phase: ReviewPhase = "loading"
        self.help_visible = False
        self.error: str | None = None
        self.last_rating: QualityBucket | None = None
        self.nothing_due = False
        self._generation = 0
        self._started = False

    # -- lifecycle ----------------------------------------------------------

    async def start(self) -> ReviewPhase:
        if self._started:
            raise RuntimeError("review session already started")
        self._started = True
        generation = self._generation
        try:
            cards = await self._fetch_due_cards()
        except Exception as exc:
            if generation != self._generation:
                logger.info("Discarding due-card load failure for a cancelled session")
                return self.phase
            self.phase = "error"
            self.error = f"Failed to load due cards: {_reason(exc)}"
            logger.error("Failed to load due cards", exc_info=exc)
            raise LoadFailure(self.error) from exc

        if generation != self._generation:
            logger.info("Discarding due cards loaded for a cancelled session")
            return self.phase

        self.store.initialize(cards)
        if self.store.is_complete:
            self.nothing_due = True
            self.phase = "complete"
            logger.info("No cards due for review")
        else:
            self.phase = "idle"
            logger.info("Review session started with %d due cards", self.store.length)
        return self.phase

    def cancel(self) -> None:
        if self.phase == "cancelled":
            return
        self._generation += 1
        if self.store.submitting:
            logger.info("Review session cancelled with a rating still in flight")
        else:
            logger.info("Review session cancelled at %d/%d", *self.store.progress())
        self.phase = "cancelled"

    @property
    def is_finished(self) -> bool:
        return self.phase in ("complete", "cancelled")

    # -- transitions --------------------------------------------------------

    def reveal_answer(self) -> bool:
        if self.phase != "idle" or self.store.submitting:
            return False
        self.store.reveal()
        self.phase = "revealed"
        return True

    async def submit_rating(self, quality: int) -> SubmitOutcome:
        bucket = QualityBucket(quality)
        if self.phase != "revealed" or self.store.submitting:
            logger.debug("Rejected rating %s in phase %s", bucket.name, self.phase)
            return "rejected"

        card = self.store.current()
        if card is None:  # pragma: no cover - revealed implies a current card
            return "rejected"

        generation = self._generation
        self.store.begin_submit()
        self.phase = "submitting"
        self.error = None
        try:
            await self._submit_review(card.id, bucket)
        except Exception as exc:
            if generation != self._generation:
                logger.info("Discarding failed rating for card %s after cancel", card.id)
                return "cancelled"
            self.store.end_submit()
            self.phase = "revealed"
            self.error = f"Failed to submit review: {_reason(exc)}"
            if isinstance(exc, ApiError):
                logger.warning("Failed to submit rating %s for card %s: %s", bucket.name, card.id, exc.message)
            else:
                logger.error("Unexpected error submitting rating for card %s", card.id, exc_info=exc)
            raise SubmitFailure(self.error, card_id=card.id, quality=bucket) from exc

        if generation != self._generation:
            logger.info("Rating for card %s acknowledged after cancel", card.id)
            return "cancelled"

        self.last_rating = bucket
        if self.settle_delay > 0:
            await self._sleep(self.settle_delay)
            if generation != self._generation:
                return "cancelled"

        self.store.end_submit()
        self.store.advance()
        if self.store.is_complete:
            self.phase = "complete"
            logger.info("Review session complete after %d cards", self.store.length)
            return "complete"
        self.phase = "idle"
        return "advanced"

    def request_help(self) -> None:
        self.help_visible = True

    def dismiss_help(self) -> None:
        self.help_visible = False

    def toggle_help(self) -> None:
        self.help_visible = not self.help_visible

    async def handle_key(self, event: KeyEvent) -> Optional[KeyAction]:
        action = dispatch_key(self.snapshot(), event)
        if action is None:
            return None
        if action.kind == "help":
            self.request_help()
        elif action.kind == "cancel":
            self.cancel()
        elif action.kind == "reveal":
            self.reveal_answer()
        elif action.kind == "rate" and action.quality is not None:
            await self.submit_rating(action.quality)
        return action

    # -- views --------------------------------------------------------------

    def progress(self) -> tuple[int, int]:
        return self.store.progress()

    def current(self) -> CardSnapshot | None:
        return self.store.current()

    def snapshot(self) -> ReviewView:
        shown, total = self.store.progress()
        return ReviewView(
            phase=self.phase,
            card=self.store.current(),
            shown=shown,
            total=total,
            answer_revealed=self.store.answer_revealed,
            submitting=self.store.submitting,
            help_visible=self.help_visible,
            error=self.error,
            last_rating=self.last_rating,
            nothing_due=self.nothing_due,
        )


__all__ = [
    "DEFAULT_SETTLE_DELAY",
    "LoadFailure",
    "ReviewController",
    "ReviewError",
    "SubmitFailure",
    "SubmitOutcome",
]
