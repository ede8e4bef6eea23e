"""Keyboard shortcuts for the review page, as a pure (view, event) -> action function."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Optional

from .models import QualityBucket, ReviewView

KeyActionKind = Literal["reveal", "rate", "help", "cancel"]

REVEAL_KEYS: frozenset[str] = frozenset({" ", "Space"})
HELP_KEY = "?"
CANCEL_KEY = "Escape"
RATING_KEYS: dict[str, QualityBucket] = {
    "1": QualityBucket.AGAIN,
    "2": QualityBucket.HARD,
    "3": QualityBucket.GOOD,
    "4": QualityBucket.EASY,
}

TEXT_INPUT_TAGS: frozenset[str] = frozenset({"input", "textarea", "select"})

SHORTCUT_HELP: tuple[tuple[str, str], ...] = (
    ("Show Answer", "Space"),
    ("Again (Total blackout)", "1"),
    ("Hard (Difficult recall)", "2"),
    ("Good (Some hesitation)", "3"),
    ("Easy (Perfect recall)", "4"),
    ("Back to Dashboard", "Esc"),
    ("Show this help", "?"),
)


@dataclass(frozen=True, slots=True)
class KeyEvent:
    key: str
    target_tag: str = "body"
    content_editable: bool = False

    @property
    def from_text_input(self) -> bool:
        return self.content_editable or self.target_tag.lower() in TEXT_INPUT_TAGS


@dataclass(frozen=True, slots=True)
class KeyAction:
    kind: KeyActionKind
    quality: QualityBucket | None = None


def dispatch_key(view: ReviewView, event: KeyEvent) -> Optional[KeyAction]:
    if event.from_text_input:
        return None

    key = event.key
    if key == HELP_KEY:
        return KeyAction("help")
    if key == CANCEL_KEY:
        return KeyAction("cancel")

    if view.submitting:
        return None

    if key in REVEAL_KEYS:
        if view.phase == "idle" and not view.answer_revealed:
            return KeyAction("reveal")
        return None

    quality = RATING_KEYS.get(key)
    if quality is not None and view.phase == "revealed":
        return KeyAction("rate", quality)
    return None


__all__ = [
    "CANCEL_KEY",
    "HELP_KEY",
    "KeyAction",
    "KeyActionKind",
    "KeyEvent",
    "RATING_KEYS",
    "REVEAL_KEYS",
    "SHORTCUT_HELP",
    "dispatch_key",
]
