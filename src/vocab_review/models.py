from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Literal, Mapping, Sequence

LanguagePair = Literal[
    "DE_FR",
    "DE_ES",
    "EN_ES",
    "EN_FR",
    "EN_DE",
    "FR_ES",
    "EN_IT",
    "DE_IT",
    "FR_IT",
    "ES_IT",
]

LANGUAGE_PAIR_LABELS: dict[LanguagePair, str] = {
    "DE_FR": "German ⇄ French",
    "DE_ES": "German ⇄ Spanish",
    "EN_ES": "English ⇄ Spanish",
    "EN_FR": "English ⇄ French",
    "EN_DE": "English ⇄ German",
    "FR_ES": "French ⇄ Spanish",
    "EN_IT": "English ⇄ Italian",
    "DE_IT": "German ⇄ Italian",
    "FR_IT": "French ⇄ Italian",
    "ES_IT": "Spanish ⇄ Italian",
}

LANGUAGE_PAIRS: tuple[LanguagePair, ...] = tuple(LANGUAGE_PAIR_LABELS)

ReviewPhase = Literal[
    "loading",
    "idle",
    "revealed",
    "submitting",
    "complete",
    "error",
    "cancelled",
]


class QualityBucket(IntEnum):
    """Self-assessment codes agreed with the backend scheduler."""

    AGAIN = 0
    HARD = 3
    GOOD = 4
    EASY = 5

    @property
    def label(self) -> str:
        return QUALITY_LABELS[self][0]

    @property
    def description(self) -> str:
        return QUALITY_LABELS[self][1]


QUALITY_LABELS: dict[QualityBucket, tuple[str, str]] = {
    QualityBucket.AGAIN: ("Again", "Total blackout"),
    QualityBucket.HARD: ("Hard", "Difficult recall"),
    QualityBucket.GOOD: ("Good", "Some hesitation"),
    QualityBucket.EASY: ("Easy", "Perfect recall"),
}

# Increasing confidence, the order rating buttons and keys are presented in.
QUALITY_BUCKETS: tuple[QualityBucket, ...] = (
    QualityBucket.AGAIN,
    QualityBucket.HARD,
    QualityBucket.GOOD,
    QualityBucket.EASY,
)


@dataclass(frozen=True, slots=True)
class Tag:
    id: int
    name: str
    color: str


@dataclass(frozen=True, slots=True)
class CardSnapshot:
    id: int
    front: str
    back: str
    example: str | None = None
    audio_url: str | None = None
    language_pair: LanguagePair | None = None
    tags: tuple[Tag, ...] = ()

    @property
    def language_label(self) -> str | None:
        if self.language_pair is None:
            return None
        return LANGUAGE_PAIR_LABELS[self.language_pair]


@dataclass(slots=True)
class CardDraft:
    """Form data for creating or updating a card on the backend."""

    front: str
    back: str
    example: str = ""
    language_pair: LanguagePair | None = None
    audio_url: str = ""
    tag_ids: list[int] = field(default_factory=list)

    def to_payload(self) -> dict[str, Any]:
        front = self.front.strip()
        back = self.back.strip()
        if not front:
            raise ValueError("front must not be empty")
        if not back:
            raise ValueError("back must not be empty")
        if self.language_pair is not None and self.language_pair not in LANGUAGE_PAIR_LABELS:
            raise ValueError(f"Unsupported language pair: {self.language_pair}")
        return {
            "front": front,
            "back": back,
            "exampleSentence": self.example.strip(),
            "languageSelection": self.language_pair,
            "audioUrl": self.audio_url.strip(),
            "tagIds": list(self.tag_ids),
        }


@dataclass(frozen=True, slots=True)
class ReviewView:
    """Read-only picture of a review session for templates and key dispatch."""

    phase: ReviewPhase
    card: CardSnapshot | None
    shown: int
    total: int
    answer_revealed: bool
    submitting: bool
    help_visible: bool
    error: str | None = None
    last_rating: QualityBucket | None = None
    nothing_due: bool = False

    @property
    def percent(self) -> int:
        if self.total == 0:
            return 0
        return int(round(self.shown / self.total * 100))


def parse_language_pair(value: Any) -> LanguagePair | None:
    if isinstance(value, str) and value in LANGUAGE_PAIR_LABELS:
        return value  # type: ignore[return-value]
    return None


def _optional_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def tag_from_payload(payload: Mapping[str, Any]) -> Tag:
    return Tag(
        id=int(payload["id"]),
        name=str(payload["name"]),
        color=str(payload.get("color") or ""),
    )


def tags_from_payload(payload: Sequence[Mapping[str, Any]]) -> list[Tag]:
    return [tag_from_payload(item) for item in payload]


def card_from_payload(payload: Mapping[str, Any]) -> CardSnapshot:
    """Build a card from the backend's JSON representation.

    Only the enumerated ``languageSelection`` is honoured; the older free-text
    ``sourceLanguage``/``targetLanguage`` fields are ignored.
    """
    return CardSnapshot(
        id=int(payload["id"]),
        front=str(payload["front"]),
        back=str(payload["back"]),
        example=_optional_text(payload.get("exampleSentence")),
        audio_url=_optional_text(payload.get("audioUrl")),
        language_pair=parse_language_pair(payload.get("languageSelection")),
        tags=tuple(tag_from_payload(tag) for tag in payload.get("tags") or ()),
    )


def cards_from_payload(payload: Sequence[Mapping[str, Any]]) -> list[CardSnapshot]:
    return [card_from_payload(item) for item in payload]


__all__ = [
    "CardDraft",
    "CardSnapshot",
    "LANGUAGE_PAIRS",
    "LANGUAGE_PAIR_LABELS",
    "LanguagePair",
    "QUALITY_BUCKETS",
    "QUALITY_LABELS",
    "QualityBucket",
    "ReviewPhase",
    "ReviewView",
    "Tag",
    "card_from_payload",
    "cards_from_payload",
    "parse_language_pair",
    "tag_from_payload",
    "tags_from_payload",
]
