"""Common Jinja helpers and filters for the review templates."""

from __future__ import annotations

from typing import Any

from .keyboard import RATING_KEYS, SHORTCUT_HELP
from .models import LANGUAGE_PAIR_LABELS, QUALITY_BUCKETS, QualityBucket

_KEY_FOR_QUALITY = {quality: key for key, quality in RATING_KEYS.items()}

QUALITY_STYLES: dict[QualityBucket, tuple[str, str]] = {
    QualityBucket.AGAIN: ("❌", "bg-red-500"),
    QualityBucket.HARD: ("😰", "bg-orange-500"),
    QualityBucket.GOOD: ("✅", "bg-green-500"),
    QualityBucket.EASY: ("🎯", "bg-blue-500"),
}


def language_pair_label(value: str | None) -> str:
    if not value:
        return ""
    return LANGUAGE_PAIR_LABELS.get(value, "")  # type: ignore[call-overload]


def rating_buttons() -> list[dict[str, Any]]:
    """Rating buttons in increasing-confidence order with their shortcut keys."""
    buttons = []
    for quality in QUALITY_BUCKETS:
        icon, css = QUALITY_STYLES[quality]
        buttons.append(
            {
                "quality": int(quality),
                "label": quality.label,
                "description": quality.description,
                "key": _KEY_FOR_QUALITY[quality],
                "icon": icon,
                "css": css,
            }
        )
    return buttons


def register_template_filters(env: Any) -> None:
    """Attach shared filters and globals to a Jinja environment exactly once."""
    env.filters.setdefault("language_pair", language_pair_label)
    env.globals.setdefault("rating_buttons", rating_buttons)
    env.globals.setdefault("shortcut_help", SHORTCUT_HELP)
