"""Vocab Review: FastAPI client for a spaced-repetition vocabulary trainer."""

from .controller import LoadFailure, ReviewController, SubmitFailure
from .keyboard import KeyAction, KeyEvent, dispatch_key
from .models import CardSnapshot, QualityBucket, ReviewView
from .session_store import SessionStore

__all__ = [
    "CardSnapshot",
    "KeyAction",
    "KeyEvent",
    "LoadFailure",
    "QualityBucket",
    "ReviewController",
    "ReviewView",
    "SessionStore",
    "SubmitFailure",
    "dispatch_key",
]
