"""Per-browser state: the signed-in user's token, API client and active review."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable

import httpx

from .api import ReviewApiClient
from .auth import SESSION_TTL_DAYS, TokenStore, new_session_id
from .config import Settings
from .controller import ReviewController

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class BrowserSession:
    id: str
    tokens: TokenStore
    api: ReviewApiClient
    review: ReviewController | None = None
    last_seen: float = 0.0

    @property
    def is_authenticated(self) -> bool:
        return self.tokens.is_authenticated

    def open_review(self, settle_delay: float) -> ReviewController:
        """Replace any running review with a fresh one bound to this user's API client."""
        self.close_review()
        self.review = ReviewController(
            self.api.fetch_due_cards,
            self.api.submit_review,
            settle_delay=settle_delay,
        )
        return self.review

    def close_review(self) -> None:
        if self.review is not None:
            self.review.cancel()
            self.review = None


@dataclass(slots=True)
class BrowserSessionRegistry:
    settings: Settings
    transport: httpx.AsyncBaseTransport | None = None
    ttl: float = SESSION_TTL_DAYS * 24 * 60 * 60  # seconds, matches the cookie max-age
    clock: Callable[[], float] = time.monotonic
    _sessions: dict[str, BrowserSession] = field(default_factory=dict)

    def create(self) -> BrowserSession:
        tokens = TokenStore()
        api = ReviewApiClient(
            tokens,
            base_url=self.settings.api_base_url,
            timeout=self.settings.request_timeout,
            transport=self.transport,
        )
        session = BrowserSession(id=new_session_id(), tokens=tokens, api=api, last_seen=self.clock())
        self._sessions[session.id] = session
        return session

    def get(self, session_id: str | None) -> BrowserSession | None:
        if not session_id:
            return None
        session = self._sessions.get(session_id)
        if session is None or self._expired(session):
            return None
        session.last_seen = self.clock()
        return session

    def _expired(self, session: BrowserSession) -> bool:
        return self.clock() - session.last_seen > self.ttl

    async def drop(self, session_id: str | None) -> None:
        if not session_id:
            return
        session = self._sessions.pop(session_id, None)
        if session is None:
            return
        session.close_review()
        session.tokens.clear()
        await session.api.aclose()

    async def prune(self) -> int:
        """Close sessions idle for longer than ``ttl``; returns how many were dropped."""
        expired = [session_id for session_id, session in self._sessions.items() if self._expired(session)]
        for session_id in expired:
            await self.drop(session_id)
        if expired:
            logger.info("Dropped %d idle browser sessions", len(expired))
        return len(expired)

    async def aclose(self) -> None:
        for session_id in list(self._sessions):
            await self.drop(session_id)
        logger.info("Closed all browser sessions")

    def __len__(self) -> int:
        return len(self._sessions)
