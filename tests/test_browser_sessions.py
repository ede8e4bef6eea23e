"""Tests for browser_sessions.py: per-browser registry and idle expiry."""

from __future__ import annotations

import httpx
import pytest

from vocab_review.auth import AuthSession
from vocab_review.browser_sessions import BrowserSessionRegistry
from vocab_review.config import Settings


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def _registry(clock: FakeClock, ttl: float = 60) -> BrowserSessionRegistry:
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json=[]))
    return BrowserSessionRegistry(Settings(settle_delay=0), transport, ttl=ttl, clock=clock)


@pytest.mark.asyncio
async def test_get_refreshes_last_seen():
    clock = FakeClock()
    registry = _registry(clock)
    session = registry.create()

    clock.now += 50
    assert registry.get(session.id) is session
    clock.now += 50

    assert registry.get(session.id) is session
    assert await registry.prune() == 0
    await registry.aclose()


@pytest.mark.asyncio
async def test_idle_sessions_expire_and_are_pruned():
    clock = FakeClock()
    registry = _registry(clock)
    idle = registry.create()
    idle.tokens.hydrate(AuthSession(token="t", username="ana", email="a@x.io"))
    active = registry.create()

    clock.now += 61
    assert registry.get(idle.id) is None
    clock.now -= 30
    registry.get(active.id)
    clock.now += 30

    assert await registry.prune() == 1
    assert len(registry) == 1
    assert registry.get(active.id) is active
    assert idle.tokens.is_authenticated is False
    assert idle.api._client.is_closed
    await registry.aclose()


@pytest.mark.asyncio
async def test_drop_cancels_running_review():
    registry = _registry(FakeClock())
    session = registry.create()
    review = session.open_review(settle_delay=0)

    await registry.drop(session.id)

    assert review.phase == "cancelled"
    assert registry.get(session.id) is None
    assert len(registry) == 0


def test_unknown_or_missing_id():
    registry = _registry(FakeClock())

    assert registry.get(None) is None
    assert registry.get("nope") is None
