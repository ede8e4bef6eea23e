from __future__ import annotations

import pytest

from vocab_review.models import CardSnapshot
from vocab_review.session_store import SessionStore


def _cards(count: int) -> list[CardSnapshot]:
    return [CardSnapshot(id=i + 1, front=f"front {i}", back=f"back {i}") for i in range(count)]


@pytest.fixture
def store() -> SessionStore:
    return SessionStore()


def test_initialize_sets_queue_and_resets_flags(store):
    store.answer_revealed = True
    store.submitting = True

    store.initialize(_cards(3))

    assert store.length == 3
    assert store.position == 0
    assert store.answer_revealed is False
    assert store.submitting is False
    assert store.current().id == 1


def test_initialize_empty_is_complete(store):
    store.initialize([])

    assert store.is_complete
    assert store.current() is None
    assert store.progress() == (0, 0)


def test_reveal_is_idempotent(store):
    store.initialize(_cards(1))

    store.reveal()
    store.reveal()

    assert store.answer_revealed is True
    assert store.position == 0


def test_reveal_ignored_while_submitting(store):
    store.initialize(_cards(1))
    store.begin_submit()

    store.reveal()

    assert store.answer_revealed is False


def test_advance_moves_cursor_and_hides_answer(store):
    store.initialize(_cards(2))
    store.reveal()

    store.advance()

    assert store.position == 1
    assert store.answer_revealed is False
    assert store.current().id == 2


def test_advance_past_last_card_completes(store):
    store.initialize(_cards(2))
    store.advance()

    store.advance()

    assert store.is_complete
    assert store.position == 2
    assert store.current() is None
    assert store.progress() == (2, 2)


def test_progress_is_one_indexed_and_bounded(store):
    store.initialize(_cards(4))
    seen = []
    while not store.is_complete:
        shown, total = store.progress()
        assert 1 <= shown <= total
        seen.append(shown)
        store.advance()

    assert seen == [1, 2, 3, 4]


def test_initialize_copies_input_sequence(store):
    cards = _cards(2)
    store.initialize(cards)
    cards.append(CardSnapshot(id=99, front="x", back="y"))

    assert store.length == 2
