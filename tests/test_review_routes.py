"""Route integration tests: browser -> FastAPI -> controller -> fake backend."""

from __future__ import annotations

import json

import httpx
import pytest
from fastapi.testclient import TestClient

from vocab_review.app import create_app
from vocab_review.config import Settings

TOKEN = "tok-123"
HX = {"HX-Request": "true"}

CARDS = [
    {"id": 1, "front": "Hund", "back": "chien", "languageSelection": "DE_FR", "tags": []},
    {"id": 2, "front": "Katze", "back": "chat", "exampleSentence": "Le chat dort.", "tags": []},
]


class FakeBackend:
    def __init__(self, due=None) -> None:
        self.due = list(CARDS if due is None else due)
        self.fail_due = False
        self.review_failures = 0
        self.submissions: list[dict] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path.removeprefix("/api/v1")
        if path == "/auth/login":
            body = json.loads(request.content)
            if body["password"] != "secret":
                return httpx.Response(401, json={"message": "Bad credentials"})
            return httpx.Response(200, json={"token": TOKEN, "username": body["username"], "email": "a@x.io"})
        if request.headers.get("authorization") != f"Bearer {TOKEN}":
            return httpx.Response(401, json={"message": "Unauthorized"})
        if path == "/vocabulary/due":
            if self.fail_due:
                return httpx.Response(500, json={"detail": "database down"})
            return httpx.Response(200, json=self.due)
        if path == "/vocabulary/due/count":
            return httpx.Response(200, json=len(self.due))
        if path == "/vocabulary/count":
            return httpx.Response(200, json=10)
        if path == "/review":
            if self.review_failures:
                self.review_failures -= 1
                return httpx.Response(503, json={"detail": "scheduler unavailable"})
            self.submissions.append(json.loads(request.content))
            return httpx.Response(200, json=self.due[0])
        return httpx.Response(404, json={"detail": "not found"})


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def client(backend):
    settings = Settings(api_base_url="http://backend.test/api/v1", settle_delay=0)
    app = create_app(settings, transport=httpx.MockTransport(backend))
    with TestClient(app) as test_client:
        yield test_client


def _login(client: TestClient) -> None:
    response = client.post("/login", data={"username": "ana", "password": "secret"})
    assert response.status_code == 200
    assert "Welcome, ana" in response.text


class TestAuthPages:
    def test_dashboard_requires_login(self, client):
        response = client.get("/", follow_redirects=False)
        assert response.status_code == 303
        assert response.headers["location"] == "/login"

    def test_login_shows_counts(self, client):
        _login(client)
        response = client.get("/")
        assert 'id="due-count">2<' in response.text
        assert 'id="total-count">10<' in response.text

    def test_bad_password_shows_backend_message(self, client):
        response = client.post("/login", data={"username": "ana", "password": "nope"})
        assert response.status_code == 401
        assert "Bad credentials" in response.text
        assert len(client.app.state.sessions) == 0

    def test_logout_forgets_session(self, client):
        _login(client)
        response = client.post("/logout", follow_redirects=False)
        assert response.headers["location"] == "/login"
        assert len(client.app.state.sessions) == 0
        assert client.get("/", follow_redirects=False).status_code == 303


class TestReviewFlow:
    def test_review_requires_login(self, client):
        response = client.get("/review", follow_redirects=False)
        assert response.status_code == 303

    def test_full_pass_with_keys_and_clicks(self, client, backend):
        _login(client)
        page = client.get("/review")
        assert "Hund" in page.text
        assert "Show Answer" in page.text
        assert "1 / 2" in page.text

        revealed = client.post("/review/key", data={"key": " "}, headers=HX)
        assert "chien" in revealed.text
        assert "German ⇄ French" in revealed.text

        after_first = client.post("/review/rate/5", headers=HX)
        assert "Katze" in after_first.text
        assert "2 / 2" in after_first.text
        assert backend.submissions == [{"cardId": 1, "quality": 5}]

        client.post("/review/reveal", headers=HX)
        done = client.post("/review/key", data={"key": "3"}, headers=HX)
        assert done.headers["HX-Redirect"] == "/"
        assert backend.submissions[-1] == {"cardId": 2, "quality": 4}

    def test_rating_before_reveal_is_ignored(self, client, backend):
        _login(client)
        client.get("/review")

        response = client.post("/review/key", data={"key": "4"}, headers=HX)

        assert backend.submissions == []
        assert "Show Answer" in response.text

    def test_typing_into_a_field_is_ignored(self, client):
        _login(client)
        client.get("/review")

        response = client.post("/review/key", data={"key": " ", "target": "input"}, headers=HX)

        assert "Show Answer" in response.text

    def test_unknown_quality_code_is_bad_request(self, client):
        _login(client)
        client.get("/review")
        client.post("/review/reveal", headers=HX)

        assert client.post("/review/rate/2", headers=HX).status_code == 400

    def test_empty_queue_shows_nothing_due(self, client, backend):
        backend.due = []
        _login(client)

        page = client.get("/review")

        assert "No cards due for review!" in page.text
        assert "Show Answer" not in page.text

    def test_load_failure_shows_error(self, client, backend):
        backend.fail_due = True
        _login(client)

        page = client.get("/review")

        assert "Could not load your review session" in page.text
        assert "database down" in page.text

    def test_malformed_due_cards_show_error(self, client, backend):
        backend.due = {"content": CARDS}
        _login(client)

        page = client.get("/review")

        assert page.status_code == 200
        assert "Could not load your review session" in page.text
        assert "Malformed response" in page.text

    def test_submit_failure_keeps_card_for_retry(self, client, backend):
        backend.review_failures = 1
        _login(client)
        client.get("/review")
        client.post("/review/reveal", headers=HX)

        failed = client.post("/review/rate/0", headers=HX)
        assert "Hund" in failed.text
        assert "scheduler unavailable" in failed.text
        assert backend.submissions == []

        retried = client.post("/review/rate/3", headers=HX)
        assert "Katze" in retried.text
        assert backend.submissions == [{"cardId": 1, "quality": 3}]

    def test_help_overlay_toggles(self, client):
        _login(client)
        client.get("/review")

        opened = client.post("/review/key", data={"key": "?"}, headers=HX)
        assert "Keyboard Shortcuts" in opened.text
        assert "Hund" in opened.text

        closed = client.post("/review/help/dismiss", headers=HX)
        assert "Keyboard Shortcuts" not in closed.text

    def test_escape_and_cancel_leave_session(self, client):
        _login(client)
        client.get("/review")

        response = client.post("/review/key", data={"key": "Escape"}, headers=HX)
        assert response.headers["HX-Redirect"] == "/"

        client.get("/review")
        response = client.post("/review/cancel", follow_redirects=False)
        assert response.status_code == 303
        assert response.headers["location"] == "/"

        stale = client.post("/review/reveal", follow_redirects=False)
        assert stale.headers["location"] == "/"
