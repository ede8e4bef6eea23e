"""Async HTTP client for the vocabulary trainer backend."""

from __future__ import annotations

import logging
from typing import Any, Callable, Generator, Literal, TypeVar

import httpx

from .auth import AuthSession, TokenStore, auth_session_from_payload
from .models import (
    CardDraft,
    CardSnapshot,
    QualityBucket,
    Tag,
    card_from_payload,
    cards_from_payload,
    tag_from_payload,
    tags_from_payload,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_API_BASE_URL = "http://localhost:8080/api/v1"

SortField = Literal["front", "back", "createdAt", "updatedAt", "nextReview"]
SortDirection = Literal["asc", "desc"]


class ApiError(Exception):
    """A backend call failed, either in transport or with a non-2xx status."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class AuthenticationError(ApiError):
    pass


class BearerTokenAuth(httpx.Auth):
    def __init__(self, tokens: TokenStore) -> None:
        self._tokens = tokens

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        request.headers.update(self._tokens.authorization_header())
        yield request


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        for key in ("detail", "message", "title"):
            value = body.get(key)
            if value:
                return str(value)
    return f"Request failed with status {response.status_code}"


class ReviewApiClient:
    def __init__(
        self,
        tokens: TokenStore,
        *,
        base_url: str = DEFAULT_API_BASE_URL,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.tokens = tokens
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers={"Content-Type": "application/json"},
            auth=BearerTokenAuth(tokens),
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "ReviewApiClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict[str, str] | None = None,
    ) -> httpx.Response:
        try:
            response = await self._client.request(method, path, json=json, params=params)
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise ApiError(f"Could not reach the server: {exc}") from exc
        if response.status_code >= 400:
            message = _error_message(response)
            logger.warning("%s %s returned %s: %s", method, path, response.status_code, message)
            error_cls = AuthenticationError if response.status_code in (401, 403) else ApiError
            raise error_cls(message, status_code=response.status_code)
        return response

    async def _json(self, method: str, path: str, **kwargs: Any) -> Any:
        response = await self._request(method, path, **kwargs)
        try:
            return response.json()
        except ValueError as exc:
            raise ApiError(f"Malformed response from {path}", status_code=response.status_code) from exc

    async def _parsed(self, parse: Callable[[Any], T], method: str, path: str, **kwargs: Any) -> T:
        payload = await self._json(method, path, **kwargs)
        try:
            return parse(payload)
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("%s %s returned an unexpected payload: %r", method, path, exc)
            raise ApiError(f"Malformed response from {path}") from exc

    # -- auth ---------------------------------------------------------------

    async def login(self, username: str, password: str) -> AuthSession:
        payload = await self._json("POST", "/auth/login", json={"username": username, "password": password})
        return self._hydrate(payload)

    async def signup(self, username: str, email: str, password: str) -> AuthSession:
        payload = await self._json(
            "POST",
            "/auth/signup",
            json={"username": username, "email": email, "password": password},
        )
        return self._hydrate(payload)

    def _hydrate(self, payload: Any) -> AuthSession:
        if not isinstance(payload, dict):
            raise ApiError("Malformed authentication response")
        try:
            session = auth_session_from_payload(payload)
        except ValueError as exc:
            raise ApiError("Malformed authentication response") from exc
        self.tokens.hydrate(session)
        return session

    def logout(self) -> None:
        self.tokens.clear()

    # -- vocabulary ---------------------------------------------------------

    async def fetch_due_cards(self) -> list[CardSnapshot]:
        return await self._parsed(cards_from_payload, "GET", "/vocabulary/due")

    async def due_count(self) -> int:
        return await self._parsed(int, "GET", "/vocabulary/due/count")

    async def total_count(self) -> int:
        return await self._parsed(int, "GET", "/vocabulary/count")

    async def list_cards(
        self,
        *,
        sort_by: SortField | None = None,
        sort_direction: SortDirection | None = None,
        search_term: str | None = None,
    ) -> list[CardSnapshot]:
        params: dict[str, str] = {}
        if sort_by:
            params["sortBy"] = sort_by
        if sort_direction:
            params["sortDirection"] = sort_direction
        if search_term:
            params["searchTerm"] = search_term
        return await self._parsed(cards_from_payload, "GET", "/vocabulary", params=params or None)

    async def get_card(self, card_id: int) -> CardSnapshot:
        return await self._parsed(card_from_payload, "GET", f"/vocabulary/{card_id}")

    async def create_card(self, draft: CardDraft) -> CardSnapshot:
        return await self._parsed(card_from_payload, "POST", "/vocabulary", json=draft.to_payload())

    async def update_card(self, card_id: int, draft: CardDraft) -> CardSnapshot:
        return await self._parsed(card_from_payload, "PUT", f"/vocabulary/{card_id}", json=draft.to_payload())

    async def delete_card(self, card_id: int) -> None:
        await self._request("DELETE", f"/vocabulary/{card_id}")

    # -- review -------------------------------------------------------------

    async def submit_review(self, card_id: int, quality: QualityBucket) -> None:
        # The backend answers with the rescheduled card; the client has no use for it.
        await self._request("POST", "/review", json={"cardId": card_id, "quality": int(QualityBucket(quality))})

    # -- tags ---------------------------------------------------------------

    async def list_tags(self) -> list[Tag]:
        return await self._parsed(tags_from_payload, "GET", "/tags")

    async def create_tag(self, name: str, color: str) -> Tag:
        return await self._parsed(tag_from_payload, "POST", "/tags", json={"name": name, "color": color})

    async def update_tag(self, tag_id: int, name: str, color: str) -> Tag:
        return await self._parsed(tag_from_payload, "PUT", f"/tags/{tag_id}", json={"name": name, "color": color})

    async def delete_tag(self, tag_id: int) -> None:
        await self._request("DELETE", f"/tags/{tag_id}")


__all__ = [
    "ApiError",
    "AuthenticationError",
    "BearerTokenAuth",
    "DEFAULT_API_BASE_URL",
    "ReviewApiClient",
]
