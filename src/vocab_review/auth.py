from __future__ import annotations

import secrets
from dataclasses import dataclass
from typing import Any, Mapping

from fastapi import Request
from starlette.responses import Response

SESSION_COOKIE_NAME = "vr_session"
SESSION_TTL_DAYS = 30


@dataclass(frozen=True, slots=True)
class AuthSession:
    token: str
    username: str
    email: str


def auth_session_from_payload(payload: Mapping[str, Any]) -> AuthSession:
    token = str(payload.get("token") or "")
    if not token:
        raise ValueError("auth response is missing a token")
    return AuthSession(
        token=token,
        username=str(payload.get("username") or ""),
        email=str(payload.get("email") or ""),
    )


class TokenStore:
    """Holds the bearer token for one signed-in user.

    The HTTP client reads the token from here on every request; nothing else
    keeps a copy. ``hydrate`` after login or signup, ``clear`` on logout.
    """

    __slots__ = ("_session",)

    def __init__(self, session: AuthSession | None = None) -> None:
        self._session = session

    def hydrate(self, session: AuthSession) -> None:
        self._session = session

    def clear(self) -> None:
        self._session = None

    @property
    def session(self) -> AuthSession | None:
        return self._session

    @property
    def token(self) -> str | None:
        return self._session.token if self._session is not None else None

    @property
    def is_authenticated(self) -> bool:
        return self._session is not None

    def authorization_header(self) -> dict[str, str]:
        if self._session is None:
            return {}
        return {"Authorization": f"Bearer {self._session.token}"}


def new_session_id() -> str:
    return secrets.token_urlsafe(32)


def get_session_id(request: Request) -> str | None:
    return request.cookies.get(SESSION_COOKIE_NAME) or None


def set_session_cookie(request: Request, response: Response, session_id: str) -> None:
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=session_id,
        httponly=True,
        secure=(request.url.scheme == "https"),
        samesite="lax",
        max_age=60 * 60 * 24 * SESSION_TTL_DAYS,
        path="/",
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(SESSION_COOKIE_NAME, path="/")
