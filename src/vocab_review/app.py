from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import APIRouter, FastAPI, Form, Request, status
from fastapi.responses import HTMLResponse
from starlette.responses import Response

from .api import ApiError, AuthenticationError
from .auth import clear_session_cookie, get_session_id, set_session_cookie
from .browser_sessions import BrowserSessionRegistry
from .config import Settings, configure_logging, get_settings
from .library_routes import router as library_router
from .review_routes import router as review_router
from .web import current_session, get_registry, redirect, templates

logger = logging.getLogger(__name__)

router = APIRouter()


def _login_page(request: Request, error: str | None, *, status_code: int = status.HTTP_200_OK) -> Response:
    context = {"page_title": "Vocab Review · Sign in", "error": error}
    return templates.TemplateResponse(request, "login.html", context, status_code=status_code)


@router.get("/login", response_class=HTMLResponse)
async def login_page(request: Request) -> Response:
    return _login_page(request, None)


@router.post("/login", response_class=HTMLResponse)
async def login(
    request: Request,
    username: str = Form(...),
    password: str = Form(...),
) -> Response:
    registry = get_registry(request)
    await registry.prune()
    session = registry.create()
    try:
        await session.api.login(username.strip(), password)
    except ApiError as exc:
        await registry.drop(session.id)
        logger.info("Login failed for %s: %s", username, exc.message)
        return _login_page(request, exc.message or "Login failed", status_code=status.HTTP_401_UNAUTHORIZED)

    await registry.drop(get_session_id(request))
    response = redirect(request, "/")
    set_session_cookie(request, response, session.id)
    return response


@router.post("/signup", response_class=HTMLResponse)
async def signup(
    request: Request,
    username: str = Form(...),
    email: str = Form(...),
    password: str = Form(...),
) -> Response:
    registry = get_registry(request)
    await registry.prune()
    session = registry.create()
    try:
        await session.api.signup(username.strip(), email.strip(), password)
    except ApiError as exc:
        await registry.drop(session.id)
        logger.info("Signup failed for %s: %s", username, exc.message)
        return _login_page(request, exc.message or "Signup failed", status_code=status.HTTP_400_BAD_REQUEST)

    await registry.drop(get_session_id(request))
    response = redirect(request, "/")
    set_session_cookie(request, response, session.id)
    return response


@router.post("/logout")
async def logout(request: Request) -> Response:
    await get_registry(request).drop(get_session_id(request))
    response = redirect(request, "/login")
    clear_session_cookie(response)
    return response


@router.get("/", response_class=HTMLResponse)
async def index(request: Request) -> Response:
    session = current_session(request)
    if session is None:
        return redirect(request, "/login")

    due_count: int | None = None
    total_count: int | None = None
    error: str | None = None
    try:
        due_count = await session.api.due_count()
        total_count = await session.api.total_count()
    except AuthenticationError:
        await get_registry(request).drop(session.id)
        response = redirect(request, "/login")
        clear_session_cookie(response)
        return response
    except ApiError as exc:
        logger.error("Failed to load dashboard counts: %s", exc.message)
        error = exc.message

    auth = session.tokens.session
    context = {
        "page_title": "Vocab Review",
        "username": auth.username if auth is not None else "",
        "due_count": due_count,
        "total_count": total_count,
        "error": error,
    }
    return templates.TemplateResponse(request, "index.html", context)


def create_app(
    settings: Settings | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    resolved = settings or get_settings()
    registry = BrowserSessionRegistry(resolved, transport)

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        configure_logging(resolved.log_level)
        yield
        await registry.aclose()

    application = FastAPI(title="Vocab Review", lifespan=lifespan)
    application.state.settings = resolved
    application.state.sessions = registry
    application.include_router(router)
    application.include_router(review_router)
    application.include_router(library_router)
    return application


app = create_app()


def main() -> None:
    import uvicorn

    uvicorn.run("vocab_review.app:app", host="127.0.0.1", port=8000, reload=True)


if __name__ == "__main__":
    main()
