from __future__ import annotations

from pathlib import Path

from fastapi import Request, status
from fastapi.responses import RedirectResponse
from fastapi.templating import Jinja2Templates
from starlette.responses import Response

from .auth import get_session_id
from .browser_sessions import BrowserSession, BrowserSessionRegistry
from .config import Settings
from .template_helpers import register_template_filters

PACKAGE_ROOT = Path(__file__).resolve().parent
PROJECT_ROOT = PACKAGE_ROOT.parent.parent
TEMPLATES_DIR = PROJECT_ROOT / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
register_template_filters(templates.env)


def is_hx(request: Request) -> bool:
    return request.headers.get("HX-Request", "false").lower() == "true"


def redirect(request: Request, url: str) -> Response:
    """Navigate away: full-page redirect for htmx swaps, 303 for plain form posts."""
    if is_hx(request):
        return Response(status_code=status.HTTP_200_OK, headers={"HX-Redirect": url})
    return RedirectResponse(url=url, status_code=status.HTTP_303_SEE_OTHER)


def get_registry(request: Request) -> BrowserSessionRegistry:
    return request.app.state.sessions


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def current_session(request: Request) -> BrowserSession | None:
    session = get_registry(request).get(get_session_id(request))
    if session is None or not session.is_authenticated:
        return None
    return session
