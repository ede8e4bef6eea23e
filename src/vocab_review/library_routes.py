"""FastAPI routes for managing the card deck and its tags."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Form, Request, status
from fastapi.responses import HTMLResponse
from starlette.responses import Response

from .api import ApiError, AuthenticationError
from .auth import clear_session_cookie
from .browser_sessions import BrowserSession
from .models import LANGUAGE_PAIRS, CardDraft, CardSnapshot, parse_language_pair
from .web import current_session, get_registry, redirect, templates

logger = logging.getLogger(__name__)

router = APIRouter()

CARDS_URL = "/cards"
TAGS_URL = "/tags"
DEFAULT_TAG_COLOR = "#3b82f6"


async def _signed_out(request: Request, session: BrowserSession | None) -> Response:
    if session is not None:
        await get_registry(request).drop(session.id)
    response = redirect(request, "/login")
    clear_session_cookie(response)
    return response


def _draft_from_card(card: CardSnapshot) -> CardDraft:
    return CardDraft(
        front=card.front,
        back=card.back,
        example=card.example or "",
        language_pair=card.language_pair,
        audio_url=card.audio_url or "",
        tag_ids=[tag.id for tag in card.tags],
    )


async def _card_form(
    request: Request,
    session: BrowserSession,
    draft: CardDraft,
    *,
    card_id: int | None = None,
    error: str | None = None,
    status_code: int = status.HTTP_200_OK,
) -> Response:
    try:
        tags = await session.api.list_tags()
    except ApiError as exc:
        # The form still works without tag choices.
        logger.warning("Could not load tags for the card form: %s", exc.message)
        tags = []
    context: dict[str, Any] = {
        "page_title": "Vocab Review · Edit card" if card_id else "Vocab Review · New card",
        "draft": draft,
        "card_id": card_id,
        "tags": tags,
        "language_pairs": LANGUAGE_PAIRS,
        "error": error,
    }
    return templates.TemplateResponse(request, "card_form.html", context, status_code=status_code)


def _draft_from_form(
    front: str,
    back: str,
    example: str,
    language_pair: str,
    audio_url: str,
    tag_ids: list[int],
) -> CardDraft:
    return CardDraft(
        front=front,
        back=back,
        example=example,
        language_pair=parse_language_pair(language_pair),
        audio_url=audio_url,
        tag_ids=tag_ids,
    )


# -- cards --------------------------------------------------------------------


@router.get("/cards", response_class=HTMLResponse)
async def cards_page(request: Request) -> Response:
    session = current_session(request)
    if session is None:
        return redirect(request, "/login")

    cards: list[CardSnapshot] = []
    error: str | None = None
    try:
        cards = await session.api.list_cards()
    except AuthenticationError:
        return await _signed_out(request, session)
    except ApiError as exc:
        logger.error("Failed to load cards: %s", exc.message)
        error = exc.message

    context = {"page_title": "Vocab Review · Cards", "cards": cards, "error": error}
    return templates.TemplateResponse(request, "cards.html", context)


@router.get("/cards/new", response_class=HTMLResponse)
async def new_card_page(request: Request) -> Response:
    session = current_session(request)
    if session is None:
        return redirect(request, "/login")
    return await _card_form(request, session, CardDraft(front="", back=""))


@router.post("/cards", response_class=HTMLResponse)
async def create_card(
    request: Request,
    front: str = Form(""),
    back: str = Form(""),
    example: str = Form(""),
    language_pair: str = Form(""),
    audio_url: str = Form(""),
    tag_ids: list[int] = Form([]),
) -> Response:
    session = current_session(request)
    if session is None:
        return redirect(request, "/login")

    draft = _draft_from_form(front, back, example, language_pair, audio_url, tag_ids)
    try:
        card = await session.api.create_card(draft)
    except ValueError as exc:
        return await _card_form(request, session, draft, error=str(exc), status_code=status.HTTP_400_BAD_REQUEST)
    except AuthenticationError:
        return await _signed_out(request, session)
    except ApiError as exc:
        return await _card_form(request, session, draft, error=exc.message, status_code=status.HTTP_400_BAD_REQUEST)

    logger.info("Created card %s", card.id)
    return redirect(request, CARDS_URL)


@router.get("/cards/{card_id}/edit", response_class=HTMLResponse)
async def edit_card_page(request: Request, card_id: int) -> Response:
    session = current_session(request)
    if session is None:
        return redirect(request, "/login")

    try:
        card = await session.api.get_card(card_id)
    except AuthenticationError:
        return await _signed_out(request, session)
    except ApiError as exc:
        logger.info("Card %s not available for editing: %s", card_id, exc.message)
        return redirect(request, CARDS_URL)
    return await _card_form(request, session, _draft_from_card(card), card_id=card_id)


@router.post("/cards/{card_id}", response_class=HTMLResponse)
async def update_card(
    request: Request,
    card_id: int,
    front: str = Form(""),
    back: str = Form(""),
    example: str = Form(""),
    language_pair: str = Form(""),
    audio_url: str = Form(""),
    tag_ids: list[int] = Form([]),
) -> Response:
    session = current_session(request)
    if session is None:
        return redirect(request, "/login")

    draft = _draft_from_form(front, back, example, language_pair, audio_url, tag_ids)
    try:
        await session.api.update_card(card_id, draft)
    except ValueError as exc:
        return await _card_form(
            request, session, draft, card_id=card_id, error=str(exc), status_code=status.HTTP_400_BAD_REQUEST
        )
    except AuthenticationError:
        return await _signed_out(request, session)
    except ApiError as exc:
        return await _card_form(
            request, session, draft, card_id=card_id, error=exc.message, status_code=status.HTTP_400_BAD_REQUEST
        )
    return redirect(request, CARDS_URL)


@router.post("/cards/{card_id}/delete")
async def delete_card(request: Request, card_id: int) -> Response:
    session = current_session(request)
    if session is None:
        return redirect(request, "/login")

    try:
        await session.api.delete_card(card_id)
    except AuthenticationError:
        return await _signed_out(request, session)
    except ApiError as exc:
        logger.warning("Failed to delete card %s: %s", card_id, exc.message)
    return redirect(request, CARDS_URL)


# -- tags ---------------------------------------------------------------------


async def _tags_page(
    request: Request,
    session: BrowserSession,
    *,
    error: str | None = None,
    status_code: int = status.HTTP_200_OK,
) -> Response:
    tags = []
    try:
        tags = await session.api.list_tags()
    except AuthenticationError:
        return await _signed_out(request, session)
    except ApiError as exc:
        logger.error("Failed to load tags: %s", exc.message)
        error = error or exc.message
    context = {
        "page_title": "Vocab Review · Tags",
        "tags": tags,
        "error": error,
        "default_color": DEFAULT_TAG_COLOR,
    }
    return templates.TemplateResponse(request, "tags.html", context, status_code=status_code)


@router.get("/tags", response_class=HTMLResponse)
async def tags_page(request: Request) -> Response:
    session = current_session(request)
    if session is None:
        return redirect(request, "/login")
    return await _tags_page(request, session)


@router.post("/tags", response_class=HTMLResponse)
async def create_tag(
    request: Request,
    name: str = Form(""),
    color: str = Form(DEFAULT_TAG_COLOR),
) -> Response:
    session = current_session(request)
    if session is None:
        return redirect(request, "/login")

    name = name.strip()
    if not name:
        return await _tags_page(request, session, error="Tag name is required", status_code=status.HTTP_400_BAD_REQUEST)
    try:
        await session.api.create_tag(name, color.strip() or DEFAULT_TAG_COLOR)
    except AuthenticationError:
        return await _signed_out(request, session)
    except ApiError as exc:
        return await _tags_page(request, session, error=exc.message, status_code=status.HTTP_400_BAD_REQUEST)
    return redirect(request, TAGS_URL)


@router.post("/tags/{tag_id}", response_class=HTMLResponse)
async def update_tag(
    request: Request,
    tag_id: int,
    name: str = Form(""),
    color: str = Form(DEFAULT_TAG_COLOR),
) -> Response:
    session = current_session(request)
    if session is None:
        return redirect(request, "/login")

    name = name.strip()
    if not name:
        return await _tags_page(request, session, error="Tag name is required", status_code=status.HTTP_400_BAD_REQUEST)
    try:
        await session.api.update_tag(tag_id, name, color.strip() or DEFAULT_TAG_COLOR)
    except AuthenticationError:
        return await _signed_out(request, session)
    except ApiError as exc:
        return await _tags_page(request, session, error=exc.message, status_code=status.HTTP_400_BAD_REQUEST)
    return redirect(request, TAGS_URL)


@router.post("/tags/{tag_id}/delete")
async def delete_tag(request: Request, tag_id: int) -> Response:
    session = current_session(request)
    if session is None:
        return redirect(request, "/login")

    try:
        await session.api.delete_tag(tag_id)
    except AuthenticationError:
        return await _signed_out(request, session)
    except ApiError as exc:
        logger.warning("Failed to delete tag %s: %s", tag_id, exc.message)
    return redirect(request, TAGS_URL)
