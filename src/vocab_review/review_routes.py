"""FastAPI routes for the review page and its htmx actions."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Form, HTTPException, Request, status
from fastapi.responses import HTMLResponse
from starlette.responses import Response

from .browser_sessions import BrowserSession
from .controller import LoadFailure, ReviewController, SubmitFailure
from .keyboard import KeyEvent
from .models import QualityBucket
from .web import current_session, get_app_settings, redirect, templates

logger = logging.getLogger(__name__)

router = APIRouter()

DASHBOARD_URL = "/"


def _should_leave(review: ReviewController) -> bool:
    if review.phase == "cancelled":
        return True
    return review.phase == "complete" and not review.nothing_due


def _leave(request: Request, session: BrowserSession, review: ReviewController) -> Response:
    if session.review is review:
        session.close_review()
    return redirect(request, DASHBOARD_URL)


def _panel(request: Request, session: BrowserSession, review: ReviewController) -> Response:
    if _should_leave(review):
        return _leave(request, session, review)
    context = {"view": review.snapshot()}
    return templates.TemplateResponse(request, "partials/review_panel.html", context)


def _active(request: Request) -> tuple[BrowserSession, ReviewController] | None:
    session = current_session(request)
    if session is None or session.review is None:
        return None
    return session, session.review


@router.get("/review", response_class=HTMLResponse)
async def review_page(request: Request) -> Response:
    session = current_session(request)
    if session is None:
        return redirect(request, "/login")

    review = session.open_review(get_app_settings(request).settle_delay)
    try:
        await review.start()
    except LoadFailure:
        # The view carries the message; the user re-enters the page to retry.
        pass

    context = {
        "page_title": "Vocab Review · Review",
        "view": review.snapshot(),
    }
    return templates.TemplateResponse(request, "review.html", context)


@router.post("/review/reveal", response_class=HTMLResponse)
async def reveal(request: Request) -> Response:
    active = _active(request)
    if active is None:
        return redirect(request, DASHBOARD_URL)
    session, review = active
    review.reveal_answer()
    return _panel(request, session, review)


@router.post("/review/rate/{quality}", response_class=HTMLResponse)
async def rate(request: Request, quality: int) -> Response:
    try:
        bucket = QualityBucket(quality)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Unknown quality code")

    active = _active(request)
    if active is None:
        return redirect(request, DASHBOARD_URL)
    session, review = active
    try:
        await review.submit_rating(bucket)
    except SubmitFailure as exc:
        logger.info("Rating for card %s not recorded; card kept on screen", exc.card_id)
    return _panel(request, session, review)


@router.post("/review/key", response_class=HTMLResponse)
async def key_press(
    request: Request,
    key: str = Form(...),
    target: str = Form("body"),
    editable: bool = Form(False),
) -> Response:
    active = _active(request)
    if active is None:
        return redirect(request, DASHBOARD_URL)
    session, review = active
    event = KeyEvent(key=key, target_tag=target, content_editable=editable)
    try:
        await review.handle_key(event)
    except SubmitFailure as exc:
        logger.info("Rating for card %s not recorded; card kept on screen", exc.card_id)
    return _panel(request, session, review)


@router.post("/review/help", response_class=HTMLResponse)
async def open_help(request: Request) -> Response:
    active = _active(request)
    if active is None:
        return redirect(request, DASHBOARD_URL)
    session, review = active
    review.request_help()
    return _panel(request, session, review)


@router.post("/review/help/dismiss", response_class=HTMLResponse)
async def dismiss_help(request: Request) -> Response:
    active = _active(request)
    if active is None:
        return redirect(request, DASHBOARD_URL)
    session, review = active
    review.dismiss_help()
    return _panel(request, session, review)


@router.post("/review/cancel")
async def cancel(request: Request) -> Response:
    active = _active(request)
    if active is None:
        return redirect(request, DASHBOARD_URL)
    session, review = active
    review.cancel()
    return _leave(request, session, review)
