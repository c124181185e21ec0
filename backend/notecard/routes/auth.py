"""
Notecard — Auth Gate Route Handlers
=====================================

What:  Session exchange and sign-out for the browser, session info for API clients.

Endpoints:
    POST /auth/session   form field `token` (minted by the identity provider)
    POST /auth/sign-out  clears the session cookie
    GET  /api/session    current owner / identity
"""

import logging

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import RedirectResponse, Response

from notecard.auth import (
    clear_session_cookie,
    get_session,
    set_session_cookie,
    verify_session_token,
)
from notecard.exceptions import AuthenticationError
from notecard.routes.deps import get_page_view
from notecard.routes.pages import templates
from notecard.schemas.note import ErrorResponse, SessionInfo
from notecard.services.notes_view import NotesView

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Auth"])


@router.post("/auth/session", include_in_schema=False)
async def start_session(request: Request, token: str = Form(default="")) -> Response:
    try:
        session = verify_session_token(token.strip())
    except AuthenticationError as e:
        return templates.TemplateResponse(
            request,
            "index.html",
            {"authenticated": False, "auth_error": e.message},
            status_code=e.status_code,
        )

    logger.info("Session started for owner=%s", session.owner)
    response = RedirectResponse("/", status_code=303)
    set_session_cookie(response, token.strip())
    return response


@router.post("/auth/sign-out", include_in_schema=False)
async def sign_out(view: NotesView = Depends(get_page_view)) -> Response:
    view.sign_out()
    response = RedirectResponse("/", status_code=303)
    clear_session_cookie(response)
    return response


@router.get(
    "/api/session",
    response_model=SessionInfo,
    responses={401: {"description": "No valid session", "model": ErrorResponse}},
    summary="Current session",
)
async def current_session(session: SessionInfo = Depends(get_session)) -> SessionInfo:
    return session
