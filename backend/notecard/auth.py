"""
Notecard — Auth Gate
======================

What:  Admits requests that carry a valid session token and exposes sign-out.
How:   Session tokens are HS256 JWTs minted by the identity provider with the
       shared AUTH_SECRET. Browsers hold the token in an HttpOnly cookie; API
       clients send `Authorization: Bearer <token>`.
Who:   FastAPI dependencies used by the page, API and auth routes.

Claims:
    sub          owner identifier stamped on created notes
    identity_id  storage namespace (defaults to sub)
    iat, exp     issue and expiry times
    jti          unique token id
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import uuid4

import jwt
from fastapi import Request, Response

from notecard.config import settings
from notecard.exceptions import AuthenticationError
from notecard.schemas.note import SessionInfo

logger = logging.getLogger(__name__)


def create_session_token(
    owner: str,
    identity_id: Optional[str] = None,
    ttl_minutes: Optional[int] = None,
) -> str:
    """Mint a session token the way the identity provider does."""
    now = datetime.now(timezone.utc)
    exp = now + timedelta(minutes=ttl_minutes or settings.session_ttl_minutes)
    payload = {
        "sub": owner,
        "identity_id": identity_id or owner,
        "iat": int(now.timestamp()),
        "exp": int(exp.timestamp()),
        "jti": str(uuid4()),
    }
    return jwt.encode(payload, settings.auth_secret, algorithm=settings.auth_algorithm)


def verify_session_token(token: str) -> SessionInfo:
    """
    Decode and validate a session token.

    Raises:
        AuthenticationError: bad signature, expired, or no subject.
    """
    try:
        payload = jwt.decode(token, key=settings.auth_secret, algorithms=[settings.auth_algorithm])
    except jwt.ExpiredSignatureError:
        raise AuthenticationError(message="Your session has expired. Sign in again.")
    except jwt.InvalidTokenError as e:
        logger.info("Rejected session token: %s", str(e))
        raise AuthenticationError(message="Invalid session token")

    owner = payload.get("sub")
    if not owner:
        raise AuthenticationError(message="Invalid session token")
    return SessionInfo(owner=owner, identity_id=payload.get("identity_id") or owner)


def _token_from_request(request: Request) -> Optional[str]:
    authorization = request.headers.get("Authorization")
    if authorization and authorization.startswith("Bearer "):
        return authorization.split(" ", 1)[1].strip()
    return request.cookies.get(settings.session_cookie_name)


def get_session(request: Request) -> SessionInfo:
    """Dependency for routes that require a signed-in user."""
    token = _token_from_request(request)
    if not token:
        raise AuthenticationError()
    return verify_session_token(token)


def get_optional_session(request: Request) -> Optional[SessionInfo]:
    """
    Dependency for the page route: None renders the sign-in challenge.

    A stale cookie is treated as signed out rather than as an error.
    """
    token = _token_from_request(request)
    if not token:
        return None
    try:
        return verify_session_token(token)
    except AuthenticationError:
        return None


def set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        settings.session_cookie_name,
        token,
        max_age=settings.session_ttl_minutes * 60,
        httponly=True,
        samesite="lax",
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(settings.session_cookie_name, httponly=True, samesite="lax")
