from __future__ import annotations

import logging
from collections.abc import Mapping

import jwt
from fastapi import HTTPException, Request, Response, status

from clever_oauth.core.config import SETTINGS
from clever_oauth.services import session_service
from clever_oauth.strategy import CleverStrategy

logger = logging.getLogger(__name__)


class StarletteRequestSource:
    """RequestSource backed by a Starlette request."""

    def __init__(self, request: Request) -> None:
        self._request = request

    def params(self) -> Mapping[str, str]:
        return dict(self._request.query_params)

    def scheme(self) -> str:
        return self._request.url.scheme

    def url(self) -> str:
        return str(self._request.url)


def get_strategy(request: Request) -> CleverStrategy:
    """The strategy built in the app lifespan.

    Tests swap it out through ``app.dependency_overrides``.
    """
    strategy = getattr(request.app.state, "strategy", None)
    if strategy is None:
        raise HTTPException(status.HTTP_503_SERVICE_UNAVAILABLE, "strategy not configured")
    return strategy


def load_session(request: Request) -> dict[str, str]:
    """Return the session mapping from the cookie, or an empty one.

    An expired or tampered cookie is treated as no session.
    """
    cookie = request.cookies.get(session_service.COOKIE_NAME)
    if not cookie:
        return {}
    try:
        return session_service.decode_session(cookie, secret=SETTINGS.session_secret)
    except jwt.ExpiredSignatureError:
        logger.debug("Session cookie expired")
        return {}
    except jwt.InvalidTokenError:
        logger.debug("Invalid session cookie")
        return {}


def save_session(response: Response, session: dict[str, str]) -> None:
    response.set_cookie(
        key=session_service.COOKIE_NAME,
        value=session_service.encode_session(session, secret=SETTINGS.session_secret),
        httponly=True,
        # Lax so the cookie rides along on the top-level redirect back from Clever
        samesite="lax",
        secure=SETTINGS.is_prod,
        path="/",
        max_age=session_service.SESSION_TTL_MIN * 60,
    )
