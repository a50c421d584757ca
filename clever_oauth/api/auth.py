from __future__ import annotations

import logging
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse, RedirectResponse

from clever_oauth.api.dependencies import (
    StarletteRequestSource,
    get_strategy,
    load_session,
    save_session,
)
from clever_oauth.core.errors import CallbackError
from clever_oauth.models.request_context import RequestContext
from clever_oauth.strategy import CleverStrategy

# ---------------------------------------------------------------------------
# Sign in with Clever
#
#   GET /auth/clever          : request phase: redirect to Clever
#   GET /auth/clever/callback : callback phase: code → token → /me → auth hash
#   GET /auth/failure         : where failed callbacks land
# ---------------------------------------------------------------------------

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


def _full_host(request: Request) -> str:
    return f"{request.url.scheme}://{request.url.netloc}"


def _script_name(request: Request) -> str:
    return request.scope.get("root_path", "")


@router.get("/auth/clever")
def request_phase(
    request: Request,
    strategy: CleverStrategy = Depends(get_strategy),
) -> RedirectResponse:
    session = load_session(request)
    location = strategy.request_phase(
        session, full_host=_full_host(request), script_name=_script_name(request)
    )
    response = RedirectResponse(url=location, status_code=status.HTTP_302_FOUND)
    save_session(response, session)
    return response


@router.get("/auth/clever/callback", response_model=None)
def callback_phase(
    request: Request,
    strategy: CleverStrategy = Depends(get_strategy),
) -> JSONResponse | RedirectResponse:
    session = load_session(request)
    ctx = RequestContext.from_source(StarletteRequestSource(request), session)

    response: JSONResponse | RedirectResponse
    try:
        result = strategy.callback_phase(ctx, script_name=_script_name(request))
    except CallbackError as exc:
        query = urlencode({"message": exc.kind, "strategy": strategy.name})
        response = RedirectResponse(
            url=f"{_script_name(request)}/auth/failure?{query}",
            status_code=status.HTTP_302_FOUND,
        )
    else:
        response = JSONResponse(result.to_dict())

    # Write back even on failure: the state entry has been consumed.
    save_session(response, session)
    return response


@router.get("/auth/failure")
def failure(
    message: str = Query("unknown_error"),
    strategy: str | None = Query(None),
) -> JSONResponse:
    logger.info("Auth failure page  strategy=%s message=%s", strategy, message)
    return JSONResponse(
        {"error": message, "strategy": strategy},
        status_code=status.HTTP_401_UNAUTHORIZED,
    )
