"""Liveness and readiness probes.

/health answers "is the process up"; /ready answers "can it complete a
sign-in", which needs Clever client credentials unless running in test mode.
"""

from __future__ import annotations

from fastapi import APIRouter, Request, Response, status

from clever_oauth.models.strategy_options import Mode

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(request: Request) -> dict:
    strategy = getattr(request.app.state, "strategy", None)
    return {
        "status": "ok",
        "strategy": strategy.name if strategy is not None else None,
        "mode": strategy.options.mode.value if strategy is not None else None,
    }


@router.get("/ready")
async def ready(request: Request) -> Response:
    strategy = getattr(request.app.state, "strategy", None)
    if strategy is None:
        return Response(status_code=status.HTTP_503_SERVICE_UNAVAILABLE)
    if strategy.options.mode is Mode.TEST:
        return Response(status_code=status.HTTP_200_OK)
    client = strategy.options.client
    if not client.client_id or not client.client_secret:
        return Response(status_code=status.HTTP_503_SERVICE_UNAVAILABLE)
    return Response(status_code=status.HTTP_200_OK)
