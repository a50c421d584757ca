from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from clever_oauth.api.auth import router as auth_router
from clever_oauth.api.health import router as health_router
from clever_oauth.api.metrics_endpoint import router as metrics_router
from clever_oauth.core.config import SETTINGS, Settings
from clever_oauth.core.logging import setup_logging
from clever_oauth.middleware.metrics import MetricsMiddleware
from clever_oauth.middleware.request_context import RequestContextMiddleware
from clever_oauth.models.strategy_options import Mode
from clever_oauth.services.token_client import TokenClient
from clever_oauth.strategy import CleverStrategy

# Configure logging before anything else runs.
setup_logging(SETTINGS.log_level, json_format=SETTINGS.log_json)

logger = logging.getLogger(__name__)


def build_strategy(settings: Settings) -> CleverStrategy:
    mode = Mode(settings.auth_mode)
    if mode is Mode.LIVE and not (
        settings.clever_client_id and settings.clever_client_secret
    ):
        logger.warning(
            "CLEVER_CLIENT_ID / CLEVER_CLIENT_SECRET not set; sign-in will fail"
        )
    return CleverStrategy(
        settings.clever_client_id,
        settings.clever_client_secret,
        site=settings.clever_site,
        mode=mode,
        exchanger=TokenClient(timeout=settings.http_timeout_s),
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # One httpx connection pool for the process, closed on shutdown.
    strategy = build_strategy(SETTINGS)
    app.state.strategy = strategy
    try:
        yield
    finally:
        strategy.close()


app = FastAPI(
    title="clever-oauth",
    lifespan=lifespan,
    docs_url="/docs" if SETTINGS.is_dev else None,
    redoc_url="/redoc" if SETTINGS.is_dev else None,
)

# Last-added runs first: RequestContext (outermost) → Metrics → route handler
app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestContextMiddleware)

app.include_router(metrics_router)
app.include_router(auth_router)
app.include_router(health_router)

logger.info(
    "clever-oauth started  env=%s log_level=%s auth_mode=%s site=%s",
    SETTINGS.app_env,
    SETTINGS.log_level,
    SETTINGS.auth_mode,
    SETTINGS.clever_site,
)
