from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal

from clever_oauth.models.client_config import DEFAULT_SITE

AppEnv = Literal["dev", "test", "prod"]
LogLevel = Literal["debug", "info", "warning", "error"]
AuthMode = Literal["live", "test"]


def _getenv(name: str, default: str) -> str:
    # Centralize env access so it’s easy to extend later (type casting, required vars)
    return os.environ.get(name, default).strip()


@dataclass(frozen=True)
class Settings:
    app_env: AppEnv
    log_level: LogLevel
    log_json: bool
    auth_mode: AuthMode
    clever_client_id: str
    clever_client_secret: str
    clever_site: str
    session_secret: str
    http_timeout_s: float

    @property
    def is_dev(self) -> bool:
        return self.app_env == "dev"

    @property
    def is_test(self) -> bool:
        return self.app_env == "test"

    @property
    def is_prod(self) -> bool:
        return self.app_env == "prod"


def load_settings() -> Settings:
    app_env_raw = _getenv("APP_ENV", "dev").lower()
    log_level_raw = _getenv("LOG_LEVEL", "info").lower()
    log_json_raw = _getenv("LOG_JSON", "false").lower()
    auth_mode_raw = _getenv("AUTH_MODE", "live").lower()
    timeout_raw = _getenv("HTTP_TIMEOUT_S", "10")

    if app_env_raw not in ("dev", "test", "prod"):
        raise ValueError(f"APP_ENV must be dev|test|prod (got {app_env_raw!r})")

    if log_level_raw not in ("debug", "info", "warning", "error"):
        raise ValueError(
            f"LOG_LEVEL must be debug|info|warning|error (got {log_level_raw!r})"
        )

    if auth_mode_raw not in ("live", "test"):
        raise ValueError(f"AUTH_MODE must be live|test (got {auth_mode_raw!r})")

    try:
        http_timeout_s = float(timeout_raw)
    except ValueError:
        raise ValueError(
            f"HTTP_TIMEOUT_S must be a number (got {timeout_raw!r})"
        ) from None
    if http_timeout_s <= 0:
        raise ValueError(f"HTTP_TIMEOUT_S must be positive (got {timeout_raw!r})")

    session_secret = _getenv("SESSION_SECRET", "")
    if not session_secret:
        if app_env_raw == "prod":
            raise ValueError("SESSION_SECRET is required when APP_ENV=prod")
        session_secret = "dev-only-session-secret-change-me"

    return Settings(  # type: ignore[arg-type]
        app_env=app_env_raw,
        log_level=log_level_raw,
        log_json=log_json_raw in ("1", "true", "yes"),
        auth_mode=auth_mode_raw,
        clever_client_id=_getenv("CLEVER_CLIENT_ID", ""),
        clever_client_secret=_getenv("CLEVER_CLIENT_SECRET", ""),
        clever_site=_getenv("CLEVER_SITE", DEFAULT_SITE) or DEFAULT_SITE,
        session_secret=session_secret,
        http_timeout_s=http_timeout_s,
    )


# Optional: module-level singleton so imports are cheap
SETTINGS = load_settings()
