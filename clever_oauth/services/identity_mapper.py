"""Turn Clever's raw ``/me`` payload into the auth-result shape.

All functions take the raw payload mapping as returned by the provider and
validate it against ``RawIdentity`` first, so a malformed payload fails here
with MissingFieldError instead of a KeyError somewhere downstream.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from clever_oauth.core.errors import MissingFieldError
from clever_oauth.models.auth_result import AuthResult, Credentials
from clever_oauth.models.identity import RawIdentity


def parse(raw: Any) -> RawIdentity:
    if not isinstance(raw, Mapping):
        raise MissingFieldError("data")
    try:
        return RawIdentity.model_validate(dict(raw))
    except ValidationError as exc:
        first = exc.errors()[0]
        field = ".".join(str(part) for part in first["loc"]) or "data"
        raise MissingFieldError(field, cause=exc) from exc


def uid(raw: Any) -> str:
    return parse(raw).data.id


def info(raw: Any) -> dict[str, Any]:
    parse(raw)
    # Every data key kept verbatim, user_type present even when type is absent.
    # The top-level type owns user_type; a data.user_type field stays in raw_info.
    out: dict[str, Any] = {"user_type": raw.get("type")}
    out.update((k, v) for k, v in raw["data"].items() if k != "user_type")
    return out


def extra(raw: Any) -> dict[str, Any]:
    parse(raw)
    return {"raw_info": raw}


def to_auth_result(
    raw: Any, *, provider: str, credentials: Credentials | None = None
) -> AuthResult:
    return AuthResult(
        provider=provider,
        uid=uid(raw),
        info=info(raw),
        extra=extra(raw),
        credentials=credentials,
    )
