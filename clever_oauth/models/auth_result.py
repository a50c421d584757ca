from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class Credentials:
    token: str
    refresh_token: str | None = None
    expires_at: int | None = None

    @property
    def expires(self) -> bool:
        return self.expires_at is not None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"token": self.token, "expires": self.expires}
        if self.refresh_token is not None:
            out["refresh_token"] = self.refresh_token
        if self.expires_at is not None:
            out["expires_at"] = self.expires_at
        return out


@dataclass(frozen=True, slots=True)
class AuthResult:
    """Normalized identity handed to the host after a successful callback.

    ``info`` carries ``user_type`` plus every field of the provider's
    ``data`` object; ``extra["raw_info"]`` is the untouched provider payload.
    """

    provider: str
    uid: str
    info: dict[str, Any] = field(default_factory=dict)
    extra: dict[str, Any] = field(default_factory=dict)
    credentials: Credentials | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "provider": self.provider,
            "uid": self.uid,
            "info": dict(self.info),
            "extra": dict(self.extra),
        }
        if self.credentials is not None:
            out["credentials"] = self.credentials.to_dict()
        return out
