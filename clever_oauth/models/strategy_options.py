from __future__ import annotations

import enum
from dataclasses import dataclass, field

from clever_oauth.models.auth_result import AuthResult
from clever_oauth.models.client_config import ClientConfig


class Mode(enum.Enum):
    """How the strategy authenticates.

    LIVE talks to Clever. TEST skips the provider entirely: the request phase
    redirects straight to the callback, and the callback returns ``mock_auth``.
    """

    LIVE = "live"
    TEST = "test"


DEFAULT_MOCK_AUTH = AuthResult(
    provider="clever",
    uid="1234",
    info={"user_type": "student", "id": "1234", "name": "Example User"},
    extra={"raw_info": {"type": "student", "data": {"id": "1234", "name": "Example User"}}},
)


@dataclass(frozen=True, slots=True)
class StrategyOptions:
    client: ClientConfig
    name: str = "clever"
    # Clever often starts the login itself (from the Clever portal), in which
    # case there is no state to echo back.
    provider_ignores_state: bool = True
    mode: Mode = Mode.LIVE
    # AuthResult to return in TEST mode, or a failure kind string to fail with.
    mock_auth: AuthResult | str = DEFAULT_MOCK_AUTH
    authorize_params: dict[str, str] = field(default_factory=dict)
    path_prefix: str = "/auth"

    @property
    def callback_path(self) -> str:
        return f"{self.path_prefix}/{self.name}/callback"

    @property
    def request_path(self) -> str:
        return f"{self.path_prefix}/{self.name}"
