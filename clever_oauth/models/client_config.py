from __future__ import annotations

from dataclasses import dataclass

# Clever's OAuth endpoints live on clever.com while the data API lives on
# api.clever.com, so the two are not derived from ``site``.
AUTHORIZE_URL = "https://clever.com/oauth/authorize"
TOKEN_URL = "https://clever.com/oauth/tokens"
DEFAULT_SITE = "https://api.clever.com"


@dataclass(frozen=True, slots=True)
class ClientConfig:
    client_id: str
    client_secret: str
    site: str = DEFAULT_SITE
    authorize_url: str = AUTHORIZE_URL
    token_url: str = TOKEN_URL

    def __post_init__(self) -> None:
        if self.authorize_url != AUTHORIZE_URL:
            raise ValueError(f"authorize_url is fixed to {AUTHORIZE_URL!r}")
        if self.token_url != TOKEN_URL:
            raise ValueError(f"token_url is fixed to {TOKEN_URL!r}")

    @staticmethod
    def new(
        *,
        client_id: str,
        client_secret: str,
        site: str | None = None,
    ) -> ClientConfig:
        return ClientConfig(
            client_id=client_id,
            client_secret=client_secret,
            site=(site or DEFAULT_SITE).rstrip("/"),
        )

    def __repr__(self) -> str:
        # client_secret stays out of reprs, tracebacks and log lines
        return (
            f"ClientConfig(client_id={self.client_id!r}, site={self.site!r}, "
            f"authorize_url={self.authorize_url!r}, token_url={self.token_url!r})"
        )
