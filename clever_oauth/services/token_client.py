"""Authorization-code grant and authenticated API calls over httpx.

TokenClient.exchange_code() trades the callback's ``code`` for an
AccessToken. AccessToken satisfies the TokenSource capability the strategy
uses to fetch ``/me``: ``get(path) -> ApiResponse``.

Both outbound calls are single attempts. Timeouts come from the httpx client
the host constructs; nothing here retries.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Protocol

import httpx

from clever_oauth.core.errors import TokenExchangeError
from clever_oauth.core.metrics import TOKEN_EXCHANGE_DURATION
from clever_oauth.models.auth_result import Credentials
from clever_oauth.models.client_config import ClientConfig
from clever_oauth.services.token_request import authorization_code_params

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ApiResponse:
    status_code: int
    parsed: Any


class TokenSource(Protocol):
    def get(self, path: str) -> ApiResponse: ...


class CodeExchanger(Protocol):
    def exchange_code(
        self, config: ClientConfig, *, code: str, redirect_uri: str
    ) -> AccessToken: ...


def _parse_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


def _transport_error(exc: httpx.TransportError, what: str) -> TokenExchangeError:
    if isinstance(exc, httpx.TimeoutException):
        return TokenExchangeError("timeout", f"{what} timed out", cause=exc)
    return TokenExchangeError("failed_to_connect", f"{what} failed: {exc}", cause=exc)


class AccessToken:
    """Bearer token bound to the provider's API site."""

    def __init__(
        self,
        http: httpx.Client,
        *,
        site: str,
        token: str,
        refresh_token: str | None = None,
        expires_at: int | None = None,
    ) -> None:
        self._http = http
        self.site = site.rstrip("/")
        self.token = token
        self.refresh_token = refresh_token
        self.expires_at = expires_at

    def __repr__(self) -> str:
        return f"AccessToken(site={self.site!r}, expires_at={self.expires_at!r})"

    @property
    def credentials(self) -> Credentials:
        return Credentials(
            token=self.token,
            refresh_token=self.refresh_token,
            expires_at=self.expires_at,
        )

    def get(self, path: str) -> ApiResponse:
        url = path if path.startswith("http") else f"{self.site}{path}"
        try:
            response = self._http.get(
                url,
                headers={
                    "Authorization": f"Bearer {self.token}",
                    "Accept": "application/json",
                },
            )
        except httpx.TransportError as exc:
            raise _transport_error(exc, f"GET {path}") from exc

        if not response.is_success:
            logger.warning("GET %s rejected  status=%d", path, response.status_code)
            raise TokenExchangeError(
                "invalid_credentials",
                f"GET {path} returned {response.status_code}",
                status_code=response.status_code,
            )
        return ApiResponse(status_code=response.status_code, parsed=_parse_body(response))


class TokenClient:
    """Performs the authorization-code grant against a provider token URL."""

    def __init__(
        self,
        http: httpx.Client | None = None,
        *,
        timeout: float = 10.0,
        strategy: str = "clever",
    ) -> None:
        self._http = http or httpx.Client(timeout=timeout)
        self._strategy = strategy

    def close(self) -> None:
        self._http.close()

    def exchange_code(
        self, config: ClientConfig, *, code: str, redirect_uri: str
    ) -> AccessToken:
        params = authorization_code_params(config, code=code, redirect_uri=redirect_uri)

        start = time.monotonic()
        try:
            response = self._http.post(
                config.token_url, data=params["body"], headers=params["headers"]
            )
        except httpx.TransportError as exc:
            raise _transport_error(exc, "token request") from exc
        finally:
            TOKEN_EXCHANGE_DURATION.labels(strategy=self._strategy).observe(
                time.monotonic() - start
            )

        body = _parse_body(response)
        if not response.is_success:
            description = None
            if isinstance(body, Mapping):
                description = body.get("error_description") or body.get("error")
            logger.warning(
                "Token request rejected  status=%d error=%s",
                response.status_code,
                description,
            )
            raise TokenExchangeError(
                "invalid_credentials",
                description or f"token endpoint returned {response.status_code}",
                status_code=response.status_code,
            )

        if not isinstance(body, Mapping) or not body.get("access_token"):
            raise TokenExchangeError(
                "invalid_credentials",
                "token response has no access_token",
                status_code=response.status_code,
            )

        try:
            expires_at = _expires_at(body)
        except (TypeError, ValueError) as exc:
            raise TokenExchangeError(
                "invalid_credentials",
                "token response has an invalid expiry",
                cause=exc,
                status_code=response.status_code,
            ) from exc

        return AccessToken(
            self._http,
            site=config.site,
            token=body["access_token"],
            refresh_token=body.get("refresh_token"),
            expires_at=expires_at,
        )


def _expires_at(body: Mapping[str, Any]) -> int | None:
    if body.get("expires_at") is not None:
        return int(body["expires_at"])
    if body.get("expires_in") is not None:
        return int(time.time()) + int(body["expires_in"])
    return None
