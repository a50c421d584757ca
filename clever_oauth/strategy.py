"""Clever OAuth2 strategy.

Adapts Clever's endpoints to the generic request/callback contract:

  request phase  : store a fresh state in the session, redirect the browser
                    to https://clever.com/oauth/authorize
  callback phase : CallbackHandler: error check, state check (skipped, see
                    provider_ignores_state), code exchange at
                    https://clever.com/oauth/tokens with HTTP Basic client
                    auth, then GET {site}/me for the identity

Clever frequently starts logins itself from the Clever portal ("instant
login"), so a callback without a matching state is normal for this provider
and provider_ignores_state is always on.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, MutableMapping
from typing import Any
from urllib.parse import urlencode

from clever_oauth.core.metrics import OAUTH_REQUEST_PHASES
from clever_oauth.models.auth_result import AuthResult
from clever_oauth.models.client_config import ClientConfig
from clever_oauth.models.request_context import STATE_SESSION_KEY, RequestContext
from clever_oauth.models.strategy_options import DEFAULT_MOCK_AUTH, Mode, StrategyOptions
from clever_oauth.services import identity_mapper, state_service
from clever_oauth.services.callback_handler import CallbackHandler
from clever_oauth.services.token_client import CodeExchanger, TokenClient, TokenSource
from clever_oauth.services.token_request import build_token_params

logger = logging.getLogger(__name__)

USER_INFO_PATH = "/me"


class CleverStrategy:
    def __init__(
        self,
        client_id: str,
        client_secret: str,
        *,
        site: str | None = None,
        mode: Mode = Mode.LIVE,
        mock_auth: AuthResult | str = DEFAULT_MOCK_AUTH,
        authorize_params: Mapping[str, str] | None = None,
        path_prefix: str = "/auth",
        exchanger: CodeExchanger | None = None,
    ) -> None:
        self.options = StrategyOptions(
            client=ClientConfig.new(
                client_id=client_id, client_secret=client_secret, site=site
            ),
            provider_ignores_state=True,
            mode=mode,
            mock_auth=mock_auth,
            authorize_params=dict(authorize_params or {}),
            path_prefix=path_prefix,
        )
        self._exchanger = exchanger or TokenClient(strategy=self.options.name)
        self._handler = CallbackHandler(
            self.options,
            exchanger=self._exchanger,
            fetch_raw_identity=self.raw_info,
        )

    @property
    def name(self) -> str:
        return self.options.name

    def close(self) -> None:
        if isinstance(self._exchanger, TokenClient):
            self._exchanger.close()

    # ---- request phase ----------------------------------------------------

    def token_params(self) -> dict[str, dict[str, str]]:
        return build_token_params(self.options.client)

    def callback_url(
        self,
        full_host: str,
        script_name: str = "",
        callback_path: str | None = None,
    ) -> str:
        # Plain concatenation; no slash normalization.
        path = self.options.callback_path if callback_path is None else callback_path
        return full_host + script_name + path

    def authorize_url(self, *, redirect_uri: str, state: str) -> str:
        params = {
            "response_type": "code",
            "client_id": self.options.client.client_id,
            "redirect_uri": redirect_uri,
            "state": state,
            **self.options.authorize_params,
        }
        return f"{self.options.client.authorize_url}?{urlencode(params)}"

    def request_phase(
        self,
        session: MutableMapping[str, str],
        *,
        full_host: str,
        script_name: str = "",
    ) -> str:
        """Start a login and return the URL to redirect the browser to."""
        redirect_uri = self.callback_url(full_host, script_name)
        OAUTH_REQUEST_PHASES.labels(strategy=self.name).inc()

        if self.options.mode is Mode.TEST:
            logger.info("Request phase (test mode)  strategy=%s", self.name)
            return redirect_uri

        state = state_service.generate()
        session[STATE_SESSION_KEY] = state
        logger.info(
            "Request phase  strategy=%s redirect_uri=%s", self.name, redirect_uri
        )
        return self.authorize_url(redirect_uri=redirect_uri, state=state)

    # ---- callback phase ---------------------------------------------------

    def callback_phase(
        self, ctx: RequestContext, *, script_name: str = ""
    ) -> AuthResult:
        redirect_uri = self.callback_url(ctx.full_host, script_name)
        return self._handler.callback_phase(ctx, redirect_uri=redirect_uri)

    def raw_info(self, access_token: TokenSource) -> Any:
        return access_token.get(USER_INFO_PATH).parsed

    def uid(self, raw: Any) -> str:
        return identity_mapper.uid(raw)

    def info(self, raw: Any) -> dict[str, Any]:
        return identity_mapper.info(raw)

    def extra(self, raw: Any) -> dict[str, Any]:
        return identity_mapper.extra(raw)
