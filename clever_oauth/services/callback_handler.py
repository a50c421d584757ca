"""Callback phase of the OAuth2 authorization-code flow.

Order of checks, first failure wins:

  1. provider error : ``error`` / ``error_reason`` in the query → ProviderError
  2. state          : StateValidator, enforced unless provider_ignores_state
  3. code           : missing ``code`` → TokenExchangeError(invalid_credentials)
  4. token exchange : one POST to the token URL, no retry
  5. user info      : injected ``fetch_raw_identity(token)``
  6. identity       : IdentityMapper → AuthResult

In Mode.TEST, steps 2-6 are replaced by the configured mock result.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

from clever_oauth.core.errors import CallbackError, ProviderError, TokenExchangeError
from clever_oauth.core.metrics import OAUTH_CALLBACKS
from clever_oauth.models.auth_result import AuthResult
from clever_oauth.models.request_context import STATE_SESSION_KEY, RequestContext
from clever_oauth.models.strategy_options import Mode, StrategyOptions
from clever_oauth.services import identity_mapper, state_service
from clever_oauth.services.token_client import AccessToken, CodeExchanger

logger = logging.getLogger(__name__)

FetchRawIdentity = Callable[[AccessToken], Mapping[str, Any]]


class CallbackHandler:
    def __init__(
        self,
        options: StrategyOptions,
        *,
        exchanger: CodeExchanger,
        fetch_raw_identity: FetchRawIdentity,
    ) -> None:
        self.options = options
        self._exchanger = exchanger
        self._fetch_raw_identity = fetch_raw_identity

    def callback_phase(self, ctx: RequestContext, *, redirect_uri: str) -> AuthResult:
        """Validate the callback request and resolve it to an AuthResult.

        Raises a CallbackError subclass on any failure. The stored state is
        removed from ``ctx.session`` whatever the outcome.
        """
        strategy = self.options.name
        try:
            result = self._run(ctx, redirect_uri=redirect_uri)
        except CallbackError as exc:
            OAUTH_CALLBACKS.labels(strategy=strategy, outcome=exc.kind).inc()
            logger.warning(
                "OAuth callback failed  strategy=%s kind=%s description=%s",
                strategy,
                exc.kind,
                exc.description,
                extra={"strategy": strategy, "outcome": "failure", "error_kind": exc.kind},
            )
            raise

        OAUTH_CALLBACKS.labels(strategy=strategy, outcome="success").inc()
        logger.info(
            "OAuth callback succeeded  strategy=%s uid=%s",
            strategy,
            result.uid,
            extra={"strategy": strategy, "outcome": "success"},
        )
        return result

    def _run(self, ctx: RequestContext, *, redirect_uri: str) -> AuthResult:
        params = ctx.params
        stored_state = ctx.session.pop(STATE_SESSION_KEY, None)

        # Presence of the key fails the callback, even with an empty value.
        # ``error`` is the kind; ``error_reason`` stands in only without it.
        if "error" in params or "error_reason" in params:
            kind = params["error"] if "error" in params else params["error_reason"]
            raise ProviderError(
                kind,
                params.get("error_description") or params.get("error_reason"),
            )

        if self.options.mode is Mode.TEST:
            return self._mock_result()

        state_service.validate(
            stored_state,
            params.get("state"),
            enforce=not self.options.provider_ignores_state,
        )

        code = params.get("code")
        if not code:
            raise TokenExchangeError("invalid_credentials", "missing authorization code")

        access_token = self._exchanger.exchange_code(
            self.options.client, code=code, redirect_uri=redirect_uri
        )
        logger.debug("Token exchange succeeded  strategy=%s", self.options.name)

        raw = self._fetch_raw_identity(access_token)
        return identity_mapper.to_auth_result(
            raw, provider=self.options.name, credentials=access_token.credentials
        )

    def _mock_result(self) -> AuthResult:
        mock = self.options.mock_auth
        if isinstance(mock, str):
            raise ProviderError(mock)
        return mock
