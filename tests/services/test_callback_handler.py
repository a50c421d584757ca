"""CallbackHandler in isolation.

The exchanger and the identity fetcher are plain recording fakes, so each
test can assert which steps ran and in what order.
"""

from __future__ import annotations

import logging
from typing import Any

import pytest

from clever_oauth.core.errors import (
    CsrfError,
    MissingFieldError,
    ProviderError,
    TokenExchangeError,
)
from clever_oauth.models.auth_result import AuthResult, Credentials
from clever_oauth.models.client_config import ClientConfig
from clever_oauth.models.request_context import STATE_SESSION_KEY, RequestContext
from clever_oauth.models.strategy_options import Mode, StrategyOptions
from clever_oauth.services.callback_handler import CallbackHandler
from clever_oauth.services.token_client import ApiResponse

REDIRECT_URI = "http://localhost:3000/auth/clever/callback"
RAW = {"type": "teacher", "data": {"id": "t-77", "name": "Ms. Frizzle"}}


class FakeToken:
    def __init__(self, token: str = "tok") -> None:
        self.token = token
        self.refresh_token = None
        self.expires_at = None

    @property
    def credentials(self) -> Credentials:
        return Credentials(token=self.token)

    def get(self, path: str) -> ApiResponse:
        return ApiResponse(200, RAW)


class RecordingExchanger:
    def __init__(self, error: Exception | None = None) -> None:
        self.calls: list[dict[str, Any]] = []
        self.error = error

    def exchange_code(self, config: ClientConfig, *, code: str, redirect_uri: str) -> Any:
        self.calls.append({"config": config, "code": code, "redirect_uri": redirect_uri})
        if self.error is not None:
            raise self.error
        return FakeToken()


class RecordingFetcher:
    def __init__(self, raw: Any = RAW) -> None:
        self.calls: list[Any] = []
        self.raw = raw

    def __call__(self, token: Any) -> Any:
        self.calls.append(token)
        return self.raw


def _options(**kwargs: Any) -> StrategyOptions:
    return StrategyOptions(
        client=ClientConfig.new(client_id="TEST_ID", client_secret="TEST_SECRET"),
        **kwargs,
    )


def _ctx(params: dict[str, str], session: dict[str, str] | None = None) -> RequestContext:
    return RequestContext(
        params=params,
        session=session if session is not None else {},
        scheme="http",
        url="http://localhost:3000/auth/clever/callback",
        path="/auth/clever/callback",
    )


def _handler(
    options: StrategyOptions | None = None,
    exchanger: RecordingExchanger | None = None,
    fetcher: RecordingFetcher | None = None,
) -> tuple[CallbackHandler, RecordingExchanger, RecordingFetcher]:
    exchanger = exchanger or RecordingExchanger()
    fetcher = fetcher or RecordingFetcher()
    handler = CallbackHandler(
        options or _options(), exchanger=exchanger, fetch_raw_identity=fetcher
    )
    return handler, exchanger, fetcher


# ---- provider error short-circuit ----


def test_error_param_fails_with_provider_kind() -> None:
    handler, exchanger, fetcher = _handler()
    ctx = _ctx({"error": "access_denied", "error_description": "User denied your request"})

    with pytest.raises(ProviderError) as exc_info:
        handler.callback_phase(ctx, redirect_uri=REDIRECT_URI)

    assert exc_info.value.kind == "access_denied"
    assert exc_info.value.description == "User denied your request"
    assert exchanger.calls == []
    assert fetcher.calls == []


def test_error_param_skips_state_validation_even_when_enforced() -> None:
    handler, exchanger, _ = _handler(_options(provider_ignores_state=False))
    ctx = _ctx({"error": "access_denied", "state": "wrong"}, {STATE_SESSION_KEY: "right"})

    with pytest.raises(ProviderError):
        handler.callback_phase(ctx, redirect_uri=REDIRECT_URI)
    assert exchanger.calls == []


def test_error_without_description() -> None:
    handler, _, _ = _handler()
    with pytest.raises(ProviderError) as exc_info:
        handler.callback_phase(_ctx({"error": "server_error"}), redirect_uri=REDIRECT_URI)
    assert exc_info.value.kind == "server_error"
    assert exc_info.value.description is None


def test_error_reason_param_is_treated_as_provider_error() -> None:
    handler, _, _ = _handler()
    with pytest.raises(ProviderError) as exc_info:
        handler.callback_phase(
            _ctx({"error_reason": "user_denied"}), redirect_uri=REDIRECT_URI
        )
    assert exc_info.value.kind == "user_denied"


def test_error_wins_over_error_reason() -> None:
    handler, exchanger, _ = _handler()
    ctx = _ctx({"error": "access_denied", "error_reason": "user_denied"})

    with pytest.raises(ProviderError) as exc_info:
        handler.callback_phase(ctx, redirect_uri=REDIRECT_URI)

    assert exc_info.value.kind == "access_denied"
    assert exc_info.value.description == "user_denied"
    assert exchanger.calls == []


def test_empty_error_value_still_fails_before_exchange() -> None:
    handler, exchanger, fetcher = _handler()

    with pytest.raises(ProviderError) as exc_info:
        handler.callback_phase(_ctx({"error": "", "code": "abc"}), redirect_uri=REDIRECT_URI)

    assert exc_info.value.kind == ""
    assert exchanger.calls == []
    assert fetcher.calls == []


# ---- state ----


def test_mismatched_state_is_ignored_for_clever() -> None:
    handler, exchanger, _ = _handler()
    ctx = _ctx({"state": "state456", "code": "c"}, {STATE_SESSION_KEY: "state123"})

    result = handler.callback_phase(ctx, redirect_uri=REDIRECT_URI)

    assert result.uid == "t-77"
    assert len(exchanger.calls) == 1


def test_mismatched_state_fails_when_enforced() -> None:
    handler, exchanger, _ = _handler(_options(provider_ignores_state=False))
    ctx = _ctx({"state": "state456", "code": "c"}, {STATE_SESSION_KEY: "state123"})

    with pytest.raises(CsrfError) as exc_info:
        handler.callback_phase(ctx, redirect_uri=REDIRECT_URI)

    assert exc_info.value.kind == "csrf_detected"
    assert str(exc_info.value) == "CSRF detected"
    assert exchanger.calls == []


def test_matching_state_passes_when_enforced() -> None:
    handler, exchanger, _ = _handler(_options(provider_ignores_state=False))
    ctx = _ctx({"state": "same", "code": "c"}, {STATE_SESSION_KEY: "same"})
    handler.callback_phase(ctx, redirect_uri=REDIRECT_URI)
    assert len(exchanger.calls) == 1


@pytest.mark.parametrize(
    "params", [{"code": "c"}, {"error": "access_denied"}, {"state": "x"}]
)
def test_stored_state_is_consumed(params: dict[str, str]) -> None:
    handler, _, _ = _handler()
    session = {STATE_SESSION_KEY: "state123", "other": "kept"}
    try:
        handler.callback_phase(_ctx(params, session), redirect_uri=REDIRECT_URI)
    except Exception:
        pass
    assert session == {"other": "kept"}


# ---- token exchange ----


def test_missing_code_fails_before_exchange() -> None:
    handler, exchanger, _ = _handler()
    with pytest.raises(TokenExchangeError) as exc_info:
        handler.callback_phase(_ctx({}), redirect_uri=REDIRECT_URI)
    assert exc_info.value.kind == "invalid_credentials"
    assert exchanger.calls == []


def test_exchange_receives_code_redirect_uri_and_config() -> None:
    options = _options()
    handler, exchanger, fetcher = _handler(options)

    handler.callback_phase(_ctx({"code": "abc"}), redirect_uri=REDIRECT_URI)

    [call] = exchanger.calls
    assert call["code"] == "abc"
    assert call["redirect_uri"] == REDIRECT_URI
    assert call["config"] is options.client
    assert len(fetcher.calls) == 1


def test_exchange_failure_propagates_and_skips_user_info() -> None:
    exchanger = RecordingExchanger(TokenExchangeError("timeout", "slow"))
    handler, _, fetcher = _handler(exchanger=exchanger)

    with pytest.raises(TokenExchangeError) as exc_info:
        handler.callback_phase(_ctx({"code": "abc"}), redirect_uri=REDIRECT_URI)

    assert exc_info.value.kind == "timeout"
    assert len(exchanger.calls) == 1
    assert fetcher.calls == []


# ---- identity ----


def test_success_builds_auth_result() -> None:
    handler, _, _ = _handler()
    result = handler.callback_phase(_ctx({"code": "abc"}), redirect_uri=REDIRECT_URI)

    assert result.provider == "clever"
    assert result.uid == "t-77"
    assert result.info == {"user_type": "teacher", "id": "t-77", "name": "Ms. Frizzle"}
    assert result.extra == {"raw_info": RAW}
    assert result.credentials is not None
    assert result.credentials.token == "tok"


def test_identity_without_id_fails_with_missing_field() -> None:
    handler, _, _ = _handler(fetcher=RecordingFetcher({"type": "student", "data": {}}))
    with pytest.raises(MissingFieldError) as exc_info:
        handler.callback_phase(_ctx({"code": "abc"}), redirect_uri=REDIRECT_URI)
    assert exc_info.value.field == "data.id"


# ---- test mode ----


def test_test_mode_returns_mock_without_network() -> None:
    mock = AuthResult(provider="clever", uid="mock-1")
    handler, exchanger, fetcher = _handler(_options(mode=Mode.TEST, mock_auth=mock))

    result = handler.callback_phase(_ctx({}), redirect_uri=REDIRECT_URI)

    assert result is mock
    assert exchanger.calls == []
    assert fetcher.calls == []


def test_test_mode_mock_failure_kind() -> None:
    handler, _, _ = _handler(_options(mode=Mode.TEST, mock_auth="invalid_credentials"))
    with pytest.raises(ProviderError) as exc_info:
        handler.callback_phase(_ctx({}), redirect_uri=REDIRECT_URI)
    assert exc_info.value.kind == "invalid_credentials"


def test_test_mode_still_honours_provider_error() -> None:
    handler, _, _ = _handler(_options(mode=Mode.TEST))
    with pytest.raises(ProviderError):
        handler.callback_phase(_ctx({"error": "access_denied"}), redirect_uri=REDIRECT_URI)


# ---- logging ----


def test_failure_is_logged_with_kind(caplog: pytest.LogCaptureFixture) -> None:
    handler, _, _ = _handler()
    with caplog.at_level(logging.WARNING, logger="clever_oauth.services.callback_handler"):
        with pytest.raises(ProviderError):
            handler.callback_phase(_ctx({"error": "access_denied"}), redirect_uri=REDIRECT_URI)

    [record] = [r for r in caplog.records if "callback failed" in r.message]
    assert record.error_kind == "access_denied"  # type: ignore[attr-defined]
    assert record.strategy == "clever"  # type: ignore[attr-defined]


def test_success_log_does_not_leak_code(caplog: pytest.LogCaptureFixture) -> None:
    handler, _, _ = _handler()
    with caplog.at_level(logging.DEBUG):
        handler.callback_phase(
            _ctx({"code": "super-secret-code"}), redirect_uri=REDIRECT_URI
        )
    assert "super-secret-code" not in caplog.text
