"""Typed failures raised by the OAuth callback flow.

Every failure carries a short symbolic ``kind`` (``access_denied``,
``csrf_detected``, ``invalid_credentials``, ...) that the host uses as the
failure message, an optional human-readable ``description``, and the
underlying ``cause`` when one exists. None of these are retried.
"""

from __future__ import annotations


class CallbackError(Exception):
    """Base class for every callback-phase failure."""

    def __init__(
        self,
        kind: str,
        description: str | None = None,
        *,
        cause: BaseException | None = None,
    ) -> None:
        self.kind = kind
        self.description = description
        self.cause = cause
        super().__init__(description or kind)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self.kind!r}, description={self.description!r})"


class ProviderError(CallbackError):
    """The provider redirected back with an ``error`` query parameter.

    ``kind`` is the provider's literal error code.
    """


class CsrfError(CallbackError):
    def __init__(self, description: str = "CSRF detected") -> None:
        super().__init__("csrf_detected", description)


class TokenExchangeError(CallbackError):
    """The authorization-code grant failed.

    kind is ``invalid_credentials`` for a rejected grant, ``timeout`` when the
    token endpoint did not answer in time, ``failed_to_connect`` for any other
    transport failure.
    """

    def __init__(
        self,
        kind: str = "invalid_credentials",
        description: str | None = None,
        *,
        cause: BaseException | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(kind, description, cause=cause)
        self.status_code = status_code


class MissingFieldError(CallbackError):
    def __init__(self, field: str, *, cause: BaseException | None = None) -> None:
        super().__init__("missing_field", f"raw identity is missing {field!r}", cause=cause)
        self.field = field
