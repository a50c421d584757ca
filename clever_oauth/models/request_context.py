from __future__ import annotations

from collections.abc import Mapping, MutableMapping
from dataclasses import dataclass, field
from typing import Protocol
from urllib.parse import urlsplit

# Session key holding the anti-CSRF token between request and callback phase.
STATE_SESSION_KEY = "omniauth.state"


class RequestSource(Protocol):
    """The parts of an incoming HTTP request the OAuth flow reads."""

    def params(self) -> Mapping[str, str]: ...
    def scheme(self) -> str: ...
    def url(self) -> str: ...


@dataclass(slots=True)
class RequestContext:
    """State for one callback invocation.

    ``session`` is owned by the host and lives only for this request; the
    callback handler may pop entries from it but never shares it.
    """

    params: dict[str, str]
    session: MutableMapping[str, str]
    scheme: str
    url: str
    path: str = field(default="")

    @staticmethod
    def from_source(
        source: RequestSource, session: MutableMapping[str, str]
    ) -> RequestContext:
        url = source.url()
        return RequestContext(
            params=dict(source.params()),
            session=session,
            scheme=source.scheme(),
            url=url,
            path=urlsplit(url).path,
        )

    @property
    def full_host(self) -> str:
        """``scheme://host[:port]`` of the incoming request, no trailing slash."""
        parts = urlsplit(self.url)
        return f"{parts.scheme or self.scheme}://{parts.netloc}"
