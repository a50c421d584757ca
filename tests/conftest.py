from __future__ import annotations

import json
import sys
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import httpx
import pytest
from fastapi.testclient import TestClient

# Ensure repo root is on sys.path so `import clever_oauth` works under pytest.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from clever_oauth.api.dependencies import get_strategy  # noqa: E402
from clever_oauth.main import app  # noqa: E402
from clever_oauth.services.token_client import TokenClient  # noqa: E402
from clever_oauth.strategy import CleverStrategy  # noqa: E402

CLIENT_ID = "TEST_ID"
CLIENT_SECRET = "TEST_SECRET"
ACCESS_TOKEN = "clever-access-token"

ME_PAYLOAD: dict[str, Any] = {
    "type": "student",
    "data": {
        "id": "12345",
        "name": "John Doe",
        "district": "4fd43cc56d11340000000005",
    },
}


class FakeClever:
    """In-process stand-in for clever.com/oauth/tokens and api.clever.com/me.

    Records every request; responses are configurable per test.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.token_status = 200
        self.token_body: Any = {"access_token": ACCESS_TOKEN, "token_type": "bearer"}
        self.me_status = 200
        self.me_body: Any = ME_PAYLOAD
        self.raise_on_token: Exception | None = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path == "/oauth/tokens":
            if self.raise_on_token is not None:
                raise self.raise_on_token
            return httpx.Response(self.token_status, json=self.token_body)
        if request.url.path == "/me":
            return httpx.Response(self.me_status, content=json.dumps(self.me_body))
        return httpx.Response(404, json={"error": "not_found"})

    @property
    def token_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == "/oauth/tokens"]

    @property
    def me_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == "/me"]


@pytest.fixture
def fake_clever() -> FakeClever:
    return FakeClever()


@pytest.fixture
def token_client(fake_clever: FakeClever) -> Iterator[TokenClient]:
    tc = TokenClient(httpx.Client(transport=httpx.MockTransport(fake_clever.handler)))
    yield tc
    tc.close()


@pytest.fixture
def make_strategy(token_client: TokenClient) -> Callable[..., CleverStrategy]:
    def _make(**kwargs: Any) -> CleverStrategy:
        kwargs.setdefault("exchanger", token_client)
        return CleverStrategy(CLIENT_ID, CLIENT_SECRET, **kwargs)

    return _make


@pytest.fixture
def strategy(make_strategy: Callable[..., CleverStrategy]) -> CleverStrategy:
    return make_strategy(site="https://api.clever.com")


@pytest.fixture
def client(strategy: CleverStrategy) -> Iterator[TestClient]:
    # `with` runs the lifespan; the route dependency is pointed at the
    # MockTransport-backed strategy.
    app.dependency_overrides[get_strategy] = lambda: strategy
    with TestClient(app, follow_redirects=False) as c:
        yield c
    app.dependency_overrides.clear()
