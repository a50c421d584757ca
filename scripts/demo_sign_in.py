"""Demo: walk the Sign in with Clever flow using FastAPI TestClient.

Clever itself is replaced by an httpx.MockTransport, so no network or real
credentials are needed.

Run with:
    python scripts/demo_sign_in.py
"""

from __future__ import annotations

import sys
from pathlib import Path
from urllib.parse import parse_qs, urlparse

import httpx
from fastapi.testclient import TestClient

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from clever_oauth.api.dependencies import get_strategy  # noqa: E402
from clever_oauth.main import app  # noqa: E402
from clever_oauth.services.token_client import TokenClient  # noqa: E402
from clever_oauth.strategy import CleverStrategy  # noqa: E402

CLIENT_ID = "demo-client"
CLIENT_SECRET = "demo-secret"


def fake_clever(request: httpx.Request) -> httpx.Response:
    if request.url.path == "/oauth/tokens":
        form = parse_qs(request.content.decode())
        if form.get("code") != ["good-code"]:
            return httpx.Response(
                400,
                json={"error": "invalid_grant", "error_description": "bad code"},
            )
        return httpx.Response(200, json={"access_token": "demo-token"})
    if request.url.path == "/me":
        return httpx.Response(
            200,
            json={"type": "teacher", "data": {"id": "t-42", "name": "Ms. Frizzle"}},
        )
    return httpx.Response(404)


def main() -> None:
    strategy = CleverStrategy(
        CLIENT_ID,
        CLIENT_SECRET,
        exchanger=TokenClient(httpx.Client(transport=httpx.MockTransport(fake_clever))),
    )
    app.dependency_overrides[get_strategy] = lambda: strategy

    with TestClient(app, follow_redirects=False) as client:
        # ── Step 1: request phase ───────────────────────────────────────
        r = client.get("/auth/clever")
        query = parse_qs(urlparse(r.headers["location"]).query)
        state = query["state"][0]
        print(
            f"1. GET  /auth/clever              → {r.status_code}  "
            f"redirect_uri={query['redirect_uri'][0]}  state={state[:8]}…"
        )

        # ── Step 2: callback with a good code ───────────────────────────
        r = client.get(
            "/auth/clever/callback", params={"code": "good-code", "state": state}
        )
        body = r.json()
        print(
            f"2. GET  /auth/clever/callback     → {r.status_code}  "
            f"uid={body['uid']}  user_type={body['info']['user_type']}"
        )

        # ── Step 3: Clever-initiated login, no state at all ─────────────
        r = client.get("/auth/clever/callback", params={"code": "good-code"})
        print(f"3. GET  /auth/clever/callback (no state) → {r.status_code}")

        # ── Step 4: user denied access at Clever ────────────────────────
        r = client.get("/auth/clever/callback", params={"error": "access_denied"})
        print(
            f"4. GET  /auth/clever/callback (denied) → {r.status_code}  "
            f"Location: {r.headers['location']}"
        )

        # ── Step 5: bad code ────────────────────────────────────────────
        r = client.get(
            "/auth/clever/callback", params={"code": "bad-code"}, follow_redirects=True
        )
        print(f"5. GET  /auth/clever/callback (bad code) → {r.status_code}  {r.json()}")

    app.dependency_overrides.clear()
    print("\nAll steps completed.")


if __name__ == "__main__":
    main()
