"""Signed session cookie for the host app (HS256 JWT).

The OAuth flow needs a per-browser mapping that survives the round trip to
Clever (it holds ``omniauth.state``). The host keeps that mapping in a JWT
cookie: tamper-evident, stateless, short-lived. Its contents are readable by
the browser, so nothing secret goes in.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import jwt

ALGORITHM = "HS256"
AUDIENCE = "clever-oauth-session"
SESSION_TTL_MIN = 15  # covers one trip to Clever and back
COOKIE_NAME = "clever_oauth_session"


def encode_session(session: dict[str, str], *, secret: str) -> str:
    now = datetime.now(UTC)
    payload = {
        "aud": AUDIENCE,
        "iat": now,
        "exp": now + timedelta(minutes=SESSION_TTL_MIN),
        "sess": dict(session),
    }
    return jwt.encode(payload, secret, algorithm=ALGORITHM)


def decode_session(token: str, *, secret: str) -> dict[str, str]:
    """Verify the cookie and return the session mapping.

    Raises jwt.ExpiredSignatureError, jwt.InvalidTokenError on failure.
    """
    claims = jwt.decode(
        token,
        secret,
        algorithms=[ALGORITHM],
        audience=AUDIENCE,
        options={"require": ["exp", "iat", "sess"]},
    )
    sess = claims["sess"]
    if not isinstance(sess, dict):
        raise jwt.InvalidTokenError("session claim is not an object")
    return {str(k): str(v) for k, v in sess.items()}
