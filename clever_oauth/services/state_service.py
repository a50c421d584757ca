from __future__ import annotations

import hmac
import secrets

from clever_oauth.core.errors import CsrfError

# Anti-CSRF state for the authorization-code flow.
#
# generate() runs in the request phase; the host stores the value in the
# session under STATE_SESSION_KEY before redirecting to the provider.
# validate() runs in the callback phase against the echoed ``state`` param.
#
# Clever sets provider_ignores_state, so its callback calls validate() with
# enforce=False. Other providers built on this module enforce it.


# 24 random bytes -> 48 hex chars
def generate() -> str:
    return secrets.token_hex(24)


def validate(stored: str | None, incoming: str | None, *, enforce: bool) -> None:
    """Raise CsrfError unless *incoming* matches *stored*.

    Both values must be present and non-empty when enforcing. Comparison is
    constant-time.
    """
    if not enforce:
        return
    if not stored or not incoming:
        raise CsrfError()
    if not hmac.compare_digest(stored.encode("utf-8"), incoming.encode("utf-8")):
        raise CsrfError()
