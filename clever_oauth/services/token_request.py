from __future__ import annotations

import base64

from clever_oauth.models.client_config import ClientConfig

# Clever authenticates the client on the token endpoint with HTTP Basic auth
# only; client_id/client_secret in the form body are not accepted.


def basic_auth_header(client_id: str, client_secret: str) -> str:
    credentials = f"{client_id}:{client_secret}".encode("utf-8")
    return "Basic " + base64.b64encode(credentials).decode("ascii")


def build_token_params(config: ClientConfig) -> dict[str, dict[str, str]]:
    """Headers and form body shared by every token request for *config*."""
    return {
        "headers": {
            "Authorization": basic_auth_header(config.client_id, config.client_secret),
            "Accept": "application/json",
        },
        "body": {"grant_type": "authorization_code"},
    }


def authorization_code_params(
    config: ClientConfig, *, code: str, redirect_uri: str
) -> dict[str, dict[str, str]]:
    """Token params with the authorization code and redirect_uri merged in."""
    params = build_token_params(config)
    params["body"]["code"] = code
    params["body"]["redirect_uri"] = redirect_uri
    return params
