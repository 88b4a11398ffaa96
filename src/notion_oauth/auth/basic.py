"""HTTP Basic client authentication for the token endpoint.

Notion authenticates the token exchange with the integration's client id
and secret joined by a colon, Base64-encoded, and sent as an
``Authorization: Basic <encoded>`` header per :rfc:`7617`.
"""

from __future__ import annotations

import base64

from notion_oauth.exceptions import ConfigError


def encode_basic_credential(client_id: str, client_secret: str) -> str:
    """Return ``base64("client_id:client_secret")``.

    Raises:
        ConfigError: If *client_id* contains a colon, which would make the
            pair ambiguous on the receiving side.
    """
    if ":" in client_id:
        raise ConfigError("Basic auth client id must not contain a colon")
    raw = f"{client_id}:{client_secret}"
    return base64.b64encode(raw.encode("utf-8")).decode("ascii")


def basic_auth_header(client_id: str, client_secret: str) -> dict[str, str]:
    """Return the ``Authorization`` header for the given client credentials."""
    return {"Authorization": f"Basic {encode_basic_credential(client_id, client_secret)}"}
