"""Authorization code flow for notion-oauth.

The main entry points are:

- :class:`Authenticator` -- the narrow interface routing layers depend on.
- :class:`NotionAuthenticator` -- the Notion implementation.
- :func:`create_state_channel` -- picks how the caller's email travels
  through the OAuth ``state`` parameter.

Typical usage::

    from notion_oauth.auth import NotionAuthenticator
    from notion_oauth.config import resolve_config

    authenticator = NotionAuthenticator.from_config(resolve_config())
    redirect = authenticator.begin_authorization("alice@example.com")
"""

from notion_oauth.auth.base import Authenticator
from notion_oauth.auth.basic import basic_auth_header, encode_basic_credential
from notion_oauth.auth.notion import NOTION_API_VERSION, NotionAuthenticator
from notion_oauth.auth.state import (
    EmailStateChannel,
    NonceStateChannel,
    StateChannel,
    create_state_channel,
)

__all__ = [
    "Authenticator",
    "EmailStateChannel",
    "NOTION_API_VERSION",
    "NonceStateChannel",
    "NotionAuthenticator",
    "StateChannel",
    "basic_auth_header",
    "create_state_channel",
    "encode_basic_credential",
]
