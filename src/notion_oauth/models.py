"""Canonical Pydantic models shared across all notion-oauth modules.

The models fall into two groups:

**Configuration models** -- serialised as JSON in the user's config directory
and resolved once at process start:
    :class:`StateMode`, :class:`ServerConfig`, :class:`NotionOAuthConfig`, and
    the resolved, immutable :class:`ClientCredentials`.

**Flow models** -- ephemeral values produced per request by
:class:`~notion_oauth.auth.notion.NotionAuthenticator`:
    :class:`AuthorizationRequest`, :class:`RedirectInstruction`,
    :class:`NotionUser`, :class:`UserOwner`, :class:`WorkspaceOwner`, and
    :class:`TokenResponse`.

Flow models are frozen; they are built once and handed to the caller
without further mutation.
"""

from __future__ import annotations

import enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

NOTION_AUTHORIZATION_URL = "https://api.notion.com/v1/oauth/authorize"
NOTION_TOKEN_URL = "https://api.notion.com/v1/oauth/token"


# --- Configuration ---


class StateMode(str, enum.Enum):
    """How the caller's email travels through the OAuth ``state`` parameter.

    ``EMAIL`` sends the email itself as ``state``. ``NONCE`` sends a random
    nonce and keeps the email server-side until the callback arrives.
    """

    EMAIL = "email"
    NONCE = "nonce"


class ServerConfig(BaseModel):
    """Bind address and route paths for :mod:`notion_oauth.web`."""

    host: str = Field(default="127.0.0.1", description="Interface to bind")
    port: int = Field(default=3001, description="TCP port to listen on")
    login_path: str = Field(
        default="/auth/notion", description="Route that starts the redirect"
    )
    callback_path: str = Field(
        default="/auth/notion/callback", description="Route Notion redirects back to"
    )


class NotionOAuthConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/notion-oauth/config.json``.

    Client id and secret are stored as *sources* (``env:VAR``,
    ``file:/path`` or ``literal:value``), never as raw secrets, and are
    resolved by :func:`~notion_oauth.config.resolve_credentials`. See
    :func:`~notion_oauth.config.resolve_config` for the precedence chain.
    """

    client_id_source: Optional[str] = Field(
        default=None, description="Credential source for the OAuth client id"
    )
    client_secret_source: Optional[str] = Field(
        default=None, description="Credential source for the OAuth client secret"
    )
    callback_url: Optional[str] = Field(
        default=None, description="Redirect URI registered with the Notion integration"
    )
    authorization_url: str = NOTION_AUTHORIZATION_URL
    token_url: str = NOTION_TOKEN_URL
    state_mode: StateMode = StateMode.EMAIL
    state_ttl_seconds: int = Field(
        default=600, description="Lifetime of a nonce in nonce state mode"
    )
    timeout: float = Field(default=30.0, description="Token request timeout in seconds")
    server: ServerConfig = Field(default_factory=ServerConfig)


class ClientCredentials(BaseModel):
    """Resolved OAuth client registration, shared read-only by every exchange."""

    model_config = ConfigDict(frozen=True)

    client_id: str
    client_secret: str = Field(repr=False)
    redirect_uri: str


# --- Flow values ---


class AuthorizationRequest(BaseModel):
    """One outgoing authorization redirect.

    ``email`` is what the browser sent; ``state`` is what was placed in the
    URL for it (the email itself, or a nonce).
    """

    model_config = ConfigDict(frozen=True)

    email: Optional[str] = None
    state: str
    url: str


class RedirectInstruction(BaseModel):
    """A redirect the routing layer should send back to the browser."""

    model_config = ConfigDict(frozen=True)

    url: str
    status_code: int = 302


class NotionUser(BaseModel):
    model_config = ConfigDict(frozen=True, extra="allow")

    object: Literal["user"] = "user"
    id: str = Field(description="UUID")


class UserOwner(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["user"] = "user"
    user: NotionUser


class WorkspaceOwner(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["workspace"] = "workspace"
    workspace: bool = True


Owner = Annotated[Union[UserOwner, WorkspaceOwner], Field(discriminator="type")]


class TokenResponse(BaseModel):
    """Notion's token endpoint answer plus the email recovered from ``state``.

    Fields Notion adds beyond the ones declared here are kept in
    ``model_extra`` so that :meth:`model_dump` reproduces the provider body.

    Example::

        token = TokenResponse.model_validate({**body, "email": "alice@example.com"})
        token.workspace_name
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    access_token: str
    token_type: Literal["bearer"] = "bearer"
    bot_id: str = Field(description="UUID")
    workspace_name: Optional[str] = None
    workspace_icon: Optional[str] = Field(default=None, description="URL")
    workspace_id: str = Field(description="UUID")
    owner: Owner
    duplicated_template_id: Optional[str] = Field(default=None, description="UUID")
    request_id: Optional[str] = Field(default=None, description="UUID")
    email: Optional[str] = Field(default=None, description="Round-tripped through state")
