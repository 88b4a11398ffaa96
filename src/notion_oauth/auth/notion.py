"""Notion OAuth2 authorization code exchanger.

This module provides :class:`NotionAuthenticator`, which performs
Notion's public-integration OAuth2 flow in two HTTP round-trips:

1. :meth:`~NotionAuthenticator.begin_authorization` builds the redirect to
   ``https://api.notion.com/v1/oauth/authorize`` with the caller's email
   carried through ``state``.
2. :meth:`~NotionAuthenticator.complete_authorization` POSTs the returned
   code to the token endpoint with HTTP Basic client credentials and
   returns a :class:`~notion_oauth.models.TokenResponse` carrying the email
   recovered from ``state``.

No tokens are cached or refreshed; each exchange is independent.

See Also:
    :class:`notion_oauth.auth.base.Authenticator` for the interface.
    :mod:`notion_oauth.auth.state` for how ``state`` is produced and read.
"""

from __future__ import annotations

import logging
from typing import Any, Optional
from urllib.parse import urlencode

import httpx
from pydantic import ValidationError

from notion_oauth.auth.base import Authenticator
from notion_oauth.auth.basic import basic_auth_header
from notion_oauth.auth.state import EmailStateChannel, StateChannel, create_state_channel
from notion_oauth.exceptions import AuthenticationFailure, ConfigError, TransportFailure
from notion_oauth.models import (
    NOTION_AUTHORIZATION_URL,
    NOTION_TOKEN_URL,
    AuthorizationRequest,
    ClientCredentials,
    NotionOAuthConfig,
    RedirectInstruction,
    TokenResponse,
)

logger = logging.getLogger(__name__)

NOTION_API_VERSION = "2022-06-28"


class NotionAuthenticator(Authenticator):
    """Authenticate a Notion workspace via the authorization code grant.

    Args:
        credentials: Client id, secret and registered redirect URI.
        authorization_url: Notion's authorize endpoint.
        token_url: Notion's token endpoint.
        state_channel: Maps the email to ``state`` and back. Defaults to
            sending the email itself.
        timeout: Token request timeout in seconds.
    """

    def __init__(
        self,
        credentials: ClientCredentials,
        *,
        authorization_url: str = NOTION_AUTHORIZATION_URL,
        token_url: str = NOTION_TOKEN_URL,
        state_channel: Optional[StateChannel] = None,
        timeout: float = 30.0,
    ) -> None:
        self._credentials = credentials
        self._authorization_url = authorization_url
        self._token_url = token_url
        self._state_channel = state_channel or EmailStateChannel()
        self._timeout = timeout

    @classmethod
    def from_config(cls, config: NotionOAuthConfig) -> NotionAuthenticator:
        """Build an authenticator from the effective configuration.

        Raises:
            ConfigError: If credentials are missing or cannot be resolved.
        """
        from notion_oauth.config import resolve_credentials

        return cls(
            resolve_credentials(config),
            authorization_url=config.authorization_url,
            token_url=config.token_url,
            state_channel=create_state_channel(config),
            timeout=config.timeout,
        )

    @property
    def name(self) -> str:
        return "notion"

    @property
    def credentials(self) -> ClientCredentials:
        return self._credentials

    @staticmethod
    def get_api_version() -> str:
        """Return the Notion API version this exchanger targets."""
        return NOTION_API_VERSION

    def token_request_headers(self) -> dict[str, str]:
        """Headers sent with the token exchange POST."""
        headers = basic_auth_header(
            self._credentials.client_id, self._credentials.client_secret
        )
        headers.update(
            {
                "Notion-Version": self.get_api_version(),
                "Accept": "application/json",
                "Content-Type": "application/json",
            }
        )
        return headers

    def authorization_request(self, email: Optional[str]) -> AuthorizationRequest:
        """Build the authorization URL for *email* without wrapping it in a redirect."""
        state = self._state_channel.issue(email)
        params = {
            "client_id": self._credentials.client_id,
            "redirect_uri": self._credentials.redirect_uri,
            "response_type": "code",
            "owner": "user",
            "state": state,
        }
        url = f"{self._authorization_url}?{urlencode(params)}"
        return AuthorizationRequest(email=email, state=state, url=url)

    def begin_authorization(self, email: Optional[str]) -> RedirectInstruction:
        request = self.authorization_request(email)
        logger.debug("Redirecting to Notion authorization for state=%r", request.state)
        return RedirectInstruction(url=request.url)

    def complete_authorization(
        self, code: str, state: Optional[str]
    ) -> TokenResponse:
        """Exchange *code* and attach the email recovered from *state*.

        Whatever ``email`` the provider body carries is replaced.

        Raises:
            StateError: If *state* cannot be resolved (nonce mode only).
            AuthenticationFailure: On a non-2xx answer or an unreadable body.
            TransportFailure: On network errors.
            ConfigError: If the configured token URL cannot be parsed.
        """
        email = self._state_channel.resolve(state)
        token_data = self._fetch_token(code)
        try:
            return TokenResponse.model_validate({**token_data, "email": email})
        except ValidationError as exc:
            raise AuthenticationFailure(
                f"Unexpected token response from Notion: {exc.error_count()} invalid field(s)"
            ) from exc

    def close(self) -> None:
        self._state_channel.close()

    def _fetch_token(self, code: str) -> dict[str, Any]:
        """POST the authorization code to the token endpoint and return the JSON body."""
        body = {
            "code": code,
            "redirect_uri": self._credentials.redirect_uri,
            "grant_type": "authorization_code",
        }
        logger.debug("Exchanging authorization code at %s", self._token_url)
        try:
            response = httpx.post(
                self._token_url,
                json=body,
                headers=self.token_request_headers(),
                timeout=self._timeout,
            )
        except httpx.InvalidURL as exc:
            raise ConfigError(f"Invalid token_url {self._token_url!r}: {exc}") from exc
        except httpx.HTTPError as exc:
            raise TransportFailure(f"Token exchange failed: {exc}") from exc

        if not response.is_success:
            logger.debug(
                "Notion token endpoint answered %s: %s",
                response.status_code,
                response.text,
            )
            raise AuthenticationFailure("Failed to authenticate with Notion")

        try:
            token_data = response.json()
        except ValueError as exc:
            raise AuthenticationFailure("Token response from Notion is not valid JSON") from exc
        if not isinstance(token_data, dict):
            raise AuthenticationFailure("Token response from Notion is not a JSON object")
        return token_data
