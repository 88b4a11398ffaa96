"""Flow commands -- run either half of the authorization flow by hand.

``authorize-url`` prints the URL a browser would be redirected to;
``exchange`` trades a code copied from a callback URL for a token;
``api-version`` prints the Notion API version the exchanger targets.
"""

from __future__ import annotations

from typing import Optional

import typer

from notion_oauth.exceptions import NotionOAuthError
from notion_oauth.models import StateMode
from notion_oauth.output import (
    authorization_url,
    debug,
    failure,
    payload,
    status,
    value,
)


def _build_authenticator(
    callback_url: Optional[str], state_mode: Optional[StateMode]
):
    from notion_oauth.auth.notion import NotionAuthenticator
    from notion_oauth.config import resolve_config

    config = resolve_config(callback_url=callback_url, state_mode=state_mode)
    debug(f"State mode: {config.state_mode.value}")
    return NotionAuthenticator.from_config(config)


def authorize_url_command(
    email: Optional[str] = typer.Option(
        None, "--email", "-e", help="Email to carry through the state parameter."
    ),
    callback_url: Optional[str] = typer.Option(
        None, "--callback-url", help="Override the configured redirect URI."
    ),
    state_mode: Optional[StateMode] = typer.Option(
        None, "--state-mode", help="Override the configured state mode."
    ),
) -> None:
    """Print the Notion authorization URL.

    Example::

        notion-oauth authorize-url --email alice@example.com
    """
    try:
        authenticator = _build_authenticator(callback_url, state_mode)
        try:
            request = authenticator.authorization_request(email)
        finally:
            authenticator.close()
    except NotionOAuthError as exc:
        failure(exc)
        raise typer.Exit(code=exc.exit_code) from None
    authorization_url(request.url, request.state)


def exchange_command(
    code: str = typer.Argument(help="Authorization code from the callback URL."),
    state: Optional[str] = typer.Option(
        None, "--state", "-s", help="The state value from the callback URL."
    ),
    callback_url: Optional[str] = typer.Option(
        None, "--callback-url", help="Override the configured redirect URI."
    ),
) -> None:
    """Exchange an authorization code for a token and print it.

    Example::

        notion-oauth exchange 4f1c... --state alice@example.com
    """
    if not code:
        failure(
            "Authorization code must not be empty",
            hint="Copy the `code` parameter from the callback URL.",
        )
        raise typer.Exit(code=2)
    try:
        authenticator = _build_authenticator(callback_url, None)
        try:
            token = authenticator.complete_authorization(code, state)
        finally:
            authenticator.close()
    except NotionOAuthError as exc:
        failure(exc)
        raise typer.Exit(code=exc.exit_code) from None
    workspace = token.workspace_name or token.workspace_id
    status(f"Authorized workspace {workspace}", ok=True)
    payload(token.model_dump(mode="json"))


def api_version_command() -> None:
    """Print the Notion API version this tool targets."""
    from notion_oauth.auth.notion import NotionAuthenticator

    value(NotionAuthenticator.get_api_version())
