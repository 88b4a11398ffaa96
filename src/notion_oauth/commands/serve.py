"""Serve command -- run the login and callback routes under uvicorn."""

from __future__ import annotations

import os
from typing import Optional

import typer

from notion_oauth.exceptions import NotionOAuthError
from notion_oauth.output import failure, status

# uvicorn re-imports the app in a worker process when reloading.
APP_FACTORY = "notion_oauth.web:create_app_from_config"


def serve_command(
    host: Optional[str] = typer.Option(None, "--host", help="Interface to bind."),
    port: Optional[int] = typer.Option(None, "--port", help="TCP port to listen on."),
    callback_url: Optional[str] = typer.Option(
        None, "--callback-url", help="Override the configured redirect URI."
    ),
    reload: bool = typer.Option(
        False, "--reload", help="Restart the server when source files change."
    ),
) -> None:
    """Serve the Notion OAuth routes.

    Example::

        notion-oauth serve --port 3001
        notion-oauth serve --reload
    """
    import uvicorn

    from notion_oauth.auth.notion import NotionAuthenticator
    from notion_oauth.config import ENV_CALLBACK_URL, resolve_config
    from notion_oauth.web import create_app

    try:
        config = resolve_config(host=host, port=port, callback_url=callback_url)
        authenticator = NotionAuthenticator.from_config(config)
    except NotionOAuthError as exc:
        failure(exc)
        raise typer.Exit(code=exc.exit_code) from None

    server = config.server
    status(
        f"Login at http://{server.host}:{server.port}{server.login_path}?email=<email>"
    )

    if reload:
        authenticator.close()
        # The worker resolves its own config; hand it the CLI override.
        if callback_url is not None:
            os.environ[ENV_CALLBACK_URL] = callback_url
        uvicorn.run(
            APP_FACTORY, factory=True, reload=True, host=server.host, port=server.port
        )
        return

    try:
        uvicorn.run(create_app(authenticator, server), host=server.host, port=server.port)
    finally:
        authenticator.close()
