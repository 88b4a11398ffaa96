"""Config commands -- view and write the user configuration.

Provides the ``notion-oauth config`` sub-command group. The user config
(:class:`~notion_oauth.models.NotionOAuthConfig`) stores credential
*sources*, never secrets, so it is safe to print.
"""

from __future__ import annotations

from typing import Optional

import typer

from notion_oauth.models import StateMode
from notion_oauth.output import failure, payload, status


config_app = typer.Typer(no_args_is_help=True)


@config_app.command("show")
def config_show(
    effective: bool = typer.Option(
        False,
        "--effective",
        help="Show the merged result of all config layers instead of the user file.",
    ),
) -> None:
    """Show current configuration.

    Example::

        notion-oauth config show
        notion-oauth --json config show --effective
    """
    from notion_oauth.config import config_path, load_config, resolve_config
    from notion_oauth.exceptions import ConfigError

    try:
        config = resolve_config() if effective else load_config()
    except ConfigError as exc:
        failure(exc)
        raise typer.Exit(code=exc.exit_code) from None
    status(f"Config file: {config_path()}")
    payload(config.model_dump(mode="json"))


@config_app.command("init")
def config_init(
    client_id_source: str = typer.Option(
        "env:NOTION_OAUTH_CLIENT_ID",
        "--client-id-source",
        help="Credential source for the client id (env:VAR, file:/path, literal:value).",
    ),
    client_secret_source: str = typer.Option(
        "env:NOTION_OAUTH_CLIENT_SECRET",
        "--client-secret-source",
        help="Credential source for the client secret.",
    ),
    callback_url: str = typer.Option(
        ..., "--callback-url", help="Redirect URI registered with the Notion integration."
    ),
    state_mode: StateMode = typer.Option(
        StateMode.EMAIL, "--state-mode", help="How the email travels through state."
    ),
    port: Optional[int] = typer.Option(None, "--port", help="Port for `serve`."),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing file."),
) -> None:
    """Write a user config file.

    Example::

        notion-oauth config init --callback-url http://localhost:3001/auth/notion/callback
    """
    from notion_oauth.config import config_path, save_config
    from notion_oauth.models import NotionOAuthConfig, ServerConfig

    if config_path().is_file() and not force:
        failure(
            f"Config already exists at {config_path()}",
            hint="Pass --force to overwrite it.",
        )
        raise typer.Exit(code=2)

    server = ServerConfig(port=port) if port is not None else ServerConfig()
    config = NotionOAuthConfig(
        client_id_source=client_id_source,
        client_secret_source=client_secret_source,
        callback_url=callback_url,
        state_mode=state_mode,
        server=server,
    )
    path = save_config(config)
    status(f"Wrote {path}", ok=True)
