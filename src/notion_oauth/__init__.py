"""notion-oauth -- Notion OAuth2 authorization code exchange.

This package redirects a browser to Notion's authorization endpoint,
receives the callback, exchanges the returned code for an access token,
and hands back a :class:`~notion_oauth.models.TokenResponse` carrying the
email the flow was started for.

Typical workflow::

    export NOTION_OAUTH_CLIENT_ID=... NOTION_OAUTH_CLIENT_SECRET=...
    export NOTION_OAUTH_CALLBACK_URL=http://localhost:3001/auth/notion/callback
    notion-oauth serve

Modules:
    auth: The authenticator interface, the Notion exchanger and state channels.
    web: FastAPI application exposing the login and callback routes.
    app: Typer application factory and CLI entry point.
    models: Pydantic models shared across the package.
    config: XDG-aware configuration and credential resolution.
    exceptions: Exception hierarchy with exit-code and HTTP status mapping.
    output: stdout/stderr formatting with Rich support.
"""

__version__ = "0.1.0"
