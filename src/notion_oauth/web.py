"""FastAPI application exposing the browser-facing routes.

Two ``GET`` routes are mounted, both dispatching through
:meth:`~notion_oauth.auth.base.Authenticator.authenticate`:

* ``login_path`` (default ``/auth/notion``) -- ``?email=...`` starts the
  flow with a ``302`` to Notion.
* ``callback_path`` (default ``/auth/notion/callback``) -- ``?code=...&state=...``
  runs the exchange and answers with the token as JSON, or with
  ``{"detail": ...}`` and the error's ``http_status``.

Run it with ``notion-oauth serve`` or point uvicorn at the factory::

    uvicorn --factory notion_oauth.web:create_app_from_config
"""

from __future__ import annotations

from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, RedirectResponse, Response

from notion_oauth import __version__
from notion_oauth.auth.base import Authenticator
from notion_oauth.exceptions import NotionOAuthError
from notion_oauth.models import RedirectInstruction, ServerConfig, TokenResponse


def _token_response(token: TokenResponse) -> Response:
    return JSONResponse(token.model_dump(mode="json"))


def _error_response(exc: NotionOAuthError) -> Response:
    return JSONResponse({"detail": str(exc)}, status_code=exc.http_status)


def _redirect_response(instruction: RedirectInstruction) -> Response:
    return RedirectResponse(instruction.url, status_code=instruction.status_code)


def create_app(
    authenticator: Authenticator, server: Optional[ServerConfig] = None
) -> FastAPI:
    """Build the FastAPI application around *authenticator*.

    Args:
        authenticator: The exchanger every request is dispatched to.
        server: Route paths. Defaults to :class:`~notion_oauth.models.ServerConfig`.
    """
    server = server or ServerConfig()
    app = FastAPI(title="notion-oauth", version=__version__)
    app.state.authenticator = authenticator

    def handle(request: Request) -> Response:
        return authenticator.authenticate(
            request.query_params,
            success=_token_response,
            error=_error_response,
            redirect=_redirect_response,
        )

    app.add_api_route(
        server.login_path, handle, methods=["GET"], name="login", response_model=None
    )
    app.add_api_route(
        server.callback_path,
        handle,
        methods=["GET"],
        name="callback",
        response_model=None,
    )
    return app


def create_app_from_config() -> FastAPI:
    """Resolve the effective configuration and build the application."""
    from notion_oauth.auth.notion import NotionAuthenticator
    from notion_oauth.config import resolve_config

    config = resolve_config()
    return create_app(NotionAuthenticator.from_config(config), config.server)
