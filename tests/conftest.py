"""Shared test fixtures for notion-oauth.

Provides isolated config environments, client credentials, a canned Notion
token body, output state management, and a CLI runner. These fixtures are
discovered by pytest and available to all test modules.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import httpx
import pytest

from notion_oauth.auth.notion import NotionAuthenticator
from notion_oauth.models import NOTION_TOKEN_URL, ClientCredentials
from notion_oauth.output import reset_output

CLIENT_ID = "client-123"
CLIENT_SECRET = "s3cret"
CALLBACK_URL = "http://localhost:3001/auth/notion/callback"


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time; CliRunner closes those streams when an invocation ends.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Config isolation
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Points the XDG variables at subdirectories of tmp_path, clears all
    NOTION_OAUTH_* variables, and changes the working directory to tmp_path.
    """
    monkeypatch.setattr("notion_oauth.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))

    for var in [
        "NOTION_OAUTH_CLIENT_ID",
        "NOTION_OAUTH_CLIENT_SECRET",
        "NOTION_OAUTH_CALLBACK_URL",
        "NOTION_OAUTH_STATE_MODE",
    ]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def notion_env(isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """An isolated config whose credentials come from NOTION_OAUTH_* variables."""
    monkeypatch.setenv("NOTION_OAUTH_CLIENT_ID", CLIENT_ID)
    monkeypatch.setenv("NOTION_OAUTH_CLIENT_SECRET", CLIENT_SECRET)
    monkeypatch.setenv("NOTION_OAUTH_CALLBACK_URL", CALLBACK_URL)
    return isolated_config


# ---------------------------------------------------------------------------
# Flow fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def credentials() -> ClientCredentials:
    return ClientCredentials(
        client_id=CLIENT_ID, client_secret=CLIENT_SECRET, redirect_uri=CALLBACK_URL
    )


@pytest.fixture
def authenticator(credentials: ClientCredentials) -> NotionAuthenticator:
    return NotionAuthenticator(credentials)


@pytest.fixture
def token_body() -> dict[str, Any]:
    """The JSON body Notion returns for a successful exchange."""
    return {
        "access_token": "tok",
        "token_type": "bearer",
        "bot_id": "00000000-0000-0000-0000-000000000001",
        "workspace_name": "W",
        "workspace_icon": "http://x",
        "workspace_id": "00000000-0000-0000-0000-000000000002",
        "owner": {
            "type": "user",
            "user": {"object": "user", "id": "00000000-0000-0000-0000-000000000003"},
        },
        "duplicated_template_id": None,
        "request_id": "00000000-0000-0000-0000-000000000004",
    }


@pytest.fixture
def token_http_response():
    """Factory for real :class:`httpx.Response` objects from the token endpoint."""

    def _make(body: Any, status_code: int = 200) -> httpx.Response:
        return httpx.Response(
            status_code,
            json=body,
            request=httpx.Request("POST", NOTION_TOKEN_URL),
        )

    return _make


# ---------------------------------------------------------------------------
# CLI runner
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
