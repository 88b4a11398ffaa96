"""Tests for NotionAuthenticator and the Authenticator dispatcher."""

from __future__ import annotations

import base64
import logging
from typing import Any
from unittest.mock import patch
from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from notion_oauth.auth.notion import NOTION_API_VERSION, NotionAuthenticator
from notion_oauth.auth.state import NonceStateChannel
from notion_oauth.exceptions import (
    AuthenticationFailure,
    ConfigError,
    StateError,
    TransportFailure,
)
from notion_oauth.models import (
    NOTION_AUTHORIZATION_URL,
    NOTION_TOKEN_URL,
    ClientCredentials,
    NotionOAuthConfig,
    RedirectInstruction,
    StateMode,
    TokenResponse,
    UserOwner,
)

_POST = "notion_oauth.auth.notion.httpx.post"


def _query(url: str) -> dict[str, list[str]]:
    return parse_qs(urlparse(url).query, keep_blank_values=True)


def _dispatch(authenticator: NotionAuthenticator, query: dict[str, str]) -> tuple[str, Any]:
    """Run authenticate() and report which callback fired with what."""
    return authenticator.authenticate(
        query,
        success=lambda token: ("success", token),
        error=lambda exc: ("error", exc),
        redirect=lambda instruction: ("redirect", instruction),
    )


# ---------------------------------------------------------------------------
# GetProviderApiVersion
# ---------------------------------------------------------------------------


class TestApiVersion:
    def test_fixed_version(self) -> None:
        assert NotionAuthenticator.get_api_version() == "2022-06-28"

    def test_deterministic(self, authenticator: NotionAuthenticator) -> None:
        assert authenticator.get_api_version() == authenticator.get_api_version()
        assert authenticator.get_api_version() == NOTION_API_VERSION


# ---------------------------------------------------------------------------
# BeginAuthorization
# ---------------------------------------------------------------------------


class TestBeginAuthorization:
    def test_redirects_to_authorize_endpoint(self, authenticator: NotionAuthenticator) -> None:
        instruction = authenticator.begin_authorization("alice@example.com")

        assert isinstance(instruction, RedirectInstruction)
        assert instruction.status_code == 302
        assert instruction.url.startswith(NOTION_AUTHORIZATION_URL + "?")

    def test_query_parameters(self, authenticator: NotionAuthenticator) -> None:
        params = _query(authenticator.begin_authorization("alice@example.com").url)

        assert params["client_id"] == ["client-123"]
        assert params["redirect_uri"] == ["http://localhost:3001/auth/notion/callback"]
        assert params["response_type"] == ["code"]
        assert params["owner"] == ["user"]
        assert params["state"] == ["alice@example.com"]

    @pytest.mark.parametrize("email", ["alice+tag@example.com", "not an email", ""])
    def test_state_is_email_verbatim(
        self, authenticator: NotionAuthenticator, email: str
    ) -> None:
        params = _query(authenticator.begin_authorization(email).url)
        assert params["state"] == [email]

    def test_missing_email_gives_empty_state(self, authenticator: NotionAuthenticator) -> None:
        params = _query(authenticator.begin_authorization(None).url)
        assert params["state"] == [""]

    def test_authorization_request_records_email_and_state(
        self, authenticator: NotionAuthenticator
    ) -> None:
        request = authenticator.authorization_request("alice@example.com")
        assert request.email == "alice@example.com"
        assert request.state == "alice@example.com"

    def test_custom_authorization_url(self, credentials: ClientCredentials) -> None:
        authenticator = NotionAuthenticator(
            credentials, authorization_url="https://auth.example.com/authorize"
        )
        url = authenticator.begin_authorization("a@b.c").url
        assert url.startswith("https://auth.example.com/authorize?")

    def test_no_network_call(self, authenticator: NotionAuthenticator) -> None:
        with patch(_POST) as mock_post:
            authenticator.begin_authorization("alice@example.com")
        mock_post.assert_not_called()


# ---------------------------------------------------------------------------
# CompleteAuthorization
# ---------------------------------------------------------------------------


class TestCompleteAuthorization:
    def test_scenario_success(
        self,
        authenticator: NotionAuthenticator,
        token_body: dict[str, Any],
        token_http_response: Any,
    ) -> None:
        with patch(_POST, return_value=token_http_response(token_body)):
            token = authenticator.complete_authorization("abc123", "alice@example.com")

        assert isinstance(token, TokenResponse)
        assert token.model_dump(mode="json") == {**token_body, "email": "alice@example.com"}
        assert isinstance(token.owner, UserOwner)
        assert token.owner.user.id == "00000000-0000-0000-0000-000000000003"

    def test_email_overrides_provider_email(
        self,
        authenticator: NotionAuthenticator,
        token_body: dict[str, Any],
        token_http_response: Any,
    ) -> None:
        body = {**token_body, "email": "mallory@example.com"}
        with patch(_POST, return_value=token_http_response(body)):
            token = authenticator.complete_authorization("abc123", "alice@example.com")
        assert token.email == "alice@example.com"

    def test_missing_state_gives_no_email(
        self,
        authenticator: NotionAuthenticator,
        token_body: dict[str, Any],
        token_http_response: Any,
    ) -> None:
        with patch(_POST, return_value=token_http_response(token_body)):
            token = authenticator.complete_authorization("abc123", None)
        assert token.email is None

    def test_request_shape(
        self,
        authenticator: NotionAuthenticator,
        token_body: dict[str, Any],
        token_http_response: Any,
    ) -> None:
        with patch(_POST, return_value=token_http_response(token_body)) as mock_post:
            authenticator.complete_authorization("abc123", "alice@example.com")

        mock_post.assert_called_once()
        call = mock_post.call_args
        assert call.args[0] == NOTION_TOKEN_URL
        assert call.kwargs["json"] == {
            "code": "abc123",
            "redirect_uri": "http://localhost:3001/auth/notion/callback",
            "grant_type": "authorization_code",
        }
        headers = call.kwargs["headers"]
        assert headers["Accept"] == "application/json"
        assert headers["Content-Type"] == "application/json"
        assert headers["Notion-Version"] == "2022-06-28"
        assert headers["Authorization"].startswith("Basic ")
        decoded = base64.b64decode(headers["Authorization"][len("Basic "):]).decode()
        assert decoded == "client-123:s3cret"
        assert call.kwargs["timeout"] == 30.0

    @pytest.mark.parametrize("status_code", [400, 401, 403, 500, 503])
    def test_non_success_status_fails(
        self,
        authenticator: NotionAuthenticator,
        token_http_response: Any,
        status_code: int,
    ) -> None:
        response = token_http_response({"error": "invalid_grant"}, status_code=status_code)
        with patch(_POST, return_value=response):
            with pytest.raises(AuthenticationFailure, match="Failed to authenticate with Notion"):
                authenticator.complete_authorization("abc123", "alice@example.com")

    def test_transport_error(self, authenticator: NotionAuthenticator) -> None:
        with patch(_POST, side_effect=httpx.ConnectError("connection refused")):
            with pytest.raises(TransportFailure, match="connection refused"):
                authenticator.complete_authorization("abc123", "alice@example.com")

    def test_timeout_is_transport_failure(self, authenticator: NotionAuthenticator) -> None:
        with patch(_POST, side_effect=httpx.ReadTimeout("timed out")):
            with pytest.raises(TransportFailure):
                authenticator.complete_authorization("abc123", "alice@example.com")

    def test_invalid_url_is_config_error(self, authenticator: NotionAuthenticator) -> None:
        with patch(_POST, side_effect=httpx.InvalidURL("Invalid port")):
            with pytest.raises(ConfigError, match="Invalid token_url"):
                authenticator.complete_authorization("abc123", "alice@example.com")

    def test_non_json_body(self, authenticator: NotionAuthenticator) -> None:
        response = httpx.Response(
            200, content=b"<html>oops</html>", request=httpx.Request("POST", NOTION_TOKEN_URL)
        )
        with patch(_POST, return_value=response):
            with pytest.raises(AuthenticationFailure, match="not valid JSON"):
                authenticator.complete_authorization("abc123", "alice@example.com")

    def test_json_array_body(
        self, authenticator: NotionAuthenticator, token_http_response: Any
    ) -> None:
        with patch(_POST, return_value=token_http_response([1, 2, 3])):
            with pytest.raises(AuthenticationFailure, match="not a JSON object"):
                authenticator.complete_authorization("abc123", "alice@example.com")

    def test_missing_access_token(
        self,
        authenticator: NotionAuthenticator,
        token_body: dict[str, Any],
        token_http_response: Any,
    ) -> None:
        del token_body["access_token"]
        with patch(_POST, return_value=token_http_response(token_body)):
            with pytest.raises(AuthenticationFailure, match="Unexpected token response"):
                authenticator.complete_authorization("abc123", "alice@example.com")

    def test_unknown_provider_fields_preserved(
        self,
        authenticator: NotionAuthenticator,
        token_body: dict[str, Any],
        token_http_response: Any,
    ) -> None:
        body = {**token_body, "refresh_token": "r-1"}
        with patch(_POST, return_value=token_http_response(body)):
            token = authenticator.complete_authorization("abc123", "alice@example.com")
        assert token.model_dump()["refresh_token"] == "r-1"

    def test_custom_timeout(
        self,
        credentials: ClientCredentials,
        token_body: dict[str, Any],
        token_http_response: Any,
    ) -> None:
        authenticator = NotionAuthenticator(credentials, timeout=5.0)
        with patch(_POST, return_value=token_http_response(token_body)) as mock_post:
            authenticator.complete_authorization("abc123", "a@b.c")
        assert mock_post.call_args.kwargs["timeout"] == 5.0


# ---------------------------------------------------------------------------
# Nonce state mode
# ---------------------------------------------------------------------------


class TestNonceMode:
    @pytest.fixture
    def nonce_authenticator(self, credentials: ClientCredentials, tmp_path: Any):
        channel = NonceStateChannel(tmp_path, ttl_seconds=600)
        authenticator = NotionAuthenticator(credentials, state_channel=channel)
        yield authenticator
        authenticator.close()

    def test_email_not_in_url(self, nonce_authenticator: NotionAuthenticator) -> None:
        url = nonce_authenticator.begin_authorization("alice@example.com").url
        assert "alice" not in url
        assert _query(url)["state"][0]

    def test_round_trip(
        self,
        nonce_authenticator: NotionAuthenticator,
        token_body: dict[str, Any],
        token_http_response: Any,
    ) -> None:
        state = nonce_authenticator.authorization_request("alice@example.com").state
        with patch(_POST, return_value=token_http_response(token_body)):
            token = nonce_authenticator.complete_authorization("abc123", state)
        assert token.email == "alice@example.com"

    def test_replayed_state_rejected_before_exchange(
        self,
        nonce_authenticator: NotionAuthenticator,
        token_body: dict[str, Any],
        token_http_response: Any,
    ) -> None:
        state = nonce_authenticator.authorization_request("alice@example.com").state
        with patch(_POST, return_value=token_http_response(token_body)) as mock_post:
            nonce_authenticator.complete_authorization("abc123", state)
            with pytest.raises(StateError):
                nonce_authenticator.complete_authorization("abc123", state)
        assert mock_post.call_count == 1

    def test_forged_state_rejected(self, nonce_authenticator: NotionAuthenticator) -> None:
        with patch(_POST) as mock_post:
            kind, exc = _dispatch(
                nonce_authenticator, {"code": "abc123", "state": "alice@example.com"}
            )
        assert kind == "error"
        assert isinstance(exc, StateError)
        mock_post.assert_not_called()


# ---------------------------------------------------------------------------
# authenticate() dispatcher
# ---------------------------------------------------------------------------


class TestAuthenticate:
    def test_first_contact_redirects_with_email(
        self, authenticator: NotionAuthenticator
    ) -> None:
        kind, instruction = _dispatch(authenticator, {"email": "alice@example.com"})
        assert kind == "redirect"
        assert _query(instruction.url)["state"] == ["alice@example.com"]

    def test_missing_email_still_redirects(self, authenticator: NotionAuthenticator) -> None:
        kind, instruction = _dispatch(authenticator, {})
        assert kind == "redirect"
        assert _query(instruction.url)["state"] == [""]

    def test_callback_without_code_redirects_again(
        self, authenticator: NotionAuthenticator
    ) -> None:
        with patch(_POST) as mock_post:
            kind, _ = _dispatch(authenticator, {"state": "alice@example.com"})
        assert kind == "redirect"
        mock_post.assert_not_called()

    def test_empty_code_redirects(self, authenticator: NotionAuthenticator) -> None:
        kind, _ = _dispatch(authenticator, {"code": "", "state": "alice@example.com"})
        assert kind == "redirect"

    def test_success_callback(
        self,
        authenticator: NotionAuthenticator,
        token_body: dict[str, Any],
        token_http_response: Any,
    ) -> None:
        with patch(_POST, return_value=token_http_response(token_body)):
            kind, token = _dispatch(
                authenticator, {"code": "abc123", "state": "alice@example.com"}
            )
        assert kind == "success"
        assert token.email == "alice@example.com"
        assert token.access_token == "tok"

    def test_failure_goes_to_error_and_is_logged_once(
        self,
        authenticator: NotionAuthenticator,
        token_http_response: Any,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        with caplog.at_level(logging.ERROR, logger="notion_oauth"):
            with patch(_POST, return_value=token_http_response({}, status_code=400)):
                kind, exc = _dispatch(
                    authenticator, {"code": "abc123", "state": "alice@example.com"}
                )

        assert kind == "error"
        assert isinstance(exc, AuthenticationFailure)
        errors = [r for r in caplog.records if r.levelno >= logging.ERROR]
        assert len(errors) == 1
        assert "Error authenticating notion user" in errors[0].getMessage()

    def test_transport_failure_goes_to_error(
        self, authenticator: NotionAuthenticator
    ) -> None:
        with patch(_POST, side_effect=httpx.ConnectError("dns failure")):
            kind, exc = _dispatch(authenticator, {"code": "abc123", "state": "a@b.c"})
        assert kind == "error"
        assert isinstance(exc, TransportFailure)

    def test_provider_error_without_code_redirects(
        self, authenticator: NotionAuthenticator, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.WARNING, logger="notion_oauth"):
            with patch(_POST) as mock_post:
                kind, instruction = _dispatch(
                    authenticator, {"error": "access_denied", "state": "alice@example.com"}
                )

        assert kind == "redirect"
        assert isinstance(instruction, RedirectInstruction)
        mock_post.assert_not_called()
        assert [r.levelno for r in caplog.records] == [logging.WARNING]
        assert "access_denied" in caplog.records[0].getMessage()

    def test_invalid_token_url_goes_to_error(
        self, credentials: ClientCredentials
    ) -> None:
        authenticator = NotionAuthenticator(
            credentials, token_url="https://api.notion.com:99999/v1/oauth/token"
        )
        with patch(_POST, side_effect=httpx.InvalidURL("Invalid port: '99999'")):
            kind, exc = _dispatch(authenticator, {"code": "abc123", "state": "a@b.c"})
        assert kind == "error"
        assert isinstance(exc, ConfigError)
        assert "token_url" in str(exc)


# ---------------------------------------------------------------------------
# from_config
# ---------------------------------------------------------------------------


class TestFromConfig:
    def test_resolves_sources(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MY_CLIENT_ID", "cid")
        config = NotionOAuthConfig(
            client_id_source="env:MY_CLIENT_ID",
            client_secret_source="literal:csecret",
            callback_url="https://app.example.com/cb",
            timeout=12.0,
        )
        authenticator = NotionAuthenticator.from_config(config)

        assert authenticator.credentials == ClientCredentials(
            client_id="cid", client_secret="csecret", redirect_uri="https://app.example.com/cb"
        )
        headers = authenticator.token_request_headers()
        assert base64.b64decode(headers["Authorization"][6:]).decode() == "cid:csecret"

    def test_nonce_mode_uses_cache_dir(self, isolated_config: Any) -> None:
        config = NotionOAuthConfig(
            client_id_source="literal:cid",
            client_secret_source="literal:csecret",
            callback_url="https://app.example.com/cb",
            state_mode=StateMode.NONCE,
        )
        authenticator = NotionAuthenticator.from_config(config)
        try:
            state = authenticator.authorization_request("alice@example.com").state
            assert state != "alice@example.com"
            assert (isolated_config / "cache" / "notion-oauth" / "state").is_dir()
        finally:
            authenticator.close()

    def test_missing_credentials(self) -> None:
        with pytest.raises(ConfigError, match="client_id_source"):
            NotionAuthenticator.from_config(NotionOAuthConfig())
