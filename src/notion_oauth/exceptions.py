"""Exception hierarchy for notion-oauth.

All exceptions inherit from :class:`NotionOAuthError`, which carries an
``exit_code`` attribute mapped to a constant from
:mod:`notion_oauth.exit_codes` and an ``http_status`` used by
:mod:`notion_oauth.web` when the error is turned into a response for the
browser. The CLI entry point :func:`notion_oauth.app.main` catches
``NotionOAuthError`` and exits with the matching code.

Subclass hierarchy::

    NotionOAuthError (exit 1)
    +-- InvalidUsageError        (exit 2)
    +-- AuthError                (exit 3, HTTP 401)
    |   +-- AuthenticationFailure
    |   +-- StateError
    +-- TransportFailure         (exit 6, HTTP 502)
    +-- ConfigError              (exit 1)
"""

from notion_oauth.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
)


class NotionOAuthError(Exception):
    """Base exception for all notion-oauth errors.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE
    http_status: int = 500

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(NotionOAuthError):
    """Raised for invalid CLI arguments or missing required parameters."""

    exit_code = EXIT_INVALID_USAGE
    http_status = 400


class AuthError(NotionOAuthError):
    """Raised when the authorization flow cannot produce a token."""

    exit_code = EXIT_AUTH_FAILURE
    http_status = 401


class AuthenticationFailure(AuthError):
    """Raised when Notion's token endpoint answers with a non-2xx status.

    Also raised when a 2xx answer cannot be read as a token response.
    No partial credentials are ever attached.
    """


class StateError(AuthError):
    """Raised when a callback ``state`` nonce is unknown, expired or already used."""


class TransportFailure(NotionOAuthError):
    """Raised on network-level failures (timeout, DNS resolution, connection reset)."""

    exit_code = EXIT_CONNECTION_ERROR
    http_status = 502


class ConfigError(NotionOAuthError):
    """Raised for configuration problems (missing credentials, invalid JSON, bad sources)."""

    exit_code = EXIT_GENERIC_FAILURE
