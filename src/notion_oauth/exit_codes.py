"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~notion_oauth.exceptions.NotionOAuthError` subclass.
Shell wrappers can inspect the exit code to tell a rejected authorization
code apart from an unreachable provider without parsing stderr.

Example::

    $ notion-oauth exchange 4f1c... --state alice@example.com
    $ echo $?
    3   # EXIT_AUTH_FAILURE -- Notion rejected the code
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_AUTH_FAILURE = 3
"""The provider rejected the authorization code or the state could not be resolved."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""
