"""Terminal output for the notion-oauth commands.

stdout carries exactly one result per command, and that is what scripts
capture: an authorization URL, a token payload, a config document or the
API version string. Everything else (progress, failures and the hint that
follows a failure) goes to stderr.

The result format follows ``--json`` / ``--plain``. Without either flag,
token and config payloads are pretty-printed when stdout is a terminal and
written as ``key<TAB>value`` lines when piped. ``NO_COLOR``, ``TERM=dumb``
and ``--no-color`` turn colour off.

:func:`~notion_oauth.app.main_callback` installs one :class:`OutputManager`
per invocation; commands use the module-level helpers.
"""

from __future__ import annotations

import json
import os
import sys
from enum import Enum
from typing import Any, Mapping, Optional, Union

from rich.console import Console

from notion_oauth.exceptions import (
    AuthenticationFailure,
    ConfigError,
    NotionOAuthError,
    StateError,
    TransportFailure,
)


class OutputFormat(str, Enum):
    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


# Checked in order; StateError is an AuthError, so it precedes AuthenticationFailure.
_FAILURE_HINTS: tuple[tuple[type[NotionOAuthError], str], ...] = (
    (StateError, "State values are single-use; start again with `notion-oauth authorize-url`."),
    (
        AuthenticationFailure,
        "Authorization codes are single-use and expire quickly; request a new one.",
    ),
    (TransportFailure, "Check network access to the Notion token endpoint (token_url)."),
    (
        ConfigError,
        "Run `notion-oauth config init` or export NOTION_OAUTH_CLIENT_ID, "
        "NOTION_OAUTH_CLIENT_SECRET and NOTION_OAUTH_CALLBACK_URL.",
    ),
)


def failure_hint(exc: NotionOAuthError) -> Optional[str]:
    """Return the next step to suggest after *exc*, if there is one."""
    for exc_type, hint in _FAILURE_HINTS:
        if isinstance(exc, exc_type):
            return hint
    return None


class OutputManager:
    """Writes command results to stdout and diagnostics to stderr.

    Args:
        format: Result format; ``AUTO`` picks ``RICH`` on a colour terminal.
        no_color: Disable colour regardless of the environment.
        quiet: Drop progress lines and hints. Failures are always shown.
        verbose: Show ``debug`` lines.
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
        verbose: bool = False,
    ) -> None:
        self._no_color = no_color or _color_disabled_by_env()
        self._quiet = quiet
        self._verbose = verbose

        if format == OutputFormat.AUTO:
            interactive = sys.stdout.isatty() if hasattr(sys.stdout, "isatty") else False
            format = OutputFormat.RICH if interactive and not self._no_color else OutputFormat.PLAIN
        self._format = format

        self._stdout = Console(file=sys.stdout, no_color=self._no_color)
        self._stderr = Console(file=sys.stderr, no_color=self._no_color, stderr=True)

    @property
    def format(self) -> OutputFormat:
        return self._format

    # -- results (stdout) ------------------------------------------------

    def authorization_url(self, url: str, state: str) -> None:
        """Write the URL a browser should open; JSON mode adds the state value."""
        if self._format == OutputFormat.JSON:
            self._write(json.dumps({"url": url, "state": state}))
        else:
            self._write(url)

    def payload(self, data: Mapping[str, Any]) -> None:
        """Write a token or config document."""
        if self._format == OutputFormat.JSON:
            self._write(json.dumps(data, indent=2, ensure_ascii=False, default=str))
        elif self._format == OutputFormat.RICH:
            self._stdout.print_json(data=dict(data), default=str)
        else:
            for key, value in data.items():
                if isinstance(value, (dict, list)):
                    value = json.dumps(value, ensure_ascii=False, default=str)
                self._write(f"{key}\t{'' if value is None else value}")

    def value(self, text: str) -> None:
        """Write a single scalar result such as the API version."""
        if self._format == OutputFormat.JSON:
            self._write(json.dumps(text))
        else:
            self._write(text)

    # -- diagnostics (stderr) --------------------------------------------

    def status(self, message: str, *, ok: bool = False) -> None:
        """Report progress; ``ok`` marks a completed step in green."""
        if not self._quiet:
            self._note(message, "green" if ok else None)

    def failure(
        self, problem: Union[NotionOAuthError, str], hint: Optional[str] = None
    ) -> None:
        """Report a failed command, followed by a hint unless ``--quiet``."""
        self._note(f"Error: {problem}", "bold red")
        if hint is None and isinstance(problem, NotionOAuthError):
            hint = failure_hint(problem)
        if hint and not self._quiet:
            self._note(f"→ {hint}", "dim")

    def debug(self, message: str) -> None:
        if self._verbose:
            self._note(f"debug: {message}", "dim")

    def _write(self, text: str) -> None:
        print(text, file=sys.stdout, flush=True)

    def _note(self, text: str, style: Optional[str]) -> None:
        # Exception text may contain brackets; never parse it as markup.
        self._stderr.print(text, style=style, markup=False, highlight=False, soft_wrap=True)


def _color_disabled_by_env() -> bool:
    return os.environ.get("NO_COLOR") is not None or os.environ.get("TERM") == "dumb"


_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    global _output
    _output = output


def reset_output() -> None:
    """Forget the installed manager (CliRunner closes the streams it captured)."""
    global _output
    _output = None


def authorization_url(url: str, state: str) -> None:
    get_output().authorization_url(url, state)


def payload(data: Mapping[str, Any]) -> None:
    get_output().payload(data)


def value(text: str) -> None:
    get_output().value(text)


def status(message: str, *, ok: bool = False) -> None:
    get_output().status(message, ok=ok)


def failure(problem: Union[NotionOAuthError, str], hint: Optional[str] = None) -> None:
    get_output().failure(problem, hint)


def debug(message: str) -> None:
    get_output().debug(message)
