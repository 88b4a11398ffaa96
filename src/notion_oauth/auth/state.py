"""State channels: how the caller's email survives the provider round-trip.

Two channels are provided:

- :class:`EmailStateChannel` -- the email *is* the ``state`` value. This is
  the default and keeps existing integrations working, but it gives the
  callback no protection against forged requests.
- :class:`NonceStateChannel` -- a random nonce is sent as ``state`` and the
  email is kept server-side in a :mod:`diskcache` store with a short TTL.
  The nonce is consumed on first use.

Select one with :func:`create_state_channel` from the configured
:class:`~notion_oauth.models.StateMode`.
"""

from __future__ import annotations

import logging
import secrets
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

import diskcache

from notion_oauth.exceptions import StateError
from notion_oauth.models import NotionOAuthConfig, StateMode

logger = logging.getLogger(__name__)


class StateChannel(ABC):
    """Maps an email to an outgoing ``state`` value and back."""

    @abstractmethod
    def issue(self, email: Optional[str]) -> str:
        """Return the ``state`` value to place in the authorization URL."""
        ...

    @abstractmethod
    def resolve(self, state: Optional[str]) -> Optional[str]:
        """Return the email for a callback's ``state`` value.

        Raises:
            StateError: If the value cannot be mapped back to an email.
        """
        ...

    def close(self) -> None:
        """Release any resources held by the channel."""


class EmailStateChannel(StateChannel):
    """Send the email itself as ``state`` and trust it on the way back."""

    def issue(self, email: Optional[str]) -> str:
        return email if email is not None else ""

    def resolve(self, state: Optional[str]) -> Optional[str]:
        return state


class NonceStateChannel(StateChannel):
    """Send a single-use nonce as ``state``; keep nonce -> email server-side.

    Args:
        cache_dir: Root directory for the store. A ``state/`` subdirectory
            is created inside it.
        ttl_seconds: How long an issued nonce stays redeemable.

    Example::

        channel = NonceStateChannel(get_cache_dir(), ttl_seconds=600)
        state = channel.issue("alice@example.com")
        channel.resolve(state)  # "alice@example.com"
        channel.resolve(state)  # raises StateError
    """

    def __init__(self, cache_dir: str | Path, ttl_seconds: int = 600) -> None:
        self._ttl_seconds = ttl_seconds
        self._cache = diskcache.Cache(str(Path(cache_dir) / "state"))

    def issue(self, email: Optional[str]) -> str:
        nonce = secrets.token_urlsafe(32)
        self._cache.set(nonce, {"email": email}, expire=self._ttl_seconds)
        return nonce

    def resolve(self, state: Optional[str]) -> Optional[str]:
        if not state:
            raise StateError("Callback is missing the state parameter")
        entry = self._cache.pop(state, default=None)
        if entry is None:
            logger.warning("Rejected unknown or expired state nonce")
            raise StateError("Unknown or expired state")
        return entry["email"]

    def close(self) -> None:
        self._cache.close()


def create_state_channel(
    config: NotionOAuthConfig, cache_dir: Optional[str | Path] = None
) -> StateChannel:
    """Build the channel selected by ``config.state_mode``.

    Args:
        config: Effective configuration.
        cache_dir: Store location for nonce mode. Defaults to
            :func:`~notion_oauth.config.get_cache_dir`.
    """
    if config.state_mode == StateMode.NONCE:
        if cache_dir is None:
            from notion_oauth.config import get_cache_dir

            cache_dir = get_cache_dir()
        return NonceStateChannel(cache_dir, config.state_ttl_seconds)
    return EmailStateChannel()
