"""Abstract authenticator interface consumed by routing layers.

An :class:`Authenticator` exposes the two halves of an authorization code
flow -- :meth:`~Authenticator.begin_authorization` and
:meth:`~Authenticator.complete_authorization` -- plus a default
:meth:`~Authenticator.authenticate` dispatcher that inspects the inbound
query string and routes the outcome to one of three callbacks. The web
layer in :mod:`notion_oauth.web` and the CLI both talk to this interface
only.

See Also:
    :class:`notion_oauth.auth.notion.NotionAuthenticator` for the concrete
    implementation.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Callable, Mapping, Optional, TypeVar

from notion_oauth.exceptions import NotionOAuthError
from notion_oauth.models import RedirectInstruction, TokenResponse

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Authenticator(ABC):
    """Base class for an authorization code exchanger.

    A single instance serves concurrent requests; any per-flow state lives
    in its state channel's store, never on the instance.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Short provider identifier used in log messages (e.g. ``"notion"``)."""
        ...

    @abstractmethod
    def begin_authorization(self, email: Optional[str]) -> RedirectInstruction:
        """Build the redirect that sends the browser to the provider.

        Args:
            email: Correlation value to carry through ``state``. Not validated;
                ``None`` is accepted.
        """
        ...

    @abstractmethod
    def complete_authorization(
        self, code: str, state: Optional[str]
    ) -> TokenResponse:
        """Exchange *code* for a token and attach the email recovered from *state*.

        Raises:
            AuthError: If the provider rejects the code or *state* cannot be
                resolved.
            TransportFailure: If the provider cannot be reached.
        """
        ...

    def authenticate(
        self,
        query: Mapping[str, str],
        *,
        success: Callable[[TokenResponse], T],
        error: Callable[[NotionOAuthError], T],
        redirect: Callable[[RedirectInstruction], T],
    ) -> T:
        """Dispatch one inbound request and return whatever the chosen callback returns.

        * no ``code`` -- first contact, or a callback without a code (including
          one where the provider sent ``error``, which is logged at WARNING):
          a fresh redirect built from the ``email`` parameter goes to
          *redirect*.
        * ``code`` present -- the exchange runs; the token goes to *success*,
          any :class:`~notion_oauth.exceptions.NotionOAuthError` is logged
          once and goes to *error*.
        """
        code = query.get("code")
        if not code:
            if query.get("error"):
                logger.warning(
                    "%s callback carried error=%r and no code; redirecting again",
                    self.name,
                    query["error"],
                )
            return redirect(self.begin_authorization(query.get("email")))

        try:
            token = self.complete_authorization(code, query.get("state"))
        except NotionOAuthError as exc:
            logger.error("Error authenticating %s user: %s", self.name, exc)
            return error(exc)
        return success(token)
