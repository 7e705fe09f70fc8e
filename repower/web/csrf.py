"""
Per-session CSRF tokens.

The token set is an explicit object owned by the caller's session and
passed into each request, instead of living in global session state.

Invariants:
    - Generated tokens are unique within one store
    - A token verifies at most once; verification consumes it
"""

from __future__ import annotations

import logging
import secrets
from collections.abc import Iterable

logger = logging.getLogger(__name__)

TOKEN_BYTES = 16


class CsrfTokenStore:
    """Single-use CSRF tokens for one session."""

    def __init__(self, tokens: Iterable[str] = ()) -> None:
        self._tokens: set[str] = set(tokens)

    def generate(self) -> str:
        """Issue a new token for form submission."""
        token = secrets.token_hex(TOKEN_BYTES)
        while token in self._tokens:
            token = secrets.token_hex(TOKEN_BYTES)
        self._tokens.add(token)
        return token

    def verify(self, token: str | None) -> bool:
        """Check a token and remove it from the store.

        Returns:
            True if the token was issued by this store and not yet used
        """
        if not token or token not in self._tokens:
            logger.debug("CSRF token rejected")
            return False
        self._tokens.discard(token)
        return True

    def __contains__(self, token: object) -> bool:
        return token in self._tokens

    def __len__(self) -> int:
        return len(self._tokens)

    def snapshot(self) -> frozenset[str]:
        """Outstanding tokens, for persisting into the host session."""
        return frozenset(self._tokens)
