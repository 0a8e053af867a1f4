"""Protocol definitions for the collaborators of KeySet.

Using protocols (PEP 544) lets the key-set fetcher, the claims verifier and
the token extractor be swapped for fakes in tests without inheritance.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any, Protocol, TypeAlias

if TYPE_CHECKING:
    from .key_cache import KeyRecord

# ============================================================================
# Type Aliases
# ============================================================================

Claims: TypeAlias = Mapping[str, Any]
"""Decoded JWT payload as an immutable mapping."""

ViewFunc: TypeAlias = Callable[..., Any]
"""Flask view function."""


# ============================================================================
# Collaborator Protocols
# ============================================================================


class KeySetFetcher(Protocol):
    """Retrieves the remote key set.

    Implementations perform exactly one network round trip per call and do
    not retry; rate limiting is the resolver's concern.
    """

    def fetch(self) -> list[KeyRecord]:
        """Fetch and parse the remote key set.

        Returns:
            Records for every key of a supported algorithm. Keys using other
            algorithms are dropped.

        Raises:
            NetworkError: Transport failure or an undecodable response.
        """
        ...


class TokenVerifier(Protocol):
    """Checks a token's signature and claims against an already resolved key."""

    def verify(self, token: str, record: KeyRecord) -> Claims:
        """Verify ``token`` with ``record`` and return its claims.

        Raises:
            InvalidSignature: Signature does not match the key.
            TokenExpiredAt: The exp claim has passed.
            MalformedToken: Decode failure or claim predicate mismatch.
        """
        ...


class Extractor(Protocol):
    """Pulls the raw JWT out of the current Flask request."""

    def extract(self) -> str:
        """Return the raw JWT string.

        Raises:
            MissingToken: Token not found or improperly formatted.
        """
        ...
