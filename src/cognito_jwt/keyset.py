"""The public entry point: a Cognito user pool's key set.

KeySet glues the pieces together:

1. Reads the ``kid`` from the token's unverified header.
2. Resolves the key through KeyResolver, either blocking on the network
   (``verify``) or cache-only (``try_verify``).
3. Hands token and key to a ClaimsVerifier built from
   ``new_id_token_verifier`` / ``new_access_token_verifier``.

Each KeySet owns its own cache, so KeySets for different pools or regions
never interfere.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

import jwt

from .errors import MalformedToken, NoKeyID
from .key_cache import KeyCache, KeyRecord
from .key_providers import CognitoJWKSFetcher, issuer_for, jwks_url_for
from .refresh_gate import DEFAULT_MIN_INTERVAL, RefreshThrottle
from .resolver import KeyResolver
from .verifier import VerifierBuilder

if TYPE_CHECKING:
    from .config import CognitoSettings
    from .protocols import Claims, KeySetFetcher, TokenVerifier


class KeySet:
    """Verifies tokens issued by one Cognito user pool.

    Example:
        ```python
        keyset = KeySet("eu-west-1", "eu-west-1_AbCdEf123")
        verifier = keyset.new_access_token_verifier(["client-id"]).build()

        keyset.prefetch_jwks()            # optional warm-up
        claims = keyset.verify(token, verifier)

        # From a context that must not block on the network:
        try:
            claims = keyset.try_verify(token, verifier)
        except CacheMiss:
            ...
        ```

    Thread Safety:
        All methods may be called concurrently. The only mutable state is the
        KeyCache, which is lock-guarded.
    """

    def __init__(
        self,
        region: str,
        pool_id: str,
        *,
        fetcher: KeySetFetcher | None = None,
        min_jwks_fetch_interval: float = DEFAULT_MIN_INTERVAL,
    ) -> None:
        """Build the key set for ``pool_id`` in ``region``.

        Args:
            region: AWS region, e.g. "us-east-1".
            pool_id: User pool id, e.g. "us-east-1_AbCdEf123".
            fetcher: Overrides the HTTP fetcher (tests, custom transports).
            min_jwks_fetch_interval: Minimum seconds between refreshes
                triggered by unknown kids.

        Raises:
            ValueError: If region or pool_id is empty.
        """
        if not region or not pool_id:
            raise ValueError("region and pool_id are required")

        self._region = region
        self._pool_id = pool_id
        self._jwks_url = jwks_url_for(region, pool_id)
        self._issuer = issuer_for(region, pool_id)

        self._cache = KeyCache()
        self._throttle = RefreshThrottle(self._cache, min_interval=min_jwks_fetch_interval)
        self._resolver = KeyResolver(
            self._cache,
            fetcher or CognitoJWKSFetcher(self._jwks_url),
            self._throttle,
        )

    @classmethod
    def from_settings(cls, settings: CognitoSettings) -> KeySet:
        return cls(
            settings.region,
            settings.pool_id,
            min_jwks_fetch_interval=settings.min_jwks_fetch_interval,
        )

    @property
    def region(self) -> str:
        return self._region

    @property
    def pool_id(self) -> str:
        return self._pool_id

    @property
    def jwks_url(self) -> str:
        return self._jwks_url

    @property
    def issuer(self) -> str:
        return self._issuer

    @property
    def last_refresh_time(self) -> float | None:
        return self._cache.last_refresh_time

    @property
    def min_jwks_fetch_interval(self) -> float:
        return self._throttle.min_interval

    @min_jwks_fetch_interval.setter
    def min_jwks_fetch_interval(self, seconds: float) -> None:
        self._throttle.min_interval = seconds

    def set_min_jwks_fetch_interval(self, seconds: float) -> None:
        """Set the minimum seconds between refreshes triggered by unknown kids."""
        self.min_jwks_fetch_interval = seconds

    # ------------------------------------------------------------------
    # Claim predicates
    # ------------------------------------------------------------------

    def new_id_token_verifier(self, client_ids: Sequence[str]) -> VerifierBuilder:
        """Builder pre-configured for Cognito ID tokens.

        Checks ``iss`` against this pool, ``aud`` against ``client_ids`` and
        ``token_use == "id"``. Add custom claims before calling ``build()``.
        """
        return (
            VerifierBuilder()
            .claim_equals("iss", self._issuer)
            .claim_equals_one_of("aud", client_ids)
            .claim_equals("token_use", "id")
        )

    def new_access_token_verifier(self, client_ids: Sequence[str]) -> VerifierBuilder:
        """Builder pre-configured for Cognito access tokens.

        Checks ``iss`` against this pool, ``client_id`` against ``client_ids``
        and ``token_use == "access"``.
        """
        return (
            VerifierBuilder()
            .claim_equals("iss", self._issuer)
            .claim_equals_one_of("client_id", client_ids)
            .claim_equals("token_use", "access")
        )

    # ------------------------------------------------------------------
    # Verification
    # ------------------------------------------------------------------

    def verify(self, token: str, verifier: TokenVerifier) -> Claims:
        """Verify ``token``, fetching the key set if its key is not cached.

        May block on one HTTP request to the JWKS endpoint.

        Raises:
            NoKeyID: Token header has no string 'kid'.
            MalformedToken: Undecodable token or claim predicate mismatch.
            InvalidSignature: Signature does not verify.
            TokenExpiredAt: Token has expired.
            NetworkError: Fetch failed, was throttled, or the key set lacks the kid.
        """
        record = self._resolver.resolve_blocking(_key_id(token))
        return verifier.verify(token, record)

    def try_verify(self, token: str, verifier: TokenVerifier) -> Claims:
        """Verify ``token`` using cached keys only. Never performs network I/O.

        Raises:
            CacheMiss: The token's key is not cached (yet).
            (plus the same token errors as ``verify``)
        """
        record = self._resolver.resolve_nonblocking(_key_id(token))
        return verifier.verify(token, record)

    def prefetch_jwks(self) -> None:
        """Download the remote key set and cache it.

        Always performs the request; the refresh throttle does not apply.

        Raises:
            NetworkError: The fetch failed. The cache is left untouched.
        """
        self._resolver.refresh()

    def lookup(self, kid: str) -> KeyRecord | None:
        """Return the cached key for ``kid``, or None. Never performs network I/O."""
        return self._cache.lookup(kid)


def _key_id(token: str) -> str:
    try:
        header = jwt.get_unverified_header(token)
    except jwt.DecodeError as e:
        raise MalformedToken("Malformed JWT") from e
    except jwt.InvalidTokenError as e:
        # PyJWT's only other header check: a non-string kid
        raise NoKeyID() from e

    kid = header.get("kid")
    if not isinstance(kid, str):
        raise NoKeyID()
    return kid
