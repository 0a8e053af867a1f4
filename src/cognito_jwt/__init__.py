"""
AWS Cognito JWT verification with a throttled, in-memory JWKS cache.

High-level flow
---------------
1. `KeySet.verify(token, verifier)` reads the unverified header to get `kid`.
2. `KeyResolver` looks the `kid` up in the `KeyCache`:
   - hit: use the cached key, however old the cache is
   - miss: fetch the pool's JWKS (one HTTP GET) unless the last refresh was
     less than `min_jwks_fetch_interval` ago, then retry the lookup once
3. `ClaimsVerifier` checks the signature with PyJWT and evaluates the claim
   predicates (issuer, audience / client id, token use, custom claims).
4. Verified claims are returned; every failure is a `CognitoJWTError`.

`KeySet.try_verify` stops at step 2's cache lookup and raises `CacheMiss`
instead of touching the network. `KeySet.prefetch_jwks` always fetches.

Example usage
-------------

.. code-block:: python

    from cognito_jwt import KeySet

    keyset = KeySet("eu-west-1", "eu-west-1_AbCdEf123")
    id_verifier = keyset.new_id_token_verifier(["my-app-client-id"]).build()

    claims = keyset.verify(id_token, id_verifier)
    print(claims["email"])
"""

# Config
from .config import CognitoSettings

# Errors
from .errors import (
    CacheMiss,
    CognitoJWTError,
    InvalidSignature,
    KeyNotFound,
    MalformedToken,
    MissingToken,
    NetworkError,
    NoKeyID,
    Throttled,
    TokenExpiredAt,
)

# Extractors
from .extractors import BearerExtractor, CookieExtractor

# Flask extension
from .flask_extension import AuthExtension

# Key cache
from .key_cache import KeyCache, KeyRecord

# Key providers
from .key_providers import CognitoJWKSFetcher

# Key set
from .keyset import KeySet

# Protocols
from .protocols import Claims, Extractor, KeySetFetcher, TokenVerifier

# Refresh throttle
from .refresh_gate import RefreshThrottle

# Resolver
from .resolver import KeyResolver

# Verifier
from .verifier import ClaimPredicate, ClaimsVerifier, VerifierBuilder

__all__ = [
    # Errors
    "CognitoJWTError",
    "NoKeyID",
    "InvalidSignature",
    "TokenExpiredAt",
    "MalformedToken",
    "NetworkError",
    "Throttled",
    "KeyNotFound",
    "CacheMiss",
    "MissingToken",
    # Protocols
    "Claims",
    "Extractor",
    "KeySetFetcher",
    "TokenVerifier",
    # Key cache
    "KeyCache",
    "KeyRecord",
    # Refresh throttle
    "RefreshThrottle",
    # Key providers
    "CognitoJWKSFetcher",
    # Resolver
    "KeyResolver",
    # Verifier
    "ClaimPredicate",
    "ClaimsVerifier",
    "VerifierBuilder",
    # Key set
    "KeySet",
    # Config
    "CognitoSettings",
    # Extractors
    "BearerExtractor",
    "CookieExtractor",
    # Flask extension
    "AuthExtension",
]
