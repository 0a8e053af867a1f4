"""
Key-set fetchers for resolving JWT signing keys.

This package contains implementations of the KeySetFetcher protocol.
"""

from .cognito import CognitoJWKSFetcher, issuer_for, jwks_url_for, parse_key_set

__all__ = ["CognitoJWKSFetcher", "issuer_for", "jwks_url_for", "parse_key_set"]
