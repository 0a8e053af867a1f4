"""
AWS Cognito JWKS fetcher.

Downloads a user pool's published key set and parses it into KeyRecords.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Final

import jwt
from jwt import PyJWK, PyJWKClient

from ..errors import NetworkError
from ..key_cache import KeyRecord
from ..protocols import KeySetFetcher

logger = logging.getLogger(__name__)

SUPPORTED_ALGORITHM: Final[str] = "RS256"
"""Cognito signs ID and access tokens with RS256 only."""

JWKS_URL_TEMPLATE: Final[str] = (
    "https://cognito-idp.{region}.amazonaws.com/{pool_id}/.well-known/jwks.json"
)
ISSUER_TEMPLATE: Final[str] = "https://cognito-idp.{region}.amazonaws.com/{pool_id}"


def jwks_url_for(region: str, pool_id: str) -> str:
    return JWKS_URL_TEMPLATE.format(region=region, pool_id=pool_id)


def issuer_for(region: str, pool_id: str) -> str:
    return ISSUER_TEMPLATE.format(region=region, pool_id=pool_id)


class CognitoJWKSFetcher(KeySetFetcher):
    """
    Fetches a Cognito user pool's JWKS in one HTTP round trip.

    Behaviour
    ---------
    - One GET per ``fetch()`` call. No retries and no caching here: the
      KeyCache is the cache and the resolver's throttle is the backoff.
      PyJWKClient is used only for its transport (``fetch_data``) with its
      own JWK-set cache disabled.
    - Only RS256 keys are kept. Keys for any other algorithm are skipped so
      that a future algorithm published alongside them cannot break
      verification of the keys we do understand.
    - Entries without a string ``kid`` cannot be looked up and are skipped.
    - An RS256 entry that fails to parse fails the whole fetch, so nothing
      is committed from a key set we only partly understood.

    Parameters
    ----------
    jwks_url : str
        Full URL of the pool's ``.well-known/jwks.json``.
    timeout : int
        Socket timeout in seconds for the single request.
    headers : dict | None
        Extra request headers.
    """

    def __init__(
        self,
        jwks_url: str,
        *,
        timeout: int = 30,
        headers: dict[str, Any] | None = None,
    ) -> None:
        self.jwks_url = jwks_url
        self._client = PyJWKClient(
            jwks_url,
            cache_jwk_set=False,
            timeout=timeout,
            headers=headers,
        )

    def fetch(self) -> list[KeyRecord]:
        logger.debug("Fetching JWKS from %s", self.jwks_url)
        try:
            data = self._client.fetch_data()
        except jwt.PyJWKClientError as e:
            raise NetworkError(f"Request to {self.jwks_url} failed") from e
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise NetworkError("Key set response is not valid JSON") from e

        return parse_key_set(data)


def parse_key_set(data: Any) -> list[KeyRecord]:
    """Parse a decoded JWKS document into supported KeyRecords.

    RS256 entries PyJWK cannot parse are skipped with a warning, so one bad
    key never keeps the rest of the set out of the cache.

    Raises:
        NetworkError: If the document does not have the JWKS shape.
    """
    if not isinstance(data, dict):
        raise NetworkError("Key set response is not a JSON object")

    keys = data.get("keys")
    if not isinstance(keys, list):
        raise NetworkError("Key set response has no 'keys' array")

    records: list[KeyRecord] = []
    for entry in keys:
        if not isinstance(entry, dict):
            continue
        kid = entry.get("kid")
        if entry.get("alg") != SUPPORTED_ALGORITHM or not isinstance(kid, str):
            continue
        try:
            key = PyJWK.from_dict(entry, algorithm=SUPPORTED_ALGORITHM)
        except (jwt.PyJWTError, ValueError) as e:
            logger.warning("Skipping invalid key in key set (kid=%s): %s", kid, e)
            continue
        records.append(KeyRecord(key_id=kid, algorithm=SUPPORTED_ALGORITHM, key=key))

    return records
