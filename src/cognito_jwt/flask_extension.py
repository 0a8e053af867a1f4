"""Flask extension for Cognito token authentication.

Security Model:
1. Extract token from request (header or cookie)
2. Verify it through a KeySet (blocking or cache-only)
3. Store verified claims in flask.g.jwt for route access
4. Convert verification errors to HTTP 401 responses
"""

from __future__ import annotations

import logging
from functools import wraps
from typing import TYPE_CHECKING, Any, Final

from flask import Flask, abort, g

from .errors import CognitoJWTError
from .extractors import BearerExtractor

if TYPE_CHECKING:
    from .keyset import KeySet
    from .protocols import Claims, Extractor, TokenVerifier, ViewFunc

logger = logging.getLogger(__name__)

_EXT_KEY: Final[str] = "cognito_jwt"
"""Flask extensions registry key for AuthExtension."""


class AuthExtension:
    """
    Flask decorator glue for Cognito token authentication.

    Responsibilities:
    - Extract token from request
    - Verify it with ``KeySet.verify`` (or ``try_verify`` when ``blocking``
      is False, for deployments that prefetch keys and must never wait on
      the JWKS endpoint inside a request)
    - Store verified claims in `flask.g.jwt`
    - Convert domain errors to HTTP responses (abort)

    Usage:
        keyset = KeySet(region, pool_id)
        auth = AuthExtension(keyset, keyset.new_access_token_verifier([client_id]).build())

        @app.get("/me")
        @auth.require()
        def me(): ...
    """

    def __init__(
        self,
        keyset: KeySet,
        verifier: TokenVerifier,
        extractor: Extractor | None = None,
        *,
        blocking: bool = True,
    ) -> None:
        self._keyset = keyset
        self._verifier = verifier
        self._extractor: Extractor = extractor or BearerExtractor()
        self._blocking = blocking

    def init_app(self, app: Flask, *, prefetch: bool = False) -> None:
        """Register the extension on ``app``.

        Args:
            app: The Flask application instance.
            prefetch: Download the key set now, so the first request does not
                pay for the fetch. Required in practice when ``blocking`` is
                False.
        """
        app.extensions[_EXT_KEY] = self
        if prefetch:
            self._keyset.prefetch_jwks()

    def verify(self, token: str) -> Claims:
        if self._blocking:
            return self._keyset.verify(token, self._verifier)
        return self._keyset.try_verify(token, self._verifier)

    def require(self):
        """Decorator that rejects requests without a valid token.

        Error mapping:
        - any ``CognitoJWTError`` -> its ``error_code`` (401) and description
        - anything else           -> HTTP 401 ("Authentication failed")

        Side Effects:
            Writes decoded claims to ``flask.g.jwt`` before calling the view.
        """

        def decorator(view: ViewFunc) -> ViewFunc:
            @wraps(view)
            def wrapper(*args: Any, **kwargs: Any) -> Any:
                try:
                    token = self._extractor.extract()
                    g.jwt = self.verify(token)
                except CognitoJWTError as e:
                    logger.debug("Rejected request: %s", e, exc_info=e.cause is not None)
                    abort(e.error_code, description=e.description)
                except Exception:
                    logger.exception("Unexpected error during token verification")
                    abort(401, description="Authentication failed")

                return view(*args, **kwargs)

            return wrapper

        return decorator
