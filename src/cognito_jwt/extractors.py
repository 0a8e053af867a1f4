"""Token extraction from Flask requests.

- BearerExtractor: ``Authorization: Bearer <token>`` header (APIs)
- CookieExtractor: a named cookie (browser apps; pair with CSRF protection)
"""

from __future__ import annotations

from flask import request

from .errors import MissingToken


class BearerExtractor:
    """Reads the token from the ``Authorization: Bearer <token>`` header."""

    def extract(self) -> str:
        """Return the bearer token.

        Raises:
            MissingToken: Header absent, not the Bearer scheme, or empty token.
        """
        auth_header = request.headers.get("Authorization", "").strip()
        if not auth_header:
            raise MissingToken("Missing Authorization header")

        scheme, _, token = auth_header.partition(" ")
        if scheme.lower() != "bearer":
            raise MissingToken("Invalid authorization scheme (expected 'Bearer')")

        token = token.strip()
        if not token:
            raise MissingToken("Bearer token is empty")
        return token


class CookieExtractor:
    """Reads the token from a cookie.

    Cognito hosted-UI apps commonly store ``id_token`` and ``access_token``
    cookies; pass the one the route should verify.
    """

    def __init__(self, cookie_name: str = "access_token") -> None:
        if not cookie_name or not cookie_name.strip():
            raise ValueError("cookie_name cannot be empty")
        self._name = cookie_name

    def extract(self) -> str:
        token = request.cookies.get(self._name)
        if not token:
            raise MissingToken(f"Missing cookie '{self._name}'")
        return token
