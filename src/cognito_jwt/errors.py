"""Errors raised while resolving keys and verifying Cognito tokens.

Every failure is raised as a subclass of CognitoJWTError so callers can catch
one type. Underlying library errors (PyJWT, urllib) are chained with
``raise ... from`` and exposed through ``CognitoJWTError.cause`` for display
and logging, without callers needing to import the library's types.

Hierarchy:
    CognitoJWTError
    ├── NoKeyID
    ├── InvalidSignature
    ├── TokenExpiredAt
    ├── MalformedToken
    ├── NetworkError
    │   ├── Throttled
    │   └── KeyNotFound
    ├── CacheMiss
    └── MissingToken
"""

from __future__ import annotations

from typing import ClassVar


class CognitoJWTError(Exception):
    """Base exception for all token verification failures.

    Attributes:
        description: Human readable detail, also used as the HTTP description
            by the Flask extension.
        error_code: HTTP status the Flask extension aborts with.
    """

    error_code: ClassVar[int] = 401
    default_description: ClassVar[str] = "Token verification failed"

    def __init__(self, description: str | None = None) -> None:
        self.description = description or self.default_description
        super().__init__(self.description)

    @property
    def cause(self) -> BaseException | None:
        """The underlying error this one was raised from, if any."""
        return self.__cause__


class NoKeyID(CognitoJWTError):  # noqa: N818
    """The token header has no 'kid', or the 'kid' is not a string."""

    default_description = "Token had no 'kid' value"


class InvalidSignature(CognitoJWTError):  # noqa: N818
    """The token signature does not match the resolved key."""

    default_description = "JWT Signature Invalid"


class TokenExpiredAt(CognitoJWTError):  # noqa: N818
    """The token's exp claim has passed.

    Attributes:
        expired_at: The exp claim (Unix timestamp), when it could be read.
    """

    def __init__(self, expired_at: int | None = None, description: str | None = None) -> None:
        self.expired_at = expired_at
        if description is None:
            description = (
                f"JWT token expired at {expired_at}"
                if expired_at is not None
                else "JWT token expired"
            )
        super().__init__(description)


class MalformedToken(CognitoJWTError):  # noqa: N818
    """Structural decode failure, unexpected algorithm, or claim mismatch."""

    default_description = "Malformed JWT"


class NetworkError(CognitoJWTError):  # noqa: N818
    """The remote key set could not be fetched or decoded.

    The description always starts with "Error fetching JWKS key set", followed
    by the detail when there is one.

    Attributes:
        detail: The message without the common prefix, or None.
    """

    prefix: ClassVar[str] = "Error fetching JWKS key set"
    default_description = ""

    def __init__(self, description: str | None = None) -> None:
        self.detail = description or self.default_description or None
        super().__init__(f"{self.prefix}: {self.detail}" if self.detail else self.prefix)


class Throttled(NetworkError):  # noqa: N818
    """A refresh was refused because the last one was too recent.

    Reported as a NetworkError: a key set that was refreshed moments ago and
    still lacks the key is treated as currently unreachable.
    """

    default_description = "Key set is currently unreachable (throttled)"


class KeyNotFound(NetworkError):  # noqa: N818
    """A fresh key set was fetched but does not contain the requested kid."""

    default_description = "Failed to get key set"


class CacheMiss(CognitoJWTError):  # noqa: N818
    """The non-blocking path found no cached key for the token.

    Attributes:
        last_refresh_time: Unix timestamp of the last successful refresh, or
            None if the key set has never been fetched. Callers can use it to
            decide between retrying later and falling back to ``verify``.
    """

    default_description = "Failed to lookup corresponding key"

    def __init__(self, last_refresh_time: float | None = None, description: str | None = None) -> None:
        self.last_refresh_time = last_refresh_time
        super().__init__(description)


class MissingToken(CognitoJWTError):  # noqa: N818
    """No token was found in the HTTP request."""

    default_description = "Missing token"
