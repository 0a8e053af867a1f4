"""Signature and claims verification with PyJWT.

This module provides the token verifier that runs once the signing key has
been resolved:

- ``VerifierBuilder`` collects claim-equality predicates (issuer, audience,
  token use, any custom claim) and a clock-skew leeway.
- ``ClaimsVerifier`` runs ``jwt.decode`` against a resolved KeyRecord, then
  evaluates the predicates, and maps PyJWT exceptions onto the error types
  in ``errors.py``.

Audience and issuer are checked as predicates rather than through PyJWT's
``audience=``/``issuer=`` arguments because Cognito access tokens carry no
``aud`` claim; they name the app client in ``client_id`` instead.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, TypeAlias

import jwt

from .errors import InvalidSignature, MalformedToken, TokenExpiredAt
from .protocols import Claims

if TYPE_CHECKING:
    from .key_cache import KeyRecord

ClaimValue: TypeAlias = str | int | bool


@dataclass(frozen=True, slots=True)
class ClaimPredicate:
    """Requires claim ``name`` to equal one of ``allowed``.

    A list-valued claim (e.g. a multi-audience ``aud``) matches if any of its
    items is allowed.
    """

    name: str
    allowed: tuple[ClaimValue, ...]

    def matches(self, claims: Claims) -> bool:
        if self.name not in claims:
            return False
        value = claims[self.name]
        if isinstance(value, list):
            return any(self._allows(item) for item in value)
        return self._allows(value)

    def _allows(self, value: Any) -> bool:
        # type check keeps True from matching 1
        return any(type(value) is type(a) and value == a for a in self.allowed)


@dataclass(frozen=True, slots=True)
class ClaimsVerifier:
    """Immutable verifier built by ``VerifierBuilder``.

    Thread Safety:
        Frozen and stateless; one instance can be shared by every request.

    Attributes:
        predicates: Claim predicates that must all match.
        leeway: Clock skew tolerance in seconds for exp/nbf/iat.
    """

    predicates: tuple[ClaimPredicate, ...] = ()
    leeway: float = 0

    def verify(self, token: str, record: KeyRecord) -> Claims:
        """Verify ``token`` against ``record`` and return its claims.

        Raises:
            InvalidSignature: Signature does not match the key.
            TokenExpiredAt: The exp claim has passed (accounting for leeway).
            MalformedToken: Token structure, header or claims are invalid.
        """
        try:
            claims = jwt.decode(
                token,
                record.key,
                algorithms=[record.algorithm],
                leeway=self.leeway,
                options={
                    "verify_aud": False,
                    "verify_iss": False,
                    "require": ["exp"],
                },
            )
            header = jwt.get_unverified_header(token)
        except jwt.ExpiredSignatureError as e:
            raise TokenExpiredAt(_unverified_exp(token)) from e
        except jwt.InvalidSignatureError as e:
            raise InvalidSignature() from e
        except jwt.InvalidAlgorithmError as e:
            raise MalformedToken("Unexpected 'alg' algorithm specified") from e
        except jwt.DecodeError as e:
            raise MalformedToken("Malformed JWT") from e
        except jwt.InvalidTokenError as e:
            raise MalformedToken(f"Decode failure: {e}") from e

        # the resolver looked the key up by kid; check the pairing here too
        if header.get("kid") != record.key_id:
            raise MalformedToken("Token 'kid' does not match the resolved key")

        for predicate in self.predicates:
            if not predicate.matches(claims):
                raise MalformedToken(f"JWT claims invalid: '{predicate.name}' mismatch")

        return claims


class VerifierBuilder:
    """Fluent builder for ``ClaimsVerifier``.

    Example:
        ```python
        verifier = (
            keyset.new_access_token_verifier(["my-client-id"])
            .claim_equals("custom:tenant", "acme")
            .leeway(10)
            .build()
        )
        ```
    """

    def __init__(self) -> None:
        self._predicates: dict[str, ClaimPredicate] = {}
        self._leeway: float = 0

    def claim_equals(self, name: str, value: ClaimValue) -> VerifierBuilder:
        """Require claim ``name`` to equal ``value``. Replaces any earlier rule for ``name``."""
        self._predicates[name] = ClaimPredicate(name, (value,))
        return self

    def claim_equals_one_of(self, name: str, values: Iterable[ClaimValue]) -> VerifierBuilder:
        """Require claim ``name`` to equal one of ``values``.

        Raises:
            ValueError: If ``values`` is empty; no token could ever pass.
        """
        allowed = tuple(values)
        if not allowed:
            raise ValueError(f"claim_equals_one_of({name!r}) needs at least one value")
        self._predicates[name] = ClaimPredicate(name, allowed)
        return self

    def leeway(self, seconds: float) -> VerifierBuilder:
        if seconds < 0:
            raise ValueError(f"leeway must not be negative, got {seconds}")
        self._leeway = seconds
        return self

    def build(self) -> ClaimsVerifier:
        return ClaimsVerifier(predicates=tuple(self._predicates.values()), leeway=self._leeway)


def _unverified_exp(token: str) -> int | None:
    try:
        payload = jwt.decode(token, options={"verify_signature": False})
    except jwt.InvalidTokenError:
        return None
    exp = payload.get("exp")
    return exp if isinstance(exp, int) else None
