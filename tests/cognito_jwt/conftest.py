import time
from typing import Any

import jwt
import pytest
from cryptography.hazmat.primitives.asymmetric import rsa
from flask import Flask
from jwt import PyJWK
from jwt.algorithms import RSAAlgorithm

from cognito_jwt import KeyRecord, NetworkError

REGION = "eu-west-1"
POOL_ID = "eu-west-1_TestPool1"
ISSUER = f"https://cognito-idp.{REGION}.amazonaws.com/{POOL_ID}"
CLIENT_ID = "client-abc"


@pytest.fixture()
def app():
    app = Flask(__name__)
    app.config["TESTING"] = True
    return app


@pytest.fixture(scope="session")
def private_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def other_private_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture
def make_jwk_dict(private_key: rsa.RSAPrivateKey):
    """
    Factory fixture returning the public JWK dict as Cognito publishes it.

    Usage in tests:
        entry = make_jwk_dict(kid="k1")
    """

    def _make(*, kid: str = "kid1", alg: str = "RS256", key: Any = None) -> dict[str, Any]:
        public_key = (key or private_key).public_key()
        jwk_dict = RSAAlgorithm.to_jwk(public_key, as_dict=True)
        jwk_dict.update({"kid": kid, "alg": alg, "use": "sig"})
        return jwk_dict

    return _make


@pytest.fixture
def make_record(make_jwk_dict):
    def _make(*, kid: str = "kid1", key: Any = None) -> KeyRecord:
        return KeyRecord(
            key_id=kid,
            algorithm="RS256",
            key=PyJWK.from_dict(make_jwk_dict(kid=kid, key=key)),
        )

    return _make


@pytest.fixture
def make_token(private_key: rsa.RSAPrivateKey):
    """
    Factory fixture signing a Cognito-shaped token.

    Usage in tests:
        token = make_token(kid="k1", token_use="access")
    """

    def _make(
        *,
        kid: str | None = "kid1",
        token_use: str = "id",
        key: Any = None,
        expires_in: int = 3600,
        headers: dict[str, Any] | None = None,
        **claims: Any,
    ) -> str:
        now = int(time.time())
        payload: dict[str, Any] = {
            "sub": "user-1",
            "iss": ISSUER,
            "token_use": token_use,
            "iat": now,
            "exp": now + expires_in,
        }
        if token_use == "id":
            payload["aud"] = CLIENT_ID
        else:
            payload["client_id"] = CLIENT_ID
        payload.update(claims)

        hdrs = dict(headers or {})
        if kid is not None:
            hdrs["kid"] = kid
        return jwt.encode(payload, key or private_key, algorithm="RS256", headers=hdrs)

    return _make


class FakeFetcher:
    """
    KeySetFetcher stub that counts calls.
    Returns `records`, or raises `error` when set.
    """

    def __init__(self, records: list[KeyRecord] | None = None):
        self.records = list(records or [])
        self.error: Exception | None = None
        self.calls = 0

    def fetch(self) -> list[KeyRecord]:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return list(self.records)


@pytest.fixture
def fake_fetcher() -> FakeFetcher:
    return FakeFetcher()


@pytest.fixture
def network_down() -> NetworkError:
    return NetworkError("Request to jwks failed")


@pytest.fixture
def make_fetcher():
    """
    Factory fixture for FakeFetcher.

    Usage in tests:
        fetcher = make_fetcher([make_record(kid="abc")])
    """

    def _make(records: list[KeyRecord] | None = None) -> FakeFetcher:
        return FakeFetcher(records)

    return _make
