import json
import logging
from collections.abc import Callable
from typing import Any

import jwt
import pytest

import cognito_jwt as m
from cognito_jwt.key_providers import issuer_for, jwks_url_for, parse_key_set


def test_url_templates():
    assert (
        jwks_url_for("us-east-1", "us-east-1_Pool")
        == "https://cognito-idp.us-east-1.amazonaws.com/us-east-1_Pool/.well-known/jwks.json"
    )
    assert issuer_for("us-east-1", "us-east-1_Pool") == (
        "https://cognito-idp.us-east-1.amazonaws.com/us-east-1_Pool"
    )


def test_parse_keeps_only_rs256_with_string_kid(make_jwk_dict: Callable[..., Any]):
    rs256 = make_jwk_dict(kid="good")
    future_alg = make_jwk_dict(kid="future", alg="RS512")
    no_kid = make_jwk_dict(kid="tmp")
    del no_kid["kid"]

    records = parse_key_set({"keys": [rs256, future_alg, no_kid, "junk"]})

    assert [r.key_id for r in records] == ["good"]
    assert records[0].algorithm == "RS256"
    assert records[0].key.key_id == "good"


def test_parse_empty_key_list_is_not_an_error():
    assert parse_key_set({"keys": []}) == []


@pytest.mark.parametrize("document", [[], "keys", {"nokeys": []}, {"keys": {"kid": "x"}}])
def test_parse_rejects_bad_documents(document: Any):
    with pytest.raises(m.NetworkError):
        parse_key_set(document)


def test_parse_skips_unparsable_rs256_key(
    caplog: pytest.LogCaptureFixture, make_jwk_dict: Callable[..., Any]
):
    bad = {"kid": "bad", "alg": "RS256", "kty": "RSA"}

    with caplog.at_level(logging.WARNING, logger="cognito_jwt.key_providers.cognito"):
        records = parse_key_set({"keys": [make_jwk_dict(kid="good"), bad]})

    assert [r.key_id for r in records] == ["good"]
    assert "kid=bad" in caplog.text


def test_bad_key_does_not_block_good_keys_or_throttle(
    monkeypatch: pytest.MonkeyPatch,
    make_jwk_dict: Callable[..., Any],
    make_token: Callable[..., Any],
):
    fetcher = m.CognitoJWKSFetcher("https://example.invalid/jwks.json")
    calls: list[int] = []

    def fake_fetch_data() -> Any:
        calls.append(1)
        return {"keys": [make_jwk_dict(kid="good"), {"kid": "bad", "alg": "RS256", "kty": "RSA"}]}

    monkeypatch.setattr(fetcher._client, "fetch_data", fake_fetch_data)  # pyright: ignore[reportPrivateUsage]
    keyset = m.KeySet("eu-west-1", "eu-west-1_TestPool1", fetcher=fetcher)
    verifier = keyset.new_id_token_verifier(["client-abc"]).build()

    for _ in range(5):
        assert keyset.verify(make_token(kid="good"), verifier)["sub"] == "user-1"

    assert calls == [1]
    assert keyset.last_refresh_time is not None
    assert keyset.lookup("bad") is None
    with pytest.raises(m.Throttled):
        keyset.verify(make_token(kid="bad"), verifier)
    assert calls == [1]


def test_fetcher_disables_pyjwkclient_cache():
    fetcher = m.CognitoJWKSFetcher("https://example.invalid/jwks.json")

    assert fetcher._client.jwk_set_cache is None  # pyright: ignore[reportPrivateUsage]


def test_fetch_makes_one_request(
    monkeypatch: pytest.MonkeyPatch, make_jwk_dict: Callable[..., Any]
):
    fetcher = m.CognitoJWKSFetcher("https://example.invalid/jwks.json")
    calls: list[int] = []

    def fake_fetch_data() -> Any:
        calls.append(1)
        return {"keys": [make_jwk_dict(kid="abc")]}

    monkeypatch.setattr(fetcher._client, "fetch_data", fake_fetch_data)  # pyright: ignore[reportPrivateUsage]

    records = fetcher.fetch()

    assert [r.key_id for r in records] == ["abc"]
    assert calls == [1]


@pytest.mark.parametrize(
    "error",
    [
        jwt.PyJWKClientConnectionError("Fail to fetch data from the url"),
        json.JSONDecodeError("Expecting value", "<html>", 0),
    ],
)
def test_fetch_maps_transport_errors(monkeypatch: pytest.MonkeyPatch, error: Exception):
    fetcher = m.CognitoJWKSFetcher("https://example.invalid/jwks.json")

    def failing_fetch_data() -> Any:
        raise error

    monkeypatch.setattr(fetcher._client, "fetch_data", failing_fetch_data)  # pyright: ignore[reportPrivateUsage]

    with pytest.raises(m.NetworkError) as exc_info:
        fetcher.fetch()

    assert exc_info.value.cause is error
