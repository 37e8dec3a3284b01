# tests/test_google_verifier.py
"""
Unit tests for the Google ID token verifier.

These tests do NOT require network access:
- JWKS responses are mocked
- Test tokens are generated locally with known keys
"""
from __future__ import annotations

import base64
import json
import time
from unittest.mock import MagicMock, patch

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from jose import jwt

CLIENT_ID = "test-google-client-id.apps.googleusercontent.com"
JWKS_URL = "https://example.invalid/oauth2/v3/certs"
KID = "google-test-kid"


# ---------------------------------------------------------------------------
# Test key generation helpers
# ---------------------------------------------------------------------------


def generate_rsa_key_pair():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


def private_key_to_pem(private_key) -> bytes:
    return private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )


def public_key_to_jwk(private_key, kid: str) -> dict:
    public_numbers = private_key.public_key().public_numbers()

    def int_to_base64url(n: int, length: int) -> str:
        return base64.urlsafe_b64encode(n.to_bytes(length, "big")).decode("utf-8").rstrip("=")

    return {
        "kty": "RSA",
        "kid": kid,
        "use": "sig",
        "alg": "RS256",
        "n": int_to_base64url(public_numbers.n, 256),
        "e": int_to_base64url(public_numbers.e, 3),
    }


def create_id_token(
    private_key,
    *,
    kid: str = KID,
    issuer: str = "https://accounts.google.com",
    audience: str = CLIENT_ID,
    sub: str = "google-sub-123",
    email: str | None = "carol@example.com",
    name: str | None = "Carol Danvers",
    exp_offset: int = 3600,
) -> str:
    now = int(time.time())
    claims = {"sub": sub, "iss": issuer, "aud": audience, "iat": now, "exp": now + exp_offset}
    if email is not None:
        claims["email"] = email
    if name is not None:
        claims["name"] = name
    return jwt.encode(claims, private_key_to_pem(private_key), algorithm="RS256", headers={"kid": kid})


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(scope="module")
def key_pair():
    return generate_rsa_key_pair()


@pytest.fixture
def jwks_response(key_pair):
    return {"keys": [public_key_to_jwk(key_pair, KID)]}


@pytest.fixture(autouse=True)
def clear_cache():
    from app.auth.google import clear_jwks_cache

    clear_jwks_cache()
    yield
    clear_jwks_cache()


@pytest.fixture
def mock_urlopen(jwks_response):
    with patch("app.auth.google.urlopen") as mocked:
        response = MagicMock()
        response.read.return_value = json.dumps(jwks_response).encode()
        response.__enter__ = lambda s: response
        response.__exit__ = MagicMock(return_value=False)
        mocked.return_value = response
        yield mocked


def _verify(token: str, audience: str = CLIENT_ID):
    from app.auth.google import verify_google_id_token

    return verify_google_id_token(token, audience, jwks_url=JWKS_URL, cache_seconds=900)


# ---------------------------------------------------------------------------
# Tests: Successful verification
# ---------------------------------------------------------------------------


def test_verify_id_token_success(mock_urlopen, key_pair):
    identity = _verify(create_id_token(key_pair))

    assert identity.subject_id == "google-sub-123"
    assert identity.email == "carol@example.com"
    assert identity.display_name == "Carol Danvers"


def test_bare_issuer_is_accepted(mock_urlopen, key_pair):
    identity = _verify(create_id_token(key_pair, issuer="accounts.google.com"))
    assert identity.subject_id == "google-sub-123"


def test_display_name_falls_back_to_email_local_part(mock_urlopen, key_pair):
    identity = _verify(create_id_token(key_pair, name=None, email="dave.smith@example.com"))
    assert identity.display_name == "dave.smith"


def test_display_name_fallback_is_not_unique():
    from app.auth.google import display_name_from_claims

    assert display_name_from_claims({"email": "sam@one.com"}) == display_name_from_claims({"email": "sam@two.com"})


# ---------------------------------------------------------------------------
# Tests: Verification failures
# ---------------------------------------------------------------------------


def test_expired_token_raises_error(mock_urlopen, key_pair):
    from app.auth.google import GoogleTokenExpiredError

    with pytest.raises(GoogleTokenExpiredError):
        _verify(create_id_token(key_pair, exp_offset=-3600))


def test_wrong_audience_raises_error(mock_urlopen, key_pair):
    from app.auth.google import GoogleAudienceMismatchError

    with pytest.raises(GoogleAudienceMismatchError):
        _verify(create_id_token(key_pair, audience="someone-else"))


def test_wrong_issuer_raises_error(mock_urlopen, key_pair):
    from app.auth.google import GoogleIssuerMismatchError

    with pytest.raises(GoogleIssuerMismatchError):
        _verify(create_id_token(key_pair, issuer="https://evil.example.com"))


def test_invalid_signature_raises_error(mock_urlopen):
    from app.auth.google import GoogleInvalidSignatureError

    # Same kid, different key than what's in the JWKS
    with pytest.raises(GoogleInvalidSignatureError):
        _verify(create_id_token(generate_rsa_key_pair()))


def test_missing_kid_raises_error():
    from app.auth.google import GoogleInvalidTokenError

    header = base64.urlsafe_b64encode(b'{"alg":"RS256","typ":"JWT"}').decode().rstrip("=")
    payload = base64.urlsafe_b64encode(b'{"sub":"test"}').decode().rstrip("=")

    with pytest.raises(GoogleInvalidTokenError, match="missing 'kid'"):
        _verify(f"{header}.{payload}.fake_signature")


def test_unknown_kid_raises_after_refresh(mock_urlopen, key_pair):
    from app.auth.google import GoogleInvalidTokenError

    with pytest.raises(GoogleInvalidTokenError, match="Signing key not found"):
        _verify(create_id_token(key_pair, kid="rotated-away"))
    # initial fetch + one forced refresh
    assert mock_urlopen.call_count == 2


def test_missing_audience_config_raises_not_configured(key_pair):
    from app.auth.google import GoogleNotConfiguredError

    with pytest.raises(GoogleNotConfiguredError):
        _verify(create_id_token(key_pair), audience="")


def test_jwks_fetch_failure_raises_fetch_error(key_pair):
    from app.auth.google import GoogleJWKSFetchError

    with patch("app.auth.google.urlopen", side_effect=OSError("network down")):
        with pytest.raises(GoogleJWKSFetchError):
            _verify(create_id_token(key_pair))


def test_all_failures_share_base_class():
    from app.auth import google

    for exc in (
        google.GoogleNotConfiguredError,
        google.GoogleJWKSFetchError,
        google.GoogleTokenExpiredError,
        google.GoogleInvalidSignatureError,
        google.GoogleIssuerMismatchError,
        google.GoogleAudienceMismatchError,
        google.GoogleInvalidTokenError,
    ):
        assert issubclass(exc, google.GoogleVerificationError)


# ---------------------------------------------------------------------------
# Tests: JWKS caching
# ---------------------------------------------------------------------------


def test_jwks_is_cached(mock_urlopen, key_pair):
    _verify(create_id_token(key_pair))
    _verify(create_id_token(key_pair, sub="other"))
    assert mock_urlopen.call_count == 1


def test_jwks_refetched_after_ttl(mock_urlopen, key_pair):
    from app.auth.google import verify_google_id_token

    token = create_id_token(key_pair)
    with patch("app.auth.google.time.time") as fake_time:
        fake_time.return_value = 1000.0
        verify_google_id_token(token, CLIENT_ID, jwks_url=JWKS_URL, cache_seconds=60)
        fake_time.return_value = 1000.0 + 61
        verify_google_id_token(token, CLIENT_ID, jwks_url=JWKS_URL, cache_seconds=60)

    assert mock_urlopen.call_count == 2


def test_unknown_kid_refresh_is_rate_limited(mock_urlopen, key_pair):
    from app.auth.google import FORCED_REFRESH_MIN_SECONDS, GoogleInvalidTokenError

    first = create_id_token(key_pair, kid="random-1")
    second = create_id_token(key_pair, kid="random-2")
    valid = create_id_token(key_pair)

    with patch("app.auth.google.time.time") as fake_time:
        fake_time.return_value = 1000.0
        with pytest.raises(GoogleInvalidTokenError):
            _verify(first)
        assert mock_urlopen.call_count == 2

        # Within the interval, another unknown kid is answered from cache.
        fake_time.return_value = 1000.0 + FORCED_REFRESH_MIN_SECONDS - 1
        with pytest.raises(GoogleInvalidTokenError):
            _verify(second)
        assert mock_urlopen.call_count == 2

        fake_time.return_value = 1000.0 + FORCED_REFRESH_MIN_SECONDS
        with pytest.raises(GoogleInvalidTokenError):
            _verify(second)
        assert mock_urlopen.call_count == 3

        # Known kids keep verifying without extra fetches.
        assert _verify(valid).subject_id == "google-sub-123"
        assert mock_urlopen.call_count == 3
