# app/auth/google.py
"""
Google ID token verification for federated sign-in.

Responsibilities:
- Lazy JWKS fetching (no network calls on import)
- In-memory JWKS caching with configurable TTL, one forced refresh on unknown kid
- Clear typed exceptions for verification failures
- Mapping verified claims to a FederatedIdentity
"""
from __future__ import annotations

import json
import logging
import ssl
import threading
import time
from dataclasses import dataclass
from typing import Any
from urllib.request import urlopen

import certifi
from jose import JWTError, jwk, jwt


logger = logging.getLogger(__name__)

DEFAULT_JWKS_URL = "https://www.googleapis.com/oauth2/v3/certs"
GOOGLE_ISSUERS = frozenset(["accounts.google.com", "https://accounts.google.com"])

# At most one unknown-kid refresh per interval.
FORCED_REFRESH_MIN_SECONDS = 60


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class GoogleVerificationError(Exception):
    """Base exception for Google ID token verification failures."""

    pass


class GoogleNotConfiguredError(GoogleVerificationError):
    """Raised when no client id (audience) is configured."""

    pass


class GoogleJWKSFetchError(GoogleVerificationError):
    """Raised when Google's JWKS cannot be fetched."""

    pass


class GoogleTokenExpiredError(GoogleVerificationError):
    """Raised when the ID token has expired."""

    pass


class GoogleInvalidSignatureError(GoogleVerificationError):
    """Raised when the token signature is invalid."""

    pass


class GoogleIssuerMismatchError(GoogleVerificationError):
    """Raised when the token was not issued by Google."""

    pass


class GoogleAudienceMismatchError(GoogleVerificationError):
    """Raised when the token audience does not match our client id."""

    pass


class GoogleInvalidTokenError(GoogleVerificationError):
    """Raised for general token validation failures."""

    pass


# ---------------------------------------------------------------------------
# Verified identity
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FederatedIdentity:
    subject_id: str
    email: str | None
    display_name: str


def display_name_from_claims(claims: dict[str, Any]) -> str:
    """
    Use the ``name`` claim, falling back to the email local part.

    The fallback is not unique across users.
    """
    name = claims.get("name")
    if isinstance(name, str) and name.strip():
        return name.strip()

    email = claims.get("email") or ""
    local = email.split("@", 1)[0].strip() if isinstance(email, str) else ""
    if not local:
        raise GoogleInvalidTokenError("Token carries neither 'name' nor 'email'")
    return local


# ---------------------------------------------------------------------------
# JWKS Cache
# ---------------------------------------------------------------------------


class _JWKSCache:
    """
    Thread-safe in-memory cache for Google's JWKS.

    The cache is populated lazily on first verification attempt.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._keys: dict[str, Any] | None = None
        self._fetched_at: float = 0.0
        self._forced_at: float | None = None

    def get_signing_key(self, kid: str, jwks_url: str, ttl: int) -> Any:
        """
        Get the signing key for the given key ID.

        Raises GoogleJWKSFetchError if fetch fails.
        Raises GoogleInvalidTokenError if kid not found.
        """
        with self._lock:
            now = time.time()

            if self._keys is None or (now - self._fetched_at) > ttl:
                self._refresh_keys(jwks_url)

            if kid not in self._keys and self._may_force_refresh(now):
                # Google rotates keys; try one refresh.
                self._forced_at = now
                self._refresh_keys(jwks_url)

            if kid not in self._keys:
                raise GoogleInvalidTokenError(f"Signing key not found for kid: {kid}")

            return self._keys[kid]

    def _may_force_refresh(self, now: float) -> bool:
        return self._forced_at is None or (now - self._forced_at) >= FORCED_REFRESH_MIN_SECONDS

    def _refresh_keys(self, jwks_url: str) -> None:
        if not jwks_url:
            raise GoogleNotConfiguredError("Google JWKS URL not configured")

        try:
            logger.info("Fetching Google JWKS from %s", jwks_url)
            context = ssl.create_default_context(cafile=certifi.where())
            with urlopen(jwks_url, timeout=10, context=context) as resp:
                data = json.loads(resp.read().decode("utf-8"))
        except Exception as e:
            logger.error("Failed to fetch Google JWKS: %s", e)
            raise GoogleJWKSFetchError(f"Failed to fetch JWKS: {e}") from e

        keys_list = data.get("keys", [])
        if not keys_list:
            raise GoogleJWKSFetchError("JWKS response contains no keys")

        self._keys = {}
        for key_data in keys_list:
            kid = key_data.get("kid")
            if kid:
                try:
                    self._keys[kid] = jwk.construct(key_data)
                except Exception as e:
                    logger.warning("Failed to construct key for kid=%s: %s", kid, e)

        self._fetched_at = time.time()
        logger.info("Cached %d Google signing keys", len(self._keys))

    def clear(self) -> None:
        with self._lock:
            self._keys = None
            self._fetched_at = 0.0
            self._forced_at = None


_jwks_cache = _JWKSCache()


def clear_jwks_cache() -> None:
    """Clear the JWKS cache. Exposed for testing."""
    _jwks_cache.clear()


# ---------------------------------------------------------------------------
# Token Verification
# ---------------------------------------------------------------------------


def _audience_matches(aud: Any, audience: str) -> bool:
    if isinstance(aud, str):
        return aud == audience
    if isinstance(aud, (list, tuple)):
        return audience in aud
    return False


def verify_google_id_token(
    token: str,
    audience: str,
    *,
    jwks_url: str = DEFAULT_JWKS_URL,
    cache_seconds: int = 3600,
) -> FederatedIdentity:
    """
    Verify a Google-issued ID token and extract the federated identity.

    Validates:
    - RS256 signature via Google's JWKS
    - exp / iat / nbf claims
    - Issuer is accounts.google.com
    - Audience equals our OAuth client id

    Raises:
        GoogleNotConfiguredError: no audience configured
        GoogleTokenExpiredError: token has expired
        GoogleInvalidSignatureError: signature verification failed
        GoogleIssuerMismatchError: not issued by Google
        GoogleAudienceMismatchError: issued for a different client
        GoogleInvalidTokenError: other validation failures
    """
    if not audience:
        raise GoogleNotConfiguredError("Google sign-in not configured (GOOGLE_CLIENT_ID required)")
    if not token:
        raise GoogleInvalidTokenError("Empty ID token")

    try:
        unverified_header = jwt.get_unverified_header(token)
    except JWTError as e:
        raise GoogleInvalidTokenError(f"Invalid token header: {e}") from e

    kid = unverified_header.get("kid")
    if not kid:
        raise GoogleInvalidTokenError("Token header missing 'kid' claim")

    signing_key = _jwks_cache.get_signing_key(kid, jwks_url, cache_seconds)

    try:
        claims = jwt.decode(
            token,
            signing_key,
            algorithms=["RS256"],
            # Audience and issuer are checked below; Google tokens may carry
            # at_hash without us holding the matching access token.
            options={"verify_aud": False, "verify_at_hash": False},
        )
    except jwt.ExpiredSignatureError as e:
        raise GoogleTokenExpiredError("Token has expired") from e
    except jwt.JWTClaimsError as e:
        raise GoogleInvalidTokenError(f"Claims validation failed: {e}") from e
    except JWTError as e:
        raise GoogleInvalidSignatureError(f"Signature verification failed: {e}") from e

    token_issuer = claims.get("iss", "")
    if token_issuer not in GOOGLE_ISSUERS:
        raise GoogleIssuerMismatchError(f"Unexpected issuer {token_issuer}")

    if not _audience_matches(claims.get("aud"), audience):
        raise GoogleAudienceMismatchError(f"Expected aud {audience}, got {claims.get('aud')}")

    sub = claims.get("sub")
    if not sub:
        raise GoogleInvalidTokenError("Token missing 'sub' claim")

    email = claims.get("email")
    return FederatedIdentity(
        subject_id=str(sub),
        email=email.strip().lower() if isinstance(email, str) and email.strip() else None,
        display_name=display_name_from_claims(claims),
    )
