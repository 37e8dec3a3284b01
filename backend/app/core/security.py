# app/core/security.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt
from jose.exceptions import JWTClaimsError
from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")


# -------------------------
# Password hashing
# -------------------------
def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str | None) -> bool:
    # Federated-only accounts have no local password.
    if not password_hash:
        return False
    return pwd_context.verify(password, password_hash)


# -------------------------
# JWT helpers
# -------------------------
@dataclass(frozen=True)
class TokenClaims:
    """Identity claims carried by a bearer token."""

    subject_id: str
    username: str
    issued_at: datetime | None = None
    expires_at: datetime | None = None


@dataclass(frozen=True)
class TokenVerification:
    """
    Outcome of verify_access_token.

    Exactly one of ``claims`` / ``reason`` is set.
    """

    claims: TokenClaims | None = None
    reason: str | None = None

    @property
    def ok(self) -> bool:
        return self.claims is not None


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _require_secret(secret: str) -> None:
    if not secret or not secret.strip():
        raise RuntimeError("SECRET_KEY must be set (auth is required).")


def _from_timestamp(value: Any) -> datetime | None:
    if value is None:
        return None
    return datetime.fromtimestamp(int(value), tz=timezone.utc)


def create_access_token(
    subject_id: str,
    username: str,
    *,
    secret: str,
    algorithm: str = "HS256",
    expires_in: timedelta | None = None,
    now: datetime | None = None,
) -> str:
    """
    Bearer token sent back in the auth-token header on protected routes.

    Without ``expires_in`` the token has no exp claim and never expires.
    """
    _require_secret(secret)

    issued = now or _now_utc()
    payload: dict[str, Any] = {
        "sub": str(subject_id),
        "username": username,
        "iat": int(issued.timestamp()),
    }
    if expires_in is not None:
        payload["exp"] = int((issued + expires_in).timestamp())

    return jwt.encode(payload, secret, algorithm=algorithm)


def decode_access_token(token: str, *, secret: str, algorithm: str = "HS256") -> dict[str, Any]:
    """
    Returns the signature-checked payload or raises JWTError.
    Expiry is NOT checked here; see verify_access_token.
    """
    _require_secret(secret)
    return jwt.decode(
        token,
        secret,
        algorithms=[algorithm],
        options={"verify_exp": False, "verify_iat": False},
    )


def verify_access_token(
    token: str,
    *,
    secret: str,
    algorithm: str = "HS256",
    now: datetime | None = None,
) -> TokenVerification:
    """Pure function of (token, secret, now). Never raises for bad tokens."""
    if not token:
        return TokenVerification(reason="malformed")

    try:
        payload = decode_access_token(token, secret=secret, algorithm=algorithm)
    except JWTClaimsError:
        return TokenVerification(reason="malformed")
    except JWTError as exc:
        message = str(exc).lower()
        if "signature" in message:
            return TokenVerification(reason="bad_signature")
        return TokenVerification(reason="malformed")

    sub = payload.get("sub")
    username = payload.get("username")
    if not sub or not isinstance(username, str):
        return TokenVerification(reason="missing_claims")

    try:
        issued_at = _from_timestamp(payload.get("iat"))
        expires_at = _from_timestamp(payload.get("exp"))
    except (TypeError, ValueError, OverflowError):
        return TokenVerification(reason="malformed")

    current = now or _now_utc()
    if expires_at is not None and current >= expires_at:
        return TokenVerification(reason="expired")

    return TokenVerification(
        claims=TokenClaims(
            subject_id=str(sub),
            username=username,
            issued_at=issued_at,
            expires_at=expires_at,
        )
    )
