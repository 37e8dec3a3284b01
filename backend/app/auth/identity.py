# app/auth/identity.py
"""
Canonical authenticated identity model.

Downstream code can reason about "who is this user?" without inspecting raw
bearer tokens. The Access Guard builds one of these per request and stores it on
``request.state.identity``.

The Identity object is INTERNAL ONLY and should not be returned directly
to clients. It's used for ownership decisions and audit logging.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from app.core.security import TokenClaims


@dataclass(frozen=True)
class Identity:
    """
    Canonical representation of an authenticated (or unauthenticated) user.

    Attributes:
        user_id: Internal user ID (the token ``sub`` claim), as a string.
        username: Username recorded in the token at issue time.
        is_authenticated: True if a valid bearer token was presented.
        raw_claims: Decoded token claims for debugging/audit.
                    Should NOT be used for authorization decisions.
    """

    user_id: str | None = None
    username: str | None = None
    is_authenticated: bool = False
    raw_claims: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def unauthenticated(cls) -> Identity:
        """Create an identity representing an unauthenticated request."""
        return cls(user_id=None, username=None, is_authenticated=False, raw_claims={})

    @classmethod
    def from_token_claims(cls, claims: TokenClaims) -> Identity:
        raw: dict[str, Any] = {"sub": claims.subject_id, "username": claims.username}
        if claims.issued_at is not None:
            raw["iat"] = int(claims.issued_at.timestamp())
        if claims.expires_at is not None:
            raw["exp"] = int(claims.expires_at.timestamp())
        return cls(
            user_id=claims.subject_id,
            username=claims.username,
            is_authenticated=True,
            raw_claims=raw,
        )

    def owns(self, owner_id: Any) -> bool:
        """True if this identity is the recorded owner ``owner_id``."""
        if not self.is_authenticated or self.user_id is None or owner_id is None:
            return False
        return str(owner_id) == self.user_id

    def to_debug_dict(self) -> dict[str, Any]:
        """
        Return a safe subset of identity info for logs.

        Does NOT include raw_claims.
        """
        return {
            "user_id": self.user_id,
            "username": self.username,
            "is_authenticated": self.is_authenticated,
        }
