# app/dependencies/auth.py
from __future__ import annotations

import logging

from fastapi import Depends, Request

from app.auth.identity import Identity
from app.core.config import Settings
from app.core.errors import InvalidCredentialError, MissingCredentialError
from app.core.security import verify_access_token
from app.dependencies.settings import get_settings

logger = logging.getLogger(__name__)


def get_current_identity(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> Identity:
    """
    Access guard for protected routes.

    Validates:
      - the configured auth header (default ``auth-token``) is present
      - token signature + exp (when the token carries one)
    Returns:
      - Identity built from the token claims, also stored on request.state.identity

    Purely cryptographic: the user store is never consulted.
    """
    request.state.identity = Identity.unauthenticated()

    token = (request.headers.get(settings.AUTH_HEADER_NAME) or "").strip()
    if not token:
        raise MissingCredentialError()

    result = verify_access_token(
        token,
        secret=settings.SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM,
    )
    if not result.ok:
        logger.warning("Rejected bearer token: reason=%s path=%s", result.reason, request.url.path)
        raise InvalidCredentialError(status_code=settings.INVALID_TOKEN_STATUS)

    identity = Identity.from_token_claims(result.claims)
    request.state.identity = identity
    return identity
