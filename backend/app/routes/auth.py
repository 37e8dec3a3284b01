# app/routes/auth.py
from __future__ import annotations

import logging
from datetime import timedelta

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.auth.google import GoogleVerificationError, verify_google_id_token
from app.core.config import Settings
from app.core.database import get_db
from app.core.errors import AppError, InternalError, InvalidAssertionError
from app.core.security import create_access_token
from app.dependencies.settings import get_settings
from app.models.user import User
from app.schemas.auth import GoogleSignInIn, LoginIn, RegisterIn, TokenOut
from app.services.users import authenticate_user, ensure_google_user, register_user

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


def _ttl(hours: int) -> timedelta | None:
    # 0 (or negative) = no exp claim
    return timedelta(hours=hours) if hours > 0 else None


def _token_response(user: User, settings: Settings, expire_hours: int) -> dict:
    token = create_access_token(
        str(user.id),
        user.username,
        secret=settings.SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM,
        expires_in=_ttl(expire_hours),
    )
    return {"token": token, "username": user.username}


@router.post("/register", response_model=TokenOut, status_code=201)
def register(
    payload: RegisterIn,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    try:
        user = register_user(
            db,
            username=payload.username,
            password=payload.password,
            email=payload.email,
        )
        return _token_response(user, settings, settings.REGISTRATION_TOKEN_EXPIRE_HOURS)
    except AppError:
        raise
    except Exception as exc:
        logger.exception("Registration failed")
        raise InternalError("An error occurred during registration.") from exc


@router.post("/login", response_model=TokenOut)
def login(
    payload: LoginIn,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    try:
        user = authenticate_user(db, username=payload.username, password=payload.password)
        return _token_response(user, settings, settings.LOGIN_TOKEN_EXPIRE_HOURS)
    except AppError:
        raise
    except Exception as exc:
        logger.exception("Login failed")
        raise InternalError("An error occurred during login.") from exc


@router.post("/google-sign-in", response_model=TokenOut)
def google_sign_in(
    payload: GoogleSignInIn,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    try:
        identity = verify_google_id_token(
            payload.id_token,
            settings.GOOGLE_CLIENT_ID,
            jwks_url=settings.GOOGLE_JWKS_URL,
            cache_seconds=settings.GOOGLE_JWKS_CACHE_SECONDS,
        )
    except GoogleVerificationError as exc:
        logger.warning("Google ID token rejected: %s", exc)
        raise InvalidAssertionError(status_code=settings.FEDERATION_ERROR_STATUS) from exc

    try:
        user = ensure_google_user(db, identity)
        return _token_response(user, settings, settings.FEDERATED_TOKEN_EXPIRE_HOURS)
    except Exception as exc:
        logger.exception("Error during Google sign-in")
        raise InternalError("An error occurred during Google sign-in.") from exc
