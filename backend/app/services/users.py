# app/services/users.py
"""
User management helpers.

Responsibilities:
- Local registration and username/password authentication
- JIT (Just-In-Time) user provisioning for Google-federated identities
- User lookup by username, email or google_id
"""
from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.auth.google import FederatedIdentity
from app.core.errors import DuplicateIdentityError, InvalidCredentialsError
from app.core.security import hash_password, verify_password
from app.models.user import User

logger = logging.getLogger(__name__)


def get_user_by_username(db: Session, username: str) -> Optional[User]:
    return db.query(User).filter(User.username == username).first()


def get_user_by_google_id(db: Session, google_id: str) -> Optional[User]:
    """Look up a user by their Google subject identifier."""
    return db.query(User).filter(User.google_id == google_id).first()


def find_user_by_username_or_email(db: Session, username: str, email: str) -> Optional[User]:
    return db.query(User).filter(or_(User.username == username, User.email == email)).first()


def register_user(db: Session, *, username: str, password: str, email: str) -> User:
    """
    Create a local account.

    Raises:
        DuplicateIdentityError: username or email already taken. Also raised when
            the unique index rejects a concurrent insert for the same identity.
    """
    if find_user_by_username_or_email(db, username, email):
        raise DuplicateIdentityError()

    user = User(
        username=username,
        email=email,
        password_hash=hash_password(password),
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise DuplicateIdentityError() from exc
    db.refresh(user)

    logger.info("Registered user: id=%s, username=%s", user.id, user.username)
    return user


def authenticate_user(db: Session, *, username: str, password: str) -> User:
    """
    Return the user for a username/password pair.

    Unknown usernames and wrong passwords raise the same error.
    """
    user = get_user_by_username(db, username)
    if not user:
        raise InvalidCredentialsError()

    if not verify_password(password, user.password_hash):
        raise InvalidCredentialsError()

    return user


def provision_google_user(db: Session, identity: FederatedIdentity) -> User:
    """
    Create a new federated user with no local password.

    Raises:
        ValueError: If the verified identity has no email
    """
    if not identity.email:
        raise ValueError("Google identity has no email")

    user = User(
        username=identity.display_name,
        email=identity.email,
        google_id=identity.subject_id,
        password_hash=None,
    )

    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise
    db.refresh(user)

    logger.info(
        "Provisioned new Google user: id=%s, google_id=%s, username=%s",
        user.id,
        identity.subject_id,
        user.username,
    )

    return user


def ensure_google_user(db: Session, identity: FederatedIdentity) -> User:
    """
    Ensure a database user exists for a Google-verified identity.

    Idempotent: an existing user with the same google_id is returned as-is.
    Existing local accounts are never linked to a Google id.
    """
    user = get_user_by_google_id(db, identity.subject_id)
    if user:
        return user

    return provision_google_user(db, identity)
