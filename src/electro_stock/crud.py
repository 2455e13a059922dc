"""Database access helpers for users and profiles."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from . import models, schemas, security
from .access import Principal, require_owner
from .database import commit_or_raise
from .errors import NotFoundError

logger = logging.getLogger(__name__)


class DuplicateUsernameError(RuntimeError):
    """Raised when trying to create a user with an existing username."""


def list_users(db: Session, *, skip: int = 0, limit: int = 50) -> list[models.User]:
    statement = select(models.User).order_by(models.User.created_at).offset(skip).limit(limit)
    return list(db.scalars(statement))


def get_user(db: Session, user_id: str) -> Optional[models.User]:
    return db.get(models.User, user_id)


def get_user_by_username(db: Session, username: str) -> Optional[models.User]:
    statement = select(models.User).where(models.User.username == username)
    return db.scalars(statement).first()


def create_user(db: Session, payload: schemas.UserCreate) -> models.User:
    """Create a user together with its profile.

    The profile's display name falls back to the e-mail address, then the
    username, when no full name is supplied.
    """

    user = models.User(
        username=payload.username,
        full_name=payload.full_name,
        email=payload.email,
        hashed_password=security.hash_password(payload.password),
    )
    user.profile = models.Profile(full_name=payload.full_name or payload.email or payload.username)
    db.add(user)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise DuplicateUsernameError(f"Username '{payload.username}' already exists") from exc
    db.refresh(user)
    logger.info("Created user %s (id=%s)", user.username, user.id)
    return user


def authenticate_user(db: Session, username: str, password: str) -> Optional[models.User]:
    """Return the matching user when the credentials are valid."""

    user = get_user_by_username(db, username)
    if not user or not user.is_active:
        return None
    if not security.verify_password(password, user.hashed_password):
        logger.warning("Rejected login for %s", username)
        return None
    return user


def get_profile(db: Session, principal: Principal, profile_id: str) -> models.Profile:
    require_owner(principal, profile_id)
    profile = db.get(models.Profile, profile_id)
    if profile is None:
        raise NotFoundError(f"Profile {profile_id} not found")
    return profile


def update_profile(
    db: Session, principal: Principal, profile_id: str, payload: schemas.ProfileUpdate
) -> models.Profile:
    profile = get_profile(db, principal, profile_id)
    profile.full_name = payload.full_name
    profile.updated_at = datetime.utcnow()
    db.add(profile)
    commit_or_raise(db, "update profile")
    db.refresh(profile)
    return profile
