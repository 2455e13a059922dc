"""Authentication helpers for API handlers."""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, HTTPException, Request, Response, status
from sqlalchemy.orm import Session

from . import crud, models, security
from .access import Principal
from .config import get_settings
from .dependencies import get_db

SESSION_COOKIE = "electro_stock_session"


def _resolve_user(request: Request, db: Session) -> Optional[models.User]:
    token = request.cookies.get(SESSION_COOKIE)
    if not token:
        return None

    settings = get_settings()
    user_id = security.verify_session(token, settings.secret_key, max_age=settings.session_max_age)
    if not user_id:
        return None

    user = crud.get_user(db, user_id)
    if not user or not user.is_active:
        return None
    return user


def start_session(response: Response, user: models.User) -> None:
    settings = get_settings()
    response.set_cookie(
        key=SESSION_COOKIE,
        value=security.sign_session(user.id, settings.secret_key),
        httponly=True,
        samesite="lax",
        max_age=settings.session_max_age,
    )


def end_session(response: Response) -> None:
    response.delete_cookie(SESSION_COOKIE)


def get_current_user(request: Request, db: Session = Depends(get_db)) -> models.User:
    """Require an authenticated, active user from the session cookie."""

    user = _resolve_user(request, db)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    return user


def get_current_principal(user: models.User = Depends(get_current_user)) -> Principal:
    return Principal.from_user(user)
