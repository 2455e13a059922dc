"""Shared FastAPI dependencies."""

from __future__ import annotations

from typing import Generator

from sqlalchemy.orm import Session

from .config import get_settings
from .database import SessionLocal


def get_db() -> Generator[Session, None, None]:
    """Provide a database session for FastAPI routes."""

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def pagination_params(limit: int = 50, offset: int = 0) -> tuple[int, int]:
    settings = get_settings()
    if limit > settings.max_page_size:
        limit = settings.max_page_size
    return max(limit, 1), max(offset, 0)
