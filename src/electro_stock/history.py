"""Movement history: the log joined with product data, and its in-memory filter."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from . import models
from .errors import ValidationError

ALL_KINDS = "all"


@dataclass(frozen=True, slots=True)
class HistoryEntry:
    id: str
    product_id: str
    product_name: str
    product_category: str
    kind: models.MovementKind
    quantity: int
    responsible_name: str
    notes: Optional[str]
    created_at: datetime


def list_history(db: Session, limit: int | None = None) -> list[HistoryEntry]:
    """Return movements joined with their product, newest first."""

    statement = (
        select(
            models.Movement.id,
            models.Movement.product_id,
            models.Product.name,
            models.Product.category,
            models.Movement.kind,
            models.Movement.quantity,
            models.Movement.responsible_name,
            models.Movement.notes,
            models.Movement.created_at,
        )
        .join(models.Product, models.Movement.product_id == models.Product.id)
        .order_by(models.Movement.created_at.desc(), models.Movement.id)
    )
    if limit is not None:
        statement = statement.limit(limit)
    return [HistoryEntry(*row) for row in db.execute(statement)]


def filter_history(
    entries: Iterable[HistoryEntry],
    search: Optional[str] = None,
    kind: models.MovementKind | str | None = None,
) -> list[HistoryEntry]:
    """Filter *entries* without reordering them.

    ``search`` matches product or responsible names case-insensitively;
    ``kind`` keeps only one movement type (``None``, ``""`` or ``"all"`` keeps both).
    """

    wanted: models.MovementKind | None = None
    if kind and kind != ALL_KINDS:
        try:
            wanted = models.MovementKind(kind)
        except ValueError as exc:
            raise ValidationError(f"Unknown movement type: {kind!r}") from exc

    needle = search.casefold() if search else ""
    result = []
    for entry in entries:
        if wanted is not None and entry.kind is not wanted:
            continue
        if needle and needle not in entry.product_name.casefold() and needle not in entry.responsible_name.casefold():
            continue
        result.append(entry)
    return result
