"""Stock movement ledger.

Each product carries its balance as an eagerly maintained running total in
``products.quantity``; the ``movements`` table is the append-only log of every
change applied through :func:`record_movement`. Reads never fold the log.

The balance change is a single conditional ``UPDATE ... SET quantity =
quantity + :delta`` evaluated by the database while it holds the row's write
lock, so concurrent movements on one product serialize there and cannot lose
updates or over-draw. The update and the movement insert share one
transaction: if either fails, both are rolled back.

Movements carry no idempotency key. A client that resubmits after an
ambiguous failure (the commit succeeded but the response was lost) records
the movement twice.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import models
from .access import Principal, require_principal, require_same_actor, require_write
from .errors import InsufficientStockError, NotFoundError, PersistenceError, ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class LedgerEntry:
    """Outcome of a recorded movement."""

    movement: models.Movement
    balance: int


def parse_kind(kind: models.MovementKind | str) -> models.MovementKind:
    try:
        return models.MovementKind(kind)
    except ValueError as exc:
        raise ValidationError(f"Unknown movement type: {kind!r}") from exc


def _validate_quantity(quantity: object) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise ValidationError("Movement quantity must be an integer")
    if quantity <= 0:
        raise ValidationError("Movement quantity must be positive")
    return quantity


def _apply_delta(
    db: Session, product_id: str, kind: models.MovementKind, quantity: int
) -> Optional[int]:
    """Adjust the balance in one statement and return it, or ``None`` when no row matched."""

    statement = (
        update(models.Product)
        .where(models.Product.id == product_id)
        .values(quantity=models.Product.quantity + kind.sign * quantity, updated_at=datetime.utcnow())
        .returning(models.Product.quantity)
    )
    if kind is models.MovementKind.OUTBOUND:
        statement = statement.where(models.Product.quantity >= quantity)
    return db.execute(statement).scalar_one_or_none()


def _append_movement(
    db: Session,
    product_id: str,
    kind: models.MovementKind,
    quantity: int,
    actor: Principal,
    note: Optional[str],
    now: datetime,
) -> models.Movement:
    movement = models.Movement(
        product_id=product_id,
        kind=kind,
        quantity=quantity,
        responsible_id=actor.id,
        responsible_name=actor.display_name,
        notes=note or None,
        created_at=now,
    )
    db.add(movement)
    db.flush()
    return movement


def _explain_miss(db: Session, product_id: str, quantity: int) -> Exception:
    available = db.scalar(select(models.Product.quantity).where(models.Product.id == product_id))
    if available is None:
        return NotFoundError(f"Product {product_id} not found")
    return InsufficientStockError(product_id, quantity, available)


def record_movement(
    db: Session,
    product_id: str,
    kind: models.MovementKind | str,
    quantity: int,
    actor: Principal | None,
    note: Optional[str] = None,
    *,
    caller: Principal | None = None,
) -> LedgerEntry:
    """Apply an inbound or outbound movement to a product.

    Args:
        db: Session whose transaction is committed on success and rolled back
            on any failure.
        product_id: Identifier of an existing product.
        kind: ``inbound``/``outbound`` (``entrada``/``saida`` are accepted).
        quantity: Positive number of units.
        actor: Principal recorded as responsible for the movement.
        note: Optional free text stored with the movement.
        caller: Authenticated principal making the request; when given it
            must be the same identity as ``actor``.

    Returns:
        The stored movement and the product's new balance.

    Raises:
        ValidationError: Bad kind, quantity or missing actor.
        AuthorizationError: ``caller`` differs from ``actor`` or the actor
            cannot write.
        NotFoundError: Unknown product.
        InsufficientStockError: Outbound quantity exceeds the balance.
        PersistenceError: The store failed; nothing was applied.
    """

    actor = require_principal(actor)
    require_same_actor(actor, caller)
    require_write(actor, "movements")
    movement_kind = parse_kind(kind)
    quantity = _validate_quantity(quantity)

    try:
        balance = _apply_delta(db, product_id, movement_kind, quantity)
        if balance is None:
            error = _explain_miss(db, product_id, quantity)
            db.rollback()
            logger.warning("Rejected %s of %d on %s: %s", movement_kind.value, quantity, product_id, error)
            raise error
        # Taken while the row lock is held.
        now = datetime.utcnow()
        movement = _append_movement(db, product_id, movement_kind, quantity, actor, note, now)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Movement on %s failed and was rolled back: %s", product_id, exc)
        raise PersistenceError(f"Could not record movement: {exc.__class__.__name__}") from exc

    logger.info(
        "Recorded %s of %d on %s by %s; balance now %d",
        movement_kind.value,
        quantity,
        product_id,
        actor.id,
        balance,
    )
    return LedgerEntry(movement=movement, balance=balance)
