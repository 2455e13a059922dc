"""Product registration and direct edits."""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from . import models, schemas
from .access import Principal, require_write
from .database import commit_or_raise
from .errors import NotFoundError

logger = logging.getLogger(__name__)

_REQUIRED_FIELDS = frozenset({"name", "category", "brand", "model", "quantity", "min_stock", "price"})


def list_products(db: Session, *, skip: int = 0, limit: int | None = None) -> list[models.Product]:
    statement = (
        select(models.Product)
        .order_by(models.Product.created_at.desc(), models.Product.id)
        .offset(skip)
    )
    if limit is not None:
        statement = statement.limit(limit)
    return list(db.scalars(statement))


def get_product(db: Session, product_id: str) -> models.Product:
    product = db.get(models.Product, product_id)
    if product is None:
        raise NotFoundError(f"Product {product_id} not found")
    return product


def create_product(db: Session, principal: Principal, payload: schemas.ProductCreate) -> models.Product:
    principal = require_write(principal, "products")
    product = models.Product(**payload.model_dump(), created_by=principal.id)
    db.add(product)
    commit_or_raise(db, "register product")
    db.refresh(product)
    logger.info("Product %s registered by %s with quantity %d", product.id, principal.id, product.quantity)
    return product


def update_product(
    db: Session, principal: Principal, product_id: str, payload: schemas.ProductUpdate
) -> models.Product:
    require_write(principal, "products")
    product = get_product(db, product_id)
    changes = payload.model_dump(exclude_unset=True)
    for key, value in changes.items():
        if value is None and key in _REQUIRED_FIELDS:
            continue
        setattr(product, key, value)
    product.updated_at = datetime.utcnow()
    db.add(product)
    commit_or_raise(db, "update product")
    db.refresh(product)
    if "quantity" in changes:
        # Direct edits bypass the ledger.
        logger.warning("Product %s quantity set to %d by direct edit", product.id, product.quantity)
    return product


def delete_product(db: Session, principal: Principal, product_id: str) -> None:
    """Delete a product; its movements are removed by the foreign key cascade."""

    require_write(principal, "products")
    product = get_product(db, product_id)
    db.delete(product)
    commit_or_raise(db, "delete product")
    logger.info("Product %s deleted by %s", product_id, principal.id)
