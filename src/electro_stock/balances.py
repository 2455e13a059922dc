"""Read paths over the maintained product balances."""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from . import models
from .config import get_settings
from .errors import NotFoundError, ValidationError
from .history import HistoryEntry, list_history

CRITICAL = "critical"
LOW = "low"
NORMAL = "normal"


def stock_status(quantity: int, min_stock: int) -> str:
    """Classify a balance against its replenishment threshold."""

    if quantity == 0:
        return CRITICAL
    if quantity <= min_stock:
        return LOW
    return NORMAL


@dataclass(frozen=True, slots=True)
class Balance:
    product_id: str
    quantity: int
    min_stock: int

    @property
    def status(self) -> str:
        return stock_status(self.quantity, self.min_stock)


@dataclass(frozen=True, slots=True)
class LowStockItem:
    id: str
    name: str
    category: str
    quantity: int
    min_stock: int

    @property
    def status(self) -> str:
        return stock_status(self.quantity, self.min_stock)


@dataclass(frozen=True, slots=True)
class DashboardSummary:
    total_products: int
    low_stock: list[LowStockItem]
    recent_movements: list[HistoryEntry]


def read_balance(db: Session, product_id: str) -> Balance:
    """Read the maintained balance of one product straight from its row."""

    row = db.execute(
        select(models.Product.quantity, models.Product.min_stock).where(models.Product.id == product_id)
    ).first()
    if row is None:
        raise NotFoundError(f"Product {product_id} not found")
    return Balance(product_id=product_id, quantity=row.quantity, min_stock=row.min_stock)


def get_balance(db: Session, product_id: str) -> int:
    return read_balance(db, product_id).quantity


def list_low_stock(db: Session, limit: int | None = None) -> list[LowStockItem]:
    """Products at or below ``min_stock``, lowest balance first."""

    if limit is None:
        limit = get_settings().low_stock_limit
    if limit < 1:
        raise ValidationError("limit must be at least 1")
    statement = (
        select(
            models.Product.id,
            models.Product.name,
            models.Product.category,
            models.Product.quantity,
            models.Product.min_stock,
        )
        .where(models.Product.quantity <= models.Product.min_stock)
        .order_by(models.Product.quantity, models.Product.name, models.Product.id)
        .limit(limit)
    )
    return [LowStockItem(*row) for row in db.execute(statement)]


def count_products(db: Session) -> int:
    return db.scalar(select(func.count()).select_from(models.Product)) or 0


def dashboard_summary(db: Session) -> DashboardSummary:
    settings = get_settings()
    return DashboardSummary(
        total_products=count_products(db),
        low_stock=list_low_stock(db, settings.low_stock_limit),
        recent_movements=list_history(db, limit=settings.recent_movements_limit),
    )
