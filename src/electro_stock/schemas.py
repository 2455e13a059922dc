"""Pydantic schemas for API payloads."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from .models import MovementKind


class UserBase(BaseModel):
    username: str = Field(..., min_length=3, max_length=64)
    full_name: Optional[str] = Field(None, max_length=128)
    email: Optional[EmailStr] = None


class UserCreate(UserBase):
    """Payload accepted by self-service signup."""

    password: str = Field(..., min_length=6, max_length=128)


class UserRead(UserBase):
    model_config = ConfigDict(from_attributes=True)

    id: str
    is_active: bool
    created_at: datetime
    updated_at: datetime


class LoginRequest(BaseModel):
    username: str
    password: str


class ProfileRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    full_name: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ProfileUpdate(BaseModel):
    full_name: str = Field(..., min_length=1, max_length=128)


class ProductSpecs(BaseModel):
    """Free-form technical attributes of an electronics product."""

    voltage: Optional[str] = Field(None, max_length=50)
    dimensions: Optional[str] = Field(None, max_length=100)
    screen_resolution: Optional[str] = Field(None, max_length=50)
    storage_capacity: Optional[str] = Field(None, max_length=50)
    connectivity: Optional[str] = Field(None, max_length=100)


class ProductCreate(ProductSpecs):
    name: str = Field(..., min_length=1, max_length=200)
    category: str = Field(..., min_length=1, max_length=100)
    brand: str = Field(..., min_length=1, max_length=100)
    model: str = Field(..., min_length=1, max_length=100)
    quantity: int = Field(0, ge=0)
    min_stock: int = Field(10, ge=0)
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)


class ProductUpdate(ProductSpecs):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    brand: Optional[str] = Field(None, min_length=1, max_length=100)
    model: Optional[str] = Field(None, min_length=1, max_length=100)
    quantity: Optional[int] = Field(None, ge=0)
    min_stock: Optional[int] = Field(None, ge=0)
    price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)


class ProductRead(ProductCreate):
    model_config = ConfigDict(from_attributes=True)

    id: str
    created_at: datetime
    updated_at: datetime
    created_by: Optional[str] = None


class BalanceRead(BaseModel):
    product_id: str
    quantity: int
    min_stock: int
    status: str


class LowStockItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    category: str
    quantity: int
    min_stock: int
    status: str


class MovementCreate(BaseModel):
    product_id: str
    kind: str = Field(..., alias="type", description="inbound/outbound (or entrada/saida)")
    quantity: int
    notes: Optional[str] = Field(None, max_length=2000)
    responsible_id: Optional[str] = Field(
        None, description="Must match the authenticated user when given"
    )

    model_config = ConfigDict(populate_by_name=True)


class MovementRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    product_id: str
    kind: MovementKind
    quantity: int
    responsible_id: str
    responsible_name: str
    notes: Optional[str] = None
    created_at: datetime


class LedgerEntryRead(BaseModel):
    movement: MovementRead
    balance: int


class HistoryEntryRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    product_id: str
    product_name: str
    product_category: str
    kind: MovementKind
    quantity: int
    responsible_name: str
    notes: Optional[str] = None
    created_at: datetime


class DashboardRead(BaseModel):
    total_products: int
    low_stock: list[LowStockItem]
    recent_movements: list[HistoryEntryRead]
