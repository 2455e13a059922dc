"""FastAPI application factory."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request, Response, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from . import __version__, balances, catalog, crud, history, ledger, schemas
from .access import Principal
from .auth import end_session, get_current_principal, start_session
from .config import get_settings
from .database import init_database
from .dependencies import get_db, pagination_params
from .errors import (
    AuthorizationError,
    InsufficientStockError,
    InventoryError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from .log import setup_logging

logger = logging.getLogger(__name__)

ERROR_STATUS: dict[type[InventoryError], int] = {
    ValidationError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    InsufficientStockError: status.HTTP_409_CONFLICT,
    AuthorizationError: status.HTTP_403_FORBIDDEN,
    PersistenceError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def _status_for(exc: InventoryError) -> int:
    for error_type in type(exc).__mro__:
        if error_type in ERROR_STATUS:
            return ERROR_STATUS[error_type]
    return status.HTTP_400_BAD_REQUEST


def _inventory_error_handler(request: Request, exc: InventoryError) -> JSONResponse:
    code = _status_for(exc)
    if code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=code, content={"detail": exc.message, "error": exc.code})


def _product_read(product) -> schemas.ProductRead:
    return schemas.ProductRead.model_validate(product)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""

    settings = get_settings()
    setup_logging(settings.log_level, settings.log_file)
    init_database()

    app = FastAPI(title=settings.app_name, version=__version__)
    app.add_exception_handler(InventoryError, _inventory_error_handler)

    @app.get("/health", tags=["system"])
    def health_check() -> dict[str, str]:
        return {"status": "ok"}

    # Accounts

    @app.post("/auth/signup", response_model=schemas.UserRead, status_code=status.HTTP_201_CREATED, tags=["auth"])
    def signup(user: schemas.UserCreate, db: Session = Depends(get_db)):
        try:
            return crud.create_user(db, user)
        except crud.DuplicateUsernameError as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    @app.post("/auth/login", response_model=schemas.UserRead, tags=["auth"])
    def login(credentials: schemas.LoginRequest, response: Response, db: Session = Depends(get_db)):
        user = crud.authenticate_user(db, credentials.username, credentials.password)
        if not user:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid username or password")
        start_session(response, user)
        return user

    @app.post("/auth/logout", status_code=status.HTTP_204_NO_CONTENT, tags=["auth"])
    def logout(response: Response) -> None:
        end_session(response)

    @app.get("/profiles/me", response_model=schemas.ProfileRead, tags=["profiles"])
    def read_own_profile(
        principal: Principal = Depends(get_current_principal), db: Session = Depends(get_db)
    ):
        return crud.get_profile(db, principal, principal.id)

    @app.put("/profiles/me", response_model=schemas.ProfileRead, tags=["profiles"])
    def update_own_profile(
        payload: schemas.ProfileUpdate,
        principal: Principal = Depends(get_current_principal),
        db: Session = Depends(get_db),
    ):
        return crud.update_profile(db, principal, principal.id, payload)

    @app.get("/profiles/{profile_id}", response_model=schemas.ProfileRead, tags=["profiles"])
    def read_profile(
        profile_id: str, principal: Principal = Depends(get_current_principal), db: Session = Depends(get_db)
    ):
        return crud.get_profile(db, principal, profile_id)

    # Catalog

    @app.get("/products", response_model=list[schemas.ProductRead], tags=["products"])
    def list_products(
        pagination: tuple[int, int] = Depends(pagination_params),
        principal: Principal = Depends(get_current_principal),  # noqa: ARG001
        db: Session = Depends(get_db),
    ):
        limit, offset = pagination
        return [_product_read(p) for p in catalog.list_products(db, skip=offset, limit=limit)]

    @app.post("/products", response_model=schemas.ProductRead, status_code=status.HTTP_201_CREATED, tags=["products"])
    def create_product(
        payload: schemas.ProductCreate,
        principal: Principal = Depends(get_current_principal),
        db: Session = Depends(get_db),
    ):
        return _product_read(catalog.create_product(db, principal, payload))

    @app.get("/products/{product_id}", response_model=schemas.ProductRead, tags=["products"])
    def get_product(
        product_id: str,
        principal: Principal = Depends(get_current_principal),  # noqa: ARG001
        db: Session = Depends(get_db),
    ):
        return _product_read(catalog.get_product(db, product_id))

    @app.patch("/products/{product_id}", response_model=schemas.ProductRead, tags=["products"])
    def update_product(
        product_id: str,
        payload: schemas.ProductUpdate,
        principal: Principal = Depends(get_current_principal),
        db: Session = Depends(get_db),
    ):
        return _product_read(catalog.update_product(db, principal, product_id, payload))

    @app.delete("/products/{product_id}", status_code=status.HTTP_204_NO_CONTENT, tags=["products"])
    def delete_product(
        product_id: str,
        principal: Principal = Depends(get_current_principal),
        db: Session = Depends(get_db),
    ) -> None:
        catalog.delete_product(db, principal, product_id)

    # Balances

    @app.get("/products/{product_id}/balance", response_model=schemas.BalanceRead, tags=["stock"])
    def read_balance(
        product_id: str,
        principal: Principal = Depends(get_current_principal),  # noqa: ARG001
        db: Session = Depends(get_db),
    ):
        balance = balances.read_balance(db, product_id)
        return schemas.BalanceRead(
            product_id=balance.product_id,
            quantity=balance.quantity,
            min_stock=balance.min_stock,
            status=balance.status,
        )

    @app.get("/stock/low", response_model=list[schemas.LowStockItem], tags=["stock"])
    def list_low_stock(
        limit: Optional[int] = Query(None, ge=1, le=settings.max_page_size),
        principal: Principal = Depends(get_current_principal),  # noqa: ARG001
        db: Session = Depends(get_db),
    ):
        return [schemas.LowStockItem.model_validate(item) for item in balances.list_low_stock(db, limit)]

    @app.get("/dashboard", response_model=schemas.DashboardRead, tags=["stock"])
    def dashboard(
        principal: Principal = Depends(get_current_principal),  # noqa: ARG001
        db: Session = Depends(get_db),
    ):
        summary = balances.dashboard_summary(db)
        return schemas.DashboardRead.model_validate(summary, from_attributes=True)

    # Ledger

    @app.post("/movements", response_model=schemas.LedgerEntryRead, status_code=status.HTTP_201_CREATED, tags=["movements"])
    def record_movement(
        payload: schemas.MovementCreate,
        principal: Principal = Depends(get_current_principal),
        db: Session = Depends(get_db),
    ):
        actor = principal
        if payload.responsible_id and payload.responsible_id != principal.id:
            actor = Principal(id=payload.responsible_id, display_name=payload.responsible_id)
        entry = ledger.record_movement(
            db,
            payload.product_id,
            payload.kind,
            payload.quantity,
            actor,
            payload.notes,
            caller=principal,
        )
        return schemas.LedgerEntryRead(
            movement=schemas.MovementRead.model_validate(entry.movement),
            balance=entry.balance,
        )

    @app.get("/movements/history", response_model=list[schemas.HistoryEntryRead], tags=["movements"])
    def movement_history(
        search: Optional[str] = None,
        kind: Optional[str] = Query(None, alias="type"),
        limit: Optional[int] = Query(None, ge=1),
        principal: Principal = Depends(get_current_principal),  # noqa: ARG001
        db: Session = Depends(get_db),
    ):
        entries = history.filter_history(history.list_history(db), search=search, kind=kind)
        if limit is not None:
            entries = entries[:limit]
        return [schemas.HistoryEntryRead.model_validate(entry) for entry in entries]

    return app
