import os
import tempfile
from collections.abc import Generator
from decimal import Decimal
from typing import Any

# Point the default data directory at a scratch location before the package
# builds its settings and engine.
os.environ.setdefault("ELECTRO_STOCK_HOME", tempfile.mkdtemp(prefix="electro-stock-tests-"))
os.environ.setdefault("ELECTRO_STOCK_SECRET", "test-secret")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from electro_stock import crud, models, schemas, security
from electro_stock.access import Principal
from electro_stock.app import create_app
from electro_stock.database import create_sqlite_engine, init_database, make_sessionmaker
from electro_stock.dependencies import get_db


@pytest.fixture(autouse=True)
def fast_password_hashing(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(security, "_ITERATIONS", 1_000)


@pytest.fixture(name="db_engine")
def db_engine_fixture(tmp_path) -> Generator[Any, None, None]:
    engine = create_sqlite_engine(tmp_path / "test.sqlite3", timeout=30)
    init_database(engine)
    yield engine
    engine.dispose()


@pytest.fixture(name="session_factory")
def session_factory_fixture(db_engine):  # type: ignore[no-untyped-def]
    return make_sessionmaker(db_engine)


@pytest.fixture(name="db")
def db_fixture(session_factory) -> Generator[Session, None, None]:  # type: ignore[no-untyped-def]
    with session_factory() as session:
        yield session


@pytest.fixture(name="make_principal")
def make_principal_fixture(db: Session):  # type: ignore[no-untyped-def]
    def _make(username: str = "alice", full_name: str | None = "Alice Doe") -> Principal:
        user = crud.create_user(
            db, schemas.UserCreate(username=username, password="secret123", full_name=full_name)
        )
        return Principal.from_user(user)

    return _make


@pytest.fixture(name="actor")
def actor_fixture(make_principal) -> Principal:  # type: ignore[no-untyped-def]
    return make_principal()


@pytest.fixture(name="make_product")
def make_product_fixture(db: Session, actor: Principal):  # type: ignore[no-untyped-def]
    def _make(name: str = "Arduino Uno", quantity: int = 10, min_stock: int = 5, **extra: Any) -> models.Product:
        product = models.Product(
            name=name,
            category=extra.pop("category", "Microcontrollers"),
            brand=extra.pop("brand", "Arduino"),
            model=extra.pop("model", "R3"),
            quantity=quantity,
            min_stock=min_stock,
            price=extra.pop("price", Decimal("129.90")),
            created_by=actor.id,
            **extra,
        )
        db.add(product)
        db.commit()
        db.refresh(product)
        return product

    return _make


@pytest.fixture(name="client")
def client_fixture(session_factory):  # type: ignore[no-untyped-def]
    app = create_app()

    def get_db_override() -> Generator[Session, None, None]:
        with session_factory() as session:
            try:
                yield session
                session.commit()
            except Exception:
                session.rollback()
                raise

    app.dependency_overrides[get_db] = get_db_override

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture(name="login_as")
def login_as_fixture(client: TestClient):  # type: ignore[no-untyped-def]
    """Sign up *username* if needed and make the client act as that user."""

    def _login(username: str, full_name: str | None = None) -> dict[str, Any]:
        payload = {"username": username, "password": "secret123"}
        if full_name:
            payload["full_name"] = full_name
        response = client.post("/auth/signup", json=payload)
        assert response.status_code in (201, 400), response.text
        response = client.post("/auth/login", json={"username": username, "password": "secret123"})
        assert response.status_code == 200, response.text
        return response.json()

    return _login
