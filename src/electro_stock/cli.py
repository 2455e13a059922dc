"""Command line interface for the packaged service."""

from __future__ import annotations

from typing import Optional

import typer
import uvicorn

from . import schemas
from .balances import list_low_stock
from .config import Settings, get_settings
from .crud import DuplicateUsernameError, create_user, get_user_by_username, list_users
from .database import init_database, session_scope
from .log import setup_logging

app = typer.Typer(help="Manage and run the Electro Stock inventory service.")


def _print_header(title: str) -> None:
    typer.secho(title, bold=True, fg=typer.colors.CYAN)


def _resolve_settings() -> Settings:
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_file)
    init_database()
    return settings


@app.command()
def run(
    host: Optional[str] = typer.Option(None, help="Hostname to bind"),
    port: Optional[int] = typer.Option(None, help="Port to expose"),
    reload: Optional[bool] = typer.Option(None, help="Enable auto-reload"),
    log_level: Optional[str] = typer.Option(None, help="Uvicorn log level"),
) -> None:
    """Start the FastAPI service using Uvicorn."""

    settings = _resolve_settings()

    uvicorn.run(
        "electro_stock.app:create_app",
        host=host or settings.host,
        port=port or settings.port,
        reload=settings.reload if reload is None else reload,
        log_level=log_level or settings.log_level,
        factory=True,
    )


@app.command()
def init_db() -> None:
    """Create the SQLite database and tables."""

    settings = _resolve_settings()
    typer.echo(f"Database initialised at {settings.database_path}")


@app.command("create-user")
def create_user_cmd(
    username: str = typer.Argument(..., help="Unique login name"),
    password: Optional[str] = typer.Option(
        None,
        "--password",
        prompt=True,
        hide_input=True,
        confirmation_prompt=True,
        help="Password for the new user",
    ),
    email: Optional[str] = typer.Option(None, help="Contact email"),
    full_name: Optional[str] = typer.Option(None, help="Display name recorded on movements"),
) -> None:
    """Create a user and its profile."""

    _resolve_settings()
    with session_scope() as session:
        if get_user_by_username(session, username):
            typer.secho("User already exists", fg=typer.colors.RED)
            raise typer.Exit(code=1)
        if password is None:
            typer.secho("Password is required", fg=typer.colors.RED)
            raise typer.Exit(code=1)
        try:
            user = create_user(
                session,
                schemas.UserCreate(
                    username=username,
                    password=password,
                    email=email,
                    full_name=full_name,
                ),
            )
        except DuplicateUsernameError as exc:  # pragma: no cover - handled above
            typer.secho(str(exc), fg=typer.colors.RED)
            raise typer.Exit(code=1) from exc
        typer.secho(f"Created user {user.username} (id={user.id})", fg=typer.colors.GREEN)


@app.command("list-users")
def list_users_cmd() -> None:
    """Display users stored in the database."""

    _resolve_settings()
    with session_scope() as session:
        users = list_users(session)
        if not users:
            typer.echo("No users found.")
            return
        _print_header("Existing users")
        for user in users:
            typer.echo(f"- {user.id} {user.username} | active={user.is_active}")


@app.command("low-stock")
def low_stock_cmd(
    limit: Optional[int] = typer.Option(None, min=1, help="Maximum number of products to show"),
) -> None:
    """List products at or below their minimum stock."""

    _resolve_settings()
    with session_scope() as session:
        items = list_low_stock(session, limit)
        if not items:
            typer.echo("No products below their minimum stock.")
            return
        _print_header("Low stock")
        for item in items:
            colour = typer.colors.RED if item.status == "critical" else typer.colors.YELLOW
            typer.secho(
                f"- {item.name} ({item.category}): {item.quantity} / min {item.min_stock} [{item.status}]",
                fg=colour,
            )


@app.command()
def show_paths() -> None:
    """Print out important filesystem paths."""

    settings = _resolve_settings()
    typer.echo(f"Database: {settings.database_path}")
    typer.echo(f"Data directory: {settings.database_path.parent}")
    typer.echo(f"Log file: {settings.log_file or '(console only)'}")


def main() -> None:
    """Entry-point for console scripts."""

    app()


if __name__ == "__main__":  # pragma: no cover
    main()
