from __future__ import annotations

import json

import typer
import uvicorn

from resumeforge.api.app import create_app
from resumeforge.api.schemas import FieldResponse
from resumeforge.config import get_settings
from resumeforge.core.auth import AuthService
from resumeforge.core.fields import FieldService
from resumeforge.db.init import init_database
from resumeforge.db.session import SessionLocal
from resumeforge.errors import ServiceError
from resumeforge.logging_config import configure_logging

app = typer.Typer(help="resumeforge CLI")
user_app = typer.Typer(help="Manage user accounts")
tokens_app = typer.Typer(help="Token maintenance")
field_app = typer.Typer(help="Inspect stored resume fields")

app.add_typer(user_app, name="user")
app.add_typer(tokens_app, name="tokens")
app.add_typer(field_app, name="field")

_INITIALIZED = False


def ensure_initialized() -> None:
    global _INITIALIZED
    if _INITIALIZED:
        return
    init_database()
    _INITIALIZED = True


@app.command("init")
def init_cmd() -> None:
    """Create data directories and database tables."""
    configure_logging()
    result = init_database()
    typer.echo(json.dumps({"ok": True, **result}, indent=2))


@user_app.command("create")
def user_create(
    username: str = typer.Option(..., "--username"),
    password: str = typer.Option(..., "--password", prompt=True, hide_input=True),
) -> None:
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        try:
            user = AuthService(db).register(username, password)
        except ServiceError as exc:
            raise typer.BadParameter(exc.message) from exc
        typer.echo(json.dumps({"id": user.id, "username": user.username}, indent=2))


@tokens_app.command("cleanup")
def tokens_cleanup() -> None:
    """Delete tokens whose expiry has passed."""
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        removed = AuthService(db).clean_expired_tokens()
    typer.echo(json.dumps({"removed": removed}, indent=2))


@field_app.command("export")
def field_export(
    user_id: int = typer.Option(..., "--user-id"),
    group_id: int | None = typer.Option(None, "--group-id"),
) -> None:
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        try:
            rows = FieldService(db).list_fields(user_id, group_id)
        except ServiceError as exc:
            raise typer.BadParameter(exc.message) from exc
        payload = [FieldResponse.model_validate(row).model_dump(mode="json", by_alias=True) for row in rows]
    typer.echo(json.dumps(payload, indent=2))


@app.command("serve")
def serve(
    host: str | None = typer.Option(None, "--host"),
    port: int | None = typer.Option(None, "--port"),
) -> None:
    configure_logging()
    ensure_initialized()
    settings = get_settings()
    app_instance = create_app()
    uvicorn.run(app_instance, host=host or settings.app_host, port=port or settings.app_port)
