"""Typer CLI root application with serve command."""

import typer

from lapor_api.core.config import get_settings
from lapor_api.core.logging import setup_logging

app = typer.Typer(name="lapor-api", help="Civic complaint reporting service CLI")


@app.callback()
def _main_callback() -> None:
    """Initialize logging for all CLI commands."""
    settings = get_settings()
    setup_logging(settings.log_level, log_dir=settings.log_dir, json_logs=settings.log_json)


@app.command()
def serve(
    reload: bool = typer.Option(False, "--reload", help="Enable auto-reload for development"),
    host: str | None = typer.Option(None, "--host", help="Bind host (defaults to HOST)"),
    port: int | None = typer.Option(None, "--port", help="Bind port (defaults to PORT)"),
) -> None:
    """Start the API server."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "lapor_api.main:create_app",
        factory=True,
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )


def _register_subcommands() -> None:
    """Register all CLI subcommand groups."""
    from lapor_api.cli.db_cmd import db_app
    from lapor_api.cli.token_cmd import token_app
    from lapor_api.cli.user_cmd import user_app

    app.add_typer(db_app, name="db", help="Database migration commands")
    app.add_typer(user_app, name="user", help="User management commands")
    app.add_typer(token_app, name="tokens", help="Refresh token maintenance commands")


_register_subcommands()
