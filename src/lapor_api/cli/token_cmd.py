"""Refresh token maintenance CLI commands."""

import asyncio

import typer

token_app = typer.Typer()


@token_app.command("purge")
def purge() -> None:
    """Delete revoked and expired refresh tokens."""
    asyncio.run(_purge())


async def _purge() -> None:
    """Async implementation of the refresh token sweep."""
    from lapor_api.core.config import get_settings
    from lapor_api.core.database import dispose_engine, get_session_factory, init_engine
    from lapor_api.services.auth_service import purge_refresh_tokens

    settings = get_settings()
    init_engine(settings.database_url)

    try:
        factory = get_session_factory()
        async with factory() as session:
            removed = await purge_refresh_tokens(session)
            typer.echo(f"Removed {removed} refresh token(s)")
    finally:
        await dispose_engine()
