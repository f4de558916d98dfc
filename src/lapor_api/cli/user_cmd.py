"""User management CLI commands."""

import asyncio

import typer

user_app = typer.Typer()


@user_app.command("create-admin")
def create_admin(
    username: str = typer.Option(..., prompt=True, help="Username"),
    email: str = typer.Option(..., prompt=True, help="Email address"),
    password: str = typer.Option(..., prompt=True, hide_input=True, confirmation_prompt=True, help="Password"),
    divisi: str = typer.Option("", help="Division (kebersihan, kesehatan, fasilitas umum, kriminalitas)"),
    if_not_exists: bool = typer.Option(
        False,
        "--if-not-exists",
        help="Exit successfully if the admin already exists (idempotent mode)",
    ),
) -> None:
    """Create an admin account."""
    asyncio.run(_create_admin(username, email, password, divisi or None, if_not_exists=if_not_exists))


async def _create_admin(
    username: str,
    email: str,
    password: str,
    divisi: str | None,
    *,
    if_not_exists: bool = False,
) -> None:
    """Async implementation of admin creation."""
    from lapor_api.core.config import get_settings
    from lapor_api.core.database import dispose_engine, get_session_factory, init_engine
    from lapor_api.schemas.auth import AdminRegisterRequest
    from lapor_api.services.auth_service import DuplicateIdentityError, register_admin

    settings = get_settings()
    init_engine(settings.database_url)

    try:
        factory = get_session_factory()
        async with factory() as session:
            request = AdminRegisterRequest(username=username, email=email, password=password, divisi=divisi)
            user = await register_admin(session, request)
            typer.echo(f"Admin '{user.username}' created")
    except DuplicateIdentityError as e:
        if if_not_exists:
            typer.echo(f"Admin '{username}' already exists, skipping (--if-not-exists)")
            return
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from e
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from e
    finally:
        await dispose_engine()


@user_app.command("list")
def list_users(
    role: str | None = typer.Option(None, "--role", help="Only list users with this role (admin/warga)"),
) -> None:
    """List all users."""
    asyncio.run(_list_users(role))


async def _list_users(role: str | None) -> None:
    """Async implementation of user listing."""
    from lapor_api.core.config import get_settings
    from lapor_api.core.database import dispose_engine, get_session_factory, init_engine
    from lapor_api.services.auth_service import list_users

    settings = get_settings()
    init_engine(settings.database_url)

    try:
        factory = get_session_factory()
        async with factory() as session:
            users = await list_users(session, role)
            typer.echo(f"{'Identity':<20} {'Email':<30} {'Role':<8} {'Divisi':<16}")
            typer.echo("-" * 76)
            for user in users:
                typer.echo(f"{user.identity:<20} {user.email:<30} {user.role:<8} {user.divisi or '-':<16}")
            typer.echo(f"\nTotal: {len(users)}")
    finally:
        await dispose_engine()
