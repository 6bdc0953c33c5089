"""``latchkey`` command: run the API server and manage its database."""

import asyncio

import click

from latchkey import __version__
from latchkey.core.config import Settings, get_settings
from latchkey.core.logging import configure_logging, get_logger

APP_IMPORT_PATH = "latchkey.infrastructure.api.app:app"


@click.group()
@click.version_option(version=__version__, prog_name="latchkey")
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Email and password authentication service.

    Configuration comes from ``LATCHKEY_*`` environment variables or a .env file.
    """
    ctx.obj = get_settings()


@cli.command()
@click.option("--host", help="Interface to bind (default from LATCHKEY_HOST)")
@click.option("--port", type=int, help="Port to bind (default from LATCHKEY_PORT)")
@click.option("--reload", is_flag=True, help="Restart on code changes")
@click.pass_obj
def serve(settings: Settings, host: str | None, port: int | None, reload: bool) -> None:
    """Run the HTTP API under uvicorn."""
    import uvicorn

    host = host or settings.host
    port = port or settings.port
    configure_logging(settings)
    get_logger(__name__).info("Serving latchkey", host=host, port=port, environment=settings.environment)

    uvicorn.run(APP_IMPORT_PATH, host=host, port=port, reload=reload, log_level=settings.log_level.lower())


async def _create_schema(settings: Settings, reset: bool) -> None:
    from latchkey.infrastructure.persistence.database import (
        close_database,
        get_db_manager,
        sqlite_directory,
    )
    from latchkey.infrastructure.persistence.models import UserModel  # noqa: F401

    directory = sqlite_directory(settings.database_url)
    if directory is not None:
        directory.mkdir(parents=True, exist_ok=True)

    db = get_db_manager()
    try:
        if reset:
            await db.drop_tables()
        await db.create_tables()
    finally:
        await close_database()


@cli.command("init-db")
@click.option("--force", is_flag=True, help="Do not ask for confirmation; required in production")
@click.option("--reset", is_flag=True, help="Drop existing tables first (deletes all users)")
@click.pass_obj
def init_db(settings: Settings, force: bool, reset: bool) -> None:
    """Create the users table."""
    configure_logging(settings)

    if settings.is_production and not force:
        raise click.ClickException("refusing to touch a production database without --force")
    if not force:
        action = "Drop and recreate" if reset else "Create"
        click.confirm(f"{action} the latchkey tables?", abort=True)

    asyncio.run(_create_schema(settings, reset))
    click.echo("Database initialized.")


@cli.command()
@click.pass_obj
def info(settings: Settings) -> None:
    """Print the effective configuration (secrets omitted)."""
    rows = [
        ("Environment", settings.environment),
        ("App URL", settings.app_url),
        ("Email provider", settings.email_provider),
        ("Email check", f"{settings.email_check_ttl_hours} hours"),
        ("Password reset", f"{settings.password_change_ttl_hours} hours"),
        ("Session", f"{settings.access_token_expire_minutes} minutes"),
        ("Min password", f"{settings.password_min_length} characters"),
    ]
    click.secho(f"latchkey {__version__}", bold=True)
    for label, value in rows:
        click.echo(f"  {label + ':':<16}{value}")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
