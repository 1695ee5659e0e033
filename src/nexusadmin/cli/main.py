"""NexusAdmin CLI: bootstrap the database and seed the first admin.

Usage:
    nexusadmin init-db                                   # Create tables
    nexusadmin seed-admin --email a@x.com --name Admin   # Prompts for password
    nexusadmin --database-url sqlite+aiosqlite:///dev.db init-db

Learn: Invites can only be created by an ADMIN, so a fresh deployment
needs one admin created out-of-band. seed-admin goes through the same
AuthService.create_user path the app uses (hashing, email
normalization, duplicate detection) against its own short-lived engine.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import sys

import click

from nexusadmin import __version__
from nexusadmin.auth.jwt import TokenCodec
from nexusadmin.config import settings
from nexusadmin.db.engine import build_engine, build_session_factory, create_all
from nexusadmin.db.models import UserRole
from nexusadmin.errors import ConflictError
from nexusadmin.services.auth_service import AuthService
from nexusadmin.services.notifier import EmailNotifier
from nexusadmin.stores.users import UserStore, normalize_email

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from a synchronous Click handler.

    Offloads to a thread when already inside an event loop (CliRunner
    invoked from an async test).
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="nexusadmin")
@click.option(
    "--database-url",
    envvar="NEXUSADMIN_DATABASE_URL",
    default=settings.database_url,
    show_default=False,
    help="Database URL (defaults to NEXUSADMIN_DATABASE_URL)",
)
@click.pass_context
def main(ctx: click.Context, database_url: str):
    """NexusAdmin: role-based admin backend tooling."""
    ctx.ensure_object(dict)
    ctx.obj["database_url"] = database_url


# ---------------------------------------------------------------------------
# nexusadmin init-db
# ---------------------------------------------------------------------------


@main.command("init-db")
@click.pass_context
def init_db(ctx: click.Context):
    """Create all tables from the ORM metadata."""
    _run(_init_db_impl(ctx.obj["database_url"]))
    click.secho("Database tables created.", fg="green")


async def _init_db_impl(database_url: str) -> None:
    engine = build_engine(database_url)
    try:
        await create_all(engine)
    finally:
        await engine.dispose()


# ---------------------------------------------------------------------------
# nexusadmin seed-admin
# ---------------------------------------------------------------------------


@main.command("seed-admin")
@click.option("--email", required=True, help="Admin email address")
@click.option("--name", default="Admin", show_default=True, help="Display name")
@click.option(
    "--password",
    prompt=True,
    hide_input=True,
    confirmation_prompt=True,
    help="Admin password (prompted when omitted)",
)
@click.pass_context
def seed_admin(ctx: click.Context, email: str, name: str, password: str):
    """Create an ACTIVE ADMIN user unless the email is already taken."""
    if len(password) < 6:
        click.secho("Error: password must be at least 6 characters", fg="red", err=True)
        sys.exit(1)

    created = _run(_seed_admin_impl(ctx.obj["database_url"], email, name, password))
    if created is None:
        click.secho(f"User {normalize_email(email)} already exists, skipping.", fg="yellow")
        return
    click.secho(f"Admin created: {created.email} ({created.id})", fg="green")


async def _seed_admin_impl(database_url: str, email: str, name: str, password: str):
    engine = build_engine(database_url)
    session_factory = build_session_factory(engine)
    try:
        async with session_factory() as db:
            if await UserStore(db).get_by_email(email):
                return None

        auth = AuthService(
            session_factory,
            TokenCodec.from_settings(settings),
            EmailNotifier(settings),
            settings,
        )
        try:
            return await auth.create_user(
                name=name.strip(), email=email, password=password, role=UserRole.ADMIN
            )
        except ConflictError:
            # Lost a race with another seeder
            return None
    finally:
        await engine.dispose()


if __name__ == "__main__":
    main()
