"""Typer-based CLI entry point."""

from __future__ import annotations

import asyncio
import functools
import logging
import os
from pathlib import Path
from typing import Any, Awaitable, Callable, List, Optional

import typer
from rich import print
from rich.table import Table

from useradmin.application.services.user_service import UserAdminService
from useradmin.config import API_TOKEN_ENV_VAR
from useradmin.domain.filtering import apply_user_filters
from useradmin.domain.leaders import LeaderHierarchyResolver
from useradmin.domain.models import FilterCriteria
from useradmin.domain.paginator import Paginator
from useradmin.errors import SessionExpiredError, SettingsError, UserAdminError
from useradmin.gui.utils.console_logger import ensure_console_logger
from useradmin.infrastructure.api_client import AdminApiClient
from useradmin.settings import SettingsManager

app = typer.Typer(help="Command line client for the user administration API")

BASE_URL_OVERRIDE = "useradmin.base_url"


def _handle_errors(func):
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except SessionExpiredError as exc:
            typer.echo(f"Session expired: {exc}. Sign in again and update the token.", err=True)
            raise typer.Exit(1) from exc
        except (UserAdminError, ValueError) as exc:
            typer.echo(f"Error: {exc}", err=True)
            raise typer.Exit(1) from exc

    return wrapper


def create_client(settings: SettingsManager, base_url: Optional[str] = None) -> AdminApiClient:
    """Build the API client from settings.

    The environment token wins over the stored one, and *base_url* overrides
    ``api.base_url`` for this process only.
    """

    token = os.environ.get(API_TOKEN_ENV_VAR) or settings.get("api.token")
    return AdminApiClient(
        base_url or settings.get("api.base_url"),
        token,
        timeout=float(settings.get("api.timeout_seconds")),
    )


def _run(ctx: typer.Context, work: Callable[[UserAdminService], Awaitable[Any]]) -> Any:
    settings: SettingsManager = ctx.obj

    async def _main() -> Any:
        async with create_client(settings, ctx.meta.get(BASE_URL_OVERRIDE)) as client:
            return await work(UserAdminService(client))

    return asyncio.run(_main())


@app.callback()
def main(
    ctx: typer.Context,
    settings_path: Optional[Path] = typer.Option(None, "--settings", help="Path to settings.json"),
    base_url: Optional[str] = typer.Option(None, "--base-url", help="Use this API URL for this run only"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log requests and state changes"),
) -> None:
    if verbose:
        ensure_console_logger(logging.getLogger("useradmin"), "useradmin-cli", level=logging.DEBUG)
    settings = SettingsManager(settings_path)
    try:
        settings.load()
    except SettingsError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(1) from exc
    ctx.obj = settings
    if base_url:
        ctx.meta[BASE_URL_OVERRIDE] = base_url


@app.command()
@_handle_errors
def users(
    ctx: typer.Context,
    role: str = typer.Option("", "--role"),
    status: str = typer.Option("", "--status", help="active or inactive"),
    leader: str = typer.Option("", "--leader"),
    search: str = typer.Option("", "--search"),
    page: int = typer.Option(1, "--page", min=1),
    limit: Optional[int] = typer.Option(None, "--limit", min=1),
) -> None:
    """List one page of users."""

    settings: SettingsManager = ctx.obj
    criteria = FilterCriteria(role=role, status=status, leader_name=leader, search_text=search)
    page_size = limit or int(settings.get("ui.page_size"))
    refresh = _run(ctx, lambda service: service.refresh(page, page_size, criteria))
    if refresh.users_error is not None:
        raise refresh.users_error

    paginator = Paginator(page_size=page_size)
    paginator.apply_server_pagination(refresh.page_info)
    rows = apply_user_filters(refresh.users, criteria)

    table = Table(title="Users")
    for column in ("User ID", "Name", "Login ID", "Role", "Leader", "Status", "Last login"):
        table.add_column(column)
    for user in rows:
        table.add_row(
            user.user_code,
            user.username,
            user.login_id,
            user.role,
            user.leader_name or "-",
            "[green]active" if user.active else "[red]inactive",
            user.last_login_at.strftime("%Y-%m-%d %H:%M") if user.last_login_at else "never",
        )
    print(table)
    if not rows:
        print("No users match the current filters" if not criteria.is_empty else "No users found")
    first, last = paginator.item_range()
    print(
        f"Showing {first}-{last} of {paginator.total_count} "
        f"(page {paginator.current_page()} of {paginator.total_pages})"
    )


@app.command()
@_handle_errors
def stats(ctx: typer.Context) -> None:
    """Print user counters and the role distribution."""

    summary = _run(ctx, lambda service: service.load_stats())
    print(
        f"Total: {summary.total}\n"
        f"Active: {summary.active}\n"
        f"Inactive: {summary.inactive}\n"
        f"Roles: {summary.role_count}"
    )
    for role_name, count in sorted(summary.roles.items()):
        print(f"  {role_name}: {count}")


@app.command()
@_handle_errors
def leaders(
    ctx: typer.Context,
    role: str = typer.Argument(..., help="Role of the user who needs a leader"),
    selected: str = typer.Option("", "--selected", help="Currently stored leader name"),
) -> None:
    """List leader candidates for a user of ROLE."""

    directory = _run(ctx, lambda service: service.load_all_users())
    resolver = LeaderHierarchyResolver(directory)
    if not resolver.requires_leader(role):
        print(f"[yellow]Role {role} does not require a leader")
    options = resolver.picker_options(role, selected or None)
    if not options:
        print("No leader candidates found")
        return
    for option in options:
        marker = "*" if option.selected else " "
        print(f"{marker} {option.label}")


def _bulk_status(ctx: typer.Context, ids: List[str], active: bool) -> None:
    result = _run(ctx, lambda service: service.bulk_set_active(ids, active))
    if result.ok:
        print(f"[green]{result.summary()}")
        return
    print(f"[red]{result.summary()}")
    for user_id, error in result.failed.items():
        print(f"  {user_id}: {error}")
    raise typer.Exit(1)


@app.command()
@_handle_errors
def activate(ctx: typer.Context, ids: List[str] = typer.Argument(..., help="User ids")) -> None:
    """Activate every listed user."""

    _bulk_status(ctx, ids, True)


@app.command()
@_handle_errors
def deactivate(ctx: typer.Context, ids: List[str] = typer.Argument(..., help="User ids")) -> None:
    """Deactivate every listed user."""

    _bulk_status(ctx, ids, False)


@app.command()
@_handle_errors
def export(
    ctx: typer.Context,
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Destination file"),
) -> None:
    """Download all users as CSV."""

    filename, content = _run(ctx, lambda service: service.export_users())
    target = output or Path.cwd() / filename
    target.write_bytes(content)
    print(f"[green]Exported {len(content)} bytes to {target}")


if __name__ == "__main__":  # pragma: no cover
    app()
