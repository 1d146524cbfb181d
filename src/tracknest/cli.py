"""Typer-based CLI entry point."""

from __future__ import annotations

import asyncio
import logging
from functools import wraps
from pathlib import Path
from typing import Any, Hashable, List, Optional, Tuple

import typer
from rich import print
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from tracknest.appctx import AppContext, _create_di_container
from tracknest.config import COLLECTIONS, DEFAULT_AUTH_URL, ENTRIES, GROUPS, USERS
from tracknest.domain.models.core import field_value
from tracknest.domain.session import Role, Session
from tracknest.errors import (
    AuthenticationError,
    FetchError,
    InvalidSearchFieldError,
    PermissionDeniedError,
    RecordNotFoundError,
    RemoteError,
    TrackNestError,
)
from tracknest.gui.viewmodels.list_controller import ListController
from tracknest.gui.viewmodels.staged_removal import PendingRemovalPolicy
from tracknest.infrastructure import auth
from tracknest.infrastructure.demo_data import DEMO_USERNAME, seeded_gateway

app = typer.Typer(help="Browse and tidy up TrackNest entries, groups and users")
console = Console()

COLUMNS: dict[str, tuple[str, ...]] = {
    ENTRIES: ("id", "title", "type", "date", "group_name", "visibility"),
    GROUPS: ("id", "name", "description", "visibility", "created_by"),
    USERS: ("username", "role"),
}


class _State:
    demo: bool = False
    settings_path: Optional[Path] = None


_state = _State()


def _handle_errors(func):
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (
            AuthenticationError,
            InvalidSearchFieldError,
            PermissionDeniedError,
            RecordNotFoundError,
        ) as exc:
            typer.echo(f"Error: {exc}", err=True)
            raise typer.Exit(1) from exc
        except (FetchError, RemoteError) as exc:
            typer.echo(f"Error: {exc}", err=True)
            raise typer.Exit(2) from exc
        except TrackNestError as exc:
            typer.echo(f"Unexpected error: {exc}", err=True)
            raise typer.Exit(1) from exc

    return wrapper


def _configure_logging(verbose: bool) -> None:
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            datefmt="[%X]",
            handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
        )
    else:
        # Failures are echoed by the commands themselves.
        logging.getLogger("tracknest").addHandler(logging.NullHandler())


def _context() -> AppContext:
    if _state.demo:
        container = _create_di_container(_state.settings_path, seeded_gateway())
        return AppContext(container, Session("demo", DEMO_USERNAME, Role.ADMIN))
    return AppContext(_create_di_container(_state.settings_path))


def _parse_id(collection: str, raw: str) -> Hashable:
    if collection != USERS and raw.isdigit():
        return int(raw)
    return raw


def _cell(record: Any, column: str) -> str:
    value = field_value(record, column)
    if value is None:
        return ""
    if hasattr(value, "strftime"):
        return value.strftime("%Y-%m-%d")
    return str(value)


def _render(controller: ListController) -> None:
    view = controller.view.value
    sort = controller.sort.value
    table = Table(title=controller.collection.capitalize())
    for column in COLUMNS[controller.collection]:
        header = column
        if column == sort.key:
            header += " ▼" if sort.descending else " ▲"
        table.add_column(header)
    for record in view.page_items:
        table.add_row(*(_cell(record, column) for column in COLUMNS[controller.collection]))
    console.print(table)
    print(f"{view.range_label}  (page {view.current_page}/{view.total_pages})")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output"),
    demo: bool = typer.Option(False, "--demo", help="Use built-in sample data instead of the server"),
    settings: Optional[Path] = typer.Option(None, "--settings", help="Path to settings.json"),
) -> None:
    _configure_logging(verbose)
    _state.demo = demo
    _state.settings_path = settings


@app.command()
@_handle_errors
def login(
    username: str = typer.Option(..., prompt=True),
    password: str = typer.Option(..., prompt=True, hide_input=True),
    auth_url: str = typer.Option(DEFAULT_AUTH_URL, "--auth-url"),
) -> None:
    """Sign in and remember the bearer token."""

    if _state.demo:
        print("[yellow]Demo mode does not need a login")
        return
    ctx = _context()
    session = asyncio.run(auth.login(username, password, auth_url))
    ctx.sign_in(session)
    print(f"[green]Signed in as {session.username} ({session.role.value})")


@app.command()
@_handle_errors
def logout() -> None:
    """Forget the stored bearer token."""

    ctx = _context()
    asyncio.run(ctx.logout())
    print("[green]Signed out")


@app.command("list")
@_handle_errors
def list_records(
    collection: str = typer.Argument(..., help=f"One of: {', '.join(COLLECTIONS)}"),
    sort: Optional[str] = typer.Option(None, "--sort", help="Column to sort by"),
    desc: bool = typer.Option(False, "--desc", help="Sort descending"),
    page: int = typer.Option(1, "--page", min=1),
    search: Tuple[str, str] = typer.Option((None, None), "--search", metavar="FIELD TERM"),
) -> None:
    """Show one page of a collection."""

    if collection not in COLUMNS:
        raise typer.BadParameter(f"expected one of {', '.join(COLLECTIONS)}", param_hint="collection")

    async def run() -> None:
        ctx = _context()
        controller = ctx.create_controller(collection)
        try:
            field, term = search
            if field is not None:
                await controller.search(field, term)
            else:
                await controller.load()
            if sort:
                controller.set_sort(sort)
                if desc:
                    controller.set_sort(sort)
            controller.set_page(page)
            _render(controller)
        finally:
            controller.dispose()
            await ctx.close()

    asyncio.run(run())


@app.command()
@_handle_errors
def delete(
    collection: str = typer.Argument(..., help=f"One of: {', '.join(COLLECTIONS)}"),
    ids: List[str] = typer.Argument(..., help="Record ids (usernames for users)"),
    grace: Optional[float] = typer.Option(
        None, "--grace", min=0, help="Seconds before the delete is sent; defaults to the setting"
    ),
) -> None:
    """Delete records after an undo window. Press Ctrl+C to undo."""

    if collection not in COLUMNS:
        raise typer.BadParameter(f"expected one of {', '.join(COLLECTIONS)}", param_hint="collection")

    async def run() -> str:
        ctx = _context()
        overrides: dict[str, Any] = {"pending_policy": PendingRemovalPolicy.FOLD}
        if grace is not None:
            overrides["undo_delay_ms"] = int(grace * 1000)
        controller = ctx.create_controller(collection, **overrides)
        resolved = asyncio.Event()
        outcome: list[str] = []

        def on_resolved(_ids: list, result: str) -> None:
            outcome.append(result)
            resolved.set()

        controller.removal_resolved.connect(on_resolved)
        try:
            await controller.load()
            for raw in ids:
                controller.remove_one(_parse_id(collection, raw))
            batch = controller.pending_removal
            loop = asyncio.get_running_loop()
            try:
                with console.status("") as status:
                    while not resolved.is_set():
                        status.update(
                            f"Deleting {len(batch.records)} {collection} record(s) in "
                            f"{batch.remaining(loop.time()):.0f}s, Ctrl+C to undo"
                        )
                        try:
                            await asyncio.wait_for(resolved.wait(), timeout=0.25)
                        except asyncio.TimeoutError:
                            continue
            except asyncio.CancelledError:
                # Ctrl+C cancels the main task; treat it as undo.
                restored = await controller.undo()
                return f"[yellow]Undid removal of {len(restored)} record(s)"
            if outcome[-1] == "committed":
                return f"[green]Deleted {len(batch.records)} {collection} record(s)"
            raise RemoteError(controller.error_message.value or "Delete failed")
        finally:
            controller.dispose()
            await ctx.close()

    print(asyncio.run(run()))


if __name__ == "__main__":  # pragma: no cover - manual invocation
    app()
