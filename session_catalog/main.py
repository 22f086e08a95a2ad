from __future__ import annotations

import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Tuple

import typer
from rich.console import Console

from session_catalog.config import Settings, get_settings
from session_catalog.domain.errors import CatalogNotReady, RecordNotFound, SnapshotError
from session_catalog.infrastructure.snapshot import save_snapshot
from session_catalog.orchestrator import BackgroundLoad, start_loading
from session_catalog.queries import SessionQueries
from session_catalog.reporter import print_load_report, print_sessions
from session_catalog.store import CatalogStore
from session_catalog.utils.logging import configure_logging

app = typer.Typer(help="GopherCon 2025 agenda session catalog CLI.")

# How long to let the loader close its browser before giving up on it.
_SHUTDOWN_GRACE_SECONDS = 10.0

_OFFLINE_OPTION = typer.Option(
    None,
    "--offline/--online",
    help="Load sessions from the snapshot file instead of the live site (default from settings).",
)
_DATA_FILE_OPTION = typer.Option(
    None,
    "--data-file",
    "-f",
    help="Snapshot file to load in offline mode (default from settings).",
)


def _effective_settings(offline: Optional[bool] = None, data_file: Optional[Path] = None) -> Settings:
    settings = get_settings()
    updates = {}
    if offline is not None:
        updates["offline"] = offline
    if data_file is not None:
        updates["data_file"] = str(data_file)
    return settings.model_copy(update=updates) if updates else settings


@contextmanager
def _loaded_catalog(settings: Settings) -> Iterator[Tuple[CatalogStore, Optional[BackgroundLoad]]]:
    """Start loading a fresh catalog; on exit, let the loader finish or cancel it."""
    configure_logging(level=settings.log_level, json_logs=settings.log_json)
    store = CatalogStore()
    try:
        handle = start_loading(store, settings)
    except SnapshotError as exc:
        typer.echo(f"Failed to load sessions from file: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    try:
        yield store, handle
    finally:
        if handle is not None and not (store.ready.is_set() and handle.join(_SHUTDOWN_GRACE_SECONDS)):
            handle.cancel(timeout=_SHUTDOWN_GRACE_SECONDS)


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    workers = settings.fetch_workers or "cpu count"
    typer.echo(
        f"sessions={len(settings.session_ids)} url={settings.session_url_template} | "
        f"workers={workers} timeout={settings.fetch_timeout_seconds:g}s "
        f"attempts={settings.fetch_max_attempts} backoff={settings.fetch_backoff_seconds:g}s | "
        f"offline={settings.offline} data_file={settings.data_file} | "
        f"query_mode={settings.query_mode}"
    )


@app.command("list")
def list_sessions(
    offline: Optional[bool] = _OFFLINE_OPTION,
    data_file: Optional[Path] = _DATA_FILE_OPTION,
    as_json: bool = typer.Option(False, "--json", help="Print sessions as JSON instead of a table."),
) -> None:
    """
    Load the catalog and print every session.
    """
    settings = _effective_settings(offline, data_file)
    with _loaded_catalog(settings) as (store, handle):
        queries = SessionQueries.from_settings(store, settings)
        try:
            result = queries.list_all()
        except CatalogNotReady as exc:
            typer.echo(str(exc), err=True)
            raise typer.Exit(code=1) from exc

    if as_json:
        typer.echo(result.model_dump_json(indent=2))
        return
    print_sessions(result.sessions, complete=result.complete)
    if handle is not None and handle.report is not None:
        print_load_report(handle.report, Console(stderr=True))


@app.command()
def get(
    session_id: str = typer.Argument(..., help="Session ID, e.g. 1545653."),
    offline: Optional[bool] = _OFFLINE_OPTION,
    data_file: Optional[Path] = _DATA_FILE_OPTION,
) -> None:
    """
    Load the catalog and print one session as JSON.
    """
    settings = _effective_settings(offline, data_file)
    with _loaded_catalog(settings) as (store, _):
        queries = SessionQueries.from_settings(store, settings)
        try:
            result = queries.get_by_id(session_id)
        except (RecordNotFound, CatalogNotReady) as exc:
            typer.echo(str(exc), err=True)
            raise typer.Exit(code=1) from exc

    typer.echo(result.model_dump_json(indent=2))


@app.command()
def snapshot(
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Where to write the snapshot (default: the configured data file).",
    ),
) -> None:
    """
    Fetch every session from the live site and save an offline snapshot.
    """
    settings = _effective_settings(offline=False)
    target = output or Path(settings.data_file)
    with _loaded_catalog(settings) as (store, handle):
        store.ready.wait()
        if handle is not None:
            handle.join()

    sessions = store.list()
    if handle is not None and handle.report is not None:
        print_load_report(handle.report, Console(stderr=True))
    if not sessions:
        typer.echo(f"No sessions were loaded; leaving {target} untouched.", err=True)
        raise typer.Exit(code=1)
    written = save_snapshot(target, sessions)
    typer.echo(f"Wrote {written} session(s) to {target}.")


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
