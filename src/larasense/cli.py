"""Larasense CLI entry point."""

from __future__ import annotations

import dataclasses
import json
import logging
import sys
import time
from pathlib import Path
from typing import TYPE_CHECKING, Any

import click

from larasense import __version__
from larasense.errors import ConfigError

if TYPE_CHECKING:
    from larasense.service import SessionContext

DOMAINS = (
    "routes",
    "views",
    "configs",
    "translations",
    "env",
    "middleware",
    "models",
    "validation",
    "blade_components",
    "livewire",
    "inertia",
    "gates",
)

_project_option = click.option(
    "--project",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Laravel project root (default: current directory).",
)


@click.group()
@click.version_option(version=__version__, prog_name="larasense")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Minimal output (errors only).")
@click.pass_context
def main(ctx: click.Context, *, verbose: bool, quiet: bool) -> None:
    """Larasense - Laravel project metadata for editors and scripts."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    level = logging.DEBUG if verbose else logging.ERROR if quiet else logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def _open_session(project: Path | None, *, require_laravel: bool = True) -> SessionContext:
    from larasense.service import start_session

    project_root = project or Path.cwd()
    try:
        session = start_session(project_root)
    except ConfigError as exc:
        click.echo(f"Error: invalid configuration: {exc}", err=True)
        sys.exit(2)

    if require_laravel and not session.is_laravel:
        click.echo(f"Error: {session.root} is not a Laravel project.", err=True)
        sys.exit(1)
    return session


def _record_name(record: Any) -> str:
    name = getattr(record, "name", None)
    if name is None:
        name = getattr(record, "key", "")
    return str(name)


def _record_dict(record: Any) -> dict[str, Any]:
    return dataclasses.asdict(record)


# ---------------------------------------------------------------------------
# info
# ---------------------------------------------------------------------------


@main.command()
@_project_option
@click.option("--json", "output_json", is_flag=True, default=False, help="Output as JSON.")
def info(*, project: Path | None, output_json: bool) -> None:
    """Show project detection and PHP runtime details."""
    session = _open_session(project, require_laravel=False)
    php = session.project.php
    data = {
        "root": str(session.root),
        "is_laravel": session.is_laravel,
        "php_kind": php.kind if php else None,
        "php_path": php.php_path if php else None,
        "php_version": php.version if php else None,
        "laravel_version": session.project.laravel_version,
    }
    if output_json:
        click.echo(json.dumps(data, ensure_ascii=False, indent=2))
        return

    from rich.console import Console
    from rich.table import Table

    table = Table(title="Project", show_header=False, box=None, padding=(0, 1))
    table.add_column("key", style="cyan")
    table.add_column("value")
    for key, value in data.items():
        table.add_row(key, "-" if value is None else str(value))
    Console().print(table)


# ---------------------------------------------------------------------------
# index
# ---------------------------------------------------------------------------


@main.command()
@_project_option
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["rich", "json"]),
    default="rich",
    help="Output format.",
)
def index(*, project: Path | None, fmt: str) -> None:
    """Load every domain and print the record count of each."""
    from larasense.service import LaravelService

    session = _open_session(project)
    with LaravelService(session) as service:
        counts = service.load_all()

    if fmt == "json":
        click.echo(json.dumps(counts, ensure_ascii=False, indent=2))
        return

    from rich.console import Console
    from rich.table import Table

    table = Table(title=f"Laravel {session.project.laravel_version or '?'}")
    table.add_column("Domain", style="cyan")
    table.add_column("Records", justify="right")
    for domain, count in counts.items():
        table.add_row(domain, str(count) if count else "[dim]0[/]")
    Console().print(table)


# ---------------------------------------------------------------------------
# search
# ---------------------------------------------------------------------------


@main.command()
@click.argument("domain", type=click.Choice(DOMAINS))
@click.argument("query", default="")
@_project_option
@click.option("--json", "output_json", is_flag=True, default=False, help="Output as JSON.")
def search(*, domain: str, query: str, project: Path | None, output_json: bool) -> None:
    """Search one domain by case-insensitive substring."""
    session = _open_session(project)
    repo = session.repositories[domain]
    repo.load()
    results = repo.search(query)

    if output_json:
        click.echo(json.dumps([_record_dict(r) for r in results], ensure_ascii=False, indent=2))
        return
    for record in results:
        click.echo(_record_name(record))


# ---------------------------------------------------------------------------
# complete / define / diagnose
# ---------------------------------------------------------------------------


def _loaded_facade(project: Path | None) -> Any:
    from larasense.facade import QueryFacade
    from larasense.service import LaravelService

    session = _open_session(project)
    with LaravelService(session) as service:
        service.load_all()
    return QueryFacade(session)


def _read_source(file: Path) -> str:
    return file.read_text(encoding="utf-8", errors="replace")


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("line", type=click.IntRange(min=1))
@click.argument("column", type=click.IntRange(min=1))
@_project_option
@click.option("--json", "output_json", is_flag=True, default=False, help="Output as JSON.")
def complete(*, file: Path, line: int, column: int, project: Path | None, output_json: bool) -> None:
    """Completion candidates at LINE:COLUMN of FILE (1-based)."""
    from larasense.context.parser import Position

    facade = _loaded_facade(project)
    result = facade.complete(_read_source(file), Position(line - 1, column - 1))
    if result is None:
        if output_json:
            click.echo("null")
        return

    if output_json:
        data = {
            "category": result.category.value,
            "prefix": result.prefix,
            "items": [_record_dict(r) for r in result.records],
        }
        click.echo(json.dumps(data, ensure_ascii=False, indent=2))
        return
    for record in result.records:
        click.echo(_record_name(record))


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("line", type=click.IntRange(min=1))
@click.argument("column", type=click.IntRange(min=1))
@_project_option
def define(*, file: Path, line: int, column: int, project: Path | None) -> None:
    """Print the definition location of the reference at LINE:COLUMN."""
    from larasense.context.parser import Position

    facade = _loaded_facade(project)
    location = facade.definition(_read_source(file), Position(line - 1, column - 1))
    if location is None:
        click.echo("No definition found.", err=True)
        sys.exit(1)
    click.echo(f"{location.path}:{location.line + 1}:{location.character + 1}")


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@_project_option
@click.option("--strict", is_flag=True, default=False, help="Exit 1 if problems are found.")
def diagnose(*, file: Path, project: Path | None, strict: bool) -> None:
    """Report route, view and config references in FILE that do not resolve."""
    facade = _loaded_facade(project)
    problems = facade.diagnostics(_read_source(file))
    for d in problems:
        click.echo(f"{file}:{d.line + 1}:{d.start + 1}: {d.severity}: {d.message}")
    if strict and problems:
        sys.exit(1)


# ---------------------------------------------------------------------------
# watch
# ---------------------------------------------------------------------------


@main.command("watch")
@_project_option
@click.option(
    "--diagnose",
    "targets",
    multiple=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Re-run diagnostics on FILE whenever it changes (repeatable).",
)
def watch_cmd(*, project: Path | None, targets: tuple[Path, ...]) -> None:
    """Load every domain, then reload domains as their files change.

    Runs until interrupted with Ctrl+C.
    """
    from larasense.service import LaravelService

    def publish(uri: str, problems: list[Any]) -> None:
        if not problems:
            click.echo(f"{uri}: no problems")
        for d in problems:
            click.echo(f"{uri}:{d.line + 1}:{d.start + 1}: {d.severity}: {d.message}")

    session = _open_session(project)
    with LaravelService(session) as service:
        counts = service.load_all()
        click.echo(f"Loaded {sum(counts.values())} records in {len(counts)} domains.")

        scheduler = service.diagnostics_scheduler(publish)
        resolved = {str(t.resolve()): t for t in targets}
        for uri, target in resolved.items():
            scheduler.schedule(uri, _read_source(target))

        def on_change(path: str) -> None:
            target = resolved.get(str(Path(path).resolve()))
            if target is not None and target.is_file():
                scheduler.schedule(str(target.resolve()), _read_source(target))

        watched = service.start_watching(on_change)
        if not watched:
            click.echo("Nothing to watch.", err=True)
            sys.exit(1)
        click.echo(f"Watching {len(watched)} path(s). Press Ctrl+C to stop.")
        try:
            while True:
                time.sleep(1)
        except KeyboardInterrupt:
            click.echo("Stopped.")
