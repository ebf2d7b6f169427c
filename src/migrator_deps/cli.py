"""Typer CLI entry point for Migrator Deps."""

from __future__ import annotations

import json
from enum import Enum
from pathlib import Path
from typing import Annotated, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from migrator_deps.aggregator import aggregate
from migrator_deps.client import MigratorClient
from migrator_deps.config import ApiConfig
from migrator_deps.db import create_sqlite_engine, init_db
from migrator_deps.db_models import Repository
from migrator_deps.exceptions import MigratorDepsError
from migrator_deps.export import export_filename, render_merged
from migrator_deps.graph import build_graph, graph_payload
from migrator_deps.models import RawDependencyRecord, ScopeFilter
from migrator_deps.scope import DependencyView
from migrator_deps.store import (
    ensure_repository,
    get_all_local_dependency_pairs,
    save_repository_dependencies,
    update_local_dependency_flags,
)
from migrator_deps.utils import setup_logging
from migrator_deps.visualize import (
    build_dependencies_table,
    build_dependency_tree,
    build_dependents_table,
    build_summary_table,
)
from migrator_deps.visualize_html import export_pyvis

app = typer.Typer(add_completion=False, help="Inspect repository dependencies of a migration.")
console = Console()


class ExportFormat(str, Enum):
    CSV = "csv"
    JSON = "json"


ApiUrlOption = Annotated[
    Optional[str],
    typer.Option("--api-url", help="Migrator server URL (default: $MIGDEPS_API_URL)."),
]
DbOption = Annotated[Path, typer.Option("--db", help="SQLite db path.")]


def _client(api_url: str | None) -> MigratorClient:
    config = ApiConfig.from_env()
    if api_url:
        config.base_url = api_url.rstrip("/")
    config.validate()
    return MigratorClient(config)


def _fail(message: str) -> typer.Exit:
    console.print(f"[bold red]Error:[/bold red] {message}")
    return typer.Exit(code=1)


@app.callback()
def _main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging.")] = False,
) -> None:
    setup_logging(verbose=verbose)


@app.command()
def show(
    full_name: Annotated[str, typer.Argument(help="Repository full name, e.g. org/repo.")],
    scope: Annotated[ScopeFilter, typer.Option("--scope", help="Which dependencies to list.")] = ScopeFilter.ALL,
    page: Annotated[int, typer.Option("--page", min=1, help="Page to show (20 per page).")] = 1,
    tree: Annotated[bool, typer.Option("--tree", help="Print a tree instead of a paged table.")] = False,
    api_url: ApiUrlOption = None,
) -> None:
    """Fetch, de-duplicate and list the dependencies of a repository."""
    try:
        with _client(api_url) as client:
            response = client.get_repository_dependencies(full_name)
    except (MigratorDepsError, ValueError) as exc:
        raise _fail(str(exc)) from None

    if not response.dependencies:
        console.print(f"[bold]No dependencies found[/bold] for {full_name}.")
        console.print(
            "[dim]No submodules, workflow references, dependency graph or package "
            "relationships were detected.[/dim]"
        )
        return

    view = DependencyView(aggregate(response.dependencies), scope=scope)
    if tree:
        # The tree shows every page of the selected scope.
        console.print(build_dependency_tree(full_name, view.filtered))
        return

    view.page = page
    summary = view.summary

    console.print(build_summary_table(summary, raw_total=len(response.dependencies)))
    if summary.local > 0:
        console.print(
            f"[yellow]This repository depends on {summary.local} repository(ies) in your enterprise. "
            "Consider migrating them in the same batch.[/yellow]"
        )

    filtered = view.filtered
    if not filtered:
        label = "" if view.scope is ScopeFilter.ALL else f"{view.scope.value} "
        console.print(f"[dim]No {label}dependencies found[/dim]")
        return

    items = view.items
    title = f"{view.scope.value.capitalize()} dependencies ({len(filtered)})"
    console.print(build_dependencies_table(items, title=title, start=(view.page - 1) * view.page_size + 1))
    console.print(f"[dim]Page {view.page}/{view.page_count}[/dim]")


@app.command()
def dependents(
    full_name: Annotated[str, typer.Argument(help="Repository full name, e.g. org/repo.")],
    api_url: ApiUrlOption = None,
) -> None:
    """Show which repositories depend on FULL_NAME."""
    try:
        with _client(api_url) as client:
            response = client.get_repository_dependents(full_name)
    except (MigratorDepsError, ValueError) as exc:
        raise _fail(str(exc)) from None

    if not response.dependents:
        console.print(f"[dim]No repositories depend on {full_name}.[/dim]")
        return
    console.print(build_dependents_table(response.target or full_name, response.dependents))


@app.command()
def export(
    full_name: Annotated[str, typer.Argument(help="Repository full name, e.g. org/repo.")],
    fmt: Annotated[ExportFormat, typer.Option("--format", help="Export format.")] = ExportFormat.CSV,
    out: Annotated[Path, typer.Option("--out", help="Output directory.")] = Path("."),
    merged: Annotated[
        bool,
        typer.Option("--merged", help="Write the de-duplicated list instead of the server export."),
    ] = False,
    api_url: ApiUrlOption = None,
) -> None:
    """Download the dependency export of a repository."""
    try:
        with _client(api_url) as client:
            if merged:
                response = client.get_repository_dependencies(full_name)
                out.mkdir(parents=True, exist_ok=True)
                path = out / export_filename(full_name, fmt.value)
                path.write_text(render_merged(aggregate(response.dependencies), fmt.value), encoding="utf-8")
            else:
                path = client.download_repository_dependencies(full_name, out, fmt.value)
    except (MigratorDepsError, ValueError, OSError) as exc:
        raise _fail(str(exc)) from None

    console.print(f"[green]Wrote[/green] {path}")


def _load_records(path: Path) -> list[RawDependencyRecord]:
    data = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(data, dict):
        data = data.get("dependencies", [])
    if not isinstance(data, list):
        raise ValueError(f"Expected a list of dependency records in {path}")
    return [RawDependencyRecord.model_validate(item) for item in data]


@app.command()
def ingest(
    full_name: Annotated[str, typer.Argument(help="Repository owning the dependencies.")],
    records: Annotated[
        Path,
        typer.Argument(help="JSON file: a list of dependency records or {\"dependencies\": [...]}."),
    ],
    source_url: Annotated[str, typer.Option("--source-url", help="Source URL of the repository.")] = "",
    db: DbOption = Path("dependencies.db"),
) -> None:
    """Replace the stored dependencies of a repository in the local SQLite store."""
    try:
        deps = _load_records(records)
        engine = create_sqlite_engine(db)
        init_db(engine)
        with Session(engine) as session:
            repo = ensure_repository(session, full_name, source_url=source_url)
            saved = save_repository_dependencies(session, repo.id, deps)
            update_local_dependency_flags(session)
            session.commit()
    except (OSError, ValueError, ValidationError, SQLAlchemyError) as exc:
        raise _fail(str(exc)) from None

    console.print(f"[green]Ingested[/green] {saved} dependency record(s) for [bold]{full_name}[/bold] into {db}.")


@app.command()
def graph(
    db: DbOption = Path("dependencies.db"),
    dependency_type: Annotated[
        Optional[list[str]],
        typer.Option("--type", help="Only keep these dependency types (repeatable)."),
    ] = None,
    html: Annotated[Optional[Path], typer.Option("--html", help="Also write an HTML graph here.")] = None,
) -> None:
    """Summarize the local dependency graph stored in SQLite."""
    try:
        engine = create_sqlite_engine(db)
        init_db(engine)
        with Session(engine) as session:
            pairs = get_all_local_dependency_pairs(session, dependency_type)
            statuses = {r.full_name: r.status for r in session.exec(select(Repository)).all()}
    except (OSError, SQLAlchemyError) as exc:
        raise _fail(str(exc)) from None

    g = build_graph(pairs)
    stats = graph_payload(g, statuses=statuses)["stats"]
    console.print(f"Repositories with local dependencies: [bold]{stats['total_repos_with_dependencies']}[/bold]")
    console.print(f"Local dependencies: [bold]{stats['total_local_dependencies']}[/bold]")
    console.print(f"Circular dependencies: [bold]{stats['circular_dependency_count']}[/bold]")

    if html is not None:
        console.print(f"[green]Wrote[/green] {export_pyvis(g, html)}")


def main() -> None:
    """Console-script entry point."""
    app()
