"""Rich rendering utilities for repository dependencies."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from rich.markup import escape
from rich.table import Table
from rich.tree import Tree

from migrator_deps.models import DependencySummary, DependentRepository, MergedDependency

# Metadata fields shown to the user, in display order.
METADATA_LABELS = (
    ("path", "Path"),
    ("branch", "Branch"),
    ("workflow_file", "Workflow"),
    ("ref", "Ref"),
    ("manifest", "Manifest"),
    ("package_manager", "Manager"),
    ("value", "Value"),
)


def method_label(method: str) -> str:
    """`dependency_graph` -> `Dependency graph`."""
    return method.replace("_", " ").capitalize()


def describe_metadata(meta: dict[str, Any], *, show_type: bool) -> str:
    parts = [f"{label}: {escape(str(meta[key]))}" for key, label in METADATA_LABELS if meta.get(key)]
    if show_type and meta.get("type"):
        parts.insert(0, f"({escape(str(meta['type']))})")
    return " ".join(parts)


def build_summary_table(summary: DependencySummary, *, raw_total: int | None = None) -> Table:
    """Summary cards as a two-column table.

    `raw_total` is the number of raw detections; it is only shown when it
    exceeds the merged total.
    """
    table = Table(title="Dependency summary", show_header=False)
    table.add_column("Metric", style="dim")
    table.add_column("Count", justify="right")

    total = str(summary.total)
    if raw_total is not None and raw_total > summary.total:
        total += f" ({raw_total} raw detections)"
    table.add_row("Total dependencies", total)
    table.add_row("Local (within enterprise)", f"[green]{summary.local}[/green]")
    table.add_row("External (outside enterprise)", f"[yellow]{summary.external}[/yellow]")
    for method, count in summary.by_type.items():
        table.add_row(method_label(method), str(count))
    return table


def build_dependencies_table(
    items: Sequence[MergedDependency],
    *,
    title: str,
    start: int = 1,
) -> Table:
    """Merged dependencies of one page; `start` is the row number of the first item."""
    table = Table(title=title)
    table.add_column("#", style="dim", width=6)
    table.add_column("Dependency")
    table.add_column("Scope")
    table.add_column("Detected by")
    table.add_column("Details")

    for i, dep in enumerate(items, start=start):
        details = "\n".join(
            describe_metadata(meta, show_type=len(dep.all_metadata) > 1) for meta in dep.all_metadata
        )
        table.add_row(
            str(i),
            escape(dep.dependency_full_name),
            "[green]local[/green]" if dep.is_local else "[yellow]external[/yellow]",
            ", ".join(method_label(m) for m in dep.detection_methods),
            details or "[dim]-[/dim]",
        )
    return table


def build_dependency_tree(full_name: str, merged: Sequence[MergedDependency]) -> Tree:
    """Build a Rich Tree of merged dependencies grouped by locality."""
    root = Tree(f"[bold]{full_name}[/bold]")
    if not merged:
        root.add("[dim]No dependencies found[/dim]")
        return root

    for label, local in (("local", True), ("external", False)):
        deps = [d for d in merged if d.is_local is local]
        if not deps:
            continue
        branch = root.add(label)
        for dep in deps:
            branch.add(f"{escape(dep.dependency_full_name)} [dim]({', '.join(dep.detection_methods)})[/dim]")
    return root


def build_dependents_table(target: str, dependents: Sequence[DependentRepository]) -> Table:
    table = Table(title=f"Repositories depending on {target}")
    table.add_column("#", style="dim", width=6)
    table.add_column("Repository")
    table.add_column("Status")
    table.add_column("Dependency types")
    for i, d in enumerate(dependents, start=1):
        table.add_row(str(i), escape(d.full_name), escape(d.status), ", ".join(d.dependency_types))
    return table
