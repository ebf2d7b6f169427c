"""CSV and JSON rendering of dependency lists for download."""

from __future__ import annotations

import csv
import io
import json
from collections.abc import Iterable, Sequence
from typing import Any

from migrator_deps.exceptions import ExportFormatError
from migrator_deps.models import (
    Direction,
    DependentRepository,
    ExportRow,
    MergedDependency,
    RawDependencyRecord,
)
from migrator_deps.store import DependencyPair

EXPORT_FORMATS = ("csv", "json")

EXPORT_COLUMNS = ["repository", "dependency_full_name", "direction", "dependency_type", "dependency_url"]

MERGED_COLUMNS = [
    "dependency_full_name",
    "dependency_url",
    "is_local",
    "detection_methods",
    "repository_id",
]

MEDIA_TYPES = {
    "csv": "text/csv; charset=utf-8",
    "json": "application/json",
}


def check_format(fmt: str | None) -> str:
    """Normalize an export format; an empty value means CSV.

    Raises:
        ExportFormatError: If the format is neither csv nor json.
    """
    value = (fmt or "csv").strip().lower()
    if value not in EXPORT_FORMATS:
        raise ExportFormatError(f"Unsupported export format: {fmt!r} (expected csv or json)")
    return value


def export_filename(full_name: str, fmt: str) -> str:
    """`org/name` -> `org-name-dependencies.<fmt>`."""
    return f"{full_name.replace('/', '-')}-dependencies.{check_format(fmt)}"


def _csv(header: Sequence[str], rows: Iterable[Sequence[Any]]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(header)
    for row in rows:
        writer.writerow(["" if v is None else v for v in row])
    return buf.getvalue()


def merged_rows(merged: Iterable[MergedDependency]) -> list[dict[str, Any]]:
    return [
        {
            "dependency_full_name": d.dependency_full_name,
            "dependency_url": d.dependency_url,
            "is_local": d.is_local,
            "detection_methods": list(d.detection_methods),
            "repository_id": d.repository_id,
        }
        for d in merged
    ]


def render_merged(merged: Iterable[MergedDependency], fmt: str) -> str:
    """Render the merged dependency list (the client-side export).

    In CSV, detection methods are joined with "; ".
    """
    fmt = check_format(fmt)
    rows = merged_rows(merged)
    if fmt == "json":
        return json.dumps(rows, indent=2)
    return _csv(
        MERGED_COLUMNS,
        (
            [
                r["dependency_full_name"],
                r["dependency_url"],
                "true" if r["is_local"] else "false",
                "; ".join(r["detection_methods"]),
                r["repository_id"],
            ]
            for r in rows
        ),
    )


def render_export_rows(rows: Iterable[ExportRow], fmt: str) -> str:
    fmt = check_format(fmt)
    if fmt == "json":
        return json.dumps([r.model_dump(mode="json") for r in rows])
    return _csv(
        EXPORT_COLUMNS,
        (
            [r.repository, r.dependency_full_name, r.direction, r.dependency_type, r.dependency_url]
            for r in rows
        ),
    )


def pair_export_rows(pairs: Sequence[DependencyPair]) -> list[ExportRow]:
    """Both directions of every local pair: all `depends_on` rows, then all `depended_by` rows."""
    rows = [
        ExportRow(
            repository=p.source_repo,
            dependency_full_name=p.target_repo,
            direction=Direction.DEPENDS_ON,
            dependency_type=p.dependency_type,
            dependency_url=p.dependency_url,
        )
        for p in pairs
    ]
    rows.extend(
        ExportRow(
            repository=p.target_repo,
            dependency_full_name=p.source_repo,
            direction=Direction.DEPENDED_BY,
            dependency_type=p.dependency_type,
            dependency_url=p.source_repo_url,
        )
        for p in pairs
    )
    return rows


def repository_export_rows(
    full_name: str,
    dependencies: Iterable[RawDependencyRecord],
    dependents: Iterable[tuple[DependentRepository, Iterable[RawDependencyRecord]]],
) -> list[ExportRow]:
    """Export rows for a single repository.

    Args:
        full_name: The exported repository.
        dependencies: Its own dependency records; only local ones are exported.
        dependents: Each dependent repository with its dependency records;
            local records targeting `full_name` become `depended_by` rows.
    """
    rows = [
        ExportRow(
            repository=full_name,
            dependency_full_name=dep.dependency_full_name,
            direction=Direction.DEPENDS_ON,
            dependency_type=dep.dependency_type,
            dependency_url=dep.dependency_url,
        )
        for dep in dependencies
        if dep.is_local
    ]
    for dependent, records in dependents:
        for dep in records:
            if dep.dependency_full_name == full_name and dep.is_local:
                rows.append(
                    ExportRow(
                        repository=full_name,
                        dependency_full_name=dependent.full_name,
                        direction=Direction.DEPENDED_BY,
                        dependency_type=dep.dependency_type,
                        dependency_url=dependent.source_url,
                    )
                )
    return rows
