from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Query
from fastapi.responses import JSONResponse, Response
from sqlalchemy.engine import Engine
from sqlmodel import Session, select

from migrator_deps.aggregator import summarize_raw
from migrator_deps.config import DatabaseConfig
from migrator_deps.db import create_engine_from_config, init_db
from migrator_deps.db_models import Repository
from migrator_deps.exceptions import ExportFormatError, RepositoryNotFoundError
from migrator_deps.export import (
    MEDIA_TYPES,
    check_format,
    export_filename,
    pair_export_rows,
    render_export_rows,
    repository_export_rows,
)
from migrator_deps.graph import build_graph, graph_payload
from migrator_deps.models import (
    DependenciesResponse,
    DependencyIngest,
    DependentRepository,
    DependentsResponse,
)
from migrator_deps.store import (
    ensure_repository,
    get_all_local_dependency_pairs,
    get_dependencies_by_full_name,
    get_dependent_repositories,
    get_repository,
    get_repository_dependencies,
    save_repository_dependencies,
    update_local_dependency_flags,
)

logger = logging.getLogger(__name__)

# Database configuration from environment
db_config = DatabaseConfig.from_env()

app = FastAPI(title="Migrator Deps")

_cached_engine: Engine | None = None


@app.on_event("startup")
def _startup() -> None:
    # Note: In production, schema is managed by Alembic migrations.
    # init_db is kept for development convenience with SQLite.
    if db_config.db_type == "sqlite":
        init_db(_engine())


def _engine() -> Engine:
    """Return the engine for the configured database, created on first use."""
    global _cached_engine
    if _cached_engine is None:
        _cached_engine = create_engine_from_config(db_config)
    return _cached_engine


def _error(status_code: int, error: str, message: str) -> JSONResponse:
    return JSONResponse({"error": error, "message": message}, status_code=status_code)


def _split_types(dependency_type: str | None) -> list[str]:
    return [t.strip() for t in (dependency_type or "").split(",") if t.strip()]


def _dependents(session: Session, full_name: str) -> list[tuple[DependentRepository, list]]:
    """Dependent repositories of `full_name`, each with its own dependency records.

    Only repositories that really reference `full_name` are kept, and each
    one lists the distinct dependency types of those references.
    """
    result = []
    for repo in get_dependent_repositories(session, full_name):
        records = get_repository_dependencies(session, repo.id)
        types: list[str] = []
        for rec in records:
            if rec.dependency_full_name == full_name and rec.dependency_type not in types:
                types.append(rec.dependency_type)
        if not types:
            continue
        result.append(
            (
                DependentRepository(
                    id=repo.id,
                    full_name=repo.full_name,
                    status=repo.status,
                    source_url=repo.source_url,
                    dependency_types=types,
                ),
                records,
            )
        )
    return result


@app.get("/api/v1/repositories/{full_name:path}/dependencies/export")
def export_repository_dependencies(full_name: str, format: str | None = None) -> Response:
    try:
        fmt = check_format(format)
    except ExportFormatError as exc:
        return _error(400, "invalid_format", str(exc))

    with Session(_engine()) as session:
        try:
            dependencies = get_dependencies_by_full_name(session, full_name)
        except RepositoryNotFoundError:
            return _error(404, "not_found", f"Repository not found: {full_name}")
        rows = repository_export_rows(full_name, dependencies, _dependents(session, full_name))

    headers = {"Content-Disposition": f"attachment; filename={export_filename(full_name, fmt)}"}
    return Response(render_export_rows(rows, fmt), media_type=MEDIA_TYPES[fmt], headers=headers)


@app.get("/api/v1/repositories/{full_name:path}/dependencies", response_model=None)
def repository_dependencies(full_name: str) -> dict[str, Any] | JSONResponse:
    """Raw dependency records of a repository with a raw-count summary."""
    with Session(_engine()) as session:
        try:
            dependencies = get_dependencies_by_full_name(session, full_name)
        except RepositoryNotFoundError:
            logger.error("Failed to get repository dependencies: repo=%s not found", full_name)
            return _error(404, "not_found", f"Repository not found: {full_name}")

    response = DependenciesResponse(dependencies=dependencies, summary=summarize_raw(dependencies))
    return response.model_dump(mode="json")


@app.post("/api/v1/repositories/{full_name:path}/dependencies", response_model=None)
def ingest_repository_dependencies(full_name: str, body: DependencyIngest) -> dict[str, Any]:
    """Replace the stored dependencies of a repository.

    The repository is created when missing; local flags are recomputed for
    every stored record afterwards, since a new repository can turn existing
    dependencies local.
    """
    with Session(_engine()) as session:
        repo = ensure_repository(session, full_name, source_url=body.source_url, status=body.status)
        saved = save_repository_dependencies(session, repo.id, body.dependencies)
        changed = update_local_dependency_flags(session)
        session.commit()

    logger.info("Ingested %d dependencies for %s (%d local flags updated)", saved, full_name, changed)
    return {"repository": full_name, "saved": saved, "local_flags_updated": changed}


@app.get("/api/v1/repositories/{full_name:path}/dependents", response_model=None)
def repository_dependents(full_name: str) -> dict[str, Any] | JSONResponse:
    with Session(_engine()) as session:
        if get_repository(session, full_name) is None:
            return _error(404, "not_found", f"Repository not found: {full_name}")
        dependents = [d for d, _ in _dependents(session, full_name)]

    response = DependentsResponse(dependents=dependents, total=len(dependents), target=full_name)
    return response.model_dump(mode="json")


@app.get("/api/v1/dependencies/graph", response_class=JSONResponse)
def dependency_graph(dependency_type: str | None = Query(None)) -> dict[str, Any]:
    """Enterprise-wide graph of local dependencies.

    `dependency_type` is an optional comma separated list of types to keep.
    """
    with Session(_engine()) as session:
        pairs = get_all_local_dependency_pairs(session, _split_types(dependency_type))
        statuses = {r.full_name: r.status for r in session.exec(select(Repository)).all()}

    return graph_payload(build_graph(pairs), statuses=statuses)


@app.get("/api/v1/dependencies/export")
def export_all_dependencies(format: str | None = None, dependency_type: str | None = None) -> Response:
    try:
        fmt = check_format(format)
    except ExportFormatError as exc:
        return _error(400, "invalid_format", str(exc))

    with Session(_engine()) as session:
        pairs = get_all_local_dependency_pairs(session, _split_types(dependency_type))

    headers = {"Content-Disposition": f"attachment; filename=dependencies.{fmt}"}
    return Response(
        render_export_rows(pair_export_rows(pairs), fmt),
        media_type=MEDIA_TYPES[fmt],
        headers=headers,
    )
