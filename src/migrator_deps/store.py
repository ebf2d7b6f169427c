"""Read/write access to stored repositories and dependency records."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlmodel import Session, col, select

from migrator_deps.db_models import Repository, RepositoryDependency
from migrator_deps.exceptions import RepositoryNotFoundError
from migrator_deps.models import RawDependencyRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DependencyPair:
    """A local dependency: `source_repo` depends on `target_repo`."""

    source_repo: str
    target_repo: str
    dependency_type: str
    dependency_url: str
    source_repo_url: str


def to_record(row: RepositoryDependency) -> RawDependencyRecord:
    return RawDependencyRecord(
        id=row.id,
        repository_id=row.repository_id,
        dependency_full_name=row.dependency_full_name,
        dependency_url=row.dependency_url,
        dependency_type=row.dependency_type,
        is_local=row.is_local,
        discovered_at=row.discovered_at,
        metadata=row.dep_metadata,
    )


def get_repository(session: Session, full_name: str) -> Repository | None:
    return session.exec(select(Repository).where(Repository.full_name == full_name)).first()


def ensure_repository(
    session: Session,
    full_name: str,
    *,
    source_url: str = "",
    status: str | None = None,
) -> Repository:
    """Return the repository row for `full_name`, creating it when missing."""
    repo = get_repository(session, full_name)
    if repo is None:
        repo = Repository(full_name=full_name, source_url=source_url, status=status or "pending")
        session.add(repo)
        session.flush()
        return repo
    if source_url:
        repo.source_url = source_url
    if status:
        repo.status = status
    session.add(repo)
    return repo


def save_repository_dependencies(
    session: Session,
    repository_id: int,
    records: Iterable[RawDependencyRecord],
) -> int:
    """Replace all stored dependencies of a repository with `records`.

    Returns the number of rows written. The caller commits.
    """
    for row in session.exec(
        select(RepositoryDependency).where(RepositoryDependency.repository_id == repository_id)
    ).all():
        session.delete(row)

    now = datetime.now(timezone.utc)
    count = 0
    for rec in records:
        session.add(
            RepositoryDependency(
                repository_id=repository_id,
                dependency_full_name=rec.dependency_full_name,
                dependency_type=rec.dependency_type,
                dependency_url=rec.dependency_url,
                is_local=rec.is_local,
                discovered_at=rec.discovered_at or now,
                dep_metadata=rec.metadata,
            )
        )
        count += 1
    session.flush()
    logger.debug("Saved %d dependencies for repository %s", count, repository_id)
    return count


def get_repository_dependencies(session: Session, repository_id: int) -> list[RawDependencyRecord]:
    """Dependencies of a repository, ordered by type then target name."""
    rows = session.exec(
        select(RepositoryDependency)
        .where(RepositoryDependency.repository_id == repository_id)
        .order_by(RepositoryDependency.dependency_type, RepositoryDependency.dependency_full_name)
    ).all()
    return [to_record(r) for r in rows]


def get_dependencies_by_full_name(session: Session, full_name: str) -> list[RawDependencyRecord]:
    """Dependencies of the repository named `full_name`.

    Raises:
        RepositoryNotFoundError: If the repository is not tracked.
    """
    repo = get_repository(session, full_name)
    if repo is None:
        raise RepositoryNotFoundError(f"repository not found: {full_name}")
    return get_repository_dependencies(session, repo.id)


def get_dependent_repositories(session: Session, dependency_full_name: str) -> list[Repository]:
    """Repositories having at least one dependency on `dependency_full_name`."""
    stmt = (
        select(Repository)
        .join(RepositoryDependency, col(RepositoryDependency.repository_id) == col(Repository.id))
        .where(RepositoryDependency.dependency_full_name == dependency_full_name)
        .order_by(Repository.full_name)
        .distinct()
    )
    return list(session.exec(stmt).all())


def update_local_dependency_flags(session: Session) -> int:
    """Mark every dependency local iff its target is a tracked repository.

    Returns the number of rows whose flag changed.
    """
    tracked = set(session.exec(select(Repository.full_name)).all())
    changed = 0
    for row in session.exec(select(RepositoryDependency)).all():
        is_local = row.dependency_full_name in tracked
        if row.is_local != is_local:
            row.is_local = is_local
            session.add(row)
            changed += 1
    session.flush()
    return changed


def get_all_local_dependency_pairs(
    session: Session,
    dependency_types: Iterable[str] | None = None,
) -> list[DependencyPair]:
    """All local dependency relationships, optionally limited to some types."""
    types = {t.strip() for t in (dependency_types or []) if (t or "").strip()}

    stmt = (
        select(RepositoryDependency, Repository)
        .join(Repository, col(RepositoryDependency.repository_id) == col(Repository.id))
        .where(RepositoryDependency.is_local == True)  # noqa: E712
        .order_by(Repository.full_name, RepositoryDependency.dependency_full_name)
    )
    if types:
        stmt = stmt.where(col(RepositoryDependency.dependency_type).in_(sorted(types)))

    return [
        DependencyPair(
            source_repo=repo.full_name,
            target_repo=dep.dependency_full_name,
            dependency_type=dep.dependency_type,
            dependency_url=dep.dependency_url,
            source_repo_url=repo.source_url,
        )
        for dep, repo in session.exec(stmt).all()
    ]
