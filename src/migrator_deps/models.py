"""Pydantic models for repository dependencies."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class DependencyType(str, Enum):
    """How a dependency relationship was detected."""

    SUBMODULE = "submodule"
    WORKFLOW = "workflow"
    DEPENDENCY_GRAPH = "dependency_graph"
    PACKAGE = "package"


class ScopeFilter(str, Enum):
    """Which merged dependencies to show."""

    ALL = "all"
    LOCAL = "local"
    EXTERNAL = "external"


class Direction(str, Enum):
    DEPENDS_ON = "depends_on"
    DEPENDED_BY = "depended_by"


class RawDependencyRecord(BaseModel):
    """One dependency detection event for a repository.

    The same target repository may show up in several records, one per
    detection method (or even several per method).
    """

    model_config = ConfigDict(use_enum_values=True)

    id: int | None = None
    repository_id: int | None = None
    dependency_full_name: str = Field(..., min_length=1)
    dependency_url: str = ""
    dependency_type: DependencyType
    is_local: bool = False
    discovered_at: datetime | None = None
    metadata: str | None = None


class MergedDependency(RawDependencyRecord):
    """All detections of a single target repository, merged.

    Field values come from the first-seen record, except `is_local` which is
    true as soon as any detection reported the target as local.
    """

    detection_methods: list[str] = Field(default_factory=list)
    all_metadata: list[dict[str, Any]] = Field(default_factory=list)


class DependencySummary(BaseModel):
    """Counts over a dependency list.

    `by_type` is a multi-count: an entry detected by two methods increments
    both counters.
    """

    total: int = 0
    local: int = 0
    external: int = 0
    by_type: dict[str, int] = Field(default_factory=dict)


class DependenciesResponse(BaseModel):
    """Payload of `GET /repositories/{full_name}/dependencies`."""

    dependencies: list[RawDependencyRecord] = Field(default_factory=list)
    summary: DependencySummary = Field(default_factory=DependencySummary)


class DependentRepository(BaseModel):
    """A repository that depends on the requested one."""

    id: int
    full_name: str
    status: str = ""
    source_url: str = ""
    dependency_types: list[str] = Field(default_factory=list)


class DependentsResponse(BaseModel):
    """Payload of `GET /repositories/{full_name}/dependents`."""

    dependents: list[DependentRepository] = Field(default_factory=list)
    total: int = 0
    target: str = ""


class ExportRow(BaseModel):
    """A row of the dependency export (one direction of one relationship)."""

    model_config = ConfigDict(use_enum_values=True)

    repository: str
    dependency_full_name: str
    direction: Direction
    dependency_type: str
    dependency_url: str = ""


class DependencyIngest(BaseModel):
    """Body of `POST /repositories/{full_name}/dependencies`.

    Replaces the stored dependency records of the repository.
    """

    source_url: str = ""
    status: str | None = None
    dependencies: list[RawDependencyRecord] = Field(default_factory=list)
