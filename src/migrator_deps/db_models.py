from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import Column, Text
from sqlmodel import Field, SQLModel


class Repository(SQLModel, table=True):
    """A repository tracked by the migration.

    A dependency whose target `full_name` matches a row here is "local".
    """
    id: Optional[int] = Field(default=None, primary_key=True)
    full_name: str = Field(index=True, unique=True)
    source_url: str = Field(default="")
    status: str = Field(default="pending")


class RepositoryDependency(SQLModel, table=True):
    """One detection of `repository_id` depending on `dependency_full_name`."""
    id: Optional[int] = Field(default=None, primary_key=True)
    repository_id: int = Field(foreign_key="repository.id", index=True)
    dependency_full_name: str = Field(index=True)
    dependency_type: str
    dependency_url: str = Field(default="")
    is_local: bool = Field(default=False)
    discovered_at: Optional[datetime] = Field(default=None)
    # "metadata" is reserved on declarative classes, so the attribute is renamed.
    dep_metadata: Optional[str] = Field(default=None, sa_column=Column("metadata", Text, nullable=True))
