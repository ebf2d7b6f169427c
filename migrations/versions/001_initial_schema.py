"""Initial schema - Create Repository and RepositoryDependency tables

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-17

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "repository",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("full_name", sa.String(), nullable=False),
        sa.Column("source_url", sa.String(), nullable=False),
        sa.Column("status", sa.String(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_repository_full_name"), "repository", ["full_name"], unique=True)

    op.create_table(
        "repositorydependency",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("repository_id", sa.Integer(), nullable=False),
        sa.Column("dependency_full_name", sa.String(), nullable=False),
        sa.Column("dependency_type", sa.String(), nullable=False),
        sa.Column("dependency_url", sa.String(), nullable=False),
        sa.Column("is_local", sa.Boolean(), nullable=False),
        sa.Column("discovered_at", sa.DateTime(), nullable=True),
        sa.Column("metadata", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(["repository_id"], ["repository.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_repositorydependency_repository_id"),
        "repositorydependency",
        ["repository_id"],
        unique=False,
    )
    op.create_index(
        op.f("ix_repositorydependency_dependency_full_name"),
        "repositorydependency",
        ["dependency_full_name"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index(op.f("ix_repositorydependency_dependency_full_name"), table_name="repositorydependency")
    op.drop_index(op.f("ix_repositorydependency_repository_id"), table_name="repositorydependency")
    op.drop_table("repositorydependency")

    op.drop_index(op.f("ix_repository_full_name"), table_name="repository")
    op.drop_table("repository")
