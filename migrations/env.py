"""Alembic environment configuration.

Uses the application's database configuration and SQLModel metadata
for migrations.
"""
from __future__ import annotations

from logging.config import fileConfig

from alembic import context
from sqlalchemy.engine import URL
from sqlmodel import SQLModel

from migrator_deps.db_models import Repository, RepositoryDependency  # noqa: F401
from migrator_deps.config import DatabaseConfig
from migrator_deps.db import create_engine_from_config

# Alembic Config object
config = context.config

# Configure logging from alembic.ini
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# SQLModel metadata for autogenerate support
target_metadata = SQLModel.metadata


def get_url() -> str:
    """Get database URL from environment configuration."""
    db_config = DatabaseConfig.from_env()
    if db_config.db_type == "sqlite":
        return f"sqlite:///{db_config.sqlite_path}"
    return URL.create(
        "postgresql+pg8000",
        username=db_config.user,
        password=db_config.password or None,
        host=db_config.host,
        port=db_config.port,
        database=db_config.database,
    ).render_as_string(hide_password=False)


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode.

    This generates SQL scripts without connecting to the database.
    """
    context.configure(
        url=get_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode.

    Connects to the database and applies migrations directly.
    """
    connectable = create_engine_from_config(DatabaseConfig.from_env())

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            render_as_batch=connection.dialect.name == "sqlite",
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
