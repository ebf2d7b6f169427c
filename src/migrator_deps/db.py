"""Database engine creation and initialization.

Supports both SQLite and PostgreSQL.
"""
from __future__ import annotations

from pathlib import Path

from sqlalchemy.engine import URL, Engine
from sqlalchemy.pool import QueuePool
from sqlmodel import SQLModel, create_engine

from migrator_deps.config import DatabaseConfig


def create_sqlite_engine(db_path: Path) -> Engine:
    """Create a SQLite engine.

    Args:
        db_path: Path to the SQLite database file.

    Returns:
        SQLAlchemy Engine connected to the SQLite database.
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)
    return create_engine(
        f"sqlite:///{db_path}",
        echo=False,
        connect_args={"check_same_thread": False},
    )


def create_postgresql_engine(config: DatabaseConfig) -> Engine:
    """Create a PostgreSQL engine using the pg8000 driver.

    Args:
        config: Database configuration with host and credentials.

    Returns:
        SQLAlchemy Engine connected to PostgreSQL.
    """
    url = URL.create(
        "postgresql+pg8000",
        username=config.user,
        password=config.password or None,
        host=config.host,
        port=config.port,
        database=config.database,
    )
    return create_engine(
        url,
        echo=False,
        poolclass=QueuePool,
        pool_size=5,
        max_overflow=10,
        pool_timeout=30,
        pool_recycle=1800,
        pool_pre_ping=True,
    )


def create_engine_from_config(config: DatabaseConfig) -> Engine:
    """Create a database engine based on configuration.

    Raises:
        ValueError: If the database type is not supported.
    """
    config.validate()

    if config.db_type == "sqlite":
        return create_sqlite_engine(config.sqlite_path)
    elif config.db_type == "postgresql":
        return create_postgresql_engine(config)
    else:
        raise ValueError(f"Unsupported database type: {config.db_type}")


def init_db(engine: Engine) -> None:
    """Initialize database schema using SQLModel metadata.

    Note: This is primarily for development/testing.
    Production should use Alembic migrations.
    """
    # Register tables on SQLModel.metadata.
    from migrator_deps import db_models  # noqa: F401

    SQLModel.metadata.create_all(engine)
