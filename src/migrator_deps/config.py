"""Configuration module.

Covers the local dependency store (SQLite for development, PostgreSQL for
shared deployments) and the migrator API the client talks to.
Configuration is read from environment variables.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


@dataclass
class DatabaseConfig:
    """Database configuration container.

    Attributes:
        db_type: Database type, either "sqlite" or "postgresql"
        sqlite_path: Path to SQLite database file (only for sqlite)
        host: PostgreSQL host name
        port: PostgreSQL port
        database: Database name
        user: Database user
        password: Database password
    """

    db_type: str  # "sqlite" or "postgresql"

    # SQLite config
    sqlite_path: Path | None = None

    # PostgreSQL config
    host: str | None = None
    port: int = 5432
    database: str | None = None
    user: str | None = None
    password: str | None = None

    @classmethod
    def from_env(cls) -> "DatabaseConfig":
        """Create configuration from environment variables.

        Environment variables:
            MIGDEPS_DB_TYPE: "sqlite" or "postgresql" (default: "sqlite")
            MIGDEPS_DB_PATH: SQLite database path (default: "dependencies.db")
            MIGDEPS_DB_HOST: PostgreSQL host
            MIGDEPS_DB_PORT: PostgreSQL port (default: 5432)
            MIGDEPS_DB_NAME: Database name (default: "migrator")
            MIGDEPS_DB_USER: Database user
            MIGDEPS_DB_PASSWORD: Database password
        """
        db_type = os.getenv("MIGDEPS_DB_TYPE", "sqlite").lower()

        if db_type == "sqlite":
            return cls(
                db_type="sqlite",
                sqlite_path=Path(os.getenv("MIGDEPS_DB_PATH", "dependencies.db")).resolve(),
            )

        return cls(
            db_type=db_type,
            host=os.getenv("MIGDEPS_DB_HOST"),
            port=int(os.getenv("MIGDEPS_DB_PORT", "5432")),
            database=os.getenv("MIGDEPS_DB_NAME", "migrator"),
            user=os.getenv("MIGDEPS_DB_USER"),
            password=os.getenv("MIGDEPS_DB_PASSWORD"),
        )

    def validate(self) -> None:
        """Validate the configuration.

        Raises:
            ValueError: If required configuration is missing.
        """
        if self.db_type == "sqlite":
            if not self.sqlite_path:
                raise ValueError("MIGDEPS_DB_PATH is required for SQLite")
        elif self.db_type == "postgresql":
            if not self.host:
                raise ValueError("MIGDEPS_DB_HOST is required for PostgreSQL")
            if not self.user:
                raise ValueError("MIGDEPS_DB_USER is required for PostgreSQL")
        else:
            raise ValueError(f"Unsupported database type: {self.db_type}")

    def display_name(self) -> str:
        if self.db_type == "sqlite":
            return str(self.sqlite_path)
        return f"PostgreSQL: {self.host}/{self.database}"


@dataclass
class ApiConfig:
    """Migrator API connection settings.

    Attributes:
        base_url: Root URL of the migrator server (without /api/v1)
        token: Optional bearer token
        timeout: Request timeout in seconds
    """

    base_url: str = "http://localhost:8080"
    token: str | None = None
    timeout: float = 30.0

    @classmethod
    def from_env(cls) -> "ApiConfig":
        """Create configuration from environment variables.

        Environment variables:
            MIGDEPS_API_URL: Migrator server URL (default: "http://localhost:8080")
            MIGDEPS_API_TOKEN: Bearer token
            MIGDEPS_API_TIMEOUT: Timeout in seconds (default: 30)
        """
        timeout = os.getenv("MIGDEPS_API_TIMEOUT", "30")
        try:
            timeout_value = float(timeout)
        except ValueError:
            raise ValueError(f"MIGDEPS_API_TIMEOUT must be a number, got {timeout!r}") from None

        return cls(
            base_url=os.getenv("MIGDEPS_API_URL", "http://localhost:8080").rstrip("/"),
            token=os.getenv("MIGDEPS_API_TOKEN") or None,
            timeout=timeout_value,
        )

    def validate(self) -> None:
        """Validate the configuration.

        Raises:
            ValueError: If the URL or timeout is invalid.
        """
        if not self.base_url.startswith(("http://", "https://")):
            raise ValueError(f"MIGDEPS_API_URL must be an http(s) URL: {self.base_url}")
        if self.timeout <= 0:
            raise ValueError("MIGDEPS_API_TIMEOUT must be positive")
