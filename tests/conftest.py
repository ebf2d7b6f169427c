"""Pytest configuration and fixtures for migrator-deps tests."""
from __future__ import annotations

import os
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Force SQLite for all tests
os.environ["MIGDEPS_DB_TYPE"] = "sqlite"


@pytest.fixture(autouse=True)
def reset_cached_engine():
    """Reset the cached database engine before and after each test.

    This ensures test isolation when tests modify the database config.
    """
    import main

    # Reset before test
    main._cached_engine = None

    yield

    # Reset after test
    main._cached_engine = None


@pytest.fixture
def api(tmp_path: Path):
    """TestClient bound to a fresh SQLite database under tmp_path."""
    import main
    from migrator_deps.config import DatabaseConfig
    from migrator_deps.db import init_db

    old_config = main.db_config
    main.db_config = DatabaseConfig(db_type="sqlite", sqlite_path=tmp_path / "api-test.db")
    main._cached_engine = None
    init_db(main._engine())
    try:
        yield TestClient(main.app)
    finally:
        main._engine().dispose()
        main.db_config = old_config


@pytest.fixture
def seeded_api(api: TestClient) -> TestClient:
    """Two repositories that depend on each other plus one external dependency.

    org/app -> org/lib (submodule, workflow), org/app -> ext/tool (package)
    org/lib -> org/app (workflow)
    """
    res = api.post(
        "/api/v1/repositories/org/app/dependencies",
        json={
            "source_url": "https://github.example.com/org/app",
            "status": "pending",
            "dependencies": [
                {
                    "dependency_full_name": "org/lib",
                    "dependency_type": "submodule",
                    "dependency_url": "https://github.example.com/org/lib",
                    "metadata": '{"path": "vendor/lib", "branch": "main"}',
                },
                {
                    "dependency_full_name": "org/lib",
                    "dependency_type": "workflow",
                    "dependency_url": "https://github.example.com/org/lib",
                    "metadata": '{"workflow_file": "ci.yml", "ref": "v1"}',
                },
                {
                    "dependency_full_name": "ext/tool",
                    "dependency_type": "package",
                    "dependency_url": "https://github.com/ext/tool",
                    "metadata": '{"manifest": "package.json", "package_manager": "npm"}',
                },
            ],
        },
    )
    assert res.status_code == 200

    res = api.post(
        "/api/v1/repositories/org/lib/dependencies",
        json={
            "source_url": "https://github.example.com/org/lib",
            "status": "complete",
            "dependencies": [
                {
                    "dependency_full_name": "org/app",
                    "dependency_type": "workflow",
                    "dependency_url": "https://github.example.com/org/app",
                },
            ],
        },
    )
    assert res.status_code == 200
    return api
