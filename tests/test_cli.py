from __future__ import annotations

import json
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from typer.testing import CliRunner

from migrator_deps import cli
from migrator_deps.client import MigratorClient
from migrator_deps.config import ApiConfig

runner = CliRunner()


@pytest.fixture
def server(seeded_api: TestClient, monkeypatch: pytest.MonkeyPatch) -> TestClient:
    """Route CLI API calls to the in-process test server."""
    monkeypatch.setattr(cli, "_client", lambda api_url: MigratorClient(ApiConfig(), http=seeded_api))
    return seeded_api


def test_show_lists_merged_dependencies(server: TestClient) -> None:
    result = runner.invoke(cli.app, ["show", "org/app"])

    assert result.exit_code == 0, result.output
    assert "Dependency summary" in result.output
    assert "3 raw detections" in result.output
    assert "depends on 1 repository(ies)" in result.output
    assert "Page 1/1" in result.output


def test_show_external_scope(server: TestClient) -> None:
    result = runner.invoke(cli.app, ["show", "org/app", "--scope", "external"])

    assert result.exit_code == 0, result.output
    assert "External dependencies (1)" in result.output
    assert "org/lib" not in result.output


def test_show_tree_respects_scope(server: TestClient) -> None:
    result = runner.invoke(cli.app, ["show", "org/app", "--tree", "--scope", "external"])

    assert result.exit_code == 0, result.output
    assert "ext/tool" in result.output
    assert "org/lib" not in result.output


def test_show_tree_groups_by_locality(server: TestClient) -> None:
    result = runner.invoke(cli.app, ["show", "org/app", "--tree"])

    assert result.exit_code == 0, result.output
    assert "ext/tool" in result.output
    assert "org/lib" in result.output


def test_show_repository_without_dependencies(server: TestClient) -> None:
    server.post("/api/v1/repositories/org/empty/dependencies", json={"dependencies": []})

    result = runner.invoke(cli.app, ["show", "org/empty"])

    assert result.exit_code == 0, result.output
    assert "No dependencies found" in result.output


def test_show_reports_api_errors(server: TestClient) -> None:
    result = runner.invoke(cli.app, ["show", "org/missing"])

    assert result.exit_code == 1
    assert "Error:" in result.output
    assert "Repository not found: org/missing" in result.output


def test_dependents(server: TestClient) -> None:
    result = runner.invoke(cli.app, ["dependents", "org/app"])

    assert result.exit_code == 0, result.output
    assert "org/lib" in result.output


def test_export_downloads_server_file(server: TestClient, tmp_path: Path) -> None:
    result = runner.invoke(cli.app, ["export", "org/app", "--out", str(tmp_path)])

    assert result.exit_code == 0, result.output
    content = (tmp_path / "org-app-dependencies.csv").read_text()
    assert content.startswith("repository,dependency_full_name,direction")


def test_export_merged_list(server: TestClient, tmp_path: Path) -> None:
    result = runner.invoke(cli.app, ["export", "org/app", "--merged", "--format", "json", "--out", str(tmp_path)])

    assert result.exit_code == 0, result.output
    data = json.loads((tmp_path / "org-app-dependencies.json").read_text())
    assert [d["dependency_full_name"] for d in data] == ["ext/tool", "org/lib"]
    assert data[1]["detection_methods"] == ["submodule", "workflow"]


def test_ingest_then_graph(tmp_path: Path) -> None:
    db = tmp_path / "deps.db"
    app_deps = tmp_path / "app.json"
    app_deps.write_text(
        json.dumps(
            [
                {"dependency_full_name": "org/lib", "dependency_type": "submodule"},
                {"dependency_full_name": "ext/tool", "dependency_type": "package"},
            ]
        )
    )
    lib_deps = tmp_path / "lib.json"
    lib_deps.write_text(
        json.dumps({"dependencies": [{"dependency_full_name": "org/app", "dependency_type": "workflow"}]})
    )

    first = runner.invoke(cli.app, ["ingest", "org/app", str(app_deps), "--db", str(db)])
    second = runner.invoke(cli.app, ["ingest", "org/lib", str(lib_deps), "--db", str(db)])
    assert first.exit_code == 0, first.output
    assert second.exit_code == 0, second.output
    assert "Ingested" in first.output

    result = runner.invoke(cli.app, ["graph", "--db", str(db)])

    assert result.exit_code == 0, result.output
    assert "Local dependencies: 2" in result.output
    assert "Circular dependencies: 1" in result.output


def test_ingest_rejects_bad_records(tmp_path: Path) -> None:
    records = tmp_path / "bad.json"
    records.write_text(json.dumps([{"dependency_full_name": "org/x", "dependency_type": "symlink"}]))

    result = runner.invoke(cli.app, ["ingest", "org/app", str(records), "--db", str(tmp_path / "deps.db")])

    assert result.exit_code == 1
    assert "Error:" in result.output
