"""HTTP client for the migrator REST API."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from pathlib import Path
from typing import Any
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from migrator_deps.config import ApiConfig
from migrator_deps.exceptions import ApiError
from migrator_deps.export import check_format, export_filename
from migrator_deps.models import DependenciesResponse, DependentsResponse

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"

_FILENAME_RE = re.compile(r'filename="?([^";]+)"?')


class MigratorClient:
    """Thin synchronous client over the dependency endpoints.

    Every failure (network, HTTP status, unexpected payload) is raised as a
    single `ApiError` carrying a user-facing message. Nothing is retried.

    An existing `httpx.Client` can be passed in, e.g. a FastAPI `TestClient`.
    """

    def __init__(
        self,
        config: ApiConfig | None = None,
        *,
        http: httpx.Client | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.config = config or ApiConfig.from_env()
        self._owns_http = http is None
        if http is None:
            headers = {"Accept": "application/json"}
            if self.config.token:
                headers["Authorization"] = f"Bearer {self.config.token}"
            http = httpx.Client(
                base_url=self.config.base_url,
                headers=headers,
                timeout=self.config.timeout,
                transport=transport,
            )
        self._http = http

    def __enter__(self) -> "MigratorClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    # -- plumbing ---------------------------------------------------------

    @staticmethod
    def _repo_path(full_name: str, suffix: str) -> str:
        return f"{API_PREFIX}/repositories/{quote(full_name.strip('/'), safe='/')}/{suffix}"

    @staticmethod
    def _error_message(resp: httpx.Response, fallback: str) -> str:
        try:
            body = resp.json()
        except ValueError:
            return fallback
        if isinstance(body, dict):
            message = body.get("message") or body.get("error")
            if isinstance(message, str) and message:
                return message
        return fallback

    def _get(self, path: str, *, fallback: str, params: dict[str, Any] | None = None) -> httpx.Response:
        logger.debug("GET %s params=%s", path, params)
        try:
            resp = self._http.get(path, params=params)
        except httpx.HTTPError as exc:
            logger.warning("Request to %s failed: %s", path, exc)
            raise ApiError(fallback) from exc

        if resp.status_code >= 400:
            message = self._error_message(resp, fallback)
            logger.warning("GET %s returned %s: %s", path, resp.status_code, message)
            raise ApiError(message, status_code=resp.status_code)
        return resp

    @staticmethod
    def _json(resp: httpx.Response, fallback: str) -> Any:
        try:
            return resp.json()
        except ValueError as exc:
            raise ApiError(fallback, status_code=resp.status_code) from exc

    # -- operations -------------------------------------------------------

    def get_repository_dependencies(self, full_name: str) -> DependenciesResponse:
        """Fetch raw dependency records of a repository."""
        fallback = "Failed to load dependencies"
        resp = self._get(self._repo_path(full_name, "dependencies"), fallback=fallback)
        try:
            return DependenciesResponse.model_validate(self._json(resp, fallback))
        except ValidationError as exc:
            raise ApiError(fallback, status_code=resp.status_code) from exc

    def get_repository_dependents(self, full_name: str) -> DependentsResponse:
        """Fetch repositories that depend on `full_name`."""
        fallback = "Failed to load dependents"
        resp = self._get(self._repo_path(full_name, "dependents"), fallback=fallback)
        try:
            return DependentsResponse.model_validate(self._json(resp, fallback))
        except ValidationError as exc:
            raise ApiError(fallback, status_code=resp.status_code) from exc

    def get_dependency_graph(self, dependency_types: Iterable[str] | None = None) -> dict[str, Any]:
        """Fetch the enterprise-wide local dependency graph."""
        fallback = "Failed to load dependency graph"
        types = [t for t in (dependency_types or []) if t]
        params = {"dependency_type": ",".join(types)} if types else None
        resp = self._get(f"{API_PREFIX}/dependencies/graph", fallback=fallback, params=params)
        body = self._json(resp, fallback)
        if not isinstance(body, dict):
            raise ApiError(fallback, status_code=resp.status_code)
        return body

    def export_repository_dependencies(self, full_name: str, fmt: str = "csv") -> tuple[str, bytes]:
        """Request the server-side export of a repository.

        Returns:
            The download filename and the file content.
        """
        fmt = check_format(fmt)
        resp = self._get(
            self._repo_path(full_name, "dependencies/export"),
            fallback="Failed to export dependencies",
            params={"format": fmt},
        )
        match = _FILENAME_RE.search(resp.headers.get("content-disposition", ""))
        filename = match.group(1) if match else export_filename(full_name, fmt)
        return filename, resp.content

    def download_repository_dependencies(self, full_name: str, out_dir: Path, fmt: str = "csv") -> Path:
        """Export a repository and write the download into `out_dir`."""
        filename, content = self.export_repository_dependencies(full_name, fmt)
        out_dir.mkdir(parents=True, exist_ok=True)
        out = out_dir / Path(filename).name
        out.write_bytes(content)
        return out
