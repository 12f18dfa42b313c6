"""HTTP client for the CI results backend.

The backend lists test runs per team; each run carries its build (commit,
repository, aggregate counts). Every failure mode here - network error,
timeout, 401/403, malformed JSON - is logged and reported as "no history",
so a missing or broken backend never fails an analysis.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

import httpx
from pydantic import ValidationError

from impactscope.ci.models import CiHistory, CiTestRun, group_runs
from impactscope.exceptions import ExternalServiceFailure

_logger = logging.getLogger("impactscope.ci")


class CiHistoryProvider(ABC):
    """Abstract base for CI history sources."""

    @abstractmethod
    def fetch_history(
        self, team_id: str, repo_full_name: str, commit_hash: str
    ) -> CiHistory | None:
        """CI history for a commit, or None when there is none."""
        ...

    def close(self) -> None:
        """Release held connections; nothing to do by default."""


class CiHistoryClient(CiHistoryProvider):
    """Read-only client for `GET /teams/{team}/test-runs`.

    Example usage:
        client = CiHistoryClient("https://ci.example.com/api", api_token="...")
        history = client.fetch_history("team-1", "acme/shop", "3f2a9c1")
    """

    def __init__(
        self,
        backend_url: str,
        api_token: str | None = None,
        timeout_s: float = 15.0,
        limit: int = 200,
        transport: httpx.BaseTransport | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        if not backend_url:
            raise ValueError("Backend URL is required")
        self.base_url = backend_url.rstrip("/")
        self.limit = limit
        self.log = logger or _logger
        self._client = httpx.Client(
            base_url=self.base_url,
            timeout=timeout_s,
            headers=self._headers(api_token),
            transport=transport,
        )

    @staticmethod
    def _headers(api_token: str | None) -> dict[str, str]:
        if api_token and api_token.strip():
            return {"Authorization": f"Bearer {api_token.strip()}"}
        return {}

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> CiHistoryClient:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def fetch_test_runs(self, team_id: str, limit: int | None = None, offset: int = 0) -> list[dict]:
        """Raw test-run payloads; raises `ExternalServiceFailure` on any error."""
        try:
            response = self._client.get(
                f"/teams/{team_id}/test-runs",
                params={"limit": limit or self.limit, "offset": offset},
            )
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as e:
            raise ExternalServiceFailure(
                f"CI backend returned {e.response.status_code} for team {team_id}"
            ) from e
        except httpx.HTTPError as e:
            raise ExternalServiceFailure(f"CI backend unreachable: {e}") from e
        except ValueError as e:
            raise ExternalServiceFailure(f"CI backend sent invalid JSON: {e}") from e

        runs = payload.get("testRuns") if isinstance(payload, dict) else None
        return runs if isinstance(runs, list) else []

    def fetch_runs_for_commit(
        self, team_id: str, repo_full_name: str, commit_hash: str
    ) -> list[CiTestRun]:
        """Runs whose build matches the commit (and repository, when given)."""
        commit = commit_hash.lower()
        repo = repo_full_name.lower()
        runs = []
        for raw in self.fetch_test_runs(team_id):
            build = raw.get("build") if isinstance(raw, dict) else None
            if not isinstance(build, dict):
                continue
            if (build.get("commitHash") or "").lower() != commit:
                continue
            if repo and (build.get("repoFullName") or "").lower() != repo:
                continue
            run = self._map_run(raw, build)
            if run is not None:
                runs.append(run)
        return runs

    def fetch_history(
        self, team_id: str, repo_full_name: str, commit_hash: str
    ) -> CiHistory | None:
        """CI history for a commit, or None when unavailable or empty."""
        try:
            runs = self.fetch_runs_for_commit(team_id, repo_full_name, commit_hash)
        except ExternalServiceFailure as e:
            self.log.warning(f"CI history unavailable: {e}")
            return None

        if not runs:
            self.log.info(f"No CI runs found for commit {commit_hash[:8]}")
            return None
        self.log.debug(f"Retrieved {len(runs)} CI run(s) for commit {commit_hash[:8]}")
        return group_runs(commit_hash, repo_full_name, runs)

    def _map_run(self, raw: dict[str, Any], build: dict[str, Any]) -> CiTestRun | None:
        workflow_run_id = build.get("workflowRunId")
        try:
            return CiTestRun(
                id=raw.get("id", 0),
                name=raw.get("name"),
                test_suite=raw.get("testSuite") or "",
                status=raw.get("status") or "",
                duration=raw.get("duration"),
                error_message=raw.get("errorMessage"),
                created_at=raw.get("createdAt"),
                branch=raw.get("branch"),
                build_id=build.get("id") or 0,
                repo_full_name=build.get("repoFullName"),
                commit_hash=build.get("commitHash"),
                workflow_run_id=str(workflow_run_id) if workflow_run_id is not None else None,
                build_status=build.get("status"),
                total_tests=build.get("totalTests"),
                passed_tests=build.get("passedTests"),
                failed_tests=build.get("failedTests"),
                flaky_tests=build.get("flakyTests"),
                metadata=raw.get("metadata"),
            )
        except ValidationError as e:
            self.log.debug(f"Skipping malformed CI run {raw.get('id')}: {e}")
            return None
