"""Records returned by the CI history backend."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

FAILED_STATUSES = {"failed", "failure", "error", "errored"}
PASSED_STATUSES = {"passed", "pass", "success", "succeeded"}
FLAKY_STATUSES = {"flaky"}


class CiTestRun(BaseModel):
    """A single test run reported by CI, flattened with its build."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str | None = None
    test_suite: str = ""
    status: str = ""
    duration: float | None = None
    error_message: str | None = None
    created_at: str | None = None
    branch: str | None = None
    build_id: int = 0
    repo_full_name: str | None = None
    commit_hash: str | None = None
    workflow_run_id: str | None = None
    build_status: str | None = None
    total_tests: int | None = None
    passed_tests: int | None = None
    failed_tests: int | None = None
    flaky_tests: int | None = None
    metadata: dict[str, Any] | None = None


class CiBuild(BaseModel):
    """Runs grouped by build, with the build's aggregate counts."""

    model_config = ConfigDict(frozen=True)

    build_id: int
    commit_hash: str | None = None
    repo_full_name: str | None = None
    status: str | None = None
    total: int = 0
    passed: int = 0
    failed: int = 0
    flaky: int = 0
    runs: tuple[CiTestRun, ...] = ()


class CiHistory(BaseModel):
    """All known CI outcomes for one commit of one repository."""

    model_config = ConfigDict(frozen=True)

    commit_hash: str
    repo_full_name: str = ""
    builds: tuple[CiBuild, ...] = Field(default_factory=tuple)

    @property
    def runs(self) -> tuple[CiTestRun, ...]:
        return tuple(run for build in self.builds for run in build.runs)

    @property
    def total(self) -> int:
        return sum(b.total for b in self.builds)

    @property
    def passed(self) -> int:
        return sum(b.passed for b in self.builds)

    @property
    def failed(self) -> int:
        return sum(b.failed for b in self.builds)

    @property
    def flaky(self) -> int:
        return sum(b.flaky for b in self.builds)

    @property
    def is_empty(self) -> bool:
        return self.total == 0

    def matches(self, commit_hash: str | None, repo_full_name: str | None) -> bool:
        """Case-insensitive match; a missing argument matches anything."""
        if commit_hash and commit_hash.lower() != self.commit_hash.lower():
            return False
        if repo_full_name and self.repo_full_name and \
                repo_full_name.lower() != self.repo_full_name.lower():
            return False
        return True


def summarize_build(build_id: int, runs: list[CiTestRun]) -> CiBuild:
    """Build aggregate counts, falling back to counting run statuses."""
    first = runs[0]
    if first.total_tests:
        total = first.total_tests
        passed = first.passed_tests or 0
        failed = first.failed_tests or 0
        flaky = first.flaky_tests or 0
    else:
        statuses = [r.status.lower() for r in runs]
        total = len(statuses)
        passed = sum(1 for s in statuses if s in PASSED_STATUSES)
        failed = sum(1 for s in statuses if s in FAILED_STATUSES)
        flaky = sum(1 for s in statuses if s in FLAKY_STATUSES)
    return CiBuild(
        build_id=build_id,
        commit_hash=first.commit_hash,
        repo_full_name=first.repo_full_name,
        status=first.build_status,
        total=total,
        passed=passed,
        failed=failed,
        flaky=flaky,
        runs=tuple(runs),
    )


def group_runs(
    commit_hash: str,
    repo_full_name: str,
    runs: list[CiTestRun],
) -> CiHistory:
    """Group runs by build id, preserving first-seen build order."""
    by_build: dict[int, list[CiTestRun]] = {}
    for run in runs:
        by_build.setdefault(run.build_id, []).append(run)
    return CiHistory(
        commit_hash=commit_hash,
        repo_full_name=repo_full_name,
        builds=tuple(summarize_build(bid, group) for bid, group in by_build.items()),
    )
