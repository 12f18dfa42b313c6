"""Report assembler - runs the analysis pipeline for one changed file.

Pipeline:
1. Validate the request (fail fast on missing fields or bad paths).
2. No-op fast path: identical texts give an empty report.
3. Symbol diff of before/after.
4. Dependency graph (cached per project root) and downstream traversal.
5. Test affinity for the changed file and its dependents.
6. Issue list.

Recoverable failures in steps 3-5 are absorbed and logged; the report is
still produced. Cancellation aborts the whole call.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from pathlib import Path
from typing import Any, Protocol

from impactscope.affinity.finder import find_tests
from impactscope.cancellation import CancellationToken, raise_if_cancelled
from impactscope.ci.client import CiHistoryClient, CiHistoryProvider
from impactscope.ci.models import CiHistory
from impactscope.config import ProjectConfig
from impactscope.confidence.engine import ConfidenceEngine, classify
from impactscope.diff.models import SymbolDiff
from impactscope.diff.symbols import diff_symbols
from impactscope.exceptions import GraphError, InvalidRequestError
from impactscope.graph.cache import GraphCache
from impactscope.graph.query import normalize_path, resolve_downstream
from impactscope.report.models import (
    ChangeRequest,
    ImpactAnalysisResult,
    ImpactIssue,
    ImpactReport,
    IssueType,
)

_logger = logging.getLogger("impactscope.report")


class FileAnalyzer(Protocol):
    """The one capability a presentation layer needs from the analyzer."""

    def analyze_file(self, file: str, before: str, after: str) -> ImpactAnalysisResult: ...


class ImpactAnalyzer:
    """Orchestrates diff, graph, affinity and confidence for one project.

    Example usage:
        analyzer = ImpactAnalyzer(load_config(root))
        report = analyzer.analyze_impact({
            "file": "src/pricing/calculateDiscount.ts",
            "before": old_text,
            "after": new_text,
            "projectRoot": str(root),
        })
    """

    def __init__(
        self,
        config: ProjectConfig | None = None,
        graph_cache: GraphCache | None = None,
        history_provider: CiHistoryProvider | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.config = config or ProjectConfig()
        self.log = logger or _logger
        self.graph_cache = graph_cache or GraphCache(self.config.indexer, logger=self.log)
        self.history_provider = history_provider
        self.engine = ConfidenceEngine(self.config.confidence, logger=self.log)
        self._owns_provider = False

    @classmethod
    def from_config(cls, config: ProjectConfig, logger: logging.Logger | None = None) -> ImpactAnalyzer:
        """Build an analyzer, wiring the CI client when the backend is configured."""
        provider = None
        if config.ci.enabled:
            provider = CiHistoryClient(
                config.ci.backend_url,
                api_token=config.ci.api_token,
                timeout_s=config.ci.timeout_s,
                limit=config.ci.limit,
                logger=logger,
            )
        analyzer = cls(config, history_provider=provider, logger=logger)
        analyzer._owns_provider = provider is not None
        return analyzer

    def close(self) -> None:
        """Close the CI client created by `from_config`; injected providers are left open."""
        if self._owns_provider and self.history_provider is not None:
            self.history_provider.close()

    def __enter__(self) -> ImpactAnalyzer:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Report
    # ------------------------------------------------------------------

    def analyze_impact(
        self,
        request: ChangeRequest | dict[str, Any],
        cancel: CancellationToken | None = None,
        max_depth: int | None = None,
    ) -> ImpactReport:
        """Build the impact report for one changed file."""
        report, _ = self._analyze(request, cancel, max_depth)
        return report

    def _analyze(
        self,
        request: ChangeRequest | dict[str, Any],
        cancel: CancellationToken | None,
        max_depth: int | None,
    ) -> tuple[ImpactReport, SymbolDiff]:
        request = self._coerce(request)
        root, rel_file = self._validate(request)

        if request.before == request.after:
            self.log.debug(f"No textual change in {rel_file}")
            return ImpactReport.empty(rel_file), SymbolDiff()

        raise_if_cancelled(cancel, "symbol diff")
        symbol_diff = diff_symbols(request.before, request.after, rel_file, logger=self.log)

        downstream = self._downstream(root, rel_file, cancel, max_depth)
        raise_if_cancelled(cancel, "test discovery")
        tests = find_tests(
            rel_file,
            downstream,
            root,
            config=self.config.tests,
            extensions=self.config.indexer.source_extensions,
            cancel=cancel,
            logger=self.log,
        )

        functions = _unique(symbol_diff.functions)
        classes = _unique(symbol_diff.classes)
        downstream = _unique(downstream)
        tests = _unique(tests)
        report = ImpactReport(
            source_file=rel_file,
            functions=functions,
            classes=classes,
            downstream_files=downstream,
            tests=tests,
            issues=build_issues(functions, classes, downstream, tests),
        )
        self.log.info(
            f"{rel_file}: {len(functions)} function(s), {len(classes)} class(es), "
            f"{len(downstream)} downstream, {len(tests)} test(s)"
        )
        return report, symbol_diff

    def _downstream(
        self,
        root: Path,
        rel_file: str,
        cancel: CancellationToken | None,
        max_depth: int | None,
    ) -> list[str]:
        try:
            graph = self.graph_cache.get(root, cancel=cancel)
        except (GraphError, OSError) as e:
            self.log.warning(f"Dependency graph unavailable for {root}: {e}")
            return []
        if not graph.has_file(rel_file):
            self.log.debug(f"{rel_file} is not part of the dependency graph")
        return resolve_downstream(graph, rel_file, max_depth=max_depth, cancel=cancel)

    # ------------------------------------------------------------------
    # Report + confidence
    # ------------------------------------------------------------------

    def analyze(
        self,
        request: ChangeRequest | dict[str, Any],
        commit_hash: str | None = None,
        cancel: CancellationToken | None = None,
        max_depth: int | None = None,
    ) -> ImpactAnalysisResult:
        """Impact report plus confidence score and risk level."""
        report, symbol_diff = self._analyze(request, cancel, max_depth)
        history = self._history(commit_hash)
        raise_if_cancelled(cancel, "confidence scoring")

        confidence = self.engine.score(
            report,
            history,
            symbol_diff=symbol_diff,
            commit_hash=commit_hash,
            repo_full_name=self.config.ci.repo_full_name or None,
        )
        _, risk = classify(confidence.total, self.config.confidence)
        return ImpactAnalysisResult(
            file_path=report.source_file,
            report=report,
            confidence=confidence,
            risk_level=risk,
            has_actual_changes=bool(report.functions or report.classes),
        )

    def analyze_file(self, file: str, before: str, after: str) -> ImpactAnalysisResult:
        """Analyze `file` inside the configured project root."""
        request = ChangeRequest.from_data(
            {"file": file, "before": before, "after": after, "projectRoot": self.config.root_path}
        )
        return self.analyze(request)

    def _history(self, commit_hash: str | None) -> CiHistory | None:
        if self.history_provider is None or not commit_hash:
            return None

        ci = self.config.ci
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="impactscope-ci")
        future = executor.submit(
            self.history_provider.fetch_history, ci.team_id, ci.repo_full_name, commit_hash
        )
        try:
            return future.result(timeout=ci.timeout_s)
        except FutureTimeout:
            self.log.warning(f"CI history lookup timed out after {ci.timeout_s}s")
            return None
        except Exception as e:
            self.log.warning(f"CI history lookup failed: {e}")
            return None
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

    # ------------------------------------------------------------------
    # Request validation
    # ------------------------------------------------------------------

    @staticmethod
    def _coerce(request: ChangeRequest | dict[str, Any]) -> ChangeRequest:
        if isinstance(request, ChangeRequest):
            return request
        if not isinstance(request, dict):
            raise InvalidRequestError(f"Expected a change request, got {type(request).__name__}")
        return ChangeRequest.from_data(request)

    @staticmethod
    def _validate(request: ChangeRequest) -> tuple[Path, str]:
        """Resolved project root and the file's project-relative path."""
        root = Path(request.project_root).resolve()
        if not root.is_dir():
            raise InvalidRequestError(f"Project root {request.project_root} is not a directory")

        file_path = Path(request.file)
        if file_path.is_absolute():
            try:
                file_path = file_path.resolve().relative_to(root)
            except ValueError:
                raise InvalidRequestError(
                    f"{request.file} is outside the project root {root}"
                ) from None

        rel_file = normalize_path(file_path.as_posix())
        if rel_file in ("", ".") or rel_file.startswith("../") or rel_file == "..":
            raise InvalidRequestError(f"{request.file} is outside the project root {root}")
        return root, rel_file


def build_issues(
    functions: tuple[str, ...],
    classes: tuple[str, ...],
    downstream: tuple[str, ...],
    tests: tuple[str, ...],
) -> tuple[ImpactIssue, ...]:
    """One issue per changed symbol, dependent and test.

    A test that is also a downstream dependent is reported once, as a
    downstream issue; other tests get their own test issue.
    """
    issues = [ImpactIssue(type=IssueType.FUNCTION, target=name) for name in functions]
    issues += [ImpactIssue(type=IssueType.CLASS, target=name) for name in classes]
    issues += [ImpactIssue(type=IssueType.DOWNSTREAM, target=path) for path in downstream]
    in_downstream = set(downstream)
    issues += [
        ImpactIssue(type=IssueType.TEST, target=path)
        for path in tests
        if path not in in_downstream
    ]
    return tuple(issues)


def _unique(items) -> tuple[str, ...]:
    return tuple(dict.fromkeys(items))


def analyze_impact(
    request: ChangeRequest | dict[str, Any],
    config: ProjectConfig | None = None,
) -> ImpactReport:
    """One-shot analysis with a fresh analyzer and no shared graph cache."""
    return ImpactAnalyzer(config).analyze_impact(request)
