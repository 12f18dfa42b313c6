"""The individual confidence metrics.

Each function scores one aspect of a change from 0 (risky) to 100 (safe)
and returns plain-language suggestions. None of them raise on odd input.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from impactscope.affinity.finder import is_test_file
from impactscope.ci.models import CiHistory
from impactscope.config import ConfidenceConfig
from impactscope.confidence.models import ConfidenceMetric
from impactscope.diff.models import ChangeKind, SymbolDiff

if TYPE_CHECKING:
    from impactscope.report.models import ImpactReport

CHANGE_SCOPE = "Change Scope"
TEST_COVERAGE = "Test Coverage"
HISTORICAL_STABILITY = "Historical Stability"
CHANGE_KIND = "Change Kind"


def _clamp(value: float) -> int:
    return max(0, min(100, round(value)))


def scope_metric(report: ImpactReport, config: ConfidenceConfig) -> ConfidenceMetric:
    """Fewer changed symbols and fewer dependents mean a smaller blast radius."""
    symbols = len(report.functions) + len(report.classes)
    downstream = len(report.downstream_files)
    score = _clamp(
        100 - config.symbol_penalty * symbols - config.downstream_penalty * downstream
    )

    suggestions = []
    if downstream > config.fan_out_threshold:
        suggestions.append(
            f"{downstream} files depend on this change; consider splitting it "
            "or landing it behind a compatibility shim"
        )
    if symbols > 5:
        suggestions.append("Many declarations changed at once; smaller commits are easier to review")

    return ConfidenceMetric(
        name=CHANGE_SCOPE,
        score=score,
        weight=config.weights.get("change_scope", 0.0),
        summary=f"{symbols} changed symbol(s), {downstream} downstream file(s)",
        sub_metrics={
            "changedSymbols": symbols,
            "changedFunctions": len(report.functions),
            "changedClasses": len(report.classes),
            "downstreamFiles": downstream,
        },
        suggestions=tuple(suggestions),
    )


def coverage_metric(
    report: ImpactReport,
    config: ConfidenceConfig,
    symbol_diff: SymbolDiff | None = None,
) -> ConfidenceMetric:
    """Ratio of discovered tests to the files that could break.

    The changed file plus every non-test downstream file needs covering;
    test files that import the change are not counted as needing tests.
    The changed file counts whenever its text changed, so a comment-only
    edit with no tests scores 0. Only a true no-op has nothing to cover.
    """
    tests = len(report.tests)
    changed = not report.is_empty or (symbol_diff is not None and symbol_diff.text_changed)
    if changed:
        affected = 1 + sum(1 for f in report.downstream_files if not is_test_file(f))
    else:
        affected = 0

    if affected == 0:
        ratio = 1.0
    else:
        ratio = min(1.0, tests / affected)
    score = _clamp(ratio * 100)

    suggestions = []
    if affected and ratio < config.coverage_ratio_threshold:
        if tests == 0:
            suggestions.append(f"No tests found for {report.source_file}; add unit tests before committing")
        else:
            suggestions.append("Add tests for the downstream files that have none")
        suggestions.append("Rerun the related tests after fixing")

    return ConfidenceMetric(
        name=TEST_COVERAGE,
        score=score,
        weight=config.weights.get("test_coverage", 0.0),
        summary=f"{tests} test file(s) for {affected} affected file(s)",
        sub_metrics={
            "testsFound": tests,
            "affectedFiles": affected,
            "coverageRatio": round(ratio, 3),
        },
        suggestions=tuple(suggestions),
    )


def stability_metric(history: CiHistory, config: ConfidenceConfig) -> ConfidenceMetric:
    """Recent CI failures and flakes on this commit lower confidence."""
    total = history.total
    failure_rate = history.failed / total if total else 0.0
    flaky_rate = history.flaky / total if total else 0.0
    score = _clamp(100 * (1 - failure_rate) - config.flaky_penalty * flaky_rate)

    suggestions = []
    if history.failed:
        suggestions.append(f"{history.failed} test(s) failed in CI for this commit; fix them first")
    if history.flaky:
        suggestions.append(f"{history.flaky} flaky test(s) seen in CI; stabilize or quarantine them")

    return ConfidenceMetric(
        name=HISTORICAL_STABILITY,
        score=score,
        weight=config.weights.get("historical_stability", 0.0),
        summary=f"{history.passed}/{total} passed across {len(history.builds)} build(s)",
        sub_metrics={
            "builds": len(history.builds),
            "total": total,
            "passed": history.passed,
            "failed": history.failed,
            "flaky": history.flaky,
        },
        suggestions=tuple(suggestions),
    )


def kind_metric(
    report: ImpactReport,
    symbol_diff: SymbolDiff | None,
    config: ConfidenceConfig,
) -> ConfidenceMetric:
    """Removals break callers, signature changes may, body edits rarely do.

    Scored by the riskiest change. Without a symbol diff every reported
    symbol is treated as a signature change.
    """
    if symbol_diff is not None:
        kinds = [(c.name, c.change) for c in symbol_diff.changes]
    else:
        names = list(report.functions) + list(report.classes)
        kinds = [(name, ChangeKind.MODIFIED_SIGNATURE) for name in names]

    counts = {kind.value: 0 for kind in ChangeKind}
    for _, kind in kinds:
        counts[kind.value] += 1

    scores = [config.kind_scores.get(kind.value, 100.0) for _, kind in kinds]
    score = _clamp(min(scores)) if scores else 100

    suggestions = []
    removed = [name for name, kind in kinds if kind == ChangeKind.REMOVED]
    changed_sig = [name for name, kind in kinds if kind == ChangeKind.MODIFIED_SIGNATURE]
    if removed:
        suggestions.append(f"Removed: {', '.join(removed)}; make sure no caller still uses them")
    if changed_sig:
        suggestions.append(
            f"Signature changed: {', '.join(changed_sig)}; review every caller"
        )

    return ConfidenceMetric(
        name=CHANGE_KIND,
        score=score,
        weight=config.weights.get("change_kind", 0.0),
        summary=", ".join(f"{n} {k}" for k, n in counts.items() if n) or "no symbol changes",
        sub_metrics=counts,
        suggestions=tuple(suggestions),
    )
