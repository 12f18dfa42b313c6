"""Composite confidence scoring for an impact report."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from impactscope.ci.models import CiHistory
from impactscope.config import ConfidenceConfig
from impactscope.confidence.metrics import (
    coverage_metric,
    kind_metric,
    scope_metric,
    stability_metric,
)
from impactscope.confidence.models import ConfidenceMetric, ConfidenceResult
from impactscope.diff.models import SymbolDiff

if TYPE_CHECKING:
    from impactscope.report.models import ImpactReport

_logger = logging.getLogger("impactscope.confidence")


def classify(total: int, config: ConfidenceConfig | None = None) -> tuple[str, str]:
    """Map a 0-100 total onto (status, risk level) using the configured tiers."""
    config = config or ConfidenceConfig()
    for minimum, status, risk in config.tiers:
        if total >= minimum:
            return status, risk
    _, status, risk = config.tiers[-1]
    return status, risk


class ConfidenceEngine:
    """Scores how safe a change looks, from 0 (risky) to 100 (safe).

    Metrics that cannot be computed are left out and the remaining weights
    are renormalized, so a missing CI backend neither helps nor hurts.
    The score is a pure function of its inputs.
    """

    def __init__(
        self,
        config: ConfidenceConfig | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.config = config or ConfidenceConfig()
        self.log = logger or _logger

    def score(
        self,
        report: ImpactReport,
        history: CiHistory | None = None,
        *,
        symbol_diff: SymbolDiff | None = None,
        commit_hash: str | None = None,
        repo_full_name: str | None = None,
    ) -> ConfidenceResult:
        metrics = [
            scope_metric(report, self.config),
            coverage_metric(report, self.config, symbol_diff),
        ]
        if self._usable(history, commit_hash, repo_full_name):
            metrics.append(stability_metric(history, self.config))
        metrics.append(kind_metric(report, symbol_diff, self.config))

        total = self._combine(metrics)
        status, _ = classify(total, self.config)
        self.log.debug(
            f"Confidence for {report.source_file}: {total} ({status}) from "
            + ", ".join(f"{m.name}={m.score}" for m in metrics)
        )
        return ConfidenceResult(total=total, status=status, metrics=tuple(metrics))

    def classify(self, total: int) -> tuple[str, str]:
        return classify(total, self.config)

    def _usable(
        self,
        history: CiHistory | None,
        commit_hash: str | None,
        repo_full_name: str | None,
    ) -> bool:
        if history is None or history.is_empty:
            return False
        if not history.matches(commit_hash, repo_full_name):
            self.log.warning(
                f"Ignoring CI history for {history.commit_hash[:8]}: "
                f"does not match commit {commit_hash or '?'}"
            )
            return False
        return True

    @staticmethod
    def _combine(metrics: list[ConfidenceMetric]) -> int:
        weight_sum = sum(m.weight for m in metrics)
        if weight_sum <= 0:
            return 100
        weighted = sum(m.score * m.weight for m in metrics) / weight_sum
        return max(0, min(100, round(weighted)))
