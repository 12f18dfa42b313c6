"""Confidence scoring."""

from impactscope.confidence.engine import ConfidenceEngine, classify
from impactscope.confidence.models import ConfidenceMetric, ConfidenceResult

__all__ = ["ConfidenceEngine", "ConfidenceMetric", "ConfidenceResult", "classify"]
