"""Confidence score records."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

_RECORD_CONFIG = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class ConfidenceMetric(BaseModel):
    """One independently computed signal, scored 0-100."""

    model_config = _RECORD_CONFIG

    name: str
    score: int = Field(ge=0, le=100)
    weight: float = 0.0
    summary: str = ""
    sub_metrics: dict[str, Any] = Field(default_factory=dict)
    suggestions: tuple[str, ...] = ()


class ConfidenceResult(BaseModel):
    """Weighted composite of the metrics that could be computed."""

    model_config = _RECORD_CONFIG

    total: int = Field(ge=0, le=100)
    status: str
    metrics: tuple[ConfidenceMetric, ...] = ()

    def metric(self, name: str) -> ConfidenceMetric | None:
        for m in self.metrics:
            if m.name == name:
                return m
        return None
