"""Cooperative cancellation for long-running analysis steps."""

from __future__ import annotations

from typing import Protocol

from impactscope.exceptions import AnalysisCancelled


class CancellationToken(Protocol):
    """Anything with an `is_set()` method; `threading.Event` fits."""

    def is_set(self) -> bool: ...


def raise_if_cancelled(token: CancellationToken | None, stage: str = "") -> None:
    if token is not None and token.is_set():
        raise AnalysisCancelled(f"Analysis cancelled{f' during {stage}' if stage else ''}")
