"""Traversals over the dependency graph."""

from __future__ import annotations

import posixpath
from collections import deque

from impactscope.cancellation import CancellationToken, raise_if_cancelled
from impactscope.graph.builder import DependencyGraph


def normalize_path(file_path: str) -> str:
    """Project-relative posix form of a path as the graph stores it."""
    return posixpath.normpath(file_path.replace("\\", "/")).lstrip("/")


def resolve_downstream(
    graph: DependencyGraph,
    changed_file: str,
    max_depth: int | None = None,
    cancel: CancellationToken | None = None,
) -> list[str]:
    """Every file that imports `changed_file`, directly or transitively.

    Breadth-first over incoming edges, in discovery order. Barrel files
    (pure re-export modules) are included but do not use up a depth
    level, so their importers are reached at the barrel's own depth.
    `max_depth=None` means unbounded; the visited set guarantees
    termination on cycles. The changed file itself is never returned.
    """
    start = normalize_path(changed_file)
    if not graph.has_file(start):
        return []

    visited = {start}
    order: list[str] = []
    queue: deque[tuple[str, int]] = deque([(start, 0)])

    while queue:
        raise_if_cancelled(cancel, "downstream traversal")
        node, depth = queue.popleft()
        if max_depth is not None and depth >= max_depth:
            continue
        for importer in graph.importers_of(node):
            if importer in visited:
                continue
            visited.add(importer)
            order.append(importer)
            next_depth = depth if graph.is_barrel(importer) else depth + 1
            queue.append((importer, next_depth))

    return order
