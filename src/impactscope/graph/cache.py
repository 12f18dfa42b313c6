"""Per-project-root cache of built dependency graphs.

Invalidation policy: each `get()` re-stats the project's source files and
compares (path, mtime_ns, size) against the fingerprint stored with the
cached graph. Any difference triggers a full rebuild. The rebuilt graph
replaces the cached one in a single locked assignment, so a reader holds
either the old graph or the new one, never a partial build.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path

from impactscope.cancellation import CancellationToken
from impactscope.config import IndexerConfig
from impactscope.graph.builder import DependencyGraph, GraphBuilder
from impactscope.parser.core import collect_files

_logger = logging.getLogger("impactscope.graph.cache")


def compute_fingerprint(root: Path, config: IndexerConfig) -> tuple:
    """(path, mtime_ns, size) for every collected source file."""
    entries = []
    for rel_path in collect_files(root, config):
        try:
            stat = (root / rel_path).stat()
        except OSError:
            continue
        entries.append((rel_path, stat.st_mtime_ns, stat.st_size))
    return tuple(entries)


class GraphCache:
    """Shared, read-mostly store of `DependencyGraph`s keyed by resolved root."""

    def __init__(
        self,
        config: IndexerConfig | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.config = config or IndexerConfig()
        self.log = logger or _logger
        self._builder = GraphBuilder(self.config, logger=self.log)
        self._graphs: dict[Path, DependencyGraph] = {}
        self._lock = threading.Lock()
        self.builds = 0

    def get(self, root: str | Path, cancel: CancellationToken | None = None) -> DependencyGraph:
        """Return an up-to-date graph for `root`, rebuilding if files changed."""
        root = Path(root).resolve()
        fingerprint = compute_fingerprint(root, self.config)

        with self._lock:
            cached = self._graphs.get(root)
        if cached is not None and cached.fingerprint == fingerprint:
            return cached

        self.log.debug(f"Graph cache miss for {root}; rebuilding")
        graph = self._builder.build(root, cancel=cancel, fingerprint=fingerprint)
        with self._lock:
            self._graphs[root] = graph
            self.builds += 1
        return graph

    def peek(self, root: str | Path) -> DependencyGraph | None:
        """The cached graph for `root` without freshness checks."""
        with self._lock:
            return self._graphs.get(Path(root).resolve())

    def invalidate(self, root: str | Path | None = None) -> None:
        """Drop one cached graph, or all of them."""
        with self._lock:
            if root is None:
                self._graphs.clear()
            else:
                self._graphs.pop(Path(root).resolve(), None)
