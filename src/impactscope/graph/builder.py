"""Build a file-level import graph for a project."""

from __future__ import annotations

import logging
import posixpath
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from pathlib import Path

import networkx as nx

from impactscope.cancellation import CancellationToken, raise_if_cancelled
from impactscope.config import IndexerConfig
from impactscope.exceptions import FileSystemFailure, GraphError
from impactscope.parser.core import collect_files, parse_source, read_source
from impactscope.parser.models import FileSymbols, ImportRef

_logger = logging.getLogger("impactscope.graph")


class DependencyGraph:
    """Immutable import graph for one project root.

    Nodes are project-relative posix paths. An edge `a -> b` means
    "a imports b". Outgoing edges answer "what does this file use",
    incoming edges answer "who uses this file".
    """

    def __init__(
        self,
        root: Path,
        graph: nx.DiGraph,
        fingerprint: tuple = (),
    ) -> None:
        self.root = root
        self.graph = nx.freeze(graph)
        self.fingerprint = fingerprint

    @property
    def files(self) -> list[str]:
        return sorted(self.graph.nodes)

    def has_file(self, file_path: str) -> bool:
        return self.graph.has_node(file_path)

    def imports_of(self, file_path: str) -> list[str]:
        """Files `file_path` imports (outgoing adjacency)."""
        if not self.graph.has_node(file_path):
            return []
        return sorted(self.graph.successors(file_path))

    def importers_of(self, file_path: str) -> list[str]:
        """Files that import `file_path` (incoming adjacency)."""
        if not self.graph.has_node(file_path):
            return []
        return sorted(self.graph.predecessors(file_path))

    def is_barrel(self, file_path: str) -> bool:
        return bool(self.graph.nodes.get(file_path, {}).get("is_barrel", False))

    def get_stats(self) -> dict:
        """Get graph statistics."""
        languages: dict[str, int] = {}
        for _, data in self.graph.nodes(data=True):
            lang = data.get("language", "unknown")
            languages[lang] = languages.get(lang, 0) + 1

        return {
            "files": self.graph.number_of_nodes(),
            "edges": self.graph.number_of_edges(),
            "languages": languages,
            "barrels": sum(1 for _, d in self.graph.nodes(data=True) if d.get("is_barrel")),
            "unparsed": sum(1 for _, d in self.graph.nodes(data=True) if not d.get("parsed", True)),
        }


class GraphBuilder:
    """Builds a `DependencyGraph` from the files under a project root.

    Files are read and parsed on a thread pool; results are merged in
    sorted path order, so the graph never depends on which read finished
    first. A file that cannot be read or parsed becomes a leaf.
    """

    def __init__(
        self,
        config: IndexerConfig | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.config = config or IndexerConfig()
        self.log = logger or _logger

    def build(
        self,
        root: str | Path,
        cancel: CancellationToken | None = None,
        fingerprint: tuple = (),
    ) -> DependencyGraph:
        """Build the import graph for `root`.

        Args:
            root: Project root directory.
            cancel: Optional token polled between files; raises
                `AnalysisCancelled` when set.
            fingerprint: Opaque cache key stored on the result.
        """
        root = Path(root).resolve()
        if not root.is_dir():
            raise GraphError(f"Project root {root} is not a directory")
        files = collect_files(root, self.config)
        known = frozenset(files)
        self.log.debug(f"Building dependency graph for {root}: {len(files)} files")

        parsed = self._parse_all(root, files, cancel)

        graph = nx.DiGraph()
        for rel_path, fs in zip(files, parsed):
            graph.add_node(
                rel_path,
                language=fs.language if fs else "unknown",
                is_barrel=fs.is_barrel if fs else False,
                parsed=bool(fs and fs.parsed),
            )

        for rel_path, fs in zip(files, parsed):
            raise_if_cancelled(cancel, "graph build")
            if fs is None or not fs.parsed:
                continue
            for ref in fs.imports:
                target = resolve_specifier(rel_path, ref, known, self.config.source_extensions)
                if target is None or target == rel_path:
                    continue
                if not graph.has_edge(rel_path, target):
                    graph.add_edge(rel_path, target, line=ref.line, reexport=ref.reexport)

        self.log.debug(
            f"Dependency graph for {root}: "
            f"{graph.number_of_nodes()} files, {graph.number_of_edges()} edges"
        )
        return DependencyGraph(root, graph, fingerprint)

    def _parse_all(
        self,
        root: Path,
        files: list[str],
        cancel: CancellationToken | None,
    ) -> list[FileSymbols | None]:
        executor = ThreadPoolExecutor(
            max_workers=max(1, self.config.io_workers),
            thread_name_prefix="impactscope-io",
        )
        try:
            futures = [executor.submit(self._load, root, rel_path) for rel_path in files]
            results: list[FileSymbols | None] = []
            for rel_path, future in zip(files, futures):
                raise_if_cancelled(cancel, "graph build")
                try:
                    results.append(future.result(timeout=self.config.read_timeout_s))
                except FutureTimeout:
                    self.log.warning(f"Timed out reading {rel_path}; treating it as a leaf")
                    results.append(None)
            return results
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

    def _load(self, root: Path, rel_path: str) -> FileSymbols | None:
        try:
            source = read_source(root, rel_path)
        except FileSystemFailure as e:
            self.log.warning(f"{e}; treating it as a leaf")
            return None
        try:
            fs = parse_source(rel_path, source)
        except Exception as e:
            self.log.warning(f"Cannot parse {rel_path}: {e}")
            return None
        if fs.errors:
            self.log.debug(f"Parse errors in {rel_path}: {fs.errors[0]}")
        return fs


def resolve_specifier(
    importer: str,
    ref: ImportRef,
    known_files: frozenset[str] | set[str],
    extensions: list[str],
) -> str | None:
    """Resolve an import specifier to a project-relative file, or None.

    Relative specifiers are joined to the importer's directory. Python
    absolute imports are tried against the project root, then the
    importer's directory. Anything else (bare package names, absolute
    paths) is external. Each base is probed as: exact file, then with
    each configured extension, then as a directory index file.
    """
    spec = ref.specifier
    importer_dir = posixpath.dirname(importer)

    if spec in (".", "..") or spec.startswith(("./", "../")):
        bases = [posixpath.join(importer_dir, spec)]
    elif ref.root_relative:
        bases = [spec, posixpath.join(importer_dir, spec)]
    else:
        return None

    for base in bases:
        candidate = posixpath.normpath(base)
        if candidate == ".." or candidate.startswith("../") or posixpath.isabs(candidate):
            continue  # outside the project
        hit = _probe(candidate, known_files, extensions)
        if hit:
            return hit
    return None


def _probe(candidate: str, known_files, extensions: list[str]) -> str | None:
    if candidate in known_files:
        return candidate
    for ext in extensions:
        if candidate + ext in known_files:
            return candidate + ext
    for ext in extensions:
        index_name = "__init__.py" if ext == ".py" else f"index{ext}"
        index = posixpath.normpath(posixpath.join(candidate, index_name))
        if index in known_files:
            return index
    return None
