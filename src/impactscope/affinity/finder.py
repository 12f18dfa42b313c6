"""Test affinity - which test files most likely exercise a changed file.

Two heuristics, unioned:

1. Naming: for `dir/stem.ext` probe `stem.test.<ext>`, `stem.spec.<ext>`
   (and `test_stem.py` / `stem_test.py` for Python) next to the file, in
   test-grouping directories beside it and beside its parent, and in the
   project root's test directories.
2. Graph membership: downstream files whose own name is a test name are
   tests; they stay in the downstream list as well.

Missing files, unreadable directories and slow probes all count as "no
match". The resolver never raises for filesystem trouble.
"""

from __future__ import annotations

import logging
import posixpath
import re
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from pathlib import Path

from impactscope.cancellation import CancellationToken, raise_if_cancelled
from impactscope.config import AffinityConfig, IndexerConfig
from impactscope.graph.query import normalize_path

_logger = logging.getLogger("impactscope.affinity")

TEST_NAME_PATTERNS = [
    re.compile(r"\.(test|spec)\.[A-Za-z0-9]+$", re.IGNORECASE),
    re.compile(r"^test_.+\.[A-Za-z0-9]+$"),
    re.compile(r"^.+_test\.[A-Za-z0-9]+$"),
]


def is_test_file(file_path: str) -> bool:
    """True when the file name follows a test naming convention."""
    name = posixpath.basename(file_path.replace("\\", "/"))
    return any(p.search(name) for p in TEST_NAME_PATTERNS)


def candidate_paths(
    subject: str,
    extensions: list[str],
    test_directories: list[str],
) -> list[str]:
    """Project-relative paths where a test for `subject` would live, most likely first."""
    directory = posixpath.dirname(subject)
    stem, ext = posixpath.splitext(posixpath.basename(subject))
    if not stem:
        return []

    exts = [ext] + [e for e in extensions if e != ext] if ext else list(extensions)
    names = []
    for e in exts:
        names += [f"{stem}.test{e}", f"{stem}.spec{e}"]
    if ".py" in exts:
        names += [f"test_{stem}.py", f"{stem}_test.py"]

    dirs = [directory] + [posixpath.join(directory, g) for g in test_directories]
    if directory:
        parent = posixpath.dirname(directory)
        dirs += [posixpath.join(parent, g) for g in test_directories]
        dirs += list(test_directories)

    seen: dict[str, None] = {}
    for d in dirs:
        for name in names:
            seen.setdefault(posixpath.normpath(posixpath.join(d, name)), None)
    return list(seen)


def find_tests(
    source_file: str,
    downstream_files: list[str] | tuple[str, ...],
    project_root: str | Path,
    config: AffinityConfig | None = None,
    extensions: list[str] | None = None,
    cancel: CancellationToken | None = None,
    logger: logging.Logger | None = None,
) -> list[str]:
    """Ordered, deduplicated test files related to `source_file` or its dependents."""
    config = config or AffinityConfig()
    extensions = extensions or IndexerConfig().source_extensions
    log = logger or _logger

    root = Path(project_root)
    try:
        if not root.is_dir():
            log.warning(f"Project root {root} is not a readable directory; no tests found")
            return []
    except OSError as e:
        log.warning(f"Cannot access project root {root}: {e}")
        return []

    source = normalize_path(source_file)
    downstream = [normalize_path(f) for f in downstream_files]
    subjects = list(dict.fromkeys([source] + downstream))

    # Graph membership first, then naming probes, in subject order
    plan: list[tuple[str, bool]] = []
    for subject in subjects:
        if subject != source and is_test_file(subject):
            plan.append((subject, True))
        for candidate in candidate_paths(subject, extensions, config.test_directories):
            plan.append((candidate, False))

    found: dict[str, None] = {}
    executor = ThreadPoolExecutor(
        max_workers=max(1, config.io_workers), thread_name_prefix="impactscope-tests"
    )
    try:
        to_probe = dict.fromkeys(p for p, known in plan if not known and p != source)
        probes = {path: executor.submit(_exists, root, path) for path in to_probe}
        for path, known in plan:
            raise_if_cancelled(cancel, "test discovery")
            if path == source or path in found:
                continue
            if known:
                found[path] = None
                continue
            try:
                if probes[path].result(timeout=config.probe_timeout_s):
                    found[path] = None
            except FutureTimeout:
                log.warning(f"Timed out probing {path}")
    finally:
        executor.shutdown(wait=False, cancel_futures=True)

    log.debug(f"Found {len(found)} test file(s) for {source}")
    return list(found)


def _exists(root: Path, rel_path: str) -> bool:
    try:
        return (root / rel_path).is_file()
    except OSError:
        return False
