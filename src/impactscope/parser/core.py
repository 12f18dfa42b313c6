"""Core parser orchestration - selects the parser for each file and enumerates project sources."""

from __future__ import annotations

import fnmatch
import logging
import os
from pathlib import Path

from impactscope.config import IndexerConfig
from impactscope.exceptions import FileSystemFailure
from impactscope.parser.models import FileSymbols, detect_language

logger = logging.getLogger("impactscope.parser")


def parse_source(file_path: str, source: str) -> FileSymbols:
    """Parse source text, auto-detecting language from `file_path`.

    Never raises. Unsupported languages yield an empty result with
    `language="unknown"`; malformed source yields an empty result with
    `errors` filled in.

    - Python: uses stdlib ast
    - JS/TS: uses tree-sitter
    """
    language = detect_language(file_path)
    if not language:
        return FileSymbols(file_path=file_path, language="unknown")

    if language == "python":
        from impactscope.parser.python_parser import parse_python_file

        return parse_python_file(file_path, source)

    from impactscope.parser.tree_sitter_parser import is_available, parse_tree_sitter_file

    if is_available(language):
        return parse_tree_sitter_file(file_path, language, source)

    # Language detected but no tree-sitter grammar installed
    logger.warning(f"No tree-sitter grammar installed for {language}; skipping {file_path}")
    return FileSymbols(
        file_path=file_path,
        language=language,
        errors=[f"tree-sitter grammar for {language} is not installed"],
    )


def read_source(root: Path, rel_path: str) -> str:
    """Read a project file as text, raising `FileSystemFailure` if it can't be read."""
    try:
        return (root / rel_path).read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        raise FileSystemFailure(f"Cannot read {rel_path}: {e}") from e


def collect_files(root: str | Path, config: IndexerConfig | None = None) -> list[str]:
    """Collect project-relative posix paths of all source files, sorted."""
    root = Path(root).resolve()
    if config is None:
        config = IndexerConfig()
    return sorted(p.relative_to(root).as_posix() for p in _collect_files(root, config))


def _collect_files(root: Path, config: IndexerConfig) -> list[Path]:
    """Collect all source files with a configured extension, respecting exclusion patterns."""
    files = []
    max_size = config.max_file_size_kb * 1024
    extensions = {ext.lower() for ext in config.source_extensions}

    # Read .gitignore if available
    gitignore_patterns = _read_gitignore(root)
    all_exclude = config.exclude_patterns + gitignore_patterns

    def _on_error(error: OSError) -> None:
        logger.debug(f"Skipping unreadable directory: {error}")

    for dirpath, dirnames, filenames in os.walk(root, onerror=_on_error):
        rel_dir = os.path.relpath(dirpath, root)

        # Filter out excluded directories
        dirnames[:] = [
            d
            for d in dirnames
            if not _should_exclude(os.path.join(rel_dir, d) if rel_dir != "." else d, all_exclude)
        ]

        for filename in filenames:
            rel_path = (
                os.path.join(rel_dir, filename) if rel_dir != "." else filename
            )

            if _should_exclude(rel_path, all_exclude):
                continue

            if Path(filename).suffix.lower() not in extensions:
                continue

            full_path = Path(dirpath) / filename

            # Check file size
            try:
                if full_path.stat().st_size > max_size:
                    continue
            except OSError:
                continue

            files.append(full_path)

    return sorted(files)


def _should_exclude(path: str, patterns: list[str]) -> bool:
    """True if the path, or any one of its components, matches a pattern."""
    parts = Path(path).parts
    return any(
        fnmatch.fnmatch(path, pattern) or any(fnmatch.fnmatch(part, pattern) for part in parts)
        for pattern in patterns
    )


def _read_gitignore(root: Path) -> list[str]:
    """Plain .gitignore patterns of the project root; negations are not supported."""
    try:
        lines = (root / ".gitignore").read_text(encoding="utf-8").splitlines()
    except OSError:
        return []
    return [
        entry.strip().strip("/")
        for entry in lines
        if entry.strip() and not entry.strip().startswith(("#", "!"))
    ]
