"""Git helpers - previous file contents, HEAD commit, repository name, changed files.

Every helper shells out to the `git` binary with a timeout and returns None
(or an empty list) when git is missing, the directory is not a repository,
or the command fails, so callers can fall back to explicit input.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from urllib.parse import urlparse

logger = logging.getLogger("impactscope.git")

GIT_TIMEOUT_S = 30


def _run_git(root: Path, *args: str) -> str | None:
    """Run a git command in `root` and return its stdout, or None on failure."""
    try:
        result = subprocess.run(
            ["git", *args],
            cwd=root,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=GIT_TIMEOUT_S,
        )
    except (subprocess.TimeoutExpired, OSError) as e:
        logger.debug(f"git {args[0]} failed in {root}: {e}")
        return None
    if result.returncode != 0:
        logger.debug(f"git {' '.join(args)} exited {result.returncode}: {result.stderr.strip()}")
        return None
    return result.stdout


def is_git_repository(root: Path) -> bool:
    return _run_git(root, "rev-parse", "--show-toplevel") is not None


def file_content_at(root: Path, rel_path: str, revision: str = "HEAD") -> str | None:
    """Text of `rel_path` (relative to `root`) at `revision`, or None if it isn't there."""
    return _run_git(root, "show", f"{revision}:./{rel_path}")


def head_commit(root: Path) -> str | None:
    sha = _run_git(root, "rev-parse", "HEAD")
    return sha.strip() if sha else None


def normalize_repo_full_name(remote_url: str) -> str | None:
    """`owner/repo` (lowercase) from an ssh, https or path-style remote URL.

    >>> normalize_repo_full_name("git@github.com:Acme/Shop.git")
    'acme/shop'
    """
    url = remote_url.strip()
    if url.endswith(".git"):
        url = url[:-4]
    if not url:
        return None

    if url.startswith("git@"):
        _, _, path = url.partition(":")
        return path.strip("/").lower() or None

    if url.startswith(("http://", "https://")):
        path = urlparse(url).path.strip("/")
        return path.lower() or None

    segments = [s for s in url.split("/") if s]
    if len(segments) >= 2:
        return f"{segments[-2]}/{segments[-1]}".lower()
    return None


def remote_repo_full_name(root: Path, remote: str = "origin") -> str | None:
    url = _run_git(root, "config", "--get", f"remote.{remote}.url")
    return normalize_repo_full_name(url) if url else None


def changed_files(root: Path) -> list[str]:
    """Files under `root` that differ from HEAD, plus untracked files.

    Paths are relative to `root`; staged, unstaged and deleted files are
    all included. Ignored files are left out.
    """
    tracked = _run_git(root, "diff", "--name-only", "--relative", "-z", "HEAD")
    if tracked is None:
        return []
    untracked = _run_git(root, "ls-files", "--others", "--exclude-standard", "-z") or ""
    paths = {p for p in (tracked + untracked).split("\0") if p}
    return sorted(paths)
