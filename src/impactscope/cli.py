"""Command-line interface for ImpactScope."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import click

from impactscope import __version__
from impactscope.config import (
    ProjectConfig,
    find_project_root,
    load_config,
    save_config,
    set_config_value,
)
from impactscope.exceptions import ConfigError, ImpactScopeError
from impactscope.ui.console import Console

console = Console()


def _get_project_root(path: str | None = None) -> Path:
    """Find the project root or error."""
    if path:
        root = Path(path).resolve()
        if not root.is_dir():
            console.error(f"Path is not a directory: {path}")
            sys.exit(1)
        return root
    return find_project_root() or Path.cwd().resolve()


def _load_config(root: Path) -> ProjectConfig:
    try:
        config = load_config(root)
    except ConfigError as e:
        console.error(str(e))
        sys.exit(1)
    config.root_path = str(root)
    return config


def _relative_file(root: Path, file: str) -> str:
    # Existing paths are taken relative to the cwd, anything else to the root
    path = Path(file)
    if path.is_absolute() or path.exists():
        try:
            return path.resolve().relative_to(root).as_posix()
        except ValueError:
            pass
    return path.as_posix()


def _read_text(path: str) -> str:
    try:
        return Path(path).read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        console.error(f"Cannot read {path}: {e}")
        sys.exit(1)


def _read_current(path: Path) -> str:
    # A file deleted since HEAD has no current text
    if not path.exists():
        return ""
    return _read_text(str(path))


@click.group()
@click.version_option(version=__version__, prog_name="impactscope")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging.")
def main(verbose: bool):
    """ImpactScope - what else could break if you commit this change?"""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@main.command()
@click.argument("file", required=False)
@click.option("--before", "before_path", default=None, help="File holding the old text (default: FILE at git HEAD).")
@click.option("--after", "after_path", default=None, help="File holding the new text (default: FILE).")
@click.option("--changed", is_flag=True, help="Analyze every source file that differs from git HEAD.")
@click.option("--root", "-r", default=None, help="Path to the project root.")
@click.option("--commit", default=None, help="Commit hash to look up in CI history (default: git HEAD).")
@click.option("--max-depth", type=int, default=None, help="Limit downstream traversal depth.")
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON.")
def analyze(
    file: str | None,
    before_path: str | None,
    after_path: str | None,
    changed: bool,
    root: str | None,
    commit: str | None,
    max_depth: int | None,
    as_json: bool,
):
    """Analyze the impact of changing FILE from --before to --after.

    Without --before, the old text is taken from git HEAD. With --changed,
    every modified, added or deleted source file is analyzed.
    """
    from impactscope import git
    from impactscope.report.assembler import ImpactAnalyzer
    from impactscope.report.models import ChangeRequest

    if bool(file) == changed:
        console.error("Give either FILE or --changed")
        sys.exit(1)

    project_root = _get_project_root(root)
    config = _load_config(project_root)
    in_git = git.is_git_repository(project_root)
    if not config.ci.repo_full_name and in_git:
        config.ci.repo_full_name = git.remote_repo_full_name(project_root) or ""
    if commit is None and in_git:
        commit = git.head_commit(project_root)

    if changed:
        if not in_git:
            console.error(f"{project_root} is not inside a git repository")
            sys.exit(1)
        extensions = {ext.lower() for ext in config.indexer.source_extensions}
        files = [f for f in git.changed_files(project_root) if Path(f).suffix.lower() in extensions]
        pairs = [
            (rel, git.file_content_at(project_root, rel) or "", _read_current(project_root / rel))
            for rel in files
        ]
    else:
        rel_file = _relative_file(project_root, file)
        if before_path:
            before = _read_text(before_path)
        elif in_git:
            before = git.file_content_at(project_root, rel_file)
            if before is None:
                if not as_json:
                    console.info(f"{rel_file} is not in git HEAD; treating it as a new file")
                before = ""
        else:
            console.error("--before is required outside a git repository")
            sys.exit(1)
        after = _read_text(after_path or str(project_root / rel_file))
        pairs = [(rel_file, before, after)]

    results = []
    with ImpactAnalyzer.from_config(config) as analyzer:
        for rel_file, before, after in pairs:
            try:
                request = ChangeRequest.from_data(
                    {"file": rel_file, "before": before, "after": after, "projectRoot": str(project_root)}
                )
                results.append(analyzer.analyze(request, commit_hash=commit, max_depth=max_depth))
            except ImpactScopeError as e:
                console.error(str(e))
                sys.exit(1)

    if changed and as_json:
        click.echo(json.dumps([r.model_dump(mode="json", by_alias=True) for r in results], indent=2))
    elif as_json:
        click.echo(results[0].to_json())
    elif changed and not results:
        console.info("No changed source files")
    else:
        for result in results:
            console.show_result(result)


@main.command()
@click.argument("file")
@click.option("--root", "-r", default=None, help="Path to the project root.")
@click.option("--max-depth", type=int, default=None, help="Limit traversal depth.")
def downstream(file: str, root: str | None, max_depth: int | None):
    """List files that import FILE, directly or transitively."""
    from impactscope.graph.builder import GraphBuilder
    from impactscope.graph.query import resolve_downstream

    project_root = _get_project_root(root)
    config = _load_config(project_root)
    graph = GraphBuilder(config.indexer).build(project_root)

    rel_file = _relative_file(project_root, file)
    if not graph.has_file(rel_file):
        console.warning(f"{rel_file} is not part of the dependency graph")
    console.show_files(
        f"Downstream of {rel_file}",
        resolve_downstream(graph, rel_file, max_depth=max_depth),
    )


@main.command()
@click.argument("file")
@click.option("--root", "-r", default=None, help="Path to the project root.")
def tests(file: str, root: str | None):
    """List test files likely to cover FILE or its dependents."""
    from impactscope.affinity.finder import find_tests
    from impactscope.graph.builder import GraphBuilder
    from impactscope.graph.query import resolve_downstream

    project_root = _get_project_root(root)
    config = _load_config(project_root)
    graph = GraphBuilder(config.indexer).build(project_root)

    rel_file = _relative_file(project_root, file)
    found = find_tests(
        rel_file,
        resolve_downstream(graph, rel_file),
        project_root,
        config=config.tests,
        extensions=config.indexer.source_extensions,
    )
    console.show_files(f"Tests for {rel_file}", found)


@main.command()
@click.option("--root", "-r", default=None, help="Path to the project root.")
def graph(root: str | None):
    """Build the dependency graph and show its statistics."""
    from impactscope.graph.builder import GraphBuilder

    project_root = _get_project_root(root)
    config = _load_config(project_root)

    console.info(f"Scanning {project_root}")
    dep_graph = GraphBuilder(config.indexer).build(project_root)
    console.show_stats(dep_graph.get_stats())


@main.command("config")
@click.argument("action", type=click.Choice(["show", "get", "set"]))
@click.argument("key", required=False)
@click.argument("value", required=False)
@click.option("--root", "-r", default=None, help="Path to the project root.")
def config_cmd(action: str, key: str | None, value: str | None, root: str | None):
    """Manage ImpactScope configuration."""
    project_root = _get_project_root(root)
    config = _load_config(project_root)

    if action == "show":
        console.json(json.dumps(config.model_dump(), indent=2))
    elif action == "get":
        if not key:
            console.error("Usage: impactscope config get <key>")
            sys.exit(1)
        data = config.model_dump()
        for part in key.split("."):
            if isinstance(data, dict) and part in data:
                data = data[part]
            else:
                console.error(f"Unknown key: {key}")
                sys.exit(1)
        console.console.print(f"{key} = {data}")
    elif action == "set":
        if not key or value is None:
            console.error("Usage: impactscope config set <key> <value>")
            sys.exit(1)
        try:
            # Try to parse as JSON for non-string values
            try:
                parsed_value = json.loads(value)
            except json.JSONDecodeError:
                parsed_value = value

            config = set_config_value(config, key, parsed_value)
            save_config(project_root, config)
            console.success(f"Set {key} = {parsed_value}")
        except KeyError:
            console.error(f"Unknown config key: {key}")
            sys.exit(1)
        except ConfigError as e:
            console.error(str(e))
            sys.exit(1)


if __name__ == "__main__":
    main()
