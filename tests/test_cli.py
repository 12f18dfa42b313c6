"""Tests for the CLI interface."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from impactscope import git
from impactscope.cli import main
from impactscope.report.assembler import ImpactAnalyzer


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def changed_project(pricing_project: Path, discount_after: str, tmp_path: Path) -> tuple[Path, Path]:
    """The pricing project with calculateDiscount edited; returns (root, before file)."""
    target = pricing_project / "src" / "calculateDiscount.ts"
    before = tmp_path / "before.ts"
    before.write_text(target.read_text())
    target.write_text(discount_after)
    return pricing_project, before


class TestCLIAnalyze:
    def test_analyze_json(self, runner: CliRunner, changed_project):
        root, before = changed_project
        result = runner.invoke(
            main,
            ["analyze", "src/calculateDiscount.ts", "--before", str(before), "--root", str(root), "--json"],
        )
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["filePath"] == "src/calculateDiscount.ts"
        assert data["report"]["functions"] == ["calculateDiscount"]
        assert "src/checkoutController.ts" in data["report"]["downstreamFiles"]
        assert data["riskLevel"] in ("low", "medium", "high")

    def test_analyze_text(self, runner: CliRunner, changed_project):
        root, before = changed_project
        result = runner.invoke(
            main, ["analyze", "src/calculateDiscount.ts", "--before", str(before), "--root", str(root)]
        )
        assert result.exit_code == 0, result.output
        assert "Impact Analysis" in result.output
        assert "calculateDiscount" in result.output

    def test_analyze_explicit_after(self, runner: CliRunner, pricing_project: Path, tmp_path: Path):
        same = tmp_path / "same.ts"
        same.write_text((pricing_project / "src" / "calculateDiscount.ts").read_text())
        result = runner.invoke(
            main,
            [
                "analyze", "src/calculateDiscount.ts",
                "--before", str(same), "--after", str(same),
                "--root", str(pricing_project), "--json",
            ],
        )
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["report"]["issues"] == []
        assert data["hasActualChanges"] is False

    def test_analyze_missing_before(self, runner: CliRunner, pricing_project: Path):
        result = runner.invoke(
            main,
            ["analyze", "src/calculateDiscount.ts", "--before", "/nonexistent/x.ts", "--root", str(pricing_project)],
        )
        assert result.exit_code != 0

    def test_analyze_outside_root(self, runner: CliRunner, changed_project):
        root, before = changed_project
        result = runner.invoke(
            main,
            ["analyze", "../elsewhere.ts", "--before", str(before), "--after", str(before), "--root", str(root)],
        )
        assert result.exit_code != 0
        assert "outside" in result.output

    def test_needs_file_or_changed(self, runner: CliRunner, pricing_project: Path):
        result = runner.invoke(main, ["analyze", "--root", str(pricing_project)])
        assert result.exit_code != 0
        assert "--changed" in result.output

    def test_before_required_outside_git(self, runner: CliRunner, pricing_project: Path):
        result = runner.invoke(main, ["analyze", "src/calculateDiscount.ts", "--root", str(pricing_project)])
        assert result.exit_code != 0
        assert "--before is required" in result.output


class TestCLIGit:
    def test_before_defaults_to_head(self, runner: CliRunner, git_project: Path, discount_after: str):
        (git_project / "src" / "calculateDiscount.ts").write_text(discount_after)
        result = runner.invoke(main, ["analyze", "src/calculateDiscount.ts", "--root", str(git_project), "--json"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["report"]["functions"] == ["calculateDiscount"]

    def test_untracked_file_is_new(self, runner: CliRunner, git_project: Path):
        (git_project / "src" / "extra.ts").write_text("export function extra() { return 1; }\n")
        result = runner.invoke(main, ["analyze", "src/extra.ts", "--root", str(git_project), "--json"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["report"]["functions"] == ["extra"]

    def test_commit_and_repo_from_git(self, runner: CliRunner, git_project: Path, discount_after: str, monkeypatch):
        seen = {}
        analyze = ImpactAnalyzer.analyze

        def recording_analyze(self, request, commit_hash=None, cancel=None, max_depth=None):
            seen["commit"] = commit_hash
            seen["repo"] = self.config.ci.repo_full_name
            return analyze(self, request, commit_hash=commit_hash, cancel=cancel, max_depth=max_depth)

        monkeypatch.setattr(ImpactAnalyzer, "analyze", recording_analyze)
        (git_project / "src" / "calculateDiscount.ts").write_text(discount_after)
        result = runner.invoke(main, ["analyze", "src/calculateDiscount.ts", "--root", str(git_project)])
        assert result.exit_code == 0, result.output
        assert seen == {"commit": git.head_commit(git_project), "repo": "acme/pricing"}

    def test_changed_files(self, runner: CliRunner, git_project: Path, discount_after: str):
        (git_project / "src" / "calculateDiscount.ts").write_text(discount_after)
        (git_project / "README.md").write_text("# pricing, edited\n")
        result = runner.invoke(main, ["analyze", "--changed", "--root", str(git_project), "--json"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert [r["filePath"] for r in data] == ["src/calculateDiscount.ts"]
        assert data[0]["report"]["functions"] == ["calculateDiscount"]

    def test_changed_files_clean_tree(self, runner: CliRunner, git_project: Path):
        result = runner.invoke(main, ["analyze", "--changed", "--root", str(git_project)])
        assert result.exit_code == 0
        assert "No changed source files" in result.output


class TestCLIGraphCommands:
    def test_downstream(self, runner: CliRunner, pricing_project: Path):
        result = runner.invoke(main, ["downstream", "src/calculateDiscount.ts", "--root", str(pricing_project)])
        assert result.exit_code == 0
        assert "src/pricingService.ts" in result.output
        assert "src/app.ts" in result.output

    def test_downstream_max_depth(self, runner: CliRunner, pricing_project: Path):
        result = runner.invoke(
            main,
            ["downstream", "src/calculateDiscount.ts", "--root", str(pricing_project), "--max-depth", "1"],
        )
        assert result.exit_code == 0
        assert "src/app.ts" not in result.output

    def test_downstream_unknown_file(self, runner: CliRunner, pricing_project: Path):
        result = runner.invoke(main, ["downstream", "src/missing.ts", "--root", str(pricing_project)])
        assert result.exit_code == 0
        assert "not part of the dependency graph" in result.output

    def test_tests(self, runner: CliRunner, pricing_project: Path):
        result = runner.invoke(main, ["tests", "src/calculateDiscount.ts", "--root", str(pricing_project)])
        assert result.exit_code == 0
        assert "src/calculateDiscount.test.ts" in result.output
        assert "src/checkoutController.test.ts" in result.output

    def test_graph_stats(self, runner: CliRunner, pricing_project: Path):
        result = runner.invoke(main, ["graph", "--root", str(pricing_project)])
        assert result.exit_code == 0
        assert "Dependency Graph Statistics" in result.output

    def test_nonexistent_root(self, runner: CliRunner):
        result = runner.invoke(main, ["graph", "--root", "/nonexistent/path"])
        assert result.exit_code != 0


class TestCLIConfig:
    def test_config_show(self, runner: CliRunner, pricing_project: Path):
        result = runner.invoke(main, ["config", "show", "--root", str(pricing_project)])
        assert result.exit_code == 0
        assert "confidence" in result.output

    def test_config_get(self, runner: CliRunner, pricing_project: Path):
        result = runner.invoke(
            main, ["config", "get", "confidence.fan_out_threshold", "--root", str(pricing_project)]
        )
        assert result.exit_code == 0
        assert "10" in result.output

    def test_config_set(self, runner: CliRunner, pricing_project: Path):
        result = runner.invoke(
            main, ["config", "set", "ci.team_id", "team-1", "--root", str(pricing_project)]
        )
        assert result.exit_code == 0
        assert (pricing_project / ".impactscope" / "config.json").exists()
        saved = json.loads((pricing_project / ".impactscope" / "config.json").read_text())
        assert saved["ci"]["team_id"] == "team-1"

    def test_config_set_invalid_key(self, runner: CliRunner, pricing_project: Path):
        result = runner.invoke(main, ["config", "set", "nope.key", "1", "--root", str(pricing_project)])
        assert result.exit_code != 0

    def test_config_set_invalid_value(self, runner: CliRunner, pricing_project: Path):
        result = runner.invoke(
            main, ["config", "set", "confidence.weights", '{"change_scope": 3}', "--root", str(pricing_project)]
        )
        assert result.exit_code != 0


class TestCLIVersion:
    def test_version(self, runner: CliRunner):
        result = runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output
