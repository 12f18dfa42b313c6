"""Tests for the git helpers."""

from __future__ import annotations

import re
from pathlib import Path

import pytest

from impactscope import git


class TestNormalizeRepoFullName:
    @pytest.mark.parametrize(
        "url,expected",
        [
            ("git@github.com:Acme/Shop.git", "acme/shop"),
            ("https://github.com/acme/shop.git", "acme/shop"),
            ("https://github.com/acme/shop", "acme/shop"),
            ("ssh://git@github.com/acme/shop.git", "acme/shop"),
            ("  git@gitlab.com:acme/shop.git\n", "acme/shop"),
            ("https://github.com/", None),
            ("shop", None),
            ("", None),
        ],
    )
    def test_formats(self, url: str, expected: str | None):
        assert git.normalize_repo_full_name(url) == expected


class TestGitRepository:
    def test_is_git_repository(self, git_project: Path, tmp_path: Path):
        assert git.is_git_repository(git_project)
        outside = tmp_path / "plain"
        outside.mkdir()
        assert not git.is_git_repository(outside)

    def test_file_content_at_head(self, git_project: Path, discount_before: str, discount_after: str):
        (git_project / "src" / "calculateDiscount.ts").write_text(discount_after)
        assert git.file_content_at(git_project, "src/calculateDiscount.ts") == discount_before

    def test_file_content_of_untracked_file(self, git_project: Path):
        (git_project / "src" / "new.ts").write_text("export const n = 1;\n")
        assert git.file_content_at(git_project, "src/new.ts") is None

    def test_head_commit(self, git_project: Path):
        assert re.fullmatch(r"[0-9a-f]{40}", git.head_commit(git_project))

    def test_remote_repo_full_name(self, git_project: Path):
        assert git.remote_repo_full_name(git_project) == "acme/pricing"

    def test_changed_files(self, git_project: Path, run_git):
        (git_project / "src" / "calculateDiscount.ts").write_text("// edited\n")
        (git_project / "src" / "new.ts").write_text("export const n = 1;\n")
        (git_project / "src" / "app.ts").unlink()
        (git_project / "src" / "pricingService.ts").write_text("// staged\n")
        run_git(git_project, "add", "src/pricingService.ts")

        assert git.changed_files(git_project) == [
            "src/app.ts",
            "src/calculateDiscount.ts",
            "src/new.ts",
            "src/pricingService.ts",
        ]

    def test_clean_tree_has_no_changes(self, git_project: Path):
        assert git.changed_files(git_project) == []

    def test_project_in_subdirectory(self, git_project: Path, discount_before: str):
        (git_project / "src" / "calculateDiscount.ts").write_text("// edited\n")
        sub = git_project / "src"
        assert git.file_content_at(sub, "calculateDiscount.ts") == discount_before
        assert git.changed_files(sub) == ["calculateDiscount.ts"]

    def test_outside_repository(self, tmp_path: Path):
        assert git.head_commit(tmp_path) is None
        assert git.remote_repo_full_name(tmp_path) is None
        assert git.file_content_at(tmp_path, "x.ts") is None
        assert git.changed_files(tmp_path) == []
