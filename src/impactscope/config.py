"""Configuration management for ImpactScope."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError, model_validator

from impactscope.exceptions import ConfigError

IMPACTSCOPE_DIR = ".impactscope"
CONFIG_FILE = "config.json"


class IndexerConfig(BaseModel):
    """Which files take part in the dependency graph."""

    source_extensions: list[str] = Field(
        default_factory=lambda: [".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs", ".py"]
    )
    exclude_patterns: list[str] = Field(
        default_factory=lambda: [
            "node_modules",
            "__pycache__",
            ".git",
            ".impactscope",
            ".vscode",
            "dist",
            "build",
            "out",
            "coverage",
            ".nyc_output",
            ".next",
            ".nuxt",
            "vendor",
            ".venv",
            "venv",
            "*.min.js",
            "*.d.ts",
        ]
    )
    max_file_size_kb: int = 500
    io_workers: int = 8
    read_timeout_s: float = 5.0


class AffinityConfig(BaseModel):
    """Test-affinity heuristics."""

    test_directories: list[str] = Field(
        default_factory=lambda: ["__tests__", "test", "tests", "spec"]
    )
    probe_timeout_s: float = 2.0
    io_workers: int = 8


class ConfidenceConfig(BaseModel):
    """Metric weights, penalties and tier thresholds.

    These are policy, not truth: tune them per project in
    `.impactscope/config.json`.
    """

    weights: dict[str, float] = Field(
        default_factory=lambda: {
            "change_scope": 0.30,
            "test_coverage": 0.30,
            "change_kind": 0.20,
            "historical_stability": 0.20,
        }
    )
    symbol_penalty: float = 5.0
    downstream_penalty: float = 4.0
    fan_out_threshold: int = 10
    coverage_ratio_threshold: float = 0.5
    kind_scores: dict[str, float] = Field(
        default_factory=lambda: {
            "added": 100.0,
            "modified-body": 85.0,
            "modified-signature": 60.0,
            "removed": 30.0,
        }
    )
    flaky_penalty: float = 50.0
    # (minimum total, status, risk level), evaluated top-down
    tiers: list[tuple[int, str, str]] = Field(
        default_factory=lambda: [
            (86, "high", "low"),
            (70, "acceptable", "low"),
            (50, "warning", "medium"),
            (0, "critical", "high"),
        ]
    )

    @model_validator(mode="after")
    def _check_policy(self) -> ConfidenceConfig:
        total = sum(self.weights.values())
        if abs(total - 1.0) > 1e-6:
            raise ValueError(f"confidence weights must sum to 1.0, got {total:.3f}")
        if not self.tiers or self.tiers[-1][0] != 0:
            raise ValueError("the last confidence tier must start at 0")
        return self


class CiConfig(BaseModel):
    """CI history backend configuration."""

    backend_url: str = ""
    team_id: str = ""
    repo_full_name: str = ""
    api_token_env: str = "IMPACTSCOPE_CI_TOKEN"
    timeout_s: float = 15.0
    limit: int = 200

    @property
    def api_token(self) -> str | None:
        if self.api_token_env:
            return os.environ.get(self.api_token_env)
        return None

    @property
    def enabled(self) -> bool:
        return bool(self.backend_url and self.team_id)


class ProjectConfig(BaseModel):
    """Full project configuration."""

    name: str = ""
    root_path: str = "."
    indexer: IndexerConfig = Field(default_factory=IndexerConfig)
    tests: AffinityConfig = Field(default_factory=AffinityConfig)
    confidence: ConfidenceConfig = Field(default_factory=ConfidenceConfig)
    ci: CiConfig = Field(default_factory=CiConfig)


def find_project_root(start: Path | None = None) -> Path | None:
    """Walk up from `start` looking for a .impactscope directory."""
    current = (start or Path.cwd()).resolve()
    while current != current.parent:
        if (current / IMPACTSCOPE_DIR).is_dir():
            return current
        current = current.parent
    if (current / IMPACTSCOPE_DIR).is_dir():
        return current
    return None


def get_impactscope_dir(root: Path) -> Path:
    """Get the .impactscope directory for a project root."""
    return root / IMPACTSCOPE_DIR


def load_config(root: Path) -> ProjectConfig:
    """Load configuration from .impactscope/config.json."""
    config_path = get_impactscope_dir(root) / CONFIG_FILE
    if config_path.exists():
        try:
            data = json.loads(config_path.read_text())
            return ProjectConfig(**data)
        except (json.JSONDecodeError, ValidationError) as e:
            raise ConfigError(f"Invalid config file {config_path}: {e}") from e
    return ProjectConfig(name=root.name, root_path=str(root))


def save_config(root: Path, config: ProjectConfig) -> None:
    """Save configuration to .impactscope/config.json."""
    cfg_dir = get_impactscope_dir(root)
    cfg_dir.mkdir(parents=True, exist_ok=True)
    config_path = cfg_dir / CONFIG_FILE
    config_path.write_text(json.dumps(config.model_dump(), indent=2))


def set_config_value(config: ProjectConfig, key: str, value: Any) -> ProjectConfig:
    """Set a nested config value using dot notation (e.g., 'ci.backend_url')."""
    parts = key.split(".")
    data = config.model_dump()
    target = data
    for part in parts[:-1]:
        if part not in target or not isinstance(target[part], dict):
            raise KeyError(f"Invalid config key: {key}")
        target = target[part]
    if parts[-1] not in target:
        raise KeyError(f"Invalid config key: {key}")
    target[parts[-1]] = value
    try:
        return ProjectConfig(**data)
    except ValidationError as e:
        raise ConfigError(f"Invalid value for {key}: {e}") from e
