"""Configuration management for apigate."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, ValidationError

from apigate.exceptions import ConfigError

APIGATE_DIR = ".apigate"
CONFIG_FILE = "config.json"
REPORT_FILE = "breaking-changes-report.md"


class GitConfig(BaseModel):
    """Refs being compared."""

    base_ref: str = "main"
    head_ref: str = "HEAD"


class SemverConfig(BaseModel):
    """cargo-semver-checks invocation."""

    enabled: bool = True
    install: bool = True
    manifest_path: str = "datafusion/Cargo.toml"
    config_file: str = ".cargo/semver-checks.toml"
    exclude_api_paths: list[str] = Field(
        default_factory=lambda: ["datafusion::internal", "datafusion::test_util"]
    )


class LogicalPlanConfig(BaseModel):
    """How the logical plan check is evaluated.

    ``analyzer`` runs the project's own analysis binary; ``pattern`` scans
    the diff of the plan source with the ``logical_plan`` rule instead.
    """

    mode: Literal["pattern", "analyzer"] = "analyzer"
    analyzer_bin: str = "analyze-logical-plan-changes"


class PatternRule(BaseModel):
    """A removed-line pattern applied to the diff of one watched file."""

    name: str
    label: str = ""
    path: str
    pattern: str
    ignore_comments: bool = True


def _default_rules() -> list[PatternRule]:
    return [
        PatternRule(
            name="logical_plan",
            label="LogicalPlan",
            path="datafusion/expr/src/logical_plan/plan.rs",
            pattern=r"^\s*[A-Z][A-Za-z0-9_]*\s*(\(.*\))?\s*(,|\{)\s*$",
        ),
        PatternRule(
            name="dataframe_api",
            label="DataFrame API",
            path="datafusion/src/dataframe/mod.rs",
            pattern=r"pub (fn|struct|enum)",
        ),
        PatternRule(
            name="sql_parser",
            label="SQL parser",
            path="datafusion/sql/src/keywords.rs",
            pattern=r",",
        ),
    ]


class ReportConfig(BaseModel):
    """Report output and the loose file-name scan it carries."""

    output_file: str = REPORT_FILE
    watched_areas: dict[str, str] = Field(
        default_factory=lambda: {
            "src/logical_expr": "LogicalExpr changes detected",
            "src/dataframe": "DataFrame API changes detected",
        }
    )


class NotifyConfig(BaseModel):
    """Downstream notification settings."""

    env_var_name: str = "BREAKING_CHANGES_DETECTED"
    post_comment: bool = True


class GateConfig(BaseModel):
    """Full gate configuration."""

    git: GitConfig = Field(default_factory=GitConfig)
    semver: SemverConfig = Field(default_factory=SemverConfig)
    logical_plan: LogicalPlanConfig = Field(default_factory=LogicalPlanConfig)
    rules: list[PatternRule] = Field(default_factory=_default_rules)
    report: ReportConfig = Field(default_factory=ReportConfig)
    notify: NotifyConfig = Field(default_factory=NotifyConfig)
    errors_are_breaking: bool = True

    def rule(self, name: str) -> PatternRule | None:
        for rule in self.rules:
            if rule.name == name:
                return rule
        return None


class GitHubEnv(BaseModel):
    """The slice of the GitHub Actions environment the gate reads."""

    base_ref: str | None = None
    env_file: str | None = None
    token: str | None = None
    repository: str | None = None
    event_path: str | None = None

    @classmethod
    def from_environ(cls, environ: dict[str, str] | None = None) -> GitHubEnv:
        env = os.environ if environ is None else environ
        return cls(
            base_ref=env.get("GITHUB_BASE_REF") or None,
            env_file=env.get("GITHUB_ENV") or None,
            token=env.get("GITHUB_TOKEN") or None,
            repository=env.get("GITHUB_REPOSITORY") or None,
            event_path=env.get("GITHUB_EVENT_PATH") or None,
        )

    @property
    def can_comment(self) -> bool:
        return bool(self.token and self.repository)

    @property
    def pr_number(self) -> int | None:
        """PR number from the event payload, if this run has one."""
        if not self.event_path or not Path(self.event_path).exists():
            return None
        try:
            with open(self.event_path) as f:
                event = json.load(f)
        except (OSError, json.JSONDecodeError):
            return None
        if not isinstance(event, dict):
            return None
        pull_request = event.get("pull_request") or {}
        if not isinstance(pull_request, dict):
            return None
        number = pull_request.get("number")
        try:
            return int(number) if number else None
        except (TypeError, ValueError):
            return None


def find_project_root(start: Path | None = None) -> Path | None:
    """Walk up from `start` looking for a .apigate or .git directory."""
    current = (start or Path.cwd()).resolve()
    while True:
        if (current / APIGATE_DIR).is_dir() or (current / ".git").exists():
            return current
        if current == current.parent:
            return None
        current = current.parent


def get_apigate_dir(root: Path) -> Path:
    return root / APIGATE_DIR


def load_config(root: Path, github: GitHubEnv | None = None) -> GateConfig:
    """Load .apigate/config.json (if present) and apply the CI environment."""
    config_path = get_apigate_dir(root) / CONFIG_FILE
    if config_path.exists():
        try:
            data = json.loads(config_path.read_text())
            config = GateConfig(**data)
        except (json.JSONDecodeError, ValidationError) as e:
            raise ConfigError(f"Invalid config file {config_path}: {e}") from e
    else:
        config = GateConfig()

    github = github or GitHubEnv.from_environ()
    if github.base_ref:
        config.git.base_ref = github.base_ref
    return config


def save_config(root: Path, config: GateConfig) -> None:
    """Save configuration to .apigate/config.json."""
    gate_dir = get_apigate_dir(root)
    gate_dir.mkdir(parents=True, exist_ok=True)
    config_path = gate_dir / CONFIG_FILE
    config_path.write_text(json.dumps(config.model_dump(), indent=2))


def set_config_value(config: GateConfig, key: str, value: Any) -> GateConfig:
    """Set a nested config value using dot notation (e.g., 'semver.install')."""
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
        return GateConfig(**data)
    except ValidationError as e:
        raise ConfigError(f"Invalid value for {key}: {e}") from e
