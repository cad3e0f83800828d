"""Shared test fixtures for apigate."""

from __future__ import annotations

import subprocess
from pathlib import Path

import pytest

DATAFRAME_PATH = "datafusion/src/dataframe/mod.rs"
KEYWORDS_PATH = "datafusion/sql/src/keywords.rs"
PLAN_PATH = "datafusion/expr/src/logical_plan/plan.rs"

DATAFRAME_RS = """\
//! DataFrame API

pub struct DataFrame {
    plan: LogicalPlan,
}

impl DataFrame {
    pub fn select(self, exprs: Vec<Expr>) -> Result<DataFrame> {
        todo!()
    }

    // pub fn legacy_select() is gone
    pub fn filter(self, predicate: Expr) -> Result<DataFrame> {
        todo!()
    }
}
"""

KEYWORDS_RS = """\
define_keywords!(
    ALL,
    AND,
    SELECT,
    WHERE
);
"""

PLAN_RS = """\
pub enum LogicalPlan {
    Projection(Projection),
    Filter(Filter),
    Limit(Limit),
}
"""


class GitRepo:
    """A throwaway git repository with a `main` base branch."""

    def __init__(self, root: Path):
        self.root = root

    def git(self, *args: str) -> str:
        result = subprocess.run(
            [
                "git",
                "-c", "user.name=apigate",
                "-c", "user.email=apigate@example.com",
                "-c", "commit.gpgsign=false",
                *args,
            ],
            cwd=self.root, capture_output=True, text=True, check=True,
        )
        return result.stdout

    def write(self, path: str, content: str) -> None:
        target = self.root / path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content)

    def edit(self, path: str, old: str, new: str) -> None:
        target = self.root / path
        text = target.read_text()
        assert old in text
        target.write_text(text.replace(old, new))

    def commit(self, message: str = "change") -> None:
        self.git("add", "-A")
        self.git("commit", "-q", "--allow-empty", "-m", message)


@pytest.fixture
def git_repo(tmp_path: Path) -> GitRepo:
    """Repository with DataFusion-shaped sources committed on `main`,
    checked out on a `feature` branch."""
    repo = GitRepo(tmp_path)
    repo.git("init", "-q")
    repo.git("symbolic-ref", "HEAD", "refs/heads/main")
    repo.write(DATAFRAME_PATH, DATAFRAME_RS)
    repo.write(KEYWORDS_PATH, KEYWORDS_RS)
    repo.write(PLAN_PATH, PLAN_RS)
    repo.write("README.md", "# datafusion\n")
    repo.commit("base")
    repo.git("checkout", "-q", "-b", "feature")
    return repo


class FakeProcesses:
    """Stands in for subprocess.run for `cargo` and `gh`; git runs for real."""

    FAKED = ("cargo", "gh")

    def __init__(self, real_run):
        self.real_run = real_run
        self.calls: list[list[str]] = []
        self.responses: dict[tuple[str, ...], tuple[int, str, str]] = {}
        self.missing: set[str] = set()

    def respond(self, prefix: list[str], returncode: int = 0, stdout: str = "", stderr: str = "") -> None:
        self.responses[tuple(prefix)] = (returncode, stdout, stderr)

    def __call__(self, cmd, *args, **kwargs):
        if cmd[0] not in self.FAKED:
            return self.real_run(cmd, *args, **kwargs)
        self.calls.append(list(cmd))
        if cmd[0] in self.missing:
            raise FileNotFoundError(cmd[0])

        best: tuple[int, str, str] = (0, "", "")
        best_len = -1
        for prefix, response in self.responses.items():
            if tuple(cmd[: len(prefix)]) == prefix and len(prefix) > best_len:
                best, best_len = response, len(prefix)
        returncode, stdout, stderr = best
        return subprocess.CompletedProcess(cmd, returncode, stdout, stderr)

    def called(self, *prefix: str) -> bool:
        return any(tuple(c[: len(prefix)]) == prefix for c in self.calls)


@pytest.fixture
def fake_procs(monkeypatch: pytest.MonkeyPatch) -> FakeProcesses:
    fake = FakeProcesses(subprocess.run)
    # The logical plan analyzer reports "unchanged" unless a test says otherwise
    fake.respond(["cargo", "run"], returncode=1)
    monkeypatch.setattr(subprocess, "run", fake)
    return fake


@pytest.fixture
def github_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Clean GitHub Actions environment with a GITHUB_ENV file."""
    for var in (
        "GITHUB_BASE_REF", "GITHUB_TOKEN", "GITHUB_REPOSITORY",
        "GITHUB_EVENT_PATH", "GITHUB_ENV",
    ):
        monkeypatch.delenv(var, raising=False)
    env_file = tmp_path.parent / f"{tmp_path.name}-github-env"
    env_file.write_text("")
    monkeypatch.setenv("GITHUB_ENV", str(env_file))
    monkeypatch.setenv("GITHUB_BASE_REF", "main")
    return env_file
