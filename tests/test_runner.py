"""End-to-end tests for the gate pipeline."""

from __future__ import annotations

from pathlib import Path

from apigate.checks.models import CheckStatus
from apigate.checks.runner import build_report, run_checks, run_gate
from apigate.config import GateConfig, GitHubEnv

from conftest import DATAFRAME_PATH, KEYWORDS_PATH, PLAN_PATH, FakeProcesses, GitRepo


def _env(tmp_path: Path, **kwargs) -> GitHubEnv:
    env_file = tmp_path.parent / f"{tmp_path.name}-env"
    env_file.write_text("")
    return GitHubEnv(env_file=str(env_file), **kwargs)


def _remove_keyword(repo: GitRepo) -> None:
    repo.edit(KEYWORDS_PATH, "    SELECT,\n", "")
    repo.commit("drop SELECT")


class TestRunChecks:
    def test_order_and_names(self, git_repo: GitRepo, fake_procs: FakeProcesses):
        verdict = run_checks(git_repo.root, GateConfig())
        assert [o.name for o in verdict.outcomes] == [
            "public_api", "logical_plan", "dataframe_api", "sql_parser",
        ]
        assert not verdict.breaking

    def test_each_check_independent(self, git_repo: GitRepo, fake_procs: FakeProcesses):
        _remove_keyword(git_repo)
        verdict = run_checks(git_repo.root, GateConfig())
        assert verdict.get("sql_parser").status == CheckStatus.BREAKING
        assert verdict.get("dataframe_api").status == CheckStatus.PASSED
        assert verdict.get("logical_plan").status == CheckStatus.PASSED
        assert verdict.breaking

    def test_logical_plan_variant_removed(self, git_repo: GitRepo, fake_procs: FakeProcesses):
        git_repo.edit(PLAN_PATH, "    Limit(Limit),\n", "")
        git_repo.commit()
        config = GateConfig()
        config.logical_plan.mode = "pattern"
        verdict = run_checks(git_repo.root, config)
        assert verdict.get("logical_plan").changed
        assert not fake_procs.called("cargo", "run")

    def test_analyzer_is_default(self, git_repo: GitRepo, fake_procs: FakeProcesses):
        verdict = run_checks(git_repo.root, GateConfig())
        assert fake_procs.called("cargo", "run", "--bin", "analyze-logical-plan-changes")
        assert verdict.get("logical_plan").status == CheckStatus.PASSED
        assert not verdict.breaking

    def test_analyzer_reports_change(self, git_repo: GitRepo, fake_procs: FakeProcesses):
        fake_procs.respond(["cargo", "run"], returncode=0, stdout="removed: Limit\n")
        verdict = run_checks(git_repo.root, GateConfig())
        assert verdict.get("logical_plan").changed
        assert verdict.breaking

    def test_semver_disabled(self, git_repo: GitRepo, fake_procs: FakeProcesses):
        config = GateConfig()
        config.semver.enabled = False
        verdict = run_checks(git_repo.root, config)
        assert verdict.get("public_api") is None
        assert not fake_procs.called("cargo", "semver-checks")


class TestRunGate:
    def test_no_watched_paths_touched(self, git_repo: GitRepo, fake_procs: FakeProcesses):
        git_repo.write("docs/guide.md", "new docs\n")
        git_repo.commit()
        github = _env(git_repo.root, token="t", repository="apache/datafusion")

        result = run_gate(git_repo.root, GateConfig(), github)

        assert not result.verdict.breaking
        assert result.exit_code == 0
        assert Path(github.env_file).read_text() == "BREAKING_CHANGES_DETECTED=false\n"
        assert not (git_repo.root / "breaking-changes-report.md").exists()
        assert not fake_procs.called("gh")

    def test_breaking_writes_report(self, git_repo: GitRepo, fake_procs: FakeProcesses):
        git_repo.edit(DATAFRAME_PATH, "    pub fn filter(", "    fn filter(")
        git_repo.commit()
        github = _env(git_repo.root)

        result = run_gate(git_repo.root, GateConfig(), github)

        assert result.exit_code == 1
        report = (git_repo.root / "breaking-changes-report.md").read_text(encoding="utf-8")
        assert "# 🚨 Breaking Changes Report" in report
        assert "- ⚠️  DataFrame API changes detected" in report
        assert "LogicalExpr" not in report
        assert Path(github.env_file).read_text() == "BREAKING_CHANGES_DETECTED=true\n"

    def test_no_comment_without_token(self, git_repo: GitRepo, fake_procs: FakeProcesses):
        _remove_keyword(git_repo)
        github = _env(git_repo.root, repository="apache/datafusion")

        result = run_gate(git_repo.root, GateConfig(), github)

        assert result.verdict.breaking
        assert not result.comment_posted
        assert not fake_procs.called("gh")

    def test_comment_posted(self, git_repo: GitRepo, fake_procs: FakeProcesses):
        _remove_keyword(git_repo)
        github = _env(git_repo.root, token="t", repository="apache/datafusion")

        result = run_gate(git_repo.root, GateConfig(), github)

        assert result.comment_posted
        report_path = str(git_repo.root / "breaking-changes-report.md")
        assert fake_procs.calls[-1] == ["gh", "pr", "comment", "--body-file", report_path]

    def test_comment_posted_with_malformed_event(
        self, git_repo: GitRepo, fake_procs: FakeProcesses
    ):
        _remove_keyword(git_repo)
        event = git_repo.root.parent / f"{git_repo.root.name}-event.json"
        event.write_text("{not json")
        github = _env(
            git_repo.root, token="t", repository="apache/datafusion", event_path=str(event)
        )

        result = run_gate(git_repo.root, GateConfig(), github)

        assert result.comment_posted
        assert result.exit_code == 1
        report_path = str(git_repo.root / "breaking-changes-report.md")
        assert fake_procs.calls[-1] == ["gh", "pr", "comment", "--body-file", report_path]

    def test_comment_failure_keeps_exit_code(self, git_repo: GitRepo, fake_procs: FakeProcesses):
        _remove_keyword(git_repo)
        fake_procs.respond(["gh"], returncode=1, stderr="HTTP 401")
        github = _env(git_repo.root, token="t", repository="apache/datafusion")

        result = run_gate(git_repo.root, GateConfig(), github)

        assert not result.comment_posted
        assert result.exit_code == 1

    def test_comment_suppressed(self, git_repo: GitRepo, fake_procs: FakeProcesses):
        _remove_keyword(git_repo)
        github = _env(git_repo.root, token="t", repository="apache/datafusion")
        run_gate(git_repo.root, GateConfig(), github, post_comment=False)
        assert not fake_procs.called("gh")

    def test_semver_error_is_breaking(self, git_repo: GitRepo, fake_procs: FakeProcesses):
        fake_procs.respond(
            ["cargo", "semver-checks", "check-release"], returncode=101, stderr="boom"
        )
        result = run_gate(git_repo.root, GateConfig(), _env(git_repo.root))
        assert result.verdict.get("public_api").status == CheckStatus.ERROR
        assert result.exit_code == 1

    def test_semver_error_tolerated(self, git_repo: GitRepo, fake_procs: FakeProcesses):
        fake_procs.respond(
            ["cargo", "semver-checks", "check-release"], returncode=101, stderr="boom"
        )
        config = GateConfig(errors_are_breaking=False)
        result = run_gate(git_repo.root, config, _env(git_repo.root))
        assert not result.verdict.breaking
        assert result.exit_code == 2
        assert result.report is None


class TestBuildReport:
    def test_report_without_semver(self, git_repo: GitRepo, fake_procs: FakeProcesses):
        _remove_keyword(git_repo)
        config = GateConfig()
        config.semver.enabled = False
        verdict = run_checks(git_repo.root, config)
        report = build_report(git_repo.root, config, verdict)
        assert "**SQL parser**" in report
        assert "`SELECT,`" in report
