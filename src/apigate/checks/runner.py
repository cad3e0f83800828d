"""Run every check in order and act on the verdict."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from apigate.checks.logical_plan import run_analyzer
from apigate.checks.models import CheckOutcome, CheckStatus, Verdict
from apigate.checks.patterns import run_pattern_check
from apigate.checks.semver import SemverChecker
from apigate.config import GateConfig, GitHubEnv
from apigate.github.diff_parser import get_changed_files
from apigate.github.notifier import export_flag, post_pr_comment, write_report
from apigate.github.renderer import render_report
from apigate.ui.console import Console

logger = logging.getLogger("apigate.runner")


@dataclass
class GateResult:
    verdict: Verdict
    report: str | None = None
    report_path: Path | None = None
    flag_exported: bool = False
    comment_posted: bool = False

    @property
    def exit_code(self) -> int:
        return self.verdict.exit_code


def _announce(console: Console | None, outcome: CheckOutcome) -> None:
    if console is None:
        return
    if outcome.status == CheckStatus.BREAKING:
        console.error(f"Breaking changes detected in {outcome.display_name}")
    elif outcome.status == CheckStatus.ERROR:
        console.warning(f"{outcome.display_name} check failed to run: {outcome.summary}")
    else:
        console.success(f"{outcome.display_name}: {outcome.summary}")


def run_checks(root: Path, config: GateConfig, console: Console | None = None) -> Verdict:
    """Run the semver check and every pattern rule, one after another."""
    base, head = config.git.base_ref, config.git.head_ref
    outcomes: list[CheckOutcome] = []

    if config.semver.enabled:
        if console:
            console.info("Checking public APIs...")
        checker = SemverChecker(root, config.semver, console)
        checker.ensure_installed()
        outcomes.append(checker.check())
        _announce(console, outcomes[-1])

    for rule in config.rules:
        if console:
            console.info(f"Checking {rule.label or rule.name}...")
        if rule.name == "logical_plan" and config.logical_plan.mode == "analyzer":
            outcome = run_analyzer(root, config.logical_plan.analyzer_bin, base, head)
        else:
            outcome = run_pattern_check(root, rule, base, head)
        outcomes.append(outcome)
        _announce(console, outcome)

    return Verdict(outcomes=outcomes, errors_are_breaking=config.errors_are_breaking)


def build_report(root: Path, config: GateConfig, verdict: Verdict) -> str:
    """Render the report for a verdict, re-reading changed file names."""
    changed_files = get_changed_files(root, config.git.base_ref, config.git.head_ref)
    semver_markdown = ""
    if config.semver.enabled:
        semver_markdown = SemverChecker(root, config.semver).markdown_summary()
    return render_report(
        verdict.outcomes,
        changed_files,
        semver_markdown=semver_markdown,
        watched_areas=config.report.watched_areas,
    )


def run_gate(
    root: Path,
    config: GateConfig,
    github: GitHubEnv,
    console: Console | None = None,
    post_comment: bool = True,
) -> GateResult:
    """Checks, flag export, and on a breaking verdict the report and PR comment."""
    verdict = run_checks(root, config, console)
    if console:
        console.show_verdict(verdict)

    result = GateResult(verdict=verdict)
    result.flag_exported = export_flag(
        verdict.breaking, github.env_file, name=config.notify.env_var_name
    )

    if not verdict.breaking:
        return result

    result.report = build_report(root, config, verdict)
    result.report_path = write_report(result.report, root / config.report.output_file)
    if console:
        console.info(f"📋 Report generated: {result.report_path}")

    if post_comment and config.notify.post_comment and github.can_comment:
        if console:
            console.info("💬 Adding PR comment...")
        result.comment_posted = post_pr_comment(root, result.report_path, github.pr_number)
        if console and not result.comment_posted:
            console.warning("Could not post PR comment")
    else:
        logger.debug("Skipping PR comment (token or repository not set, or disabled)")

    return result
