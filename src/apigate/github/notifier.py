"""Hand the verdict to the rest of the workflow.

Exports the breaking-changes flag through the GITHUB_ENV file, writes the
report to disk and posts it on the PR with the `gh` CLI.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

logger = logging.getLogger("apigate.notify")


def export_flag(breaking: bool, env_file: str | None, name: str = "BREAKING_CHANGES_DETECTED") -> bool:
    """Append NAME=true|false to the workflow env file.

    Returns False when there is no env file to write to.
    """
    if not env_file:
        logger.warning("GITHUB_ENV is not set, %s not exported", name)
        return False
    with open(env_file, "a", encoding="utf-8") as f:
        f.write(f"{name}={str(breaking).lower()}\n")
    return True


def write_report(report: str, path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(report, encoding="utf-8")
    return path


def post_pr_comment(root: Path, report_path: Path, pr_number: int | None = None) -> bool:
    """Post the report file as a PR comment via `gh pr comment`.

    Best-effort: failures are logged and reported as False.
    """
    cmd = ["gh", "pr", "comment"]
    if pr_number is not None:
        cmd.append(str(pr_number))
    cmd.extend(["--body-file", str(report_path)])

    logger.debug("Running %s", " ".join(cmd))
    try:
        result = subprocess.run(cmd, cwd=root, capture_output=True, text=True)
    except FileNotFoundError:
        logger.warning("gh CLI not found, PR comment not posted")
        return False

    if result.returncode != 0:
        logger.warning("gh pr comment failed: %s", result.stderr.strip())
        return False
    return True
