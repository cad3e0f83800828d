"""cargo-semver-checks wrapper.

The tool exits non-zero both when it finds semver violations and when it
fails to run at all. The output is inspected to tell the two apart, so a
crashed tool is reported as an error rather than as an API break.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from apigate.checks.models import CheckOutcome, CheckStatus
from apigate.config import SemverConfig
from apigate.exceptions import DependencyError
from apigate.ui.console import Console

logger = logging.getLogger("apigate.semver")

CHECK_NAME = "public_api"
CHECK_LABEL = "Public API"

# Lines cargo-semver-checks prints when a lint fails
FAILURE_MARKERS = (
    "--- failure ",
    "requires new major version",
)


def has_failure_markers(output: str) -> bool:
    if any(marker in output for marker in FAILURE_MARKERS):
        return True
    # Per-lint status lines look like "  FAIL  [  0.012s]  major  enum_variant_missing"
    return any(line.strip().startswith("FAIL ") for line in output.splitlines())


class SemverChecker:
    """Runs cargo-semver-checks against a manifest."""

    def __init__(self, root: Path, config: SemverConfig, console: Console | None = None):
        self.root = root
        self.config = config
        self.console = console

    def _run(self, args: list[str]) -> subprocess.CompletedProcess:
        logger.debug("Running %s", " ".join(args))
        return subprocess.run(args, cwd=self.root, capture_output=True, text=True)

    def _check_args(self) -> list[str]:
        args = [
            "cargo", "semver-checks", "check-release",
            "--manifest-path", self.config.manifest_path,
            "--config", self.config.config_file,
        ]
        for path in self.config.exclude_api_paths:
            args.extend(["--exclude-api-path", path])
        return args

    def is_installed(self) -> bool:
        try:
            result = self._run(["cargo", "semver-checks", "--version"])
        except FileNotFoundError:
            return False
        return result.returncode == 0

    def ensure_installed(self) -> None:
        """Install cargo-semver-checks on demand."""
        if self.is_installed():
            return
        if not self.config.install:
            raise DependencyError(
                "cargo-semver-checks",
                "Install it with: cargo install cargo-semver-checks",
            )
        if self.console:
            self.console.info("Installing cargo-semver-checks...")
        else:
            logger.info("Installing cargo-semver-checks...")
        try:
            result = self._run(["cargo", "install", "cargo-semver-checks"])
        except FileNotFoundError as e:
            raise DependencyError("cargo", "Install a Rust toolchain") from e
        if result.returncode != 0:
            raise DependencyError(
                "cargo-semver-checks",
                f"'cargo install' failed: {result.stderr.strip()}",
            )

    def check(self) -> CheckOutcome:
        try:
            result = self._run(self._check_args())
        except FileNotFoundError:
            return CheckOutcome(
                name=CHECK_NAME, label=CHECK_LABEL,
                status=CheckStatus.ERROR, summary="cargo not found",
            )

        if result.returncode == 0:
            return CheckOutcome(
                name=CHECK_NAME, label=CHECK_LABEL,
                status=CheckStatus.PASSED, summary="No semver violations",
            )

        output = f"{result.stdout}\n{result.stderr}"
        if has_failure_markers(output):
            details = [
                line.strip() for line in output.splitlines()
                if line.strip().startswith(("--- failure ", "FAIL "))
            ]
            return CheckOutcome(
                name=CHECK_NAME, label=CHECK_LABEL,
                status=CheckStatus.BREAKING,
                summary="cargo-semver-checks reported semver violations",
                details=details,
            )

        logger.warning(
            "cargo-semver-checks exited with %s without reporting violations",
            result.returncode,
        )
        tail = [line for line in result.stderr.strip().splitlines() if line][-5:]
        return CheckOutcome(
            name=CHECK_NAME, label=CHECK_LABEL,
            status=CheckStatus.ERROR,
            summary=f"cargo-semver-checks failed (exit {result.returncode})",
            details=tail,
        )

    def markdown_summary(self) -> str:
        """Markdown rendering of the check, for the report. Best-effort."""
        args = [
            "cargo", "semver-checks", "check-release", "--output-format=markdown",
            "--manifest-path", self.config.manifest_path,
        ]
        try:
            result = subprocess.run(
                args, cwd=self.root, stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL, text=True,
            )
        except FileNotFoundError:
            logger.warning("cargo not found, semver summary omitted")
            return ""
        return result.stdout
