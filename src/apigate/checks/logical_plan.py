"""LogicalPlan check backed by the project's own analysis binary."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from apigate.checks.models import CheckOutcome, CheckStatus

logger = logging.getLogger("apigate.logical_plan")

CHECK_NAME = "logical_plan"
CHECK_LABEL = "LogicalPlan"


def run_analyzer(root: Path, binary: str, base: str, head: str = "HEAD") -> CheckOutcome:
    """Run `cargo run --bin <binary>` over the two refs.

    The analyzer follows grep's convention: exit 0 means changes were found,
    exit 1 means none.
    """
    cmd = [
        "cargo", "run", "--bin", binary, "--",
        f"--base-ref={base}",
        f"--current-ref={head}",
    ]
    logger.debug("Running %s", " ".join(cmd))
    try:
        result = subprocess.run(cmd, cwd=root, capture_output=True, text=True)
    except FileNotFoundError:
        return CheckOutcome(
            name=CHECK_NAME, label=CHECK_LABEL,
            status=CheckStatus.ERROR, summary="cargo not found",
        )

    if result.returncode == 0:
        return CheckOutcome(
            name=CHECK_NAME, label=CHECK_LABEL,
            status=CheckStatus.BREAKING,
            summary=f"{binary} reported LogicalPlan changes",
            details=[line for line in result.stdout.splitlines() if line.strip()],
        )
    if result.returncode == 1:
        return CheckOutcome(
            name=CHECK_NAME, label=CHECK_LABEL,
            status=CheckStatus.PASSED, summary="No LogicalPlan changes",
        )
    return CheckOutcome(
        name=CHECK_NAME, label=CHECK_LABEL,
        status=CheckStatus.ERROR,
        summary=f"{binary} failed (exit {result.returncode})",
        details=[line for line in result.stderr.splitlines() if line.strip()][-5:],
    )
