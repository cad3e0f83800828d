"""Git diff extraction and parsing.

Runs `git diff` between the base and head refs and parses the unified diff
into per-file hunks, so checks can look at removed and added lines without
tripping over file headers.
"""

from __future__ import annotations

import logging
import re
import subprocess
from dataclasses import dataclass, field
from pathlib import Path

from apigate.exceptions import DependencyError, GitError

logger = logging.getLogger("apigate.git")

_HUNK_HEADER = re.compile(r"@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@")


@dataclass
class DiffHunk:
    """A single hunk from a unified diff."""
    old_start: int
    old_count: int
    new_start: int
    new_count: int
    lines: list[str] = field(default_factory=list)

    @property
    def removed(self) -> list[str]:
        return [line[1:] for line in self.lines if line.startswith("-")]

    @property
    def added(self) -> list[str]:
        return [line[1:] for line in self.lines if line.startswith("+")]


@dataclass
class FileDiff:
    """Changes to a single file."""
    path: str
    status: str  # 'added', 'modified', 'deleted', 'renamed'
    old_path: str | None = None  # For renames
    hunks: list[DiffHunk] = field(default_factory=list)
    added_lines: int = 0
    deleted_lines: int = 0

    @property
    def removed_lines(self) -> list[str]:
        """Content of every removed line, without the '-' marker."""
        return [line for hunk in self.hunks for line in hunk.removed]

    @property
    def added_lines_text(self) -> list[str]:
        return [line for hunk in self.hunks for line in hunk.added]


def parse_diff(diff_text: str) -> list[FileDiff]:
    """Parse unified diff text into structured FileDiff objects.

    Hunk bodies are consumed by their declared line counts, so a removed
    line that happens to look like a header ("--- a/...") is still recorded
    as a removal.
    """
    files: list[FileDiff] = []
    current_file: FileDiff | None = None
    current_hunk: DiffHunk | None = None
    old_left = new_left = 0

    for line in diff_text.splitlines():
        if current_hunk is not None and (old_left > 0 or new_left > 0):
            if line.startswith("\\"):
                # "\ No newline at end of file"
                continue
            current_hunk.lines.append(line)
            if line.startswith("-"):
                current_file.deleted_lines += 1
                old_left -= 1
            elif line.startswith("+"):
                current_file.added_lines += 1
                new_left -= 1
            else:
                old_left -= 1
                new_left -= 1
            continue

        if line.startswith("diff --git"):
            if current_file:
                files.append(current_file)
            parts = line.split(" b/")
            path = parts[-1] if len(parts) > 1 else ""
            current_file = FileDiff(path=path, status="modified")
            current_hunk = None
            continue

        if current_file is None:
            continue

        if line.startswith("new file"):
            current_file.status = "added"
        elif line.startswith("deleted file"):
            current_file.status = "deleted"
        elif line.startswith("rename from"):
            current_file.old_path = line.split("rename from ")[-1]
            current_file.status = "renamed"
        elif line.startswith("rename to"):
            current_file.path = line.split("rename to ")[-1]
        elif line.startswith("+++ b/"):
            current_file.path = line[6:]
        elif line.startswith("@@"):
            match = _HUNK_HEADER.match(line)
            if match:
                current_hunk = DiffHunk(
                    old_start=int(match.group(1)),
                    old_count=int(match.group(2) or "1"),
                    new_start=int(match.group(3)),
                    new_count=int(match.group(4) or "1"),
                )
                current_file.hunks.append(current_hunk)
                old_left = current_hunk.old_count
                new_left = current_hunk.new_count

    if current_file:
        files.append(current_file)

    return files


def run_git(root: Path, args: list[str]) -> str:
    """Run a git command in `root` and return stdout.

    Any non-zero exit is fatal for the run and raised as GitError.
    """
    cmd = ["git", *args]
    logger.debug("Running %s", " ".join(cmd))
    try:
        result = subprocess.run(cmd, cwd=root, capture_output=True, text=True)
    except FileNotFoundError as e:
        raise DependencyError("git", "Install git and make sure it is on PATH") from e
    if result.returncode != 0:
        raise GitError(cmd, result.returncode, result.stderr)
    return result.stdout


def get_path_diff(root: Path, base: str, path: str, head: str = "HEAD") -> str:
    """Get the diff of a single path between `base` and `head`."""
    return run_git(root, ["diff", f"{base}..{head}", "--", path])


def get_changed_files(root: Path, base: str, head: str = "HEAD") -> list[str]:
    """Names of all files changed between `base` and `head`."""
    output = run_git(root, ["diff", f"{base}..{head}", "--name-only"])
    return [line for line in output.splitlines() if line.strip()]
