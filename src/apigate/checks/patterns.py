"""Removed-line pattern checks over the diff of a watched file."""

from __future__ import annotations

import re
from pathlib import Path

from apigate.checks.models import CheckOutcome, CheckStatus
from apigate.config import PatternRule
from apigate.github.diff_parser import get_path_diff, parse_diff

_COMMENT_PREFIXES = ("//", "/*", "*/", "* ")


def is_comment(line: str) -> bool:
    # A bare "*" continues a block comment; "*self.x" is a deref
    stripped = line.strip()
    return stripped == "*" or stripped.startswith(_COMMENT_PREFIXES)


def removed_line_matches(
    diff_text: str, pattern: str, ignore_comments: bool = True
) -> list[str]:
    """Return removed lines in `diff_text` that match `pattern`."""
    regex = re.compile(pattern)
    matches: list[str] = []
    for file_diff in parse_diff(diff_text):
        for line in file_diff.removed_lines:
            if ignore_comments and is_comment(line):
                continue
            if regex.search(line):
                matches.append(line)
    return matches


def evaluate_rule(rule: PatternRule, diff_text: str) -> CheckOutcome:
    """Evaluate a rule against already-extracted diff text."""
    matches = removed_line_matches(diff_text, rule.pattern, rule.ignore_comments)
    if matches:
        return CheckOutcome(
            name=rule.name,
            label=rule.label,
            status=CheckStatus.BREAKING,
            summary=f"{len(matches)} removed line(s) in {rule.path}",
            details=[line.strip() for line in matches],
        )
    return CheckOutcome(
        name=rule.name,
        label=rule.label,
        status=CheckStatus.PASSED,
        summary=f"No removals in {rule.path}",
    )


def run_pattern_check(root: Path, rule: PatternRule, base: str, head: str = "HEAD") -> CheckOutcome:
    """Diff the rule's path between refs and evaluate it."""
    diff_text = get_path_diff(root, base, rule.path, head=head)
    return evaluate_rule(rule, diff_text)
