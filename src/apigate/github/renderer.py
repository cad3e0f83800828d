"""Markdown renderer for the breaking changes report."""

from __future__ import annotations

from apigate.checks.models import CheckOutcome, CheckStatus

REPORT_HEADER = "# 🚨 Breaking Changes Report"
POLICY_URL = (
    "https://datafusion.apache.org/contributor-guide/specification/api-health-policy.html"
)
MAX_DETAIL_LINES = 10

DEFAULT_AREAS = {
    "src/logical_expr": "LogicalExpr changes detected",
    "src/dataframe": "DataFrame API changes detected",
}


def render_report(
    outcomes: list[CheckOutcome],
    changed_files: list[str],
    semver_markdown: str = "",
    watched_areas: dict[str, str] | None = None,
) -> str:
    """Render the full report posted on a PR with breaking changes."""
    sections: list[str] = []

    sections.append(REPORT_HEADER)
    sections.append("")
    sections.append("## Summary")
    sections.append(
        "Breaking changes detected in this PR that require the `api-change` label."
    )
    sections.append("")
    sections.append("## DataFusion API Stability Guidelines")
    sections.append(f"Per the [API Health Policy]({POLICY_URL}):")
    sections.append("")
    sections.append("### Changes Detected:")
    sections.extend(_render_outcomes(outcomes))

    sections.append("### Semver Analysis:")
    if semver_markdown.strip():
        sections.append(semver_markdown.rstrip())

    sections.append("### DataFusion-Specific Analysis:")
    sections.extend(render_area_bullets(changed_files, watched_areas))

    sections.append("")
    sections.append(_footer())
    return "\n".join(sections) + "\n"


def render_area_bullets(
    changed_files: list[str], watched_areas: dict[str, str] | None = None
) -> list[str]:
    """One warning bullet per watched area touched by any changed file name."""
    areas = DEFAULT_AREAS if watched_areas is None else watched_areas
    bullets = []
    for needle, message in areas.items():
        if any(needle in path for path in changed_files):
            bullets.append(f"- ⚠️  {message}")
    return bullets


def _render_outcomes(outcomes: list[CheckOutcome]) -> list[str]:
    lines: list[str] = []
    for outcome in outcomes:
        if outcome.status == CheckStatus.PASSED:
            continue
        icon = "❌" if outcome.status == CheckStatus.BREAKING else "⚠️"
        lines.append(f"- {icon} **{outcome.display_name}**: {outcome.summary}")
        for detail in outcome.details[:MAX_DETAIL_LINES]:
            lines.append(f"  - `{detail}`")
        if len(outcome.details) > MAX_DETAIL_LINES:
            lines.append(f"  - ... and {len(outcome.details) - MAX_DETAIL_LINES} more")
    return lines


def _footer() -> str:
    return (
        "## Required Actions:\n"
        "1. Add the `api-change` label to this PR\n"
        "2. Update CHANGELOG.md with breaking change details\n"
        "3. Consider adding deprecation warnings before removal\n"
        "4. Update migration guide if needed\n"
        "\n"
        "## Approval Requirements:\n"
        "- Breaking changes require approval from a DataFusion maintainer\n"
        "- Consider if this change is necessary or if a deprecation path exists"
    )
