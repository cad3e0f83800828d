"""Check outcomes and the aggregate verdict."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class CheckStatus(str, Enum):
    """Result of a single check."""

    PASSED = "passed"
    BREAKING = "breaking"
    ERROR = "error"  # the check itself could not run to a verdict


class CheckOutcome(BaseModel):
    """Outcome of one named check (public_api, logical_plan, ...)."""

    name: str
    label: str = ""
    status: CheckStatus
    summary: str = ""
    details: list[str] = Field(default_factory=list)

    @property
    def display_name(self) -> str:
        return self.label or self.name

    @property
    def changed(self) -> bool:
        return self.status == CheckStatus.BREAKING


class Verdict(BaseModel):
    """OR of all check outcomes.

    With ``errors_are_breaking`` (the default) a check that failed to run
    counts as breaking, so the gate never passes on a broken tool.
    """

    outcomes: list[CheckOutcome] = Field(default_factory=list)
    errors_are_breaking: bool = True

    @property
    def errored(self) -> list[CheckOutcome]:
        return [o for o in self.outcomes if o.status == CheckStatus.ERROR]

    @property
    def breaking_outcomes(self) -> list[CheckOutcome]:
        return [o for o in self.outcomes if o.changed]

    @property
    def breaking(self) -> bool:
        if self.breaking_outcomes:
            return True
        return self.errors_are_breaking and bool(self.errored)

    @property
    def exit_code(self) -> int:
        if self.breaking:
            return 1
        if self.errored:
            return 2
        return 0

    def get(self, name: str) -> CheckOutcome | None:
        for outcome in self.outcomes:
            if outcome.name == name:
                return outcome
        return None
