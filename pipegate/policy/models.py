# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""Policy rule and configuration models.

Policy documents are written with camelCase keys::

    version: "1.0.0"
    defaultEffect: allow
    defaultRequiresApproval: true
    rules:
      - id: deny-secrets
        appliesTo: action
        target: [CREATE_FILE, MODIFY_FILE]
        effect: deny
        conditions:
          deniedFiles: ["**/.env", "**/*.pem"]
"""

from datetime import datetime

from pydantic import ConfigDict, Field, field_validator

from pipegate.core.constants import PolicyEffect, PolicyScope
from pipegate.core.types import CamelModel


class TimeRestrictions(CamelModel):
    """Local time window in which matching actions are permitted.

    Attributes:
        start_hour: First permitted hour (inclusive, 0-23).
        end_hour: End of the window (exclusive, 0-24). A window with
            start_hour > end_hour wraps past midnight.
        days_of_week: Permitted days, 0=Sunday through 6=Saturday.
    """

    model_config = ConfigDict(frozen=True)

    start_hour: int | None = Field(default=None, ge=0, le=23)
    end_hour: int | None = Field(default=None, ge=0, le=24)
    days_of_week: list[int] | None = None

    @field_validator("days_of_week")
    @classmethod
    def check_days(cls, days: list[int] | None) -> list[int] | None:
        if days is not None and any(day < 0 or day > 6 for day in days):
            raise ValueError("days_of_week entries must be between 0 (Sunday) and 6 (Saturday)")
        return days

    def violation(self, now: datetime) -> str | None:
        """Return why ``now`` falls outside the window, or None when inside."""
        if self.start_hour is not None and self.end_hour is not None:
            hour = now.hour
            if self.start_hour <= self.end_hour:
                inside = self.start_hour <= hour < self.end_hour
            else:
                inside = hour >= self.start_hour or hour < self.end_hour
            if not inside:
                return (
                    f"Action not allowed at this time "
                    f"(allowed: {self.start_hour}:00-{self.end_hour}:00)"
                )

        if self.days_of_week is not None:
            day = now.isoweekday() % 7
            if day not in self.days_of_week:
                return "Action not allowed on this day of week"

        return None


class PolicyConditions(CamelModel):
    """Conditions attached to a rule. All fields are optional.

    File patterns are globs matched against action targets; command
    patterns are regular expressions searched in the command payload.
    """

    model_config = ConfigDict(frozen=True)

    allowed_files: list[str] | None = None
    denied_files: list[str] | None = None
    allowed_commands: list[str] | None = None
    denied_commands: list[str] | None = None
    requires_approval: bool | None = None
    time_restrictions: TimeRestrictions | None = None


class PolicyRule(CamelModel):
    """A single allow/deny rule.

    Attributes:
        id: Rule id, cited in denial reasons.
        applies_to: Subject scope the rule is evaluated for.
        target: Subject name (pipeline id, step id, agent name or action
            type) or a list of names.
        effect: allow or deny.
        conditions: Optional pattern, approval and time conditions.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    applies_to: PolicyScope
    target: str | list[str]
    effect: PolicyEffect
    conditions: PolicyConditions = Field(default_factory=PolicyConditions)

    @property
    def target_names(self) -> frozenset[str]:
        if isinstance(self.target, str):
            return frozenset({self.target})
        return frozenset(self.target)


class PolicyConfig(CamelModel):
    """Ordered rules plus the defaults used when no rule matches."""

    version: str = "1.0.0"
    default_effect: PolicyEffect = PolicyEffect.ALLOW
    default_requires_approval: bool = True
    rules: list[PolicyRule] = Field(default_factory=list)


class PolicyDecision(CamelModel):
    """Outcome of a policy evaluation.

    Attributes:
        allowed: Whether the subject may proceed.
        reason: Why the subject was denied.
        rule_id: Id of the denying rule, if a rule denied.
        requires_approval: Approval requirement computed from the rules.
            None when no rule expressed one (pipeline, step and agent scopes).
    """

    model_config = ConfigDict(frozen=True)

    allowed: bool
    reason: str | None = None
    rule_id: str | None = None
    requires_approval: bool | None = None
