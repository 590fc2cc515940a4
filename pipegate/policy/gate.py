# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""Rule-based policy gate for pipelines, steps, agents, and actions."""

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any, TypeAlias

from loguru import logger

from pipegate.core.constants import PolicyEffect, PolicyScope
from pipegate.core.types import Action, PipelineDefinition, PipelineStep
from pipegate.policy.defaults import default_policy
from pipegate.policy.matching import compile_command_pattern, compile_glob, normalize_path
from pipegate.policy.models import PolicyConfig, PolicyDecision, PolicyRule


FilePatterns: TypeAlias = tuple[tuple[str, re.Pattern[str]], ...]
CommandPatterns: TypeAlias = tuple[tuple[str, re.Pattern[str] | None], ...]


@dataclass(frozen=True)
class CompiledRule:
    """A policy rule with its patterns compiled once.

    Attributes:
        rule: The source rule.
        denied_files: (glob, regex) pairs; empty when not declared.
        allowed_files: (glob, regex) pairs, or None when the rule has no whitelist.
        denied_commands: (pattern, regex) pairs; regex is None if malformed.
        allowed_commands: (pattern, regex) pairs, or None when the rule has no whitelist.
    """

    rule: PolicyRule
    denied_files: FilePatterns
    allowed_files: FilePatterns | None
    denied_commands: CommandPatterns
    allowed_commands: CommandPatterns | None

    @classmethod
    def compile(cls, rule: PolicyRule) -> "CompiledRule":
        conditions = rule.conditions

        def files(patterns: list[str] | None) -> FilePatterns | None:
            if patterns is None:
                return None
            return tuple((p, compile_glob(p)) for p in patterns)

        def commands(patterns: list[str] | None) -> CommandPatterns | None:
            if patterns is None:
                return None
            return tuple((p, compile_command_pattern(p)) for p in patterns)

        return cls(
            rule=rule,
            denied_files=files(conditions.denied_files) or (),
            allowed_files=files(conditions.allowed_files),
            denied_commands=commands(conditions.denied_commands) or (),
            allowed_commands=commands(conditions.allowed_commands),
        )

    @property
    def has_match_conditions(self) -> bool:
        """Whether the rule restricts by file, command, or time."""
        return bool(
            self.denied_files
            or self.allowed_files is not None
            or self.denied_commands
            or self.allowed_commands is not None
            or self.rule.conditions.time_restrictions is not None
        )

    def applies(self, scope: PolicyScope, name: str) -> bool:
        return self.rule.applies_to == scope and name in self.rule.target_names

    def action_violation(
        self,
        action_type: str,
        targets: list[str],
        command: str | None,
        now: datetime,
    ) -> str | None:
        """Return the reason this rule denies an action, or None."""
        rule_id = self.rule.id

        for target in targets:
            for pattern, regex in self.denied_files:
                if regex.fullmatch(target):
                    return f"File {target} matches denied pattern {pattern} (rule: {rule_id})"

        if self.allowed_files is not None:
            for target in targets:
                if not any(regex.fullmatch(target) for _, regex in self.allowed_files):
                    return f"File {target} not in allowed patterns (rule: {rule_id})"

        if command is not None:
            for pattern, regex in self.denied_commands:
                if regex is not None and regex.search(command):
                    return f"Command matches denied pattern {pattern} (rule: {rule_id})"

            if self.allowed_commands is not None and not any(
                regex is not None and regex.search(command)
                for _, regex in self.allowed_commands
            ):
                return f"Command not in allowed patterns (rule: {rule_id})"

        window = self.rule.conditions.time_restrictions
        if window is not None:
            reason = window.violation(now)
            if reason:
                return f"{reason} (rule: {rule_id})"

        if self.rule.effect == PolicyEffect.DENY and not self.has_match_conditions:
            return f"Action {action_type} is denied by policy rule: {rule_id}"

        return None


class PolicyGate:
    """Evaluates policy rules for pipelines, steps, agents, and actions.

    Rules are scanned in registration order. For pipeline, step and agent
    subjects the first matching deny rule wins. For actions every matching
    rule is applied in turn: any file, command or time violation denies,
    and the approval requirement comes from the last rule that sets one.

    Evaluation is a pure function of the rule set, the subject and the
    evaluation time, so repeated calls give identical decisions.
    """

    def __init__(self, config: PolicyConfig | None = None) -> None:
        """Initialize the gate.

        Args:
            config: Policy to enforce. Defaults to ``default_policy()``.
        """
        self._config = config.model_copy(deep=True) if config is not None else default_policy()
        self._compiled = [CompiledRule.compile(rule) for rule in self._config.rules]
        logger.debug(
            "Policy gate initialized",
            rules=len(self._compiled),
            default_effect=str(self._config.default_effect),
        )

    @property
    def config(self) -> PolicyConfig:
        """Current policy, including rules added at runtime."""
        return self._config

    @property
    def rules(self) -> list[PolicyRule]:
        return list(self._config.rules)

    def add_rule(self, rule: PolicyRule | Mapping[str, Any]) -> None:
        """Append a rule and compile its patterns.

        Args:
            rule: Rule model or rule document.

        Raises:
            ValueError: If a rule with the same id already exists.
            pydantic.ValidationError: If the rule document is malformed.
        """
        if not isinstance(rule, PolicyRule):
            rule = PolicyRule.model_validate(rule)
        if any(existing.id == rule.id for existing in self._config.rules):
            raise ValueError(f"Policy rule '{rule.id}' already exists")

        self._compiled.append(CompiledRule.compile(rule))
        self._config.rules.append(rule)
        logger.debug("Added policy rule", rule_id=rule.id)

    def remove_rule(self, rule_id: str) -> bool:
        """Remove a rule by id.

        Returns:
            True if a rule was removed.
        """
        for index, rule in enumerate(self._config.rules):
            if rule.id == rule_id:
                del self._config.rules[index]
                del self._compiled[index]
                logger.debug("Removed policy rule", rule_id=rule_id)
                return True
        return False

    def evaluate(
        self,
        scope: PolicyScope | str,
        subject: str | Action,
        now: datetime | None = None,
    ) -> PolicyDecision:
        """Evaluate the rules for one subject.

        Args:
            scope: Subject scope.
            subject: Action for the action scope; the pipeline id, step id
                or agent name otherwise.
            now: Evaluation time for time-window rules (defaults to local now).

        Returns:
            PolicyDecision for the subject.

        Raises:
            TypeError: If the subject type does not fit the scope.
        """
        scope = PolicyScope(scope)
        if scope == PolicyScope.ACTION:
            if not isinstance(subject, Action):
                raise TypeError("Action scope requires an Action subject")
            return self._evaluate_action(subject, now or datetime.now())

        if not isinstance(subject, str):
            raise TypeError(f"{scope.value} scope requires a name subject")
        return self._evaluate_named([(scope, subject)])

    def check_pipeline(self, definition: PipelineDefinition) -> PolicyDecision:
        return self._evaluate_named([(PolicyScope.PIPELINE, definition.id)])

    def check_step(self, step: PipelineStep) -> PolicyDecision:
        """Evaluate step rules (by step id) and agent rules (by agent) together."""
        return self._evaluate_named(
            [(PolicyScope.STEP, step.id), (PolicyScope.AGENT, step.agent)]
        )

    def check_action(self, action: Action, now: datetime | None = None) -> PolicyDecision:
        return self._evaluate_action(action, now or datetime.now())

    def _evaluate_named(
        self, subjects: Iterable[tuple[PolicyScope, str]]
    ) -> PolicyDecision:
        subjects = list(subjects)
        matched = False
        requires_approval: bool | None = None

        for compiled in self._compiled:
            hit = next(
                ((scope, name) for scope, name in subjects if compiled.applies(scope, name)),
                None,
            )
            if hit is None:
                continue
            matched = True
            rule = compiled.rule
            if rule.effect == PolicyEffect.DENY:
                scope, name = hit
                return PolicyDecision(
                    allowed=False,
                    reason=f"{scope.value.capitalize()} {name} is denied by policy rule: {rule.id}",
                    rule_id=rule.id,
                )
            if rule.conditions.requires_approval is not None:
                requires_approval = rule.conditions.requires_approval

        if not matched and self._config.default_effect == PolicyEffect.DENY:
            scope, name = subjects[0]
            return PolicyDecision(
                allowed=False,
                reason=f"No policy rule allows {scope.value} {name} (default effect: deny)",
            )

        return PolicyDecision(allowed=True, requires_approval=requires_approval)

    def _evaluate_action(self, action: Action, now: datetime) -> PolicyDecision:
        targets = [normalize_path(target) for target in action.targets]
        command = action.command
        requires_approval = self._config.default_requires_approval
        matched = False

        for compiled in self._compiled:
            if not compiled.applies(PolicyScope.ACTION, str(action.type)):
                continue
            matched = True
            reason = compiled.action_violation(str(action.type), targets, command, now)
            if reason is not None:
                return PolicyDecision(allowed=False, reason=reason, rule_id=compiled.rule.id)
            if compiled.rule.conditions.requires_approval is not None:
                requires_approval = compiled.rule.conditions.requires_approval

        if not matched and self._config.default_effect == PolicyEffect.DENY:
            return PolicyDecision(
                allowed=False,
                reason=f"No policy rule allows action {action.type} (default effect: deny)",
            )

        return PolicyDecision(allowed=True, requires_approval=requires_approval)
