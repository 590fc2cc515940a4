# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# pipegate/core/exceptions.py
"""Custom exceptions for pipegate."""


class PipegateError(Exception):
    """Base exception for all pipegate errors."""

    pass


class ConfigurationError(PipegateError):
    """Raised when required configuration is missing or invalid."""

    pass


class PipelineValidationError(PipegateError):
    """Raised when a pipeline definition is malformed at registration."""

    pass


class PipelineConflictError(PipelineValidationError):
    """Raised when registering an id that exists and replacement is disabled."""

    pass


class NotFoundError(PipegateError):
    """Raised for an unknown pipeline id, agent, or operation."""

    pass


class PolicyDeniedError(PipegateError):
    """Raised when a policy rule blocks a pipeline, step, or action.

    Attributes:
        reason: Human-readable reason for the denial.
        rule_id: Id of the rule that denied the operation (if known).
    """

    def __init__(self, reason: str, rule_id: str | None = None) -> None:
        """Initialize PolicyDeniedError.

        Args:
            reason: Human-readable reason for the denial.
            rule_id: Id of the policy rule that denied the operation (optional).
        """
        self.reason = reason
        self.rule_id = rule_id

        if rule_id:
            message = f"Policy denied by {rule_id}: {reason}"
        else:
            message = f"Policy denied: {reason}"

        super().__init__(message)


class ApprovalRejectedError(PipegateError):
    """Raised when an approval request is declined."""

    pass


class StepTimeoutError(PipegateError):
    """Raised when a capability call exceeds its step deadline."""

    def __init__(self, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(f"Step timeout after {timeout:g}s")


class CapabilityError(PipegateError):
    """Raised when a capability provider call fails or answers malformed data."""

    pass
