import pytest

from pipegate.core.exceptions import (
    ApprovalRejectedError,
    CapabilityError,
    ConfigurationError,
    NotFoundError,
    PipegateError,
    PipelineConflictError,
    PipelineValidationError,
    PolicyDeniedError,
    StepTimeoutError,
)


class TestHierarchy:
    """All pipegate errors share a single root."""

    @pytest.mark.parametrize(
        "error_class",
        [
            ConfigurationError,
            PipelineValidationError,
            NotFoundError,
            ApprovalRejectedError,
            CapabilityError,
        ],
    )
    def test_is_pipegate_error(self, error_class: type[Exception]) -> None:
        assert issubclass(error_class, PipegateError)

    def test_conflict_is_validation_error(self) -> None:
        assert issubclass(PipelineConflictError, PipelineValidationError)


class TestPolicyDeniedError:
    def test_message_with_rule_id(self) -> None:
        err = PolicyDeniedError("File .env matches denied pattern", rule_id="deny-secrets")
        assert str(err) == "Policy denied by deny-secrets: File .env matches denied pattern"
        assert err.rule_id == "deny-secrets"
        assert err.reason == "File .env matches denied pattern"

    def test_message_without_rule_id(self) -> None:
        err = PolicyDeniedError("Not allowed")
        assert str(err) == "Policy denied: Not allowed"
        assert err.rule_id is None


class TestStepTimeoutError:
    @pytest.mark.parametrize(
        "timeout,expected",
        [
            pytest.param(60.0, "Step timeout after 60s", id="whole"),
            pytest.param(0.5, "Step timeout after 0.5s", id="fraction"),
        ],
    )
    def test_message(self, timeout: float, expected: str) -> None:
        err = StepTimeoutError(timeout)
        assert str(err) == expected
        assert err.timeout == timeout
