from pipegate.core.constants import (
    ActionType as ActionType,
    AgentName as AgentName,
    InputSource as InputSource,
    PolicyEffect as PolicyEffect,
    PolicyScope as PolicyScope,
)
from pipegate.core.exceptions import (
    ApprovalRejectedError as ApprovalRejectedError,
    CapabilityError as CapabilityError,
    ConfigurationError as ConfigurationError,
    NotFoundError as NotFoundError,
    PipegateError as PipegateError,
    PipelineConflictError as PipelineConflictError,
    PipelineValidationError as PipelineValidationError,
    PolicyDeniedError as PolicyDeniedError,
    StepTimeoutError as StepTimeoutError,
)
from pipegate.core.types import (
    Action as Action,
    ApprovalRequest as ApprovalRequest,
    ExecutionContext as ExecutionContext,
    PipelineDefinition as PipelineDefinition,
    PipelineResult as PipelineResult,
    PipelineStep as PipelineStep,
    StepResult as StepResult,
)
