from pipegate.engine.actions import extract_actions as extract_actions, file_extension as file_extension
from pipegate.engine.approvals import (
    ApprovalCoordinator as ApprovalCoordinator,
    ApprovalHandler as ApprovalHandler,
)
from pipegate.engine.executor import StepExecutor as StepExecutor
from pipegate.engine.inputs import (
    build_default_context as build_default_context,
    principal_output as principal_output,
    resolve_step_input as resolve_step_input,
)
from pipegate.engine.runner import PipelineRunner as PipelineRunner, StepObserver as StepObserver
