# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""Execution of a single pipeline step."""

import asyncio
import time
from collections.abc import Mapping, Sequence
from typing import Any

from loguru import logger

from pipegate.capabilities.base import Capability, invoke_capability
from pipegate.capabilities.registry import CapabilityRegistry
from pipegate.core.constants import DEFAULT_STEP_TIMEOUT
from pipegate.core.exceptions import (
    ApprovalRejectedError,
    CapabilityError,
    PipegateError,
    PolicyDeniedError,
    StepTimeoutError,
)
from pipegate.core.types import (
    Action,
    ApprovalRequest,
    CapabilityResult,
    ExecutionContext,
    PipelineStep,
    StepResult,
)
from pipegate.engine.actions import extract_actions
from pipegate.engine.approvals import ApprovalCoordinator
from pipegate.engine.inputs import build_default_context, resolve_step_input
from pipegate.policy.gate import PolicyGate


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


class StepExecutor:
    """Runs one step: policy check, approval, provider call, action gating.

    Failures before or during the provider call are raised as exceptions;
    the runner turns them into failed step results. A provider answering
    ``success=False`` or an action blocked by policy yields a failed
    StepResult directly.

    Attributes:
        capabilities: Registry used to resolve the step's capability.
        policy_gate: Gate for step and action checks. None disables policy.
        approvals: Coordinator asked when a step needs approval.
        default_timeout: Deadline in seconds for steps without a timeout.
    """

    def __init__(
        self,
        capabilities: CapabilityRegistry,
        *,
        policy_gate: PolicyGate | None = None,
        approvals: ApprovalCoordinator | None = None,
        default_timeout: float = DEFAULT_STEP_TIMEOUT,
    ) -> None:
        self.capabilities = capabilities
        self.policy_gate = policy_gate
        self.approvals = approvals or ApprovalCoordinator()
        self.default_timeout = default_timeout

    async def execute(
        self,
        step: PipelineStep,
        previous_results: Sequence[StepResult],
        context: ExecutionContext,
        *,
        capability: Capability | None = None,
        pipeline_id: str = "",
        pipeline_name: str | None = None,
        run_id: str | None = None,
    ) -> StepResult:
        """Execute a step.

        Args:
            step: Step to execute.
            previous_results: Results of the steps executed before it.
            context: Execution context of the run.
            capability: Pre-resolved capability (resolved from the registry if None).
            pipeline_id: Id of the pipeline the step belongs to.
            pipeline_name: Display name of that pipeline.
            run_id: Id of the run.

        Returns:
            The step's result.

        Raises:
            PolicyDeniedError: If policy denies the step.
            ApprovalRejectedError: If a required approval is declined.
            NotFoundError: If the capability cannot be resolved.
            StepTimeoutError: If the provider call exceeds the deadline.
            CapabilityError: If the provider raises or answers malformed data.
        """
        start = time.monotonic()
        query = resolve_step_input(step, previous_results, context)
        if step.context_builder is not None:
            provider_context = dict(step.context_builder(list(previous_results), context))
        else:
            provider_context = build_default_context(step, context)

        policy_requires_approval = False
        if self.policy_gate is not None:
            decision = self.policy_gate.check_step(step)
            if not decision.allowed:
                raise PolicyDeniedError(decision.reason or "Step denied", rule_id=decision.rule_id)
            policy_requires_approval = bool(decision.requires_approval)

        if step.requires_approval or policy_requires_approval:
            approved = await self.approvals.request(
                ApprovalRequest(
                    kind="step",
                    run_id=run_id,
                    pipeline_id=pipeline_id,
                    pipeline_name=pipeline_name,
                    description=step.description,
                    step_id=step.id,
                    step_name=step.name,
                    agent=step.agent,
                    operation=step.operation,
                    query=query,
                )
            )
            if not approved:
                raise ApprovalRejectedError(f"Step {step.id} execution rejected")

        if capability is None:
            capability = self.capabilities.resolve(step.agent, step.operation)

        timeout = step.timeout or self.default_timeout
        logger.debug(
            "Calling capability",
            capability=step.capability,
            step_id=step.id,
            timeout=timeout,
        )
        try:
            response = await asyncio.wait_for(
                self._call_capability(step, capability, query, provider_context),
                timeout=timeout,
            )
        except TimeoutError as e:
            raise StepTimeoutError(timeout) from e

        if not response.success:
            error = response.data.get("error")
            return StepResult(
                step_id=step.id,
                step_name=step.name,
                success=False,
                data=response.data,
                error=str(error) if error else f"Capability {step.capability} reported failure",
                error_type=CapabilityError.__name__,
                duration_ms=_elapsed_ms(start),
                signature=response.signature,
            )

        data: Any = response.data
        if step.result_transform is not None:
            data = step.result_transform(data, context)

        actions = extract_actions(step, data, context)
        gated, denial = self._gate_actions(step, actions)
        if denial is not None:
            return StepResult(
                step_id=step.id,
                step_name=step.name,
                success=False,
                data=data,
                error=str(denial),
                error_type=PolicyDeniedError.__name__,
                duration_ms=_elapsed_ms(start),
                signature=response.signature,
            )

        return StepResult(
            step_id=step.id,
            step_name=step.name,
            success=True,
            data=data,
            duration_ms=_elapsed_ms(start),
            signature=response.signature,
            actions=gated,
        )

    @staticmethod
    async def _call_capability(
        step: PipelineStep,
        capability: Capability,
        query: str,
        provider_context: dict[str, Any],
    ) -> CapabilityResult:
        # Provider errors, its own TimeoutError included, become CapabilityError;
        # only the step deadline reaches wait_for as TimeoutError.
        try:
            return await invoke_capability(capability, query, provider_context)
        except PipegateError:
            raise
        except Exception as e:
            raise CapabilityError(f"Capability {step.capability} failed: {e}") from e

    def _gate_actions(
        self, step: PipelineStep, actions: list[Action]
    ) -> tuple[list[Action], PolicyDeniedError | None]:
        """Apply action policy. Any denied action blocks all of the step's actions."""
        if self.policy_gate is None:
            return actions, None

        gated: list[Action] = []
        for action in actions:
            decision = self.policy_gate.check_action(action)
            if not decision.allowed:
                logger.warning(
                    "Action blocked by policy: {reason}",
                    reason=decision.reason,
                    step_id=step.id,
                    action_type=str(action.type),
                    rule_id=decision.rule_id,
                )
                return [], PolicyDeniedError(decision.reason or "Action denied", rule_id=decision.rule_id)
            requires_approval = (
                decision.requires_approval if decision.requires_approval is not None else True
            )
            gated.append(action.model_copy(update={"requires_approval": requires_approval}))
        return gated, None


def summarize_actions(actions: Sequence[Action]) -> Mapping[str, int]:
    """Count actions per type."""
    counts: dict[str, int] = {}
    for action in actions:
        counts[str(action.type)] = counts.get(str(action.type), 0) + 1
    return counts
