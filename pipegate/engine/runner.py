# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""Pipeline registry and sequential pipeline execution.

Usage:
    capabilities = CapabilityRegistry()
    capabilities.register_agent("code_generator", my_code_generator)

    runner = PipelineRunner(capabilities, policy_gate=PolicyGate())
    runner.register_pipeline(IMPLEMENT_FEATURE)

    result = await runner.run("implement-feature", {"userPrompt": "Add login"})
"""

import copy
import inspect
import threading
import time
from collections.abc import Awaitable, Callable, Mapping
from datetime import UTC, datetime
from typing import Any, TypeAlias
from uuid import uuid4

from loguru import logger
from pydantic import ValidationError

from pipegate.capabilities.base import Capability
from pipegate.capabilities.registry import CapabilityRegistry
from pipegate.config import EngineSettings
from pipegate.core.constants import DEFAULT_STEP_TIMEOUT, InputSource
from pipegate.core.exceptions import (
    NotFoundError,
    PipegateError,
    PipelineConflictError,
    PipelineValidationError,
)
from pipegate.core.types import (
    Action,
    ApprovalRequest,
    ExecutionContext,
    PipelineDefinition,
    PipelineResult,
    PipelineSummary,
    StepResult,
)
from pipegate.engine.approvals import ApprovalCoordinator, ApprovalHandler
from pipegate.engine.executor import StepExecutor, summarize_actions
from pipegate.ext.hooks import emit_pipeline_event, record_metric
from pipegate.ext.protocols import PipelineEventType
from pipegate.ext.registry import ExtensionRegistry
from pipegate.policy.gate import PolicyGate
from pipegate.policy.io import load_policy


# (step result, 1-based index, total steps) -> None
StepObserver: TypeAlias = Callable[[StepResult, int, int], Awaitable[None] | None]


def _describe_validation_error(error: ValidationError) -> str:
    details = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"]) or "definition"
        details.append(f"{location}: {item['msg']}")
    return "; ".join(details)


class PipelineRunner:
    """Registers pipelines and runs them step by step.

    Steps run strictly in declaration order. A failing step stops the run
    unless it sets ``continue_on_error``. Execution failures are captured
    in the returned PipelineResult; only unknown pipelines, unresolvable
    capabilities and registration errors are raised.

    Attributes:
        capabilities: Registry resolving step capabilities.
        policy_gate: Gate for pipeline, step and action checks (None disables policy).
        approvals: Coordinator for pipeline and step approvals.
        executor: Executor running individual steps.
        on_step_complete: Default observer called after every step.
    """

    def __init__(
        self,
        capabilities: CapabilityRegistry,
        *,
        policy_gate: PolicyGate | None = None,
        approval_handler: ApprovalHandler | None = None,
        auto_approve: bool = False,
        default_timeout: float = DEFAULT_STEP_TIMEOUT,
        on_step_complete: StepObserver | None = None,
        extensions: ExtensionRegistry | None = None,
    ) -> None:
        """Initialize the runner.

        Args:
            capabilities: Registry resolving step capabilities.
            policy_gate: Policy gate to enforce. None runs without policy checks.
            approval_handler: Callback deciding approval requests.
            auto_approve: Approve every request without asking (logged as a warning).
            default_timeout: Step deadline in seconds for steps without their own.
            on_step_complete: Default step observer.
            extensions: Extension registry (defaults to the global registry).
        """
        self.capabilities = capabilities
        self.policy_gate = policy_gate
        self.approvals = ApprovalCoordinator(
            approval_handler, auto_approve=auto_approve, extensions=extensions
        )
        self.executor = StepExecutor(
            capabilities,
            policy_gate=policy_gate,
            approvals=self.approvals,
            default_timeout=default_timeout,
        )
        self.on_step_complete = on_step_complete
        self._extensions = extensions
        self._pipelines: dict[str, PipelineDefinition] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_settings(
        cls,
        settings: EngineSettings,
        capabilities: CapabilityRegistry,
        **kwargs: Any,
    ) -> "PipelineRunner":
        """Build a runner from engine settings.

        The policy file named by ``settings.policy_path`` is enforced when
        set; otherwise the default policy is.

        Args:
            settings: Engine settings.
            capabilities: Registry resolving step capabilities.
            **kwargs: Further constructor arguments (approval_handler, ...).

        Returns:
            A configured runner.
        """
        policy = load_policy(settings.policy_path) if settings.policy_path else None
        return cls(
            capabilities,
            policy_gate=PolicyGate(policy),
            auto_approve=settings.auto_approve,
            default_timeout=settings.default_timeout,
            **kwargs,
        )

    def register_pipeline(
        self,
        definition: PipelineDefinition | Mapping[str, Any],
        *,
        replace: bool = True,
    ) -> "PipelineRunner":
        """Validate and register a pipeline definition.

        Args:
            definition: Definition model or definition document.
            replace: Replace an existing pipeline with the same id.

        Returns:
            The runner, for chaining.

        Raises:
            PipelineValidationError: If the definition is invalid.
            PipelineConflictError: If the id exists and replace is False.
            NotFoundError: If a step's agent or operation is unknown.
        """
        definition = self._coerce_definition(definition)
        self._validate_definition(definition)
        for step in definition.steps:
            self.capabilities.resolve(step.agent, step.operation)

        with self._lock:
            if definition.id in self._pipelines:
                if not replace:
                    raise PipelineConflictError(
                        f"Pipeline '{definition.id}' is already registered"
                    )
                logger.warning("Replacing registered pipeline", pipeline_id=definition.id)
            self._pipelines[definition.id] = definition

        logger.info(
            "Registered pipeline",
            pipeline_id=definition.id,
            version=definition.version,
            steps=len(definition.steps),
        )
        return self

    def unregister_pipeline(self, pipeline_id: str) -> bool:
        with self._lock:
            removed = self._pipelines.pop(pipeline_id, None) is not None
        if removed:
            logger.info("Unregistered pipeline", pipeline_id=pipeline_id)
        return removed

    def get_pipeline(self, pipeline_id: str) -> PipelineDefinition | None:
        with self._lock:
            return self._pipelines.get(pipeline_id)

    def list_pipelines(self) -> list[PipelineSummary]:
        with self._lock:
            definitions = list(self._pipelines.values())
        return [
            PipelineSummary(
                id=definition.id,
                name=definition.name,
                description=definition.description,
                steps=len(definition.steps),
                version=definition.version,
            )
            for definition in definitions
        ]

    async def run(
        self,
        pipeline_id: str,
        context: ExecutionContext | Mapping[str, Any] | None = None,
        *,
        on_step_complete: StepObserver | None = None,
    ) -> PipelineResult:
        """Run a registered pipeline.

        Args:
            pipeline_id: Id of the pipeline to run.
            context: Caller context, merged over the pipeline's default context.
            on_step_complete: Observer for this run (overrides the runner default).

        Returns:
            PipelineResult with one StepResult per attempted step.

        Raises:
            NotFoundError: If the pipeline or one of its capabilities is unknown.
        """
        with self._lock:
            definition = self._pipelines.get(pipeline_id)
        if definition is None:
            raise NotFoundError(f"Pipeline not found: {pipeline_id}")

        resolved: dict[str, Capability] = {
            step.id: self.capabilities.resolve(step.agent, step.operation)
            for step in definition.steps
        }
        observer = on_step_complete or self.on_step_complete

        run_id = str(uuid4())
        started_at = datetime.now(UTC)
        start = time.monotonic()
        execution_context = ExecutionContext.merge(
            copy.deepcopy(definition.default_context), context
        )
        total = len(definition.steps)

        logger.info(
            "Starting pipeline",
            pipeline_id=definition.id,
            run_id=run_id,
            steps=total,
        )
        await emit_pipeline_event(
            PipelineEventType.STARTED,
            run_id=run_id,
            pipeline_id=definition.id,
            registry=self._extensions,
        )

        def finish(
            success: bool,
            step_results: list[StepResult],
            actions: list[Action],
            error: str | None = None,
        ) -> PipelineResult:
            return PipelineResult(
                run_id=run_id,
                pipeline_id=definition.id,
                pipeline_name=definition.name,
                success=success,
                steps=step_results,
                actions=actions,
                started_at=started_at,
                completed_at=datetime.now(UTC),
                total_duration_ms=int((time.monotonic() - start) * 1000),
                error=error,
                context=execution_context,
            )

        blocked = await self._check_pipeline_entry(definition, run_id)
        if blocked is not None:
            await emit_pipeline_event(
                PipelineEventType.DENIED,
                run_id=run_id,
                pipeline_id=definition.id,
                metadata={"error": blocked},
                registry=self._extensions,
            )
            return finish(False, [], [], blocked)

        step_results: list[StepResult] = []
        actions: list[Action] = []
        success = True
        error: str | None = None

        for index, step in enumerate(definition.steps, start=1):
            logger.info(
                "Step {index}/{total}: {name}",
                index=index,
                total=total,
                name=step.name,
                step_id=step.id,
                capability=step.capability,
            )
            step_start = time.monotonic()
            try:
                result = await self.executor.execute(
                    step,
                    list(step_results),
                    execution_context,
                    capability=resolved[step.id],
                    pipeline_id=definition.id,
                    pipeline_name=definition.name,
                    run_id=run_id,
                )
            except Exception as e:
                if isinstance(e, PipegateError):
                    logger.warning("Step failed: {error}", error=str(e), step_id=step.id)
                else:
                    logger.exception("Step raised an unexpected error", step_id=step.id)
                result = StepResult(
                    step_id=step.id,
                    step_name=step.name,
                    success=False,
                    error=str(e),
                    error_type=type(e).__name__,
                    duration_ms=int((time.monotonic() - step_start) * 1000),
                )

            step_results.append(result)
            execution_context.record_step_output(step.id, result.data)
            actions.extend(result.actions)

            await record_metric(
                "pipeline.step.duration_ms",
                result.duration_ms,
                tags={"pipeline_id": definition.id, "step_id": step.id},
                registry=self._extensions,
            )
            await emit_pipeline_event(
                PipelineEventType.STEP_COMPLETED if result.success else PipelineEventType.STEP_FAILED,
                run_id=run_id,
                pipeline_id=definition.id,
                step_id=step.id,
                metadata={"duration_ms": result.duration_ms, "error": result.error},
                registry=self._extensions,
            )
            if observer is not None:
                await self._notify(observer, result, index, total)

            if result.success:
                logger.info(
                    "Step completed",
                    step_id=step.id,
                    duration_ms=result.duration_ms,
                    actions=len(result.actions),
                )
                continue
            if step.continue_on_error:
                logger.warning("Step failed, continuing", step_id=step.id, error=result.error)
                continue

            success = False
            error = f"Step {step.id} failed: {result.error}"
            logger.error("Stopping pipeline", step_id=step.id, error=result.error)
            break

        pipeline_result = finish(success, step_results, actions, error)
        await emit_pipeline_event(
            PipelineEventType.COMPLETED if success else PipelineEventType.FAILED,
            run_id=run_id,
            pipeline_id=definition.id,
            metadata={
                "duration_ms": pipeline_result.total_duration_ms,
                "steps": len(step_results),
                "error": error,
            },
            registry=self._extensions,
        )
        logger.info(
            "Pipeline finished",
            pipeline_id=definition.id,
            run_id=run_id,
            success=success,
            steps=f"{len(step_results)}/{total}",
            duration_ms=pipeline_result.total_duration_ms,
            actions=dict(summarize_actions(actions)),
        )
        return pipeline_result

    async def _check_pipeline_entry(
        self, definition: PipelineDefinition, run_id: str
    ) -> str | None:
        """Run the pipeline-level policy check and approval.

        Returns:
            The error blocking the run, or None when it may proceed.
        """
        requires_approval = definition.requires_approval
        if self.policy_gate is not None:
            decision = self.policy_gate.check_pipeline(definition)
            if not decision.allowed:
                logger.warning(
                    "Pipeline blocked by policy: {reason}",
                    reason=decision.reason,
                    pipeline_id=definition.id,
                    rule_id=decision.rule_id,
                )
                return f"Pipeline blocked by policy: {decision.reason}"
            requires_approval = requires_approval or bool(decision.requires_approval)

        if not requires_approval:
            return None

        request = ApprovalRequest(
            kind="pipeline",
            run_id=run_id,
            pipeline_id=definition.id,
            pipeline_name=definition.name,
            description=definition.description,
        )
        try:
            approved = await self.approvals.request(request)
        except Exception as e:
            logger.exception("Approval request failed", pipeline_id=definition.id)
            return f"Approval request failed: {e}"
        if not approved:
            logger.warning("Pipeline execution rejected", pipeline_id=definition.id)
            return "Pipeline execution rejected"
        return None

    @staticmethod
    async def _notify(
        observer: StepObserver, result: StepResult, index: int, total: int
    ) -> None:
        try:
            outcome = observer(result, index, total)
            if inspect.isawaitable(outcome):
                await outcome
        except Exception:
            logger.exception("Step observer failed", step_id=result.step_id)

    @staticmethod
    def _coerce_definition(
        definition: PipelineDefinition | Mapping[str, Any],
    ) -> PipelineDefinition:
        if isinstance(definition, PipelineDefinition):
            return definition
        if not isinstance(definition, Mapping):
            raise PipelineValidationError(
                "Pipeline definition must be a PipelineDefinition or a mapping"
            )
        try:
            return PipelineDefinition.model_validate(definition)
        except ValidationError as e:
            pipeline_id = definition.get("id") or "<missing id>"
            raise PipelineValidationError(
                f"Invalid pipeline definition {pipeline_id}: {_describe_validation_error(e)}"
            ) from e

    @staticmethod
    def _validate_definition(definition: PipelineDefinition) -> None:
        seen: set[str] = set()
        for step in definition.steps:
            if step.id in seen:
                raise PipelineValidationError(
                    f"Duplicate step id '{step.id}' in pipeline {definition.id}"
                )
            seen.add(step.id)

        first = definition.steps[0]
        if first.input_from == InputSource.PREVIOUS_STEP and not first.query:
            raise PipelineValidationError(
                f"Step '{first.id}' reads previous step output but is the first step "
                f"of pipeline {definition.id}"
            )
