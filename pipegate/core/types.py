# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""Shared contracts for pipelines, steps, actions, and results.

Structured documents (pipeline definitions, result reports) use camelCase
keys on the wire. Python code uses the snake_case field names; both are
accepted when validating input.
"""
from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from typing import Any, Literal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from pipegate.core.constants import ActionType, InputSource


class CamelModel(BaseModel):
    """Base model that reads and writes camelCase document keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SelectionRange(CamelModel):
    start: int
    end: int


class Selection(CamelModel):
    """Code or text selected by the user in an editor.

    Attributes:
        file: Path of the file the selection belongs to.
        content: Selected text.
        range: Optional line range of the selection.
    """

    file: str | None = None
    content: str = ""
    range: SelectionRange | None = None


class EnvironmentInfo(CamelModel):
    os: str | None = None
    shell: str | None = None
    editor: str | None = None


class Preferences(CamelModel):
    language: str | None = None
    framework: str | None = None
    experience: str | None = None


class ExecutionContext(CamelModel):
    """Context owned by a single pipeline run.

    Holds a fixed set of named optional fields, an ``extra`` mapping that
    collects any other caller-supplied keys, and ``step_outputs`` which maps
    step id to that step's output data in execution order.

    Attributes:
        user_prompt: Initial user request.
        project_root: Project directory the run operates on.
        files: Files in scope.
        selection: Current editor selection.
        test_results: Test payload used by ``tests`` input steps.
        environment: Operating system, shell and editor info.
        preferences: Language, framework and experience preferences.
        extra: Any additional caller-defined values.
        step_outputs: Step id -> output data. Only grows during a run.
    """

    user_prompt: str | None = None
    project_root: str | None = None
    files: list[str] = Field(default_factory=list)
    selection: Selection | None = None
    test_results: Any = None
    environment: EnvironmentInfo | None = None
    preferences: Preferences | None = None
    extra: dict[str, Any] = Field(default_factory=dict)
    step_outputs: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def collect_extra_fields(cls, data: Any) -> Any:
        """Move keys that are not named fields into ``extra``."""
        if not isinstance(data, Mapping):
            return data

        known: set[str] = set()
        for name, field in cls.model_fields.items():
            known.add(name)
            if field.alias:
                known.add(field.alias)

        fields: dict[str, Any] = {}
        extra = dict(data.get("extra") or {})
        for key, value in data.items():
            if key == "extra":
                continue
            if key in known:
                fields[key] = value
            else:
                extra[key] = value
        fields["extra"] = extra
        return fields

    @classmethod
    def merge(
        cls, *layers: "Mapping[str, Any] | ExecutionContext | None"
    ) -> "ExecutionContext":
        """Merge context layers, later layers taking precedence.

        Merging is shallow: a later ``preferences`` replaces an earlier one
        entirely, while ``extra`` keys are merged one by one. The result
        always starts with an empty ``step_outputs`` map.

        Args:
            layers: Mappings or contexts in increasing precedence. None is skipped.

        Returns:
            A fresh ExecutionContext.
        """
        merged: dict[str, Any] = {}
        extra: dict[str, Any] = {}
        for layer in layers:
            if layer is None:
                continue
            ctx = layer if isinstance(layer, ExecutionContext) else cls.model_validate(layer)
            for name in ctx.model_fields_set - {"extra", "step_outputs"}:
                merged[name] = getattr(ctx, name)
            extra.update(ctx.extra)
        return cls(**merged, extra=extra, step_outputs={})

    def record_step_output(self, step_id: str, data: Any) -> None:
        """Store a step's output.

        Raises:
            ValueError: If output for this step id was already recorded.
        """
        if step_id in self.step_outputs:
            raise ValueError(f"Output for step '{step_id}' already recorded")
        self.step_outputs[step_id] = data


class ProviderSignature(CamelModel):
    """Authenticity proof attached to a provider response. Opaque to pipegate."""

    hash: str
    signature: str
    public_key: str
    signed_at: str | None = None


class Action(CamelModel):
    """A proposed side effect. pipegate never executes actions itself.

    Attributes:
        type: Kind of side effect.
        targets: Target files or resources.
        payload: Type-specific data (content, diff, command, message, ...).
        reasoning: Why the action was proposed.
        requires_approval: Whether a human must approve before it is applied.
        source_step: Id of the step that proposed the action.
    """

    type: ActionType
    targets: list[str] = Field(default_factory=list)
    payload: dict[str, Any] = Field(default_factory=dict)
    reasoning: str = Field(min_length=1)
    requires_approval: bool
    source_step: str | None = None

    @property
    def command(self) -> str | None:
        """Shell command carried in the payload, if any."""
        command = self.payload.get("command")
        return command if isinstance(command, str) else None


class StepResult(CamelModel):
    """Outcome of one attempted step.

    Attributes:
        step_id: Id of the step.
        step_name: Display name of the step.
        success: Whether the step succeeded.
        data: Output data (after any result transform).
        error: Error message when the step failed.
        error_type: Exception class name when the failure was raised.
        duration_ms: Execution time in milliseconds.
        completed_at: When the step finished.
        signature: Provider authenticity proof, if supplied.
        actions: Actions proposed by the step.
    """

    step_id: str
    step_name: str
    success: bool
    data: Any = None
    error: str | None = None
    error_type: str | None = None
    duration_ms: int = 0
    completed_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    signature: ProviderSignature | None = None
    actions: list[Action] = Field(default_factory=list)


class CapabilityResult(CamelModel):
    """Normalized response of a capability provider call."""

    success: bool
    data: dict[str, Any] = Field(default_factory=dict)
    signature: ProviderSignature | None = None

    @field_validator("data", mode="before")
    @classmethod
    def none_as_empty(cls, value: Any) -> Any:
        return {} if value is None else value


def _default_name(data: Any) -> Any:
    if isinstance(data, Mapping) and not data.get("name") and data.get("id"):
        return {**data, "name": data["id"]}
    return data


# (prior step results, context) -> provider context
ContextBuilder = Callable[[list[StepResult], ExecutionContext], Mapping[str, Any]]
# (provider data, context) -> step output
ResultTransform = Callable[[Any, ExecutionContext], Any]


class PipelineStep(CamelModel):
    """One capability invocation within a pipeline.

    Attributes:
        id: Step id, unique within its pipeline.
        name: Display name (defaults to the id).
        description: What the step does.
        agent: Capability provider name.
        operation: Operation to call on the provider.
        input_from: Where the provider input comes from.
        query: Optional static query text.
        context_builder: Builds the provider context from prior results.
        result_transform: Post-processes the provider data.
        continue_on_error: Keep running later steps if this one fails.
        timeout: Deadline for the provider call in seconds.
        requires_approval: Ask for approval before the provider call.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    name: str = ""
    description: str = ""
    agent: str = Field(min_length=1)
    operation: str = Field(min_length=1)
    input_from: InputSource
    query: str | None = None
    context_builder: ContextBuilder | None = Field(default=None, exclude=True)
    result_transform: ResultTransform | None = Field(default=None, exclude=True)
    continue_on_error: bool = False
    timeout: float | None = Field(default=None, gt=0)
    requires_approval: bool = False

    @model_validator(mode="before")
    @classmethod
    def default_name_to_id(cls, data: Any) -> Any:
        return _default_name(data)

    @property
    def capability(self) -> str:
        return f"{self.agent}.{self.operation}"


class PipelineDefinition(CamelModel):
    """A named, versioned, ordered sequence of steps.

    Attributes:
        id: Registry key.
        version: Semantic version of the definition.
        name: Human-readable name (defaults to the id).
        description: What the pipeline does.
        author: Author or publisher.
        tags: Categorization tags.
        steps: Steps in execution order.
        default_context: Context values merged under the caller's context.
        requires_approval: Ask for approval before the first step.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    version: str = "1.0.0"
    name: str = ""
    description: str = ""
    author: str | None = None
    tags: list[str] = Field(default_factory=list)
    steps: list[PipelineStep] = Field(min_length=1)
    default_context: dict[str, Any] = Field(default_factory=dict)
    requires_approval: bool = False

    @model_validator(mode="before")
    @classmethod
    def default_name_to_id(cls, data: Any) -> Any:
        return _default_name(data)


class ApprovalRequest(CamelModel):
    """What an approval handler is asked to decide.

    Attributes:
        kind: Whether a whole pipeline or a single step awaits approval.
        run_id: Id of the run asking.
        pipeline_id: Pipeline being run.
        pipeline_name: Display name of the pipeline.
        description: Pipeline or step description.
        step_id: Step awaiting approval (step requests only).
        step_name: Display name of that step.
        agent: Capability provider the step will call.
        operation: Operation the step will call.
        query: Resolved input the provider will receive.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["pipeline", "step"]
    run_id: str | None = None
    pipeline_id: str
    pipeline_name: str | None = None
    description: str | None = None
    step_id: str | None = None
    step_name: str | None = None
    agent: str | None = None
    operation: str | None = None
    query: str | None = None


class PipelineSummary(CamelModel):
    id: str
    name: str
    description: str
    steps: int
    version: str


class PipelineResult(CamelModel):
    """Aggregate outcome of a pipeline run.

    Attributes:
        run_id: Unique id of this run.
        pipeline_id: Id of the pipeline that ran.
        pipeline_name: Name of the pipeline that ran.
        success: True when no halting failure occurred.
        steps: Results of every attempted step, in order.
        actions: All actions surfaced by the steps.
        started_at: When the run started.
        completed_at: When the run finished.
        total_duration_ms: Wall-clock duration of the run.
        error: Terminal error when the run failed.
        context: The context as executed, including step outputs.
    """

    run_id: str = Field(default_factory=lambda: str(uuid4()))
    pipeline_id: str
    pipeline_name: str
    success: bool
    steps: list[StepResult] = Field(default_factory=list)
    actions: list[Action] = Field(default_factory=list)
    started_at: datetime
    completed_at: datetime
    total_duration_ms: int
    error: str | None = None
    context: ExecutionContext

    @property
    def failed_steps(self) -> list[StepResult]:
        return [step for step in self.steps if not step.success]

    @property
    def pending_approvals(self) -> list[Action]:
        """Actions that must be approved before they are applied."""
        return [action for action in self.actions if action.requires_approval]

    def to_report(self) -> dict[str, Any]:
        """Render the result as a JSON-compatible document."""
        return self.model_dump(mode="json", by_alias=True)
