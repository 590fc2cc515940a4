# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""Extension protocols for optional integrations.

These protocols define the interfaces that third-party integrations can
implement to observe pipeline runs or take part in approval decisions.
Core provides no-op default implementations in pipegate.ext.noop.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Protocol, TypeAlias, runtime_checkable

from pydantic import BaseModel, ConfigDict, model_validator


# JSON-compatible metadata values (str, numbers, bools, None, lists, dicts).
JsonValue: TypeAlias = Any


if TYPE_CHECKING:
    from pipegate.core.types import ApprovalRequest


class PipelineEventType(Enum):
    """Types of pipeline lifecycle events."""

    STARTED = "started"
    COMPLETED = "completed"
    FAILED = "failed"
    DENIED = "denied"
    STEP_COMPLETED = "step_completed"
    STEP_FAILED = "step_failed"
    APPROVAL_REQUESTED = "approval_requested"
    APPROVAL_GRANTED = "approval_granted"
    APPROVAL_DENIED = "approval_denied"


class PipelineEvent(BaseModel):
    """Immutable record of a pipeline lifecycle event.

    Attributes:
        event_type: The type of event that occurred.
        run_id: Unique identifier of the pipeline run.
        pipeline_id: Id of the pipeline being run.
        timestamp: When the event occurred.
        step_id: Step the event refers to, if any.
        metadata: Additional event-specific data (immutable mapping).
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    event_type: PipelineEventType
    run_id: str
    pipeline_id: str
    timestamp: datetime
    step_id: str | None = None
    metadata: Mapping[str, JsonValue] | None = None

    @model_validator(mode="before")
    @classmethod
    def convert_metadata_to_immutable(
        cls, data: dict[str, Any]
    ) -> dict[str, Any]:
        """Convert metadata dict to immutable MappingProxyType."""
        if isinstance(data, dict) and "metadata" in data:
            m = data["metadata"]
            if m is not None and not isinstance(m, MappingProxyType):
                data = dict(data)
                data["metadata"] = MappingProxyType(dict(m))
        return data


@runtime_checkable
class ApprovalHook(Protocol):
    """Protocol for deciding approval requests automatically.

    Hooks run before the engine's own approval handler. Implementations
    might auto-approve trusted pipelines or route requests to an external
    change-management system.
    """

    async def on_approval_request(self, request: ApprovalRequest) -> bool | None:
        """Called when a pipeline or step requests approval.

        Args:
            request: Description of what needs approval.

        Returns:
            True to approve, False to reject, None to defer to the next hook
            and finally to the engine's approval handler.
        """
        ...


@runtime_checkable
class AuditExporter(Protocol):
    """Protocol for exporting pipeline events to external systems.

    Audit exporters receive every lifecycle event of every run, including
    policy denials and approval decisions.
    """

    async def export(self, event: PipelineEvent) -> None:
        """Export a pipeline event to an external system.

        Args:
            event: The pipeline event to export.

        Note:
            Failures are logged by the caller and never block a run.
        """
        ...

    async def flush(self) -> None:
        """Flush any buffered events."""
        ...


@runtime_checkable
class AnalyticsSink(Protocol):
    """Protocol for sending telemetry to observability platforms."""

    async def record_metric(
        self,
        name: str,
        value: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Record a numeric metric.

        Args:
            name: Metric name (e.g., "pipeline.step.duration_ms").
            value: Metric value.
            tags: Optional tags for metric dimensions.
        """
        ...

    async def record_event(
        self,
        name: str,
        properties: dict[str, Any] | None = None,
    ) -> None:
        """Record a discrete event.

        Args:
            name: Event name (e.g., "pipeline.completed").
            properties: Optional event properties.
        """
        ...
