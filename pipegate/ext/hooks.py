# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""Convenience functions for calling extension hooks.

The engine calls these instead of walking the registry itself. Every
function takes an optional ``registry``; the global registry is used
when none is given.

Usage:
    await emit_pipeline_event(
        PipelineEventType.STARTED,
        run_id=run_id,
        pipeline_id=definition.id,
    )
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from loguru import logger

from pipegate.ext.protocols import JsonValue, PipelineEvent, PipelineEventType
from pipegate.ext.registry import ExtensionRegistry, get_registry


if TYPE_CHECKING:
    from pipegate.core.types import ApprovalRequest


async def emit_pipeline_event(
    event_type: PipelineEventType,
    run_id: str,
    pipeline_id: str,
    step_id: str | None = None,
    metadata: dict[str, JsonValue] | None = None,
    registry: ExtensionRegistry | None = None,
) -> None:
    """Emit a lifecycle event to all registered exporters and sinks.

    Extension failures are logged and never interrupt the run.

    Args:
        event_type: Type of event that occurred.
        run_id: Unique identifier of the run.
        pipeline_id: Id of the pipeline being run.
        step_id: Step the event refers to (optional).
        metadata: Additional event data (optional).
        registry: Registry to use (defaults to the global registry).
    """
    event = PipelineEvent(
        event_type=event_type,
        run_id=run_id,
        pipeline_id=pipeline_id,
        timestamp=datetime.now(UTC),
        step_id=step_id,
        metadata=metadata,
    )

    registry = registry or get_registry()

    for exporter in registry.audit_exporters:
        try:
            await exporter.export(event)
        except Exception as e:
            logger.warning(
                "Audit exporter failed: {error}",
                error=str(e),
                exporter=type(exporter).__name__,
            )

    for sink in registry.analytics_sinks:
        try:
            await sink.record_event(
                f"pipeline.{event_type.value}",
                properties={
                    "run_id": run_id,
                    "pipeline_id": pipeline_id,
                    "step_id": step_id,
                    **(metadata or {}),
                },
            )
        except Exception as e:
            logger.warning(
                "Analytics sink failed: {error}",
                error=str(e),
                sink=type(sink).__name__,
            )


async def check_approval_hooks(
    request: ApprovalRequest,
    registry: ExtensionRegistry | None = None,
) -> bool | None:
    """Ask approval hooks whether they want to decide a request.

    Args:
        request: The approval request.
        registry: Registry to use (defaults to the global registry).

    Returns:
        True to approve, False to reject, None when no hook decided.
    """
    registry = registry or get_registry()

    for hook in registry.approval_hooks:
        try:
            result = await hook.on_approval_request(request)
        except Exception as e:
            # A failing hook neither approves nor rejects; ask the next one.
            logger.warning(
                "Approval hook error: {error}",
                error=str(e),
                hook=type(hook).__name__,
            )
            continue
        if result is not None:
            logger.info(
                "Approval hook {action} request",
                action="granted" if result else "denied",
                hook=type(hook).__name__,
                kind=request.kind,
                pipeline_id=request.pipeline_id,
            )
            return result

    return None


async def record_metric(
    name: str,
    value: float,
    tags: dict[str, str] | None = None,
    registry: ExtensionRegistry | None = None,
) -> None:
    """Record a metric to all registered analytics sinks.

    Example:
        >>> await record_metric(
        ...     "pipeline.step.duration_ms",
        ...     812,
        ...     tags={"pipeline_id": "fix-tests", "step_id": "analyze-failures"},
        ... )
    """
    registry = registry or get_registry()

    for sink in registry.analytics_sinks:
        try:
            await sink.record_metric(name, value, tags)
        except Exception as e:
            logger.warning(
                "Analytics sink failed to record metric: {error}",
                error=str(e),
                sink=type(sink).__name__,
            )


async def flush_exporters(registry: ExtensionRegistry | None = None) -> None:
    """Flush all audit exporters, e.g. during graceful shutdown."""
    registry = registry or get_registry()

    for exporter in registry.audit_exporters:
        try:
            await exporter.flush()
        except Exception as e:
            logger.warning(
                "Failed to flush audit exporter: {error}",
                error=str(e),
                exporter=type(exporter).__name__,
            )
