# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""Extension interfaces for optional integrations.

Extension Points:
    - ApprovalHook: Decide approval requests before the engine's handler
    - AuditExporter: Export pipeline lifecycle events to external systems
    - AnalyticsSink: Send metrics and events to observability platforms

Example:
    >>> from pipegate.ext import get_registry
    >>> registry = get_registry()
    >>> registry.register_audit_exporter(my_exporter)
"""

from pipegate.ext.hooks import (
    check_approval_hooks,
    emit_pipeline_event,
    flush_exporters,
    record_metric,
)
from pipegate.ext.protocols import (
    AnalyticsSink,
    ApprovalHook,
    AuditExporter,
    JsonValue,
    PipelineEvent,
    PipelineEventType,
)
from pipegate.ext.registry import ExtensionRegistry, get_registry


__all__ = [
    # Protocols
    "AnalyticsSink",
    "ApprovalHook",
    "AuditExporter",
    "JsonValue",
    "PipelineEvent",
    "PipelineEventType",
    # Registry
    "ExtensionRegistry",
    "get_registry",
    # Hook functions
    "check_approval_hooks",
    "emit_pipeline_event",
    "flush_exporters",
    "record_metric",
]
