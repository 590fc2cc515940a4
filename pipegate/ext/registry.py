# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""Extension registry for managing optional integrations.

Usage:
    from pipegate.ext import get_registry
    registry = get_registry()
    registry.register_audit_exporter(my_exporter)
"""

from __future__ import annotations

import threading

from pipegate.ext.noop import NoopAnalyticsSink, NoopApprovalHook, NoopAuditExporter
from pipegate.ext.protocols import AnalyticsSink, ApprovalHook, AuditExporter


_NOOP_APPROVAL_HOOKS: list[ApprovalHook] = [NoopApprovalHook()]
_NOOP_AUDIT_EXPORTERS: list[AuditExporter] = [NoopAuditExporter()]
_NOOP_ANALYTICS_SINKS: list[AnalyticsSink] = [NoopAnalyticsSink()]

_registry_lock = threading.Lock()


class ExtensionRegistry:
    """Central registry for extension implementations.

    Accessors fall back to no-op implementations when nothing is
    registered. Registration should happen during startup, before runs
    begin; runtime access is read-only.
    """

    def __init__(self) -> None:
        self._approval_hooks: list[ApprovalHook] = []
        self._audit_exporters: list[AuditExporter] = []
        self._analytics_sinks: list[AnalyticsSink] = []

    def register_approval_hook(self, hook: ApprovalHook) -> None:
        """Register an approval hook.

        Hooks are consulted in registration order; the first one returning
        a decision wins.
        """
        self._approval_hooks.append(hook)

    def register_audit_exporter(self, exporter: AuditExporter) -> None:
        """Register an audit exporter. Events are sent to all exporters."""
        self._audit_exporters.append(exporter)

    def register_analytics_sink(self, sink: AnalyticsSink) -> None:
        """Register an analytics sink. Metrics are sent to all sinks."""
        self._analytics_sinks.append(sink)

    @property
    def approval_hooks(self) -> list[ApprovalHook]:
        if not self._approval_hooks:
            return _NOOP_APPROVAL_HOOKS
        return self._approval_hooks

    @property
    def audit_exporters(self) -> list[AuditExporter]:
        if not self._audit_exporters:
            return _NOOP_AUDIT_EXPORTERS
        return self._audit_exporters

    @property
    def analytics_sinks(self) -> list[AnalyticsSink]:
        if not self._analytics_sinks:
            return _NOOP_ANALYTICS_SINKS
        return self._analytics_sinks

    def clear(self) -> None:
        """Clear all registered extensions. Useful for testing."""
        self._approval_hooks.clear()
        self._audit_exporters.clear()
        self._analytics_sinks.clear()


_registry: ExtensionRegistry | None = None


def get_registry() -> ExtensionRegistry:
    """Get the global extension registry, creating it on first access.

    Returns:
        The global ExtensionRegistry instance.
    """
    global _registry
    if _registry is None:
        with _registry_lock:
            if _registry is None:
                _registry = ExtensionRegistry()
    return _registry
