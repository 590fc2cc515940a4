# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""No-op default implementations of extension protocols."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pipegate.ext.protocols import (
    AnalyticsSink,
    ApprovalHook,
    AuditExporter,
    PipelineEvent,
)


if TYPE_CHECKING:
    from pipegate.core.types import ApprovalRequest


class NoopApprovalHook(ApprovalHook):
    """Defers every approval request to the engine's handler."""

    async def on_approval_request(self, request: ApprovalRequest) -> bool | None:
        return None


class NoopAuditExporter(AuditExporter):
    """Discards all events."""

    async def export(self, event: PipelineEvent) -> None:
        pass

    async def flush(self) -> None:
        pass


class NoopAnalyticsSink(AnalyticsSink):
    """Discards all metrics and events."""

    async def record_metric(
        self,
        name: str,
        value: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass

    async def record_event(
        self,
        name: str,
        properties: dict[str, Any] | None = None,
    ) -> None:
        pass
