# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""Approval coordination for pipelines and steps."""

import inspect
from collections.abc import Awaitable, Callable
from typing import TypeAlias

from loguru import logger

from pipegate.core.types import ApprovalRequest
from pipegate.ext.hooks import check_approval_hooks, emit_pipeline_event
from pipegate.ext.protocols import PipelineEventType
from pipegate.ext.registry import ExtensionRegistry


# Front ends supply this to decide approval requests (sync or async).
ApprovalHandler: TypeAlias = Callable[[ApprovalRequest], Awaitable[bool] | bool]


class ApprovalCoordinator:
    """Decides approval requests.

    Decision order: registered approval hooks, then ``auto_approve``, then
    the approval handler. With no handler and ``auto_approve`` off, every
    request is rejected; nothing is approved implicitly.

    Attributes:
        handler: Callback asked to approve or reject requests.
        auto_approve: Approve every request without asking (opt-in).
    """

    def __init__(
        self,
        handler: ApprovalHandler | None = None,
        *,
        auto_approve: bool = False,
        extensions: ExtensionRegistry | None = None,
    ) -> None:
        self.handler = handler
        self.auto_approve = auto_approve
        self._extensions = extensions

    async def request(self, request: ApprovalRequest) -> bool:
        """Ask for approval.

        Args:
            request: What needs approval.

        Returns:
            True if approved.

        Raises:
            Exception: Whatever the approval handler raises.
        """
        run_id = request.run_id or ""
        await emit_pipeline_event(
            PipelineEventType.APPROVAL_REQUESTED,
            run_id=run_id,
            pipeline_id=request.pipeline_id,
            step_id=request.step_id,
            metadata={"kind": request.kind},
            registry=self._extensions,
        )

        subject = request.step_name or request.pipeline_name or request.pipeline_id
        approved = await check_approval_hooks(request, registry=self._extensions)
        if approved is None:
            if self.auto_approve:
                logger.warning(
                    "Auto-approving {kind}: {subject}",
                    kind=request.kind,
                    subject=subject,
                )
                approved = True
            elif self.handler is None:
                logger.warning(
                    "Approval required for {kind} {subject} but no approval handler is configured; rejecting",
                    kind=request.kind,
                    subject=subject,
                )
                approved = False
            else:
                decision = self.handler(request)
                if inspect.isawaitable(decision):
                    decision = await decision
                approved = bool(decision)

        await emit_pipeline_event(
            PipelineEventType.APPROVAL_GRANTED if approved else PipelineEventType.APPROVAL_DENIED,
            run_id=run_id,
            pipeline_id=request.pipeline_id,
            step_id=request.step_id,
            metadata={"kind": request.kind},
            registry=self._extensions,
        )
        return approved
