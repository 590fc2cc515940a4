# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""Capability provider call contract."""

import asyncio
import inspect
from collections.abc import Awaitable, Mapping
from typing import Any, Protocol, TypeAlias

from pydantic import ValidationError

from pipegate.core.exceptions import CapabilityError
from pipegate.core.types import CapabilityResult


# Providers may answer with a CapabilityResult or the equivalent mapping:
# {"success": bool, "data": {...}, "signature": {...}}
CapabilityResponse: TypeAlias = CapabilityResult | Mapping[str, Any]


class Capability(Protocol):
    """A provider operation such as ``code_generator.generate``.

    Called with the resolved step input and the provider context. May be
    a coroutine function or a plain function.
    """

    def __call__(
        self, input: str, context: dict[str, Any]
    ) -> Awaitable[CapabilityResponse] | CapabilityResponse:
        ...


async def invoke_capability(
    capability: Capability, input: str, context: dict[str, Any]
) -> CapabilityResult:
    """Call a capability and normalize its response.

    Plain (non-coroutine) providers run in a worker thread so a blocking
    provider does not stall the event loop and the step deadline still
    applies. An abandoned thread runs to completion in the background.

    Args:
        capability: Provider operation to call.
        input: Step input text.
        context: Provider context.

    Returns:
        The normalized CapabilityResult.

    Raises:
        CapabilityError: If the response is not a valid capability result.
        Exception: Whatever the provider itself raises.
    """
    if inspect.iscoroutinefunction(capability):
        response = await capability(input, context)
    else:
        response = await asyncio.to_thread(capability, input, context)
    if inspect.isawaitable(response):
        response = await response

    if isinstance(response, CapabilityResult):
        return response
    try:
        return CapabilityResult.model_validate(response)
    except ValidationError as e:
        raise CapabilityError(f"Malformed capability response: {e}") from e
