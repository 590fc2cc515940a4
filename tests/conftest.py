# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""Shared fixtures and helpers for all tests.

Factory fixtures build steps, pipeline definitions, capability providers
and runners with sensible defaults so tests only spell out what matters.
"""
from collections.abc import Callable
from typing import Any
from unittest.mock import AsyncMock

import pytest

from pipegate.capabilities.registry import CapabilityRegistry
from pipegate.core.constants import InputSource
from pipegate.core.types import ExecutionContext, PipelineDefinition, PipelineStep
from pipegate.engine.runner import PipelineRunner
from pipegate.ext.registry import ExtensionRegistry
from pipegate.policy.gate import PolicyGate
from pipegate.policy.models import PolicyConfig


def ok(**data: Any) -> dict[str, Any]:
    """Successful capability response carrying data."""
    return {"success": True, "data": data}


@pytest.fixture
def capabilities() -> CapabilityRegistry:
    return CapabilityRegistry()


@pytest.fixture
def extensions() -> ExtensionRegistry:
    """Isolated extension registry (the global one is never touched)."""
    return ExtensionRegistry()


@pytest.fixture
def capability_factory(capabilities: CapabilityRegistry) -> Callable[..., AsyncMock]:
    """Factory fixture registering an AsyncMock capability.

    The mock answers ``response`` (default: success with ``text="ok"``) or
    raises ``side_effect``.
    """
    def _create(
        agent: str = "base",
        operation: str = "query",
        response: Any = None,
        side_effect: Any = None,
    ) -> AsyncMock:
        mock = AsyncMock(
            return_value=response if response is not None else ok(text="ok"),
            side_effect=side_effect,
        )
        capabilities.register(agent, operation, mock)
        return mock
    return _create


@pytest.fixture
def step_factory() -> Callable[..., PipelineStep]:
    """Factory fixture for PipelineStep instances with sensible defaults."""
    def _create(
        id: str = "step-1",
        agent: str = "base",
        operation: str = "query",
        input_from: InputSource = InputSource.USER,
        **kwargs: Any,
    ) -> PipelineStep:
        return PipelineStep(
            id=id,
            agent=agent,
            operation=operation,
            input_from=input_from,
            **kwargs,
        )
    return _create


@pytest.fixture
def definition_factory(step_factory: Callable[..., PipelineStep]) -> Callable[..., PipelineDefinition]:
    """Factory fixture for PipelineDefinition instances.

    Without ``steps`` a single default step is used.
    """
    def _create(
        id: str = "test-pipeline",
        steps: list[PipelineStep] | None = None,
        **kwargs: Any,
    ) -> PipelineDefinition:
        return PipelineDefinition(
            id=id,
            name=kwargs.pop("name", "Test Pipeline"),
            steps=steps if steps is not None else [step_factory()],
            **kwargs,
        )
    return _create


@pytest.fixture
def permissive_gate() -> PolicyGate:
    """Gate with no rules that does not require approval by default."""
    return PolicyGate(PolicyConfig(rules=[], default_requires_approval=False))


@pytest.fixture
def runner_factory(
    capabilities: CapabilityRegistry,
    extensions: ExtensionRegistry,
) -> Callable[..., PipelineRunner]:
    """Factory fixture for PipelineRunner bound to the test registries."""
    def _create(**kwargs: Any) -> PipelineRunner:
        kwargs.setdefault("extensions", extensions)
        return PipelineRunner(capabilities, **kwargs)
    return _create


@pytest.fixture
def context() -> ExecutionContext:
    return ExecutionContext(user_prompt="Add a login form")
