# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""Registry resolving (agent, operation) pairs to provider callables.

Usage:
    registry = CapabilityRegistry()

    # Register a provider object; its public methods are its operations
    registry.register_agent("code_generator", my_code_generator)

    # Or register a single operation
    registry.register("base", "query", ask_model)

    capability = registry.resolve("code_generator", "generate")
"""

import threading
from typing import Any

from loguru import logger

from pipegate.capabilities.base import Capability
from pipegate.core.exceptions import NotFoundError


class CapabilityRegistry:
    """Maps agent names and operations to capability callables.

    Explicitly registered operations take precedence over methods of a
    registered provider object. Registration and lookup are guarded by a
    lock so registries may be shared between threads.
    """

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self._agents: dict[str, Any] = {}
        self._operations: dict[tuple[str, str], Capability] = {}
        self._lock = threading.Lock()

    def register_agent(self, name: str, provider: Any) -> None:
        """Register a provider object whose public methods are its operations.

        Later registrations under the same name replace earlier ones.

        Args:
            name: Agent name used by pipeline steps.
            provider: Object exposing operation methods.
        """
        with self._lock:
            self._agents[name] = provider
        logger.debug("Registered capability provider", agent=name)

    def register(self, agent: str, operation: str, capability: Capability) -> None:
        """Register a single operation for an agent.

        Args:
            agent: Agent name.
            operation: Operation name.
            capability: Callable implementing the operation.

        Raises:
            TypeError: If capability is not callable.
        """
        if not callable(capability):
            raise TypeError(f"Capability {agent}.{operation} must be callable")
        with self._lock:
            self._operations[(agent, operation)] = capability
        logger.debug("Registered capability", agent=agent, operation=operation)

    def unregister_agent(self, name: str) -> bool:
        """Remove a provider object and all operations registered for it.

        Returns:
            True if anything was removed.
        """
        with self._lock:
            removed = self._agents.pop(name, None) is not None
            for key in [key for key in self._operations if key[0] == name]:
                del self._operations[key]
                removed = True
        return removed

    @property
    def agents(self) -> list[str]:
        with self._lock:
            return sorted(set(self._agents) | {agent for agent, _ in self._operations})

    def resolve(self, agent: str, operation: str) -> Capability:
        """Look up a capability.

        Args:
            agent: Agent name.
            operation: Operation name.

        Returns:
            The callable for agent.operation.

        Raises:
            NotFoundError: If the agent or the operation is unknown.
        """
        with self._lock:
            capability = self._operations.get((agent, operation))
            provider = self._agents.get(agent)
            known_agent = provider is not None or any(a == agent for a, _ in self._operations)

        if capability is not None:
            return capability
        if not known_agent:
            raise NotFoundError(f"Agent not found: {agent}")

        method = None
        if provider is not None and not operation.startswith("_"):
            method = getattr(provider, operation, None)
        if method is None or not callable(method):
            raise NotFoundError(f"Operation not found: {agent}.{operation}")
        return method

    def has(self, agent: str, operation: str) -> bool:
        try:
            self.resolve(agent, operation)
        except NotFoundError:
            return False
        return True
