"""Service registry with dependency-ordered lifecycle management.

Services are registered once and resolved by name.  Initialization follows a
topological sort of the declared ``dependencies``; disposal runs in exactly
the reverse order and keeps going when an individual ``dispose`` fails.
"""

from __future__ import annotations

import time
from typing import Any

from ..logger import Logger
from . import events
from .interfaces import LoggerProtocol, Service, ServiceContext

# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class RegistryError(Exception):
    """Base class for service registration and resolution failures."""


class DuplicateServiceError(RegistryError):
    """Raised when a service name is registered twice."""

    def __init__(self, service_name: str) -> None:
        self.service_name = service_name
        super().__init__(f'Service "{service_name}" is already registered')


class ServiceNotFoundError(RegistryError):
    """Raised when a service (or a declared dependency) is not registered."""

    def __init__(self, service_name: str, required_by: str | None = None) -> None:
        self.service_name = service_name
        self.required_by = required_by
        message = f"Service not found: {service_name}"
        if required_by:
            message += f' (required by "{required_by}")'
        super().__init__(message)


class CircularDependencyError(RegistryError):
    """Raised when declared dependencies form a cycle.

    Attributes:
        cycle: Participants in visit order, first name repeated at the end.
    """

    def __init__(self, cycle: list[str]) -> None:
        self.cycle = cycle
        super().__init__(f"Circular dependency detected: {' -> '.join(cycle)}")


# ---------------------------------------------------------------------------
# Topological sort
# ---------------------------------------------------------------------------


def topological_order(graph: dict[str, list[str]]) -> list[str]:
    """Return the keys of *graph* with every node after its dependencies.

    Nodes are visited in mapping order, so independent nodes keep their
    insertion order.  Dependencies missing from *graph* are ignored here;
    callers decide whether that is an error.

    Raises:
        CircularDependencyError: If a cycle is reachable.
    """
    result: list[str] = []
    visited: set[str] = set()
    visiting: list[str] = []

    def visit(name: str) -> None:
        if name in visited:
            return
        if name in visiting:
            start = visiting.index(name)
            raise CircularDependencyError([*visiting[start:], name])

        visiting.append(name)
        for dependency in graph[name]:
            if dependency in graph:
                visit(dependency)
        visiting.pop()

        visited.add(name)
        result.append(name)

    for name in graph:
        visit(name)
    return result


# ---------------------------------------------------------------------------
# ServiceRegistry
# ---------------------------------------------------------------------------


class ServiceRegistry:
    """Owns every registered service for the lifetime of an orchestrator."""

    def __init__(self, logger: LoggerProtocol | None = None) -> None:
        self.logger = logger or Logger(prefix="ServiceRegistry")
        self._services: dict[str, Service] = {}
        self._initialization_order: list[str] | None = None
        self.initialized = False

    def register(self, service: Service) -> None:
        """Register *service* under ``service.name``.

        Raises:
            DuplicateServiceError: If the name is taken.  The registry is
                left unchanged.
        """
        if service.name in self._services:
            raise DuplicateServiceError(service.name)
        self._services[service.name] = service
        self._initialization_order = None

    def has(self, name: str) -> bool:
        return name in self._services

    def resolve(self, name: str) -> Any:
        """Return the service registered as *name*.

        Raises:
            ServiceNotFoundError: If *name*, or one of its declared
                dependencies, is not registered.
        """
        service = self._services.get(name)
        if service is None:
            raise ServiceNotFoundError(name)
        for dependency in service.dependencies:
            if dependency not in self._services:
                raise ServiceNotFoundError(dependency, required_by=name)
        return service

    def get_service_names(self) -> list[str]:
        return list(self._services)

    def get_initialization_order(self) -> list[str]:
        """Service names sorted so each appears after its dependencies.

        Raises:
            ServiceNotFoundError: A declared dependency is not registered.
            CircularDependencyError: The dependency graph has a cycle.
        """
        if self._initialization_order is not None:
            return list(self._initialization_order)

        graph: dict[str, list[str]] = {}
        for name, service in self._services.items():
            for dependency in service.dependencies:
                if dependency not in self._services:
                    raise ServiceNotFoundError(dependency, required_by=name)
            graph[name] = list(service.dependencies)

        self._initialization_order = topological_order(graph)
        return list(self._initialization_order)

    async def initialize_all(
        self,
        config: Any,
        logger: LoggerProtocol,
        event_bus: events.EventBus,
    ) -> None:
        """Call ``initialize`` on every service in dependency order."""
        order = self.get_initialization_order()
        context = ServiceContext(
            config=config,
            logger=logger,
            event_bus=event_bus,
            registry=self,
        )

        for name in order:
            service = self._services[name]
            started = time.perf_counter()
            await service.initialize(context)
            duration = (time.perf_counter() - started) * 1000
            event_bus.emit(
                events.SERVICE_INITIALIZED, {"name": name, "duration": duration}
            )

        self.initialized = True

    async def dispose_all(self, event_bus: events.EventBus | None = None) -> None:
        """Dispose every service in reverse initialization order.

        A failing ``dispose`` is logged and the remaining services are still
        disposed.  When the order cannot be computed (missing dependency or
        cycle) the reverse registration order is used instead.
        """
        try:
            order = self.get_initialization_order()
        except RegistryError as exc:
            self.logger.warn(f"Disposing in registration order: {exc}")
            order = list(self._services)

        for name in reversed(order):
            service = self._services.get(name)
            if service is None:
                continue
            try:
                await service.dispose()
            except Exception as exc:
                self.logger.error(f'Error disposing service "{name}": {exc!r}')
                continue
            if event_bus is not None:
                event_bus.emit(events.SERVICE_DISPOSED, {"name": name})

        self.initialized = False
