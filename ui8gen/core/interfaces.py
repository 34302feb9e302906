"""Contracts between the orchestration core and its collaborators.

Services, stages and plugins are structural: anything with the right
attributes plugs in, no base class required.  ``BaseService`` and
``BaseStage`` exist as conveniences for the common case.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol, Sequence, runtime_checkable

if TYPE_CHECKING:
    from .events import EventBus
    from .pipeline import PipelineContext
    from .registry import ServiceRegistry


# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------


@runtime_checkable
class LoggerProtocol(Protocol):
    """Anything with ``debug/info/warn/error`` and ``child(prefix)``."""

    def debug(self, message: str, *args: Any) -> None: ...

    def info(self, message: str, *args: Any) -> None: ...

    def warn(self, message: str, *args: Any) -> None: ...

    def error(self, message: str, *args: Any) -> None: ...

    def child(self, prefix: str) -> "LoggerProtocol": ...


# ---------------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------------


@dataclass
class ServiceContext:
    """Shared resources handed to every service on ``initialize``."""

    config: Any
    logger: LoggerProtocol
    event_bus: "EventBus"
    registry: "ServiceRegistry"


@runtime_checkable
class Service(Protocol):
    """A named, versioned unit of work with an initialize/execute/dispose lifecycle."""

    name: str
    version: str
    dependencies: Sequence[str]

    async def initialize(self, context: ServiceContext) -> None: ...

    async def execute(self, input: Any) -> Any: ...

    async def dispose(self) -> None: ...


class BaseService:
    """Optional base class wiring ``context`` and a child logger on initialize.

    Subclasses set ``name``/``version`` and override ``execute`` and, when
    needed, ``on_initialize``/``on_dispose``.
    """

    name: str = ""
    version: str = "1.0.0"
    dependencies: Sequence[str] = ()

    def __init__(self) -> None:
        self.context: ServiceContext | None = None
        self.logger: LoggerProtocol | None = None

    async def initialize(self, context: ServiceContext) -> None:
        self.context = context
        self.logger = context.logger.child(self.name)
        await self.on_initialize()

    async def on_initialize(self) -> None:
        return None

    async def execute(self, input: Any) -> Any:
        raise NotImplementedError

    async def dispose(self) -> None:
        await self.on_dispose()

    async def on_dispose(self) -> None:
        return None


# ---------------------------------------------------------------------------
# Pipeline stages
# ---------------------------------------------------------------------------


@runtime_checkable
class PipelineStage(Protocol):
    """One ordered unit of pipeline work.

    ``on_error(error, context)`` is optional and looked up with ``getattr``.
    ``can_execute`` may return a bool or an awaitable bool.
    """

    name: str
    order: int
    enabled: bool
    dependencies: Sequence[str]

    def can_execute(self, context: "PipelineContext") -> Any: ...

    async def execute(self, input: Any, context: "PipelineContext") -> Any: ...


class BaseStage:
    """Optional base class for stages that are always executable."""

    name: str = ""
    order: int = 0
    enabled: bool = True
    dependencies: Sequence[str] = ()
    description: str = ""

    def can_execute(self, context: "PipelineContext") -> bool:
        return True

    async def execute(self, input: Any, context: "PipelineContext") -> Any:
        raise NotImplementedError


# ---------------------------------------------------------------------------
# Plugins
# ---------------------------------------------------------------------------


@runtime_checkable
class Plugin(Protocol):
    """A bundle contributing services, stages and generation hooks.

    Every member other than ``name`` and ``version`` is optional:
    ``get_services()``, ``get_stages()``, ``setup(ctx)``, ``teardown()``,
    ``on_before_generate(config)``, ``on_after_generate(result)`` and
    ``hooks`` (a ``PluginHooks``).  The core looks them up with ``getattr``.
    """

    name: str
    version: str
