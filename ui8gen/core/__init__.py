"""Orchestration core: event bus, service registry, pipeline, plugins, orchestrator."""

from .events import EventBus
from .interfaces import (
    BaseService,
    BaseStage,
    LoggerProtocol,
    PipelineStage,
    Plugin,
    Service,
    ServiceContext,
)
from .orchestrator import GeneratorResult, Orchestrator, OrchestratorOptions
from .pipeline import (
    Pipeline,
    PipelineContext,
    PipelineError,
    PipelineResult,
    StageError,
    StageNotFoundError,
    StageResult,
)
from .plugins import PluginDefinition, PluginHooks, PluginManager, create_plugin
from .registry import (
    CircularDependencyError,
    DuplicateServiceError,
    RegistryError,
    ServiceNotFoundError,
    ServiceRegistry,
)

__all__ = [
    # Events
    "EventBus",
    # Contracts
    "BaseService",
    "BaseStage",
    "LoggerProtocol",
    "PipelineStage",
    "Plugin",
    "Service",
    "ServiceContext",
    # Registry
    "ServiceRegistry",
    "RegistryError",
    "DuplicateServiceError",
    "ServiceNotFoundError",
    "CircularDependencyError",
    # Pipeline
    "Pipeline",
    "PipelineContext",
    "PipelineError",
    "PipelineResult",
    "StageError",
    "StageNotFoundError",
    "StageResult",
    # Plugins
    "PluginDefinition",
    "PluginHooks",
    "PluginManager",
    "create_plugin",
    # Orchestrator
    "GeneratorResult",
    "Orchestrator",
    "OrchestratorOptions",
]
