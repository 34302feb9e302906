"""UI8Kit generator core: plugin-driven orchestration of generation pipelines."""

from .config import AppConfig, GeneratorConfig, TemplateConfig, TemplatePluginConfig
from .core import (
    BaseService,
    BaseStage,
    EventBus,
    GeneratorResult,
    Orchestrator,
    OrchestratorOptions,
    Pipeline,
    PipelineContext,
    ServiceRegistry,
    create_plugin,
)
from .logger import Logger
from .plugins import TemplatePlugin

__version__ = "0.1.0"

__all__ = [
    "AppConfig",
    "BaseService",
    "BaseStage",
    "EventBus",
    "GeneratorConfig",
    "GeneratorResult",
    "Logger",
    "Orchestrator",
    "OrchestratorOptions",
    "Pipeline",
    "PipelineContext",
    "ServiceRegistry",
    "TemplateConfig",
    "TemplatePlugin",
    "TemplatePluginConfig",
    "create_plugin",
]
