"""Top-level coordinator for a generation run.

``generate`` drives the whole lifecycle::

    generator:start
    -> plugin setup
    -> plugin on_before_generate (config threaded through each plugin)
    -> ServiceRegistry.initialize_all
    -> Pipeline.execute over a fresh PipelineContext
    -> ServiceRegistry.dispose_all
    -> plugin on_after_generate (stops at the first failure)
    -> generator:complete
    -> plugin teardown

Any exception in between turns the run into a failed ``GeneratorResult``
with a single ``orchestrator`` error record; services are still disposed
exactly once and ``generator:error`` is emitted.  ``generate`` itself does
not raise for those failures.

Usage::

    orchestrator = Orchestrator().use(TemplatePlugin())
    result = await orchestrator.generate(GeneratorConfig(...))
"""

from __future__ import annotations

import time
from typing import Any, Callable

from pydantic import BaseModel, ConfigDict, Field

from ..config import GeneratorConfig
from ..logger import Logger, LogLevel
from ..utils import format_duration, print_banner, print_summary_table
from . import events
from .events import EventBus, EventHandler
from .interfaces import LoggerProtocol, PipelineStage, Plugin, Service
from .pipeline import Pipeline, PipelineContext, StageError, StageResult
from .plugins import PluginManager
from .registry import ServiceRegistry

ORCHESTRATOR_STAGE = "orchestrator"


# ---------------------------------------------------------------------------
# Options & result
# ---------------------------------------------------------------------------


class OrchestratorOptions(BaseModel):
    """Construction options for ``Orchestrator``."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    logger: Any = Field(default=None, description="Logger-protocol object; built from log_level when omitted")
    log_level: LogLevel = Field(default="info")
    continue_on_error: bool = Field(default=False)
    show_banner: bool = Field(default=False, description="Print a rich summary panel after each run")


class GeneratorResult(BaseModel):
    """Returned from every ``generate`` call, successful or not."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    success: bool
    stages: list[StageResult] = Field(default_factory=list)
    duration: float = Field(default=0.0, ge=0.0, description="Milliseconds")
    errors: list[StageError] = Field(default_factory=list)
    config: Any = None

    def stage(self, name: str) -> StageResult | None:
        """Return the result recorded for stage *name*, if any."""
        for result in self.stages:
            if result.stage == name:
                return result
        return None


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------


class Orchestrator:
    """Registers plugins, services and stages and runs generations.

    The event bus, registry, pipeline and plugins live as long as the
    orchestrator.  Sequential ``generate`` calls are supported: each gets a
    fresh ``PipelineContext`` and initializes and disposes the services
    again.  Overlapping calls on one instance are refused.
    """

    def __init__(self, options: OrchestratorOptions | None = None, **kwargs: Any) -> None:
        self.options = options or OrchestratorOptions(**kwargs)
        self.logger: LoggerProtocol = self.options.logger or Logger(
            level=self.options.log_level, prefix="generator"
        )
        self.event_bus = EventBus(logger=self.logger.child("events"))
        self.registry = ServiceRegistry(logger=self.logger.child("registry"))
        self.pipeline = Pipeline(
            continue_on_error=self.options.continue_on_error,
            logger=self.logger.child("pipeline"),
        )
        self.plugins = PluginManager(logger=self.logger.child("plugins"))
        self._running = False

    # ------------------------------------------------------------------
    # Plugin management
    # ------------------------------------------------------------------

    def use(self, plugin: Plugin) -> "Orchestrator":
        """Register *plugin* with its services and stages; returns ``self``."""
        self.logger.debug(f"Registering plugin: {plugin.name}@{plugin.version}")
        self.plugins.register(plugin)

        get_services = getattr(plugin, "get_services", None)
        for service in (get_services() if get_services else None) or []:
            self.register_service(service)

        get_stages = getattr(plugin, "get_stages", None)
        for stage in (get_stages() if get_stages else None) or []:
            self.add_stage(stage)

        return self

    # ------------------------------------------------------------------
    # Service management
    # ------------------------------------------------------------------

    def register_service(self, service: Service) -> None:
        self.logger.debug(f"Registering service: {service.name}@{service.version}")
        self.registry.register(service)
        self.event_bus.emit(
            events.SERVICE_REGISTERED, {"name": service.name, "version": service.version}
        )

    def has_service(self, name: str) -> bool:
        return self.registry.has(name)

    def get_service(self, name: str) -> Any:
        return self.registry.resolve(name)

    # ------------------------------------------------------------------
    # Pipeline management
    # ------------------------------------------------------------------

    def add_stage(self, stage: PipelineStage) -> None:
        self.logger.debug(f"Adding stage: {stage.name} (order: {stage.order})")
        self.pipeline.add_stage(stage)

    def has_stage(self, name: str) -> bool:
        return self.pipeline.get_stage(name) is not None

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def on(self, event: str, handler: EventHandler) -> Callable[[], None]:
        return self.event_bus.on(event, handler)

    def get_event_bus(self) -> EventBus:
        return self.event_bus

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    async def generate(self, config: GeneratorConfig) -> GeneratorResult:
        """Run one full generation and return its result."""
        started = time.perf_counter()

        if self._running:
            error = RuntimeError("A generation is already running on this orchestrator")
            self.logger.error(str(error))
            return self._failed_result(error, config, started)

        self._running = True
        try:
            return await self._generate(config, started)
        finally:
            self._running = False

    async def _generate(self, config: GeneratorConfig, started: float) -> GeneratorResult:
        app_name = getattr(getattr(config, "app", None), "name", "generator")
        self.logger.info(f"Starting generation for {app_name}")
        self.event_bus.emit(
            events.GENERATOR_START, {"config": config, "timestamp": time.time()}
        )

        services_live = False
        plugins_live = False
        try:
            plugins_live = True
            await self.plugins.setup_all(self)

            processed = await self.plugins.before_generate(config)

            services_live = True
            self.logger.debug("Initializing services...")
            await self.registry.initialize_all(processed, self.logger, self.event_bus)

            context = PipelineContext(
                config=processed,
                logger=self.logger,
                event_bus=self.event_bus,
                registry=self.registry,
            )
            pipeline_result = await self.pipeline.execute(context)

            services_live = False
            await self._dispose_services()

            result = GeneratorResult(
                success=pipeline_result.success,
                stages=pipeline_result.stages,
                duration=pipeline_result.duration,
                errors=pipeline_result.errors,
                config=processed,
            )
            await self.plugins.after_generate(result)

            result.duration = (time.perf_counter() - started) * 1000
            self.event_bus.emit(
                events.GENERATOR_COMPLETE, {"duration": result.duration, "result": result}
            )
            if result.success:
                self.logger.info(f"Generation completed in {format_duration(result.duration)}")
            else:
                self.logger.warn(
                    f"Generation completed with errors in {format_duration(result.duration)}"
                )
            self._print_summary(result)
            return result

        except Exception as exc:
            self.logger.error(f"Generation failed: {exc}")
            self.event_bus.emit(events.GENERATOR_ERROR, {"error": exc})
            await self.plugins.on_error(exc)

            if services_live:
                try:
                    await self._dispose_services()
                except Exception as dispose_exc:
                    self.logger.error(f"Error during service disposal: {dispose_exc!r}")

            result = self._failed_result(exc, config, started)
            self._print_summary(result)
            return result

        finally:
            if plugins_live:
                await self.plugins.teardown_all()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _dispose_services(self) -> None:
        self.logger.debug("Disposing services...")
        await self.registry.dispose_all(self.event_bus)
        self.logger.debug("Services disposed")

    def _failed_result(
        self, error: BaseException, config: Any, started: float
    ) -> GeneratorResult:
        return GeneratorResult(
            success=False,
            stages=[],
            duration=(time.perf_counter() - started) * 1000,
            errors=[StageError(stage=ORCHESTRATOR_STAGE, error=error)],
            config=config,
        )

    def _print_summary(self, result: GeneratorResult) -> None:
        if not self.options.show_banner:
            return

        completed = [r.stage for r in result.stages if r.status == "completed"]
        skipped = [r.stage for r in result.stages if r.status == "skipped"]
        failed = [e.stage for e in result.errors]

        if result.success:
            title, style = "GENERATION SUCCEEDED", "bold green"
        else:
            title, style = "GENERATION FAILED", "bold red"

        print_banner(
            title,
            [
                f"Duration  : {format_duration(result.duration)}",
                f"Completed : {', '.join(completed) or 'none'}",
                f"Skipped   : {', '.join(skipped) or 'none'}",
                f"Failed    : {', '.join(failed) or 'none'}",
            ],
            style=style,
        )
        if result.stages:
            print_summary_table(
                {r.stage: f"{r.status} ({format_duration(r.duration)})" for r in result.stages},
                title="Stages",
            )
