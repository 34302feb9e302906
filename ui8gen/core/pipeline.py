"""Ordered, dependency-aware stage executor.

Stages run one at a time over a shared ``PipelineContext``.  Execution order
is ``order`` ascending (ties keep insertion order) with declared stage
dependencies always placed first.  A stage is skipped, not failed, when it is
disabled, when ``can_execute`` returns false, or when one of its
dependencies did not complete.
"""

from __future__ import annotations

import heapq
import time
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..logger import Logger
from ..utils import maybe_await
from . import events
from .interfaces import LoggerProtocol, PipelineStage
from .registry import ServiceRegistry, topological_order

# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class PipelineError(Exception):
    """Base class for pipeline configuration failures."""


class StageNotFoundError(PipelineError):
    """Raised by ``execute_stage`` for an unknown stage name."""

    def __init__(self, stage_name: str) -> None:
        self.stage_name = stage_name
        super().__init__(f'Stage "{stage_name}" not found')


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


class StageResult(BaseModel):
    """Outcome of one stage.  Skipped stages have ``success=True, skipped=True``."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    stage: str
    success: bool
    output: Any = None
    error: Optional[BaseException] = None
    duration: float = Field(default=0.0, ge=0.0, description="Milliseconds")
    skipped: bool = False
    skip_reason: Optional[str] = None

    @property
    def status(self) -> str:
        """``"skipped"``, ``"completed"`` or ``"failed"``."""
        if self.skipped:
            return "skipped"
        return "completed" if self.success else "failed"


class StageError(BaseModel):
    """A ``{stage, error}`` failure record."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    stage: str
    error: BaseException


class PipelineResult(BaseModel):
    """Aggregated outcome of ``Pipeline.execute``."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    success: bool
    stages: list[StageResult] = Field(default_factory=list)
    duration: float = Field(default=0.0, ge=0.0, description="Milliseconds")
    errors: list[StageError] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Context
# ---------------------------------------------------------------------------


class PipelineContext:
    """Per-run state shared by every stage.

    A new context is built for each ``generate`` call and dropped afterwards.
    ``set_data``/``get_data`` is the channel for passing stage outputs
    downstream; it is only touched from the single execution path.
    """

    def __init__(
        self,
        config: Any,
        logger: LoggerProtocol,
        event_bus: events.EventBus,
        registry: ServiceRegistry,
    ) -> None:
        self.config = config
        self.logger = logger
        self.event_bus = event_bus
        self.registry = registry
        self.data: dict[str, Any] = {}
        self.results: dict[str, StageResult] = {}

    def set_data(self, key: str, value: Any) -> None:
        self.data[key] = value

    def get_data(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def has_data(self, key: str) -> bool:
        return key in self.data


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


class Pipeline:
    """Executes registered stages in order over a ``PipelineContext``.

    Attributes:
        continue_on_error: When false (the default) the first failing stage
            ends the run; when true every remaining stage still gets its turn.
    """

    def __init__(
        self,
        continue_on_error: bool = False,
        logger: LoggerProtocol | None = None,
    ) -> None:
        self.continue_on_error = continue_on_error
        self.logger = logger or Logger(prefix="Pipeline")
        self._stages: dict[str, PipelineStage] = {}

    # ------------------------------------------------------------------
    # Stage management
    # ------------------------------------------------------------------

    def add_stage(self, stage: PipelineStage) -> None:
        """Add *stage*, replacing any stage already registered under its name."""
        self._stages[stage.name] = stage

    def remove_stage(self, name: str) -> None:
        self._stages.pop(name, None)

    def get_stage(self, name: str) -> PipelineStage | None:
        return self._stages.get(name)

    def get_stages(self) -> list[PipelineStage]:
        """Every registered stage in execution order (disabled ones included)."""
        return [self._stages[name] for name in self.get_execution_order()]

    def get_execution_order(self) -> list[str]:
        """Stage names sorted by ``order`` with dependencies placed first.

        Raises:
            CircularDependencyError: If stage dependencies form a cycle.
        """
        names = list(self._stages)
        position = {name: index for index, name in enumerate(names)}
        graph = {
            name: [dep for dep in self._stages[name].dependencies if dep in self._stages]
            for name in names
        }

        remaining = {name: len(deps) for name, deps in graph.items()}
        dependents: dict[str, list[str]] = {name: [] for name in names}
        for name, deps in graph.items():
            for dep in deps:
                dependents[dep].append(name)

        ready = [
            (self._stages[name].order, position[name], name)
            for name, count in remaining.items()
            if count == 0
        ]
        heapq.heapify(ready)

        ordered: list[str] = []
        while ready:
            _, _, name = heapq.heappop(ready)
            ordered.append(name)
            for dependent in dependents[name]:
                remaining[dependent] -= 1
                if remaining[dependent] == 0:
                    heapq.heappush(
                        ready,
                        (self._stages[dependent].order, position[dependent], dependent),
                    )

        if len(ordered) != len(names):
            # Only nodes on or behind a cycle are left; let the DFS name it.
            leftover = {name: graph[name] for name in names if name not in ordered}
            topological_order(leftover)
        return ordered

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def execute(self, context: PipelineContext) -> PipelineResult:
        """Run every stage and aggregate the results."""
        started = time.perf_counter()
        stage_results: list[StageResult] = []
        errors: list[StageError] = []
        previous_output: Any = None

        for stage in self.get_stages():
            reason = self._blocked_by_dependencies(stage, context)
            if reason is not None:
                result = self._skip(stage, reason, context)
            else:
                result = await self._run_stage(stage, previous_output, context)

            stage_results.append(result)
            context.results[stage.name] = result

            if not result.success:
                errors.append(StageError(stage=stage.name, error=result.error))
                if not self.continue_on_error:
                    break
            elif not result.skipped and result.output is not None:
                previous_output = result.output

        return PipelineResult(
            success=not errors,
            stages=stage_results,
            duration=(time.perf_counter() - started) * 1000,
            errors=errors,
        )

    async def execute_stage(self, name: str, context: PipelineContext) -> StageResult:
        """Run the single stage *name* with no piped input.

        Raises:
            StageNotFoundError: If no stage is registered as *name*.
        """
        stage = self._stages.get(name)
        if stage is None:
            raise StageNotFoundError(name)
        result = await self._run_stage(stage, None, context)
        context.results[name] = result
        return result

    def _blocked_by_dependencies(
        self, stage: PipelineStage, context: PipelineContext
    ) -> str | None:
        for dependency in stage.dependencies:
            if dependency not in self._stages:
                return f'dependency "{dependency}" is not registered'
            upstream = context.results.get(dependency)
            if upstream is None or upstream.status != "completed":
                return f'dependency "{dependency}" did not complete'
        return None

    def _skip(
        self, stage: PipelineStage, reason: str, context: PipelineContext
    ) -> StageResult:
        context.logger.debug(f"Skipping stage {stage.name}: {reason}")
        context.event_bus.emit(events.STAGE_SKIP, {"stage": stage.name, "reason": reason})
        return StageResult(stage=stage.name, success=True, skipped=True, skip_reason=reason)

    async def _run_stage(
        self, stage: PipelineStage, input: Any, context: PipelineContext
    ) -> StageResult:
        if not stage.enabled:
            return self._skip(stage, "stage is disabled", context)

        started = time.perf_counter()
        try:
            if not await maybe_await(stage.can_execute(context)):
                return self._skip(stage, "can_execute returned false", context)

            context.event_bus.emit(
                events.STAGE_START, {"stage": stage.name, "timestamp": time.time()}
            )
            output = await stage.execute(input, context)
        except Exception as exc:
            duration = (time.perf_counter() - started) * 1000
            context.event_bus.emit(events.STAGE_ERROR, {"stage": stage.name, "error": exc})

            on_error = getattr(stage, "on_error", None)
            if on_error is not None:
                try:
                    await maybe_await(on_error(exc, context))
                except Exception as handler_exc:
                    self.logger.error(
                        f'Error in on_error handler for "{stage.name}": {handler_exc!r}'
                    )

            return StageResult(stage=stage.name, success=False, error=exc, duration=duration)

        duration = (time.perf_counter() - started) * 1000
        context.event_bus.emit(
            events.STAGE_COMPLETE,
            {"stage": stage.name, "duration": duration, "result": output},
        )
        return StageResult(stage=stage.name, success=True, output=output, duration=duration)
