"""Orchestrator plugin bundling template generation."""

from __future__ import annotations

from typing import Any, Optional

from ..config import EngineName, GeneratorConfig
from ..core.interfaces import PipelineStage, Service
from ..logger import Logger
from ..services.template_service import TemplateService
from ..stages.template_stage import TemplateStage, TemplateStageOptions


class TemplatePlugin:
    """Contributes ``TemplateService`` and ``TemplateStage``.

    Plugin options only fill gaps: a value the caller set explicitly on
    ``config.template`` is never overwritten.

    Example::

        orchestrator = Orchestrator().use(TemplatePlugin(engine="jinja"))
    """

    name = "template"
    version = "1.0.0"

    def __init__(
        self,
        engine: Optional[EngineName] = None,
        output_dir: Optional[str] = None,
        enabled: bool = True,
        stage_options: TemplateStageOptions | None = None,
    ) -> None:
        self.engine = engine
        self.output_dir = output_dir
        self.enabled = enabled
        self.stage_options = stage_options or TemplateStageOptions()
        self.logger: Any = Logger(prefix="template-plugin")

    def get_services(self) -> list[Service]:
        return [TemplateService()]

    def get_stages(self) -> list[PipelineStage]:
        return [TemplateStage(self.stage_options)]

    def setup(self, orchestrator: Any) -> None:
        self.logger = orchestrator.logger.child("template-plugin")

    def on_before_generate(self, config: GeneratorConfig) -> GeneratorConfig:
        template = config.template
        explicit = template.model_fields_set
        updates: dict[str, Any] = {}

        if self.enabled and "enabled" not in explicit:
            updates["enabled"] = True
        if self.engine and "engine" not in explicit:
            updates["engine"] = self.engine
        if self.output_dir and "output_dir" not in explicit:
            updates["output_dir"] = self.output_dir

        if not updates:
            return config
        self.logger.debug(f"Applying template defaults: {updates}")
        return config.model_copy(update={"template": template.model_copy(update=updates)})
