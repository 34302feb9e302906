"""Pipeline stage that drives ``TemplateService``."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel

from ..config import EngineName, GeneratorConfig
from ..core.interfaces import BaseStage
from ..core.pipeline import PipelineContext
from ..services.template_service import TemplateServiceInput, TemplateServiceOutput
from ..utils import resolve_path

RESULT_KEY = "template:result"


class TemplateStageOptions(BaseModel):
    """Per-stage overrides; any value given here wins over ``config.template``."""

    engine: Optional[EngineName] = None
    source_dirs: Optional[list[str]] = None
    output_dir: Optional[str] = None
    include: Optional[list[str]] = None
    exclude: Optional[list[str]] = None
    verbose: Optional[bool] = None


class TemplateStage(BaseStage):
    """Generate template files from serialised component trees.

    Runs late (``order=100``) so earlier stages can prepare sources.  The
    stage is executable when templates are enabled in the configuration or
    an engine was passed explicitly.
    """

    name = "template"
    order = 100
    description = "Generate template files from component trees"

    def __init__(self, options: TemplateStageOptions | None = None, enabled: bool = True) -> None:
        self.options = options or TemplateStageOptions()
        self.enabled = enabled
        self.dependencies: list[str] = []

    def can_execute(self, context: PipelineContext) -> bool:
        template = getattr(context.config, "template", None)
        return bool(getattr(template, "enabled", False) or self.options.engine)

    async def execute(self, input: object, context: PipelineContext) -> TemplateServiceOutput:
        config: GeneratorConfig = context.config
        logger = context.logger
        service_input = self.build_input(config)

        logger.info(f"Generating {service_input.engine} templates...")
        logger.debug(f"Source dirs: {', '.join(str(d) for d in service_input.source_dirs)}")
        logger.debug(f"Output dir: {service_input.output_dir}")

        service = context.registry.resolve("template")
        result: TemplateServiceOutput = await service.execute(service_input)
        context.set_data(RESULT_KEY, result)

        if result.errors:
            logger.warn(f"Template generation completed with {len(result.errors)} errors")
            for error in result.errors:
                logger.error(f"  {error}")
        if result.warnings and service_input.verbose:
            for warning in result.warnings:
                logger.warn(f"  {warning}")
        return result

    async def on_error(self, error: BaseException, context: PipelineContext) -> None:
        context.logger.error(f"Template stage failed: {error}")

    def build_input(self, config: GeneratorConfig) -> TemplateServiceInput:
        """Merge stage options over ``config.template`` into a service input."""
        template = config.template
        opts = self.options
        source_dirs = (
            [resolve_path(config.root, d) for d in opts.source_dirs]
            if opts.source_dirs is not None
            else config.template_source_paths
        )
        output_dir = (
            resolve_path(config.root, opts.output_dir)
            if opts.output_dir is not None
            else config.template_output_path
        )

        return TemplateServiceInput(
            source_dirs=source_dirs,
            output_dir=output_dir,
            engine=opts.engine or template.engine,
            include=opts.include if opts.include is not None else template.include,
            exclude=opts.exclude if opts.exclude is not None else template.exclude,
            plugin_config=template.plugin_config,
            verbose=opts.verbose if opts.verbose is not None else template.verbose,
        )
