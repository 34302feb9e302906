"""Template generation service.

Scans source directories for serialised intermediate trees (``*.json``),
renders each through the selected engine, validates the result and writes
one template file per component.  Problems with individual files are
collected in the output instead of aborting the whole run.
"""

from __future__ import annotations

import asyncio
import time
from fnmatch import fnmatch
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from ..config import EngineName, TemplatePluginConfig
from ..core import events
from ..core.interfaces import BaseService
from ..template import Root, TemplateEngine, get_engine, render_tree
from ..utils import format_size


class TemplateServiceInput(BaseModel):
    source_dirs: list[Path] = Field(default_factory=list)
    output_dir: Path
    engine: EngineName = "liquid"
    include: list[str] = Field(default_factory=lambda: ["**/*.json"])
    exclude: list[str] = Field(default_factory=list)
    plugin_config: TemplatePluginConfig = Field(default_factory=TemplatePluginConfig)
    verbose: bool = False


class GeneratedFile(BaseModel):
    source: Path
    output: Path
    component_name: str
    variables: list[str] = Field(default_factory=list)
    dependencies: list[str] = Field(default_factory=list)


class TemplateServiceOutput(BaseModel):
    files: list[GeneratedFile] = Field(default_factory=list)
    components_processed: int = 0
    warnings: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    duration: float = Field(default=0.0, description="Milliseconds")


class TemplateService(BaseService):
    """Renders component trees into engine templates on disk."""

    name = "template"
    version = "1.0.0"

    async def execute(self, input: TemplateServiceInput) -> TemplateServiceOutput:
        """Render every matching tree under ``input.source_dirs``.

        Raises:
            RuntimeError: If the service has not been initialized.
            ValueError: If no source directories are given or the engine is unknown.
        """
        if self.context is None or self.logger is None:
            raise RuntimeError(f'Service "{self.name}" used before initialize()')
        if not input.source_dirs:
            raise ValueError("TemplateService: provide at least one source directory")

        started = time.perf_counter()
        engine = get_engine(input.engine, input.plugin_config.filter_mappings)
        output = TemplateServiceOutput()

        await asyncio.to_thread(input.output_dir.mkdir, parents=True, exist_ok=True)

        for source_dir in input.source_dirs:
            if not source_dir.is_dir():
                output.warnings.append(f"Source directory not found: {source_dir}")
                continue

            for source in _matching_files(source_dir, input.include, input.exclude):
                try:
                    generated = await self._process_file(source, engine, input, output)
                except (OSError, ValidationError, ValueError) as exc:
                    output.errors.append(f"{source}: {exc}")
                    self.logger.error(f"Failed to generate template for {source}: {exc}")
                    continue
                if generated is not None:
                    output.files.append(generated)
                    output.components_processed += 1

        output.duration = (time.perf_counter() - started) * 1000
        self.logger.info(
            f"Generated {output.components_processed} {engine.name} templates "
            f"({len(output.warnings)} warnings, {len(output.errors)} errors)"
        )
        return output

    async def _process_file(
        self,
        source: Path,
        engine: TemplateEngine,
        input: TemplateServiceInput,
        output: TemplateServiceOutput,
    ) -> GeneratedFile | None:
        assert self.context is not None and self.logger is not None

        raw = await asyncio.to_thread(source.read_text, "utf-8")
        tree = Root.model_validate_json(raw)
        if not tree.children:
            self.logger.debug(f"Skipping empty tree: {source}")
            return None

        if input.verbose:
            self.logger.info(f"Processing: {source}")

        result = render_tree(engine, tree, input.plugin_config, self.logger)
        output.warnings.extend(f"{source}: {warning}" for warning in result.warnings)

        validation = engine.validate(result.content)
        if not validation.valid:
            output.warnings.extend(f"{source}: {error}" for error in validation.errors)

        target = input.output_dir / result.filename
        await asyncio.to_thread(_write_file, target, result.content)

        self.context.event_bus.emit(
            events.TEMPLATE_GENERATED,
            {"source": source, "output": target, "engine": engine.name},
        )
        if input.verbose:
            self.logger.info(f"Generated: {target} ({format_size(len(result.content.encode()))})")

        return GeneratedFile(
            source=source,
            output=target,
            component_name=tree.meta.component_name,
            variables=result.variables,
            dependencies=result.dependencies,
        )


def _matching_files(root: Path, include: list[str], exclude: list[str]) -> list[Path]:
    found: set[Path] = set()
    for pattern in include:
        found.update(path for path in root.glob(pattern) if path.is_file())

    def excluded(path: Path) -> bool:
        relative = path.relative_to(root).as_posix()
        return any(fnmatch(relative, pat) or fnmatch(f"/{relative}", pat) for pat in exclude)

    return sorted(path for path in found if not excluded(path))


def _write_file(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
