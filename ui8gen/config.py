"""UI8Kit generator configuration.

Centralised, typed configuration for a generation run.  All settings use
Pydantic v2 models so they can be validated at construction time and
serialised to/from JSON, YAML or environment variables without boiler-plate.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field

from .utils import resolve_path

EngineName = Literal["liquid", "handlebars", "jinja"]


class AppConfig(BaseModel):
    """Application metadata shown in banners and passed to templates."""

    name: str = Field(default="UI8Kit Generator")
    lang: str = Field(default="en")


class TemplatePluginConfig(BaseModel):
    """Engine-level rendering options."""

    prepend_comment: str | None = Field(
        default=None, description="Comment rendered at the top of every template"
    )
    pretty_print: bool = Field(default=True, description="Trim output and end with a newline")
    filter_mappings: dict[str, str] = Field(
        default_factory=dict,
        description="Extra standard -> engine filter names, merged over the engine's table",
    )


class TemplateConfig(BaseModel):
    """Template generation settings.

    Source directories hold serialised intermediate trees (``*.json``); each
    tree is rendered into one template file under ``output_dir``.
    """

    enabled: bool = Field(default=False)
    engine: EngineName = Field(default="liquid")
    source_dirs: list[str] = Field(
        default_factory=lambda: [
            "./src/components",
            "./src/blocks",
            "./src/layouts",
            "./src/partials",
        ]
    )
    output_dir: str = Field(default="./dist/templates")
    include: list[str] = Field(default_factory=lambda: ["**/*.json"])
    exclude: list[str] = Field(
        default_factory=lambda: ["**/node_modules/**", "**/__tests__/**"]
    )
    verbose: bool = Field(default=False)
    plugin_config: TemplatePluginConfig = Field(default_factory=TemplatePluginConfig)


class AssetsConfig(BaseModel):
    """Static asset globs for third-party plugins.

    The built-in stages never read this section; it is carried through
    ``GeneratorConfig`` so that an asset-copying plugin can pick it up in
    ``on_before_generate`` or from ``PipelineContext.config``.
    """

    copy_paths: list[str] = Field(default_factory=list, alias="copy")

    model_config = ConfigDict(populate_by_name=True)


class GeneratorConfig(BaseModel):
    """Global generator configuration.

    Instances are created once per ``Orchestrator.generate`` call by the
    caller; plugins may return modified copies from ``on_before_generate``.
    """

    app: AppConfig = Field(default_factory=AppConfig)
    root: Path = Field(default=Path("."))
    template: TemplateConfig = Field(default_factory=TemplateConfig)
    assets: AssetsConfig = Field(default_factory=AssetsConfig)

    # Plugin-specific sections, keyed by plugin name.
    plugins: dict[str, Any] = Field(default_factory=dict)

    @property
    def template_output_path(self) -> Path:
        """``template.output_dir`` resolved against ``root``."""
        return resolve_path(self.root, self.template.output_dir)

    @property
    def template_source_paths(self) -> list[Path]:
        return [resolve_path(self.root, source) for source in self.template.source_dirs]

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path) -> Path:
        """Persist the configuration to a JSON file.

        Args:
            path: Destination file.  Parent directories are created.

        Returns:
            The path where the file was written.
        """
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(self.model_dump_json(indent=2, by_alias=True), encoding="utf-8")
        return target

    @classmethod
    def load(cls, path: Path | str) -> "GeneratorConfig":
        """Load a configuration from JSON or YAML (chosen by file suffix).

        Args:
            path: The ``.json``, ``.yaml`` or ``.yml`` file to read.

        Returns:
            A validated ``GeneratorConfig`` instance.
        """
        file_path = Path(path)
        raw = file_path.read_text(encoding="utf-8")
        if file_path.suffix.lower() in (".yaml", ".yml"):
            data = yaml.safe_load(raw) or {}
        else:
            data = json.loads(raw)
        return cls.model_validate(data)

    @classmethod
    def from_env(cls) -> "GeneratorConfig":
        """Build a ``GeneratorConfig`` from environment variables.

        Recognised variables (all optional):
            UI8GEN_APP_NAME, UI8GEN_ROOT, UI8GEN_TEMPLATE_ENABLED,
            UI8GEN_TEMPLATE_ENGINE, UI8GEN_TEMPLATE_OUTPUT_DIR,
            UI8GEN_TEMPLATE_SOURCE_DIRS (comma-separated).
        """
        app_kwargs: dict[str, Any] = {}
        if os.environ.get("UI8GEN_APP_NAME"):
            app_kwargs["name"] = os.environ["UI8GEN_APP_NAME"]

        template_kwargs: dict[str, Any] = {}
        if os.environ.get("UI8GEN_TEMPLATE_ENABLED"):
            template_kwargs["enabled"] = os.environ["UI8GEN_TEMPLATE_ENABLED"].lower() in (
                "1",
                "true",
                "yes",
            )
        if os.environ.get("UI8GEN_TEMPLATE_ENGINE"):
            template_kwargs["engine"] = os.environ["UI8GEN_TEMPLATE_ENGINE"]
        if os.environ.get("UI8GEN_TEMPLATE_OUTPUT_DIR"):
            template_kwargs["output_dir"] = os.environ["UI8GEN_TEMPLATE_OUTPUT_DIR"]
        if os.environ.get("UI8GEN_TEMPLATE_SOURCE_DIRS"):
            template_kwargs["source_dirs"] = [
                part.strip()
                for part in os.environ["UI8GEN_TEMPLATE_SOURCE_DIRS"].split(",")
                if part.strip()
            ]

        return cls(
            app=AppConfig(**app_kwargs),
            root=Path(os.environ.get("UI8GEN_ROOT", ".")),
            template=TemplateConfig(**template_kwargs),
        )
