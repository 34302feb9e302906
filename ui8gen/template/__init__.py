"""Template engines that turn annotated trees into Liquid, Handlebars or Jinja."""

from .engine import (
    FilterDefinition,
    RenderSession,
    TemplateEngine,
    TemplateEngineKind,
    TemplateFeatures,
    ValidationResult,
    available_engines,
    get_engine,
    register_engine,
)
from .handlebars import create_handlebars_engine
from .jinja import create_jinja_engine
from .liquid import create_liquid_engine
from .nodes import (
    Annotations,
    Block,
    Comment,
    ComponentMeta,
    Condition,
    Element,
    Include,
    Loop,
    Root,
    Slot,
    Text,
    Variable,
    collect_dependencies,
    collect_variables,
    walk,
)
from .renderer import RenderResult, render_element, render_tree

__all__ = [
    # Engines
    "FilterDefinition",
    "RenderSession",
    "TemplateEngine",
    "TemplateEngineKind",
    "TemplateFeatures",
    "ValidationResult",
    "available_engines",
    "get_engine",
    "register_engine",
    "create_handlebars_engine",
    "create_jinja_engine",
    "create_liquid_engine",
    # Nodes
    "Annotations",
    "Block",
    "Comment",
    "ComponentMeta",
    "Condition",
    "Element",
    "Include",
    "Loop",
    "Root",
    "Slot",
    "Text",
    "Variable",
    "collect_dependencies",
    "collect_variables",
    "walk",
    # Rendering
    "RenderResult",
    "render_element",
    "render_tree",
]
