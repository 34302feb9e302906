"""Template engine record, capability flags and engine registry.

An engine is a ``TemplateEngine`` value: identity fields plus one plain
function per annotated node kind.  Engines are built by factories that close
over their filter table, so a caller can ask for a copy with extra filter
mappings without mutating the shared engine::

    engine = get_engine("liquid", filter_mappings={"currency": "money_with_currency"})
    engine.render_variable(Variable(name="price", filter="currency"))
    # '{{ price | money_with_currency }}'

Render functions take an optional ``RenderSession`` that collects non-fatal
warnings for one render; they hold no state of their own.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Mapping, Optional

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from ..logger import Logger


class TemplateEngineKind(str, Enum):
    """Closed set of supported target languages."""

    LIQUID = "liquid"
    HANDLEBARS = "handlebars"
    JINJA = "jinja"


@dataclass(frozen=True)
class TemplateFeatures:
    supports_inheritance: bool = False
    supports_partials: bool = True
    supports_filters: bool = True
    supports_macros: bool = False
    supports_async: bool = False
    supports_raw: bool = True
    supports_comments: bool = True


@dataclass(frozen=True)
class FilterDefinition:
    """Engine-side name of a standard filter plus an optional argument formatter."""

    name: str
    format_args: Optional[Callable[[list[str]], str]] = None


class ValidationResult(BaseModel):
    valid: bool
    errors: list[str] = Field(default_factory=list)


@dataclass
class RenderSession:
    """Warnings gathered while rendering one document.

    Each ``render_tree`` call creates its own session, so engines stay
    reentrant.  When a logger is attached every warning is also logged.
    """

    logger: Optional["Logger"] = None
    warnings: list[str] = field(default_factory=list)

    def warn(self, engine: str, message: str) -> None:
        self.warnings.append(message)
        if self.logger is not None:
            self.logger.warn(f"[{engine}] {message}")


@dataclass(frozen=True)
class TemplateEngine:
    """Composed record of render functions for one target language."""

    kind: TemplateEngineKind
    name: str
    version: str
    file_extension: str
    description: str
    features: TemplateFeatures
    filter_mappings: Mapping[str, FilterDefinition]

    render_loop: Callable[..., str]
    render_condition: Callable[..., str]
    render_else: Callable[..., str]
    render_variable: Callable[..., str]
    render_slot: Callable[..., str]
    render_include: Callable[..., str]
    render_block: Callable[..., str]
    render_extends: Callable[..., str]
    render_comment: Callable[..., str]
    apply_filter: Callable[..., str]
    format_expression: Callable[[str], str]
    validate: Callable[[str], ValidationResult]

    def get_filter(self, name: str) -> FilterDefinition | None:
        return self.filter_mappings.get(name)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

EngineFactory = Callable[..., TemplateEngine]

_FACTORIES: dict[TemplateEngineKind, EngineFactory] = {}


def register_engine(kind: TemplateEngineKind | str, factory: EngineFactory) -> None:
    """Register *factory* as the builder for *kind*, replacing any previous one."""
    _FACTORIES[_coerce_kind(kind)] = factory


def get_engine(
    kind: TemplateEngineKind | str,
    filter_mappings: Mapping[str, str] | None = None,
) -> TemplateEngine:
    """Build the engine for *kind*.

    Args:
        kind: Engine kind or its string value (``"liquid"``).
        filter_mappings: Extra ``standard -> engine`` filter names merged
            over the engine's own table.

    Raises:
        ValueError: If *kind* is unknown or has no registered factory.
    """
    resolved = _coerce_kind(kind)
    factory = _FACTORIES.get(resolved)
    if factory is None:
        raise ValueError(f'No template engine registered for "{resolved.value}"')
    return factory(filter_mappings=filter_mappings)


def available_engines() -> list[str]:
    return [kind.value for kind in TemplateEngineKind if kind in _FACTORIES]


def _coerce_kind(kind: Any) -> TemplateEngineKind:
    if isinstance(kind, TemplateEngineKind):
        return kind
    try:
        return TemplateEngineKind(str(kind).lower())
    except ValueError:
        known = ", ".join(k.value for k in TemplateEngineKind)
        raise ValueError(f'Unknown template engine "{kind}". Available: {known}') from None
