"""Helpers shared by every template engine.

Engines are assembled from plain functions; the pieces that do not depend
on the target language (warning collection, HTML attribute formatting,
default pipe-style filters, operator translation, delimiter balance checks)
live here so each engine module only spells out its own syntax.
"""

from __future__ import annotations

import re
from typing import Any, Callable, Mapping, Sequence, TypeVar

from pydantic import BaseModel

from ..logger import get_logger
from ..utils import to_kebab_case
from .engine import FilterDefinition, RenderSession

ModelT = TypeVar("ModelT", bound=BaseModel)

SELF_CLOSING_TAGS = frozenset(
    {
        "area", "base", "br", "col", "embed", "hr", "img", "input",
        "link", "meta", "param", "source", "track", "wbr",
    }
)

# Property key carrying generator annotations inside raw HAST properties.
ANNOTATION_PROPERTY = "_gen"

_fallback_logger = get_logger("template")


# ---------------------------------------------------------------------------
# Warnings & coercion
# ---------------------------------------------------------------------------


def warn(session: RenderSession | None, engine: str, message: str) -> None:
    """Record a non-fatal render warning.

    Without a session the warning is only logged.
    """
    if session is not None:
        session.warn(engine, message)
    else:
        _fallback_logger.warn(f"[{engine}] {message}")


def coerce(model: type[ModelT], value: ModelT | Mapping[str, Any]) -> ModelT:
    """Accept either a model instance or a plain mapping for *model*."""
    if isinstance(value, model):
        return value
    return model.model_validate(value)


# ---------------------------------------------------------------------------
# Filters
# ---------------------------------------------------------------------------


def merge_filters(
    base: Mapping[str, FilterDefinition],
    overrides: Mapping[str, str] | None,
) -> dict[str, FilterDefinition]:
    """Overlay ``standard -> engine name`` overrides on an engine's table.

    An override renames the engine filter but keeps the argument formatter
    of the standard filter it replaces.
    """
    merged = dict(base)
    for standard, engine_name in (overrides or {}).items():
        previous = merged.get(standard)
        merged[standard] = FilterDefinition(
            name=engine_name,
            format_args=previous.format_args if previous else None,
        )
    return merged


def pipe_filter(
    filters: Mapping[str, FilterDefinition],
    expression: str,
    name: str,
    args: Sequence[str] | None = None,
    *,
    separator: str = ": ",
    wrap_args: Callable[[str], str] = lambda formatted: formatted,
) -> str:
    """``expr | filter[<sep>args]`` with standard names mapped through *filters*.

    Unknown filters pass through verbatim as engine-native syntax.
    """
    args = list(args or [])
    mapping = filters.get(name)
    if mapping is None:
        if args:
            return f"{expression} | {name}{separator}{wrap_args(', '.join(args))}"
        return f"{expression} | {name}"

    if args and mapping.format_args is not None:
        return f"{expression} | {mapping.name}{separator}{wrap_args(mapping.format_args(args))}"
    return f"{expression} | {mapping.name}"


def quote(value: str) -> str:
    """Render *value* as a double-quoted string literal."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


# ---------------------------------------------------------------------------
# Expressions
# ---------------------------------------------------------------------------

# Longest operators first: "!==" and "===" share characters with "!" and "==".
_WORD_OPERATORS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"\s*!==\s*"), " != "),
    (re.compile(r"\s*===\s*"), " == "),
    (re.compile(r"\s*&&\s*"), " and "),
    (re.compile(r"\s*\|\|\s*"), " or "),
    (re.compile(r"!\s*(?=[\w(!])"), "not "),
)


def to_word_operators(expression: str) -> str:
    """Translate ``&& || ! === !==`` into ``and or not == !=``."""
    result = expression
    for pattern, replacement in _WORD_OPERATORS:
        result = pattern.sub(replacement, result)
    return result.strip()


# ---------------------------------------------------------------------------
# HTML attributes
# ---------------------------------------------------------------------------


def escape_attribute(value: str) -> str:
    return (
        value.replace("&", "&amp;")
        .replace('"', "&quot;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
    )


def style_to_css(style: Mapping[str, Any]) -> str:
    """``{"fontSize": "12px"}`` -> ``"font-size: 12px"``."""
    return "; ".join(f"{to_kebab_case(prop)}: {value}" for prop, value in style.items())


def html_attributes(properties: Mapping[str, Any]) -> dict[str, Any]:
    """Normalise element properties into HTML attributes.

    ``className`` lists become ``class``; style objects become CSS text.
    Values shaped ``{"__expression": "..."}`` are kept for the engine.
    """
    attributes: dict[str, Any] = {}
    for key, value in properties.items():
        if key == ANNOTATION_PROPERTY:
            continue
        if key == "className" and isinstance(value, (list, tuple)):
            attributes["class"] = " ".join(str(part) for part in value)
        elif key == "className":
            attributes["class"] = value
        elif key == "style" and isinstance(value, Mapping) and "__expression" not in value:
            attributes["style"] = style_to_css(value)
        else:
            attributes[key] = value
    return attributes


def format_attributes(
    attributes: Mapping[str, Any],
    render_expression: Callable[[str], str],
) -> str:
    """Serialise attributes; dynamic ``__expression`` values use *render_expression*."""
    parts: list[str] = []
    for key, value in attributes.items():
        if value is True:
            parts.append(key)
        elif value is False or value is None:
            continue
        elif isinstance(value, Mapping) and "__expression" in value:
            parts.append(f'{key}="{render_expression(str(value["__expression"]))}"')
        else:
            parts.append(f'{key}="{escape_attribute(str(value))}"')
    return " ".join(parts)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def count(pattern: str, text: str) -> int:
    return len(re.findall(pattern, text))

