"""Liquid engine (Shopify, Jekyll, Eleventy).

Liquid has no template inheritance: ``render_extends`` records a warning
and emits a comment marker instead.  Slots are rendered as
``<name>_content`` variables with the element's children as fallback.
"""

from __future__ import annotations

from functools import partial
from typing import Any, Mapping, Sequence

from .common import coerce, count, merge_filters, pipe_filter, quote, to_word_operators, warn
from .engine import (
    FilterDefinition,
    RenderSession,
    TemplateEngine,
    TemplateEngineKind,
    TemplateFeatures,
    ValidationResult,
    register_engine,
)
from .nodes import Block, Condition, Include, Loop, Slot, Variable

NAME = "liquid"
FILE_EXTENSION = ".liquid"

FILTERS: dict[str, FilterDefinition] = {
    "uppercase": FilterDefinition("upcase"),
    "lowercase": FilterDefinition("downcase"),
    "capitalize": FilterDefinition("capitalize"),
    "trim": FilterDefinition("strip"),
    "date": FilterDefinition("date", lambda args: f'"{args[0] or "%Y-%m-%d"}"'),
    "currency": FilterDefinition("money"),
    "number": FilterDefinition("round"),
    "json": FilterDefinition("json"),
    "escape": FilterDefinition("escape"),
    "raw": FilterDefinition("raw"),
    "default": FilterDefinition("default", lambda args: args[0]),
    "first": FilterDefinition("first"),
    "last": FilterDefinition("last"),
    "length": FilterDefinition("size"),
    "join": FilterDefinition("join", lambda args: f'"{args[0] or ", "}"'),
    "split": FilterDefinition("split", lambda args: f'"{args[0] or ","}"'),
    "reverse": FilterDefinition("reverse"),
    "sort": FilterDefinition("sort"),
    "slice": FilterDefinition("slice", lambda args: ", ".join(args)),
    "truncate": FilterDefinition("truncate", lambda args: args[0] or "50"),
}


def format_expression(expression: str) -> str:
    return to_word_operators(expression)


def render_loop(loop: Loop | Mapping[str, Any], content: str, session: RenderSession | None = None) -> str:
    loop = coerce(Loop, loop)
    return f"{{% for {loop.item} in {loop.collection} %}}\n{content}\n{{% endfor %}}"


def render_condition(
    condition: Condition | Mapping[str, Any], content: str, session: RenderSession | None = None
) -> str:
    condition = coerce(Condition, condition)
    if condition.is_else:
        return f"{{% else %}}\n{content}"
    if condition.is_else_if:
        return f"{{% elsif {format_expression(condition.expression)} %}}\n{content}"
    return f"{{% if {format_expression(condition.expression)} %}}\n{content}\n{{% endif %}}"


def render_else(condition: str | None = None, session: RenderSession | None = None) -> str:
    if condition:
        return f"{{% elsif {format_expression(condition)} %}}"
    return "{% else %}"


def apply_filter(
    expression: str,
    name: str,
    args: Sequence[str] | None = None,
    *,
    filters: Mapping[str, FilterDefinition] = FILTERS,
) -> str:
    """``apply_filter("price", "currency")`` -> ``"price | money"``."""
    return pipe_filter(filters, expression, name, args)


def render_variable(
    variable: Variable | Mapping[str, Any],
    session: RenderSession | None = None,
    *,
    filters: Mapping[str, FilterDefinition] = FILTERS,
) -> str:
    variable = coerce(Variable, variable)
    expression = variable.name
    if variable.default is not None:
        expression = f"{expression} | default: {quote(variable.default)}"
    if variable.filter:
        expression = apply_filter(expression, variable.filter, variable.filter_args, filters=filters)
    return f"{{{{ {expression} }}}}"


def render_slot(slot: Slot | Mapping[str, Any], default_content: str, session: RenderSession | None = None) -> str:
    slot = coerce(Slot, slot)
    slot_var = f"{slot.name}_content"
    if default_content.strip():
        return f"{{% if {slot_var} %}}{{{{ {slot_var} }}}}{{% else %}}{default_content}{{% endif %}}"
    return f"{{{{ {slot_var} }}}}"


def render_include(
    include: Include | Mapping[str, Any],
    children_content: str | None = None,
    session: RenderSession | None = None,
) -> str:
    include = coerce(Include, include)
    path = include.partial if include.partial.endswith(FILE_EXTENSION) else f"{include.partial}{FILE_EXTENSION}"
    if not include.props:
        return f"{{% include '{path}' %}}"
    props = ", ".join(f"{key}: {value}" for key, value in include.props.items())
    return f"{{% include '{path}', {props} %}}"


def render_block(block: Block | Mapping[str, Any], content: str, session: RenderSession | None = None) -> str:
    block = coerce(Block, block)
    return f"{{% capture {block.name} %}}{content}{{% endcapture %}}"


def render_extends(parent: str, session: RenderSession | None = None) -> str:
    warn(
        session,
        NAME,
        "Liquid does not support template inheritance (extends). Use includes instead.",
    )
    return f"{{% comment %}}extends '{parent}' - not supported in Liquid{{% endcomment %}}"


def render_comment(comment: str, session: RenderSession | None = None) -> str:
    return f"{{% comment %}}{comment}{{% endcomment %}}"


def validate(output: str) -> ValidationResult:
    errors: list[str] = []

    opened = count(r"\{%\s*(?:if|for|unless|case|capture)\b", output)
    closed = count(r"\{%\s*end(?:if|for|unless|case|capture)\s*%\}", output)
    if opened != closed:
        errors.append(f"Unbalanced control tags: {opened} open, {closed} close")

    output_opens = output.count("{{")
    output_closes = output.count("}}")
    if output_opens != output_closes:
        errors.append(f"Unbalanced output tags: {output_opens} {{{{ vs {output_closes} }}}}")

    return ValidationResult(valid=not errors, errors=errors)


def create_liquid_engine(filter_mappings: Mapping[str, str] | None = None) -> TemplateEngine:
    filters = merge_filters(FILTERS, filter_mappings)
    return TemplateEngine(
        kind=TemplateEngineKind.LIQUID,
        name=NAME,
        version="1.0.0",
        file_extension=FILE_EXTENSION,
        description="Liquid template engine for Shopify, Jekyll and Eleventy",
        features=TemplateFeatures(
            supports_inheritance=False,
            supports_partials=True,
            supports_filters=True,
            supports_macros=False,
            supports_async=True,
            supports_raw=True,
            supports_comments=True,
        ),
        filter_mappings=filters,
        render_loop=render_loop,
        render_condition=render_condition,
        render_else=render_else,
        render_variable=partial(render_variable, filters=filters),
        render_slot=render_slot,
        render_include=render_include,
        render_block=render_block,
        render_extends=render_extends,
        render_comment=render_comment,
        apply_filter=partial(apply_filter, filters=filters),
        format_expression=format_expression,
        validate=validate,
    )


register_engine(TemplateEngineKind.LIQUID, create_liquid_engine)
