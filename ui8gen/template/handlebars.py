"""Handlebars engine (Express, static site generators).

Filters become helper calls: ``{{formatCurrency price}}`` for a variable,
``(formatCurrency price)`` as a subexpression.  Boolean operators are
rewritten into the ``eq``/``ne``/``and``/``or``/``not`` helpers that the
common helper packs provide.
"""

from __future__ import annotations

import re
from functools import partial
from typing import Any, Mapping, Sequence

from .common import coerce, count, merge_filters, quote
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

NAME = "handlebars"
FILE_EXTENSION = ".hbs"

FILTERS: dict[str, FilterDefinition] = {
    "uppercase": FilterDefinition("uppercase"),
    "lowercase": FilterDefinition("lowercase"),
    "capitalize": FilterDefinition("capitalize"),
    "trim": FilterDefinition("trim"),
    "date": FilterDefinition("formatDate", lambda args: f'"{args[0] or "YYYY-MM-DD"}"'),
    "currency": FilterDefinition("formatCurrency"),
    "number": FilterDefinition("formatNumber"),
    "json": FilterDefinition("json"),
    "escape": FilterDefinition("escape"),
    "raw": FilterDefinition("raw"),
    "default": FilterDefinition("default", lambda args: f'"{args[0]}"'),
    "first": FilterDefinition("first"),
    "last": FilterDefinition("last"),
    "length": FilterDefinition("length"),
    "join": FilterDefinition("join", lambda args: f'"{args[0] or ", "}"'),
    "split": FilterDefinition("split", lambda args: f'"{args[0] or ","}"'),
    "reverse": FilterDefinition("reverse"),
    "sort": FilterDefinition("sort"),
    "slice": FilterDefinition("slice", lambda args: " ".join(args)),
    "truncate": FilterDefinition("truncate", lambda args: args[0] or "50"),
}

_COMPARISON = re.compile(r"^(.+?)\s*(!==|===|!=|==)\s*(.+)$")


def format_expression(expression: str) -> str:
    """``a && !b`` -> ``(and a (not b))``; plain paths are left alone.

    Parenthesised source expressions are passed through unchanged.
    """
    expr = expression.strip()
    if "(" in expr:
        return expr
    for operator, helper in (("||", "or"), ("&&", "and")):
        if operator in expr:
            left, right = expr.split(operator, 1)
            return f"({helper} {format_expression(left)} {format_expression(right)})"
    match = _COMPARISON.match(expr)
    if match:
        helper = "ne" if match.group(2).startswith("!") else "eq"
        return f"({helper} {format_expression(match.group(1))} {format_expression(match.group(3))})"
    if expr.startswith("!"):
        return f"(not {format_expression(expr[1:])})"
    return expr


def render_loop(loop: Loop | Mapping[str, Any], content: str, session: RenderSession | None = None) -> str:
    loop = coerce(Loop, loop)
    params = f"{loop.item} {loop.index}" if loop.index else loop.item
    return f"{{{{#each {loop.collection} as |{params}|}}}}\n{content}\n{{{{/each}}}}"


def render_condition(
    condition: Condition | Mapping[str, Any], content: str, session: RenderSession | None = None
) -> str:
    condition = coerce(Condition, condition)
    if condition.is_else:
        return f"{{{{else}}}}\n{content}"
    if condition.is_else_if:
        return f"{{{{else if {format_expression(condition.expression)}}}}}\n{content}"
    return f"{{{{#if {format_expression(condition.expression)}}}}}\n{content}\n{{{{/if}}}}"


def render_else(condition: str | None = None, session: RenderSession | None = None) -> str:
    if condition:
        return f"{{{{else if {format_expression(condition)}}}}}"
    return "{{else}}"


def _helper_args(mapping: FilterDefinition | None, args: Sequence[str]) -> str:
    if mapping is not None and mapping.format_args is not None:
        return mapping.format_args(list(args))
    return " ".join(args)


def apply_filter(
    expression: str,
    name: str,
    args: Sequence[str] | None = None,
    *,
    filters: Mapping[str, FilterDefinition] = FILTERS,
) -> str:
    """``apply_filter("price", "currency")`` -> ``"(formatCurrency price)"``."""
    mapping = filters.get(name)
    helper = mapping.name if mapping else name
    if args:
        return f"({helper} {expression} {_helper_args(mapping, args)})"
    return f"({helper} {expression})"


def render_variable(
    variable: Variable | Mapping[str, Any],
    session: RenderSession | None = None,
    *,
    filters: Mapping[str, FilterDefinition] = FILTERS,
) -> str:
    variable = coerce(Variable, variable)
    if variable.filter:
        mapping = filters.get(variable.filter)
        helper = mapping.name if mapping else variable.filter
        parts = [helper, variable.name]
        if variable.filter_args:
            parts.append(_helper_args(mapping, variable.filter_args))
        if variable.default is not None:
            parts.append(f"default={quote(variable.default)}")
        return "{{" + " ".join(parts) + "}}"

    if variable.default is not None:
        return f"{{{{default {variable.name} {quote(variable.default)}}}}}"
    return f"{{{{{variable.name}}}}}"


def render_slot(slot: Slot | Mapping[str, Any], default_content: str, session: RenderSession | None = None) -> str:
    slot = coerce(Slot, slot)
    if default_content.strip():
        return f"{{{{#if @partial-block}}}}{{{{> @partial-block}}}}{{{{else}}}}{default_content}{{{{/if}}}}"
    return f"{{{{> {slot.name}}}}}"


def render_include(
    include: Include | Mapping[str, Any],
    children_content: str | None = None,
    session: RenderSession | None = None,
) -> str:
    include = coerce(Include, include)
    partial_name = re.sub(r"\.hbs$", "", include.partial)
    head = partial_name
    if include.props:
        head += " " + " ".join(f"{key}={value}" for key, value in include.props.items())

    # Children are handed to the partial as its @partial-block.
    if children_content and children_content.strip():
        return f"{{{{#> {head}}}}}{children_content}{{{{/{partial_name}}}}}"
    return f"{{{{> {head}}}}}"


def render_block(block: Block | Mapping[str, Any], content: str, session: RenderSession | None = None) -> str:
    block = coerce(Block, block)
    return f'{{{{#*inline "{block.name}"}}}}{content}{{{{/inline}}}}'


def render_extends(parent: str, session: RenderSession | None = None) -> str:
    return f"{{{{!-- layout: {parent} --}}}}"


def render_comment(comment: str, session: RenderSession | None = None) -> str:
    return f"{{{{!-- {comment} --}}}}"


def validate(output: str) -> ValidationResult:
    errors: list[str] = []

    opened = count(r"\{\{#(?:if|each|unless|with)\b", output)
    closed = count(r"\{\{/(?:if|each|unless|with)\}\}", output)
    if opened != closed:
        errors.append(f"Unbalanced block helpers: {opened} open, {closed} close")

    opens = count(r"\{\{(?!\{)", output)
    closes = count(r"(?<!\})\}\}", output)
    if opens != closes:
        errors.append(f"Unbalanced mustaches: {opens} {{{{ vs {closes} }}}}")

    return ValidationResult(valid=not errors, errors=errors)


def create_handlebars_engine(filter_mappings: Mapping[str, str] | None = None) -> TemplateEngine:
    filters = merge_filters(FILTERS, filter_mappings)
    return TemplateEngine(
        kind=TemplateEngineKind.HANDLEBARS,
        name=NAME,
        version="1.0.0",
        file_extension=FILE_EXTENSION,
        description="Handlebars template engine for Express.js and static sites",
        features=TemplateFeatures(
            supports_inheritance=True,
            supports_partials=True,
            supports_filters=True,
            supports_macros=True,
            supports_async=False,
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


register_engine(TemplateEngineKind.HANDLEBARS, create_handlebars_engine)
