"""Jinja2 engine (Flask, Django-style sites, static generators).

Jinja has native inheritance, so ``extends``, slots and blocks map onto
``{% extends %}`` and ``{% block %}``.  Validation compiles the rendered
template with the real Jinja2 parser instead of counting delimiters.
"""

from __future__ import annotations

import re
from functools import partial
from typing import Any, Mapping, Sequence

from jinja2 import Environment, TemplateSyntaxError

from .common import coerce, merge_filters, pipe_filter, quote, to_word_operators
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

NAME = "jinja"
FILE_EXTENSION = ".jinja"

FILTERS: dict[str, FilterDefinition] = {
    "uppercase": FilterDefinition("upper"),
    "lowercase": FilterDefinition("lower"),
    "capitalize": FilterDefinition("capitalize"),
    "trim": FilterDefinition("trim"),
    "date": FilterDefinition("date", lambda args: quote(args[0] or "%Y-%m-%d")),
    "currency": FilterDefinition("currency"),
    "number": FilterDefinition("round"),
    "json": FilterDefinition("tojson"),
    "escape": FilterDefinition("escape"),
    "raw": FilterDefinition("safe"),
    "default": FilterDefinition("default", lambda args: args[0]),
    "first": FilterDefinition("first"),
    "last": FilterDefinition("last"),
    "length": FilterDefinition("length"),
    "join": FilterDefinition("join", lambda args: quote(args[0] or ", ")),
    "split": FilterDefinition("split", lambda args: quote(args[0] or ",")),
    "reverse": FilterDefinition("reverse"),
    "sort": FilterDefinition("sort"),
    "slice": FilterDefinition("slice", lambda args: ", ".join(args)),
    "truncate": FilterDefinition("truncate", lambda args: args[0] or "50"),
}

_NULLS = re.compile(r"\b(?:null|undefined)\b")

# Parsing only; filters and tests are resolved at compile time.
_environment = Environment()


def format_expression(expression: str) -> str:
    return _NULLS.sub("none", to_word_operators(expression))


def _template_path(partial_name: str) -> str:
    return partial_name if partial_name.endswith(FILE_EXTENSION) else f"{partial_name}{FILE_EXTENSION}"


def render_loop(loop: Loop | Mapping[str, Any], content: str, session: RenderSession | None = None) -> str:
    loop = coerce(Loop, loop)
    head = f"{{% for {loop.item} in {loop.collection} %}}"
    if loop.index:
        head += f"{{% set {loop.index} = loop.index0 %}}"
    return f"{head}\n{content}\n{{% endfor %}}"


def render_condition(
    condition: Condition | Mapping[str, Any], content: str, session: RenderSession | None = None
) -> str:
    condition = coerce(Condition, condition)
    if condition.is_else:
        return f"{{% else %}}\n{content}"
    if condition.is_else_if:
        return f"{{% elif {format_expression(condition.expression)} %}}\n{content}"
    return f"{{% if {format_expression(condition.expression)} %}}\n{content}\n{{% endif %}}"


def render_else(condition: str | None = None, session: RenderSession | None = None) -> str:
    if condition:
        return f"{{% elif {format_expression(condition)} %}}"
    return "{% else %}"


def apply_filter(
    expression: str,
    name: str,
    args: Sequence[str] | None = None,
    *,
    filters: Mapping[str, FilterDefinition] = FILTERS,
) -> str:
    """``apply_filter("name", "truncate", ["20"])`` -> ``"name | truncate(20)"``."""
    return pipe_filter(
        filters, expression, name, args, separator="", wrap_args=lambda formatted: f"({formatted})"
    )


def render_variable(
    variable: Variable | Mapping[str, Any],
    session: RenderSession | None = None,
    *,
    filters: Mapping[str, FilterDefinition] = FILTERS,
) -> str:
    variable = coerce(Variable, variable)
    expression = variable.name
    if variable.default is not None:
        expression = f"{expression} | default({quote(variable.default)})"
    if variable.filter:
        expression = apply_filter(expression, variable.filter, variable.filter_args, filters=filters)
    return f"{{{{ {expression} }}}}"


def render_slot(slot: Slot | Mapping[str, Any], default_content: str, session: RenderSession | None = None) -> str:
    slot = coerce(Slot, slot)
    return f"{{% block {slot.name} %}}{default_content}{{% endblock %}}"


def render_include(
    include: Include | Mapping[str, Any],
    children_content: str | None = None,
    session: RenderSession | None = None,
) -> str:
    include = coerce(Include, include)
    tag = f"{{% include '{_template_path(include.partial)}' %}}"
    if not include.props:
        return tag
    assignments = ", ".join(f"{key} = {value}" for key, value in include.props.items())
    return f"{{% with {assignments} %}}{tag}{{% endwith %}}"


def render_block(block: Block | Mapping[str, Any], content: str, session: RenderSession | None = None) -> str:
    block = coerce(Block, block)
    return f"{{% block {block.name} %}}{content}{{% endblock %}}"


def render_extends(parent: str, session: RenderSession | None = None) -> str:
    return f"{{% extends '{_template_path(parent)}' %}}"


def render_comment(comment: str, session: RenderSession | None = None) -> str:
    return f"{{# {comment} #}}"


def validate(output: str) -> ValidationResult:
    try:
        _environment.parse(output)
    except TemplateSyntaxError as exc:
        return ValidationResult(valid=False, errors=[f"Line {exc.lineno}: {exc.message}"])
    return ValidationResult(valid=True)


def create_jinja_engine(filter_mappings: Mapping[str, str] | None = None) -> TemplateEngine:
    filters = merge_filters(FILTERS, filter_mappings)
    return TemplateEngine(
        kind=TemplateEngineKind.JINJA,
        name=NAME,
        version="1.0.0",
        file_extension=FILE_EXTENSION,
        description="Jinja2 template engine for Flask and Python static sites",
        features=TemplateFeatures(
            supports_inheritance=True,
            supports_partials=True,
            supports_filters=True,
            supports_macros=True,
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


register_engine(TemplateEngineKind.JINJA, create_jinja_engine)
