"""Walk an annotated tree and render it through a ``TemplateEngine``.

Annotations on an element are applied in a fixed order to the element's
rendered markup: condition, loop, variable, include, slot, block.  Elements
marked ``unwrap`` contribute only their children.  Each call gets its own
``RenderSession``; the engine itself is never mutated.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from pydantic import BaseModel, Field

from ..config import TemplatePluginConfig
from ..logger import Logger
from ..utils import to_kebab_case
from .common import SELF_CLOSING_TAGS, coerce, format_attributes, html_attributes
from .engine import RenderSession, TemplateEngine
from .nodes import Comment, Element, Root, Text, Variable, collect_dependencies, collect_variables


class RenderResult(BaseModel):
    """One rendered template document."""

    filename: str
    content: str
    variables: list[str] = Field(default_factory=list)
    dependencies: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


def render_tree(
    engine: TemplateEngine,
    tree: Root | Mapping[str, Any],
    options: Optional[TemplatePluginConfig] = None,
    logger: Optional[Logger] = None,
) -> RenderResult:
    """Render *tree* into a complete template document.

    Args:
        engine: Target engine.
        tree: Root node, or its JSON-shaped mapping.
        options: Pretty printing and header comment; defaults apply when omitted.
        logger: Receives every warning raised during the render.
    """
    tree = coerce(Root, tree)
    options = options or TemplatePluginConfig()
    session = RenderSession(logger=logger)
    walker = _TreeRenderer(engine, session)

    content = walker.children(tree.children)
    if tree.meta.extends:
        content = f"{engine.render_extends(tree.meta.extends, session)}\n{content}"
    if options.prepend_comment:
        content = f"{engine.render_comment(options.prepend_comment, session)}\n{content}"
    if options.pretty_print:
        content = content.strip() + "\n"

    return RenderResult(
        filename=f"{to_kebab_case(tree.meta.component_name)}{engine.file_extension}",
        content=content,
        variables=collect_variables(tree),
        dependencies=collect_dependencies(tree),
        warnings=list(session.warnings),
    )


def render_element(
    engine: TemplateEngine,
    element: Element | Mapping[str, Any],
    session: RenderSession | None = None,
) -> str:
    """Render a single element (and its subtree) without document framing."""
    return _TreeRenderer(engine, session or RenderSession()).element(coerce(Element, element))


class _TreeRenderer:
    def __init__(self, engine: TemplateEngine, session: RenderSession) -> None:
        self.engine = engine
        self.session = session

    def children(self, nodes: list[Element | Text | Comment]) -> str:
        parts: list[str] = []
        for node in nodes:
            if isinstance(node, Element):
                parts.append(self.element(node))
            elif isinstance(node, Text):
                parts.append(node.value)
            elif isinstance(node, Comment):
                parts.append(self.engine.render_comment(node.value, self.session))
        return "".join(parts)

    def element(self, element: Element) -> str:
        engine, session = self.engine, self.session
        annotations = element.annotations

        if annotations is not None and annotations.unwrap:
            if annotations.variable or annotations.include:
                content = ""
            else:
                content = self.children(element.children)
        else:
            content = self.markup(element)

        if annotations is None:
            return content

        if annotations.condition:
            content = engine.render_condition(annotations.condition, content, session)
        if annotations.loop:
            content = engine.render_loop(annotations.loop, content, session)
        if annotations.variable:
            content = engine.render_variable(annotations.variable, session)
        if annotations.include:
            children = self.children(element.children) if element.children else None
            content = engine.render_include(annotations.include, children, session)
        if annotations.slot:
            content = engine.render_slot(annotations.slot, content, session)
        if annotations.block:
            content = engine.render_block(annotations.block, content, session)
        if annotations.extends:
            content = f"{engine.render_extends(annotations.extends, session)}\n{content}"
        return content

    def markup(self, element: Element) -> str:
        annotations = element.annotations
        # Variables and includes replace the element entirely.
        if annotations is not None and (annotations.variable or annotations.include):
            return ""

        tag = element.tag_name
        attributes = format_attributes(html_attributes(element.properties), self._expression)
        opening = f"<{tag} {attributes}" if attributes else f"<{tag}"

        if tag in SELF_CLOSING_TAGS and not element.children:
            return f"{opening} />"
        return f"{opening}>{self.children(element.children)}</{tag}>"

    def _expression(self, expression: str) -> str:
        return self.engine.render_variable(Variable(name=expression), self.session)
