"""Annotated intermediate tree consumed by template engines.

The tree is HAST-shaped: a ``Root`` holding ``Element``, ``Text`` and
``Comment`` children.  Elements may carry ``Annotations`` describing the
template construct they stand for (loop, condition, variable, slot,
include, block, extends).  Trees are usually loaded from JSON files written
by the React-to-tree transformer::

    {"type": "root", "meta": {"component_name": "HeroBlock"},
     "children": [{"type": "element", "tag_name": "h1",
                   "annotations": {"variable": {"name": "title"}}}]}
"""

from __future__ import annotations

import re
from typing import Annotated, Any, Iterator, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


# ---------------------------------------------------------------------------
# Annotations
# ---------------------------------------------------------------------------


class _Node(BaseModel):
    """Accepts both snake_case and the camelCase keys the JS transformer writes."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Loop(_Node):
    """Iteration over a collection: ``{% for item in items %}``."""

    item: str = Field(..., description="Per-item variable name, e.g. 'product'")
    collection: str = Field(..., description="Collection expression, e.g. 'user.orders'")
    key: Optional[str] = Field(default=None, description="Reconciliation key field")
    index: Optional[str] = Field(default=None, description="Index variable name")


class Condition(_Node):
    """An ``if``, ``elseif`` or ``else`` branch."""

    expression: str = Field(default="", description="Source-style expression, e.g. 'a && !b'")
    is_else: bool = Field(default=False)
    is_else_if: bool = Field(default=False)


class Variable(_Node):
    """Interpolation with optional default and filter."""

    name: str = Field(..., description="Variable path, e.g. 'product.price'")
    default: Optional[str] = Field(default=None)
    filter: Optional[str] = Field(default=None, description="Standard or engine-native filter")
    filter_args: list[str] = Field(default_factory=list)


class Slot(_Node):
    """Named content hole with the element's children as default content."""

    name: str = Field(default="default")
    accepts: list[str] = Field(default_factory=list)
    multiple: bool = Field(default=False)
    required: bool = Field(default=False)


class Include(_Node):
    """Partial reference with a prop bag (values are expressions)."""

    partial: str = Field(..., description="Partial path, e.g. 'partials/header'")
    props: dict[str, str] = Field(default_factory=dict)
    original_name: Optional[str] = Field(default=None)


class Block(_Node):
    """Named capture / inheritance block."""

    name: str
    extends: Optional[str] = Field(default=None)


class Annotations(_Node):
    """Generator annotations attached to an element."""

    loop: Optional[Loop] = None
    condition: Optional[Condition] = None
    variable: Optional[Variable] = None
    slot: Optional[Slot] = None
    include: Optional[Include] = None
    block: Optional[Block] = None
    unwrap: bool = False
    raw: bool = False
    extends: Optional[str] = None
    component: Optional[str] = None


# ---------------------------------------------------------------------------
# Nodes
# ---------------------------------------------------------------------------


class Text(_Node):
    type: Literal["text"] = "text"
    value: str = ""


class Comment(_Node):
    type: Literal["comment"] = "comment"
    value: str = ""


class Element(_Node):
    """An HTML element, optionally annotated."""

    type: Literal["element"] = "element"
    tag_name: str = "div"
    properties: dict[str, Any] = Field(default_factory=dict)
    annotations: Optional[Annotations] = None
    children: list["Child"] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _lift_annotations(cls, data: Any) -> Any:
        # Raw HAST keeps annotations under properties._gen.
        if isinstance(data, dict):
            properties = data.get("properties") or {}
            if "_gen" in properties and not data.get("annotations"):
                data = {
                    **data,
                    "annotations": properties["_gen"],
                    "properties": {k: v for k, v in properties.items() if k != "_gen"},
                }
        return data


Child = Annotated[Union[Element, Text, Comment], Field(discriminator="type")]

Element.model_rebuild()


class ComponentMeta(_Node):
    """Metadata about the component a tree was extracted from."""

    model_config = ConfigDict(extra="allow")

    component_name: str = "template"
    source_file: str = ""
    component_type: Optional[Literal["layout", "partial", "page", "block", "component"]] = None
    extends: Optional[str] = Field(
        default=None, description="Parent template for inheritance"
    )


class Root(_Node):
    type: Literal["root"] = "root"
    children: list[Child] = Field(default_factory=list)
    meta: ComponentMeta = Field(default_factory=ComponentMeta)


# ---------------------------------------------------------------------------
# Traversal helpers
# ---------------------------------------------------------------------------


def walk(node: Root | Element) -> Iterator[Element | Text | Comment]:
    """Yield every descendant of *node* depth-first, parents before children."""
    for child in node.children:
        yield child
        if isinstance(child, Element):
            yield from walk(child)


def collect_variables(tree: Root) -> list[str]:
    """Root names of every variable, loop collection and condition used.

    ``user.name`` contributes ``user``.  Loop item variables are local and
    therefore not reported.  Order is first appearance.
    """
    found: list[str] = []
    local: set[str] = set()

    def add(expression: str) -> None:
        root = expression.strip().split(".")[0].split("[")[0]
        if root and root.isidentifier() and root not in local and root not in found:
            found.append(root)

    for node in walk(tree):
        if not isinstance(node, Element) or node.annotations is None:
            continue
        annotations = node.annotations
        if annotations.loop:
            local.add(annotations.loop.item)
            if annotations.loop.index:
                local.add(annotations.loop.index)
            add(annotations.loop.collection)
        if annotations.variable:
            add(annotations.variable.name)
        if annotations.condition and annotations.condition.expression:
            for token in _identifiers(annotations.condition.expression):
                add(token)
    return found


def collect_dependencies(tree: Root) -> list[str]:
    """Partials referenced through include annotations, in order, de-duplicated."""
    dependencies: list[str] = []
    for node in walk(tree):
        if isinstance(node, Element) and node.annotations and node.annotations.include:
            partial = node.annotations.include.partial
            if partial not in dependencies:
                dependencies.append(partial)
    return dependencies


_KEYWORDS = frozenset({"and", "or", "not", "true", "false", "null", "undefined", "none", "True", "False", "None"})


def _identifiers(expression: str) -> list[str]:
    tokens = re.findall(r"[A-Za-z_$][\w$]*(?:\.[\w$]+)*", _strip_strings(expression))
    return [token for token in tokens if token.split(".")[0] not in _KEYWORDS]


def _strip_strings(expression: str) -> str:
    return re.sub(r"""(["'])(?:\\.|(?!\1).)*\1""", "", expression)
