"""Shared pytest fixtures for the ui8gen test suite.

Provides reusable fixtures for:
- A recording logger that satisfies the logger protocol
- Factories for fake services and pipeline stages
- Sample annotated component trees (as JSON-shaped dicts)
- A GeneratorConfig rooted in a temporary directory
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable

import pytest

from ui8gen.config import GeneratorConfig, TemplateConfig


# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------


class RecordingLogger:
    """Logger-protocol implementation that stores ``(level, message)`` pairs.

    Children share the parent's record list and prefix their messages.
    """

    def __init__(self, prefix: str = "", records: list[tuple[str, str]] | None = None) -> None:
        self.prefix = prefix
        self.records: list[tuple[str, str]] = records if records is not None else []

    def _log(self, level: str, message: str) -> None:
        tag = f"[{self.prefix}] " if self.prefix else ""
        self.records.append((level, f"{tag}{message}"))

    def debug(self, message: str, *args: Any) -> None:
        self._log("debug", message)

    def info(self, message: str, *args: Any) -> None:
        self._log("info", message)

    def warn(self, message: str, *args: Any) -> None:
        self._log("warn", message)

    def error(self, message: str, *args: Any) -> None:
        self._log("error", message)

    def child(self, prefix: str) -> "RecordingLogger":
        combined = f"{self.prefix}:{prefix}" if self.prefix else prefix
        return RecordingLogger(combined, self.records)

    def messages(self, level: str | None = None) -> list[str]:
        return [msg for lvl, msg in self.records if level is None or lvl == level]


@pytest.fixture
def recording_logger() -> RecordingLogger:
    """Fresh recording logger."""
    return RecordingLogger()


# ---------------------------------------------------------------------------
# Fake services & stages
# ---------------------------------------------------------------------------


class FakeService:
    """Service double that appends lifecycle calls to a shared journal."""

    def __init__(
        self,
        name: str,
        dependencies: list[str] | None = None,
        journal: list[str] | None = None,
        *,
        fail_initialize: bool = False,
        fail_dispose: bool = False,
        result: Any = None,
    ) -> None:
        self.name = name
        self.version = "1.0.0"
        self.dependencies = dependencies or []
        self.journal = journal if journal is not None else []
        self.fail_initialize = fail_initialize
        self.fail_dispose = fail_dispose
        self.result = result
        self.initialize_calls = 0
        self.dispose_calls = 0
        self.context: Any = None

    async def initialize(self, context: Any) -> None:
        self.initialize_calls += 1
        self.context = context
        self.journal.append(f"init:{self.name}")
        if self.fail_initialize:
            raise RuntimeError(f"{self.name} failed to initialize")

    async def execute(self, input: Any) -> Any:
        self.journal.append(f"execute:{self.name}")
        return self.result if self.result is not None else input

    async def dispose(self) -> None:
        self.dispose_calls += 1
        self.journal.append(f"dispose:{self.name}")
        if self.fail_dispose:
            raise RuntimeError(f"{self.name} failed to dispose")


class FakeStage:
    """Pipeline stage double driven by a callable."""

    def __init__(
        self,
        name: str,
        order: int = 0,
        *,
        dependencies: list[str] | None = None,
        enabled: bool = True,
        can_execute: bool = True,
        action: Callable[[Any, Any], Any] | None = None,
        error: Exception | None = None,
        journal: list[str] | None = None,
    ) -> None:
        self.name = name
        self.order = order
        self.dependencies = dependencies or []
        self.enabled = enabled
        self._can_execute = can_execute
        self._action = action
        self._error = error
        self.journal = journal if journal is not None else []
        self.inputs: list[Any] = []
        self.errors_seen: list[BaseException] = []

    def can_execute(self, context: Any) -> bool:
        return self._can_execute

    async def execute(self, input: Any, context: Any) -> Any:
        self.inputs.append(input)
        self.journal.append(self.name)
        if self._error is not None:
            raise self._error
        if self._action is not None:
            return self._action(input, context)
        return f"{self.name}-output"

    async def on_error(self, error: BaseException, context: Any) -> None:
        self.errors_seen.append(error)


@pytest.fixture
def make_service() -> Callable[..., FakeService]:
    """Factory for ``FakeService`` instances."""
    return FakeService


@pytest.fixture
def make_stage() -> Callable[..., FakeStage]:
    """Factory for ``FakeStage`` instances."""
    return FakeStage


# ---------------------------------------------------------------------------
# Trees
# ---------------------------------------------------------------------------


@pytest.fixture
def product_card_tree() -> dict[str, Any]:
    """A product card with a loop, a condition, variables and an include."""
    return {
        "type": "root",
        "meta": {"component_name": "ProductCard"},
        "children": [
            {
                "type": "element",
                "tag_name": "section",
                "properties": {"className": ["card", "card--product"]},
                "children": [
                    {
                        "type": "element",
                        "tag_name": "h2",
                        "children": [
                            {
                                "type": "element",
                                "tag_name": "span",
                                "annotations": {
                                    "variable": {"name": "title", "default": "Untitled"},
                                    "unwrap": True,
                                },
                            }
                        ],
                    },
                    {
                        "type": "element",
                        "tag_name": "ul",
                        "children": [
                            {
                                "type": "element",
                                "tag_name": "li",
                                "annotations": {
                                    "loop": {"item": "product", "collection": "products"},
                                },
                                "children": [
                                    {
                                        "type": "element",
                                        "tag_name": "span",
                                        "annotations": {
                                            "variable": {"name": "product.price", "filter": "currency"},
                                            "unwrap": True,
                                        },
                                    }
                                ],
                            }
                        ],
                    },
                    {
                        "type": "element",
                        "tag_name": "p",
                        "annotations": {"condition": {"expression": "user && !user.banned"}},
                        "children": [{"type": "text", "value": "Welcome back"}],
                    },
                    {
                        "type": "element",
                        "tag_name": "div",
                        "annotations": {
                            "include": {"partial": "partials/footer", "props": {"year": "site.year"}},
                        },
                    },
                ],
            }
        ],
    }


@pytest.fixture
def write_tree(tmp_path: Path) -> Callable[[str, dict[str, Any]], Path]:
    """Write a tree dict as JSON under ``tmp_path/src/components``."""

    def _write(relative: str, tree: dict[str, Any]) -> Path:
        path = tmp_path / "src" / "components" / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(tree), encoding="utf-8")
        return path

    return _write


# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------


@pytest.fixture
def generator_config(tmp_path: Path) -> GeneratorConfig:
    """Config rooted at ``tmp_path`` with templates enabled."""
    return GeneratorConfig(
        root=tmp_path,
        template=TemplateConfig(
            enabled=True,
            engine="liquid",
            source_dirs=["./src/components"],
            output_dir="./dist/templates",
        ),
    )
