"""Shared utility functions for the UI8Kit generator.

Provides Rich-based console reporting, duration formatting, name helpers and
a small bridge for calling hooks that may be either plain functions or
coroutines.  Every public function is side-effect-free apart from the console
helpers, which only write to the shared ``console``.
"""

from __future__ import annotations

import inspect
import re
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

console = Console()

# ---------------------------------------------------------------------------
# Awaitable bridge
# ---------------------------------------------------------------------------


async def maybe_await(value: Any) -> Any:
    """Return *value*, awaiting it first when it is awaitable.

    Lifecycle hooks, ``can_execute`` predicates and plugin callbacks may be
    written either as regular functions or as coroutines; callers pass the
    raw return value through this helper.
    """
    if inspect.isawaitable(value):
        return await value
    return value


# ---------------------------------------------------------------------------
# String / name helpers
# ---------------------------------------------------------------------------


def to_kebab_case(name: str) -> str:
    """Convert ``CamelCase``, ``snake_case`` or spaced names to kebab-case.

    Examples::

        to_kebab_case("HeroBlock")   -> "hero-block"
        to_kebab_case("site_header") -> "site-header"
        to_kebab_case("Nav Bar")     -> "nav-bar"
    """
    result = re.sub(r"([a-z0-9])([A-Z])", r"\1-\2", name.strip())
    result = re.sub(r"[\s_]+", "-", result)
    return result.lower()


def resolve_path(root: str | Path, path: str | Path) -> Path:
    """Resolve *path* against *root* unless it is already absolute."""
    candidate = Path(path)
    if candidate.is_absolute():
        return candidate
    return Path(root) / candidate


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def format_duration(milliseconds: float) -> str:
    """Format a duration given in milliseconds to a human-readable string.

    Examples::

        format_duration(12.3)      -> "12ms"
        format_duration(3700)      -> "3.7s"
        format_duration(65_200)    -> "1m 5s"
    """
    if milliseconds < 0:
        return "0ms"
    if milliseconds < 1000:
        return f"{round(milliseconds)}ms"

    seconds = milliseconds / 1000
    minutes = int(seconds // 60)
    secs = seconds % 60
    if minutes > 0:
        return f"{minutes}m {int(secs)}s"
    return f"{secs:.1f}s"


def format_size(size: int) -> str:
    """Format a byte count (``512 B``, ``1.5 KB``, ``2.00 MB``)."""
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.2f} MB"


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


def print_banner(title: str, lines: list[str], *, style: str = "bright_cyan") -> None:
    """Print a bordered panel with a bold title and one line per entry."""
    console.print(
        Panel(
            "\n".join(lines),
            title=f"[bold]{title}[/bold]",
            border_style=style,
        )
    )


def print_summary_table(data: dict[str, str], title: str = "Summary") -> None:
    """Print a two-column key/value summary table.

    Args:
        data: Mapping of label -> value.
        title: Table title.
    """
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Item", style="dim", no_wrap=True)
    table.add_column("Value")

    for key, value in data.items():
        table.add_row(key, str(value))

    console.print(table)
    console.print()
