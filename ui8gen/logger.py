"""Console logger used by the orchestrator, services and stages.

Messages are written through the shared Rich ``console`` with one colour per
level.  Child loggers share the parent's level and console and extend the
prefix, so ``Logger(prefix="gen").child("template")`` prints
``[gen:template] ...``.
"""

from __future__ import annotations

from typing import Any, Literal

from rich.console import Console
from rich.markup import escape

from .utils import console as default_console

LogLevel = Literal["debug", "info", "warn", "error", "silent"]

LEVELS: dict[str, int] = {
    "debug": 10,
    "info": 20,
    "warn": 30,
    "error": 40,
    "silent": 100,
}

_STYLES: dict[str, str] = {
    "debug": "dim",
    "info": "",
    "warn": "bold yellow",
    "error": "bold red",
}


class Logger:
    """Level-filtered logger with ``[prefix]`` tagging."""

    def __init__(
        self,
        level: LogLevel = "info",
        prefix: str = "",
        console: Console | None = None,
    ) -> None:
        if level not in LEVELS:
            raise ValueError(f"Unknown log level: {level!r}")
        self.level: LogLevel = level
        self.prefix = prefix
        self.console = console or default_console

    def is_enabled(self, level: str) -> bool:
        return LEVELS[level] >= LEVELS[self.level]

    def debug(self, message: str, *args: Any) -> None:
        self._log("debug", message, args)

    def info(self, message: str, *args: Any) -> None:
        self._log("info", message, args)

    def warn(self, message: str, *args: Any) -> None:
        self._log("warn", message, args)

    # ``logging``-style alias.
    warning = warn

    def error(self, message: str, *args: Any) -> None:
        self._log("error", message, args)

    def child(self, prefix: str) -> "Logger":
        """Return a logger whose prefix is ``<parent>:<prefix>``."""
        combined = f"{self.prefix}:{prefix}" if self.prefix else prefix
        return Logger(level=self.level, prefix=combined, console=self.console)

    def _log(self, level: str, message: str, args: tuple[Any, ...]) -> None:
        if not self.is_enabled(level):
            return
        text = message
        if args:
            text = " ".join([message, *(str(arg) for arg in args)])
        tag = f"[{self.prefix}] " if self.prefix else ""
        body = escape(f"{tag}{text}")
        style = _STYLES[level]
        if style:
            self.console.print(f"[{style}]{body}[/{style}]")
        else:
            self.console.print(body)


def get_logger(prefix: str = "", level: LogLevel = "info") -> Logger:
    """Convenience factory mirroring ``logging.getLogger``."""
    return Logger(level=level, prefix=prefix)
