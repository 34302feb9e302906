"""Plugin bookkeeping and hook dispatch.

Plugins run in registration order; there is no inter-plugin dependency
concept.  ``before_generate`` threads the configuration through every
plugin's ``on_before_generate`` so each plugin sees its predecessor's
changes.  ``after_generate`` stops at the first failing hook.  ``on_error``
and ``teardown_all`` are best-effort: failures are logged, never raised.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Sequence

from ..logger import Logger
from ..utils import maybe_await
from .interfaces import LoggerProtocol, PipelineStage, Plugin, Service


@dataclass
class PluginHooks:
    """Context-level hooks, distinct from the config/result hooks."""

    before_generate: Callable[[Any], Any] | None = None
    after_generate: Callable[[Any], Any] | None = None
    on_error: Callable[[BaseException, Any], Any] | None = None


@dataclass
class PluginDefinition:
    """A plugin assembled from plain values by ``create_plugin``."""

    name: str
    version: str = "1.0.0"
    description: str = ""
    services: list[Service] = field(default_factory=list)
    stages: list[PipelineStage] = field(default_factory=list)
    hooks: PluginHooks = field(default_factory=PluginHooks)
    setup: Callable[[Any], Any] | None = None
    teardown: Callable[[], Any] | None = None
    on_before_generate: Callable[[Any], Any] | None = None
    on_after_generate: Callable[[Any], Any] | None = None

    def get_services(self) -> list[Service]:
        return list(self.services)

    def get_stages(self) -> list[PipelineStage]:
        return list(self.stages)


def create_plugin(
    name: str,
    version: str = "1.0.0",
    *,
    description: str = "",
    services: Sequence[Service] = (),
    stages: Sequence[PipelineStage] = (),
    hooks: PluginHooks | None = None,
    setup: Callable[[Any], Any] | None = None,
    teardown: Callable[[], Any] | None = None,
    on_before_generate: Callable[[Any], Any] | None = None,
    on_after_generate: Callable[[Any], Any] | None = None,
) -> PluginDefinition:
    """Build a plugin without writing a class."""
    return PluginDefinition(
        name=name,
        version=version,
        description=description,
        services=list(services),
        stages=list(stages),
        hooks=hooks or PluginHooks(),
        setup=setup,
        teardown=teardown,
        on_before_generate=on_before_generate,
        on_after_generate=on_after_generate,
    )


class PluginManager:
    """Holds registered plugins and dispatches their hooks in order."""

    def __init__(self, logger: LoggerProtocol | None = None) -> None:
        self.logger = logger or Logger(prefix="PluginManager")
        self._plugins: dict[str, Plugin] = {}
        self._context: Any = None

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, plugin: Plugin) -> None:
        if plugin.name in self._plugins:
            raise ValueError(f'Plugin "{plugin.name}" is already registered')
        self._plugins[plugin.name] = plugin

    def unregister(self, name: str) -> bool:
        return self._plugins.pop(name, None) is not None

    def has(self, name: str) -> bool:
        return name in self._plugins

    def get(self, name: str) -> Plugin | None:
        return self._plugins.get(name)

    def get_all(self) -> list[Plugin]:
        return list(self._plugins.values())

    @property
    def initialized(self) -> bool:
        return self._context is not None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def setup_all(self, context: Any) -> None:
        """Call ``setup(context)`` on every plugin and remember *context*."""
        for plugin in self._plugins.values():
            setup = getattr(plugin, "setup", None)
            if setup is not None:
                self.logger.debug(f"Setting up plugin: {plugin.name}")
                await maybe_await(setup(context))
        self._context = context

    async def before_generate(self, config: Any) -> Any:
        """Thread *config* through every plugin and return the final value.

        Raises:
            RuntimeError: If ``setup_all`` has not run.
        """
        self._require_context()
        for plugin in self._plugins.values():
            hook = getattr(plugin, "on_before_generate", None)
            if hook is not None:
                self.logger.debug(f"Running on_before_generate for plugin: {plugin.name}")
                config = await maybe_await(hook(config))

            hooks = getattr(plugin, "hooks", None)
            if hooks is not None and hooks.before_generate is not None:
                await maybe_await(hooks.before_generate(self._context))
        return config

    async def after_generate(self, result: Any) -> None:
        """Run every ``on_after_generate``; the first failure propagates."""
        self._require_context()
        for plugin in self._plugins.values():
            hook = getattr(plugin, "on_after_generate", None)
            if hook is not None:
                self.logger.debug(f"Running on_after_generate for plugin: {plugin.name}")
                await maybe_await(hook(result))

            hooks = getattr(plugin, "hooks", None)
            if hooks is not None and hooks.after_generate is not None:
                await maybe_await(hooks.after_generate(self._context))

    async def on_error(self, error: BaseException) -> None:
        """Notify every plugin's ``hooks.on_error``; their failures are logged."""
        for plugin in self._plugins.values():
            hooks = getattr(plugin, "hooks", None)
            if hooks is None or hooks.on_error is None:
                continue
            try:
                await maybe_await(hooks.on_error(error, self._context))
            except Exception as exc:
                self.logger.error(f'on_error hook of plugin "{plugin.name}" failed: {exc!r}')

    async def teardown_all(self) -> None:
        """Call ``teardown`` on every plugin in reverse order."""
        for plugin in reversed(list(self._plugins.values())):
            teardown = getattr(plugin, "teardown", None)
            if teardown is None:
                continue
            try:
                await maybe_await(teardown())
            except Exception as exc:
                self.logger.error(f'Teardown of plugin "{plugin.name}" failed: {exc!r}')
        self._context = None

    def _require_context(self) -> None:
        if self._context is None:
            raise RuntimeError("PluginManager not initialized; call setup_all() first")
