"""Unit tests for PluginManager and create_plugin (ui8gen.core.plugins).

Tests cover:
- register / unregister / has / get / get_all
- create_plugin definitions
- setup_all and the initialization guard
- before_generate config threading, after_generate abort policy
- Best-effort on_error and teardown_all
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from ui8gen.core.plugins import PluginHooks, PluginManager, create_plugin


class TestRegistration:
    @pytest.mark.unit
    def test_register_and_lookup(self):
        manager = PluginManager()
        plugin = create_plugin("css", "2.0.0")
        manager.register(plugin)
        assert manager.has("css")
        assert manager.get("css") is plugin
        assert manager.get_all() == [plugin]

    @pytest.mark.unit
    def test_duplicate_rejected(self):
        manager = PluginManager()
        manager.register(create_plugin("css"))
        with pytest.raises(ValueError, match="already registered"):
            manager.register(create_plugin("css"))

    @pytest.mark.unit
    def test_unregister(self):
        manager = PluginManager()
        manager.register(create_plugin("css"))
        assert manager.unregister("css") is True
        assert manager.unregister("css") is False
        assert manager.get("css") is None


class TestCreatePlugin:
    @pytest.mark.unit
    def test_defaults(self):
        plugin = create_plugin("seo")
        assert plugin.version == "1.0.0"
        assert plugin.get_services() == []
        assert plugin.get_stages() == []
        assert isinstance(plugin.hooks, PluginHooks)

    @pytest.mark.unit
    def test_contributions_are_copied(self, make_service, make_stage):
        services = [make_service("svc")]
        plugin = create_plugin("seo", services=services, stages=[make_stage("st")])
        returned = plugin.get_services()
        returned.append(make_service("other"))
        assert [s.name for s in plugin.get_services()] == ["svc"]
        assert [s.name for s in plugin.get_stages()] == ["st"]


class TestLifecycle:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_hooks_require_setup(self):
        manager = PluginManager()
        manager.register(create_plugin("a"))
        with pytest.raises(RuntimeError, match="not initialized"):
            await manager.before_generate({})
        with pytest.raises(RuntimeError, match="not initialized"):
            await manager.after_generate(MagicMock())

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_setup_all_calls_sync_and_async_setup(self):
        sync_setup = MagicMock()
        async_setup = AsyncMock()
        manager = PluginManager()
        manager.register(create_plugin("a", setup=sync_setup))
        manager.register(create_plugin("b", setup=async_setup))

        ctx = object()
        await manager.setup_all(ctx)

        sync_setup.assert_called_once_with(ctx)
        async_setup.assert_awaited_once_with(ctx)
        assert manager.initialized is True

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_before_generate_threads_config(self):
        manager = PluginManager()
        manager.register(create_plugin("a", on_before_generate=lambda cfg: {**cfg, "a": True}))

        async def add_b(cfg):
            assert cfg["a"] is True
            return {**cfg, "b": True}

        manager.register(create_plugin("b", on_before_generate=add_b))
        await manager.setup_all(object())

        result = await manager.before_generate({"root": "."})

        assert result == {"root": ".", "a": True, "b": True}

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_context_hooks_receive_setup_context(self):
        before = MagicMock()
        after = AsyncMock()
        manager = PluginManager()
        manager.register(create_plugin("a", hooks=PluginHooks(before_generate=before, after_generate=after)))
        ctx = object()
        await manager.setup_all(ctx)

        await manager.before_generate({})
        await manager.after_generate("result")

        before.assert_called_once_with(ctx)
        after.assert_awaited_once_with(ctx)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_after_generate_stops_at_first_failure(self):
        second = MagicMock()

        def broken(result):
            raise RuntimeError("persist failed")

        manager = PluginManager()
        manager.register(create_plugin("a", on_after_generate=broken))
        manager.register(create_plugin("b", on_after_generate=second))
        await manager.setup_all(object())

        with pytest.raises(RuntimeError, match="persist failed"):
            await manager.after_generate("result")
        second.assert_not_called()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_on_error_is_best_effort(self, recording_logger):
        received: list[BaseException] = []

        def broken(error, ctx):
            raise RuntimeError("handler broke")

        manager = PluginManager(logger=recording_logger)
        manager.register(create_plugin("a", hooks=PluginHooks(on_error=broken)))
        manager.register(create_plugin("b", hooks=PluginHooks(on_error=lambda e, c: received.append(e))))

        original = ValueError("original")
        await manager.on_error(original)

        assert received == [original]
        assert any("handler broke" in msg for msg in recording_logger.messages("error"))

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_teardown_reverse_order_and_isolated(self, recording_logger):
        journal: list[str] = []

        def failing_teardown():
            journal.append("b")
            raise RuntimeError("teardown broke")

        manager = PluginManager(logger=recording_logger)
        manager.register(create_plugin("a", teardown=lambda: journal.append("a")))
        manager.register(create_plugin("b", teardown=failing_teardown))
        manager.register(create_plugin("c", teardown=lambda: journal.append("c")))
        await manager.setup_all(object())

        await manager.teardown_all()

        assert journal == ["c", "b", "a"]
        assert manager.initialized is False
        assert any("teardown broke" in msg for msg in recording_logger.messages("error"))
