"""Tests for bootstrap: built-in registration, discovery, and shutdown."""

from __future__ import annotations

from typing import Any

import pluggy
import pytest

from cfman.bootstrap import Runtime, bootstrap, register_builtin_plugins
from cfman.config.settings import CfmanSettings
from cfman.plugins.builtins import KVPlugin
from cfman.plugins.event_bus import EventBus
from cfman.plugins.events import EventKind, PluginRegistered
from cfman.plugins.manager import PluginManager
from cfman.plugins.registry import PluginRegistry

hookimpl = pluggy.HookimplMarker("cfman")


class _ReplacementKV(KVPlugin):
    display_name = "KV (third party)"


class _ThirdParty:
    @hookimpl
    def cfman_resource_plugins(self) -> list[Any]:
        return [_ReplacementKV()]


def _manager_with_third_party() -> PluginManager:
    pm = PluginManager()
    pm.register_plugin(_ThirdParty())
    pm._loaded = True
    return pm


class TestRegisterBuiltins:
    def test_registers_workers_and_kv(
        self, registry: PluginRegistry, event_bus: EventBus, recorded: list[Any]
    ) -> None:
        registered = register_builtin_plugins(registry, event_bus)
        assert registered == ["workers", "kv"]
        assert registry.has_task_type("workers:create")
        assert registry.has_task_type("kv:bulk_write")
        assert recorded == [
            (EventKind.PLUGIN_REGISTERED, PluginRegistered(resource_type="workers", name="workers")),
            (EventKind.PLUGIN_REGISTERED, PluginRegistered(resource_type="kv", name="kv")),
        ]

    def test_disabled_plugins_skipped(self, registry: PluginRegistry, event_bus: EventBus) -> None:
        settings = CfmanSettings(plugins={"disabled": ["kv"]})
        assert register_builtin_plugins(registry, event_bus, settings=settings) == ["workers"]
        assert registry.get_plugin("kv") is None

    def test_workers_settings_flow_into_plugin(
        self, registry: PluginRegistry, event_bus: EventBus
    ) -> None:
        settings = CfmanSettings(workers={"domain": "example.dev"})
        register_builtin_plugins(registry, event_bus, settings=settings)
        assert registry.get_plugin("workers").url_for("a", "b") == "https://a.b.example.dev"


@pytest.mark.usefixtures("_isolated_cwd")
class TestBootstrap:
    def test_returns_runtime_with_builtins(self) -> None:
        runtime = bootstrap(CfmanSettings(no_discover=True))
        assert isinstance(runtime, Runtime)
        assert [p.resource_type for p in runtime.registry.get_all_plugins()] == ["workers", "kv"]
        assert runtime.plugin_manager.is_loaded is False

    def test_emits_startup_last(self) -> None:
        bus = EventBus()
        kinds: list[EventKind] = []
        for kind in (EventKind.PLUGIN_REGISTERED, EventKind.SYSTEM_STARTUP):
            bus.on(kind, lambda p, kind=kind: kinds.append(kind))
        bootstrap(CfmanSettings(no_discover=True), event_bus=bus)
        assert kinds[-1] is EventKind.SYSTEM_STARTUP
        assert kinds.count(EventKind.PLUGIN_REGISTERED) == 2

    def test_discovered_plugin_replaces_builtin(self) -> None:
        runtime = bootstrap(CfmanSettings(), plugin_manager=_manager_with_third_party())
        assert isinstance(runtime.registry.get_plugin("kv"), _ReplacementKV)

    def test_discovery_disabled_by_flag(self) -> None:
        runtime = bootstrap(
            CfmanSettings(no_discover=True), plugin_manager=_manager_with_third_party()
        )
        assert type(runtime.registry.get_plugin("kv")) is KVPlugin

    def test_discovery_disabled_by_config(self) -> None:
        runtime = bootstrap(
            CfmanSettings(plugins={"discover": False}), plugin_manager=_manager_with_third_party()
        )
        assert type(runtime.registry.get_plugin("kv")) is KVPlugin

    def test_disabled_applies_to_discovered(self) -> None:
        runtime = bootstrap(
            CfmanSettings(plugins={"disabled": ["kv"]}),
            plugin_manager=_manager_with_third_party(),
        )
        assert runtime.registry.get_plugin("kv") is None


@pytest.mark.usefixtures("_isolated_cwd")
class TestRuntime:
    def test_unregister_emits_only_on_removal(self) -> None:
        runtime = bootstrap(CfmanSettings(no_discover=True))
        seen: list[Any] = []
        runtime.event_bus.on(EventKind.PLUGIN_UNREGISTERED, seen.append)
        assert runtime.unregister_plugin("kv") is True
        assert runtime.unregister_plugin("kv") is False
        assert [p.resource_type for p in seen] == ["kv"]
        assert not runtime.registry.has_task_type("kv:get")

    def test_register_plugin_announces(self) -> None:
        runtime = bootstrap(CfmanSettings(no_discover=True))
        seen: list[Any] = []
        runtime.event_bus.on(EventKind.PLUGIN_REGISTERED, seen.append)
        runtime.register_plugin(_ReplacementKV())
        assert seen == [PluginRegistered(resource_type="kv", name="kv")]

    @pytest.mark.asyncio
    async def test_shutdown_drains_detached_handlers(self) -> None:
        runtime = bootstrap(CfmanSettings(no_discover=True))
        seen: list[Any] = []

        async def on_shutdown(payload: Any) -> None:
            seen.append(payload)

        runtime.event_bus.on_async(EventKind.SYSTEM_SHUTDOWN, on_shutdown)
        await runtime.shutdown()
        assert len(seen) == 1
