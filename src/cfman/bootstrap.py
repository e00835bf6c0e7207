"""Process bootstrap: build the registry and event bus, register plugins.

Nothing here is a module-level singleton: :func:`bootstrap` returns a
:class:`Runtime` that the application owns and passes to its consumers.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime

from cfman.config.settings import CfmanSettings
from cfman.plugins.builtins import KVPlugin, WorkersPlugin
from cfman.plugins.contracts import ResourcePlugin
from cfman.plugins.event_bus import EventBus
from cfman.plugins.events import (
    EventKind,
    PluginRegistered,
    PluginUnregistered,
    SystemShutdown,
    SystemStartup,
)
from cfman.plugins.manager import PluginManager
from cfman.plugins.registry import PluginRegistry

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(UTC).isoformat()


def _announce(registry: PluginRegistry, event_bus: EventBus, plugin: ResourcePlugin) -> None:
    registry.register(plugin)
    event_bus.emit(
        EventKind.PLUGIN_REGISTERED,
        PluginRegistered(resource_type=plugin.resource_type, name=plugin.name),
    )


def register_builtin_plugins(
    registry: PluginRegistry,
    event_bus: EventBus,
    *,
    settings: CfmanSettings | None = None,
) -> list[str]:
    """Register the Workers and KV plugins, announcing each on the bus.

    Resource types listed in ``settings.plugins.disabled`` are skipped.
    Returns the registered resource types.
    """
    settings = settings or CfmanSettings()
    disabled = set(settings.plugins.disabled)
    registered: list[str] = []
    for plugin in (WorkersPlugin(settings.workers), KVPlugin()):
        if plugin.resource_type in disabled:
            logger.debug("Skipping disabled plugin %s", plugin.resource_type)
            continue
        _announce(registry, event_bus, plugin)
        registered.append(plugin.resource_type)

    logger.info(
        "Registered %d plugins, %d task types",
        len(registry.get_all_plugins()),
        len(registry.get_all_task_types()),
    )
    return registered


@dataclass
class Runtime:
    """The dispatch core of one process: settings, registry, bus, discovery."""

    settings: CfmanSettings
    registry: PluginRegistry = field(default_factory=PluginRegistry)
    event_bus: EventBus = field(default_factory=EventBus)
    plugin_manager: PluginManager = field(default_factory=PluginManager)

    def register_plugin(self, plugin: ResourcePlugin) -> None:
        """Register *plugin* and emit ``plugin:registered``."""
        _announce(self.registry, self.event_bus, plugin)

    def unregister_plugin(self, resource_type: str) -> bool:
        """Unregister a plugin; emits ``plugin:unregistered`` only if one was removed."""
        removed = self.registry.unregister(resource_type)
        if removed:
            self.event_bus.emit(
                EventKind.PLUGIN_UNREGISTERED, PluginUnregistered(resource_type=resource_type)
            )
        return removed

    async def shutdown(self) -> None:
        """Announce ``system:shutdown`` and wait for detached handlers to finish."""
        self.event_bus.emit(EventKind.SYSTEM_SHUTDOWN, SystemShutdown(timestamp=_now()))
        await self.event_bus.drain()


def bootstrap(
    settings: CfmanSettings | None = None,
    *,
    plugin_manager: PluginManager | None = None,
    event_bus: EventBus | None = None,
) -> Runtime:
    """Build a :class:`Runtime` with built-in and discovered plugins registered.

    Entry-point discovery runs when ``settings.plugins.discover`` is set and
    ``settings.no_discover`` is not.
    Discovered plugins may replace a built-in of the same resource type.
    Emits ``system:startup`` last.
    """
    settings = settings or CfmanSettings()
    runtime = Runtime(
        settings=settings,
        event_bus=event_bus or EventBus(),
        plugin_manager=plugin_manager or PluginManager(),
    )
    register_builtin_plugins(runtime.registry, runtime.event_bus, settings=settings)

    if settings.plugins.discover and not settings.no_discover:
        if not runtime.plugin_manager.is_loaded:
            runtime.plugin_manager.discover_and_load()
        disabled = set(settings.plugins.disabled)
        for plugin in runtime.plugin_manager.collect_resource_plugins():
            if plugin.resource_type in disabled:
                logger.debug("Skipping disabled plugin %s", plugin.resource_type)
                continue
            runtime.register_plugin(plugin)

    runtime.event_bus.emit(EventKind.SYSTEM_STARTUP, SystemStartup(timestamp=_now()))
    return runtime
