"""Plugin registry: resource types to plugins, task keys to task types.

The registry is an explicitly constructed object, created once at
bootstrap and passed to every consumer. :meth:`PluginRegistry.execute_task`
is the single error-containment boundary for plugin code: anything a task
raises comes back as a failed :class:`TaskResult`.
"""

from __future__ import annotations

import logging
from typing import NamedTuple

from cfman.plugins.contracts import (
    PluginSummary,
    ResourcePlugin,
    TaskContext,
    TaskResult,
    TaskTypeDefinition,
    task_key,
)

logger = logging.getLogger(__name__)


class RegisteredTaskType(NamedTuple):
    key: str
    definition: TaskTypeDefinition


class PluginRegistry:
    """Catalog of resource plugins and their task types, plus typed dispatch."""

    def __init__(self) -> None:
        self._plugins: dict[str, ResourcePlugin] = {}
        self._task_handlers: dict[str, TaskTypeDefinition] = {}
        # resource type -> composite keys it registered
        self._owned_keys: dict[str, set[str]] = {}

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, plugin: ResourcePlugin) -> None:
        """Register *plugin* under its resource type, replacing any existing one."""
        resource_type = plugin.resource_type
        if resource_type in self._plugins:
            logger.warning("Plugin %s already registered; replacing it", resource_type)

        self._plugins[resource_type] = plugin
        owned = self._owned_keys.setdefault(resource_type, set())
        for definition in plugin.get_task_types():
            key = task_key(resource_type, definition.type)
            for other, keys in self._owned_keys.items():
                if other != resource_type:
                    keys.discard(key)
            self._task_handlers[key] = definition
            owned.add(key)
            logger.debug("Registered task type: %s", key)

        logger.info("Registered plugin: %s (%s)", plugin.name, resource_type)

    def unregister(self, resource_type: str) -> bool:
        """Remove a plugin and its task types. Returns False if it was absent."""
        plugin = self._plugins.pop(resource_type, None)
        if plugin is None:
            return False

        for key in self._owned_keys.pop(resource_type, set()):
            self._task_handlers.pop(key, None)

        logger.info("Unregistered plugin: %s", resource_type)
        return True

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get_plugin(self, resource_type: str) -> ResourcePlugin | None:
        return self._plugins.get(resource_type)

    def get_all_plugins(self) -> list[ResourcePlugin]:
        return list(self._plugins.values())

    def get_task_handler(self, key: str) -> TaskTypeDefinition | None:
        return self._task_handlers.get(key)

    def get_all_task_types(self) -> list[RegisteredTaskType]:
        return [RegisteredTaskType(k, d) for k, d in self._task_handlers.items()]

    def has_task_type(self, key: str) -> bool:
        return key in self._task_handlers

    def get_plugin_list(self) -> list[PluginSummary]:
        """Summaries of every plugin, in registration order, for UI listing."""
        return [plugin.summary() for plugin in self._plugins.values()]

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    async def execute_task(self, key: str, context: TaskContext) -> TaskResult:
        """Run the task type registered under *key* with *context*.

        Never raises for plugin failures: an unknown key, a reused context,
        or any exception from the task becomes ``TaskResult(success=False)``.
        """
        definition = self._task_handlers.get(key)
        if definition is None:
            return TaskResult.fail(f"unknown task type: {key}")

        if context.consumed:
            return TaskResult.fail("task context already consumed")
        context.consumed = True

        try:
            return await definition.execute(context)
        except Exception as exc:
            logger.debug("Task %s raised", key, exc_info=True)
            return TaskResult.fail(str(exc) or "task execution failed")
