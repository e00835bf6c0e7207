"""CatalogService: read-only views of registered plugins and task types."""

from __future__ import annotations

from typing import TYPE_CHECKING

from cfman.services.result import ServiceResult

if TYPE_CHECKING:
    from cfman.plugins.registry import PluginRegistry


class CatalogService:
    """Projects the plugin registry into UI/CLI friendly payloads."""

    def __init__(self, registry: PluginRegistry) -> None:
        self._registry = registry

    def list_plugins(self) -> ServiceResult:
        items = [s.model_dump(mode="json") for s in self._registry.get_plugin_list()]
        return ServiceResult.success("list_plugins", count=len(items), items=items)

    def describe_plugin(self, resource_type: str) -> ServiceResult:
        plugin = self._registry.get_plugin(resource_type)
        if plugin is None:
            return ServiceResult.failure(
                "describe_plugin",
                "UNKNOWN_RESOURCE",
                f"No plugin registered for resource type {resource_type!r}",
                resource_type=resource_type,
            )
        return ServiceResult(
            ok=True, op="describe_plugin", data=plugin.describe().model_dump(mode="json")
        )

    def list_task_types(self) -> ServiceResult:
        items = [
            {"key": key, **definition.info().model_dump(mode="json")}
            for key, definition in self._registry.get_all_task_types()
        ]
        return ServiceResult.success("list_task_types", count=len(items), items=items)
