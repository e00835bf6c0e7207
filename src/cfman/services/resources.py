"""ResourceService: CRUD capability dispatch with explicit "unsupported" outcomes.

A capability a plugin does not implement is reported as ``UNSUPPORTED``
and never attempted.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from cfman.domain.errors import ResourceNotFoundError
from cfman.domain.types import Capability
from cfman.infrastructure.cloud import CloudApiError
from cfman.services.result import ServiceResult

if TYPE_CHECKING:
    from cfman.infrastructure.cloud import CloudApi
    from cfman.plugins.registry import PluginRegistry

logger = logging.getLogger(__name__)


class ResourceService:
    """Runs a plugin's CRUD capabilities against one account's API."""

    def __init__(self, registry: PluginRegistry) -> None:
        self._registry = registry

    async def list_resources(self, resource_type: str, api: CloudApi) -> ServiceResult:
        op = "list_resources"
        plugin = self._registry.get_plugin(resource_type)
        if plugin is None:
            return _unknown(op, resource_type)
        try:
            items = await plugin.list(api)
        except CloudApiError as exc:
            return _api_error(op, resource_type, exc)
        return ServiceResult.success(
            op, resource_type=resource_type, count=len(items), items=items
        )

    async def get_resource(
        self, resource_type: str, api: CloudApi, resource_id: str
    ) -> ServiceResult:
        return await self._invoke("get_resource", Capability.GET, resource_type, api, resource_id)

    async def create_resource(
        self, resource_type: str, api: CloudApi, data: dict[str, Any]
    ) -> ServiceResult:
        return await self._invoke("create_resource", Capability.CREATE, resource_type, api, data)

    async def update_resource(
        self, resource_type: str, api: CloudApi, resource_id: str, data: dict[str, Any]
    ) -> ServiceResult:
        return await self._invoke(
            "update_resource", Capability.UPDATE, resource_type, api, resource_id, data
        )

    async def delete_resource(
        self, resource_type: str, api: CloudApi, resource_id: str
    ) -> ServiceResult:
        return await self._invoke(
            "delete_resource", Capability.DELETE, resource_type, api, resource_id
        )

    async def _invoke(
        self,
        op: str,
        capability: Capability,
        resource_type: str,
        api: CloudApi,
        *args: Any,
    ) -> ServiceResult:
        plugin = self._registry.get_plugin(resource_type)
        if plugin is None:
            return _unknown(op, resource_type)
        if not plugin.supports(capability):
            return ServiceResult.failure(
                op,
                "UNSUPPORTED",
                f"{capability} is not supported for resource type {resource_type!r}",
                resource_type=resource_type,
                capability=str(capability),
            )

        method = getattr(plugin, capability.value)
        try:
            outcome = await method(api, *args)
        except ResourceNotFoundError as exc:
            return ServiceResult.failure(
                op, "NOT_FOUND", str(exc), resource_type=resource_type, id=exc.identifier
            )
        except CloudApiError as exc:
            return _api_error(op, resource_type, exc)
        except ValueError as exc:
            return ServiceResult.failure(op, "INVALID_INPUT", str(exc), resource_type=resource_type)

        data: dict[str, Any] = {"resource_type": resource_type}
        if capability is Capability.DELETE:
            data["deleted"] = True
        else:
            data["item"] = outcome
        return ServiceResult(ok=True, op=op, data=data)


def _unknown(op: str, resource_type: str) -> ServiceResult:
    return ServiceResult.failure(
        op,
        "UNKNOWN_RESOURCE",
        f"No plugin registered for resource type {resource_type!r}",
        resource_type=resource_type,
    )


def _api_error(op: str, resource_type: str, exc: CloudApiError) -> ServiceResult:
    logger.debug("%s failed for %s", op, resource_type, exc_info=True)
    detail: dict[str, Any] = {"resource_type": resource_type}
    if exc.status is not None:
        detail["status"] = exc.status
    return ServiceResult.failure(op, "API_ERROR", str(exc), **detail)
