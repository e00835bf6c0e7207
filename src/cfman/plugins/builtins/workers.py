"""Built-in Workers plugin: compute scripts.

Creation is a three-step orchestration against the cloud API::

    Start -> ShellCreated -> ArtifactUploaded -> Deployed

Steps run strictly in order. A failed step ends the task; nothing is
retried and shells or versions created by earlier steps are left in place.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from cfman.config.models import WorkersConfig
from cfman.domain.errors import ResourceNotFoundError
from cfman.plugins.contracts import (
    FormField,
    FormSchema,
    ResourcePlugin,
    TableColumn,
    TaskContext,
    TaskResult,
    TaskTypeDefinition,
)

if TYPE_CHECKING:
    from cfman.infrastructure.cloud import CloudApi

logger = logging.getLogger(__name__)

_NAME_FIELD = FormField(name="name", label="Worker name", type="text", required=True)
_CONTENT_FIELD = FormField(name="content", label="Script content", type="textarea", required=True)


async def _find_worker(api: CloudApi, name: str) -> dict[str, Any] | None:
    workers = await api.list_workers()
    return next((w for w in workers if w.get("id") == name), None)


class WorkersPlugin(ResourcePlugin):
    """Workers script management."""

    name = "workers"
    display_name = "Workers"
    description = "Cloudflare Workers script management"
    resource_type = "workers"
    icon = "code"

    def __init__(self, config: WorkersConfig | None = None) -> None:
        self._config = config or WorkersConfig()
        self._task_types = [
            TaskTypeDefinition(
                type="create",
                display_name="Create Worker",
                description="Create a new Worker and deploy its script",
                config_schema=self._script_form(name_field=True),
                execute=self._create_task,
            ),
            TaskTypeDefinition(
                type="update",
                display_name="Update Worker",
                description="Upload and deploy a new script for an existing Worker",
                config_schema=self._script_form(name_field=True, default_date=False),
                execute=self._update_task,
            ),
            TaskTypeDefinition(
                type="delete",
                display_name="Delete Worker",
                description="Delete the named Worker",
                config_schema=FormSchema(fields=[_NAME_FIELD]),
                execute=self._delete_task,
            ),
            TaskTypeDefinition(
                type="query",
                display_name="Query Worker",
                description="Look up the named Worker and its URL",
                config_schema=FormSchema(fields=[_NAME_FIELD]),
                execute=self._query_task,
            ),
            TaskTypeDefinition(
                type="list",
                display_name="List Workers",
                description="List every Worker in the account",
                execute=self._list_task,
            ),
        ]

    def url_for(self, name: str, subdomain: str) -> str:
        """Public URL of a Worker on the account's workers subdomain."""
        return f"https://{name}.{subdomain}.{self._config.domain}"

    # ------------------------------------------------------------------
    # Capabilities
    # ------------------------------------------------------------------

    async def list(self, api: CloudApi) -> list[dict[str, Any]]:
        workers = await api.list_workers()
        subdomain = await api.get_subdomain()
        return [
            {**w, "url": self.url_for(w["id"], subdomain), "subdomain": subdomain} for w in workers
        ]

    async def get(self, api: CloudApi, resource_id: str) -> dict[str, Any]:
        worker = await _find_worker(api, resource_id)
        if worker is None:
            raise ResourceNotFoundError(self.resource_type, resource_id)
        subdomain = await api.get_subdomain()
        return {**worker, "url": self.url_for(resource_id, subdomain), "subdomain": subdomain}

    async def delete(self, api: CloudApi, resource_id: str) -> None:
        await api.delete_worker(resource_id)

    # ------------------------------------------------------------------
    # UI metadata
    # ------------------------------------------------------------------

    def get_task_types(self) -> list[TaskTypeDefinition]:
        return list(self._task_types)

    def get_list_columns(self) -> list[TableColumn]:
        return [
            TableColumn(key="id", label="Name", sortable=True),
            TableColumn(key="url", label="URL"),
            TableColumn(key="modified_on", label="Modified", sortable=True),
            TableColumn(key="created_on", label="Created", sortable=True),
        ]

    def get_create_form(self) -> FormSchema:
        return self._script_form(name_field=True)

    def get_update_form(self) -> FormSchema:
        return self._script_form(name_field=False, default_date=False)

    def _script_form(self, *, name_field: bool, default_date: bool = True) -> FormSchema:
        fields = [_NAME_FIELD] if name_field else []
        fields += [
            _CONTENT_FIELD,
            FormField(
                name="compatibility_date",
                label="Compatibility date",
                type="text",
                default_value=self._config.compatibility_date if default_date else None,
            ),
        ]
        return FormSchema(fields=fields)

    # ------------------------------------------------------------------
    # Task types
    # ------------------------------------------------------------------

    def _compatibility_date(self, context: TaskContext) -> str:
        return context.config.get("compatibility_date") or self._config.compatibility_date

    async def _create_task(self, context: TaskContext) -> TaskResult:
        api, config = context.api, context.config
        name = context.require("name")
        content = context.require("content")

        context.report("create", 1, 3)
        worker_id = await api.create_worker(name)

        context.report("upload", 2, 3)
        version_id = await api.upload_worker_script(
            worker_id,
            name,
            content,
            self._compatibility_date(context),
            config.get("bindings"),
        )

        context.report("deploy", 3, 3)
        deployment_id = await api.deploy_worker(name, version_id)

        subdomain = await api.get_subdomain()
        logger.debug("Deployed worker %s version %s", name, version_id)
        return TaskResult.ok(
            {
                "id": worker_id,
                "version_id": version_id,
                "deployment_id": deployment_id,
                "url": self.url_for(name, subdomain),
            }
        )

    async def _update_task(self, context: TaskContext) -> TaskResult:
        api, config = context.api, context.config
        name = context.require("name")
        content = context.require("content")

        context.report("lookup", 1, 3)
        worker = await _find_worker(api, name)
        if worker is None:
            return TaskResult.fail(f"Worker {name} not found")

        context.report("upload", 2, 3)
        version_id = await api.upload_worker_script(
            worker["id"],
            name,
            content,
            self._compatibility_date(context),
            config.get("bindings"),
        )

        context.report("deploy", 3, 3)
        deployment_id = await api.deploy_worker(name, version_id)
        return TaskResult.ok({"version_id": version_id, "deployment_id": deployment_id})

    async def _delete_task(self, context: TaskContext) -> TaskResult:
        api, name = context.api, context.require("name")

        context.report("lookup", 1, 2)
        worker = await _find_worker(api, name)
        if worker is None:
            return TaskResult.fail(f"Worker {name} not found")

        context.report("delete", 2, 2)
        await api.delete_worker(worker["id"])
        return TaskResult.ok({"deleted": True})

    async def _query_task(self, context: TaskContext) -> TaskResult:
        api, name = context.api, context.require("name")

        context.report("lookup", 1, 2)
        worker = await _find_worker(api, name)
        if worker is None:
            return TaskResult.ok({"found": False})

        context.report("subdomain", 2, 2)
        subdomain = await api.get_subdomain()
        return TaskResult.ok({"found": True, "worker": worker, "url": self.url_for(name, subdomain)})

    async def _list_task(self, context: TaskContext) -> TaskResult:
        api = context.api

        context.report("list", 1, 2)
        workers = await api.list_workers()

        context.report("subdomain", 2, 2)
        subdomain = await api.get_subdomain()

        items = [
            {
                "id": w["id"],
                "url": self.url_for(w["id"], subdomain),
                "created_on": w.get("created_on"),
                "modified_on": w.get("modified_on"),
                "etag": w.get("etag"),
            }
            for w in workers
        ]
        return TaskResult.ok({"subdomain": subdomain, "count": len(items), "workers": items})
