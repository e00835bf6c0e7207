"""Built-in KV plugin: key-value namespaces and their entries.

Every task is a single cloud call reported as step ``1/1``. Bulk tasks
parse their serialized list before touching the API; a malformed list
fails the task with zero external calls.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, TypeAdapter, ValidationError

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

_NAMESPACE_FIELD = FormField(name="namespace_id", label="Namespace ID", type="text", required=True)
_KEY_FIELD = FormField(name="key", label="Key", type="text", required=True)
_TITLE_FIELD = FormField(name="title", label="Namespace name", type="text", required=True)


class KVPair(BaseModel):
    """One entry of a bulk write."""

    key: str
    value: str
    expiration: int | None = None
    expiration_ttl: int | None = None
    metadata: Any = None


_KV_PAIRS = TypeAdapter(list[KVPair])
_KEYS = TypeAdapter(list[str])


class InvalidFormatError(ValueError):
    """A serialized config field could not be parsed."""


def _parse_list(adapter: TypeAdapter[Any], raw: Any, field: str, expected: str) -> Any:
    """Validate *raw* (JSON text or an already-decoded list) with *adapter*."""
    try:
        if isinstance(raw, str | bytes):
            return adapter.validate_json(raw)
        return adapter.validate_python(raw)
    except ValidationError as exc:
        msg = f"invalid format for {field}: expected {expected} ({exc.error_count()} error(s))"
        raise InvalidFormatError(msg) from exc


def _optional_int(value: Any) -> int | None:
    if value is None or value == "":
        return None
    return int(value)


def _title(data: dict[str, Any]) -> str:
    title = data.get("title")
    if not isinstance(title, str) or not title.strip():
        msg = "missing required field: title"
        raise ValueError(msg)
    return title


class KVPlugin(ResourcePlugin):
    """Workers KV storage management."""

    name = "kv"
    display_name = "KV Storage"
    description = "Cloudflare Workers KV key-value storage management"
    resource_type = "kv"
    icon = "database"

    def __init__(self) -> None:
        self._task_types = [
            TaskTypeDefinition(
                type="list",
                display_name="List KV namespaces",
                description="List every KV namespace in the account",
                execute=_list_namespaces,
            ),
            TaskTypeDefinition(
                type="create",
                display_name="Create KV namespace",
                description="Create a new KV namespace",
                config_schema=FormSchema(fields=[_TITLE_FIELD]),
                execute=_create_namespace,
            ),
            TaskTypeDefinition(
                type="rename",
                display_name="Rename KV namespace",
                description="Change the title of a KV namespace",
                config_schema=FormSchema(fields=[_NAMESPACE_FIELD, _TITLE_FIELD]),
                execute=_rename_namespace,
            ),
            TaskTypeDefinition(
                type="delete",
                display_name="Delete KV namespace",
                description="Delete the given KV namespace",
                config_schema=FormSchema(fields=[_NAMESPACE_FIELD]),
                execute=_delete_namespace,
            ),
            TaskTypeDefinition(
                type="list_keys",
                display_name="List KV keys",
                description="List the keys in a namespace",
                config_schema=FormSchema(
                    fields=[
                        _NAMESPACE_FIELD,
                        FormField(name="prefix", label="Prefix filter", type="text"),
                        FormField(name="limit", label="Limit", type="number", default_value=1000),
                    ]
                ),
                execute=_list_keys,
            ),
            TaskTypeDefinition(
                type="get",
                display_name="Get KV value",
                description="Read the value stored under a key",
                config_schema=FormSchema(fields=[_NAMESPACE_FIELD, _KEY_FIELD]),
                execute=_get_value,
            ),
            TaskTypeDefinition(
                type="put",
                display_name="Put KV value",
                description="Write or overwrite a key-value pair",
                config_schema=FormSchema(
                    fields=[
                        _NAMESPACE_FIELD,
                        _KEY_FIELD,
                        FormField(name="value", label="Value", type="textarea", required=True),
                        FormField(name="expiration_ttl", label="TTL (seconds)", type="number"),
                    ]
                ),
                execute=_put_value,
            ),
            TaskTypeDefinition(
                type="delete_key",
                display_name="Delete KV key",
                description="Delete a single key",
                config_schema=FormSchema(fields=[_NAMESPACE_FIELD, _KEY_FIELD]),
                execute=_delete_key,
            ),
            TaskTypeDefinition(
                type="bulk_write",
                display_name="Bulk write KV",
                description="Write many key-value pairs in one call",
                config_schema=FormSchema(
                    fields=[
                        _NAMESPACE_FIELD,
                        FormField(
                            name="kv_pairs",
                            label="Key-value pairs (JSON)",
                            type="textarea",
                            required=True,
                            placeholder='[{"key":"k1","value":"v1"}]',
                        ),
                    ]
                ),
                execute=_bulk_write,
            ),
            TaskTypeDefinition(
                type="bulk_delete",
                display_name="Bulk delete KV",
                description="Delete many keys in one call",
                config_schema=FormSchema(
                    fields=[
                        _NAMESPACE_FIELD,
                        FormField(
                            name="keys",
                            label="Keys (JSON)",
                            type="textarea",
                            required=True,
                            placeholder='["key1","key2"]',
                        ),
                    ]
                ),
                execute=_bulk_delete,
            ),
        ]

    # ------------------------------------------------------------------
    # Capabilities
    # ------------------------------------------------------------------

    async def list(self, api: CloudApi) -> list[dict[str, Any]]:
        return await api.list_kv_namespaces()

    async def create(self, api: CloudApi, data: dict[str, Any]) -> dict[str, Any]:
        return await api.create_kv_namespace(_title(data))

    async def update(self, api: CloudApi, resource_id: str, data: dict[str, Any]) -> dict[str, Any]:
        title = _title(data)
        await api.rename_kv_namespace(resource_id, title)
        return {"id": resource_id, "title": title}

    async def delete(self, api: CloudApi, resource_id: str) -> None:
        await api.delete_kv_namespace(resource_id)

    # ------------------------------------------------------------------
    # UI metadata
    # ------------------------------------------------------------------

    def get_task_types(self) -> list[TaskTypeDefinition]:
        return list(self._task_types)

    def get_list_columns(self) -> list[TableColumn]:
        return [
            TableColumn(key="title", label="Name", sortable=True),
            TableColumn(key="id", label="Namespace ID"),
        ]

    def get_create_form(self) -> FormSchema:
        return FormSchema(fields=[_TITLE_FIELD])

    def get_update_form(self) -> FormSchema:
        return FormSchema(fields=[_TITLE_FIELD])


# --- Task executors ---


async def _list_namespaces(context: TaskContext) -> TaskResult:
    context.report("list namespaces", 1, 1)
    namespaces = await context.api.list_kv_namespaces()
    return TaskResult.ok({"count": len(namespaces), "namespaces": namespaces})


async def _create_namespace(context: TaskContext) -> TaskResult:
    title = context.require("title")
    context.report("create namespace", 1, 1)
    namespace = await context.api.create_kv_namespace(title)
    return TaskResult.ok(namespace)


async def _rename_namespace(context: TaskContext) -> TaskResult:
    namespace_id = context.require("namespace_id")
    title = context.require("title")
    context.report("rename namespace", 1, 1)
    await context.api.rename_kv_namespace(namespace_id, title)
    return TaskResult.ok({"id": namespace_id, "title": title})


async def _delete_namespace(context: TaskContext) -> TaskResult:
    namespace_id = context.require("namespace_id")
    context.report("delete namespace", 1, 1)
    await context.api.delete_kv_namespace(namespace_id)
    return TaskResult.ok({"deleted": True})


async def _list_keys(context: TaskContext) -> TaskResult:
    namespace_id = context.require("namespace_id")
    context.report("list keys", 1, 1)
    page = await context.api.list_kv_keys(
        namespace_id,
        prefix=context.config.get("prefix") or None,
        limit=_optional_int(context.config.get("limit")),
    )
    keys = page.get("keys", [])
    return TaskResult.ok({"count": len(keys), "keys": keys, "cursor": page.get("cursor")})


async def _get_value(context: TaskContext) -> TaskResult:
    namespace_id = context.require("namespace_id")
    key = context.require("key")
    context.report("get value", 1, 1)
    value = await context.api.get_kv_value(namespace_id, key)
    return TaskResult.ok({"key": key, "value": value})


async def _put_value(context: TaskContext) -> TaskResult:
    namespace_id = context.require("namespace_id")
    key = context.require("key")
    value = context.config.get("value")
    if value is None:
        return TaskResult.fail("missing required config field: value")
    context.report("put value", 1, 1)
    await context.api.put_kv_value(
        namespace_id,
        key,
        str(value),
        expiration_ttl=_optional_int(context.config.get("expiration_ttl")),
    )
    return TaskResult.ok({"key": key, "written": True})


async def _delete_key(context: TaskContext) -> TaskResult:
    namespace_id = context.require("namespace_id")
    key = context.require("key")
    context.report("delete key", 1, 1)
    await context.api.delete_kv_key(namespace_id, key)
    return TaskResult.ok({"key": key, "deleted": True})


async def _bulk_write(context: TaskContext) -> TaskResult:
    try:
        pairs: list[KVPair] = _parse_list(
            _KV_PAIRS, context.config.get("kv_pairs"), "kv_pairs", "a JSON list of {key, value}"
        )
    except InvalidFormatError as exc:
        return TaskResult.fail(str(exc))

    namespace_id = context.require("namespace_id")
    context.report("bulk write", 1, 1)
    await context.api.bulk_write_kv(
        namespace_id, [p.model_dump(exclude_none=True) for p in pairs]
    )
    return TaskResult.ok({"count": len(pairs), "written": True})


async def _bulk_delete(context: TaskContext) -> TaskResult:
    try:
        keys: list[str] = _parse_list(
            _KEYS, context.config.get("keys"), "keys", "a JSON list of key names"
        )
    except InvalidFormatError as exc:
        return TaskResult.fail(str(exc))

    namespace_id = context.require("namespace_id")
    context.report("bulk delete", 1, 1)
    await context.api.bulk_delete_kv(namespace_id, keys)
    return TaskResult.ok({"count": len(keys), "deleted": True})
