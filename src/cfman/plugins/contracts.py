"""Contracts between the registry, resource plugins, and their callers.

A resource plugin owns one ``resource_type`` and publishes task types;
each task type is addressed globally by the composite key
``"<resource_type>:<type>"``. UI metadata (forms, columns) is plain
pydantic so the HTTP layer can serialize it as-is.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Literal

from pydantic import BaseModel, Field, model_validator

from cfman.domain.records import TaskProgress, TaskRecord
from cfman.domain.types import Capability

if TYPE_CHECKING:
    from cfman.infrastructure.cloud import CloudApi

FieldType = Literal["text", "textarea", "select", "number", "checkbox", "password"]


def task_key(resource_type: str, task_type: str) -> str:
    """Build the composite dispatch key for a task type."""
    return f"{resource_type}:{task_type}"


# --- UI metadata ---


class FieldOption(BaseModel):
    model_config = {"frozen": True}

    label: str
    value: str


class FormField(BaseModel):
    """One input in a create/update form or a task config schema."""

    model_config = {"frozen": True}

    name: str
    label: str
    type: FieldType = "text"
    required: bool = False
    placeholder: str | None = None
    options: list[FieldOption] | None = None
    default_value: Any = None


class FormSchema(BaseModel):
    """Ordered form fields. Field names are unique within a schema."""

    model_config = {"frozen": True}

    fields: list[FormField] = Field(default_factory=list)

    @model_validator(mode="after")
    def _unique_names(self) -> FormSchema:
        seen: set[str] = set()
        for f in self.fields:
            if f.name in seen:
                msg = f"Duplicate form field name: {f.name!r}"
                raise ValueError(msg)
            seen.add(f.name)
        return self

    def defaults(self) -> dict[str, Any]:
        """Default values for fields that declare one."""
        return {f.name: f.default_value for f in self.fields if f.default_value is not None}


class TableColumn(BaseModel):
    """A column in a resource list view."""

    model_config = {"frozen": True}

    key: str
    label: str
    sortable: bool = False


# --- Task execution ---


class TaskResult(BaseModel):
    """The sole outcome channel of a task execution."""

    model_config = {"frozen": True}

    success: bool
    data: Any = None
    error: str | None = None

    @classmethod
    def ok(cls, data: Any = None) -> TaskResult:
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str) -> TaskResult:
        return cls(success=False, error=error)


ProgressCallback = Callable[[TaskProgress], None]


@dataclass
class TaskContext:
    """Everything one task execution needs. Consumed by exactly one ``execute``.

    Attributes:
        api: Cloud API capability for the target account.
        task: Identity of the invoking task (and its job).
        config: Resolved task configuration.
        update_progress: Receives advisory progress reports.
    """

    api: CloudApi
    task: TaskRecord
    config: Mapping[str, Any]
    update_progress: ProgressCallback
    consumed: bool = field(default=False, init=False)

    def report(self, step: str, current: int, total: int) -> None:
        """Send a progress report through :attr:`update_progress`."""
        self.update_progress(TaskProgress(step=step, current=current, total=total))

    def require(self, name: str) -> Any:
        """Return a config value that must be present and non-empty.

        Raises:
            ValueError: The field is missing or empty.
        """
        value = self.config.get(name)
        if value is None or value == "":
            msg = f"missing required config field: {name}"
            raise ValueError(msg)
        return value


TaskExecutor = Callable[[TaskContext], Awaitable[TaskResult]]


class TaskTypeInfo(BaseModel):
    """Serializable view of a task type (everything but ``execute``)."""

    model_config = {"frozen": True}

    type: str
    display_name: str
    description: str
    config_schema: FormSchema


@dataclass(frozen=True)
class TaskTypeDefinition:
    """A named, schema-described unit of work exposed by a plugin."""

    type: str
    display_name: str
    description: str
    execute: TaskExecutor
    config_schema: FormSchema = field(default_factory=FormSchema)

    def info(self) -> TaskTypeInfo:
        return TaskTypeInfo(
            type=self.type,
            display_name=self.display_name,
            description=self.description,
            config_schema=self.config_schema,
        )


# --- Plugin views ---


class PluginSummary(BaseModel):
    """Display-oriented projection of a plugin for list views."""

    model_config = {"frozen": True}

    name: str
    display_name: str
    description: str
    resource_type: str
    task_types: list[str]


class PluginDescriptor(BaseModel):
    """Full plugin description: task types, list columns, and forms."""

    model_config = {"frozen": True}

    name: str
    display_name: str
    description: str
    resource_type: str
    icon: str | None = None
    capabilities: list[Capability]
    task_types: list[TaskTypeInfo]
    list_columns: list[TableColumn]
    create_form: FormSchema | None = None
    update_form: FormSchema | None = None


# --- Plugin contract ---


class ResourcePlugin(ABC):
    """Handler for one kind of managed cloud resource.

    ``list`` is mandatory. ``get``, ``create``, ``update`` and ``delete``
    are optional: subclasses define the coroutine methods they support,
    and callers check :meth:`supports` before invoking one. An absent
    capability means "not supported for this resource kind".
    Capabilities raise :class:`ValueError` for unusable input data.

    Optional signatures::

        async def get(self, api, resource_id) -> dict
        async def create(self, api, data) -> dict
        async def update(self, api, resource_id, data) -> dict
        async def delete(self, api, resource_id) -> None
    """

    name: str
    display_name: str
    description: str
    resource_type: str
    icon: str | None = None

    @abstractmethod
    async def list(self, api: CloudApi) -> list[dict[str, Any]]:
        """Return every resource of this kind in the account."""

    @abstractmethod
    def get_task_types(self) -> list[TaskTypeDefinition]:
        """Task types this plugin publishes."""

    @abstractmethod
    def get_list_columns(self) -> list[TableColumn]:
        """Columns for the resource list view."""

    def get_create_form(self) -> FormSchema | None:
        return None

    def get_update_form(self) -> FormSchema | None:
        return None

    def supports(self, capability: Capability | str) -> bool:
        """Whether this plugin implements an optional CRUD capability."""
        return callable(getattr(self, Capability(capability).value, None))

    def capabilities(self) -> list[Capability]:
        return [c for c in Capability if self.supports(c)]

    def summary(self) -> PluginSummary:
        return PluginSummary(
            name=self.name,
            display_name=self.display_name,
            description=self.description,
            resource_type=self.resource_type,
            task_types=[t.type for t in self.get_task_types()],
        )

    def describe(self) -> PluginDescriptor:
        return PluginDescriptor(
            name=self.name,
            display_name=self.display_name,
            description=self.description,
            resource_type=self.resource_type,
            icon=self.icon,
            capabilities=self.capabilities(),
            task_types=[t.info() for t in self.get_task_types()],
            list_columns=self.get_list_columns(),
            create_form=self.get_create_form(),
            update_form=self.get_update_form(),
        )
