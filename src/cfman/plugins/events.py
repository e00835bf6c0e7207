"""System event kinds and their payload contracts.

The set of kinds is closed. Each kind maps to exactly one frozen payload
model in :data:`EVENT_PAYLOADS`; :class:`~cfman.plugins.event_bus.EventBus`
rejects payloads of the wrong model.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel

from cfman.domain.records import AccountRecord, JobRecord, TaskProgress, TaskRecord
from cfman.domain.types import JobStatus


class EventKind(StrEnum):
    """Lifecycle occurrences observable on the event bus."""

    JOB_CREATED = "job:created"
    JOB_STARTED = "job:started"
    JOB_COMPLETED = "job:completed"
    JOB_FAILED = "job:failed"

    TASK_STARTED = "task:started"
    TASK_PROGRESS = "task:progress"
    TASK_COMPLETED = "task:completed"
    TASK_FAILED = "task:failed"

    ACCOUNT_CREATED = "account:created"
    ACCOUNT_UPDATED = "account:updated"
    ACCOUNT_DELETED = "account:deleted"
    ACCOUNT_VERIFIED = "account:verified"

    PLUGIN_REGISTERED = "plugin:registered"
    PLUGIN_UNREGISTERED = "plugin:unregistered"

    SYSTEM_STARTUP = "system:startup"
    SYSTEM_SHUTDOWN = "system:shutdown"


class _Payload(BaseModel):
    model_config = {"frozen": True}


# --- job:* ---


class JobCreated(_Payload):
    job: JobRecord


class JobStarted(_Payload):
    job_id: str


class JobCompleted(_Payload):
    job_id: str
    status: JobStatus


class JobFailed(_Payload):
    job_id: str
    error: str


# --- task:* ---


class TaskStarted(_Payload):
    task: TaskRecord


class TaskProgressed(_Payload):
    task_id: str
    progress: TaskProgress


class TaskCompleted(_Payload):
    task: TaskRecord


class TaskFailed(_Payload):
    task_id: str
    error: str


# --- account:* ---


class AccountCreated(_Payload):
    account: AccountRecord


class AccountUpdated(_Payload):
    account: AccountRecord


class AccountDeleted(_Payload):
    account_id: str


class AccountVerified(_Payload):
    account_id: str
    success: bool
    error: str | None = None


# --- plugin:* ---


class PluginRegistered(_Payload):
    resource_type: str
    name: str


class PluginUnregistered(_Payload):
    resource_type: str


# --- system:* ---


class SystemStartup(_Payload):
    timestamp: str


class SystemShutdown(_Payload):
    timestamp: str


EVENT_PAYLOADS: dict[EventKind, type[BaseModel]] = {
    EventKind.JOB_CREATED: JobCreated,
    EventKind.JOB_STARTED: JobStarted,
    EventKind.JOB_COMPLETED: JobCompleted,
    EventKind.JOB_FAILED: JobFailed,
    EventKind.TASK_STARTED: TaskStarted,
    EventKind.TASK_PROGRESS: TaskProgressed,
    EventKind.TASK_COMPLETED: TaskCompleted,
    EventKind.TASK_FAILED: TaskFailed,
    EventKind.ACCOUNT_CREATED: AccountCreated,
    EventKind.ACCOUNT_UPDATED: AccountUpdated,
    EventKind.ACCOUNT_DELETED: AccountDeleted,
    EventKind.ACCOUNT_VERIFIED: AccountVerified,
    EventKind.PLUGIN_REGISTERED: PluginRegistered,
    EventKind.PLUGIN_UNREGISTERED: PluginUnregistered,
    EventKind.SYSTEM_STARTUP: SystemStartup,
    EventKind.SYSTEM_SHUTDOWN: SystemShutdown,
}
