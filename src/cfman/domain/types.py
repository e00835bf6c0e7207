"""Status and capability enums shared across the dispatch core."""

from __future__ import annotations

from enum import StrEnum


class TaskStatus(StrEnum):
    """Lifecycle status of a single task execution."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class JobStatus(StrEnum):
    """Lifecycle status of a job (an ordered batch of tasks)."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class AccountStatus(StrEnum):
    """Credential health of a cloud account."""

    ACTIVE = "active"
    INVALID = "invalid"
    UNKNOWN = "unknown"


class Capability(StrEnum):
    """Optional CRUD capabilities a resource plugin may implement.

    ``list`` is mandatory for every plugin and therefore not listed here.
    Values match the plugin method names.
    """

    GET = "get"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
