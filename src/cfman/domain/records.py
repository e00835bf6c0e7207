"""Transient records carried by lifecycle event payloads.

Records are frozen; state changes produce a copy via ``model_copy``.
Nothing here is persisted by the dispatch core.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from cfman.domain.types import AccountStatus, JobStatus, TaskStatus


class TaskProgress(BaseModel):
    """Advisory progress report: a step label and a ``current/total`` counter."""

    model_config = {"frozen": True}

    step: str
    current: int = Field(ge=0)
    total: int = Field(ge=0)


class TaskRecord(BaseModel):
    """Identity and state of one task execution.

    Attributes:
        id: Task identifier.
        job_id: Owning job, if the task runs as part of one.
        type: Composite task key, ``"<resource_type>:<task_type>"``.
        config: Resolved task configuration.
        status: Current lifecycle status.
        progress: Last progress report, if any.
        result: Result payload on success.
        error: Error message on failure.
    """

    model_config = {"frozen": True}

    id: str
    job_id: str | None = None
    type: str
    account_id: str | None = None
    config: dict[str, Any] = Field(default_factory=dict)
    status: TaskStatus = TaskStatus.PENDING
    progress: TaskProgress | None = None
    result: Any = None
    error: str | None = None


class JobRecord(BaseModel):
    """An ordered batch of tasks submitted together."""

    model_config = {"frozen": True}

    id: str
    name: str = ""
    status: JobStatus = JobStatus.PENDING
    task_ids: list[str] = Field(default_factory=list)


class AccountRecord(BaseModel):
    """A cloud account known to the application. Credentials are not carried."""

    model_config = {"frozen": True}

    id: str
    name: str
    account_id: str
    subdomain: str | None = None
    status: AccountStatus = AccountStatus.UNKNOWN
