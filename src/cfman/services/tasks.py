"""TaskService: runs tasks through the registry and narrates them on the bus.

The registry contains plugin failures; this service turns each execution
into ``task:*`` events and each job into ``job:*`` events. Tasks in a job
run one after another. Nothing is retried and nothing is rolled back.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

import structlog

from cfman.domain.records import JobRecord, TaskProgress, TaskRecord
from cfman.domain.types import JobStatus, TaskStatus
from cfman.plugins.contracts import TaskContext, TaskResult
from cfman.plugins.events import (
    EventKind,
    JobCompleted,
    JobCreated,
    JobFailed,
    JobStarted,
    TaskCompleted,
    TaskFailed,
    TaskProgressed,
    TaskStarted,
)

if TYPE_CHECKING:
    from cfman.infrastructure.cloud import CloudApi
    from cfman.plugins.event_bus import EventBus
    from cfman.plugins.registry import PluginRegistry


class TaskService:
    """Executes :class:`TaskRecord` s against one account's cloud API."""

    def __init__(self, registry: PluginRegistry, event_bus: EventBus) -> None:
        self._registry = registry
        self._bus = event_bus

    def resolve_config(self, task: TaskRecord) -> dict[str, Any]:
        """Task config layered over the task type's schema defaults."""
        definition = self._registry.get_task_handler(task.type)
        resolved = definition.config_schema.defaults() if definition is not None else {}
        resolved.update(task.config)
        return resolved

    async def run(self, task: TaskRecord, api: CloudApi) -> TaskResult:
        """Execute *task* once, emitting ``task:started``, ``task:progress``,
        and finally ``task:completed`` or ``task:failed``."""
        log = structlog.get_logger(__name__).bind(task_id=task.id, task_key=task.type)
        running = task.model_copy(update={"status": TaskStatus.RUNNING})
        last_progress: TaskProgress | None = None

        def update_progress(progress: TaskProgress) -> None:
            nonlocal last_progress
            last_progress = progress
            log.debug(
                "task progress", step=progress.step, current=progress.current, total=progress.total
            )
            self._bus.emit(
                EventKind.TASK_PROGRESS, TaskProgressed(task_id=task.id, progress=progress)
            )

        self._bus.emit(EventKind.TASK_STARTED, TaskStarted(task=running))
        context = TaskContext(
            api=api,
            task=running,
            config=self.resolve_config(task),
            update_progress=update_progress,
        )
        result = await self._registry.execute_task(task.type, context)

        if result.success:
            finished = running.model_copy(
                update={
                    "status": TaskStatus.COMPLETED,
                    "progress": last_progress,
                    "result": result.data,
                }
            )
            log.info("task completed")
            self._bus.emit(EventKind.TASK_COMPLETED, TaskCompleted(task=finished))
        else:
            error = result.error or "task execution failed"
            log.warning("task failed", error=error)
            self._bus.emit(EventKind.TASK_FAILED, TaskFailed(task_id=task.id, error=error))
        return result

    def create_job(self, job_id: str, tasks: Sequence[TaskRecord], *, name: str = "") -> JobRecord:
        """Build a pending job for *tasks* and announce it with ``job:created``."""
        job = JobRecord(id=job_id, name=name, task_ids=[t.id for t in tasks])
        self._bus.emit(EventKind.JOB_CREATED, JobCreated(job=job))
        return job

    async def run_job(
        self, job: JobRecord, tasks: Sequence[TaskRecord], api: CloudApi
    ) -> dict[str, TaskResult]:
        """Run every task of *job* in order.

        A failed task does not stop the job; the job fails with the first
        task error once all tasks have run. Returns results keyed by task id.
        """
        self._bus.emit(EventKind.JOB_STARTED, JobStarted(job_id=job.id))
        results: dict[str, TaskResult] = {}
        first_error: str | None = None

        for task in tasks:
            if task.job_id is None:
                task = task.model_copy(update={"job_id": job.id})
            result = await self.run(task, api)
            results[task.id] = result
            if not result.success and first_error is None:
                first_error = result.error or f"task {task.id} failed"

        if first_error is None:
            self._bus.emit(
                EventKind.JOB_COMPLETED, JobCompleted(job_id=job.id, status=JobStatus.COMPLETED)
            )
        else:
            self._bus.emit(EventKind.JOB_FAILED, JobFailed(job_id=job.id, error=first_error))
        return results
