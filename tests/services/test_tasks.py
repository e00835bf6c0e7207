"""Tests for TaskService: task and job lifecycle events."""

from __future__ import annotations

from typing import Any

import pytest

from cfman.bootstrap import register_builtin_plugins
from cfman.domain.types import JobStatus, TaskStatus
from cfman.plugins.event_bus import EventBus
from cfman.plugins.events import EventKind
from cfman.plugins.registry import PluginRegistry
from cfman.services.tasks import TaskService
from tests.conftest import FakeCloudApi, make_task


@pytest.fixture
def service(registry: PluginRegistry, event_bus: EventBus) -> TaskService:
    register_builtin_plugins(registry, event_bus)
    return TaskService(registry, event_bus)


def _kinds(recorded: list[tuple[EventKind, Any]]) -> list[EventKind]:
    return [kind for kind, _ in recorded]


class TestResolveConfig:
    def test_schema_defaults_applied(self, service: TaskService) -> None:
        config = service.resolve_config(make_task("workers:create", name="x"))
        assert config == {"compatibility_date": "2025-01-01", "name": "x"}

    def test_task_config_wins(self, service: TaskService) -> None:
        config = service.resolve_config(make_task("kv:list_keys", limit=5))
        assert config["limit"] == 5

    def test_unknown_key_keeps_config(self, service: TaskService) -> None:
        assert service.resolve_config(make_task("nope:x", a=1)) == {"a": 1}


class TestRun:
    @pytest.mark.asyncio
    async def test_successful_run_events(
        self, service: TaskService, recorded: list[tuple[EventKind, Any]]
    ) -> None:
        task = make_task("workers:create", name="hello", content="x")
        result = await service.run(task, FakeCloudApi())
        assert result.success

        assert _kinds(recorded) == [
            EventKind.TASK_STARTED,
            EventKind.TASK_PROGRESS,
            EventKind.TASK_PROGRESS,
            EventKind.TASK_PROGRESS,
            EventKind.TASK_COMPLETED,
        ]
        started = recorded[0][1]
        assert started.task.status is TaskStatus.RUNNING
        steps = [payload.progress.step for kind, payload in recorded[1:4]]
        assert steps == ["create", "upload", "deploy"]
        completed = recorded[-1][1].task
        assert completed.status is TaskStatus.COMPLETED
        assert completed.result["url"] == "https://hello.acme.workers.dev"
        assert completed.progress.current == completed.progress.total == 3

    @pytest.mark.asyncio
    async def test_failed_run_events(
        self, service: TaskService, recorded: list[tuple[EventKind, Any]]
    ) -> None:
        task = make_task("workers:delete", name="ghost")
        result = await service.run(task, FakeCloudApi())
        assert not result.success
        kind, payload = recorded[-1]
        assert kind is EventKind.TASK_FAILED
        assert payload.task_id == "t1"
        assert payload.error == "Worker ghost not found"

    @pytest.mark.asyncio
    async def test_unknown_task_type_fails(
        self, service: TaskService, recorded: list[tuple[EventKind, Any]]
    ) -> None:
        result = await service.run(make_task("queues:create"), FakeCloudApi())
        assert result.error == "unknown task type: queues:create"
        assert _kinds(recorded) == [EventKind.TASK_STARTED, EventKind.TASK_FAILED]

    @pytest.mark.asyncio
    async def test_defaults_reach_the_task(self, service: TaskService) -> None:
        api = FakeCloudApi()
        await service.run(make_task("workers:create", name="hello", content="x"), api)
        assert api.calls[1][1][3] == "2025-01-01"


class TestJobs:
    def test_create_job_emits(
        self, service: TaskService, recorded: list[tuple[EventKind, Any]]
    ) -> None:
        tasks = [make_task("kv:list", "a"), make_task("kv:list", "b")]
        job = service.create_job("j1", tasks, name="nightly")
        assert job.task_ids == ["a", "b"]
        assert job.status is JobStatus.PENDING
        assert recorded == [(EventKind.JOB_CREATED, recorded[0][1])]
        assert recorded[0][1].job == job

    @pytest.mark.asyncio
    async def test_job_completes(
        self, service: TaskService, recorded: list[tuple[EventKind, Any]]
    ) -> None:
        tasks = [make_task("kv:list", "a"), make_task("kv:create", "b", title="cache")]
        job = service.create_job("j1", tasks)
        results = await service.run_job(job, tasks, FakeCloudApi())
        assert list(results) == ["a", "b"]
        assert all(r.success for r in results.values())
        kind, payload = recorded[-1]
        assert kind is EventKind.JOB_COMPLETED
        assert payload.status is JobStatus.COMPLETED
        assert recorded[1][0] is EventKind.JOB_STARTED

    @pytest.mark.asyncio
    async def test_job_continues_after_failure(
        self, service: TaskService, recorded: list[tuple[EventKind, Any]]
    ) -> None:
        tasks = [
            make_task("kv:delete", "a"),
            make_task("kv:create", "b", title="cache"),
            make_task("kv:get", "c"),
        ]
        job = service.create_job("j1", tasks)
        results = await service.run_job(job, tasks, FakeCloudApi())
        assert [r.success for r in results.values()] == [False, True, False]
        kind, payload = recorded[-1]
        assert kind is EventKind.JOB_FAILED
        assert payload.error == "missing required config field: namespace_id"

    @pytest.mark.asyncio
    async def test_tasks_tagged_with_job(
        self, service: TaskService, recorded: list[tuple[EventKind, Any]]
    ) -> None:
        tasks = [make_task("kv:list", "a")]
        job = service.create_job("j1", tasks)
        await service.run_job(job, tasks, FakeCloudApi())
        started = next(p for k, p in recorded if k is EventKind.TASK_STARTED)
        assert started.task.job_id == "j1"
