"""Tests for plugin contracts: forms, results, contexts, descriptors."""

from __future__ import annotations

from typing import Any

import pytest
from pydantic import ValidationError

from cfman.domain.records import TaskProgress, TaskRecord
from cfman.domain.types import Capability
from cfman.plugins.builtins import KVPlugin, WorkersPlugin
from cfman.plugins.contracts import (
    FormField,
    FormSchema,
    TaskContext,
    TaskResult,
    task_key,
)
from tests.conftest import FakeCloudApi


class TestFormSchema:
    def test_duplicate_field_names_rejected(self) -> None:
        with pytest.raises(ValidationError, match="Duplicate form field name"):
            FormSchema(
                fields=[FormField(name="a", label="A"), FormField(name="a", label="Again")]
            )

    def test_defaults_only_for_declared_values(self) -> None:
        schema = FormSchema(
            fields=[
                FormField(name="limit", label="Limit", type="number", default_value=1000),
                FormField(name="prefix", label="Prefix"),
            ]
        )
        assert schema.defaults() == {"limit": 1000}

    def test_unknown_field_type_rejected(self) -> None:
        with pytest.raises(ValidationError):
            FormField(name="a", label="A", type="color")  # type: ignore[arg-type]


class TestTaskResult:
    def test_ok(self) -> None:
        result = TaskResult.ok({"id": 1})
        assert result.success is True
        assert result.data == {"id": 1}
        assert result.error is None

    def test_fail(self) -> None:
        result = TaskResult.fail("nope")
        assert result.success is False
        assert result.error == "nope"


class TestTaskContext:
    def _context(self, **config: Any) -> tuple[TaskContext, list[TaskProgress]]:
        progress: list[TaskProgress] = []
        context = TaskContext(
            api=FakeCloudApi(),
            task=TaskRecord(id="t1", type="kv:get"),
            config=config,
            update_progress=progress.append,
        )
        return context, progress

    def test_report_builds_progress(self) -> None:
        context, progress = self._context()
        context.report("upload", 2, 3)
        assert progress == [TaskProgress(step="upload", current=2, total=3)]

    def test_require_present(self) -> None:
        context, _ = self._context(name="hello")
        assert context.require("name") == "hello"

    @pytest.mark.parametrize("config", [{}, {"name": None}, {"name": ""}])
    def test_require_missing(self, config: dict[str, Any]) -> None:
        context, _ = self._context(**config)
        with pytest.raises(ValueError, match="missing required config field: name"):
            context.require("name")

    def test_new_context_not_consumed(self) -> None:
        context, _ = self._context()
        assert context.consumed is False


class TestDescriptors:
    def test_task_key(self) -> None:
        assert task_key("workers", "create") == "workers:create"

    def test_workers_capabilities(self) -> None:
        plugin = WorkersPlugin()
        assert plugin.capabilities() == [Capability.GET, Capability.DELETE]
        assert plugin.supports("get")
        assert not plugin.supports(Capability.CREATE)

    def test_kv_capabilities(self) -> None:
        assert KVPlugin().capabilities() == [
            Capability.CREATE,
            Capability.UPDATE,
            Capability.DELETE,
        ]

    def test_describe_serializes(self) -> None:
        descriptor = WorkersPlugin().describe()
        data = descriptor.model_dump(mode="json")
        assert data["resource_type"] == "workers"
        assert data["capabilities"] == ["get", "delete"]
        assert [t["type"] for t in data["task_types"]] == [
            "create",
            "update",
            "delete",
            "query",
            "list",
        ]
        assert "execute" not in data["task_types"][0]
        assert data["create_form"]["fields"][0]["name"] == "name"
        assert [c["key"] for c in data["list_columns"]][:2] == ["id", "url"]
