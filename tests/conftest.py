"""Shared pytest fixtures and test helpers for cfman tests."""

from __future__ import annotations

import logging
from typing import Any

import pytest
import structlog
from click.testing import CliRunner

from cfman.domain.records import TaskRecord
from cfman.infrastructure.cloud import CloudApiError
from cfman.plugins.event_bus import EventBus
from cfman.plugins.events import EventKind
from cfman.plugins.registry import PluginRegistry


class FakeCloudApi:
    """In-memory CloudApi that records every call.

    Set ``fail_on`` to a method name to make that method raise
    :class:`CloudApiError`.
    """

    def __init__(
        self,
        *,
        workers: list[dict[str, Any]] | None = None,
        namespaces: list[dict[str, Any]] | None = None,
        subdomain: str = "acme",
        fail_on: str | None = None,
    ) -> None:
        self.workers = list(workers or [])
        self.namespaces = list(namespaces or [])
        self.values: dict[tuple[str, str], str] = {}
        self.subdomain = subdomain
        self.fail_on = fail_on
        self.calls: list[tuple[str, tuple[Any, ...], dict[str, Any]]] = []

    def _record(self, method: str, *args: Any, **kwargs: Any) -> None:
        self.calls.append((method, args, kwargs))
        if method == self.fail_on:
            raise CloudApiError(f"{method} rejected", status=400)

    @property
    def call_names(self) -> list[str]:
        return [name for name, _, _ in self.calls]

    # --- Workers ---

    async def list_workers(self) -> list[dict[str, Any]]:
        self._record("list_workers")
        return list(self.workers)

    async def create_worker(self, name: str) -> str:
        self._record("create_worker", name)
        self.workers.append({"id": name})
        return f"wid-{name}"

    async def upload_worker_script(
        self,
        worker_id: str,
        name: str,
        content: str,
        compatibility_date: str,
        bindings: list[dict[str, Any]] | None = None,
    ) -> str:
        self._record("upload_worker_script", worker_id, name, content, compatibility_date, bindings)
        return "v1"

    async def deploy_worker(self, name: str, version_id: str) -> str:
        self._record("deploy_worker", name, version_id)
        return "d1"

    async def delete_worker(self, worker_id: str) -> None:
        self._record("delete_worker", worker_id)
        self.workers = [w for w in self.workers if w["id"] != worker_id]

    async def get_subdomain(self) -> str:
        self._record("get_subdomain")
        return self.subdomain

    # --- KV namespaces ---

    async def list_kv_namespaces(self) -> list[dict[str, Any]]:
        self._record("list_kv_namespaces")
        return list(self.namespaces)

    async def create_kv_namespace(self, title: str) -> dict[str, Any]:
        self._record("create_kv_namespace", title)
        namespace = {"id": f"ns-{len(self.namespaces) + 1}", "title": title}
        self.namespaces.append(namespace)
        return namespace

    async def delete_kv_namespace(self, namespace_id: str) -> None:
        self._record("delete_kv_namespace", namespace_id)

    async def rename_kv_namespace(self, namespace_id: str, title: str) -> None:
        self._record("rename_kv_namespace", namespace_id, title)

    # --- KV entries ---

    async def list_kv_keys(
        self,
        namespace_id: str,
        *,
        prefix: str | None = None,
        limit: int | None = None,
        cursor: str | None = None,
    ) -> dict[str, Any]:
        self._record("list_kv_keys", namespace_id, prefix=prefix, limit=limit, cursor=cursor)
        keys = [
            {"name": k}
            for ns, k in self.values
            if ns == namespace_id and (prefix is None or k.startswith(prefix))
        ]
        return {"keys": keys, "cursor": None}

    async def get_kv_value(self, namespace_id: str, key: str) -> str:
        self._record("get_kv_value", namespace_id, key)
        return self.values[(namespace_id, key)]

    async def put_kv_value(
        self,
        namespace_id: str,
        key: str,
        value: str,
        *,
        expiration_ttl: int | None = None,
    ) -> None:
        self._record("put_kv_value", namespace_id, key, value, expiration_ttl=expiration_ttl)
        self.values[(namespace_id, key)] = value

    async def delete_kv_key(self, namespace_id: str, key: str) -> None:
        self._record("delete_kv_key", namespace_id, key)
        self.values.pop((namespace_id, key), None)

    async def bulk_write_kv(self, namespace_id: str, pairs: list[dict[str, Any]]) -> None:
        self._record("bulk_write_kv", namespace_id, pairs)
        for pair in pairs:
            self.values[(namespace_id, pair["key"])] = pair["value"]

    async def bulk_delete_kv(self, namespace_id: str, keys: list[str]) -> None:
        self._record("bulk_delete_kv", namespace_id, keys)


@pytest.fixture(autouse=True)
def _restore_logging():
    """Undo configure_logging() calls made by CLI invocations."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    logging.getLogger("cfman").setLevel(logging.NOTSET)
    structlog.reset_defaults()


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def api() -> FakeCloudApi:
    return FakeCloudApi(workers=[{"id": "hello", "created_on": "2025-01-01T00:00:00Z"}])


@pytest.fixture
def registry() -> PluginRegistry:
    return PluginRegistry()


@pytest.fixture
def event_bus() -> EventBus:
    return EventBus()


@pytest.fixture
def recorded(event_bus: EventBus) -> list[tuple[EventKind, Any]]:
    """Every event emitted on ``event_bus``, in order, as ``(kind, payload)``."""
    seen: list[tuple[EventKind, Any]] = []
    for kind in EventKind:
        event_bus.on(kind, lambda payload, kind=kind: seen.append((kind, payload)))
    return seen


@pytest.fixture
def _isolated_cwd(tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Run in an empty directory with no config file or env override."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("CFMAN_CONFIG", raising=False)


# ---------------------------------------------------------------------------
# Shared test helpers
# ---------------------------------------------------------------------------


def make_task(task_type: str, task_id: str = "t1", **config: Any) -> TaskRecord:
    """Build a pending TaskRecord for the composite key *task_type*."""
    return TaskRecord(id=task_id, type=task_type, config=config)
