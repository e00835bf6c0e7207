"""Cloud API capability contract.

Plugins drive every external side effect through an object satisfying
:class:`CloudApi`. The concrete client (HTTP transport, auth headers,
timeouts) is an external collaborator; any object with these coroutine
methods can be passed in a :class:`~cfman.plugins.contracts.TaskContext`.

Every method either returns a value or raises. Clients should raise
:class:`CloudApiError` so the service's own message reaches the caller.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


class CloudApiError(RuntimeError):
    """Failure reported by the cloud API.

    Attributes:
        errors: The raw ``errors`` array from the API envelope, if any.
        status: HTTP status code, if known.
    """

    def __init__(
        self,
        message: str,
        *,
        errors: list[dict[str, Any]] | None = None,
        status: int | None = None,
    ) -> None:
        super().__init__(message)
        self.errors = errors or []
        self.status = status

    @classmethod
    def from_response(
        cls,
        payload: dict[str, Any] | None,
        fallback: str,
        *,
        status: int | None = None,
    ) -> CloudApiError:
        """Build an error from an API envelope ``{"success": false, "errors": [...]}``.

        The first error's ``message`` wins over *fallback*.
        """
        errors = list((payload or {}).get("errors") or [])
        message = fallback
        if errors and isinstance(errors[0], dict) and errors[0].get("message"):
            message = str(errors[0]["message"])
        return cls(message, errors=errors, status=status)


@runtime_checkable
class CloudApi(Protocol):
    """Async operations on Workers scripts and KV storage for one account."""

    # --- Workers ---

    async def list_workers(self) -> list[dict[str, Any]]: ...

    async def create_worker(self, name: str) -> str:
        """Register an empty worker shell. Returns the worker id."""
        ...

    async def upload_worker_script(
        self,
        worker_id: str,
        name: str,
        content: str,
        compatibility_date: str,
        bindings: list[dict[str, Any]] | None = None,
    ) -> str:
        """Upload a new script version. Returns the version id."""
        ...

    async def deploy_worker(self, name: str, version_id: str) -> str:
        """Route 100% of traffic to *version_id*. Returns the deployment id."""
        ...

    async def delete_worker(self, worker_id: str) -> None: ...

    async def get_subdomain(self) -> str: ...

    # --- KV namespaces ---

    async def list_kv_namespaces(self) -> list[dict[str, Any]]: ...

    async def create_kv_namespace(self, title: str) -> dict[str, Any]: ...

    async def delete_kv_namespace(self, namespace_id: str) -> None: ...

    async def rename_kv_namespace(self, namespace_id: str, title: str) -> None: ...

    # --- KV entries ---

    async def list_kv_keys(
        self,
        namespace_id: str,
        *,
        prefix: str | None = None,
        limit: int | None = None,
        cursor: str | None = None,
    ) -> dict[str, Any]:
        """Return ``{"keys": [...], "cursor": str | None}``."""
        ...

    async def get_kv_value(self, namespace_id: str, key: str) -> str: ...

    async def put_kv_value(
        self,
        namespace_id: str,
        key: str,
        value: str,
        *,
        expiration_ttl: int | None = None,
    ) -> None: ...

    async def delete_kv_key(self, namespace_id: str, key: str) -> None: ...

    async def bulk_write_kv(self, namespace_id: str, pairs: list[dict[str, Any]]) -> None: ...

    async def bulk_delete_kv(self, namespace_id: str, keys: list[str]) -> None: ...
