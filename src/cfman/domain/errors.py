"""Domain exceptions raised by plugins and consumed by the service layer."""

from __future__ import annotations


class ResourceNotFoundError(LookupError):
    """A lookup by identifier found no matching resource."""

    def __init__(self, resource_type: str, identifier: str) -> None:
        self.resource_type = resource_type
        self.identifier = identifier
        super().__init__(f"{resource_type} {identifier!r} not found")

