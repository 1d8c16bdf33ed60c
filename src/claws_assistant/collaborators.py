"""Read-only interfaces into the resource browser's data layer.

The browser owns one DAO per (service, resource type); the assistant only ever
lists and fetches through these protocols and never mutates remote state.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any, Protocol, runtime_checkable


@dataclass(frozen=True)
class QueryScope:
    region: str
    profile: str | None = None
    filters: Mapping[str, str] = field(default_factory=dict)

    def with_filter(self, key: str, value: str) -> QueryScope:
        return replace(self, filters={**self.filters, key: value})


@runtime_checkable
class Resource(Protocol):
    @property
    def id(self) -> str: ...

    @property
    def name(self) -> str: ...

    @property
    def arn(self) -> str: ...

    @property
    def tags(self) -> Mapping[str, str]: ...

    @property
    def raw(self) -> Any: ...


@runtime_checkable
class ResourceQuery(Protocol):
    def list_services(self) -> list[str]: ...

    def display_name(self, service: str) -> str: ...

    def list_resource_types(self, service: str) -> list[str]: ...

    async def list(self, service: str, resource_type: str, scope: QueryScope) -> list[Resource]:
        """Raise LookupError when the (service, resource_type) pair is unknown."""
        ...

    async def get(self, service: str, resource_type: str, resource_id: str, scope: QueryScope) -> Resource:
        """Raise LookupError when the pair is unknown or the resource does not exist."""
        ...
