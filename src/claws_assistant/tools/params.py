from __future__ import annotations

from typing import Any

from claws_assistant.collaborators import QueryScope
from claws_assistant.errors import ToolInputError

# Resource types whose DAO needs the owning cluster before it can list or fetch.
CLUSTER_SCOPED_RESOURCE_TYPES = frozenset({("ecs", "services"), ("ecs", "tasks")})

CLUSTER_FILTER = "ClusterName"


def get_str(tool_input: dict[str, Any], key: str) -> str:
    value = tool_input.get(key)
    if isinstance(value, str):
        return value.strip()
    # Numeric ids (account numbers, build numbers) arrive as JSON numbers.
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return ""


def require_str(tool_input: dict[str, Any], key: str) -> str:
    value = get_str(tool_input, key)
    if not value:
        raise ToolInputError(f"{key} parameter is required")
    return value


def get_bool(tool_input: dict[str, Any], key: str) -> bool:
    value = tool_input.get(key)
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return False


def get_int(tool_input: dict[str, Any], key: str, default: int) -> int:
    """Lenient integer read: models send numbers as ints, floats or strings."""
    value = tool_input.get(key)
    if isinstance(value, bool) or value is None:
        return default
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str):
        try:
            return int(float(value.strip()))
        except ValueError:
            return default
    return default


def clamp_limit(value: int, *, default: int, maximum: int) -> int:
    if value <= 0:
        return default
    return min(value, maximum)


def is_cluster_scoped(service: str, resource_type: str) -> bool:
    return (service, resource_type) in CLUSTER_SCOPED_RESOURCE_TYPES


def require_cluster(tool_input: dict[str, Any], service: str, resource_type: str) -> str:
    cluster = get_str(tool_input, "cluster")
    if is_cluster_scoped(service, resource_type) and not cluster:
        raise ToolInputError(f"cluster parameter is required for {service}/{resource_type}")
    return cluster


def build_scope(tool_input: dict[str, Any], region: str) -> QueryScope:
    return QueryScope(region=region, profile=get_str(tool_input, "profile") or None)
