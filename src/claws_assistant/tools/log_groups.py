"""CloudWatch log group resolution keyed by (service, resource_type).

Each supported pair maps to a strategy. Pairs with no strategy are rejected with
the full supported list so the model can correct itself.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, Protocol

from claws_assistant.collaborators import QueryScope, Resource, ResourceQuery
from claws_assistant.errors import CollaboratorError, ToolInputError, UnsupportedResourceError
from claws_assistant.tools.params import CLUSTER_FILTER


@dataclass(frozen=True)
class LogGroupLookup:
    resources: ResourceQuery
    scope: QueryScope
    cluster: str = ""

    async def get(self, service: str, resource_type: str, resource_id: str, *, scoped_to_cluster: bool = False) -> Resource:
        scope = self.scope
        if scoped_to_cluster:
            scope = scope.with_filter(CLUSTER_FILTER, self.cluster)
        try:
            return await self.resources.get(service, resource_type, resource_id, scope)
        except LookupError as ex:
            raise CollaboratorError(f"{service}/{resource_type} {resource_id} not found: {ex}") from ex


class LogGroupStrategy(Protocol):
    async def resolve(self, lookup: LogGroupLookup, resource_id: str) -> str: ...


def log_group_name_from_arn(arn: str) -> str:
    # arn:aws:logs:<region>:<account>:log-group:<name>[:*]
    parts = arn.split(":")
    if len(parts) >= 7:
        return parts[6]
    return arn


def resource_name_from_arn(arn: str) -> str:
    if "/" in arn:
        return arn.rsplit("/", 1)[1]
    return arn


def _dig(raw: Any, *path: str) -> Any:
    current = raw
    for key in path:
        if not isinstance(current, Mapping):
            return None
        current = current.get(key)
    return current


def _task_definition_log_group(raw: Any) -> str | None:
    for container in _dig(raw, "containerDefinitions") or []:
        options = _dig(container, "logConfiguration", "options") or {}
        group = options.get("awslogs-group") if isinstance(options, Mapping) else None
        if group:
            return str(group)
    return None


def _state_machine_log_group_arn(raw: Any) -> str | None:
    for destination in _dig(raw, "loggingConfiguration", "destinations") or []:
        arn = _dig(destination, "cloudWatchLogsLogGroup", "logGroupArn")
        if arn:
            return str(arn)
    return None


def _field(*path: str) -> Callable[[Any], str | None]:
    def read(raw: Any) -> str | None:
        value = _dig(raw, *path)
        return str(value) if value else None

    return read


class DerivedName:
    """Log group name derived from the resource id alone; no lookup."""

    def __init__(self, template: str):
        self._template = template

    async def resolve(self, lookup: LogGroupLookup, resource_id: str) -> str:
        return self._template.format(id=resource_id)


class ResourceField:
    """Fetch the resource and read its log configuration."""

    def __init__(
        self,
        service: str,
        resource_type: str,
        label: str,
        extract: Callable[[Any], str | None],
        *,
        is_arn: bool = False,
        fallback_template: str | None = None,
    ):
        self._service = service
        self._resource_type = resource_type
        self._label = label
        self._extract = extract
        self._is_arn = is_arn
        self._fallback_template = fallback_template

    async def resolve(self, lookup: LogGroupLookup, resource_id: str) -> str:
        resource = await lookup.get(self._service, self._resource_type, resource_id)
        value = self._extract(resource.raw)
        if value:
            return log_group_name_from_arn(value) if self._is_arn else value
        if self._fallback_template is not None:
            return self._fallback_template.format(id=resource_id)
        raise CollaboratorError(f"no CloudWatch logs configured for {self._label} {resource_id}")


class TaskDefinitionLogGroup:
    async def resolve(self, lookup: LogGroupLookup, resource_id: str) -> str:
        resource = await lookup.get("ecs", "task-definitions", resource_id)
        group = _task_definition_log_group(resource.raw)
        if not group:
            raise CollaboratorError(f"no CloudWatch logs configured for task definition {resource_id}")
        return group


class OwningTaskDefinition:
    """Cluster-scoped ECS resources log wherever their task definition says."""

    def __init__(self, resource_type: str, label: str, arn_field: str):
        self._resource_type = resource_type
        self._label = label
        self._arn_field = arn_field

    async def resolve(self, lookup: LogGroupLookup, resource_id: str) -> str:
        if not lookup.cluster:
            raise ToolInputError(f"cluster parameter is required for ecs/{self._resource_type}")

        resource = await lookup.get("ecs", self._resource_type, resource_id, scoped_to_cluster=True)
        task_def_arn = _dig(resource.raw, self._arn_field)
        if not task_def_arn:
            raise CollaboratorError(f"no task definition found for {self._label} {resource_id}")

        try:
            task_def = await lookup.get("ecs", "task-definitions", resource_name_from_arn(str(task_def_arn)))
        except CollaboratorError as ex:
            raise CollaboratorError(f"failed to get task definition {task_def_arn}: {ex}") from ex

        group = _task_definition_log_group(task_def.raw)
        if not group:
            raise CollaboratorError(f"no CloudWatch logs configured in task definition {task_def_arn}")
        return group


class LogGroupResolverRegistry:
    def __init__(self, strategies: dict[tuple[str, str], LogGroupStrategy]):
        self._strategies = dict(strategies)

    def supported(self) -> list[str]:
        return [f"{service}/{resource_type}" for service, resource_type in self._strategies]

    def supports(self, service: str, resource_type: str) -> bool:
        return (service, resource_type) in self._strategies

    async def resolve(self, lookup: LogGroupLookup, service: str, resource_type: str, resource_id: str) -> str:
        strategy = self._strategies.get((service, resource_type))
        if strategy is None:
            raise UnsupportedResourceError(
                f"log extraction not supported for {service}/{resource_type}. "
                f"Supported: {', '.join(self.supported())}"
            )
        return await strategy.resolve(lookup, resource_id)


def default_registry() -> LogGroupResolverRegistry:
    return LogGroupResolverRegistry(
        {
            ("lambda", "functions"): DerivedName("/aws/lambda/{id}"),
            ("ecs", "services"): OwningTaskDefinition("services", "service", "taskDefinition"),
            ("ecs", "tasks"): OwningTaskDefinition("tasks", "task", "taskDefinitionArn"),
            ("ecs", "task-definitions"): TaskDefinitionLogGroup(),
            ("codebuild", "projects"): ResourceField(
                "codebuild",
                "projects",
                "project",
                _field("logsConfig", "cloudWatchLogs", "groupName"),
                fallback_template="/aws/codebuild/{id}",
            ),
            ("codebuild", "builds"): ResourceField(
                "codebuild", "builds", "build", _field("logs", "groupName")
            ),
            ("cloudtrail", "trails"): ResourceField(
                "cloudtrail", "trails", "trail", _field("CloudWatchLogsLogGroupArn"), is_arn=True
            ),
            ("apigateway", "stages"): ResourceField(
                "apigateway", "stages", "stage", _field("accessLogSettings", "destinationArn"), is_arn=True
            ),
            ("apigateway", "stages-v2"): ResourceField(
                "apigateway", "stages-v2", "stage", _field("AccessLogSettings", "DestinationArn"), is_arn=True
            ),
            ("stepfunctions", "state-machines"): ResourceField(
                "stepfunctions", "state-machines", "state machine", _state_machine_log_group_arn, is_arn=True
            ),
        }
    )
