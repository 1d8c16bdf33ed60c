from typing import Any

from loguru import logger

from claws_assistant.collaborators import ResourceQuery
from claws_assistant.errors import CollaboratorError
from claws_assistant.tools.params import CLUSTER_FILTER, build_scope, require_cluster, require_str
from claws_assistant.tools.resource_formatter import format_resource_detail


class GetResourceDetailTool:
    def __init__(self, resources: ResourceQuery) -> None:
        self._resources = resources

    @property
    def name(self) -> str:
        return "get_resource_detail"

    @property
    def description(self) -> str:
        return (
            "Get detailed information about a specific AWS resource. "
            "NOTE: For ecs/services and ecs/tasks, cluster parameter is required."
        )

    @property
    def input_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "service": {"type": "string", "description": "AWS service name"},
                "resource_type": {"type": "string", "description": "Resource type"},
                "region": {"type": "string", "description": "AWS region (e.g., us-east-1, us-west-2)"},
                "id": {"type": "string", "description": "Resource ID"},
                "cluster": {
                    "type": "string",
                    "description": "ECS cluster name (required for ecs/services and ecs/tasks)",
                },
                "profile": {
                    "type": "string",
                    "description": "AWS profile name (optional, uses current profile if not specified)",
                },
            },
            "required": ["service", "resource_type", "region", "id"],
        }

    async def execute(self, tool_input: dict[str, Any]) -> str:
        service = require_str(tool_input, "service")
        resource_type = require_str(tool_input, "resource_type")
        resource_id = require_str(tool_input, "id")
        cluster = require_cluster(tool_input, service, resource_type)
        region = require_str(tool_input, "region")

        scope = build_scope(tool_input, region)
        if cluster:
            scope = scope.with_filter(CLUSTER_FILTER, cluster)

        try:
            resource = await self._resources.get(service, resource_type, resource_id, scope)
        except Exception as ex:
            logger.warning(
                f"get_resource_detail failed: service={service}, resource_type={resource_type}, "
                f"id={resource_id}, error={ex}"
            )
            raise CollaboratorError(f"getting resource {service}/{resource_type} {resource_id}: {ex}") from ex

        return format_resource_detail(resource)
