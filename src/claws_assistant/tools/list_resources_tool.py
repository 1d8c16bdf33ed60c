from typing import Any

from claws_assistant.collaborators import ResourceQuery
from claws_assistant.tools.params import require_str


class ListResourcesTool:
    def __init__(self, resources: ResourceQuery) -> None:
        self._resources = resources

    @property
    def name(self) -> str:
        return "list_resources"

    @property
    def description(self) -> str:
        return "List resource types available for a specific AWS service"

    @property
    def input_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "service": {
                    "type": "string",
                    "description": "AWS service name (e.g., ec2, lambda, s3)",
                },
            },
            "required": ["service"],
        }

    async def execute(self, tool_input: dict[str, Any]) -> str:
        service = require_str(tool_input, "service")

        resource_types = self._resources.list_resource_types(service)
        if not resource_types:
            return f"No resources found for service: {service}"

        lines = [f"Resource types for {self._resources.display_name(service)} ({service}):"]
        lines.extend(f"- {rt}" for rt in resource_types)
        return "\n".join(lines)
