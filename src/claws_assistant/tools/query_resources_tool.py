from typing import Any

from loguru import logger

from claws_assistant.collaborators import ResourceQuery
from claws_assistant.errors import CollaboratorError, ToolInputError
from claws_assistant.tools.params import build_scope, clamp_limit, get_bool, get_int, require_str
from claws_assistant.tools.resource_formatter import format_resource_summary

DEFAULT_LIMIT = 100
MAX_LIMIT = 2000


class QueryResourcesTool:
    def __init__(self, resources: ResourceQuery) -> None:
        self._resources = resources

    @property
    def name(self) -> str:
        return "query_resources"

    @property
    def description(self) -> str:
        return "List AWS resources. You MUST provide service, resource_type, and region parameters."

    @property
    def input_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "service": {
                    "type": "string",
                    "description": "AWS service name. Examples: ec2, lambda, s3, rds, ecs, dynamodb",
                },
                "resource_type": {
                    "type": "string",
                    "description": (
                        "Resource type. Examples: instances (for ec2), functions (for lambda), "
                        "buckets (for s3), tables (for dynamodb)"
                    ),
                },
                "region": {
                    "type": "string",
                    "description": "AWS region. Examples: us-east-1, us-west-2, ap-northeast-1",
                },
                "profile": {
                    "type": "string",
                    "description": "AWS profile name (optional, uses current profile if not specified)",
                },
                "include_resolved": {
                    "type": "boolean",
                    "description": "Include resolved/archived items (securityhub/findings only, default: false)",
                },
                "limit": {
                    "type": "integer",
                    "description": f"Maximum resources to return (default: {DEFAULT_LIMIT}, max: {MAX_LIMIT})",
                },
                "offset": {
                    "type": "integer",
                    "description": "Skip first N resources for pagination (default: 0)",
                },
            },
            "required": ["service", "resource_type", "region"],
        }

    async def execute(self, tool_input: dict[str, Any]) -> str:
        service = require_str(tool_input, "service")
        resource_type = require_str(tool_input, "resource_type")
        region = require_str(tool_input, "region")

        limit = clamp_limit(get_int(tool_input, "limit", DEFAULT_LIMIT), default=DEFAULT_LIMIT, maximum=MAX_LIMIT)
        offset = max(0, get_int(tool_input, "offset", 0))
        include_resolved = get_bool(tool_input, "include_resolved")

        scope = build_scope(tool_input, region)
        if include_resolved:
            scope = scope.with_filter("ShowResolved", "true")

        try:
            resources = await self._resources.list(service, resource_type, scope)
        except LookupError as ex:
            raise ToolInputError(
                f'{service}/{resource_type} not found. Use list_resources(service="{service}") '
                "to see available types."
            ) from ex
        except Exception as ex:
            logger.warning(f"query_resources {service}/{resource_type} in {region} failed: {ex}")
            raise CollaboratorError(f"listing {service}/{resource_type}: {ex}") from ex

        total = len(resources)
        if total == 0:
            return f"No {service}/{resource_type} resources found in {region}"
        if offset >= total:
            raise ToolInputError(f"Offset {offset} exceeds total count {total}")

        end = min(offset + limit, total)

        filter_note = ""
        if service == "securityhub" and resource_type == "findings":
            if include_resolved:
                filter_note = " (including resolved)"
            else:
                filter_note = " (active only, use include_resolved=true for all)"

        lines = [
            f"Found {total} {service}/{resource_type} resources in {region}{filter_note} "
            f"(showing {offset + 1}-{end}):",
            "",
        ]
        lines.extend(format_resource_summary(r) for r in resources[offset:end])

        if end < total:
            lines.append("")
            lines.append(f"... and {total - end} more (use offset={end} to see next page)")

        return "\n".join(lines)
