from __future__ import annotations

import re
from datetime import UTC, datetime, timedelta
from typing import Any

from loguru import logger

from claws_assistant.collaborators import ResourceQuery
from claws_assistant.errors import CollaboratorError, ToolError
from claws_assistant.tools.log_groups import LogGroupLookup, LogGroupResolverRegistry, default_registry
from claws_assistant.tools.log_search import LogSearch
from claws_assistant.tools.params import build_scope, clamp_limit, get_int, get_str, require_cluster, require_str

DEFAULT_LIMIT = 100
MAX_LIMIT = 500
DEFAULT_SINCE = "15m"
MAX_MESSAGE_CHARS = 2000

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|s|m|h|d)")
_UNIT_SECONDS = {"ms": 0.001, "s": 1, "m": 60, "h": 3600, "d": 86400}


def parse_since(text: str) -> timedelta | None:
    """Parse durations such as 30s, 5m, 1h30m or 2d. Returns None when invalid."""
    text = text.strip().lower()
    if not text:
        return None
    position = 0
    seconds = 0.0
    for match in _DURATION_PART.finditer(text):
        if match.start() != position:
            return None
        seconds += float(match.group(1)) * _UNIT_SECONDS[match.group(2)]
        position = match.end()
    if position != len(text) or seconds <= 0:
        return None
    return timedelta(seconds=seconds)


class TailLogsTool:
    def __init__(
        self,
        resources: ResourceQuery,
        log_search: LogSearch,
        resolvers: LogGroupResolverRegistry | None = None,
    ) -> None:
        self._resources = resources
        self._log_search = log_search
        self._resolvers = resolvers or default_registry()

    @property
    def name(self) -> str:
        return "tail_logs"

    @property
    def description(self) -> str:
        return (
            "Fetch recent CloudWatch logs for an AWS resource. Automatically extracts log group "
            f"from resource configuration. Supported: {', '.join(self._resolvers.supported())}. "
            "NOTE: For ecs/services and ecs/tasks, cluster parameter is required."
        )

    @property
    def input_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "service": {"type": "string", "description": "AWS service name (e.g., lambda, ecs, codebuild)"},
                "resource_type": {
                    "type": "string",
                    "description": "Resource type (e.g., functions, services, tasks, task-definitions)",
                },
                "region": {"type": "string", "description": "AWS region (e.g., us-east-1, ap-northeast-1)"},
                "id": {"type": "string", "description": "Resource ID"},
                "cluster": {
                    "type": "string",
                    "description": "ECS cluster name (required for ecs/services and ecs/tasks)",
                },
                "profile": {
                    "type": "string",
                    "description": "AWS profile name (optional, uses current profile if not specified)",
                },
                "filter": {"type": "string", "description": "Optional filter pattern for log messages"},
                "since": {
                    "type": "string",
                    "description": f"Time range (e.g., 5m, 1h, 24h). Default: {DEFAULT_SINCE}",
                },
                "limit": {
                    "type": "integer",
                    "description": f"Maximum number of log events. Default: {DEFAULT_LIMIT}, max: {MAX_LIMIT}",
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

        limit = clamp_limit(get_int(tool_input, "limit", DEFAULT_LIMIT), default=DEFAULT_LIMIT, maximum=MAX_LIMIT)
        filter_pattern = get_str(tool_input, "filter") or None
        since_text = get_str(tool_input, "since") or DEFAULT_SINCE
        since = parse_since(since_text)
        if since is None:
            logger.debug(f"Invalid since value {since_text!r}; using {DEFAULT_SINCE}")
            since_text = DEFAULT_SINCE
            since = parse_since(DEFAULT_SINCE)

        scope = build_scope(tool_input, region)
        lookup = LogGroupLookup(resources=self._resources, scope=scope, cluster=cluster)
        try:
            log_group = await self._resolvers.resolve(lookup, service, resource_type, resource_id)
        except ToolError as ex:
            logger.warning(
                f"tail_logs log group resolution failed: service={service}, "
                f"resource_type={resource_type}, id={resource_id}, error={ex}"
            )
            raise type(ex)(f"extracting log group for {service}/{resource_type}/{resource_id}: {ex}") from ex

        start_time = datetime.now(UTC) - since
        try:
            events = await self._log_search.filter_events(
                log_group,
                region=region,
                profile=scope.profile,
                start_time=start_time,
                filter_pattern=filter_pattern,
                limit=limit,
            )
        except Exception as ex:
            raise CollaboratorError(f"fetching logs from {log_group}: {ex}") from ex

        if not events:
            return f"No logs found in {log_group} (since {since_text})"

        events = events[:limit]
        lines = [f"Logs from {log_group} ({len(events)} events):", ""]
        for event in events:
            message = event.message
            if len(message) > MAX_MESSAGE_CHARS:
                message = message[:MAX_MESSAGE_CHARS] + " ...[truncated]"
            lines.append(f"[{event.timestamp.astimezone().strftime('%H:%M:%S')}] {message}")
        return "\n".join(lines)
