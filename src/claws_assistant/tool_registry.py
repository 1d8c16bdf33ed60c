from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from claws_assistant.collaborators import ResourceQuery
from claws_assistant.tool import Tool
from claws_assistant.tools.docs_search_provider import DocsSearchProvider
from claws_assistant.tools.get_resource_detail_tool import GetResourceDetailTool
from claws_assistant.tools.list_resources_tool import ListResourcesTool
from claws_assistant.tools.log_search import LogSearch
from claws_assistant.tools.query_resources_tool import QueryResourcesTool


@dataclass(frozen=True)
class ToolGroup:
    enabled: Callable[[dict], bool]
    build: Callable[[dict], list[Tool]]


def _always(_: dict) -> bool:
    return True


def _resource_tools(ctx: dict) -> list[Tool]:
    resources = ctx["resources"]
    return [
        ListResourcesTool(resources),
        QueryResourcesTool(resources),
        GetResourceDetailTool(resources),
    ]


def _logs_enabled(ctx: dict) -> bool:
    return ctx.get("log_search") is not None


def _logs_tools(ctx: dict) -> list[Tool]:
    from claws_assistant.tools.tail_logs_tool import TailLogsTool

    return [TailLogsTool(ctx["resources"], ctx["log_search"])]


def _docs_enabled(ctx: dict) -> bool:
    return ctx.get("docs_search") is not None


def _docs_tools(ctx: dict) -> list[Tool]:
    from claws_assistant.tools.search_docs_tool import SearchDocsTool

    return [SearchDocsTool(ctx["docs_search"])]


_GROUPS = [
    ToolGroup(enabled=_always, build=_resource_tools),
    ToolGroup(enabled=_logs_enabled, build=_logs_tools),
    ToolGroup(enabled=_docs_enabled, build=_docs_tools),
]


def get_all(
    resources: ResourceQuery,
    log_search: LogSearch | None = None,
    docs_search: DocsSearchProvider | None = None,
) -> list[Tool]:
    ctx = {
        "resources": resources,
        "log_search": log_search,
        "docs_search": docs_search,
    }

    tools: list[Tool] = []
    for group in _GROUPS:
        if group.enabled(ctx):
            tools.extend(group.build(ctx))
    return tools
