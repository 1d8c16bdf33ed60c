from typing import Any

import httpx

from claws_assistant.errors import CollaboratorError
from claws_assistant.tools.docs_search_provider import DocsSearchProvider
from claws_assistant.tools.params import require_str

MAX_RESULTS = 5
MAX_QUERY_CHARS = 400


class SearchDocsTool:
    def __init__(self, provider: DocsSearchProvider) -> None:
        self._provider = provider

    @property
    def name(self) -> str:
        return "search_aws_docs"

    @property
    def description(self) -> str:
        return "Search AWS documentation for information"

    @property
    def input_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": "Search query for AWS documentation",
                },
            },
            "required": ["query"],
        }

    async def execute(self, tool_input: dict[str, Any]) -> str:
        query = require_str(tool_input, "query")[:MAX_QUERY_CHARS]

        try:
            results = await self._provider.search(query)
        except httpx.TimeoutException as ex:
            raise CollaboratorError("documentation search timed out") from ex
        except httpx.HTTPStatusError as ex:
            raise CollaboratorError(str(ex)) from ex
        except httpx.HTTPError as ex:
            raise CollaboratorError(f"searching documentation: {ex}") from ex
        except ValueError as ex:
            raise CollaboratorError(f"parsing response: {ex}") from ex

        if not results:
            return f"No documentation found for: {query}"

        lines = [f"AWS Documentation results for '{query}':", ""]
        for i, result in enumerate(results[:MAX_RESULTS], 1):
            lines.append(f"{i}. {result.title}")
            lines.append(f"   URL: {result.url}")
            if result.abstract:
                lines.append(f"   {result.abstract}")
            lines.append("")

        return "\n".join(lines).rstrip()
