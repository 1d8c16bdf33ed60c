from __future__ import annotations

from loguru import logger

from claws_assistant.errors import ClawsAssistantError
from claws_assistant.messages import ToolResultContent, ToolUseContent
from claws_assistant.providers.bedrock_provider import convert_tools
from claws_assistant.tool import Tool

DEFAULT_MAX_RESULT_CHARS = 40_000


class ToolExecutor:
    """Runs model-issued tool calls. Every call yields a result; none raise."""

    def __init__(self, tools: list[Tool], *, max_result_chars: int = DEFAULT_MAX_RESULT_CHARS) -> None:
        self._tools = list(tools)
        self._tool_map = {t.name: t for t in self._tools}
        self._max_result_chars = max_result_chars

    @property
    def tools(self) -> list[Tool]:
        return list(self._tools)

    def catalog(self) -> list[dict]:
        return convert_tools(self._tools)

    async def execute(self, call: ToolUseContent) -> ToolResultContent:
        if call.input_error:
            return self._error(call, f"Error: malformed tool input: {call.input_error}")

        tool = self._tool_map.get(call.name)
        if tool is None:
            return self._error(call, f"Unknown tool: {call.name}")

        logger.debug(f"Executing tool {call.name} ({call.id}) with input {call.input}")
        try:
            result = await tool.execute(call.input)
        except ClawsAssistantError as ex:
            logger.info(f"{call.name} returned an error: {ex}")
            return self._error(call, f"Error: {ex}")
        except Exception as ex:
            logger.exception(f"Unexpected failure executing {call.name}")
            return self._error(call, f'Error executing tool "{call.name}": {ex}')

        return ToolResultContent(
            tool_use_id=call.id,
            content=self._truncate_tool_result(result, call.name),
            is_error=False,
        )

    async def execute_all(self, calls: list[ToolUseContent]) -> list[ToolResultContent]:
        # Sequential, in emission order.
        return [await self.execute(call) for call in calls]

    def _error(self, call: ToolUseContent, content: str) -> ToolResultContent:
        return ToolResultContent(tool_use_id=call.id, content=content, is_error=True)

    def _truncate_tool_result(self, result: str, tool_name: str) -> str:
        if self._max_result_chars <= 0 or len(result) <= self._max_result_chars:
            return result

        original_length = len(result)
        truncated = result[: self._max_result_chars]
        message = (
            f"\n\n[OUTPUT TRUNCATED: Showing {self._max_result_chars:,} "
            f"of {original_length:,} characters from {tool_name}]"
        )
        logger.warning(
            f"{tool_name} output truncated from {original_length:,} "
            f"to {self._max_result_chars:,} chars"
        )
        return truncated + message
