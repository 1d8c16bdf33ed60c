from __future__ import annotations

import json
from typing import Any

from loguru import logger

from claws_assistant.messages import ToolUseContent
from claws_assistant.stream_events import (
    DoneEvent,
    StopReason,
    StreamEvent,
    TextEvent,
    ThinkingCompleteEvent,
    ThinkingEvent,
    ToolUseEvent,
)


class StreamDecoder:
    """Turns ConverseStream frames into stream events for a single turn.

    Text and reasoning deltas are emitted as they arrive. Tool-use input arrives
    as raw JSON fragments and is only emitted, once, when its block closes.
    """

    def __init__(self) -> None:
        self._tool_id: str | None = None
        self._tool_name: str = ""
        self._tool_input_buffer: list[str] = []
        self._thinking_text: list[str] = []
        self._thinking_signature = ""
        self._in_thinking_block = False
        self._done = False

    @property
    def done(self) -> bool:
        return self._done

    def feed(self, frame: dict[str, Any]) -> list[StreamEvent]:
        if self._done:
            logger.debug(f"Ignoring frame after message stop: {sorted(frame)}")
            return []

        if "contentBlockStart" in frame:
            self._on_block_start(frame["contentBlockStart"])
            return []
        if "contentBlockDelta" in frame:
            return self._on_block_delta(frame["contentBlockDelta"])
        if "contentBlockStop" in frame:
            return self._on_block_stop()
        if "messageStop" in frame:
            self._done = True
            return [DoneEvent(StopReason.from_wire(frame["messageStop"].get("stopReason")))]
        if "metadata" in frame:
            usage = frame["metadata"].get("usage") or {}
            logger.debug(
                f"API response: input_tokens={usage.get('inputTokens')}, "
                f"output_tokens={usage.get('outputTokens')}"
            )
        return []

    def _on_block_start(self, payload: dict[str, Any]) -> None:
        tool_use = (payload.get("start") or {}).get("toolUse")
        if tool_use is not None:
            self._tool_id = str(tool_use.get("toolUseId", ""))
            self._tool_name = str(tool_use.get("name", ""))
            self._tool_input_buffer = []

    def _on_block_delta(self, payload: dict[str, Any]) -> list[StreamEvent]:
        delta = payload.get("delta") or {}

        if "text" in delta:
            return [TextEvent(delta["text"])]

        if "reasoningContent" in delta:
            self._in_thinking_block = True
            reasoning = delta["reasoningContent"]
            if "text" in reasoning:
                self._thinking_text.append(reasoning["text"])
                return [ThinkingEvent(reasoning["text"])]
            if "signature" in reasoning:
                self._thinking_signature = reasoning["signature"]
            # redactedContent is dropped
            return []

        if "toolUse" in delta and self._tool_id is not None:
            self._tool_input_buffer.append(delta["toolUse"].get("input", ""))

        return []

    def _on_block_stop(self) -> list[StreamEvent]:
        events: list[StreamEvent] = []

        if self._tool_id is not None:
            events.append(ToolUseEvent(self._finish_tool_use()))

        if self._in_thinking_block:
            events.append(ThinkingCompleteEvent("".join(self._thinking_text), self._thinking_signature))
            self._thinking_text = []
            self._thinking_signature = ""
            self._in_thinking_block = False

        return events

    def _finish_tool_use(self) -> ToolUseContent:
        raw = "".join(self._tool_input_buffer)
        tool_id, name = self._tool_id or "", self._tool_name
        self._tool_id = None
        self._tool_name = ""
        self._tool_input_buffer = []

        # Tools without arguments may close without sending any input fragment.
        if not raw.strip():
            return ToolUseContent(id=tool_id, name=name, input={})

        try:
            parsed = json.loads(raw)
            if not isinstance(parsed, dict):
                raise ValueError(f"expected a JSON object, got {type(parsed).__name__}")
        except ValueError as ex:
            logger.debug(f"Failed to parse tool input JSON for {name}: {ex}")
            return ToolUseContent(id=tool_id, name=name, input={}, input_error=str(ex))

        return ToolUseContent(id=tool_id, name=name, input=parsed)
