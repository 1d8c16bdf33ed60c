from __future__ import annotations

import asyncio
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from loguru import logger
from tenacity import retry

from claws_assistant.errors import StreamTransportError
from claws_assistant.messages import ContentBlock, Message
from claws_assistant.providers.common import default_retry_kwargs
from claws_assistant.providers.event_stream import DEFAULT_QUEUE_CAPACITY, EventStream
from claws_assistant.tool import Tool

# Extended reasoning is only requested for model ids in this family.
REASONING_MODEL_FAMILY = "anthropic.claude"
REASONING_BETA_FLAGS = ["interleaved-thinking-2025-05-14"]


def create_client(profile: str | None = None, region: str | None = None):
    session = boto3.Session(profile_name=profile or None, region_name=region or None)
    return session.client("bedrock-runtime")


def convert_tools(tools: list[Tool]) -> list[dict]:
    return [
        {
            "toolSpec": {
                "name": t.name,
                "description": t.description,
                "inputSchema": {"json": t.input_schema},
            }
        }
        for t in tools
    ]


def convert_content_block(block: ContentBlock) -> dict[str, Any]:
    if block.text is not None:
        return {"text": block.text}
    if block.tool_use is not None:
        return {
            "toolUse": {
                "toolUseId": block.tool_use.id,
                "name": block.tool_use.name,
                "input": block.tool_use.input,
            }
        }
    if block.tool_result is not None:
        return {
            "toolResult": {
                "toolUseId": block.tool_result.tool_use_id,
                "content": [{"text": block.tool_result.content}],
                "status": "error" if block.tool_result.is_error else "success",
            }
        }
    assert block.reasoning is not None
    reasoning_text: dict[str, str] = {"text": block.reasoning.text}
    if block.reasoning.signature:
        reasoning_text["signature"] = block.reasoning.signature
    return {"reasoningContent": {"reasoningText": reasoning_text}}


def convert_messages(messages: list[Message]) -> list[dict[str, Any]]:
    converted: list[dict[str, Any]] = []
    for m in messages:
        content = [convert_content_block(b) for b in m.content if b.text != ""]
        if not content:
            continue
        # Roles must alternate; a turn that failed leaves two user messages in a row.
        if converted and converted[-1]["role"] == m.role.value:
            converted[-1]["content"].extend(content)
        else:
            converted.append({"role": m.role.value, "content": content})
    return converted


class BedrockProvider:
    def __init__(
        self,
        client: Any,
        *,
        model_id: str,
        tools: list[Tool] | None = None,
        max_tokens: int = 0,
        thinking_budget: int = 0,
        temperature: float | None = None,
        queue_capacity: int = DEFAULT_QUEUE_CAPACITY,
    ):
        self._client = client
        self._model_id = model_id
        self._tools = list(tools or [])
        self._max_tokens = max_tokens
        self._thinking_budget = thinking_budget
        self._temperature = temperature
        self._queue_capacity = queue_capacity

    @property
    def model_id(self) -> str:
        return self._model_id

    @property
    def reasoning_enabled(self) -> bool:
        return self._thinking_budget > 0 and REASONING_MODEL_FAMILY in self._model_id

    def build_request(self, messages: list[Message], system_prompt: str = "") -> dict[str, Any]:
        logger.debug(
            f"Building request: model={self._model_id}, max_tokens={self._max_tokens}, "
            f"thinking_budget={self._thinking_budget}, messages={len(messages)}, tools={len(self._tools)}"
        )
        request: dict[str, Any] = {
            "modelId": self._model_id,
            "messages": convert_messages(messages),
        }

        if system_prompt:
            request["system"] = [{"text": system_prompt}]

        if self._tools:
            request["toolConfig"] = {"tools": convert_tools(self._tools)}

        inference: dict[str, Any] = {}
        if self._max_tokens > 0:
            inference["maxTokens"] = self._max_tokens
        if self._temperature is not None:
            inference["temperature"] = self._temperature

        if self.reasoning_enabled:
            request["additionalModelRequestFields"] = {
                "thinking": {"type": "enabled", "budget_tokens": self._thinking_budget},
                "anthropic_beta": list(REASONING_BETA_FLAGS),
            }
            # Extended reasoning requires temperature 1.0.
            inference["temperature"] = 1.0

        if inference:
            request["inferenceConfig"] = inference

        return request

    async def converse_stream(
        self,
        messages: list[Message],
        system_prompt: str = "",
        *,
        cancel: asyncio.Event | None = None,
    ) -> EventStream:
        """Open one streaming turn. Failures to open surface as the stream's only event."""
        request = self.build_request(messages, system_prompt)
        try:
            response = await asyncio.to_thread(self._open_stream, request)
        except (ClientError, BotoCoreError) as ex:
            logger.warning(f"converse_stream failed: {ex}")
            error = StreamTransportError(f"converse stream: {ex}")
            error.__cause__ = ex
            return EventStream.failed(error)

        stream = response["stream"]
        return EventStream(
            stream,
            cancel=cancel,
            on_close=getattr(stream, "close", None),
            capacity=self._queue_capacity,
        )

    @retry(**default_retry_kwargs())
    def _open_stream(self, request: dict[str, Any]) -> dict[str, Any]:
        logger.debug(f"API request: model={request['modelId']}, messages={len(request['messages'])}")
        return self._client.converse_stream(**request)
