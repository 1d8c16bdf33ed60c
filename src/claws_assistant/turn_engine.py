from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field

from loguru import logger

from claws_assistant.messages import (
    ContentBlock,
    ToolResultContent,
    ToolUseContent,
    assistant_message,
    tool_result_message,
    user_message,
)
from claws_assistant.providers.bedrock_provider import BedrockProvider
from claws_assistant.sessions.models import Session
from claws_assistant.sessions.session_manager import SessionManager
from claws_assistant.stream_events import (
    DoneEvent,
    ErrorEvent,
    StopReason,
    TextEvent,
    ThinkingCompleteEvent,
    ThinkingEvent,
    ToolUseEvent,
)
from claws_assistant.tool_executor import ToolExecutor

DEFAULT_MAX_TOOL_ROUNDS = 15
DEFAULT_MAX_TOOL_CALLS_PER_QUERY = 50
DEFAULT_MAX_TOKENS_RETRIES = 3

MAX_TOKENS_CONTINUE_PROMPT = (
    "Your response was cut off because it exceeded the token limit. "
    "Please continue, but be more concise."
)


@dataclass
class TurnResult:
    text: str = ""
    stop_reason: StopReason | None = None
    error: Exception | None = None
    tool_rounds: int = 0
    tool_calls: int = 0
    limit_reached: bool = False


@dataclass
class _StreamedTurn:
    text_parts: list[str] = field(default_factory=list)
    tool_uses: list[ToolUseContent] = field(default_factory=list)
    stop_reason: StopReason | None = None
    error: Exception | None = None
    _blocks: list[ContentBlock] = field(default_factory=list)
    _open_text: list[str] = field(default_factory=list)

    @property
    def text(self) -> str:
        return "".join(self.text_parts)

    def add_text(self, delta: str) -> None:
        self.text_parts.append(delta)
        self._open_text.append(delta)

    def add_reasoning(self, event: ThinkingCompleteEvent) -> None:
        self._close_text()
        self._blocks.append(ContentBlock.of_reasoning(event.text, event.signature))

    def add_tool_use(self, tool_use: ToolUseContent) -> None:
        self._close_text()
        self.tool_uses.append(tool_use)
        self._blocks.append(ContentBlock.of_tool_use(tool_use))

    def blocks(self) -> list[ContentBlock]:
        """Content blocks in the order they arrived on the wire."""
        self._close_text()
        return list(self._blocks)

    def _close_text(self) -> None:
        text = "".join(self._open_text)
        self._open_text.clear()
        if text:
            self._blocks.append(ContentBlock.of_text(text))


class TurnEngine:
    """Runs one user query to completion: stream, execute tools, repeat."""

    def __init__(
        self,
        *,
        provider: BedrockProvider,
        executor: ToolExecutor,
        sessions: SessionManager,
        system_prompt: str,
        max_tool_rounds: int = DEFAULT_MAX_TOOL_ROUNDS,
        max_tool_calls_per_query: int = DEFAULT_MAX_TOOL_CALLS_PER_QUERY,
        max_tokens_retries: int = DEFAULT_MAX_TOKENS_RETRIES,
        on_text: Callable[[str], None] | None = None,
        on_thinking: Callable[[str], None] | None = None,
        on_tool_started: Callable[[str, str], None] | None = None,
        on_tool_completed: Callable[[str, str, bool], None] | None = None,
    ) -> None:
        self._provider = provider
        self._executor = executor
        self._sessions = sessions
        self._system_prompt = system_prompt
        self._max_tool_rounds = max_tool_rounds
        self._max_tool_calls_per_query = max_tool_calls_per_query
        self._max_tokens_retries = max_tokens_retries
        self._on_text = on_text
        self._on_thinking = on_thinking
        self._on_tool_started = on_tool_started
        self._on_tool_completed = on_tool_completed

    @property
    def system_prompt(self) -> str:
        return self._system_prompt

    @system_prompt.setter
    def system_prompt(self, value: str) -> None:
        self._system_prompt = value

    async def run(self, session: Session, user_text: str, *, cancel: asyncio.Event | None = None) -> TurnResult:
        result = TurnResult()
        self._sessions.add_message(session, user_message(user_text))
        max_tokens_attempts = 0

        while True:
            turn = await self._stream_turn(session, cancel)
            if turn.error is not None:
                # Partial output of a failed turn is not recorded.
                logger.warning(f"Turn failed in session {session.id}: {turn.error}")
                result.error = turn.error
                return result

            blocks = turn.blocks()
            if blocks:
                self._sessions.add_message(session, assistant_message(*blocks))
            result.text = turn.text
            result.stop_reason = turn.stop_reason

            if turn.stop_reason == StopReason.MAX_TOKENS and not turn.tool_uses:
                max_tokens_attempts += 1
                if max_tokens_attempts >= self._max_tokens_retries:
                    logger.warning(f"Response exceeded max tokens {max_tokens_attempts} times in a row")
                    result.limit_reached = True
                    return result
                self._sessions.add_message(session, user_message(MAX_TOKENS_CONTINUE_PROMPT))
                continue
            max_tokens_attempts = 0

            if not turn.tool_uses:
                return result

            if result.tool_rounds >= self._max_tool_rounds:
                logger.warning(f"Stopping after {self._max_tool_rounds} tool rounds")
                self._answer_unexecuted(session, turn.tool_uses, "tool round limit reached")
                result.limit_reached = True
                return result

            result.tool_rounds += 1
            results = await self._execute_tools(turn.tool_uses, result)
            # Calls past the per-query budget carry error results.
            self._sessions.add_message(session, tool_result_message(*results))

    async def _stream_turn(self, session: Session, cancel: asyncio.Event | None) -> _StreamedTurn:
        turn = _StreamedTurn()
        stream = await self._provider.converse_stream(session.messages, self._system_prompt, cancel=cancel)
        async with stream:
            async for event in stream:
                if isinstance(event, TextEvent):
                    turn.add_text(event.delta)
                    if self._on_text:
                        self._on_text(event.delta)
                elif isinstance(event, ThinkingEvent):
                    if self._on_thinking:
                        self._on_thinking(event.text)
                elif isinstance(event, ThinkingCompleteEvent):
                    turn.add_reasoning(event)
                elif isinstance(event, ToolUseEvent):
                    turn.add_tool_use(event.tool_use)
                elif isinstance(event, DoneEvent):
                    turn.stop_reason = event.stop_reason
                elif isinstance(event, ErrorEvent):
                    turn.error = event.error
        return turn

    async def _execute_tools(self, calls: list[ToolUseContent], result: TurnResult) -> list[ToolResultContent]:
        results: list[ToolResultContent] = []
        for call in calls:
            if result.tool_calls >= self._max_tool_calls_per_query:
                result.limit_reached = True
                results.append(
                    ToolResultContent(
                        tool_use_id=call.id,
                        content=f"Error: tool call limit reached ({self._max_tool_calls_per_query} per query)",
                        is_error=True,
                    )
                )
                continue

            result.tool_calls += 1
            if self._on_tool_started:
                self._on_tool_started(call.id, call.name)
            tool_result = await self._executor.execute(call)
            if self._on_tool_completed:
                self._on_tool_completed(call.id, call.name, tool_result.is_error)
            results.append(tool_result)
        return results

    def _answer_unexecuted(self, session: Session, calls: list[ToolUseContent], reason: str) -> None:
        results = [ToolResultContent(tool_use_id=c.id, content=f"Error: {reason}", is_error=True) for c in calls]
        self._sessions.add_message(session, tool_result_message(*results))
