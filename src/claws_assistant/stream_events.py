from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union

from loguru import logger

from claws_assistant.messages import ToolUseContent


class StopReason(str, Enum):
    END_TURN = "end_turn"
    TOOL_USE = "tool_use"
    MAX_TOKENS = "max_tokens"

    @classmethod
    def from_wire(cls, value: str | None) -> StopReason:
        # Anything else (content_filtered, guardrail_intervened, stop_sequence, ...)
        # is treated as a normal end of turn.
        try:
            return cls(value)
        except ValueError:
            logger.debug(f"Normalizing unrecognized stop reason {value!r} to end_turn")
            return cls.END_TURN


@dataclass(frozen=True)
class TextEvent:
    delta: str


@dataclass(frozen=True)
class ThinkingEvent:
    text: str


@dataclass(frozen=True)
class ThinkingCompleteEvent:
    text: str
    signature: str


@dataclass(frozen=True)
class ToolUseEvent:
    tool_use: ToolUseContent


@dataclass(frozen=True)
class DoneEvent:
    stop_reason: StopReason


@dataclass(frozen=True)
class ErrorEvent:
    error: Exception


StreamEvent = Union[TextEvent, ThinkingEvent, ThinkingCompleteEvent, ToolUseEvent, DoneEvent, ErrorEvent]

TERMINAL_EVENTS = (DoneEvent, ErrorEvent)
