from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class ToolUseContent:
    id: str
    name: str
    input: dict[str, Any] = field(default_factory=dict)
    # Runtime-only: set when the streamed input fragments were not valid JSON.
    input_error: str | None = None

    def __post_init__(self) -> None:
        if self.input is None:
            object.__setattr__(self, "input", {})


@dataclass(frozen=True)
class ToolResultContent:
    tool_use_id: str
    content: str
    is_error: bool = False


@dataclass(frozen=True)
class ReasoningContent:
    text: str
    signature: str = ""


_BLOCK_KINDS = ("text", "tool_use", "tool_result", "reasoning")


@dataclass(frozen=True)
class ContentBlock:
    """One unit of message content. Exactly one variant is populated."""

    text: str | None = None
    tool_use: ToolUseContent | None = None
    tool_result: ToolResultContent | None = None
    reasoning: ReasoningContent | None = None

    def __post_init__(self) -> None:
        populated = [kind for kind in _BLOCK_KINDS if getattr(self, kind) is not None]
        if len(populated) != 1:
            raise ValueError(
                f"ContentBlock requires exactly one of {', '.join(_BLOCK_KINDS)}; got {populated or 'none'}"
            )

    @property
    def kind(self) -> str:
        for kind in _BLOCK_KINDS:
            if getattr(self, kind) is not None:
                return kind
        raise AssertionError("unreachable")

    @classmethod
    def of_text(cls, text: str) -> ContentBlock:
        return cls(text=text)

    @classmethod
    def of_tool_use(cls, tool_use: ToolUseContent) -> ContentBlock:
        return cls(tool_use=tool_use)

    @classmethod
    def of_tool_result(cls, result: ToolResultContent) -> ContentBlock:
        return cls(tool_result=result)

    @classmethod
    def of_reasoning(cls, text: str, signature: str = "") -> ContentBlock:
        return cls(reasoning=ReasoningContent(text=text, signature=signature))

    def to_dict(self) -> dict[str, Any]:
        """Session-file representation."""
        if self.text is not None:
            return {"text": self.text}
        if self.tool_use is not None:
            return {
                "toolUse": {
                    "toolUseId": self.tool_use.id,
                    "name": self.tool_use.name,
                    "input": self.tool_use.input,
                }
            }
        if self.tool_result is not None:
            data: dict[str, Any] = {
                "toolUseId": self.tool_result.tool_use_id,
                "content": self.tool_result.content,
            }
            if self.tool_result.is_error:
                data["isError"] = True
            return {"toolResult": data}
        assert self.reasoning is not None
        data = {"reasoning": self.reasoning.text}
        if self.reasoning.signature:
            data["reasoningSignature"] = self.reasoning.signature
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ContentBlock:
        if "toolUse" in data:
            raw = data["toolUse"]
            return cls(
                tool_use=ToolUseContent(
                    id=str(raw.get("toolUseId", "")),
                    name=str(raw.get("name", "")),
                    input=dict(raw.get("input") or {}),
                )
            )
        if "toolResult" in data:
            raw = data["toolResult"]
            return cls(
                tool_result=ToolResultContent(
                    tool_use_id=str(raw.get("toolUseId", "")),
                    content=str(raw.get("content", "")),
                    is_error=bool(raw.get("isError", False)),
                )
            )
        if "reasoning" in data:
            return cls.of_reasoning(str(data["reasoning"]), str(data.get("reasoningSignature", "")))
        if "text" in data:
            return cls(text=str(data["text"]))
        raise ValueError(f"Unrecognized content block: {sorted(data)}")


@dataclass(frozen=True)
class Message:
    role: Role
    content: tuple[ContentBlock, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "role", Role(self.role))
        object.__setattr__(self, "content", tuple(self.content))

    @property
    def tool_uses(self) -> list[ToolUseContent]:
        return [b.tool_use for b in self.content if b.tool_use is not None]

    @property
    def text(self) -> str:
        return "".join(b.text for b in self.content if b.text is not None)

    def to_dict(self) -> dict[str, Any]:
        return {"role": self.role.value, "content": [b.to_dict() for b in self.content]}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Message:
        return cls(
            role=Role(data["role"]),
            content=tuple(ContentBlock.from_dict(b) for b in data.get("content") or []),
        )


def user_message(text: str) -> Message:
    return Message(Role.USER, (ContentBlock.of_text(text),))


def assistant_message(*blocks: ContentBlock) -> Message:
    return Message(Role.ASSISTANT, blocks)


def tool_result_message(*results: ToolResultContent) -> Message:
    return Message(Role.USER, tuple(ContentBlock.of_tool_result(r) for r in results))
