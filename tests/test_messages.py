import unittest

from claws_assistant.messages import (
    ContentBlock,
    Message,
    ReasoningContent,
    Role,
    ToolResultContent,
    ToolUseContent,
    assistant_message,
    tool_result_message,
    user_message,
)
from claws_assistant.stream_events import StopReason


class ContentBlockTests(unittest.TestCase):
    def test_exactly_one_variant_is_required(self) -> None:
        with self.assertRaises(ValueError):
            ContentBlock()
        with self.assertRaises(ValueError):
            ContentBlock(text="a", reasoning=ReasoningContent("b"))

    def test_kind_reports_populated_variant(self) -> None:
        self.assertEqual("text", ContentBlock.of_text("hi").kind)
        self.assertEqual("tool_use", ContentBlock.of_tool_use(ToolUseContent("t1", "x")).kind)
        self.assertEqual("tool_result", ContentBlock.of_tool_result(ToolResultContent("t1", "ok")).kind)
        self.assertEqual("reasoning", ContentBlock.of_reasoning("think", "sig").kind)

    def test_empty_text_is_still_a_text_block(self) -> None:
        self.assertEqual("text", ContentBlock(text="").kind)

    def test_tool_use_input_is_never_none(self) -> None:
        self.assertEqual({}, ToolUseContent("t1", "x", input=None).input)

    def test_session_format(self) -> None:
        self.assertEqual(
            {"toolUse": {"toolUseId": "t1", "name": "query_resources", "input": {"service": "ec2"}}},
            ContentBlock.of_tool_use(ToolUseContent("t1", "query_resources", {"service": "ec2"})).to_dict(),
        )
        self.assertEqual(
            {"toolResult": {"toolUseId": "t1", "content": "boom", "isError": True}},
            ContentBlock.of_tool_result(ToolResultContent("t1", "boom", is_error=True)).to_dict(),
        )
        self.assertEqual(
            {"toolResult": {"toolUseId": "t1", "content": "ok"}},
            ContentBlock.of_tool_result(ToolResultContent("t1", "ok")).to_dict(),
        )
        self.assertEqual(
            {"reasoning": "hmm", "reasoningSignature": "sig"},
            ContentBlock.of_reasoning("hmm", "sig").to_dict(),
        )

    def test_input_error_is_not_persisted(self) -> None:
        block = ContentBlock.of_tool_use(ToolUseContent("t1", "x", input_error="bad json"))
        restored = ContentBlock.from_dict(block.to_dict())
        self.assertIsNone(restored.tool_use.input_error)
        self.assertEqual({}, restored.tool_use.input)

    def test_unknown_block_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            ContentBlock.from_dict({"image": {}})


class MessageTests(unittest.TestCase):
    def test_helpers(self) -> None:
        self.assertEqual(Role.USER, user_message("hi").role)
        self.assertEqual("hi", user_message("hi").text)

        call = ToolUseContent("t1", "list_resources", {"service": "ec2"})
        msg = assistant_message(ContentBlock.of_text("Looking"), ContentBlock.of_tool_use(call))
        self.assertEqual(Role.ASSISTANT, msg.role)
        self.assertEqual([call], msg.tool_uses)

        results = tool_result_message(ToolResultContent("t1", "a"), ToolResultContent("t2", "b"))
        self.assertEqual(Role.USER, results.role)
        self.assertEqual(["tool_result", "tool_result"], [b.kind for b in results.content])

    def test_round_trip_preserves_order_and_signature(self) -> None:
        msg = assistant_message(
            ContentBlock.of_reasoning("plan", "sig-1"),
            ContentBlock.of_text("answer"),
            ContentBlock.of_tool_use(ToolUseContent("t1", "tail_logs", {"id": "fn"})),
        )
        self.assertEqual(msg, Message.from_dict(msg.to_dict()))

    def test_messages_are_immutable(self) -> None:
        msg = user_message("hi")
        with self.assertRaises(AttributeError):
            msg.role = Role.ASSISTANT  # type: ignore[misc]


class StopReasonTests(unittest.TestCase):
    def test_known_values(self) -> None:
        self.assertEqual(StopReason.TOOL_USE, StopReason.from_wire("tool_use"))
        self.assertEqual(StopReason.MAX_TOKENS, StopReason.from_wire("max_tokens"))

    def test_unknown_values_normalize_to_end_turn(self) -> None:
        for value in ("content_filtered", "guardrail_intervened", "stop_sequence", None):
            self.assertEqual(StopReason.END_TURN, StopReason.from_wire(value))


if __name__ == "__main__":
    unittest.main()
