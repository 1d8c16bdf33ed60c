import asyncio
import threading
import unittest

from claws_assistant.errors import StreamCancelled, StreamTransportError
from claws_assistant.providers.event_stream import EventStream
from claws_assistant.stream_events import DoneEvent, ErrorEvent, StopReason, TextEvent, ToolUseEvent
from tests.fakes import FakeBedrockStream, text_turn, tool_turn


async def _collect(stream: EventStream) -> list:
    async with stream:
        return [event async for event in stream]


class _RecordingFrames:
    """Frame iterator that records how far the producer has read."""

    def __init__(self, frames: list[dict]):
        self._frames = iter(frames)
        self.read = 0

    def __iter__(self):
        return self

    def __next__(self):
        frame = next(self._frames)
        self.read += 1
        return frame


class _FailingFrames:
    def __init__(self, frames: list[dict], error: Exception):
        self._frames = iter(frames)
        self._error = error

    def __iter__(self):
        return self

    def __next__(self):
        try:
            return next(self._frames)
        except StopIteration:
            raise self._error from None


class EventStreamTests(unittest.TestCase):
    def test_events_arrive_in_order_and_end_with_done(self) -> None:
        wire = FakeBedrockStream(text_turn("hello"))
        events = asyncio.run(_collect(EventStream(wire, on_close=wire.close)))

        self.assertEqual([TextEvent("hello"), DoneEvent(StopReason.END_TURN)], events)
        self.assertTrue(wire.closed)

    def test_tool_use_turn(self) -> None:
        events = asyncio.run(_collect(EventStream(tool_turn("t1", "list_resources", '{"service": "ec2"}'))))
        self.assertIsInstance(events[0], ToolUseEvent)
        self.assertEqual({"service": "ec2"}, events[0].tool_use.input)
        self.assertIsInstance(events[1], DoneEvent)

    def test_transport_failure_yields_single_error_and_releases(self) -> None:
        closed = []
        frames = _FailingFrames(text_turn("partial")[:2], ConnectionResetError("reset by peer"))
        events = asyncio.run(_collect(EventStream(frames, on_close=lambda: closed.append(True))))

        self.assertEqual(TextEvent("partial"), events[0])
        self.assertEqual(1, sum(isinstance(e, ErrorEvent) for e in events))
        self.assertIsInstance(events[-1], ErrorEvent)
        self.assertIsInstance(events[-1].error, StreamTransportError)
        self.assertIn("reset by peer", str(events[-1].error))
        self.assertEqual([True], closed)

    def test_stream_ending_without_message_stop_is_an_error(self) -> None:
        events = asyncio.run(_collect(EventStream(text_turn("cut")[:2])))
        self.assertIsInstance(events[-1], ErrorEvent)
        self.assertIn("before message stop", str(events[-1].error))

    def test_failed_stream_has_only_the_error(self) -> None:
        error = StreamTransportError("converse stream: AccessDenied")
        events = asyncio.run(_collect(EventStream.failed(error)))
        self.assertEqual([ErrorEvent(error)], events)

    def test_cancellation_is_observed_before_the_next_frame(self) -> None:
        async def scenario() -> list:
            cancel = asyncio.Event()
            frames = [{"contentBlockDelta": {"delta": {"text": f"{i} "}}} for i in range(50)]
            frames.append({"messageStop": {"stopReason": "end_turn"}})
            stream = EventStream(frames, cancel=cancel)
            events = []
            async with stream:
                async for event in stream:
                    events.append(event)
                    if len(events) == 2:
                        cancel.set()
            return events

        events = asyncio.run(scenario())
        self.assertIsInstance(events[-1], ErrorEvent)
        self.assertIsInstance(events[-1].error, StreamCancelled)
        self.assertEqual(1, sum(isinstance(e, ErrorEvent) for e in events))
        self.assertFalse(any(isinstance(e, DoneEvent) for e in events))
        self.assertLess(len(events), 50)

    def test_bounded_queue_applies_backpressure(self) -> None:
        async def scenario() -> tuple[int, list]:
            frames = [{"contentBlockDelta": {"delta": {"text": "x"}}} for _ in range(40)]
            frames.append({"messageStop": {"stopReason": "end_turn"}})
            recording = _RecordingFrames(frames)
            stream = EventStream(recording, capacity=3)
            async with stream:
                first = await stream.__anext__()
                for _ in range(20):
                    await asyncio.sleep(0.01)
                read_while_stalled = recording.read
                rest = [e async for e in stream]
            return read_while_stalled, [first, *rest]

        read_while_stalled, events = asyncio.run(scenario())
        # capacity 3, one consumed, one in flight in the producer
        self.assertLessEqual(read_while_stalled, 6)
        self.assertEqual(41, len(events))
        self.assertIsInstance(events[-1], DoneEvent)

    def test_early_close_stops_the_producer_and_releases(self) -> None:
        closed = threading.Event()

        async def scenario() -> None:
            frames = [{"contentBlockDelta": {"delta": {"text": "x"}}} for _ in range(100)]
            stream = EventStream(frames, on_close=closed.set, capacity=2)
            async with stream:
                await stream.__anext__()

        asyncio.run(scenario())
        self.assertTrue(closed.is_set())

    def test_close_errors_are_suppressed(self) -> None:
        def failing_close() -> None:
            raise OSError("already closed")

        events = asyncio.run(_collect(EventStream(text_turn("ok"), on_close=failing_close)))
        self.assertIsInstance(events[-1], DoneEvent)


if __name__ == "__main__":
    unittest.main()
