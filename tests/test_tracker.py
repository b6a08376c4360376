"""Tests for the Tracker span lifecycle."""

import unittest

from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from opentelemetry.trace import SpanKind, StatusCode, get_current_span

from micro_otel.errors import RpcError
from micro_otel.response import RPC_STATUS_CODE_KEY, RpcCode
from micro_otel.rpc import Message, Request
from micro_otel.tracker import Tracker, TrackerState
from tests.conftest import make_provider


class TestTracker(unittest.TestCase):
    def setUp(self):
        self.exporter = InMemorySpanExporter()
        self.provider = make_provider(self.exporter)
        self.tracer = self.provider.get_tracer("test")

    def tearDown(self):
        self.provider.shutdown()

    def test_request_tracker_name_and_attributes(self):
        tracker = Tracker.for_request(Request("greeter", "Say.Hello"), self.tracer, SpanKind.CLIENT)
        self.assertEqual(tracker.name, "greeter.Say.Hello")
        self.assertEqual(tracker.attributes["rpc.service"], "greeter")
        self.assertEqual(tracker.attributes["rpc.method"], "Say.Hello")
        self.assertIs(tracker.state, TrackerState.CREATED)
        self.assertIsNone(tracker.span)

    def test_event_tracker_name(self):
        tracker = Tracker.for_event(Message("orders.created"), self.tracer, SpanKind.PRODUCER)
        self.assertEqual(tracker.name, "orders.created")
        self.assertEqual(tracker.attributes["messaging.destination.name"], "orders.created")

    def test_start_span_now_opens_child_of_active_span(self):
        with self.tracer.start_as_current_span("parent") as parent:
            tracker = Tracker(self.tracer, "op", SpanKind.CLIENT)
            ctx = tracker.start(start_span_now=True)
            self.assertIs(tracker.state, TrackerState.STARTED)
            self.assertIsNotNone(tracker.started_at_ns)
            self.assertIs(get_current_span(ctx), tracker.span)
            tracker.end()

        spans = {span.name: span for span in self.exporter.get_finished_spans()}
        self.assertEqual(spans["op"].parent.span_id, parent.get_span_context().span_id)
        self.assertEqual(spans["op"].kind, SpanKind.CLIENT)

    def test_deferred_span_opening(self):
        tracker = Tracker(self.tracer, "op", SpanKind.SERVER)
        tracker.start(start_span_now=False)
        self.assertIsNone(tracker.span)
        tracker.open_span(None)
        self.assertIsNotNone(tracker.span)
        with self.assertRaises(RuntimeError):
            tracker.open_span(None)
        tracker.end()
        self.assertEqual(len(self.exporter.get_finished_spans()), 1)

    def test_open_span_requires_start(self):
        tracker = Tracker(self.tracer, "op")
        with self.assertRaises(RuntimeError):
            tracker.open_span(None)

    def test_end_ok(self):
        tracker = Tracker(self.tracer, "op")
        tracker.start()
        tracker.end()
        (span,) = self.exporter.get_finished_spans()
        self.assertEqual(span.status.status_code, StatusCode.OK)
        self.assertNotIn("error", span.attributes)
        self.assertIs(tracker.state, TrackerState.ENDED)
        self.assertGreaterEqual(tracker.duration_ns, 0)

    def test_end_error(self):
        tracker = Tracker(self.tracer, "op")
        tracker.start()
        tracker.end(ValueError("boom"))
        (span,) = self.exporter.get_finished_spans()
        self.assertEqual(span.status.status_code, StatusCode.ERROR)
        self.assertEqual(span.attributes["error"], "boom")
        self.assertEqual(span.attributes[RPC_STATUS_CODE_KEY], int(RpcCode.UNKNOWN))
        self.assertEqual([event.name for event in span.events], ["error"])

    def test_end_without_error_events(self):
        tracker = Tracker(self.tracer, "op", record_error_events=False)
        tracker.start()
        tracker.end(ValueError("boom"))
        (span,) = self.exporter.get_finished_spans()
        self.assertEqual(len(span.events), 0)

    def test_end_with_rpc_error(self):
        tracker = Tracker(self.tracer, "op")
        tracker.start()
        tracker.end(RpcError("go.micro.client", "not found", code=404))
        (span,) = self.exporter.get_finished_spans()
        self.assertEqual(span.status.description, "go.micro.client: not found")
        self.assertEqual(span.attributes["error"], "not found")
        self.assertEqual(span.attributes[RPC_STATUS_CODE_KEY], int(RpcCode.NOT_FOUND))

    def test_end_without_span_is_noop(self):
        tracker = Tracker(self.tracer, "op")
        tracker.start(start_span_now=False)
        tracker.end(ValueError("ignored"))
        self.assertEqual(len(self.exporter.get_finished_spans()), 0)

        never_started = Tracker(self.tracer, "op")
        never_started.end()
        self.assertIs(never_started.state, TrackerState.ENDED)

    def test_end_closes_span_once(self):
        tracker = Tracker(self.tracer, "op")
        tracker.start()
        tracker.end()
        tracker.end(ValueError("late"))
        (span,) = self.exporter.get_finished_spans()
        self.assertEqual(span.status.status_code, StatusCode.OK)


if __name__ == "__main__":
    unittest.main()
