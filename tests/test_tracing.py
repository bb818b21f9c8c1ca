from __future__ import annotations

import pytest
from loguru import logger

from algae import HandlerChain, Reply, drive
from algae.tracing import TraceEntry, TracingHandler
from tests.effects import Info, Print, ReadLine, greet, logged_greet


@pytest.fixture
def trace_records():
    records = []
    sink_id = logger.add(
        lambda message: records.append(message.record),
        level="DEBUG",
        filter=lambda record: record["extra"].get("component") == "algae.trace",
    )
    yield records
    logger.remove(sink_id)


class TestTracingHandler:
    def test_records_answered_operations(self, console):
        tracer = TracingHandler(console, label="console")
        assert drive(greet(), tracer) == "Hello, Alice!"

        assert tracer.entries == [
            TraceEntry(1, Print("What's your name?"), handled=True, value=None),
            TraceEntry(2, ReadLine(), handled=True, value="Alice"),
        ]
        assert tracer.operations == [Print("What's your name?"), ReadLine()]

    def test_records_declined_operations(self, console, log):
        console_trace = TracingHandler(console, label="console")
        chain = HandlerChain([console_trace, log])
        drive(logged_greet(), chain)

        declined = [entry.operation for entry in console_trace.entries if not entry.handled]
        assert declined == [Info("starting"), Info("done")]
        assert len(console_trace.operations) == 2

    def test_reply_values_are_summarised(self):
        tracer = TracingHandler(lambda op: Reply.of("Alice"))
        tracer.handle(ReadLine())
        assert tracer.entries[0].value == "<reply str>"

    def test_default_label_is_handler_type(self, console):
        assert TracingHandler(console).label == "ConsoleHandler"

    def test_logs_through_loguru(self, console, trace_records):
        tracer = TracingHandler(console, label="console")
        drive(greet(), tracer)

        messages = [record["message"] for record in trace_records]
        assert messages == [
            "[console] #1 Console.Print -> None",
            "[console] #2 Console.ReadLine -> 'Alice'",
        ]
        assert all(record["level"].name == "DEBUG" for record in trace_records)

    def test_clear(self, console):
        tracer = TracingHandler(console)
        drive(greet(), tracer)
        tracer.clear()
        assert tracer.entries == []
