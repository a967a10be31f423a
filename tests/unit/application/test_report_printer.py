from __future__ import annotations

import io
from types import SimpleNamespace

from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider

from application.services.report_printer import ReportPrinter, noteworthy_properties
from application.services.resource_describer import NULL_PLACEHOLDER, ResourceDescriber
from domain.models import CounterSample, FlushOutcome, LogSample, SignalKind


class _DictProperties:
    def __init__(self, values: dict[str, str]) -> None:
        self._values = values

    def get_string(self, name: str) -> str | None:
        return self._values.get(name)


def _lines(buffer: io.StringIO) -> list[str]:
    return buffer.getvalue().splitlines()


def test_configuration_lists_noteworthy_keys_in_sorted_order() -> None:
    buffer = io.StringIO()
    properties = _DictProperties(
        {
            "otel.traces.exporter": "otlp",
            "otel.service.name": "otlp-test-cli",
            "otel.exporter.otlp.endpoint": "http://collector:4317",
            "otel.exporter.otlp.headers": "Authorization=Basic c2VjcmV0",
            "otel.logs.exporter": "otlp",
        }
    )

    ReportPrinter(buffer).print_configuration(properties)

    assert _lines(buffer) == [
        "## OpenTelemetry SDK noteworthy configuration",
        "\totel.exporter.otlp.endpoint: http://collector:4317",
        "\totel.logs.exporter: otlp",
        "\totel.service.name: otlp-test-cli",
        "\totel.traces.exporter: otlp",
    ]


def test_noteworthy_properties_skips_absent_keys() -> None:
    assert noteworthy_properties(_DictProperties({})) == []


def test_resource_section_renders_every_attribute() -> None:
    buffer = io.StringIO()
    resource = Resource({"service.name": "otlp-test-cli", "host.ports": (4317, 4318)})

    ReportPrinter(buffer).print_resource(resource)

    assert _lines(buffer) == [
        "## OpenTelemetry Resource",
        "\tservice.name: otlp-test-cli",
        "\thost.ports: [4317, 4318]",
    ]


def test_resource_describer_uses_placeholder_for_missing_values() -> None:
    fake_resource = SimpleNamespace(attributes={"a": None, "b": ["x", None]})

    described = ResourceDescriber().describe(fake_resource)  # type: ignore[arg-type]

    assert described == [("a", NULL_PLACEHOLDER), ("b", f"[x, {NULL_PLACEHOLDER}]")]


def test_signal_sections_and_outcomes() -> None:
    buffer = io.StringIO()
    printer = ReportPrinter(buffer)

    printer.print_signal_header(SignalKind.METRIC)
    printer.print_counter(CounterSample(instrument_name="otlptestcli.testcounter", value=1))
    printer.print_export_header(SignalKind.METRIC)
    printer.print_outcome(FlushOutcome.success())
    printer.print_signal_header(SignalKind.LOG)
    printer.print_log(LogSample(severity="WARN", body="hello", timestamp_ns=1))
    printer.print_export_header(SignalKind.LOG)
    printer.print_outcome(FlushOutcome.error(RuntimeError("UNAVAILABLE")))

    assert _lines(buffer) == [
        "# Metric - Counter",
        "\tInstrument: otlptestcli.testcounter",
        "\tValue: 1",
        "## Export metric",
        "\tOutcome: Success",
        "# Log",
        "\tSeverity: WARN",
        "\tBody: hello",
        "## Export log entry",
        "\tOutcome: Error (UNAVAILABLE)",
    ]


def test_span_section_prints_hex_identifiers() -> None:
    buffer = io.StringIO()
    tracer = TracerProvider(shutdown_on_exit=False).get_tracer("tests.report_printer")
    span = tracer.start_span("test span")
    span.end()

    ReportPrinter(buffer).print_span(span)

    context = span.get_span_context()
    assert _lines(buffer) == [
        "\tName: test span",
        f"\tSpanId: {context.span_id:016x}",
        f"\tTraceId: {context.trace_id:032x}",
    ]
