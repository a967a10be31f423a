"""
設定・Resource・シグナルごとの結果を固定書式で出力する。
"""

from __future__ import annotations

import sys
from typing import Protocol, TextIO

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import ReadableSpan

from domain.models import CounterSample, FlushOutcome, LogSample, SignalKind

from .resource_describer import ResourceDescriber

NOTEWORTHY_PROPERTY_NAMES = (
    "otel.resource.attributes",
    "otel.service.name",
    "otel.traces.exporter",
    "otel.metrics.exporter",
    "otel.logs.exporter",
    "otel.exporter.otlp.endpoint",
    "otel.exporter.otlp.traces.endpoint",
    "otel.exporter.otlp.metrics.endpoint",
    "otel.exporter.jaeger.endpoint",
    "otel.exporter.prometheus.port",
)

_SECTION_TITLES: dict[SignalKind, tuple[str, str]] = {
    SignalKind.TRACE: ("# Span", "## Export span"),
    SignalKind.METRIC: ("# Metric - Counter", "## Export metric"),
    SignalKind.LOG: ("# Log", "## Export log entry"),
}


class PropertySource(Protocol):
    def get_string(self, name: str) -> str | None: ...


class ReportPrinter:
    """
    行指向のテキストレポートを出力する。

    ``out`` を省略した場合は生成時点の ``sys.stdout`` に書き込む。
    """

    def __init__(self, out: TextIO | None = None, *, describer: ResourceDescriber | None = None) -> None:
        self._out = out if out is not None else sys.stdout
        self._describer = describer or ResourceDescriber()

    def print_configuration(self, config: PropertySource) -> None:
        self._line("## OpenTelemetry SDK noteworthy configuration")
        for key, value in noteworthy_properties(config):
            self._line(f"\t{key}: {value}")

    def print_resource(self, resource: Resource) -> None:
        self._line("## OpenTelemetry Resource")
        for key, value in self._describer.describe(resource):
            self._line(f"\t{key}: {value}")

    def print_signal_header(self, kind: SignalKind) -> None:
        self._line(_SECTION_TITLES[kind][0])

    def print_span(self, span: trace.Span) -> None:
        if isinstance(span, ReadableSpan):
            self._line(f"\tName: {span.name}")
        context = span.get_span_context()
        self._line(f"\tSpanId: {trace.format_span_id(context.span_id)}")
        self._line(f"\tTraceId: {trace.format_trace_id(context.trace_id)}")

    def print_counter(self, sample: CounterSample) -> None:
        self._line(f"\tInstrument: {sample.instrument_name}")
        self._line(f"\tValue: {sample.value}")

    def print_log(self, sample: LogSample) -> None:
        self._line(f"\tSeverity: {sample.severity}")
        self._line(f"\tBody: {sample.body}")

    def print_export_header(self, kind: SignalKind) -> None:
        """エクスポート見出しを出力し、待機に入る前にストリームをフラッシュする。"""

        self._line(_SECTION_TITLES[kind][1])
        self._out.flush()

    def print_outcome(self, outcome: FlushOutcome) -> None:
        self._line(f"\tOutcome: {outcome.describe()}")
        self._out.flush()

    def _line(self, text: str) -> None:
        self._out.write(text + "\n")


def noteworthy_properties(config: PropertySource) -> list[tuple[str, str]]:
    """許可リストのうち値を持つプロパティをキーのアルファベット順で返す。"""

    present: dict[str, str] = {}
    for name in NOTEWORTHY_PROPERTY_NAMES:
        value = config.get_string(name)
        if value is not None:
            present[name] = value
    return sorted(present.items())
