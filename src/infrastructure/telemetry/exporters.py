"""
OTLP エクスポータの設定解決と生成。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Protocol, Sequence
from urllib.parse import urlparse

import grpc
from opentelemetry.exporter.otlp.proto.grpc._log_exporter import OTLPLogExporter as GrpcLogExporter
from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter as GrpcMetricExporter
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter as GrpcSpanExporter
from opentelemetry.exporter.otlp.proto.http import Compression as HttpCompression
from opentelemetry.exporter.otlp.proto.http._log_exporter import OTLPLogExporter as HttpLogExporter
from opentelemetry.exporter.otlp.proto.http.metric_exporter import OTLPMetricExporter as HttpMetricExporter
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter as HttpSpanExporter
from opentelemetry.sdk._logs import LogData
from opentelemetry.sdk._logs.export import LogExporter, LogExportResult
from opentelemetry.sdk.metrics.export import MetricExporter, MetricExportResult, MetricsData
from opentelemetry.sdk.trace import ReadableSpan
from opentelemetry.sdk.trace.export import SpanExporter, SpanExportResult

from domain.exceptions import ConfigurationError, FlushError
from domain.models import SignalKind

from .config_properties import ConfigProperties

PROTOCOL_GRPC = "grpc"
PROTOCOL_HTTP_PROTOBUF = "http/protobuf"
DEFAULT_PROTOCOL = PROTOCOL_GRPC
DEFAULT_GRPC_ENDPOINT = "http://localhost:4317"
DEFAULT_HTTP_ENDPOINT = "http://localhost:4318"
DEFAULT_TIMEOUT_MILLIS = 10_000
SUPPORTED_COMPRESSIONS = ("gzip", "none")

SIGNAL_PATHS: Mapping[SignalKind, str] = {
    SignalKind.TRACE: "traces",
    SignalKind.METRIC: "metrics",
    SignalKind.LOG: "logs",
}


@dataclass(frozen=True)
class OtlpExporterSettings:
    """
    シグナル 1 種別分の OTLP エクスポータ設定。

    Attributes:
        signal: 対象シグナル。
        protocol: OTLP プロトコル。未対応の値もそのまま保持する。
        endpoint: 送信先 URL。
        headers: 追加ヘッダ。
        timeout_millis: 1 回のエクスポートのタイムアウト（ミリ秒）。
        compression: ``gzip`` / ``none``。未指定なら None。
    """

    signal: SignalKind
    protocol: str
    endpoint: str
    headers: Mapping[str, str] = field(default_factory=dict)
    timeout_millis: int = DEFAULT_TIMEOUT_MILLIS
    compression: str | None = None

    @property
    def insecure(self) -> bool:
        return urlparse(self.endpoint).scheme == "http"

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_millis / 1000.0


def resolve_otlp_settings(properties: ConfigProperties, signal: SignalKind) -> OtlpExporterSettings:
    """
    シグナル固有プロパティ -> 共通プロパティ -> 既定値の順で設定を解決する。

    Raises:
        ConfigurationError: endpoint・timeout・compression・headers が不正な場合。
    """

    path = SIGNAL_PATHS[signal]
    prefix = f"otel.exporter.otlp.{path}"

    protocol = (
        properties.get_string(f"{prefix}.protocol")
        or properties.get_string("otel.exporter.otlp.protocol")
        or DEFAULT_PROTOCOL
    )

    endpoint = properties.get_string(f"{prefix}.endpoint")
    if endpoint is None:
        base = properties.get_string("otel.exporter.otlp.endpoint")
        if base is None:
            base = DEFAULT_GRPC_ENDPOINT if protocol == PROTOCOL_GRPC else DEFAULT_HTTP_ENDPOINT
        endpoint = base if protocol == PROTOCOL_GRPC else f"{base.rstrip('/')}/v1/{path}"
    _validate_endpoint(endpoint)

    headers = properties.get_map("otel.exporter.otlp.headers")
    headers.update(properties.get_map(f"{prefix}.headers"))

    timeout_millis = properties.get_int(
        f"{prefix}.timeout",
        properties.get_int("otel.exporter.otlp.timeout", DEFAULT_TIMEOUT_MILLIS),
    )
    if timeout_millis <= 0:
        raise ConfigurationError(f"{prefix}.timeout は正の値である必要があります: {timeout_millis}")

    compression = properties.get_string(f"{prefix}.compression") or properties.get_string(
        "otel.exporter.otlp.compression"
    )
    if compression is not None:
        compression = compression.lower()
        if compression not in SUPPORTED_COMPRESSIONS:
            raise ConfigurationError(f"未対応の OTLP compression '{compression}' が指定されました。")

    return OtlpExporterSettings(
        signal=signal,
        protocol=protocol,
        endpoint=endpoint,
        headers=headers,
        timeout_millis=timeout_millis,
        compression=compression,
    )


def _validate_endpoint(endpoint: str) -> None:
    try:
        parsed = urlparse(endpoint)
        # ポート番号の範囲外もここで ValueError になる。
        port = parsed.port
    except ValueError as exc:
        raise ConfigurationError(f"OTLP endpoint '{endpoint}' を URL として解釈できません。") from exc
    if parsed.scheme not in ("http", "https") or not parsed.hostname or port == 0:
        raise ConfigurationError(
            f"OTLP endpoint '{endpoint}' は http(s) スキームとホストを含む URL である必要があります。"
        )


class ExporterFactory(Protocol):
    """``otlp`` エクスポータを生成するインターフェース。"""

    def create_span_exporter(self, settings: OtlpExporterSettings) -> SpanExporter: ...

    def create_metric_exporter(self, settings: OtlpExporterSettings) -> MetricExporter: ...

    def create_log_exporter(self, settings: OtlpExporterSettings) -> LogExporter: ...


class OtlpExporterFactory(ExporterFactory):
    """
    protocol に応じて gRPC / HTTP(protobuf) の OTLP エクスポータを生成する。

    未対応の protocol は生成時には拒否せず、毎回失敗するエクスポータを返す。
    """

    def create_span_exporter(self, settings: OtlpExporterSettings) -> SpanExporter:
        if settings.protocol == PROTOCOL_GRPC:
            return GrpcSpanExporter(**_grpc_options(settings))
        if settings.protocol == PROTOCOL_HTTP_PROTOBUF:
            return HttpSpanExporter(**_http_options(settings))
        return UnsupportedProtocolSpanExporter(settings.protocol)

    def create_metric_exporter(self, settings: OtlpExporterSettings) -> MetricExporter:
        if settings.protocol == PROTOCOL_GRPC:
            return GrpcMetricExporter(**_grpc_options(settings))
        if settings.protocol == PROTOCOL_HTTP_PROTOBUF:
            return HttpMetricExporter(**_http_options(settings))
        return UnsupportedProtocolMetricExporter(settings.protocol)

    def create_log_exporter(self, settings: OtlpExporterSettings) -> LogExporter:
        if settings.protocol == PROTOCOL_GRPC:
            return GrpcLogExporter(**_grpc_options(settings))
        if settings.protocol == PROTOCOL_HTTP_PROTOBUF:
            return HttpLogExporter(**_http_options(settings))
        return UnsupportedProtocolLogExporter(settings.protocol)


def _grpc_options(settings: OtlpExporterSettings) -> dict[str, object]:
    options: dict[str, object] = {
        "endpoint": settings.endpoint,
        "insecure": settings.insecure,
        # gRPC のメタデータキーは小文字のみ許可される。
        "headers": {key.lower(): value for key, value in settings.headers.items()},
        "timeout": settings.timeout_seconds,
    }
    if settings.compression is not None:
        options["compression"] = (
            grpc.Compression.Gzip if settings.compression == "gzip" else grpc.Compression.NoCompression
        )
    return options


def _http_options(settings: OtlpExporterSettings) -> dict[str, object]:
    options: dict[str, object] = {
        "endpoint": settings.endpoint,
        "headers": dict(settings.headers),
        "timeout": settings.timeout_seconds,
    }
    if settings.compression is not None:
        options["compression"] = (
            HttpCompression.Gzip if settings.compression == "gzip" else HttpCompression.NoCompression
        )
    return options


def _unsupported(protocol: str) -> FlushError:
    return FlushError(f"未対応の OTLP protocol '{protocol}' のためエクスポートできません。")


class UnsupportedProtocolSpanExporter(SpanExporter):
    def __init__(self, protocol: str) -> None:
        self.protocol = protocol

    def export(self, spans: Sequence[ReadableSpan]) -> SpanExportResult:
        raise _unsupported(self.protocol)

    def shutdown(self) -> None:
        pass


class UnsupportedProtocolMetricExporter(MetricExporter):
    def __init__(self, protocol: str) -> None:
        super().__init__()
        self.protocol = protocol

    def export(self, metrics_data: MetricsData, timeout_millis: float = 10_000, **kwargs) -> MetricExportResult:
        raise _unsupported(self.protocol)

    def force_flush(self, timeout_millis: float = 10_000) -> bool:
        return True

    def shutdown(self, timeout_millis: float = 30_000, **kwargs) -> None:
        pass


class UnsupportedProtocolLogExporter(LogExporter):
    def __init__(self, protocol: str) -> None:
        self.protocol = protocol

    def export(self, batch: Sequence[LogData]) -> LogExportResult:
        raise _unsupported(self.protocol)

    def shutdown(self) -> None:
        pass
