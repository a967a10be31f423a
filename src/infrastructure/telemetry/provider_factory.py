"""
EffectiveConfig からトレース・メトリクス・ログの各プロバイダを構築する。
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Callable, Mapping, Protocol, Sequence

from opentelemetry import trace
from opentelemetry.metrics import Meter
from opentelemetry.sdk._logs import LoggerProvider, LoggingHandler
from opentelemetry.sdk._logs.export import BatchLogRecordProcessor, ConsoleLogExporter, LogExporter
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import ConsoleMetricExporter, MetricExporter, PeriodicExportingMetricReader
from opentelemetry.sdk.resources import (
    SERVICE_NAME as SERVICE_NAME_ATTRIBUTE,
    TELEMETRY_SDK_LANGUAGE,
    TELEMETRY_SDK_NAME,
    TELEMETRY_SDK_VERSION,
    Resource,
)
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter, SpanExporter
from opentelemetry.sdk.trace.sampling import (
    ALWAYS_OFF,
    ALWAYS_ON,
    DEFAULT_OFF,
    DEFAULT_ON,
    ParentBasedTraceIdRatio,
    Sampler,
    TraceIdRatioBased,
)
from opentelemetry.sdk.version import __version__ as SDK_VERSION

from domain.exceptions import ConfigurationError
from domain.models import EffectiveConfig, SignalKind
from domain.models.effective_config import RESOURCE_ATTRIBUTES, SERVICE_NAME

from .config_properties import ConfigProperties
from .exporters import ExporterFactory, OtlpExporterFactory, resolve_otlp_settings
from .monitoring import (
    ExportMonitor,
    MonitoredLogExporter,
    MonitoredMetricExporter,
    MonitoredProvider,
    MonitoredSpanExporter,
)

LOGGER = logging.getLogger("otlp_test_cli.telemetry")

INSTRUMENTATION_SCOPE = "io.opentelemetry.contrib.otlptestcli"
DEFAULT_EXPORTER = "otlp"
DEFAULT_METRIC_EXPORT_INTERVAL_MILLIS = 60_000
DEFAULT_METRIC_EXPORT_TIMEOUT_MILLIS = 30_000

EXPORTER_PROPERTIES: Mapping[SignalKind, str] = {
    SignalKind.TRACE: "otel.traces.exporter",
    SignalKind.METRIC: "otel.metrics.exporter",
    SignalKind.LOG: "otel.logs.exporter",
}
KNOWN_EXPORTERS = ("otlp", "console", "none")

_RATIO_SAMPLERS: Mapping[str, Callable[[float], Sampler]] = {
    "traceidratio": TraceIdRatioBased,
    "parentbased_traceidratio": ParentBasedTraceIdRatio,
}
_FIXED_SAMPLERS: Mapping[str, Sampler] = {
    "always_on": ALWAYS_ON,
    "always_off": ALWAYS_OFF,
    "parentbased_always_on": DEFAULT_ON,
    "parentbased_always_off": DEFAULT_OFF,
}


class Closable(Protocol):
    def shutdown(self) -> None: ...


@dataclass
class ProviderGraph:
    """
    同一 Resource を共有する 3 種のプロバイダと、シグナルごとのフラッシュ対象。

    プロバイダはインタプリタ終了時のフックを登録しない。後始末は shutdown() を
    呼び出し側が期限付きで実行する。
    """

    tracer_provider: TracerProvider
    meter_provider: MeterProvider
    logger_provider: LoggerProvider
    flush_targets: Mapping[SignalKind, MonitoredProvider] = field(default_factory=dict)
    exporters: Sequence[Closable] = field(default_factory=tuple)
    _bridges: list[tuple[logging.Logger, LoggingHandler]] = field(default_factory=list, init=False, repr=False)

    def __post_init__(self) -> None:
        self.flush_targets = MappingProxyType(dict(self.flush_targets))
        self.exporters = tuple(self.exporters)

    def tracer(self, scope: str = INSTRUMENTATION_SCOPE) -> trace.Tracer:
        return self.tracer_provider.get_tracer(scope)

    def meter(self, scope: str = INSTRUMENTATION_SCOPE) -> Meter:
        return self.meter_provider.get_meter(scope)

    def bridged_logger(self, scope: str = INSTRUMENTATION_SCOPE) -> logging.Logger:
        """
        LoggerProvider へ送出する標準ライブラリのロガーを返す。

        アプリケーションのハンドラへは伝播させない。
        """

        logger = logging.getLogger(scope)
        for handler in list(logger.handlers):
            if isinstance(handler, LoggingHandler):
                logger.removeHandler(handler)
        handler = LoggingHandler(level=logging.NOTSET, logger_provider=self.logger_provider)
        logger.addHandler(handler)
        self._bridges.append((logger, handler))
        logger.setLevel(logging.INFO)
        logger.propagate = False
        logger.disabled = False
        return logger

    def flush_target(self, kind: SignalKind) -> MonitoredProvider:
        return self.flush_targets[kind]

    def shutdown(self) -> None:
        """
        ログのブリッジを外し、エクスポータ、プロバイダの順に停止する。

        停止済みのエクスポータは再試行を打ち切り、以降のバッチを破棄する。
        """

        while self._bridges:
            logger, handler = self._bridges.pop()
            logger.removeHandler(handler)
        for exporter in self.exporters:
            exporter.shutdown()
        self.tracer_provider.shutdown()
        self.meter_provider.shutdown()
        self.logger_provider.shutdown()


@dataclass(frozen=True)
class AutoConfiguredTelemetry:
    """構築結果。解決済み設定と Resource も確認用に保持する。"""

    config: ConfigProperties
    resource: Resource
    providers: ProviderGraph


class TelemetryProviderFactory:
    """
    ``otel.*`` プロパティに従って ProviderGraph を構築する。

    明示されていないプロパティは環境変数から補完する。エクスポータ名・endpoint・
    sampler などの不正値は構築時に ConfigurationError とし、到達不能な送信先や
    未対応 protocol はフラッシュ時の失敗として扱う。
    """

    def __init__(
        self,
        *,
        environ: Mapping[str, str] | None = None,
        exporter_factory: ExporterFactory | None = None,
    ) -> None:
        self._environ = os.environ if environ is None else environ
        self._exporter_factory = exporter_factory or OtlpExporterFactory()

    def build(self, config: EffectiveConfig) -> AutoConfiguredTelemetry:
        properties = ConfigProperties(config, self._environ)
        resource = build_resource(properties)
        sampler = build_sampler(properties)
        monitors = {kind: ExportMonitor(kind) for kind in SignalKind}

        # 全エクスポータを先に生成し、検証エラーはプロバイダ生成前に送出する。
        span_exporters = [
            MonitoredSpanExporter(exporter, monitors[SignalKind.TRACE])
            for exporter in self._span_exporters(properties)
        ]
        metric_exporters = [
            MonitoredMetricExporter(exporter, monitors[SignalKind.METRIC])
            for exporter in self._metric_exporters(properties)
        ]
        log_exporters = [
            MonitoredLogExporter(exporter, monitors[SignalKind.LOG])
            for exporter in self._log_exporters(properties)
        ]
        interval_millis = _positive_int(
            properties, "otel.metric.export.interval", DEFAULT_METRIC_EXPORT_INTERVAL_MILLIS
        )
        export_timeout_millis = _positive_int(
            properties, "otel.metric.export.timeout", DEFAULT_METRIC_EXPORT_TIMEOUT_MILLIS
        )

        tracer_provider = TracerProvider(resource=resource, sampler=sampler, shutdown_on_exit=False)
        for span_exporter in span_exporters:
            tracer_provider.add_span_processor(BatchSpanProcessor(span_exporter))

        meter_provider = MeterProvider(
            resource=resource,
            metric_readers=[
                PeriodicExportingMetricReader(
                    metric_exporter,
                    export_interval_millis=interval_millis,
                    export_timeout_millis=export_timeout_millis,
                )
                for metric_exporter in metric_exporters
            ],
            shutdown_on_exit=False,
        )

        logger_provider = LoggerProvider(resource=resource, shutdown_on_exit=False)
        for log_exporter in log_exporters:
            logger_provider.add_log_record_processor(BatchLogRecordProcessor(log_exporter))

        LOGGER.debug(
            "Built providers with %d span, %d metric and %d log exporters",
            len(span_exporters),
            len(metric_exporters),
            len(log_exporters),
        )
        providers = ProviderGraph(
            tracer_provider=tracer_provider,
            meter_provider=meter_provider,
            logger_provider=logger_provider,
            flush_targets={
                SignalKind.TRACE: MonitoredProvider(tracer_provider, monitors[SignalKind.TRACE]),
                SignalKind.METRIC: MonitoredProvider(meter_provider, monitors[SignalKind.METRIC]),
                SignalKind.LOG: MonitoredProvider(logger_provider, monitors[SignalKind.LOG]),
            },
            exporters=[*span_exporters, *metric_exporters, *log_exporters],
        )
        return AutoConfiguredTelemetry(config=properties, resource=resource, providers=providers)

    def _span_exporters(self, properties: ConfigProperties) -> list[SpanExporter]:
        exporters: list[SpanExporter] = []
        for name in exporter_names(properties, SignalKind.TRACE):
            if name == "otlp":
                settings = resolve_otlp_settings(properties, SignalKind.TRACE)
                exporters.append(self._exporter_factory.create_span_exporter(settings))
            else:
                exporters.append(ConsoleSpanExporter())
        return exporters

    def _metric_exporters(self, properties: ConfigProperties) -> list[MetricExporter]:
        exporters: list[MetricExporter] = []
        for name in exporter_names(properties, SignalKind.METRIC):
            if name == "otlp":
                settings = resolve_otlp_settings(properties, SignalKind.METRIC)
                exporters.append(self._exporter_factory.create_metric_exporter(settings))
            else:
                exporters.append(ConsoleMetricExporter())
        return exporters

    def _log_exporters(self, properties: ConfigProperties) -> list[LogExporter]:
        exporters: list[LogExporter] = []
        for name in exporter_names(properties, SignalKind.LOG):
            if name == "otlp":
                settings = resolve_otlp_settings(properties, SignalKind.LOG)
                exporters.append(self._exporter_factory.create_log_exporter(settings))
            else:
                exporters.append(ConsoleLogExporter())
        return exporters


def exporter_names(properties: ConfigProperties, kind: SignalKind) -> list[str]:
    """
    シグナルのエクスポータ名一覧を返す。``none`` の場合は空リスト。

    Raises:
        ConfigurationError: 未知の名前、または ``none`` と他の名前の併用。
    """

    property_name = EXPORTER_PROPERTIES[kind]
    names = [name.lower() for name in properties.get_list(property_name)] or [DEFAULT_EXPORTER]
    unknown = [name for name in names if name not in KNOWN_EXPORTERS]
    if unknown:
        raise ConfigurationError(f"{property_name} に未対応のエクスポータ {unknown} が指定されました。")
    if "none" in names:
        if len(names) > 1:
            raise ConfigurationError(f"{property_name} では 'none' を他のエクスポータと併用できません。")
        return []
    return list(dict.fromkeys(names))


def build_resource(properties: ConfigProperties) -> Resource:
    """
    SDK 属性、``otel.resource.attributes``、``otel.service.name`` の順に重ねた Resource を返す。

    環境変数は ConfigProperties 経由でのみ参照し、プロセスの os.environ は読まない。
    """

    attributes: dict[str, object] = {
        TELEMETRY_SDK_LANGUAGE: "python",
        TELEMETRY_SDK_NAME: "opentelemetry",
        TELEMETRY_SDK_VERSION: SDK_VERSION,
    }
    attributes.update(properties.get_map(RESOURCE_ATTRIBUTES))
    service_name = properties.get_string(SERVICE_NAME)
    if service_name is not None:
        attributes[SERVICE_NAME_ATTRIBUTE] = service_name
    attributes.setdefault(SERVICE_NAME_ATTRIBUTE, "unknown_service")
    return Resource(attributes)


def build_sampler(properties: ConfigProperties) -> Sampler:
    name = (properties.get_string("otel.traces.sampler") or "parentbased_always_on").lower()
    if name in _FIXED_SAMPLERS:
        return _FIXED_SAMPLERS[name]
    if name in _RATIO_SAMPLERS:
        ratio = properties.get_float("otel.traces.sampler.arg", 1.0)
        if not 0.0 <= ratio <= 1.0:
            raise ConfigurationError(f"otel.traces.sampler.arg は 0.0 以上 1.0 以下である必要があります: {ratio}")
        return _RATIO_SAMPLERS[name](ratio)
    raise ConfigurationError(f"未対応の sampler '{name}' が otel.traces.sampler に指定されました。")


def _positive_int(properties: ConfigProperties, name: str, default: int) -> int:
    value = properties.get_int(name, default)
    if value <= 0:
        raise ConfigurationError(f"{name} は正の値である必要があります: {value}")
    return value
