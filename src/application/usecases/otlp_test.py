"""
OTLP 疎通テストのユースケース。

設定解決 -> プロバイダ構築 -> シグナルごとの送出とフラッシュを 1 回だけ実行し、
結果をレポートとして出力する。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Mapping, Protocol, TypeVar

from opentelemetry import trace
from opentelemetry.metrics import Meter
from opentelemetry.sdk.resources import Resource

from application.services.config_resolver import ConfigOverrides, ConfigResolver
from application.services.flush_coordinator import FlushCoordinator, Flushable
from application.services.report_printer import PropertySource, ReportPrinter
from application.services.signal_emitter import SignalEmitter
from domain.models import CounterSample, EffectiveConfig, FlushOutcome, LogSample, SignalKind

LOGGER = logging.getLogger("otlp_test_cli.usecase")

_SampleT = TypeVar("_SampleT")


class TelemetryProviders(Protocol):
    def tracer(self, scope: str = ...) -> trace.Tracer: ...

    def meter(self, scope: str = ...) -> Meter: ...

    def bridged_logger(self, scope: str = ...) -> logging.Logger: ...

    def flush_target(self, kind: SignalKind) -> Flushable: ...

    def shutdown(self) -> None: ...


class AutoConfiguredTelemetryProtocol(Protocol):
    @property
    def config(self) -> PropertySource: ...

    @property
    def resource(self) -> Resource: ...

    @property
    def providers(self) -> TelemetryProviders: ...


class TelemetryBuilder(Protocol):
    """EffectiveConfig からプロバイダ一式を構築するインターフェース。"""

    def build(self, config: EffectiveConfig) -> AutoConfiguredTelemetryProtocol: ...


@dataclass(frozen=True)
class OtlpTestResult:
    """
    疎通テスト 1 回分の結果。

    Attributes:
        config: 解決済みの EffectiveConfig。
        span: 送出したスパン。
        counter: 送出したカウンタ加算。
        log: 送出したログレコード。
        outcomes: シグナルごとのフラッシュ結果（トレース・メトリクス・ログの順）。
    """

    config: EffectiveConfig
    span: trace.Span
    counter: CounterSample
    log: LogSample
    outcomes: Mapping[SignalKind, FlushOutcome] = field(default_factory=dict)

    @property
    def all_exported(self) -> bool:
        return bool(self.outcomes) and all(outcome.is_success for outcome in self.outcomes.values())


class OtlpTestUseCase:
    """
    OTLP パイプラインを端から端まで検証する。

    ConfigurationError と EmissionError は呼び出し元へ伝播する。フラッシュの
    タイムアウトや失敗は結果として記録し、次のシグナルへ進む。
    """

    def __init__(
        self,
        *,
        resolver: ConfigResolver,
        builder: TelemetryBuilder,
        emitter: SignalEmitter,
        coordinator: FlushCoordinator,
        printer: ReportPrinter,
        instrumentation_scope: str,
    ) -> None:
        self._resolver = resolver
        self._builder = builder
        self._emitter = emitter
        self._coordinator = coordinator
        self._printer = printer
        self._scope = instrumentation_scope

    def execute(self, overrides: ConfigOverrides | None = None) -> OtlpTestResult:
        config = self._resolver.resolve(overrides)
        LOGGER.debug("Resolved %d explicit properties", len(config))
        telemetry = self._builder.build(config)

        self._printer.print_configuration(telemetry.config)
        self._printer.print_resource(telemetry.resource)

        providers = telemetry.providers
        try:
            return self._run_signals(config, providers)
        finally:
            if not self._coordinator.shutdown(providers):
                LOGGER.warning("Telemetry providers were not shut down cleanly")

    def _run_signals(self, config: EffectiveConfig, providers: TelemetryProviders) -> OtlpTestResult:
        outcomes: dict[SignalKind, FlushOutcome] = {}

        span = self._run_signal(
            SignalKind.TRACE,
            providers,
            outcomes,
            emit=lambda: self._emitter.emit_span(providers.tracer(self._scope)),
            show=self._printer.print_span,
        )
        counter = self._run_signal(
            SignalKind.METRIC,
            providers,
            outcomes,
            emit=lambda: self._emitter.emit_counter(providers.meter(self._scope)),
            show=self._printer.print_counter,
        )
        log = self._run_signal(
            SignalKind.LOG,
            providers,
            outcomes,
            emit=lambda: self._emitter.emit_log(providers.bridged_logger(self._scope)),
            show=self._printer.print_log,
        )

        return OtlpTestResult(config=config, span=span, counter=counter, log=log, outcomes=outcomes)

    def _run_signal(
        self,
        kind: SignalKind,
        providers: TelemetryProviders,
        outcomes: dict[SignalKind, FlushOutcome],
        *,
        emit: Callable[[], _SampleT],
        show: Callable[[_SampleT], None],
    ) -> _SampleT:
        self._printer.print_signal_header(kind)
        sample = emit()
        show(sample)
        self._printer.print_export_header(kind)
        outcome = self._coordinator.flush(providers.flush_target(kind))
        LOGGER.info("%s export finished: %s", kind.value, outcome.describe())
        self._printer.print_outcome(outcome)
        outcomes[kind] = outcome
        return sample
