"""
エクスポート失敗を記録し、強制フラッシュの結果へ反映する。
"""

from __future__ import annotations

import logging
import threading
from typing import Protocol, Sequence

from opentelemetry.sdk._logs import LogData
from opentelemetry.sdk._logs.export import LogExporter, LogExportResult
from opentelemetry.sdk.metrics.export import MetricExporter, MetricExportResult, MetricsData
from opentelemetry.sdk.trace import ReadableSpan
from opentelemetry.sdk.trace.export import SpanExporter, SpanExportResult

from domain.exceptions import FlushError
from domain.models import SignalKind

LOGGER = logging.getLogger("otlp_test_cli.telemetry.monitoring")


class _Flushable(Protocol):
    def force_flush(self, timeout_millis: int = 30000) -> bool: ...


class ExportMonitor:
    """シグナル 1 種別分のエクスポート失敗を記録する。"""

    def __init__(self, signal: SignalKind) -> None:
        self.signal = signal
        self._lock = threading.Lock()
        self._failures: list[BaseException] = []

    def record_failure(self, cause: BaseException) -> None:
        LOGGER.warning("%s export failed: %s", self.signal.value, cause)
        with self._lock:
            self._failures.append(cause)

    def record_result(self, succeeded: bool) -> None:
        if not succeeded:
            self.record_failure(FlushError(f"{self.signal.value} exporter reported FAILURE"))

    def record_exception(self, exc: Exception) -> None:
        if isinstance(exc, FlushError):
            self.record_failure(exc)
            return
        error = FlushError(f"{self.signal.value} export raised {type(exc).__name__}: {exc}")
        error.__cause__ = exc
        self.record_failure(error)

    def mark(self) -> int:
        with self._lock:
            return len(self._failures)

    def failure_since(self, mark: int) -> BaseException | None:
        with self._lock:
            recent = self._failures[mark:]
        return recent[-1] if recent else None


class MonitoredProvider:
    """
    プロバイダの強制フラッシュを包み、その間に記録された失敗を例外として送出する。
    """

    def __init__(self, provider: _Flushable, monitor: ExportMonitor) -> None:
        self._provider = provider
        self._monitor = monitor

    @property
    def signal(self) -> SignalKind:
        return self._monitor.signal

    def force_flush(self, timeout_millis: int = 30000) -> bool:
        mark = self._monitor.mark()
        completed = self._provider.force_flush(timeout_millis)
        failure = self._monitor.failure_since(mark)
        if failure is not None:
            raise failure
        return bool(completed)


class _ClosableDelegate:
    """停止済みフラグを持つ委譲エクスポータの共通部分。"""

    def __init__(self, delegate, monitor: ExportMonitor) -> None:
        self._delegate = delegate
        self._monitor = monitor
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def _close(self, **kwargs) -> None:
        if self._closed:
            return
        self._closed = True
        self._delegate.shutdown(**kwargs)


class MonitoredSpanExporter(_ClosableDelegate, SpanExporter):
    def __init__(self, delegate: SpanExporter, monitor: ExportMonitor) -> None:
        _ClosableDelegate.__init__(self, delegate, monitor)

    def export(self, spans: Sequence[ReadableSpan]) -> SpanExportResult:
        if self._closed:
            return SpanExportResult.FAILURE
        try:
            result = self._delegate.export(spans)
        except Exception as exc:
            self._monitor.record_exception(exc)
            return SpanExportResult.FAILURE
        self._monitor.record_result(result is SpanExportResult.SUCCESS)
        return result

    def shutdown(self) -> None:
        self._close()

    def force_flush(self, timeout_millis: int = 30000) -> bool:
        return self._delegate.force_flush(timeout_millis)


class MonitoredMetricExporter(_ClosableDelegate, MetricExporter):
    def __init__(self, delegate: MetricExporter, monitor: ExportMonitor) -> None:
        MetricExporter.__init__(
            self,
            preferred_temporality=getattr(delegate, "_preferred_temporality", None),
            preferred_aggregation=getattr(delegate, "_preferred_aggregation", None),
        )
        _ClosableDelegate.__init__(self, delegate, monitor)

    def export(self, metrics_data: MetricsData, timeout_millis: float = 10_000, **kwargs) -> MetricExportResult:
        if self._closed:
            return MetricExportResult.FAILURE
        try:
            result = self._delegate.export(metrics_data, timeout_millis=timeout_millis, **kwargs)
        except Exception as exc:
            self._monitor.record_exception(exc)
            return MetricExportResult.FAILURE
        self._monitor.record_result(result is MetricExportResult.SUCCESS)
        return result

    def force_flush(self, timeout_millis: float = 10_000) -> bool:
        return self._delegate.force_flush(timeout_millis=timeout_millis)

    def shutdown(self, timeout_millis: float = 30_000, **kwargs) -> None:
        self._close(timeout_millis=timeout_millis, **kwargs)


class MonitoredLogExporter(_ClosableDelegate, LogExporter):
    def __init__(self, delegate: LogExporter, monitor: ExportMonitor) -> None:
        _ClosableDelegate.__init__(self, delegate, monitor)

    def export(self, batch: Sequence[LogData]) -> LogExportResult:
        if self._closed:
            return LogExportResult.FAILURE
        try:
            result = self._delegate.export(batch)
        except Exception as exc:
            self._monitor.record_exception(exc)
            return LogExportResult.FAILURE
        self._monitor.record_result(result is LogExportResult.SUCCESS)
        return result

    def shutdown(self) -> None:
        self._close()

    def force_flush(self, timeout_millis: int = 30000) -> bool:
        flush = getattr(self._delegate, "force_flush", None)
        return flush(timeout_millis) if callable(flush) else True
