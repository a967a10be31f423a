"""
各シグナル種別のサンプルを 1 件ずつ生成する。
"""

from __future__ import annotations

import logging
import time
from typing import Callable

from opentelemetry import trace
from opentelemetry.metrics import Meter

from domain.exceptions import EmissionError
from domain.models import CounterSample, LogSample

SPAN_NAME = "test span"
COUNTER_NAME = "otlptestcli.testcounter"
LOG_BODY = "Lorem ipsum dolor sit amet, consectetur adipiscing elit."
LOG_SEVERITY = "WARN"
SPAN_DURATION_SECONDS = 0.01


class SignalEmitter:
    """
    スパン・カウンタ・ログをそれぞれ 1 件送出する。

    送出後のバッファリングは各プロバイダに任せ、再送は行わない。
    想定外の失敗は EmissionError として呼び出し元へ伝播する。
    """

    def __init__(self, *, sleep: Callable[[float], None] = time.sleep) -> None:
        self._sleep = sleep

    def emit_span(self, tracer: trace.Tracer) -> trace.Span:
        """
        ``test span`` を開始してカレントにし、短時間待ってから終了する。

        Returns:
            trace.Span: 終了済みのスパン。
        """

        try:
            span = tracer.start_span(SPAN_NAME)
            try:
                with trace.use_span(span, end_on_exit=False):
                    self._sleep(SPAN_DURATION_SECONDS)
            finally:
                span.end()
        except Exception as exc:
            raise EmissionError(f"スパン '{SPAN_NAME}' の送出に失敗しました。") from exc
        return span

    def emit_counter(self, meter: Meter) -> CounterSample:
        try:
            counter = meter.create_counter(COUNTER_NAME)
            counter.add(1)
        except Exception as exc:
            raise EmissionError(f"カウンタ '{COUNTER_NAME}' の加算に失敗しました。") from exc
        return CounterSample(instrument_name=COUNTER_NAME, value=1)

    def emit_log(self, logger: logging.Logger) -> LogSample:
        """
        WARN レベルのログレコードを 1 件送出する。

        ``logger`` は OpenTelemetry の LoggerProvider へブリッジ済みであること。
        返すタイムスタンプはブリッジが付与するものと同じくレコードの作成時刻から取る。
        """

        try:
            record = logger.makeRecord(logger.name, logging.WARNING, __file__, 0, LOG_BODY, (), None)
            logger.handle(record)
        except Exception as exc:
            raise EmissionError("ログレコードの送出に失敗しました。") from exc
        return LogSample(severity=LOG_SEVERITY, body=LOG_BODY, timestamp_ns=int(record.created * 1e9))
