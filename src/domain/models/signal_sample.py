"""
送信したテレメトリサンプルの記述。
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class SignalKind(str, Enum):
    """シグナル種別。定義順がフラッシュ順になる。"""

    TRACE = "trace"
    METRIC = "metric"
    LOG = "log"


@dataclass(frozen=True)
class CounterSample:
    """カウンタへの加算 1 回分。"""

    instrument_name: str
    value: int

    def __post_init__(self) -> None:
        if not self.instrument_name:
            raise ValueError("instrument_name は必須です。")


@dataclass(frozen=True)
class LogSample:
    """送信したログレコードの要約。"""

    severity: str
    body: str
    timestamp_ns: int

    def __post_init__(self) -> None:
        if not self.severity:
            raise ValueError("severity は必須です。")
        if self.timestamp_ns <= 0:
            raise ValueError("timestamp_ns は正の値である必要があります。")
