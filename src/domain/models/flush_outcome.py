"""
シグナルごとの強制フラッシュ結果。
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class FlushStatus(str, Enum):
    """強制フラッシュの終了状態。"""

    SUCCESS = "Success"
    TIMED_OUT = "TimedOut"
    ERROR = "Error"


@dataclass(frozen=True)
class FlushOutcome:
    """
    FlushCoordinator が返す 1 シグナル分の結果。

    Attributes:
        status: 終了状態。
        cause: ERROR の場合の原因となった例外。
        elapsed_ms: フラッシュ待ちに要した時間（ミリ秒）。
    """

    status: FlushStatus
    cause: BaseException | None = None
    elapsed_ms: float = 0.0

    def __post_init__(self) -> None:
        if self.status is FlushStatus.ERROR and self.cause is None:
            raise ValueError("ERROR の結果には cause が必要です。")
        if self.status is not FlushStatus.ERROR and self.cause is not None:
            raise ValueError("cause は ERROR の結果にのみ指定できます。")
        if self.elapsed_ms < 0:
            raise ValueError("elapsed_ms は 0 以上である必要があります。")

    @classmethod
    def success(cls, *, elapsed_ms: float = 0.0) -> "FlushOutcome":
        return cls(status=FlushStatus.SUCCESS, elapsed_ms=elapsed_ms)

    @classmethod
    def timed_out(cls, *, elapsed_ms: float = 0.0) -> "FlushOutcome":
        return cls(status=FlushStatus.TIMED_OUT, elapsed_ms=elapsed_ms)

    @classmethod
    def error(cls, cause: BaseException, *, elapsed_ms: float = 0.0) -> "FlushOutcome":
        return cls(status=FlushStatus.ERROR, cause=cause, elapsed_ms=elapsed_ms)

    @property
    def is_success(self) -> bool:
        return self.status is FlushStatus.SUCCESS

    def describe(self) -> str:
        """レポート表示用の文字列を返す。"""

        if self.cause is not None:
            return f"{self.status.value} ({self.cause})"
        return self.status.value
