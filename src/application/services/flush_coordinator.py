"""
プロバイダごとの強制フラッシュをタイムアウト付きで実行する。
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Mapping, Protocol

from domain.models import FlushOutcome, SignalKind

LOGGER = logging.getLogger("otlp_test_cli.flush")

DEFAULT_FLUSH_TIMEOUT_MILLIS = 500


class Flushable(Protocol):
    def force_flush(self, timeout_millis: int = 30000) -> bool: ...


class Closable(Protocol):
    def shutdown(self) -> None: ...


class FlushCoordinator:
    """
    強制フラッシュを要求し、完了かタイムアウトのどちらか早い方まで待つ。

    フラッシュ本体はデーモンスレッドで実行し、呼び出し側は明示的な期限まで
    Event を待つ。タイムアウトしたフラッシュは取り消さず、結果だけを TimedOut とする。
    """

    def __init__(
        self,
        timeout_millis: int = DEFAULT_FLUSH_TIMEOUT_MILLIS,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if timeout_millis <= 0:
            raise ValueError("timeout_millis は正の値である必要があります。")
        self._timeout_millis = timeout_millis
        self._clock = clock

    @property
    def timeout_millis(self) -> int:
        return self._timeout_millis

    def flush(self, provider: Flushable, timeout_millis: int | None = None) -> FlushOutcome:
        timeout = self._resolve_timeout(timeout_millis)
        started = self._clock()
        call = _BoundedCall(lambda: provider.force_flush(timeout), name="otlp-test-force-flush")
        call.start()
        completed = call.wait_until(started + timeout / 1000.0, self._clock)
        elapsed_ms = max(0.0, (self._clock() - started) * 1000.0)

        if not completed:
            LOGGER.warning("Force flush did not complete within %d ms", timeout)
            return FlushOutcome.timed_out(elapsed_ms=elapsed_ms)
        if call.error is not None:
            LOGGER.warning("Force flush failed: %s", call.error)
            return FlushOutcome.error(call.error, elapsed_ms=elapsed_ms)
        if not call.result:
            LOGGER.warning("Provider reported an incomplete flush after %.1f ms", elapsed_ms)
            return FlushOutcome.timed_out(elapsed_ms=elapsed_ms)
        LOGGER.debug("Force flush completed in %.1f ms", elapsed_ms)
        return FlushOutcome.success(elapsed_ms=elapsed_ms)

    def flush_all(
        self,
        providers: Mapping[SignalKind, Flushable],
        timeout_millis: int | None = None,
    ) -> dict[SignalKind, FlushOutcome]:
        """
        与えられた順にシグナルごとのフラッシュを行う。

        あるシグナルの失敗やタイムアウトは後続のフラッシュを妨げない。
        """

        return {kind: self.flush(provider, timeout_millis) for kind, provider in providers.items()}

    def shutdown(self, target: Closable, timeout_millis: int | None = None) -> bool:
        """
        ``target.shutdown()`` を同じ期限付き待機で実行する。

        期限内に終わらなかった停止処理はデーモンスレッドに残したまま打ち切る。

        Returns:
            bool: 期限内にエラーなく完了した場合 True。
        """

        timeout = self._resolve_timeout(timeout_millis)
        deadline = self._clock() + timeout / 1000.0
        call = _BoundedCall(target.shutdown, name="otlp-test-shutdown")
        call.start()
        if not call.wait_until(deadline, self._clock):
            LOGGER.warning("Shutdown did not complete within %d ms; abandoning it", timeout)
            return False
        if call.error is not None:
            LOGGER.warning("Shutdown failed: %s", call.error)
            return False
        return True

    def _resolve_timeout(self, timeout_millis: int | None) -> int:
        timeout = self._timeout_millis if timeout_millis is None else timeout_millis
        if timeout <= 0:
            raise ValueError("timeout_millis は正の値である必要があります。")
        return timeout


class _BoundedCall:
    def __init__(self, target: Callable[[], object], *, name: str) -> None:
        self._target = target
        self._name = name
        self._done = threading.Event()
        self.result: object = None
        self.error: BaseException | None = None

    def start(self) -> None:
        threading.Thread(target=self._run, name=self._name, daemon=True).start()

    def wait_until(self, deadline: float, clock: Callable[[], float]) -> bool:
        while True:
            remaining = deadline - clock()
            if remaining <= 0:
                return self._done.is_set()
            if self._done.wait(remaining):
                return True

    def _run(self) -> None:
        try:
            self.result = self._target()
        except Exception as exc:
            self.error = exc
        finally:
            self._done.set()
