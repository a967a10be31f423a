from __future__ import annotations

import threading
import time
from typing import Iterator

import pytest

from application.services.flush_coordinator import FlushCoordinator
from domain.exceptions import FlushError
from domain.models import FlushStatus, SignalKind

TIMEOUT_MILLIS = 200
SLACK_SECONDS = 0.1


class _NeverCompletingProvider:
    def __init__(self, gate: threading.Event) -> None:
        self._gate = gate
        self.calls = 0

    def force_flush(self, timeout_millis: int = 30000) -> bool:  # noqa: ARG002
        self.calls += 1
        self._gate.wait()
        return True


class _ImmediateProvider:
    def __init__(self, result: bool = True) -> None:
        self._result = result
        self.timeouts: list[int] = []

    def force_flush(self, timeout_millis: int = 30000) -> bool:
        self.timeouts.append(timeout_millis)
        return self._result


class _FailingProvider:
    def __init__(self, error: Exception) -> None:
        self._error = error

    def force_flush(self, timeout_millis: int = 30000) -> bool:  # noqa: ARG002
        raise self._error


@pytest.fixture()
def gate() -> Iterator[threading.Event]:
    event = threading.Event()
    yield event
    event.set()


@pytest.mark.parametrize(("timeout_millis", "slack"), [(TIMEOUT_MILLIS, SLACK_SECONDS), (500, 0.05)])
def test_never_completing_flush_times_out_within_deadline(
    gate: threading.Event, timeout_millis: int, slack: float
) -> None:
    coordinator = FlushCoordinator(timeout_millis)
    provider = _NeverCompletingProvider(gate)

    started = time.monotonic()
    outcome = coordinator.flush(provider)
    elapsed = time.monotonic() - started

    assert outcome.status is FlushStatus.TIMED_OUT
    assert provider.calls == 1
    assert timeout_millis / 1000.0 <= elapsed + 0.005
    assert elapsed < timeout_millis / 1000.0 + slack


@pytest.mark.parametrize("kind", list(SignalKind))
def test_fast_flush_succeeds_for_every_signal_kind(kind: SignalKind) -> None:
    coordinator = FlushCoordinator(TIMEOUT_MILLIS)
    provider = _ImmediateProvider()

    outcomes = coordinator.flush_all({kind: provider})

    assert outcomes[kind].status is FlushStatus.SUCCESS
    assert provider.timeouts == [TIMEOUT_MILLIS]


def test_provider_reporting_incomplete_flush_is_timed_out() -> None:
    outcome = FlushCoordinator(TIMEOUT_MILLIS).flush(_ImmediateProvider(result=False))

    assert outcome.status is FlushStatus.TIMED_OUT


def test_explicit_export_failure_becomes_error_outcome() -> None:
    error = FlushError("collector unreachable")

    outcome = FlushCoordinator(TIMEOUT_MILLIS).flush(_FailingProvider(error))

    assert outcome.status is FlushStatus.ERROR
    assert outcome.cause is error


def test_flush_all_keeps_going_after_timeout_and_error(gate: threading.Event) -> None:
    coordinator = FlushCoordinator(TIMEOUT_MILLIS)
    trailing = _ImmediateProvider()

    outcomes = coordinator.flush_all(
        {
            SignalKind.TRACE: _NeverCompletingProvider(gate),
            SignalKind.METRIC: _FailingProvider(FlushError("boom")),
            SignalKind.LOG: trailing,
        }
    )

    assert list(outcomes) == [SignalKind.TRACE, SignalKind.METRIC, SignalKind.LOG]
    assert outcomes[SignalKind.TRACE].status is FlushStatus.TIMED_OUT
    assert outcomes[SignalKind.METRIC].status is FlushStatus.ERROR
    assert outcomes[SignalKind.LOG].status is FlushStatus.SUCCESS
    assert trailing.timeouts == [TIMEOUT_MILLIS]


def test_per_call_timeout_overrides_default(gate: threading.Event) -> None:
    coordinator = FlushCoordinator(5_000)

    started = time.monotonic()
    outcome = coordinator.flush(_NeverCompletingProvider(gate), timeout_millis=50)

    assert outcome.status is FlushStatus.TIMED_OUT
    assert time.monotonic() - started < 0.05 + SLACK_SECONDS


def test_non_positive_timeout_is_rejected() -> None:
    with pytest.raises(ValueError):
        FlushCoordinator(0)


class _ClosableTarget:
    def __init__(self, gate: threading.Event | None = None, error: Exception | None = None) -> None:
        self._gate = gate
        self._error = error
        self.calls = 0

    def shutdown(self) -> None:
        self.calls += 1
        if self._gate is not None:
            self._gate.wait()
        if self._error is not None:
            raise self._error


def test_blocking_shutdown_is_abandoned_at_deadline(gate: threading.Event) -> None:
    target = _ClosableTarget(gate)

    started = time.monotonic()
    completed = FlushCoordinator(TIMEOUT_MILLIS).shutdown(target)
    elapsed = time.monotonic() - started

    assert completed is False
    assert target.calls == 1
    assert elapsed < TIMEOUT_MILLIS / 1000.0 + SLACK_SECONDS


def test_quick_shutdown_reports_completion() -> None:
    target = _ClosableTarget()

    assert FlushCoordinator(TIMEOUT_MILLIS).shutdown(target) is True
    assert target.calls == 1


def test_failing_shutdown_is_reported_not_raised() -> None:
    target = _ClosableTarget(error=RuntimeError("exporter already closed"))

    assert FlushCoordinator(TIMEOUT_MILLIS).shutdown(target) is False
