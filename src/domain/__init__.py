"""
ドメイン層のパッケージ初期化。
"""

from .exceptions import ConfigurationError, EmissionError, FlushError, OtlpTestError
from .models import CounterSample, EffectiveConfig, FlushOutcome, FlushStatus, LogSample, SignalKind

__all__ = [
    "OtlpTestError",
    "ConfigurationError",
    "EmissionError",
    "FlushError",
    "EffectiveConfig",
    "FlushOutcome",
    "FlushStatus",
    "CounterSample",
    "LogSample",
    "SignalKind",
]
