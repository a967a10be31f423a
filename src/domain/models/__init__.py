"""
ドメインエンティティの公開API。
"""

from .effective_config import EffectiveConfig
from .flush_outcome import FlushOutcome, FlushStatus
from .signal_sample import CounterSample, LogSample, SignalKind

__all__ = [
    "EffectiveConfig",
    "FlushOutcome",
    "FlushStatus",
    "CounterSample",
    "LogSample",
    "SignalKind",
]
