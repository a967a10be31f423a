"""
アプリケーション層パッケージ初期化。
"""

from .services import ConfigOverrides, ConfigResolver, FlushCoordinator, ReportPrinter, ResourceDescriber, SignalEmitter
from .usecases import OtlpTestResult, OtlpTestUseCase

__all__ = [
    "ConfigOverrides",
    "ConfigResolver",
    "FlushCoordinator",
    "ReportPrinter",
    "ResourceDescriber",
    "SignalEmitter",
    "OtlpTestResult",
    "OtlpTestUseCase",
]
