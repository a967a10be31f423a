"""
ユースケースの公開API。
"""

from .otlp_test import OtlpTestResult, OtlpTestUseCase, TelemetryBuilder

__all__ = [
    "OtlpTestResult",
    "OtlpTestUseCase",
    "TelemetryBuilder",
]
