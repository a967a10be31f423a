"""
インフラ層のパッケージ初期化。
"""

from .telemetry import (
    AutoConfiguredTelemetry,
    ConfigProperties,
    OtlpExporterFactory,
    ProviderGraph,
    TelemetryProviderFactory,
)

__all__ = [
    "AutoConfiguredTelemetry",
    "ConfigProperties",
    "OtlpExporterFactory",
    "ProviderGraph",
    "TelemetryProviderFactory",
]
