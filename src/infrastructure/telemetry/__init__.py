"""
OpenTelemetry プロバイダ構築関連の公開API。
"""

from .config_properties import ConfigProperties
from .exporters import ExporterFactory, OtlpExporterFactory, OtlpExporterSettings, resolve_otlp_settings
from .monitoring import ExportMonitor, MonitoredProvider
from .provider_factory import (
    INSTRUMENTATION_SCOPE,
    AutoConfiguredTelemetry,
    ProviderGraph,
    TelemetryProviderFactory,
)

__all__ = [
    "ConfigProperties",
    "ExporterFactory",
    "OtlpExporterFactory",
    "OtlpExporterSettings",
    "resolve_otlp_settings",
    "ExportMonitor",
    "MonitoredProvider",
    "INSTRUMENTATION_SCOPE",
    "AutoConfiguredTelemetry",
    "ProviderGraph",
    "TelemetryProviderFactory",
]
