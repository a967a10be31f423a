"""
ブートストラップ関連の公開API。
"""

from .container import (
    BootstrapContainer,
    BootstrapContext,
    BootstrapError,
    ConfigBundle,
    DiagnosticsSettings,
    InvalidConfigurationError,
    LoggingConfigurator,
    MissingConfigurationError,
)
from .config_loader import AppConfigModel, DiagnosticsConfigModel, LoggingConfigModel, YamlConfigLoader
from .logging_setup import DictConfigLoggingConfigurator

__all__ = [
    "BootstrapContainer",
    "BootstrapContext",
    "BootstrapError",
    "ConfigBundle",
    "DiagnosticsSettings",
    "InvalidConfigurationError",
    "LoggingConfigurator",
    "MissingConfigurationError",
    "DictConfigLoggingConfigurator",
    "YamlConfigLoader",
    "AppConfigModel",
    "DiagnosticsConfigModel",
    "LoggingConfigModel",
]
