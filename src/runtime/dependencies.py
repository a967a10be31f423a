"""
ランタイム依存関係のビルダー。
"""

from __future__ import annotations

from pathlib import Path
from typing import Mapping, TextIO

from application.services import ConfigResolver, FlushCoordinator, ReportPrinter, SignalEmitter
from application.usecases import OtlpTestUseCase
from bootstrap import BootstrapContainer, DiagnosticsSettings, DictConfigLoggingConfigurator, YamlConfigLoader
from infrastructure.telemetry import ExporterFactory, TelemetryProviderFactory


def _project_root() -> Path:
    return Path(__file__).resolve().parents[2]


def default_config_root() -> Path:
    return _project_root() / "configs"


def build_bootstrap_container(
    config_root: Path | None = None,
    *,
    environment: str | None = None,
    verbose: bool = False,
) -> BootstrapContainer:
    return BootstrapContainer(
        config_root=config_root or default_config_root(),
        config_loader_factory=lambda root: YamlConfigLoader(root, environment=environment),
        logging_configurator=DictConfigLoggingConfigurator(root_level="DEBUG" if verbose else None),
    )


def build_otlp_test_usecase(
    diagnostics: DiagnosticsSettings,
    *,
    out: TextIO | None = None,
    environ: Mapping[str, str] | None = None,
    exporter_factory: ExporterFactory | None = None,
) -> OtlpTestUseCase:
    """
    疎通テストのユースケースを組み立てる。

    ``environ`` と ``exporter_factory`` はテストで差し替えるためのもの。
    """

    return OtlpTestUseCase(
        resolver=ConfigResolver(),
        builder=TelemetryProviderFactory(environ=environ, exporter_factory=exporter_factory),
        emitter=SignalEmitter(),
        coordinator=FlushCoordinator(diagnostics.flush_timeout_millis),
        printer=ReportPrinter(out),
        instrumentation_scope=diagnostics.instrumentation_scope,
    )
