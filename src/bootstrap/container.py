"""
CLI 実行前の初期化を担う DI コンテナ。

設定 YAML のロードとロギング初期化を行い、疎通テストの実行パラメータを
BootstrapContext として返す。OpenTelemetry の送信先設定は YAML に置かず、
CLI 引数と OTEL_* 環境変数から解決する。
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Mapping, Protocol


class ConfigLoader(Protocol):
    def load(self) -> "ConfigBundle": ...


class LoggingConfigurator(Protocol):
    def configure(self, config: Mapping[str, Any]) -> None: ...


class BootstrapError(RuntimeError):
    """ブートストラップ処理でのエラーを表す基底例外。"""


class MissingConfigurationError(BootstrapError):
    """必須の設定ディレクトリ・セクション・キーが欠落している。"""


class InvalidConfigurationError(BootstrapError):
    """設定値が期待する形式ではない。"""


@dataclass(frozen=True)
class ConfigBundle:
    """マージ・検証済みの設定ツリー。"""

    root: Mapping[str, Any]

    def require_section(self, section: str) -> Mapping[str, Any]:
        """
        セクションを Mapping として返す。

        Raises:
            MissingConfigurationError: セクションが存在しない場合。
            InvalidConfigurationError: セクションが Mapping ではない場合。
        """

        try:
            value = self.root[section]
        except KeyError as exc:
            raise MissingConfigurationError(f"設定セクション '{section}' が存在しません。") from exc
        if not isinstance(value, Mapping):
            raise InvalidConfigurationError(f"設定セクション '{section}' は Mapping である必要があります。")
        return value

    def require_value(self, section: str, key: str) -> Any:
        values = self.require_section(section)
        if key not in values:
            raise MissingConfigurationError(f"設定キー '{section}.{key}' が存在しません。")
        return values[key]


@dataclass(frozen=True)
class DiagnosticsSettings:
    """
    疎通テストの実行パラメータ。

    Attributes:
        flush_timeout_millis: シグナルごとの強制フラッシュ待ち上限（ミリ秒）。
        instrumentation_scope: Tracer / Meter / Logger のスコープ名。
    """

    flush_timeout_millis: int
    instrumentation_scope: str

    def __post_init__(self) -> None:
        if self.flush_timeout_millis <= 0:
            raise InvalidConfigurationError("diagnostics.flush_timeout_millis は正の値である必要があります。")
        if not self.instrumentation_scope:
            raise InvalidConfigurationError("diagnostics.instrumentation_scope は必須です。")

    @classmethod
    def from_bundle(cls, bundle: ConfigBundle) -> "DiagnosticsSettings":
        return cls(
            flush_timeout_millis=int(bundle.require_value("diagnostics", "flush_timeout_millis")),
            instrumentation_scope=str(bundle.require_value("diagnostics", "instrumentation_scope")),
        )


@dataclass(frozen=True)
class BootstrapContext:
    config: ConfigBundle
    diagnostics: DiagnosticsSettings


@dataclass
class BootstrapContainer:
    """
    CLI の初期化を司るコンテナ。

    Attributes:
        config_root: 設定 YAML のルートディレクトリ。
        config_loader_factory: config_root から ConfigLoader を生成する。
        logging_configurator: logging セクションの適用先。
    """

    config_root: Path
    config_loader_factory: Callable[[Path], ConfigLoader]
    logging_configurator: LoggingConfigurator

    def initialize(self) -> BootstrapContext:
        """
        設定をロードし、ロギングを初期化してからコンテキストを返す。

        Raises:
            BootstrapError: 設定の欠落・検証エラー・ロギング設定の適用失敗。
        """

        bundle = self.config_loader_factory(self.config_root).load()
        self.logging_configurator.configure(bundle.require_section("logging"))
        return BootstrapContext(config=bundle, diagnostics=DiagnosticsSettings.from_bundle(bundle))
