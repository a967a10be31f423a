"""
設定 YAML 群を読み込み、検証済みの ConfigBundle を生成するローダ。
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Iterable, Mapping

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .container import (
    ConfigBundle,
    ConfigLoader,
    InvalidConfigurationError,
    MissingConfigurationError,
)

LOGGER = logging.getLogger("otlp_test_cli.bootstrap")

YAML_SUFFIXES = (".yaml", ".yml")


class LoggingConfigModel(BaseModel):
    """dictConfig へ渡す前の最小検証。"""

    model_config = ConfigDict(extra="allow")

    version: int


class DiagnosticsConfigModel(BaseModel):
    flush_timeout_millis: int = Field(gt=0)
    instrumentation_scope: str = Field(min_length=1)


class AppConfigModel(BaseModel):
    """
    CLI 全体の設定バリデーション。

    logging と diagnostics は必須。その他のセクションはそのまま保持する。
    """

    model_config = ConfigDict(extra="allow")

    logging: LoggingConfigModel
    diagnostics: DiagnosticsConfigModel


class YamlConfigLoader(ConfigLoader):
    """
    ``<config_root>/base`` に ``<config_root>/envs/<env>`` を重ねてロードする。

    環境名は引数、次いで ``SERVICE_ENV`` から決まる。どちらも無ければ base のみを使う。
    環境差分は base に存在するキーしか上書きできない。
    """

    def __init__(self, config_root: Path, *, environment: str | None = None) -> None:
        self._config_root = config_root.resolve()
        self._environment = environment or os.getenv("SERVICE_ENV")

    @property
    def environment(self) -> str | None:
        return self._environment

    def load(self) -> ConfigBundle:
        merged = _read_layer(self._config_root / "base", label="基本設定ディレクトリ")

        if self._environment:
            overlay = _read_layer(
                self._config_root / "envs" / self._environment,
                label=f"環境設定ディレクトリ ({self._environment})",
            )
            _validate_overlay_keys(merged, overlay)
            merged = _deep_merge(merged, overlay)

        try:
            validated = AppConfigModel(**merged)
        except ValidationError as exc:
            locations = ", ".join(".".join(str(part) for part in error["loc"]) for error in exc.errors())
            raise InvalidConfigurationError(f"設定値の検証に失敗しました: {locations}") from exc

        return ConfigBundle(root=validated.model_dump())


def _read_layer(directory: Path, *, label: str) -> dict[str, Any]:
    if not directory.is_dir():
        raise MissingConfigurationError(f"{label} ({directory}) が存在しません。")

    files = sorted(path for path in directory.rglob("*") if path.suffix in YAML_SUFFIXES)
    if not files:
        raise MissingConfigurationError(f"{directory} に YAML ファイルが存在しません。")

    LOGGER.debug("Loading %d config file(s) from %s", len(files), directory)
    layer: dict[str, Any] = {}
    for content in _read_mappings(files):
        layer = _deep_merge(layer, content)
    return layer


def _read_mappings(files: Iterable[Path]) -> Iterable[Mapping[str, Any]]:
    for file_path in files:
        try:
            content = yaml.safe_load(file_path.read_text(encoding="utf-8"))
        except yaml.YAMLError as exc:
            raise InvalidConfigurationError(f"YAML の解析に失敗しました: {file_path}") from exc
        if not isinstance(content, Mapping):
            raise InvalidConfigurationError(
                f"YAML ファイルのトップレベルは Mapping である必要があります: {file_path}"
            )
        yield content


def _deep_merge(base: Mapping[str, Any], overlay: Mapping[str, Any]) -> dict[str, Any]:
    """ネストされた辞書をマージする。overlay の値が優先される。"""

    result: dict[str, Any] = dict(base)
    for key, value in overlay.items():
        current = result.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            result[key] = _deep_merge(current, value)
        else:
            result[key] = value
    return result


def _validate_overlay_keys(base: Mapping[str, Any], overlay: Mapping[str, Any], *, path: str = "") -> None:
    for key, value in overlay.items():
        dotted = f"{path}{key}"
        if key not in base:
            raise InvalidConfigurationError(
                f"環境差分で未定義の設定キー '{dotted}' が検出されました。先に base へ定義を追加してください。"
            )
        if not isinstance(value, Mapping):
            continue
        if not isinstance(base[key], Mapping):
            raise InvalidConfigurationError(f"設定キー '{dotted}' は base ではスカラー値です。")
        _validate_overlay_keys(base[key], value, path=f"{dotted}.")
