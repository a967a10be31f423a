"""
明示プロパティと環境変数を統合した OpenTelemetry 設定ビュー。
"""

from __future__ import annotations

import os
from typing import Mapping
from urllib.parse import unquote

from domain.exceptions import ConfigurationError


class ConfigProperties:
    """
    ``otel.*`` プロパティの解決済みビュー。

    明示プロパティを優先し、未設定のものはプロパティ名から導出した環境変数
    (``otel.exporter.otlp.endpoint`` -> ``OTEL_EXPORTER_OTLP_ENDPOINT``) を参照する。
    空白のみの値は未設定として扱う。
    """

    def __init__(self, explicit: Mapping[str, str], environ: Mapping[str, str] | None = None) -> None:
        self._explicit = dict(explicit)
        self._environ = os.environ if environ is None else environ

    @staticmethod
    def env_name(name: str) -> str:
        return name.upper().replace(".", "_").replace("-", "_")

    def get_string(self, name: str) -> str | None:
        for value in (self._explicit.get(name), self._environ.get(self.env_name(name))):
            if value is not None and value.strip():
                return value.strip()
        return None

    def get_int(self, name: str, default: int) -> int:
        raw = self.get_string(name)
        if raw is None:
            return default
        try:
            return int(raw)
        except ValueError as exc:
            raise ConfigurationError(f"{name} は整数である必要があります: '{raw}'") from exc

    def get_float(self, name: str, default: float) -> float:
        raw = self.get_string(name)
        if raw is None:
            return default
        try:
            return float(raw)
        except ValueError as exc:
            raise ConfigurationError(f"{name} は数値である必要があります: '{raw}'") from exc

    def get_list(self, name: str) -> list[str]:
        raw = self.get_string(name)
        if raw is None:
            return []
        return [item.strip() for item in raw.split(",") if item.strip()]

    def get_map(self, name: str) -> dict[str, str]:
        """
        ``key=value,key2=value2`` 形式の値を辞書として返す。

        値はパーセントエンコーディングを復号する。``=`` を含まない要素や
        空のキーは ConfigurationError とする。
        """

        result: dict[str, str] = {}
        for entry in self.get_list(name):
            key, separator, value = entry.partition("=")
            key = key.strip()
            if not separator or not key:
                raise ConfigurationError(f"{name} の要素 '{entry}' は key=value 形式である必要があります。")
            result[key] = unquote(value.strip())
        return result
