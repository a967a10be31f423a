"""
ロギング初期化ロジック。
"""

from __future__ import annotations

import logging
import logging.config
from typing import Any, Mapping

from .container import InvalidConfigurationError, LoggingConfigurator


class DictConfigLoggingConfigurator(LoggingConfigurator):
    """
    logging セクションを ``logging.config.dictConfig`` で適用する。

    レポートは標準出力へ書くため、設定側のハンドラは標準エラー出力を使う。
    ``root_level`` はルートロガーのレベルを適用後に上書きする (``--verbose`` 用)。
    """

    def __init__(self, *, root_level: str | None = None) -> None:
        self._root_level = root_level

    def configure(self, config: Mapping[str, Any]) -> None:
        if "version" not in config:
            raise InvalidConfigurationError("logging 設定に 'version' が存在しません。")

        try:
            logging.config.dictConfig(_plain(config))
        except (ValueError, TypeError, AttributeError, ImportError) as exc:
            raise InvalidConfigurationError(f"logging 設定の適用に失敗しました: {exc}") from exc

        if self._root_level is None:
            return
        level = logging.getLevelName(self._root_level.upper())
        if not isinstance(level, int):
            raise InvalidConfigurationError(f"未知のログレベル '{self._root_level}' が指定されました。")
        logging.getLogger().setLevel(level)


def _plain(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {key: _plain(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_plain(item) for item in value]
    return value
