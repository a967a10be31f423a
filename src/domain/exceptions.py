"""
OTLP 疎通テストで利用する例外定義。
"""

from __future__ import annotations


class OtlpTestError(RuntimeError):
    """OTLP 疎通テストが発生させる基底例外。"""


class ConfigurationError(OtlpTestError):
    """
    プロバイダ構築時に即時検証で拒否された設定値。

    シグナル送信前に発生し、実行を中断する。
    """


class EmissionError(OtlpTestError):
    """スパン・カウンタ・ログの生成中に発生した想定外の失敗。"""


class FlushError(OtlpTestError):
    """
    エクスポータが明示的に失敗を返した。

    実行は継続し、該当シグナルの結果として報告される。
    """
