"""
runtime パッケージ公開 API。
"""

from .dependencies import build_bootstrap_container, build_otlp_test_usecase, default_config_root

__all__ = [
    "build_bootstrap_container",
    "build_otlp_test_usecase",
    "default_config_root",
]
