"""
CLI の上書き値と固定プロパティを EffectiveConfig へマージする。
"""

from __future__ import annotations

import base64
from dataclasses import dataclass

from domain.models import EffectiveConfig
from domain.models.effective_config import (
    LOGS_EXPORTER,
    METRICS_EXPORTER,
    OTLP_HEADERS,
    OTLP_PROTOCOL,
    SERVICE_NAME,
    TRACES_EXPORTER,
)

DEFAULT_SERVICE_NAME = "otlp-test-cli"


@dataclass(frozen=True)
class ConfigOverrides:
    """
    利用者が指定できる上書き値。

    Attributes:
        protocol: OTLP プロトコル (grpc, http/protobuf, http/json)。
        headers: ``key=value,key2=value2`` 形式の追加ヘッダ。
        basic_auth_username: Basic 認証のユーザ名。
        basic_auth_password: Basic 認証のパスワード。
    """

    protocol: str | None = None
    headers: str | None = None
    basic_auth_username: str | None = None
    basic_auth_password: str | None = None


class ConfigResolver:
    """
    固定プロパティと上書き値から EffectiveConfig を組み立てる。

    空白のみの上書き値は指定されなかったものとして扱う。解決処理は失敗しない。
    """

    def __init__(self, *, service_name: str = DEFAULT_SERVICE_NAME) -> None:
        self._service_name = service_name

    def resolve(self, overrides: ConfigOverrides | None = None) -> EffectiveConfig:
        overrides = overrides or ConfigOverrides()
        properties: dict[str, str] = {
            SERVICE_NAME: self._service_name,
            TRACES_EXPORTER: "otlp",
            METRICS_EXPORTER: "otlp",
            LOGS_EXPORTER: "otlp",
        }

        protocol = _non_blank(overrides.protocol)
        if protocol is not None:
            # 未対応の値もそのまま渡し、エクスポート時の失敗として報告させる。
            properties[OTLP_PROTOCOL] = protocol

        header_entries: list[str] = []
        headers = _non_blank(overrides.headers)
        if headers is not None:
            header_entries.append(headers)

        username = _non_blank(overrides.basic_auth_username)
        if username is not None:
            header_entries.append(
                f"Authorization={basic_authorization(username, overrides.basic_auth_password or '')}"
            )

        if header_entries:
            properties[OTLP_HEADERS] = ",".join(header_entries)

        return EffectiveConfig(properties)


def basic_authorization(username: str, password: str) -> str:
    """``Basic <base64(user:pass)>`` 形式のヘッダ値を返す。"""

    credentials = f"{username}:{password}".encode("utf-8")
    return "Basic " + base64.b64encode(credentials).decode("ascii")


def _non_blank(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None
