"""
解決済みの OpenTelemetry 設定プロパティを表す値オブジェクト。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterator, Mapping

SERVICE_NAME = "otel.service.name"
RESOURCE_ATTRIBUTES = "otel.resource.attributes"
TRACES_EXPORTER = "otel.traces.exporter"
METRICS_EXPORTER = "otel.metrics.exporter"
LOGS_EXPORTER = "otel.logs.exporter"
OTLP_PROTOCOL = "otel.exporter.otlp.protocol"
OTLP_HEADERS = "otel.exporter.otlp.headers"
OTLP_ENDPOINT = "otel.exporter.otlp.endpoint"


@dataclass(frozen=True)
class EffectiveConfig(Mapping[str, str]):
    """
    プロパティ名から文字列値への順序付きマッピング。

    生成後は変更できない。挿入順はそのまま保持される。
    """

    properties: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        for key, value in self.properties.items():
            if not isinstance(key, str) or not key:
                raise ValueError("プロパティ名は非空の文字列である必要があります。")
            if not isinstance(value, str):
                raise ValueError(f"プロパティ '{key}' の値は文字列である必要があります。")
        object.__setattr__(self, "properties", MappingProxyType(dict(self.properties)))

    def __getitem__(self, key: str) -> str:
        return self.properties[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self.properties)

    def __len__(self) -> int:
        return len(self.properties)

    def to_dict(self) -> dict[str, str]:
        """プロパティの浅いコピーを返す。"""

        return dict(self.properties)
