"""
Resource 属性を表示用に整形する。
"""

from __future__ import annotations

from typing import Sequence

from opentelemetry.sdk.resources import Resource

NULL_PLACEHOLDER = "#null#"


class ResourceDescriber:
    def describe(self, resource: Resource) -> list[tuple[str, str]]:
        """属性を Resource 本来の順序で (キー, 表示値) の列として返す。"""

        return [(key, _render(value)) for key, value in resource.attributes.items()]


def _render(value: object) -> str:
    if value is None:
        return NULL_PLACEHOLDER
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes)):
        return "[" + ", ".join(_render(item) for item in value) + "]"
    return str(value)
