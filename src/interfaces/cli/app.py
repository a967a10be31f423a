"""
Typer ベースの CLI。
"""

from __future__ import annotations

import typer

from .commands import otlp


def create_cli() -> typer.Typer:
    app = typer.Typer(help="otlp-test-cli: OpenTelemetry OTLP パイプライン診断")

    @app.callback()
    def _root() -> None:
        """OpenTelemetry OTLP パイプライン診断コマンド。"""

    app.command("test")(otlp.run_test)
    return app


def main() -> None:
    create_cli()(prog_name="otlp-test-cli")
