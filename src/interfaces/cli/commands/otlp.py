"""
OTLP 疎通テスト CLI コマンド。
"""

from __future__ import annotations

from pathlib import Path

import typer

from application.services import ConfigOverrides
from bootstrap import BootstrapError
from domain.exceptions import OtlpTestError
from runtime import build_bootstrap_container, build_otlp_test_usecase, default_config_root


def run_test(
    otlp_protocol: str | None = typer.Option(
        None, "--otlp-protocol", help="OTLP プロトコル (grpc, http/protobuf, http/json)"
    ),
    otlp_headers: str | None = typer.Option(
        None, "--otlp-headers", help="追加ヘッダ (key=value,key2=value2)"
    ),
    basic_auth_username: str | None = typer.Option(
        None, "--otlp-basic-auth-username", help="Basic 認証のユーザ名"
    ),
    basic_auth_password: str | None = typer.Option(
        None, "--otlp-basic-auth-password", help="Basic 認証のパスワード"
    ),
    config_root: Path | None = typer.Option(
        None, "--config-root", help="設定 YAML のルート (既定: <project>/configs)"
    ),
    env: str | None = typer.Option(None, "--env", help="SERVICE_ENV"),
    verbose: bool = typer.Option(False, "--verbose", help="DEBUG ログを標準エラー出力へ出す"),
    fail_on_export_error: bool = typer.Option(
        False,
        "--fail-on-export-error",
        help="いずれかのシグナルが Success 以外なら終了コード 1 を返す",
    ),
) -> None:
    """
    スパン・カウンタ・ログを 1 件ずつ送出し、シグナルごとに強制フラッシュの結果を表示する。
    """

    try:
        context = build_bootstrap_container(
            config_root or default_config_root(),
            environment=env,
            verbose=verbose,
        ).initialize()
    except BootstrapError as exc:
        typer.secho(f"設定の初期化に失敗しました: {exc}", err=True, fg=typer.colors.RED)
        raise typer.Exit(code=1) from exc

    usecase = build_otlp_test_usecase(context.diagnostics)
    overrides = ConfigOverrides(
        protocol=otlp_protocol,
        headers=otlp_headers,
        basic_auth_username=basic_auth_username,
        basic_auth_password=basic_auth_password,
    )
    try:
        result = usecase.execute(overrides)
    except OtlpTestError as exc:
        typer.secho(f"OTLP 疎通テストを中断しました: {exc}", err=True, fg=typer.colors.RED)
        raise typer.Exit(code=1) from exc

    if fail_on_export_error and not result.all_exported:
        raise typer.Exit(code=1)
