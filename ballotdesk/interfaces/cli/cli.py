"""ballotdesk CLI のエントリーポイント."""

import click

from ballotdesk import __version__
from ballotdesk.common.logging import setup_logging
from ballotdesk.interfaces.cli.commands.ballot import ballot


@click.group()
@click.version_option(__version__, prog_name="ballotdesk")
@click.option("--log-level", default=None, help="ログレベル（デフォルト: 設定値）")
@click.option("--json-logs", is_flag=True, default=None, help="JSON形式でログを出力")
def cli(log_level: str | None, json_logs: bool | None):
    """選挙管理コンソールの投票用紙エディタ (ballotdesk)."""
    from ballotdesk.infrastructure.config.settings import get_settings

    settings = get_settings()
    setup_logging(
        log_level=log_level or settings.log_level,
        json_format=settings.log_json if json_logs is None else json_logs,
    )


cli.add_command(ballot)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
