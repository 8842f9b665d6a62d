"""CLIコマンドの共通基盤."""

import functools
import sys

from collections.abc import Callable
from typing import Any, NoReturn, TypeVar

import click

from ballotdesk.common.logging import get_logger
from ballotdesk.domain.exceptions import (
    BackendError,
    BallotDeskError,
    PreconditionFailed,
)


F = TypeVar("F", bound=Callable[..., Any])

logger = get_logger(__name__)


class BaseCommand:
    """CLIコマンドの出力ヘルパー."""

    @staticmethod
    def show_progress(message: str) -> None:
        click.echo(message)

    @staticmethod
    def success(message: str) -> None:
        click.secho(f"✓ {message}", fg="green")

    @staticmethod
    def warning(message: str) -> None:
        click.secho(f"⚠ {message}", fg="yellow", err=True)

    @staticmethod
    def error(message: str, exit_code: int = 1) -> NoReturn:
        click.secho(f"✗ {message}", fg="red", err=True)
        sys.exit(exit_code)


def with_error_handling(func: F) -> F:
    """コマンド実行中の例外を終了コード付きのエラー表示に変換する.

    終了コード:
        2: 前提条件エラー（認証トークンなしなど）
        3: バックエンドエラー
        1: その他
    """

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except click.exceptions.Exit:
            raise
        except click.ClickException:
            raise
        except PreconditionFailed as e:
            BaseCommand.error(str(e), exit_code=2)
        except BackendError as e:
            suffix = "（再試行できます）" if e.retryable else ""
            BaseCommand.error(f"{e}{suffix}", exit_code=3)
        except BallotDeskError as e:
            BaseCommand.error(str(e), exit_code=1)
        except Exception as e:
            logger.exception(f"Unexpected error in {func.__name__}")
            BaseCommand.error(f"予期しないエラーが発生しました: {e}", exit_code=1)

    return wrapper  # type: ignore[return-value]
