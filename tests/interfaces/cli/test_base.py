"""CLI共通基盤のテスト."""

import click

from click.testing import CliRunner

from ballotdesk.domain.exceptions import (
    AuthenticationRequired,
    BackendError,
    BallotDeskError,
)
from ballotdesk.interfaces.cli.base import with_error_handling


def _command(error: Exception) -> click.Command:
    @click.command()
    @with_error_handling
    def failing():
        raise error

    return failing


class TestWithErrorHandling:
    def test_precondition_failure(self) -> None:
        result = CliRunner().invoke(_command(AuthenticationRequired()))

        assert result.exit_code == 2
        assert "認証が必要です" in result.output

    def test_retryable_backend_error(self) -> None:
        result = CliRunner().invoke(
            _command(BackendError("Service Unavailable", 503, retryable=True))
        )

        assert result.exit_code == 3
        assert "Service Unavailable（再試行できます）" in result.output

    def test_domain_error(self) -> None:
        result = CliRunner().invoke(_command(BallotDeskError("読み込めません")))

        assert result.exit_code == 1
        assert "読み込めません" in result.output

    def test_unexpected_error(self) -> None:
        result = CliRunner().invoke(_command(RuntimeError("boom")))

        assert result.exit_code == 1
        assert "予期しないエラー" in result.output

    def test_click_exceptions_pass_through(self) -> None:
        result = CliRunner().invoke(_command(click.BadParameter("bad")))

        assert result.exit_code == 2
        assert "bad" in result.output
