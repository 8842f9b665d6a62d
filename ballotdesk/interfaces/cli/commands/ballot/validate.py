"""投票用紙検証コマンド."""

from pathlib import Path

import click

from ballotdesk.domain.services.ballot_validation_service import (
    BallotValidationService,
)
from ballotdesk.domain.value_objects.workflow_policy import policy_for
from ballotdesk.interfaces.cli.base import BaseCommand, with_error_handling
from ballotdesk.interfaces.cli.commands.ballot._common import (
    WORKFLOW_OPTION,
    echo_errors,
    read_ballot_file,
    resolve_container,
    resolve_workflow,
)


@click.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@WORKFLOW_OPTION
@click.option("--election-id", type=int, default=None, help="選挙ID（ファイル優先）")
@with_error_handling
def validate(file: Path, workflow: str | None, election_id: int | None):
    """投票用紙JSONを検証する（サーバーには送信しない）."""
    policy = policy_for(resolve_workflow(resolve_container(), workflow))
    ballot = read_ballot_file(file, election_id)

    errors = BallotValidationService(policy).validate(ballot)
    if errors:
        click.echo(f"{len(errors)}件のエラーがあります:")
        echo_errors(errors)
        raise click.exceptions.Exit(1)

    BaseCommand.success(f"問題はありません（ワークフロー: {policy.name}）")
