"""投票用紙表示コマンド."""

import asyncio
import json

import click

from ballotdesk.domain.value_objects.workflow_policy import policy_for
from ballotdesk.infrastructure.external.ballot_api.converter import (
    BallotApiConverter,
)
from ballotdesk.interfaces.cli.base import BaseCommand, with_error_handling
from ballotdesk.interfaces.cli.commands.ballot._common import (
    WORKFLOW_OPTION,
    echo_ballot,
    resolve_container,
    resolve_workflow,
)


@click.command()
@click.argument("election_id", type=int)
@WORKFLOW_OPTION
@click.option("--json", "as_json", is_flag=True, help="JSONで出力する")
@with_error_handling
def show(election_id: int, workflow: str | None, as_json: bool):
    """選挙の投票用紙を表示する."""
    asyncio.run(_run_show(election_id, workflow, as_json))


async def _run_show(election_id: int, workflow: str | None, as_json: bool) -> None:
    container = resolve_container()
    policy = policy_for(resolve_workflow(container, workflow))
    usecase = container.use_cases.load_ballot_usecase()

    result = await usecase.execute(election_id, policy)
    if not result.success or result.ballot is None:
        BaseCommand.error(result.error_message or "投票用紙を読み込めませんでした。")

    if as_json:
        payload = BallotApiConverter.ballot_payload(result.ballot)
        click.echo(json.dumps(payload, ensure_ascii=False, indent=2))
        return

    if result.election is not None:
        click.echo(f"選挙: {result.election.title} (status: {result.election.status})")
    if result.is_default:
        BaseCommand.warning("投票用紙が未作成のため、初期状態を表示しています。")
    echo_ballot(result.ballot)
