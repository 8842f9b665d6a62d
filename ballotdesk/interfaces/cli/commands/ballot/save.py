"""投票用紙保存コマンド."""

import asyncio

from pathlib import Path

import click

from ballotdesk.application.services.ballot_editor_service import BallotEditorService
from ballotdesk.domain.value_objects.workflow_policy import policy_for
from ballotdesk.interfaces.cli.base import BaseCommand, with_error_handling
from ballotdesk.interfaces.cli.commands.ballot._common import (
    WORKFLOW_OPTION,
    echo_errors,
    read_ballot_file,
    resolve_container,
    resolve_workflow,
    write_ballot_file,
)


@click.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@WORKFLOW_OPTION
@click.option("--election-id", type=int, default=None, help="選挙ID（ファイル優先）")
@click.option(
    "--candidates-only",
    is_flag=True,
    help="新規候補者のみ1人ずつ保存する（ツリー全体は送信しない）",
)
@click.option(
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="保存後の投票用紙を書き出すファイル",
)
@with_error_handling
def save(
    file: Path,
    workflow: str | None,
    election_id: int | None,
    candidates_only: bool,
    output: Path | None,
):
    """投票用紙JSONを検証してバックエンドに保存する."""
    asyncio.run(_run_save(file, workflow, election_id, candidates_only, output))


async def _run_save(
    file: Path,
    workflow: str | None,
    election_id: int | None,
    candidates_only: bool,
    output: Path | None,
) -> None:
    container = resolve_container()
    policy = policy_for(resolve_workflow(container, workflow))
    ballot = read_ballot_file(file, election_id)

    editor = BallotEditorService(
        ballot,
        policy,
        sync_usecase=container.use_cases.sync_ballot_field_usecase(),
        save_usecase=container.use_cases.save_ballot_usecase(),
        upload_usecase=container.use_cases.upload_candidate_image_usecase(),
        preview_service=container.services.preview_service(),
    )

    if candidates_only:
        await _save_candidates(editor)
    else:
        await _save_ballot(editor)

    if output is not None:
        write_ballot_file(output, editor.ballot)
        BaseCommand.show_progress(f"保存結果を書き出しました: {output}")
    editor.close()


async def _save_ballot(editor: BallotEditorService) -> None:
    result = await editor.save()
    if not result.success:
        if editor.errors:
            click.echo(f"{len(editor.errors)}件のエラーがあります:")
            echo_errors(editor.errors)
        BaseCommand.error(result.error_message or "保存に失敗しました。")

    action = "作成" if result.created else "更新"
    BaseCommand.success(f"投票用紙を{action}しました（id: {editor.ballot.id}）")
    if editor.notice:
        BaseCommand.warning(editor.notice)


async def _save_candidates(editor: BallotEditorService) -> None:
    result = await editor.save_candidates_individually()
    if result is None:
        BaseCommand.error(editor.api_error or "候補者を保存できませんでした。", 2)

    saved = len(result.outcomes) - len(result.failed)
    BaseCommand.success(f"{saved}/{len(result.outcomes)}人の候補者を保存しました")
    for outcome in result.outcomes:
        if outcome.warning:
            BaseCommand.warning(f"{outcome.original_id}: {outcome.warning}")
    if result.failed:
        for outcome in result.failed:
            BaseCommand.warning(f"{outcome.original_id}: {outcome.error_message}")
        raise click.exceptions.Exit(1)
