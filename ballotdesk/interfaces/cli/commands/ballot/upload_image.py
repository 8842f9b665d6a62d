"""候補者画像アップロードコマンド."""

import asyncio

from pathlib import Path

import click

from ballotdesk.domain.services.candidate_image_service import CandidateImageService
from ballotdesk.domain.value_objects.image_upload import ImageUpload
from ballotdesk.domain.value_objects.workflow_policy import policy_for
from ballotdesk.interfaces.cli.base import BaseCommand, with_error_handling
from ballotdesk.interfaces.cli.commands.ballot._common import (
    WORKFLOW_OPTION,
    resolve_container,
    resolve_workflow,
)


@click.command("upload-image")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@WORKFLOW_OPTION
@with_error_handling
def upload_image(path: Path, workflow: str | None):
    """候補者画像をアップロードし、サーバー上のパスを表示する."""
    asyncio.run(_run_upload(path, workflow))


async def _run_upload(path: Path, workflow: str | None) -> None:
    container = resolve_container()
    policy = policy_for(resolve_workflow(container, workflow))
    usecase = container.use_cases.upload_candidate_image_usecase()
    preview_service = container.services.preview_service()

    result = await usecase.execute(ImageUpload.from_path(path), policy)
    if result.preview is not None:
        preview_service.revoke(result.preview)

    if not result.success or result.file_path is None:
        BaseCommand.error(result.error_message or "アップロードに失敗しました。")

    BaseCommand.success(f"アップロードしました: {result.file_path}")
    asset_base_url = container.settings().asset_base_url
    click.echo(
        CandidateImageService.resolve_image_url(result.file_path, asset_base_url)
    )
