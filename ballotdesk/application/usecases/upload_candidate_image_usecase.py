"""候補者画像アップロードのユースケース."""

from collections.abc import Callable

from ballotdesk.application.dtos.ballot_dto import UploadImageOutputDto
from ballotdesk.common.logging import get_logger
from ballotdesk.domain.exceptions import PreconditionFailed
from ballotdesk.domain.services.candidate_image_service import CandidateImageService
from ballotdesk.domain.services.interfaces.ballot_gateway import IBallotGateway
from ballotdesk.domain.services.interfaces.image_preview_service import (
    IImagePreviewService,
)
from ballotdesk.domain.value_objects.image_upload import ImageUpload, PreviewHandle
from ballotdesk.domain.value_objects.workflow_policy import WorkflowPolicy


logger = get_logger(__name__)


class UploadCandidateImageUseCase:
    """候補者画像を検証し、プレビューを作成してからアップロードする.

    アップロードに失敗してもプレビューは破棄しない。呼び出し側は
    画像を保留状態で保持し、候補者保存時に再送する。
    """

    def __init__(
        self,
        gateway: IBallotGateway,
        preview_service: IImagePreviewService,
    ) -> None:
        self.gateway = gateway
        self.preview_service = preview_service

    async def execute(
        self,
        image: ImageUpload | None,
        policy: WorkflowPolicy,
        on_preview: Callable[[PreviewHandle], None] | None = None,
    ) -> UploadImageOutputDto:
        """画像をアップロードする.

        Args:
            image: 選択された画像
            policy: ワークフローポリシー（サイズ上限）
            on_preview: プレビュー作成直後、送信前に呼ばれるコールバック
        """
        error = CandidateImageService.validate(image, policy.max_image_bytes)
        if error is not None or image is None:
            return UploadImageOutputDto(
                success=False, rejected=True, error_message=error
            )

        preview = self.preview_service.create(image)
        logger.debug(
            "画像プレビューを作成",
            filename=image.filename,
            content_type=image.content_type,
            size=image.size,
        )
        if on_preview is not None:
            on_preview(preview)

        try:
            file_path = await self.gateway.upload_candidate_image(image)
        except PreconditionFailed:
            if on_preview is None:
                self.preview_service.revoke(preview)
            raise
        except Exception as e:
            logger.error(f"Error uploading candidate image: {e}")
            return UploadImageOutputDto(
                success=False,
                preview=preview,
                error_message=str(e) or "画像のアップロード中にサーバーエラーが発生しました。",
            )

        return UploadImageOutputDto(success=True, preview=preview, file_path=file_path)

    async def retry_pending(self, image: ImageUpload) -> str | None:
        """保留中の画像を再送する. 失敗時はNone."""
        try:
            return await self.gateway.upload_candidate_image(image)
        except PreconditionFailed:
            raise
        except Exception as e:
            logger.warning(f"Retrying pending image {image.filename} failed: {e}")
            return None
