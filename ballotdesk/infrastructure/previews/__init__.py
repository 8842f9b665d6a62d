"""画像プレビューの実装."""

from ballotdesk.infrastructure.previews.staging_preview_service import (
    StagingPreviewService,
)


__all__ = ["StagingPreviewService"]
