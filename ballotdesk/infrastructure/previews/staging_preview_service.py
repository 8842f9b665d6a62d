"""一時ファイルによる画像プレビュー."""

from __future__ import annotations

import tempfile

from pathlib import Path

from ballotdesk.common.logging import get_logger
from ballotdesk.domain.value_objects.image_upload import ImageUpload, PreviewHandle


logger = get_logger(__name__)


class StagingPreviewService:
    """選択された画像をステージング用の一時ファイルに書き出す.

    revoke で一時ファイルを削除する。同じハンドルを複数回 revoke しても安全。
    """

    def __init__(self, staging_dir: Path | None = None) -> None:
        self.staging_dir = staging_dir

    def create(self, image: ImageUpload) -> PreviewHandle:
        directory = self.staging_dir
        if directory is not None:
            directory.mkdir(parents=True, exist_ok=True)
        suffix = Path(image.filename).suffix
        with tempfile.NamedTemporaryFile(
            prefix="preview-", suffix=suffix, dir=directory, delete=False
        ) as handle:
            handle.write(image.content)
            path = Path(handle.name)
        return PreviewHandle(uri=path.as_uri(), path=path)

    def revoke(self, handle: PreviewHandle) -> None:
        if handle.path is None:
            return
        handle.path.unlink(missing_ok=True)
        logger.debug("プレビューを解放", path=str(handle.path))
