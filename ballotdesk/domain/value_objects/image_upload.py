"""候補者画像のアップロード関連の値オブジェクト."""

from __future__ import annotations

import mimetypes

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class ImageUpload:
    """ユーザーが選択した未送信の画像ファイル."""

    filename: str
    content_type: str
    content: bytes

    @property
    def size(self) -> int:
        """ファイルサイズ（バイト）."""
        return len(self.content)

    @classmethod
    def from_path(cls, path: Path | str) -> ImageUpload:
        """ローカルファイルから生成する. MIMEタイプは拡張子から推定する."""
        file_path = Path(path)
        content_type, _ = mimetypes.guess_type(file_path.name)
        return cls(
            filename=file_path.name,
            content_type=content_type or "application/octet-stream",
            content=file_path.read_bytes(),
        )


@dataclass(frozen=True)
class PreviewHandle:
    """ローカル画像の短命な表示ハンドル.

    アップロード完了前に画像を表示するためのもので、
    ツリーから参照されなくなったら解放（revoke）する。
    """

    uri: str
    path: Path | None = None
