"""画像プレビューハンドル生成サービスのインターフェース."""

from typing import Protocol

from ballotdesk.domain.value_objects.image_upload import ImageUpload, PreviewHandle


class IImagePreviewService(Protocol):
    """ローカル画像の短命な表示ハンドルを提供するランタイム機能.

    ブラウザのオブジェクトURLに相当する。実行環境に応じて
    一時ファイルなどで代替する。
    """

    def create(self, image: ImageUpload) -> PreviewHandle:
        """画像の表示ハンドルを生成する."""
        ...

    def revoke(self, handle: PreviewHandle) -> None:
        """表示ハンドルを解放する. 解放済みでもエラーにしない."""
        ...
