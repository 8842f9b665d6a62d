"""候補者画像の検証と表示元の決定."""

from ballotdesk.domain.entities.ballot import Candidate
from ballotdesk.domain.value_objects.image_upload import ImageUpload


DEFAULT_CANDIDATE_IMAGE = "/default-candidate.png"


class CandidateImageService:
    """候補者画像に関するドメインロジック."""

    @staticmethod
    def validate(image: ImageUpload | None, max_bytes: int) -> str | None:
        """選択された画像ファイルをクライアント側で検証する.

        Returns:
            エラーメッセージ。問題がなければNone。
        """
        if image is None:
            return "ファイルが選択されていません。"
        if not image.content_type.lower().startswith("image/"):
            return "画像ファイルのみアップロードできます。"
        if image.size > max_bytes:
            limit_mb = max_bytes / (1024 * 1024)
            return f"画像は{limit_mb:g}MB以下にしてください。"
        return None

    @staticmethod
    def resolve_image_url(
        image_path: str | None,
        asset_base_url: str = "",
        placeholder: str = DEFAULT_CANDIDATE_IMAGE,
    ) -> str:
        """バックエンドが返す相対パスを表示用URLに変換する.

        絶対URLはそのまま、相対パスはベースURLを付与する。
        パスがない場合はプレースホルダー画像を返す。
        """
        if not image_path:
            return placeholder
        if image_path.startswith(("http://", "https://", "data:", "file:")):
            return image_path
        base = asset_base_url.rstrip("/")
        path = image_path if image_path.startswith("/") else f"/{image_path}"
        return f"{base}{path}"

    @classmethod
    def display_source(
        cls,
        candidate: Candidate,
        asset_base_url: str = "",
        placeholder: str = DEFAULT_CANDIDATE_IMAGE,
    ) -> str:
        """候補者の画像表示元を決定する.

        優先順位: ローカルプレビュー → サーバー上のパス → プレースホルダー
        """
        if candidate.local_preview is not None:
            return candidate.local_preview.uri
        return cls.resolve_image_url(candidate.image_url, asset_base_url, placeholder)
