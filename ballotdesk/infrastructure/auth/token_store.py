"""セッショントークンの保管."""

from __future__ import annotations

from pathlib import Path

from ballotdesk.infrastructure.config.settings import Settings


class SessionTokenStore:
    """ログイン済みセッションのベアラートークンを保持する.

    明示的に設定されたトークンを優先し、なければトークンファイルを読む。
    どちらもなければ None を返す（呼び出し側で認証エラーにする）。
    """

    def __init__(self, token: str | None = None, token_file: Path | None = None):
        self._token = token or None
        self.token_file = token_file

    @classmethod
    def from_settings(cls, settings: Settings) -> SessionTokenStore:
        token = settings.api_token.get_secret_value() if settings.api_token else None
        return cls(token=token, token_file=settings.token_file)

    def get_token(self) -> str | None:
        if self._token:
            return self._token
        if self.token_file is None or not self.token_file.is_file():
            return None
        token = self.token_file.read_text(encoding="utf-8").strip()
        return token or None

    def __call__(self) -> str | None:
        return self.get_token()
