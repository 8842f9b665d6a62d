"""選挙バックエンドAPIのレスポンス型定義."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


# 「投票用紙なし」を表すエラーメッセージ
NO_BALLOT_MESSAGE = "No ballot found"

HTML_ERROR_MESSAGE = "Server returned an HTML error page. Please try again later."
HTML_BODY_MESSAGE = "Server returned HTML instead of JSON. Please try again later."
TIMEOUT_MESSAGE = "request timeout"
CONNECTION_MESSAGE = (
    "Unable to connect to the server. Please check your internet connection."
)


@dataclass(frozen=True)
class ApiResponse:
    """APIレスポンス.

    Attributes:
        data: 解析済みのレスポンスボディ（JSONでない場合は {"raw": text}）
        status_code: HTTPステータスコード
        warning: 許容ステータスで成功扱いにした場合のメッセージ
    """

    data: Any
    status_code: int
    warning: str | None = None

    @property
    def is_qualified_success(self) -> bool:
        return self.warning is not None
