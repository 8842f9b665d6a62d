"""選挙バックエンドAPIクライアント.

httpx asyncベースのHTTPクライアント。全リクエストにセッションの
ベアラートークンを付与し、バックエンドの不揃いなエラー応答から
メッセージを抽出する。
"""

from __future__ import annotations

import json
import re

from collections.abc import Callable, Mapping
from typing import Any

import httpx

from ballotdesk.common.logging import get_logger
from ballotdesk.domain.exceptions import (
    AuthenticationRequired,
    BackendError,
    BackendUnavailableError,
)
from ballotdesk.domain.value_objects.image_upload import ImageUpload

from .types import (
    CONNECTION_MESSAGE,
    HTML_BODY_MESSAGE,
    HTML_ERROR_MESSAGE,
    NO_BALLOT_MESSAGE,
    TIMEOUT_MESSAGE,
    ApiResponse,
)


logger = get_logger(__name__)

TokenProvider = Callable[[], str | None]

# JSONとして解析できない本文からmessageを抜き出すパターン
_MESSAGE_PATTERN = re.compile(r'"message"\s*:\s*"([^"]+)"')

_RETRYABLE_STATUSES = frozenset({502, 503, 504})


class BallotApiClient:
    """選挙バックエンドAPIクライアント (httpx async)."""

    def __init__(
        self,
        base_url: str,
        token_provider: TokenProvider,
        client: httpx.AsyncClient | None = None,
        timeout: float | None = None,
    ) -> None:
        """クライアントを初期化する.

        Args:
            base_url: APIのベースURL（例: http://localhost:5000/api）
            token_provider: ベアラートークンを返す関数
            client: 外部から注入するHTTPクライアント
            timeout: タイムアウト秒数（None の場合はhttpxの既定値）
        """
        self.base_url = base_url.rstrip("/")
        self._token_provider = token_provider
        self._external_client = client
        self._owns_client = client is None
        self._timeout = timeout

    async def _get_client(self) -> httpx.AsyncClient:
        """HTTPクライアントを取得（外部注入 or 自動生成）."""
        if self._external_client is not None:
            return self._external_client
        if self._timeout is None:
            return httpx.AsyncClient()
        return httpx.AsyncClient(timeout=self._timeout)

    # ------------------------------------------------------------------
    # 選挙
    # ------------------------------------------------------------------

    async def get_election(self, election_id: int) -> ApiResponse:
        return await self._require("GET", f"/elections/{election_id}")

    async def update_election(
        self, election_id: int, payload: Mapping[str, Any]
    ) -> ApiResponse:
        return await self._require("PUT", f"/elections/{election_id}", json=payload)

    # ------------------------------------------------------------------
    # 投票用紙
    # ------------------------------------------------------------------

    async def get_ballot(self, election_id: int) -> ApiResponse | None:
        """選挙の投票用紙を取得する. 未作成の場合はNone."""
        return await self._request(
            "GET", f"/elections/{election_id}/ballot", not_found_as_none=True
        )

    async def create_ballot(
        self,
        payload: Mapping[str, Any],
        tolerated_statuses: frozenset[int] = frozenset(),
    ) -> ApiResponse:
        return await self._require(
            "POST", "/ballots", json=payload, tolerated_statuses=tolerated_statuses
        )

    async def update_ballot(
        self, ballot_id: int, payload: Mapping[str, Any]
    ) -> ApiResponse:
        return await self._require("PUT", f"/ballots/{ballot_id}", json=payload)

    async def update_description(self, ballot_id: int, description: str) -> ApiResponse:
        return await self._require(
            "PUT",
            f"/ballots/{ballot_id}/description",
            json={"description": description},
        )

    # ------------------------------------------------------------------
    # ポジション
    # ------------------------------------------------------------------

    async def create_position(
        self, ballot_id: int, payload: Mapping[str, Any]
    ) -> ApiResponse:
        return await self._require(
            "POST", f"/ballots/{ballot_id}/positions", json=payload
        )

    async def update_position(
        self, position_id: int, payload: Mapping[str, Any]
    ) -> ApiResponse:
        return await self._require(
            "PUT", f"/ballots/positions/{position_id}", json=payload
        )

    async def delete_position(self, position_id: int) -> ApiResponse:
        return await self._require("DELETE", f"/ballots/positions/{position_id}")

    # ------------------------------------------------------------------
    # 候補者
    # ------------------------------------------------------------------

    async def create_candidate(
        self,
        position_id: int,
        fields: Mapping[str, Any],
        image: ImageUpload | None = None,
        tolerated_statuses: frozenset[int] = frozenset(),
    ) -> ApiResponse:
        """候補者を作成する. 画像がある場合はマルチパートで送信する."""
        path = f"/ballots/positions/{position_id}/candidates"
        if image is None:
            return await self._require(
                "POST", path, json=fields, tolerated_statuses=tolerated_statuses
            )
        return await self._require(
            "POST",
            path,
            data=_form_fields(fields),
            files=_image_file(image),
            tolerated_statuses=tolerated_statuses,
        )

    async def update_candidate(
        self,
        candidate_id: int,
        fields: Mapping[str, Any],
        image: ImageUpload | None = None,
    ) -> ApiResponse:
        """候補者を更新する. 画像がある場合はマルチパートで送信する."""
        path = f"/ballots/candidates/{candidate_id}"
        if image is None:
            return await self._require("PUT", path, json=fields)
        return await self._require(
            "PUT", path, data=_form_fields(fields), files=_image_file(image)
        )

    async def delete_candidate(self, candidate_id: int) -> ApiResponse:
        return await self._require("DELETE", f"/ballots/candidates/{candidate_id}")

    async def upload_candidate_image(self, image: ImageUpload) -> ApiResponse:
        return await self._require(
            "POST", "/ballots/candidates/upload-image", files=_image_file(image)
        )

    # ------------------------------------------------------------------
    # リクエスト実行
    # ------------------------------------------------------------------

    async def _require(self, method: str, path: str, **kwargs: Any) -> ApiResponse:
        response = await self._request(method, path, **kwargs)
        if response is None:
            raise BackendError(f"Empty response from {method} {path}")
        return response

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Mapping[str, Any] | None = None,
        data: Mapping[str, str] | None = None,
        files: Mapping[str, tuple[str, bytes, str]] | None = None,
        tolerated_statuses: frozenset[int] = frozenset(),
        not_found_as_none: bool = False,
    ) -> ApiResponse | None:
        """APIリクエスト実行.

        Raises:
            AuthenticationRequired: トークンがない場合（リクエストは送信しない）
            BackendUnavailableError: 通信エラー・タイムアウト
            BackendError: サーバーがエラーまたはHTMLを返した場合
        """
        token = self._token_provider()
        if not token:
            raise AuthenticationRequired()

        url = f"{self.base_url}{path}"
        client = await self._get_client()
        try:
            response = await client.request(
                method,
                url,
                headers={"Authorization": f"Bearer {token}"},
                json=json,
                data=data,
                files=files,
            )
        except httpx.TimeoutException as e:
            raise BackendUnavailableError(TIMEOUT_MESSAGE) from e
        except httpx.HTTPError as e:
            raise BackendUnavailableError(f"{CONNECTION_MESSAGE} ({e})") from e
        finally:
            if self._owns_client:
                await client.aclose()

        if response.is_success:
            if "text/html" in response.headers.get("content-type", ""):
                raise BackendError(HTML_BODY_MESSAGE, status_code=response.status_code)
            return ApiResponse(
                data=self._parse_body(response), status_code=response.status_code
            )

        message = self._extract_error_message(response)
        if not_found_as_none and (
            response.status_code == 404 or NO_BALLOT_MESSAGE in message
        ):
            logger.info("リソースが存在しない", method=method, path=path)
            return None

        if response.status_code in tolerated_statuses:
            logger.warning(
                "エラーステータスを警告付きの成功として扱う",
                method=method,
                path=path,
                status=response.status_code,
                message=message,
            )
            return ApiResponse(
                data=self._parse_body(response),
                status_code=response.status_code,
                warning=message,
            )

        raise BackendError(
            message,
            status_code=response.status_code,
            retryable=response.status_code in _RETRYABLE_STATUSES,
        )

    @staticmethod
    def _parse_body(response: httpx.Response) -> Any:
        """レスポンス本文を解析する. 不正な本文でも例外は送出しない."""
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError:
            pass

        text = response.text
        start, end = text.find("{"), text.rfind("}")
        if start != -1 and end > start:
            try:
                return json.loads(text[start : end + 1])
            except ValueError:
                logger.debug("本文中のJSONを解析できません", status=response.status_code)
        return {"raw": text}

    @staticmethod
    def _extract_error_message(response: httpx.Response) -> str:
        """エラーレスポンスからメッセージを抽出する."""
        fallback = f"Request failed with status {response.status_code}"
        try:
            payload = response.json()
        except ValueError:
            payload = None
        else:
            if isinstance(payload, dict) and payload.get("message"):
                return str(payload["message"])
            return fallback

        if "text/html" in response.headers.get("content-type", ""):
            return HTML_ERROR_MESSAGE

        text = response.text.strip()
        if "{" in text and "}" in text:
            match = _MESSAGE_PATTERN.search(text)
            if match:
                return match.group(1)
        return text or fallback


def _form_fields(fields: Mapping[str, Any]) -> dict[str, str]:
    """マルチパート送信用にフィールドを文字列化する. Noneは送信しない."""
    return {key: str(value) for key, value in fields.items() if value is not None}


def _image_file(image: ImageUpload) -> dict[str, tuple[str, bytes, str]]:
    return {"image": (image.filename, image.content, image.content_type)}
