"""アプリケーション設定.

環境変数（プレフィックス ``BALLOTDESK_``）と .env ファイルから読み込む。
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def find_env_file(start: Path | None = None) -> Path | None:
    """カレントディレクトリから親方向に .env を探す."""
    current = (start or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        candidate = directory / ".env"
        if candidate.is_file():
            return candidate
    return None


ENV_FILE_PATH = find_env_file()


class Settings(BaseSettings):
    """ballotdesk の設定."""

    model_config = SettingsConfigDict(
        env_prefix="BALLOTDESK_",
        env_file=ENV_FILE_PATH,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    api_base_url: str = "http://localhost:5000/api"
    asset_base_url: str = "http://localhost:5000"
    api_token: SecretStr | None = None
    token_file: Path | None = None
    # None の場合はHTTPクライアントの既定値に従う
    request_timeout_seconds: float | None = Field(default=None, gt=0)
    preview_dir: Path | None = None
    log_level: str = "INFO"
    log_json: bool = False
    workflow: str = "admin"

    @field_validator("api_base_url", "asset_base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("workflow")
    @classmethod
    def _validate_workflow(cls, value: str) -> str:
        normalized = value.lower()
        if normalized not in ("admin", "superadmin"):
            raise ValueError(f"workflow must be 'admin' or 'superadmin': {value}")
        return normalized


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """設定を取得する（キャッシュ済み）."""
    return Settings()


def reload_settings() -> Settings:
    """環境変数を読み直して設定を再生成する."""
    get_settings.cache_clear()
    return get_settings()
