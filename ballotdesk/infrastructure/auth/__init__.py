"""認証情報の管理."""

from ballotdesk.infrastructure.auth.token_store import SessionTokenStore


__all__ = ["SessionTokenStore"]
