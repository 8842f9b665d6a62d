"""エンティティの識別子を表す値オブジェクト.

識別子はバックエンドが採番した永続ID（PersistedId）か、
未保存エンティティをUI上で区別するためのローカルID（LocalId）のいずれか。
文字列プレフィックスで判別するのではなく、型で明示的に区別する。
"""

from __future__ import annotations

import uuid

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class PersistedId:
    """バックエンドが採番した永続ID."""

    value: int

    @property
    def is_local(self) -> bool:
        return False

    @property
    def key(self) -> str:
        """エラーマップやウィジェットのキーに使う文字列."""
        return str(self.value)

    def __str__(self) -> str:
        return self.key


@dataclass(frozen=True)
class LocalId:
    """クライアント側で生成した一時ID.

    バックエンドに送信してはならない。作成成功時に永続IDへ置き換える。
    """

    token: str

    @classmethod
    def generate(cls, prefix: str = "tmp") -> LocalId:
        """新しいローカルIDを生成する."""
        return cls(f"{prefix}-{uuid.uuid4().hex[:12]}")

    @property
    def is_local(self) -> bool:
        return True

    @property
    def key(self) -> str:
        return self.token

    def __str__(self) -> str:
        return self.key


Identity = PersistedId | LocalId


def identity_from_raw(raw: Any, prefix: str = "tmp") -> Identity:
    """APIレスポンスやJSONファイル中の生IDを識別子に変換する.

    整数・数値文字列は永続IDとして扱う。欠落している場合や
    旧形式の ``temp_`` プレフィックス付き文字列はローカルIDになる。
    """
    if isinstance(raw, PersistedId | LocalId):
        return raw
    if raw is None or raw == "":
        return LocalId.generate(prefix)
    if isinstance(raw, bool):
        raise ValueError(f"Invalid identity: {raw!r}")
    if isinstance(raw, int):
        return PersistedId(raw)
    text = str(raw).strip()
    if text.isdigit():
        return PersistedId(int(text))
    return LocalId(text)
