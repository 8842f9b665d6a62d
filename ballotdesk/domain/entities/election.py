"""選挙のメタデータ."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Election:
    """投票用紙の親となる選挙.

    投票用紙エディタはタイトルとステータスのみ利用する。
    """

    NEW_STATUSES = frozenset({"draft", "pending"})

    id: int
    title: str = ""
    status: str = "draft"
    needs_approval: bool = False

    @property
    def is_new(self) -> bool:
        """投票用紙をまだ持たない新規選挙かどうか."""
        return self.status.lower() in self.NEW_STATUSES
