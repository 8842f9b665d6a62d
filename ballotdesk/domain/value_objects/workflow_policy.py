"""ワークフローごとの編集ルールを表す値オブジェクト.

管理者の新規作成フローとスーパー管理者の編集フローは、
候補者の最小人数や同期方式が異なる。エディタ自体は共通で、
このポリシーでふるまいを切り替える。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


MAX_CANDIDATE_IMAGE_BYTES = 2 * 1024 * 1024


class SyncMode(Enum):
    """同期方式."""

    EAGER = "eager"  # フィールド変更ごとに即時送信
    DEFERRED = "deferred"  # 保存時に一括送信


@dataclass(frozen=True)
class AmbiguousSuccessPolicy:
    """「失敗ステータスだが書き込みは成功している可能性がある」応答の扱い.

    有効な場合、投票用紙作成・候補者作成に限り、statusesに含まれる
    ステータスを警告付きの成功として扱う。
    """

    enabled: bool = False
    statuses: frozenset[int] = field(default_factory=lambda: frozenset({400}))

    @property
    def tolerated_statuses(self) -> frozenset[int]:
        """ゲートウェイに渡す許容ステータス."""
        return self.statuses if self.enabled else frozenset()


@dataclass(frozen=True)
class WorkflowPolicy:
    """ワークフロー別の編集ポリシー."""

    name: str
    min_candidates_per_position: int
    sync_mode: SyncMode
    enforce_candidate_minimum: bool
    seed_placeholder_candidates: bool = True
    submit_for_approval_on_save: bool = False
    max_image_bytes: int = MAX_CANDIDATE_IMAGE_BYTES
    ambiguous_success: AmbiguousSuccessPolicy = field(
        default_factory=AmbiguousSuccessPolicy
    )

    @property
    def placeholder_count(self) -> int:
        """新規ポジションに最初から入れる空の候補者数."""
        if not self.seed_placeholder_candidates:
            return 0
        return self.min_candidates_per_position

    @property
    def is_eager(self) -> bool:
        return self.sync_mode is SyncMode.EAGER


ADMIN_CREATE = WorkflowPolicy(
    name="admin",
    min_candidates_per_position=2,
    sync_mode=SyncMode.EAGER,
    enforce_candidate_minimum=True,
    submit_for_approval_on_save=True,
    ambiguous_success=AmbiguousSuccessPolicy(enabled=True),
)

SUPERADMIN_EDIT = WorkflowPolicy(
    name="superadmin",
    min_candidates_per_position=1,
    sync_mode=SyncMode.DEFERRED,
    enforce_candidate_minimum=False,
)

_POLICIES: dict[str, WorkflowPolicy] = {
    ADMIN_CREATE.name: ADMIN_CREATE,
    SUPERADMIN_EDIT.name: SUPERADMIN_EDIT,
}


def policy_for(name: str) -> WorkflowPolicy:
    """名前からポリシーを取得する.

    Raises:
        ValueError: 未知のワークフロー名の場合
    """
    try:
        return _POLICIES[name.lower()]
    except KeyError:
        raise ValueError(
            f"Unknown workflow: {name} (expected one of {sorted(_POLICIES)})"
        ) from None
