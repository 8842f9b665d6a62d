"""選挙バックエンドAPIへのゲートウェイのインターフェース."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Protocol

from ballotdesk.domain.entities.ballot import Ballot, Candidate, Position
from ballotdesk.domain.entities.election import Election
from ballotdesk.domain.value_objects.identity import PersistedId
from ballotdesk.domain.value_objects.image_upload import ImageUpload


@dataclass(frozen=True)
class BallotWriteResult:
    """投票用紙の作成・更新結果.

    Attributes:
        ballot: サーバーが返した投票用紙（応答に含まれない場合None）
        warning: 警告付き成功の場合のメッセージ
    """

    ballot: Ballot | None
    warning: str | None = None


@dataclass(frozen=True)
class CandidateWriteResult:
    """候補者の作成・更新結果.

    candidate は応答に欠けていたフィールドを送信データで補完済み。
    """

    candidate: Candidate
    warning: str | None = None


class IBallotGateway(Protocol):
    """投票用紙エディタが利用するバックエンド操作.

    永続IDのみを受け取り、ローカルIDを送信しないことは呼び出し側と
    実装側の双方で保証する。
    """

    async def fetch_election(self, election_id: int) -> Election:
        """選挙のメタデータを取得する."""
        ...

    async def fetch_ballot(self, election_id: int) -> Ballot | None:
        """選挙の投票用紙を取得する. 存在しなければNone."""
        ...

    async def create_ballot(
        self, ballot: Ballot, tolerated_statuses: frozenset[int] = frozenset()
    ) -> BallotWriteResult:
        """投票用紙をポジション・候補者ごと新規作成する."""
        ...

    async def update_ballot(self, ballot: Ballot) -> BallotWriteResult:
        """既存の投票用紙をツリー全体で更新する."""
        ...

    async def update_description(
        self, ballot_id: PersistedId, description: str
    ) -> None:
        """投票用紙の説明のみ更新する."""
        ...

    async def create_position(
        self, ballot_id: PersistedId, position: Position
    ) -> Position:
        """ポジションを作成し、永続IDを持つポジションを返す."""
        ...

    async def update_position(
        self, position_id: PersistedId, changes: Mapping[str, Any]
    ) -> None:
        """ポジションの変更フィールドを送信する."""
        ...

    async def delete_position(self, position_id: PersistedId) -> None:
        """ポジションを削除する."""
        ...

    async def create_candidate(
        self,
        position_id: PersistedId,
        candidate: Candidate,
        tolerated_statuses: frozenset[int] = frozenset(),
    ) -> CandidateWriteResult:
        """候補者を作成する. 保留中の画像があれば一緒に送信する."""
        ...

    async def update_candidate(
        self, candidate_id: PersistedId, candidate: Candidate
    ) -> CandidateWriteResult:
        """候補者の全フィールドを送信して更新する. 保留中の画像があれば一緒に送信する."""
        ...

    async def delete_candidate(self, candidate_id: PersistedId) -> None:
        """候補者を削除する."""
        ...

    async def upload_candidate_image(self, image: ImageUpload) -> str:
        """候補者画像をアップロードし、サーバー上のパスを返す."""
        ...

    async def mark_election_submitted(self, election_id: int) -> None:
        """選挙をスーパー管理者の承認待ちにする."""
        ...
