"""フィールド単位の即時同期（Mode A）のユースケース.

永続化済みの投票用紙に対する編集を、変更のたびにバックエンドへ送信する。
未保存のエンティティへの編集はローカルにのみ保持し、何も送信しない。

同じフィールドへの連続した編集が並行して送信された場合、到着順は保証されない
（最後に届いた応答が勝つ）。順序保証は意図的に追加していない。
"""

from ballotdesk.application.dtos.ballot_dto import SyncFieldOutputDto, SyncStatus
from ballotdesk.common.logging import get_logger
from ballotdesk.domain.entities.ballot import Ballot, Position
from ballotdesk.domain.exceptions import PreconditionFailed
from ballotdesk.domain.services.interfaces.ballot_gateway import IBallotGateway
from ballotdesk.domain.value_objects.identity import Identity, PersistedId


logger = get_logger(__name__)


class SyncBallotFieldUseCase:
    """即時同期のユースケース."""

    def __init__(self, gateway: IBallotGateway) -> None:
        self.gateway = gateway

    async def sync_description(self, ballot: Ballot) -> SyncFieldOutputDto:
        """投票用紙の説明を同期する."""
        if not isinstance(ballot.id, PersistedId):
            return SyncFieldOutputDto(status=SyncStatus.BUFFERED)
        try:
            await self.gateway.update_description(ballot.id, ballot.description)
            return SyncFieldOutputDto(status=SyncStatus.SYNCED)
        except PreconditionFailed:
            raise
        except Exception as e:
            return self._failed("説明の更新に失敗しました", e)

    async def sync_position_field(
        self, ballot: Ballot, position_id: Identity, field: str
    ) -> SyncFieldOutputDto:
        """ポジションの変更を同期する.

        バックエンドは名前と最大選択数を必須とするため、変更フィールドに
        関わらず両方を送信する。
        """
        position = ballot.find_position(position_id)
        if not ballot.is_persisted or not isinstance(position.id, PersistedId):
            return SyncFieldOutputDto(status=SyncStatus.BUFFERED)

        changes = {"name": position.name, "max_choices": position.max_choices}
        if field == "display_order":
            changes["display_order"] = position.display_order
        try:
            await self.gateway.update_position(position.id, changes)
            logger.debug("ポジションを同期", position_id=position.id.key, field=field)
            return SyncFieldOutputDto(status=SyncStatus.SYNCED)
        except PreconditionFailed:
            raise
        except Exception as e:
            return self._failed("ポジションの更新に失敗しました", e)

    async def sync_candidate_field(
        self,
        ballot: Ballot,
        position_id: Identity,
        candidate_id: Identity,
        field: str,
    ) -> SyncFieldOutputDto:
        """候補者の変更を同期する.

        バックエンドは未送信のフィールドを空にするため、候補者全体を送信する。
        保留中の画像も一緒に送信され、成功時はサーバーの候補者を返す。
        """
        candidate = ballot.find_candidate(position_id, candidate_id)
        if not ballot.is_persisted or not isinstance(candidate.id, PersistedId):
            return SyncFieldOutputDto(status=SyncStatus.BUFFERED)
        try:
            result = await self.gateway.update_candidate(candidate.id, candidate)
            logger.debug("候補者を同期", candidate_id=candidate.id.key, field=field)
            return SyncFieldOutputDto(
                status=SyncStatus.SYNCED, candidate=result.candidate
            )
        except PreconditionFailed:
            raise
        except Exception as e:
            return self._failed("候補者の更新に失敗しました", e)

    async def create_position(
        self, ballot: Ballot, position: Position
    ) -> SyncFieldOutputDto:
        """永続化済みの投票用紙に追加したポジションを作成する.

        成功時は永続IDを持つポジションを返す。候補者はまだ送信しない。
        """
        if not isinstance(ballot.id, PersistedId):
            return SyncFieldOutputDto(status=SyncStatus.BUFFERED)
        try:
            created = await self.gateway.create_position(ballot.id, position)
            return SyncFieldOutputDto(status=SyncStatus.SYNCED, position=created)
        except PreconditionFailed:
            raise
        except Exception as e:
            return self._failed("ポジションの追加に失敗しました", e)

    async def delete_position(
        self, ballot: Ballot, position: Position
    ) -> SyncFieldOutputDto:
        """削除したポジションをバックエンドからも削除する.

        バックエンドは候補者を持つポジションの削除を拒否するため、
        永続化済みの候補者を先に削除する。
        """
        if not ballot.is_persisted or not isinstance(position.id, PersistedId):
            return SyncFieldOutputDto(status=SyncStatus.BUFFERED)
        try:
            for candidate in position.candidates:
                if isinstance(candidate.id, PersistedId):
                    await self.gateway.delete_candidate(candidate.id)
            await self.gateway.delete_position(position.id)
            return SyncFieldOutputDto(status=SyncStatus.SYNCED)
        except PreconditionFailed:
            raise
        except Exception as e:
            return self._failed("ポジションの削除に失敗しました", e)

    async def delete_candidate(
        self, ballot: Ballot, candidate_id: Identity
    ) -> SyncFieldOutputDto:
        """削除した候補者をバックエンドからも削除する."""
        if not ballot.is_persisted or not isinstance(candidate_id, PersistedId):
            return SyncFieldOutputDto(status=SyncStatus.BUFFERED)
        try:
            await self.gateway.delete_candidate(candidate_id)
            return SyncFieldOutputDto(status=SyncStatus.SYNCED)
        except PreconditionFailed:
            raise
        except Exception as e:
            return self._failed("候補者の削除に失敗しました", e)

    @staticmethod
    def _failed(message: str, error: Exception) -> SyncFieldOutputDto:
        logger.warning(f"Eager sync failed: {message}: {error}")
        return SyncFieldOutputDto(
            status=SyncStatus.FAILED,
            error_message=f"{message}: {error}",
            retryable=getattr(error, "retryable", False),
        )
