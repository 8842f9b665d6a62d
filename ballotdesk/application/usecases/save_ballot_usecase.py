"""投票用紙の一括保存（Mode B）のユースケース."""

from dataclasses import replace

from ballotdesk.application.dtos.ballot_dto import (
    CandidateSaveOutcome,
    SaveBallotOutputDto,
    SaveCandidatesOutputDto,
)
from ballotdesk.common.logging import get_logger
from ballotdesk.domain.entities.ballot import Ballot, Candidate, Position
from ballotdesk.domain.exceptions import PreconditionFailed
from ballotdesk.domain.services.ballot_state_store import BallotStateStore
from ballotdesk.domain.services.interfaces.ballot_gateway import (
    BallotWriteResult,
    IBallotGateway,
)
from ballotdesk.domain.value_objects.identity import PersistedId
from ballotdesk.domain.value_objects.workflow_policy import WorkflowPolicy


logger = get_logger(__name__)


def is_fully_persisted(ballot: Ballot) -> bool:
    """ツリー内の全エンティティが永続IDを持つかどうか."""
    return not any(identity.is_local for identity in ballot.iter_identities())


class SaveBallotUseCase:
    """投票用紙ツリー全体を1リクエストで保存するユースケース.

    作成か更新かは投票用紙自身の識別子のみで判定し、子要素の識別子は見ない。
    成功時はサーバーが返したツリーで全体を置き換える。
    """

    def __init__(self, gateway: IBallotGateway) -> None:
        self.gateway = gateway

    async def save(self, ballot: Ballot, policy: WorkflowPolicy) -> SaveBallotOutputDto:
        """投票用紙を作成または更新する."""
        created = not isinstance(ballot.id, PersistedId)
        try:
            if isinstance(ballot.id, PersistedId):
                logger.info("投票用紙を更新", ballot_id=ballot.id.key)
                result = await self.gateway.update_ballot(ballot)
            else:
                logger.info("投票用紙を作成", election_id=ballot.election_id)
                result = await self.gateway.create_ballot(
                    ballot, policy.ambiguous_success.tolerated_statuses
                )
        except PreconditionFailed:
            raise
        except Exception as e:
            logger.error(f"Failed to save ballot: {e}")
            return SaveBallotOutputDto(
                success=False,
                created=created,
                error_message=f"投票用紙の保存に失敗しました: {e}",
                retryable=getattr(e, "retryable", False),
            )

        if result.warning:
            logger.warning(
                "投票用紙の保存が警告付きで完了",
                election_id=ballot.election_id,
                warning=result.warning,
            )

        saved = await self._reconcile(ballot, result)
        if saved is None:
            return SaveBallotOutputDto(
                success=True,
                ballot=ballot,
                created=created,
                warning=result.warning
                or "保存しましたが、サーバーから最新の投票用紙を取得できませんでした。",
            )
        return SaveBallotOutputDto(
            success=True, ballot=saved, created=created, warning=result.warning
        )

    async def _reconcile(
        self, ballot: Ballot, result: BallotWriteResult
    ) -> Ballot | None:
        """サーバーが割り当てた識別子を持つツリーを得る.

        応答に完全なツリーがなければ選挙IDで再取得する。
        """
        if result.ballot is not None and is_fully_persisted(result.ballot):
            return result.ballot
        try:
            fetched = await self.gateway.fetch_ballot(ballot.election_id)
        except PreconditionFailed:
            raise
        except Exception as e:
            logger.warning(f"Failed to refetch ballot after save: {e}")
            return None
        if fetched is not None and is_fully_persisted(fetched):
            return fetched
        return None

    async def save_candidates(
        self, ballot: Ballot, policy: WorkflowPolicy
    ) -> SaveCandidatesOutputDto:
        """候補者を1人ずつ保存する.

        1人の失敗で残りの保存を中断しない。失敗した候補者には
        save_error を記録し、それ以外の候補者には影響させない。
        """
        store = BallotStateStore(ballot, policy)
        outcomes: list[CandidateSaveOutcome] = []

        for position, candidate in ballot.iter_candidates():
            if not candidate.is_new and candidate.pending_image is None:
                continue
            outcome = await self._save_candidate(ballot, position, candidate, policy)
            outcomes.append(outcome)
            store.replace_candidate(position.id, candidate.id, outcome.candidate)

        failed = sum(1 for o in outcomes if not o.success)
        if failed:
            logger.warning(f"{failed}/{len(outcomes)} candidates failed to save")
        return SaveCandidatesOutputDto(ballot=store.ballot, outcomes=outcomes)

    async def _save_candidate(
        self,
        ballot: Ballot,
        position: Position,
        candidate: Candidate,
        policy: WorkflowPolicy,
    ) -> CandidateSaveOutcome:
        if not ballot.is_persisted or not isinstance(position.id, PersistedId):
            # 親が未保存の間はローカルに保持し、一括保存で送信する
            return CandidateSaveOutcome(
                position_id=position.id,
                original_id=candidate.id,
                candidate=candidate,
                success=True,
            )

        try:
            if isinstance(candidate.id, PersistedId):
                result = await self.gateway.update_candidate(candidate.id, candidate)
            else:
                result = await self.gateway.create_candidate(
                    position.id,
                    candidate,
                    policy.ambiguous_success.tolerated_statuses,
                )
        except PreconditionFailed:
            raise
        except Exception as e:
            logger.error(f"Failed to save candidate {candidate.id}: {e}")
            return CandidateSaveOutcome(
                position_id=position.id,
                original_id=candidate.id,
                candidate=replace(candidate, save_error=str(e)),
                success=False,
                error_message=str(e),
            )

        saved = replace(
            result.candidate,
            pending_image=None,
            save_error=None,
            local_preview=(
                None if result.candidate.image_url else candidate.local_preview
            ),
        )
        return CandidateSaveOutcome(
            position_id=position.id,
            original_id=candidate.id,
            candidate=saved,
            success=True,
            warning=result.warning,
        )

    async def submit_for_approval(self, election_id: int) -> bool:
        """選挙をスーパー管理者の承認待ちにする. 失敗しても保存自体は成功扱い."""
        try:
            await self.gateway.mark_election_submitted(election_id)
            return True
        except PreconditionFailed:
            raise
        except Exception as e:
            logger.warning(f"Failed to mark election {election_id} for approval: {e}")
            return False
