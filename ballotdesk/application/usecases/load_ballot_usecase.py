"""投票用紙読み込みのユースケース."""

from ballotdesk.application.dtos.ballot_dto import LoadBallotOutputDto
from ballotdesk.common.logging import get_logger
from ballotdesk.domain.exceptions import PreconditionFailed
from ballotdesk.domain.services.ballot_state_store import IdFactory, default_ballot
from ballotdesk.domain.services.interfaces.ballot_gateway import IBallotGateway
from ballotdesk.domain.value_objects.identity import LocalId
from ballotdesk.domain.value_objects.workflow_policy import WorkflowPolicy


logger = get_logger(__name__)


class LoadBallotUseCase:
    """選挙に紐づく投票用紙を読み込むユースケース.

    新規選挙（draft/pending）や投票用紙が未作成の選挙では、
    ポリシーに従った初期投票用紙を返す。
    """

    def __init__(
        self,
        gateway: IBallotGateway,
        id_factory: IdFactory = LocalId.generate,
    ) -> None:
        self.gateway = gateway
        self.id_factory = id_factory

    async def execute(
        self, election_id: int | None, policy: WorkflowPolicy
    ) -> LoadBallotOutputDto:
        """投票用紙を読み込む.

        Raises:
            PreconditionFailed: election_id が指定されていない場合
        """
        if election_id is None:
            raise PreconditionFailed("選挙IDが指定されていません。")

        try:
            election = await self.gateway.fetch_election(election_id)

            if election.is_new:
                logger.info(
                    "新規選挙のため初期投票用紙を作成",
                    election_id=election_id,
                    status=election.status,
                )
                return LoadBallotOutputDto(
                    success=True,
                    ballot=default_ballot(election_id, policy, self.id_factory),
                    election=election,
                    is_default=True,
                )

            ballot = await self.gateway.fetch_ballot(election_id)
            if ballot is None:
                logger.info("投票用紙が未作成のため初期投票用紙を作成", election_id=election_id)
                return LoadBallotOutputDto(
                    success=True,
                    ballot=default_ballot(election_id, policy, self.id_factory),
                    election=election,
                    is_default=True,
                )

            return LoadBallotOutputDto(success=True, ballot=ballot, election=election)
        except PreconditionFailed:
            raise
        except Exception as e:
            logger.error(f"Failed to load ballot for election {election_id}: {e}")
            return LoadBallotOutputDto(
                success=False,
                error_message=f"選挙データの読み込みに失敗しました: {e}",
            )
