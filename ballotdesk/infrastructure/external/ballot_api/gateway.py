"""IBallotGateway のインフラストラクチャ実装.

BallotApiClient をラップし、APIレスポンスをドメインエンティティに変換する。
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ballotdesk.domain.entities.ballot import Ballot, Candidate, Position
from ballotdesk.domain.entities.election import Election
from ballotdesk.domain.exceptions import BackendError
from ballotdesk.domain.services.interfaces.ballot_gateway import (
    BallotWriteResult,
    CandidateWriteResult,
)
from ballotdesk.domain.value_objects.identity import PersistedId
from ballotdesk.domain.value_objects.image_upload import ImageUpload
from ballotdesk.infrastructure.external.ballot_api.client import BallotApiClient
from ballotdesk.infrastructure.external.ballot_api.converter import (
    BallotApiConverter,
)


class BallotGatewayImpl:
    """IBallotGateway の具象実装."""

    def __init__(
        self,
        client: BallotApiClient,
        converter: BallotApiConverter | None = None,
    ) -> None:
        self._client = client
        self._converter = converter or BallotApiConverter()

    async def fetch_election(self, election_id: int) -> Election:
        response = await self._client.get_election(election_id)
        return self._converter.to_election(response.data, election_id)

    async def fetch_ballot(self, election_id: int) -> Ballot | None:
        response = await self._client.get_ballot(election_id)
        if response is None:
            return None
        return self._converter.to_ballot(response.data, election_id)

    async def create_ballot(
        self, ballot: Ballot, tolerated_statuses: frozenset[int] = frozenset()
    ) -> BallotWriteResult:
        response = await self._client.create_ballot(
            self._converter.ballot_payload(ballot), tolerated_statuses
        )
        return BallotWriteResult(
            ballot=self._converter.to_ballot(response.data, ballot.election_id),
            warning=response.warning,
        )

    async def update_ballot(self, ballot: Ballot) -> BallotWriteResult:
        ballot_id = self._persisted(ballot.id)
        response = await self._client.update_ballot(
            ballot_id.value, self._converter.ballot_payload(ballot)
        )
        return BallotWriteResult(
            ballot=self._converter.to_ballot(response.data, ballot.election_id)
        )

    async def update_description(
        self, ballot_id: PersistedId, description: str
    ) -> None:
        await self._client.update_description(ballot_id.value, description)

    async def create_position(
        self, ballot_id: PersistedId, position: Position
    ) -> Position:
        response = await self._client.create_position(
            ballot_id.value,
            {"name": position.name, "max_choices": position.max_choices},
        )
        payload = self._converter.extract_entity(response.data, "position")
        if payload is None or payload.get("id") is None:
            raise BackendError("ポジションの作成結果にIDが含まれていません。")
        created = self._converter.to_position(payload)
        return Position(
            id=created.id,
            name=created.name or position.name,
            max_choices=created.max_choices,
            display_order=position.display_order,
            candidates=position.candidates,
        )

    async def update_position(
        self, position_id: PersistedId, changes: Mapping[str, Any]
    ) -> None:
        await self._client.update_position(position_id.value, dict(changes))

    async def delete_position(self, position_id: PersistedId) -> None:
        await self._client.delete_position(position_id.value)

    async def create_candidate(
        self,
        position_id: PersistedId,
        candidate: Candidate,
        tolerated_statuses: frozenset[int] = frozenset(),
    ) -> CandidateWriteResult:
        response = await self._client.create_candidate(
            position_id.value,
            self._converter.candidate_fields(candidate),
            candidate.pending_image,
            tolerated_statuses,
        )
        return self._candidate_result(response.data, candidate, response.warning)

    async def update_candidate(
        self,
        candidate_id: PersistedId,
        candidate: Candidate,
    ) -> CandidateWriteResult:
        response = await self._client.update_candidate(
            candidate_id.value,
            self._converter.candidate_fields(candidate),
            candidate.pending_image,
        )
        return self._candidate_result(response.data, candidate, response.warning)

    async def delete_candidate(self, candidate_id: PersistedId) -> None:
        await self._client.delete_candidate(candidate_id.value)

    async def upload_candidate_image(self, image: ImageUpload) -> str:
        response = await self._client.upload_candidate_image(image)
        file_path = self._converter.extract_file_path(response.data)
        if file_path is None:
            raise BackendError("画像のパスが返されませんでした。")
        return file_path

    async def mark_election_submitted(self, election_id: int) -> None:
        await self._client.update_election(
            election_id, {"needs_approval": True, "ballot_submitted": True}
        )

    def _candidate_result(
        self, data: Any, sent: Candidate, warning: str | None
    ) -> CandidateWriteResult:
        payload = self._converter.extract_entity(data, "candidate") or {}
        return CandidateWriteResult(
            candidate=self._converter.to_candidate(payload, sent=sent),
            warning=warning,
        )

    @staticmethod
    def _persisted(identity: Any) -> PersistedId:
        if not isinstance(identity, PersistedId):
            raise ValueError(f"Local identity must not be sent: {identity}")
        return identity
