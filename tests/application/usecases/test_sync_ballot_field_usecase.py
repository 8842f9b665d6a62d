"""即時同期ユースケースのテスト."""

from dataclasses import replace
from unittest.mock import AsyncMock

import pytest

from ballotdesk.application.dtos.ballot_dto import SyncStatus
from ballotdesk.application.usecases.sync_ballot_field_usecase import (
    SyncBallotFieldUseCase,
)
from ballotdesk.domain.exceptions import (
    AuthenticationRequired,
    BackendError,
    BackendUnavailableError,
)
from ballotdesk.domain.services.interfaces.ballot_gateway import (
    CandidateWriteResult,
    IBallotGateway,
)
from ballotdesk.domain.value_objects.identity import LocalId, PersistedId
from tests.fixtures.ballot_factories import (
    make_ballot,
    make_candidate,
    make_local_ballot,
    make_position,
)


@pytest.fixture
def gateway():
    return AsyncMock(spec=IBallotGateway)


@pytest.fixture
def usecase(gateway):
    return SyncBallotFieldUseCase(gateway)


class TestSyncBallotFieldUseCase:
    @pytest.mark.asyncio
    async def test_unsaved_ballot_is_buffered(self, usecase, gateway):
        ballot = make_local_ballot()

        results = [
            await usecase.sync_description(ballot),
            await usecase.sync_position_field(ballot, LocalId("p1"), "name"),
            await usecase.sync_candidate_field(
                ballot, LocalId("p1"), LocalId("c1"), "first_name"
            ),
        ]

        assert all(r.status is SyncStatus.BUFFERED for r in results)
        assert gateway.mock_calls == []

    @pytest.mark.asyncio
    async def test_description(self, usecase, gateway):
        result = await usecase.sync_description(make_ballot(description="新しい説明"))

        assert result.status is SyncStatus.SYNCED
        gateway.update_description.assert_awaited_once_with(
            PersistedId(10), "新しい説明"
        )

    @pytest.mark.asyncio
    async def test_position_field_sends_name_and_max_choices(self, usecase, gateway):
        ballot = make_ballot(
            positions=(make_position(100, name="会計", max_choices=2),)
        )

        await usecase.sync_position_field(ballot, PersistedId(100), "max_choices")

        gateway.update_position.assert_awaited_once_with(
            PersistedId(100), {"name": "会計", "max_choices": 2}
        )

    @pytest.mark.asyncio
    async def test_local_candidate_in_persisted_ballot_is_buffered(
        self, usecase, gateway
    ):
        ballot = make_ballot(
            positions=(
                make_position(100, candidates=(make_candidate(LocalId("c1")),)),
            )
        )

        result = await usecase.sync_candidate_field(
            ballot, PersistedId(100), LocalId("c1"), "party"
        )

        assert result.status is SyncStatus.BUFFERED
        gateway.update_candidate.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_candidate_field_sends_whole_candidate(self, usecase, gateway):
        ballot = make_ballot()
        candidate = ballot.find_candidate(PersistedId(100), PersistedId(1000))
        saved = replace(candidate, image_url="/uploads/candidates/a.png")
        gateway.update_candidate.return_value = CandidateWriteResult(candidate=saved)

        result = await usecase.sync_candidate_field(
            ballot, PersistedId(100), PersistedId(1000), "slogan"
        )

        assert result.success is True
        assert result.candidate is saved
        gateway.update_candidate.assert_awaited_once_with(PersistedId(1000), candidate)

    @pytest.mark.asyncio
    async def test_failure_is_reported_not_raised(self, usecase, gateway):
        gateway.update_candidate.side_effect = BackendUnavailableError(
            "request timeout"
        )

        result = await usecase.sync_candidate_field(
            make_ballot(), PersistedId(100), PersistedId(1000), "slogan"
        )

        assert result.status is SyncStatus.FAILED
        assert result.retryable is True
        assert "request timeout" in result.error_message

    @pytest.mark.asyncio
    async def test_missing_token_propagates(self, usecase, gateway):
        gateway.update_description.side_effect = AuthenticationRequired()

        with pytest.raises(AuthenticationRequired):
            await usecase.sync_description(make_ballot())

    @pytest.mark.asyncio
    async def test_create_position_returns_persisted_position(self, usecase, gateway):
        ballot = make_ballot()
        local = make_position(LocalId("p1"), name="", candidates=())
        gateway.create_position.return_value = make_position(200, candidates=())

        result = await usecase.create_position(ballot, local)

        assert result.status is SyncStatus.SYNCED
        assert result.position.id == PersistedId(200)
        gateway.create_position.assert_awaited_once_with(PersistedId(10), local)

    @pytest.mark.asyncio
    async def test_delete_position_removes_persisted_candidates_first(
        self, usecase, gateway
    ):
        position = make_position(
            100,
            candidates=(
                make_candidate(1000),
                make_candidate(LocalId("c9")),
                make_candidate(1001),
            ),
        )

        result = await usecase.delete_position(make_ballot(), position)

        assert result.success is True
        assert [c[0] for c in gateway.mock_calls] == [
            "delete_candidate",
            "delete_candidate",
            "delete_position",
        ]
        gateway.delete_position.assert_awaited_once_with(PersistedId(100))

    @pytest.mark.asyncio
    async def test_delete_position_failure(self, usecase, gateway):
        gateway.delete_position.side_effect = BackendError(
            "Position has votes", status_code=409
        )

        result = await usecase.delete_position(
            make_ballot(), make_position(100, candidates=())
        )

        assert result.status is SyncStatus.FAILED
        assert result.retryable is False

    @pytest.mark.asyncio
    async def test_delete_local_candidate_is_buffered(self, usecase, gateway):
        result = await usecase.delete_candidate(make_ballot(), LocalId("c1"))

        assert result.status is SyncStatus.BUFFERED
        gateway.delete_candidate.assert_not_awaited()
