"""投票用紙読み込みユースケースのテスト."""

from unittest.mock import AsyncMock

import pytest

from ballotdesk.application.usecases.load_ballot_usecase import LoadBallotUseCase
from ballotdesk.domain.entities.election import Election
from ballotdesk.domain.exceptions import BackendError, PreconditionFailed
from ballotdesk.domain.services.interfaces.ballot_gateway import IBallotGateway
from ballotdesk.domain.value_objects.identity import LocalId
from ballotdesk.domain.value_objects.workflow_policy import (
    ADMIN_CREATE,
    SUPERADMIN_EDIT,
)
from tests.fixtures.ballot_factories import SequentialIdFactory, make_ballot


@pytest.fixture
def gateway():
    return AsyncMock(spec=IBallotGateway)


class TestLoadBallotUseCase:
    @pytest.mark.asyncio
    async def test_new_election_gets_default_ballot(self, gateway):
        gateway.fetch_election.return_value = Election(id=42, status="draft")
        usecase = LoadBallotUseCase(gateway, SequentialIdFactory())

        result = await usecase.execute(42, ADMIN_CREATE)

        assert result.success is True
        assert result.is_default is True
        assert result.ballot.id == LocalId("b1")
        assert [p.id for p in result.ballot.positions] == [LocalId("p1")]
        assert len(result.ballot.positions[0].candidates) == 2
        gateway.fetch_ballot.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_existing_ballot_is_returned(self, gateway):
        ballot = make_ballot()
        gateway.fetch_election.return_value = Election(id=42, status="active")
        gateway.fetch_ballot.return_value = ballot

        result = await LoadBallotUseCase(gateway).execute(42, SUPERADMIN_EDIT)

        assert result.ballot is ballot
        assert result.is_default is False
        assert result.election.status == "active"

    @pytest.mark.asyncio
    async def test_missing_ballot_falls_back_to_default(self, gateway):
        gateway.fetch_election.return_value = Election(id=42, status="active")
        gateway.fetch_ballot.return_value = None

        result = await LoadBallotUseCase(gateway).execute(42, SUPERADMIN_EDIT)

        assert result.is_default is True
        assert len(result.ballot.positions[0].candidates) == 1

    @pytest.mark.asyncio
    async def test_missing_election_id(self, gateway):
        with pytest.raises(PreconditionFailed):
            await LoadBallotUseCase(gateway).execute(None, ADMIN_CREATE)

        gateway.fetch_election.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_backend_error(self, gateway):
        gateway.fetch_election.side_effect = BackendError("Election not found", 404)

        result = await LoadBallotUseCase(gateway).execute(42, ADMIN_CREATE)

        assert result.success is False
        assert "Election not found" in result.error_message
