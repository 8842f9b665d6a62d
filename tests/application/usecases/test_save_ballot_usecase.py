"""一括保存ユースケースのテスト."""

from dataclasses import replace
from itertools import count
from unittest.mock import AsyncMock

import pytest

from ballotdesk.application.usecases.save_ballot_usecase import (
    SaveBallotUseCase,
    is_fully_persisted,
)
from ballotdesk.domain.entities.ballot import Ballot
from ballotdesk.domain.exceptions import AuthenticationRequired, BackendError
from ballotdesk.domain.services.interfaces.ballot_gateway import (
    BallotWriteResult,
    CandidateWriteResult,
    IBallotGateway,
)
from ballotdesk.domain.value_objects.identity import LocalId, PersistedId
from ballotdesk.domain.value_objects.workflow_policy import (
    ADMIN_CREATE,
    SUPERADMIN_EDIT,
)
from tests.fixtures.ballot_factories import (
    make_ballot,
    make_candidate,
    make_image,
    make_local_ballot,
    make_position,
)


@pytest.fixture
def gateway():
    return AsyncMock(spec=IBallotGateway)


@pytest.fixture
def usecase(gateway):
    return SaveBallotUseCase(gateway)


def _three_new_candidates() -> Ballot:
    return make_ballot(
        positions=(
            make_position(
                100,
                candidates=(
                    make_candidate(LocalId("c1"), first_name="一郎"),
                    make_candidate(LocalId("c2"), first_name="二郎"),
                    make_candidate(LocalId("c3"), first_name="三郎"),
                ),
            ),
        )
    )


class TestSave:
    """save() のテスト."""

    @pytest.mark.asyncio
    async def test_persisted_ballot_is_updated_never_created(self, usecase, gateway):
        ballot = make_ballot()
        gateway.update_ballot.return_value = BallotWriteResult(ballot=make_ballot())

        result = await usecase.save(ballot, SUPERADMIN_EDIT)

        assert result.success is True
        assert result.created is False
        gateway.update_ballot.assert_awaited_once_with(ballot)
        gateway.create_ballot.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_local_ballot_is_created_with_tolerated_statuses(
        self, usecase, gateway
    ):
        ballot = make_local_ballot()
        gateway.create_ballot.return_value = BallotWriteResult(ballot=make_ballot())

        result = await usecase.save(ballot, ADMIN_CREATE)

        assert result.created is True
        gateway.create_ballot.assert_awaited_once_with(ballot, frozenset({400}))
        gateway.update_ballot.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_superadmin_create_tolerates_nothing(self, usecase, gateway):
        ballot = make_local_ballot()
        gateway.create_ballot.return_value = BallotWriteResult(ballot=make_ballot())

        await usecase.save(ballot, SUPERADMIN_EDIT)

        gateway.create_ballot.assert_awaited_once_with(ballot, frozenset())

    @pytest.mark.asyncio
    async def test_no_local_identity_remains_after_save(self, usecase, gateway):
        gateway.create_ballot.return_value = BallotWriteResult(ballot=make_ballot())

        result = await usecase.save(make_local_ballot(), ADMIN_CREATE)

        assert is_fully_persisted(result.ballot)
        assert not any(i.is_local for i in result.ballot.iter_identities())

    @pytest.mark.asyncio
    async def test_ambiguous_success_refetches_ballot(self, usecase, gateway):
        gateway.create_ballot.return_value = BallotWriteResult(
            ballot=None, warning="Ballot may already exist"
        )
        gateway.fetch_ballot.return_value = make_ballot()

        result = await usecase.save(make_local_ballot(), ADMIN_CREATE)

        assert result.success is True
        assert result.warning == "Ballot may already exist"
        assert result.ballot.id == PersistedId(10)
        gateway.fetch_ballot.assert_awaited_once_with(42)

    @pytest.mark.asyncio
    async def test_partial_response_is_reconciled_by_refetch(self, usecase, gateway):
        partial = replace(make_ballot(), positions=make_local_ballot().positions)
        gateway.update_ballot.return_value = BallotWriteResult(ballot=partial)
        gateway.fetch_ballot.return_value = make_ballot()

        result = await usecase.save(make_ballot(), SUPERADMIN_EDIT)

        assert is_fully_persisted(result.ballot)

    @pytest.mark.asyncio
    async def test_failed_refetch_keeps_local_tree_with_warning(
        self, usecase, gateway
    ):
        ballot = make_local_ballot()
        gateway.create_ballot.return_value = BallotWriteResult(ballot=None)
        gateway.fetch_ballot.side_effect = BackendError("boom", status_code=500)

        result = await usecase.save(ballot, ADMIN_CREATE)

        assert result.success is True
        assert result.ballot is ballot
        assert "最新の投票用紙を取得できません" in result.warning

    @pytest.mark.asyncio
    async def test_backend_failure_is_reported(self, usecase, gateway):
        gateway.update_ballot.side_effect = BackendError(
            "Service Unavailable", status_code=503, retryable=True
        )

        result = await usecase.save(make_ballot(), SUPERADMIN_EDIT)

        assert result.success is False
        assert result.retryable is True
        assert "Service Unavailable" in result.error_message

    @pytest.mark.asyncio
    async def test_missing_token_propagates(self, usecase, gateway):
        gateway.update_ballot.side_effect = AuthenticationRequired()

        with pytest.raises(AuthenticationRequired):
            await usecase.save(make_ballot(), SUPERADMIN_EDIT)


class TestSaveCandidates:
    """save_candidates() のテスト."""

    @pytest.mark.asyncio
    async def test_failure_is_isolated_to_one_candidate(self, usecase, gateway):
        next_id = count(2000)

        async def create(position_id, candidate, tolerated_statuses=frozenset()):
            if candidate.id == LocalId("c2"):
                raise BackendError("Candidate rejected", status_code=422)
            return CandidateWriteResult(
                candidate=replace(candidate, id=PersistedId(next(next_id)))
            )

        gateway.create_candidate.side_effect = create

        result = await usecase.save_candidates(_three_new_candidates(), SUPERADMIN_EDIT)

        assert gateway.create_candidate.await_count == 3
        assert [o.success for o in result.outcomes] == [True, False, True]
        assert [o.original_id for o in result.outcomes] == [
            LocalId("c1"),
            LocalId("c2"),
            LocalId("c3"),
        ]
        candidates = result.ballot.positions[0].candidates
        assert candidates[0].id == PersistedId(2000)
        assert candidates[0].save_error is None
        assert candidates[1].id == LocalId("c2")
        assert candidates[1].save_error == "Candidate rejected"
        assert candidates[2].id == PersistedId(2001)
        assert candidates[2].save_error is None
        assert len(result.failed) == 1

    @pytest.mark.asyncio
    async def test_persisted_candidates_without_pending_image_are_skipped(
        self, usecase, gateway
    ):
        result = await usecase.save_candidates(make_ballot(), SUPERADMIN_EDIT)

        assert result.outcomes == []
        gateway.update_candidate.assert_not_awaited()
        gateway.create_candidate.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_pending_image_is_resent_with_update(self, usecase, gateway):
        image = make_image()
        candidate = make_candidate(1000, pending_image=image)
        ballot = make_ballot(
            positions=(make_position(100, candidates=(candidate,)),)
        )
        gateway.update_candidate.return_value = CandidateWriteResult(
            candidate=replace(candidate, image_url="/uploads/c.png")
        )

        result = await usecase.save_candidates(ballot, SUPERADMIN_EDIT)

        gateway.update_candidate.assert_awaited_once_with(PersistedId(1000), candidate)
        saved = result.ballot.positions[0].candidates[0]
        assert saved.image_url == "/uploads/c.png"
        assert saved.pending_image is None

    @pytest.mark.asyncio
    async def test_candidates_of_unsaved_ballot_stay_local(self, usecase, gateway):
        ballot = make_local_ballot()

        result = await usecase.save_candidates(ballot, ADMIN_CREATE)

        assert result.success is True
        assert result.ballot == ballot
        gateway.create_candidate.assert_not_awaited()


class TestSubmitForApproval:
    @pytest.mark.asyncio
    async def test_failure_is_not_fatal(self, usecase, gateway):
        gateway.mark_election_submitted.side_effect = BackendError("nope", 500)

        assert await usecase.submit_for_approval(42) is False

    @pytest.mark.asyncio
    async def test_success(self, usecase, gateway):
        assert await usecase.submit_for_approval(42) is True
        gateway.mark_election_submitted.assert_awaited_once_with(42)
