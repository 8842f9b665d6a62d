"""候補者画像アップロードユースケースのテスト."""

from unittest.mock import AsyncMock

import pytest

from ballotdesk.application.usecases.upload_candidate_image_usecase import (
    UploadCandidateImageUseCase,
)
from ballotdesk.domain.exceptions import AuthenticationRequired, BackendError
from ballotdesk.domain.services.interfaces.ballot_gateway import IBallotGateway
from ballotdesk.domain.value_objects.workflow_policy import (
    ADMIN_CREATE,
    MAX_CANDIDATE_IMAGE_BYTES,
)
from tests.fixtures.ballot_factories import RecordingPreviewService, make_image


@pytest.fixture
def gateway():
    return AsyncMock(spec=IBallotGateway)


@pytest.fixture
def previews():
    return RecordingPreviewService()


@pytest.fixture
def usecase(gateway, previews):
    return UploadCandidateImageUseCase(gateway, previews)


class TestUploadCandidateImageUseCase:
    @pytest.mark.asyncio
    async def test_oversized_image_never_reaches_the_server(
        self, usecase, gateway, previews
    ):
        image = make_image(size=MAX_CANDIDATE_IMAGE_BYTES + 1)

        result = await usecase.execute(image, ADMIN_CREATE)

        assert result.success is False
        assert result.rejected is True
        assert result.preview is None
        assert previews.created == []
        gateway.upload_candidate_image.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_preview_is_delivered_before_upload(self, usecase, gateway, previews):
        gateway.upload_candidate_image.return_value = "/uploads/candidates/x.png"
        seen = []

        def on_preview(handle):
            seen.append((handle, gateway.upload_candidate_image.await_count))

        result = await usecase.execute(make_image(), ADMIN_CREATE, on_preview)

        assert result.success is True
        assert result.file_path == "/uploads/candidates/x.png"
        assert seen == [(previews.created[0], 0)]

    @pytest.mark.asyncio
    async def test_upload_failure_keeps_preview(self, usecase, gateway, previews):
        gateway.upload_candidate_image.side_effect = BackendError(
            "Server error while uploading", status_code=500
        )

        result = await usecase.execute(make_image(), ADMIN_CREATE)

        assert result.success is False
        assert result.rejected is False
        assert result.preview is previews.created[0]
        assert result.error_message == "Server error while uploading"
        assert previews.revoked == []

    @pytest.mark.asyncio
    async def test_missing_token_revokes_unowned_preview(
        self, usecase, gateway, previews
    ):
        gateway.upload_candidate_image.side_effect = AuthenticationRequired()

        with pytest.raises(AuthenticationRequired):
            await usecase.execute(make_image(), ADMIN_CREATE)

        assert previews.live == []

    @pytest.mark.asyncio
    async def test_retry_pending_returns_none_on_failure(self, usecase, gateway):
        gateway.upload_candidate_image.side_effect = BackendError("boom", 500)

        assert await usecase.retry_pending(make_image()) is None
