"""DIコンテナのモック."""

from unittest.mock import AsyncMock, MagicMock

from ballotdesk.application.usecases.load_ballot_usecase import LoadBallotUseCase
from ballotdesk.application.usecases.save_ballot_usecase import SaveBallotUseCase
from ballotdesk.application.usecases.sync_ballot_field_usecase import (
    SyncBallotFieldUseCase,
)
from ballotdesk.application.usecases.upload_candidate_image_usecase import (
    UploadCandidateImageUseCase,
)
from ballotdesk.domain.services.interfaces.ballot_gateway import IBallotGateway
from ballotdesk.infrastructure.config.settings import Settings
from tests.fixtures.ballot_factories import RecordingPreviewService


def make_container_mock(
    gateway: AsyncMock | None = None,
    previews: RecordingPreviewService | None = None,
    **settings_overrides,
) -> MagicMock:
    """モックゲートウェイに接続した実ユースケースを返すコンテナ."""
    gateway = gateway or AsyncMock(spec=IBallotGateway)
    previews = previews or RecordingPreviewService()
    settings = Settings(_env_file=None, **settings_overrides)

    container = MagicMock()
    container.settings.return_value = settings
    container.services.ballot_gateway.return_value = gateway
    container.services.preview_service.return_value = previews
    container.use_cases.load_ballot_usecase.side_effect = lambda: LoadBallotUseCase(
        gateway
    )
    container.use_cases.sync_ballot_field_usecase.side_effect = (
        lambda: SyncBallotFieldUseCase(gateway)
    )
    container.use_cases.save_ballot_usecase.side_effect = lambda: SaveBallotUseCase(
        gateway
    )
    container.use_cases.upload_candidate_image_usecase.side_effect = (
        lambda: UploadCandidateImageUseCase(gateway, previews)
    )
    return container
