"""依存性注入コンテナ.

インフラストラクチャのサービスとユースケースの組み立てを一元化する。
CLI・Streamlit の双方から get_container() で取得する。
"""

from __future__ import annotations

from dependency_injector import containers, providers

from ballotdesk.application.usecases.load_ballot_usecase import LoadBallotUseCase
from ballotdesk.application.usecases.save_ballot_usecase import SaveBallotUseCase
from ballotdesk.application.usecases.sync_ballot_field_usecase import (
    SyncBallotFieldUseCase,
)
from ballotdesk.application.usecases.upload_candidate_image_usecase import (
    UploadCandidateImageUseCase,
)
from ballotdesk.infrastructure.auth.token_store import SessionTokenStore
from ballotdesk.infrastructure.config.settings import Settings, get_settings
from ballotdesk.infrastructure.external.ballot_api.client import BallotApiClient
from ballotdesk.infrastructure.external.ballot_api.converter import (
    BallotApiConverter,
)
from ballotdesk.infrastructure.external.ballot_api.gateway import BallotGatewayImpl
from ballotdesk.infrastructure.previews.staging_preview_service import (
    StagingPreviewService,
)


class ServiceContainer(containers.DeclarativeContainer):
    """インフラストラクチャサービス."""

    settings = providers.Dependency(instance_of=Settings)

    token_store = providers.Singleton(SessionTokenStore.from_settings, settings)

    api_client = providers.Singleton(
        BallotApiClient,
        base_url=settings.provided.api_base_url,
        token_provider=token_store,
        timeout=settings.provided.request_timeout_seconds,
    )

    ballot_gateway = providers.Singleton(
        BallotGatewayImpl,
        client=api_client,
        converter=providers.Singleton(BallotApiConverter),
    )

    preview_service = providers.Singleton(
        StagingPreviewService,
        staging_dir=settings.provided.preview_dir,
    )


class UseCaseContainer(containers.DeclarativeContainer):
    """ユースケース."""

    services = providers.DependenciesContainer()

    load_ballot_usecase = providers.Factory(
        LoadBallotUseCase,
        gateway=services.ballot_gateway,
    )

    sync_ballot_field_usecase = providers.Factory(
        SyncBallotFieldUseCase,
        gateway=services.ballot_gateway,
    )

    save_ballot_usecase = providers.Factory(
        SaveBallotUseCase,
        gateway=services.ballot_gateway,
    )

    upload_candidate_image_usecase = providers.Factory(
        UploadCandidateImageUseCase,
        gateway=services.ballot_gateway,
        preview_service=services.preview_service,
    )


class Container(containers.DeclarativeContainer):
    """アプリケーション全体のコンテナ."""

    settings = providers.Singleton(get_settings)

    services = providers.Container(ServiceContainer, settings=settings)

    use_cases = providers.Container(UseCaseContainer, services=services)

    @classmethod
    def create_for_environment(cls, settings: Settings | None = None) -> Container:
        """環境設定からコンテナを生成する. settings指定時はそれを使う."""
        container = cls()
        if settings is not None:
            container.settings.override(providers.Object(settings))
        return container


_container: Container | None = None


def init_container(settings: Settings | None = None) -> Container:
    """グローバルコンテナを初期化する."""
    global _container
    _container = Container.create_for_environment(settings)
    return _container


def get_container() -> Container:
    """グローバルコンテナを取得する.

    Raises:
        RuntimeError: init_container() が呼ばれていない場合
    """
    if _container is None:
        raise RuntimeError("Container is not initialized. Call init_container().")
    return _container


def reset_container() -> None:
    global _container
    _container = None
