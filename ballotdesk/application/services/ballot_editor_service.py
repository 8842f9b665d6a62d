"""投票用紙エディタのアプリケーションサービス.

1つの編集セッションを所有し、ローカルの状態ストアへの編集と
バックエンドとの同期（即時同期・一括保存）を組み合わせる。
"""

from __future__ import annotations

from collections.abc import Awaitable
from typing import Any

from ballotdesk.application.dtos.ballot_dto import (
    SaveBallotOutputDto,
    SaveCandidatesOutputDto,
    SyncFieldOutputDto,
    UploadImageOutputDto,
)
from ballotdesk.application.usecases.load_ballot_usecase import LoadBallotUseCase
from ballotdesk.application.usecases.save_ballot_usecase import SaveBallotUseCase
from ballotdesk.application.usecases.sync_ballot_field_usecase import (
    SyncBallotFieldUseCase,
)
from ballotdesk.application.usecases.upload_candidate_image_usecase import (
    UploadCandidateImageUseCase,
)
from ballotdesk.common.logging import get_logger
from ballotdesk.domain.entities import Ballot, Candidate, Election, Position
from ballotdesk.domain.exceptions import (
    BallotDeskError,
    ConstraintViolation,
    EntityNotFound,
    PreconditionFailed,
)
from ballotdesk.domain.services.ballot_state_store import (
    BallotStateStore,
    IdFactory,
    carry_over_pending_images,
)
from ballotdesk.domain.services.ballot_validation_service import (
    BallotValidationService,
)
from ballotdesk.domain.services.interfaces.ballot_gateway import IBallotGateway
from ballotdesk.domain.services.interfaces.image_preview_service import (
    IImagePreviewService,
)
from ballotdesk.domain.value_objects.identity import Identity, LocalId
from ballotdesk.domain.value_objects.image_upload import ImageUpload, PreviewHandle
from ballotdesk.domain.value_objects.workflow_policy import WorkflowPolicy


logger = get_logger(__name__)

IMAGE_ERROR_PREFIX = "candidate-image-"
SAVE_ERROR_PREFIX = "candidate-save-"


def image_error_key(candidate_id: Identity) -> str:
    return f"{IMAGE_ERROR_PREFIX}{candidate_id.key}"


class BallotEditorService:
    """投票用紙の編集セッション.

    即時同期ポリシーでは、編集をまずローカルに適用してから同期する。
    同期に失敗してもローカルの編集は巻き戻さず、api_error に記録する。

    制限事項:
        同じフィールドへの即時同期が並行した場合の順序は保証しない。
        一括保存は投票用紙単位の後勝ちで、他の管理者の変更を上書きしうる。
    """

    def __init__(
        self,
        ballot: Ballot,
        policy: WorkflowPolicy,
        *,
        sync_usecase: SyncBallotFieldUseCase,
        save_usecase: SaveBallotUseCase,
        upload_usecase: UploadCandidateImageUseCase,
        preview_service: IImagePreviewService,
        election: Election | None = None,
        id_factory: IdFactory | None = None,
    ) -> None:
        self.store = BallotStateStore(ballot, policy, id_factory)
        self.policy = policy
        self.election = election
        self.sync_usecase = sync_usecase
        self.save_usecase = save_usecase
        self.upload_usecase = upload_usecase
        self.preview_service = preview_service
        self.validator = BallotValidationService(policy)

        self.errors: dict[str, str] = {}
        self.alerts: list[str] = []
        self.api_error: str | None = None
        self.notice: str | None = None
        self.has_unsaved_changes = False
        self.is_saving = False
        self.scroll_to_top = False

    @classmethod
    async def open(
        cls,
        election_id: int | None,
        policy: WorkflowPolicy,
        gateway: IBallotGateway,
        preview_service: IImagePreviewService,
        id_factory: IdFactory | None = None,
    ) -> BallotEditorService:
        """選挙の投票用紙を読み込み、編集セッションを開始する.

        Raises:
            PreconditionFailed: 選挙IDや認証情報がない場合
            BallotDeskError: 読み込みに失敗した場合
        """
        loader = LoadBallotUseCase(gateway, id_factory or LocalId.generate)
        loaded = await loader.execute(election_id, policy)
        if not loaded.success or loaded.ballot is None:
            raise BallotDeskError(
                loaded.error_message or "投票用紙を読み込めませんでした。"
            )
        return cls(
            loaded.ballot,
            policy,
            sync_usecase=SyncBallotFieldUseCase(gateway),
            save_usecase=SaveBallotUseCase(gateway),
            upload_usecase=UploadCandidateImageUseCase(gateway, preview_service),
            preview_service=preview_service,
            election=loaded.election,
            id_factory=id_factory,
        )

    @property
    def ballot(self) -> Ballot:
        return self.store.ballot

    # ------------------------------------------------------------------
    # 投票用紙
    # ------------------------------------------------------------------

    async def set_description(self, text: str) -> Ballot:
        self.store.set_description(text)
        self._edited("description")
        if self.policy.is_eager:
            await self._sync(self.sync_usecase.sync_description(self.ballot))
        return self.ballot

    # ------------------------------------------------------------------
    # ポジション
    # ------------------------------------------------------------------

    async def add_position(self) -> Position:
        """ポジションを追加する.

        永続化済みの投票用紙では即時同期ポリシーの場合にサーバーへ作成し、
        割り当てられた識別子に差し替える。候補者はローカルのまま残る。
        """
        position = self.store.add_position()
        self._edited()
        if not self.policy.is_eager:
            return position

        result = await self._sync(
            self.sync_usecase.create_position(self.ballot, position)
        )
        if result is None or result.position is None:
            return position
        try:
            current = self.ballot.find_position(position.id)
        except EntityNotFound:
            logger.warning("作成中のポジションが削除済み", position_id=position.id.key)
            return position

        persisted = Position(
            id=result.position.id,
            name=current.name,
            max_choices=current.max_choices,
            display_order=current.display_order,
            candidates=current.candidates,
        )
        self.store.replace_position(position.id, persisted)
        return persisted

    async def update_position_field(
        self, position_id: Identity, field: str, value: Any
    ) -> Ballot:
        self.store.update_position_field(position_id, field, value)
        self._edited(f"position-{position_id.key}")
        if field == "max_choices":
            self.errors.pop(f"position-max-choices-{position_id.key}", None)
        if self.policy.is_eager:
            await self._sync(
                self.sync_usecase.sync_position_field(self.ballot, position_id, field)
            )
        return self.ballot

    async def remove_position(self, position_id: Identity) -> Ballot:
        """ポジションを削除する. 制約違反はアラートとして記録する."""
        previous = self.ballot
        position = previous.find_position(position_id)
        try:
            self.store.remove_position(position_id)
        except ConstraintViolation as e:
            self.alerts.append(str(e))
            return self.ballot

        self._release_orphaned_previews(previous)
        self._edited()
        if self.policy.is_eager:
            await self._sync(self.sync_usecase.delete_position(previous, position))
        return self.ballot

    # ------------------------------------------------------------------
    # 候補者
    # ------------------------------------------------------------------

    async def add_candidate(self, position_id: Identity) -> Candidate:
        candidate = self.store.add_candidate(position_id)
        self._edited(f"position-candidates-{position_id.key}")
        return candidate

    async def update_candidate_field(
        self,
        position_id: Identity,
        candidate_id: Identity,
        field: str,
        value: Any,
    ) -> Ballot:
        self.store.update_candidate_field(position_id, candidate_id, field, value)
        if field in ("first_name", "last_name"):
            self._edited(f"candidate-name-{candidate_id.key}")
        else:
            self._edited()
        if self.policy.is_eager:
            sent = self.ballot.find_candidate(position_id, candidate_id).pending_image
            result = await self._sync(
                self.sync_usecase.sync_candidate_field(
                    self.ballot, position_id, candidate_id, field
                )
            )
            if sent is not None and result is not None and result.candidate is not None:
                self._image_sent(position_id, candidate_id, sent, result.candidate)
        return self.ballot

    async def remove_candidate(
        self, position_id: Identity, candidate_id: Identity
    ) -> Ballot:
        """候補者を削除する. 制約違反はアラートとして記録する."""
        previous = self.ballot
        try:
            self.store.remove_candidate(position_id, candidate_id)
        except ConstraintViolation as e:
            self.alerts.append(str(e))
            return self.ballot

        self._release_orphaned_previews(previous)
        for prefix in ("candidate-name-", IMAGE_ERROR_PREFIX, SAVE_ERROR_PREFIX):
            self.errors.pop(f"{prefix}{candidate_id.key}", None)
        self._edited()
        if self.policy.is_eager:
            await self._sync(self.sync_usecase.delete_candidate(previous, candidate_id))
        return self.ballot

    async def select_candidate_image(
        self,
        position_id: Identity,
        candidate_id: Identity,
        image: ImageUpload | None,
    ) -> UploadImageOutputDto:
        """候補者画像を選択する.

        検証に失敗した場合は候補者を変更せず、画像フィールドのエラーのみ設定する。
        プレビューは送信前に候補者へ関連付ける。アップロード失敗時は
        プレビューと保留中の画像を保持し、候補者保存時に再送する。
        """
        key = image_error_key(candidate_id)
        self.ballot.find_candidate(position_id, candidate_id)

        def _attach_preview(preview: PreviewHandle) -> None:
            previous = self.ballot
            self.store.attach_image(
                position_id, candidate_id, pending_image=image, local_preview=preview
            )
            self._release_orphaned_previews(previous)

        try:
            result = await self.upload_usecase.execute(
                image, self.policy, on_preview=_attach_preview
            )
        except PreconditionFailed as e:
            self.api_error = str(e)
            return UploadImageOutputDto(success=False, error_message=str(e))

        if result.rejected:
            self.errors[key] = result.error_message or "画像を選択できません。"
            return result

        self.has_unsaved_changes = True
        if not result.success:
            self.errors[key] = (
                result.error_message or "画像のアップロードに失敗しました。"
            )
            return result

        self.errors.pop(key, None)
        previous = self.ballot
        try:
            self.store.attach_image(
                position_id, candidate_id, image_url=result.file_path
            )
        except EntityNotFound:
            logger.warning("アップロード中の候補者が削除済み", candidate_id=candidate_id.key)
            return result
        self._release_orphaned_previews(previous)

        if self.policy.is_eager:
            await self._sync(
                self.sync_usecase.sync_candidate_field(
                    self.ballot, position_id, candidate_id, "image_url"
                )
            )
        return result

    # ------------------------------------------------------------------
    # 検証・保存
    # ------------------------------------------------------------------

    def validate_for_preview(self) -> bool:
        """プレビュー・保存への遷移可否を検証する.

        画像アップロードのエラーは遷移を妨げないが、表示のため保持する。
        """
        kept = {
            key: message
            for key, message in self.errors.items()
            if key.startswith((IMAGE_ERROR_PREFIX, SAVE_ERROR_PREFIX))
        }
        errors = self.validator.validate(self.ballot)
        self.errors = {**kept, **errors}
        self.scroll_to_top = bool(errors)
        return not errors

    async def save(self) -> SaveBallotOutputDto:
        """投票用紙全体を一括保存する."""
        if self.is_saving:
            logger.warning("保存処理が実行中のため要求を無視", election_id=self.ballot.election_id)
            return SaveBallotOutputDto(
                success=False, error_message="保存処理が実行中です。"
            )
        if not self.validate_for_preview():
            return SaveBallotOutputDto(
                success=False, error_message="入力内容にエラーがあります。"
            )

        self.is_saving = True
        self.api_error = None
        self.notice = None
        try:
            unsent = await self._retry_pending_images()
            result = await self.save_usecase.save(self.ballot, self.policy)
            if not result.success or result.ballot is None:
                self.api_error = result.error_message
                return result

            previous = self.ballot
            self.store.replace(carry_over_pending_images(previous, result.ballot))
            self._release_orphaned_previews(previous)
            self.has_unsaved_changes = unsent > 0

            warnings = [w for w in (result.warning,) if w]
            if unsent:
                warnings.append(f"{unsent}件の候補者画像をアップロードできませんでした。")
            if self.policy.submit_for_approval_on_save:
                if not await self.save_usecase.submit_for_approval(
                    self.ballot.election_id
                ):
                    warnings.append("承認申請の登録に失敗しました。")
            self.notice = " ".join(warnings) or None
            logger.info(
                "投票用紙を保存",
                election_id=self.ballot.election_id,
                created=result.created,
                warning=self.notice,
            )
            return result
        except PreconditionFailed as e:
            self.api_error = str(e)
            return SaveBallotOutputDto(success=False, error_message=str(e))
        finally:
            self.is_saving = False

    async def save_candidates_individually(self) -> SaveCandidatesOutputDto | None:
        """新規・画像保留中の候補者を1人ずつ保存する."""
        try:
            result = await self.save_usecase.save_candidates(self.ballot, self.policy)
        except PreconditionFailed as e:
            self.api_error = str(e)
            return None

        previous = self.ballot
        self.store.replace(result.ballot)
        self._release_orphaned_previews(previous)
        for outcome in result.outcomes:
            key = f"{SAVE_ERROR_PREFIX}{outcome.original_id.key}"
            if outcome.success:
                self.errors.pop(key, None)
                self.errors.pop(image_error_key(outcome.original_id), None)
            else:
                self.errors[key] = outcome.error_message or "候補者の保存に失敗しました。"
        if result.failed:
            self.api_error = f"{len(result.failed)}人の候補者を保存できませんでした。"
        return result

    def dismiss_alerts(self) -> None:
        self.alerts.clear()

    def close(self) -> None:
        """セッションを閉じ、残っているプレビューをすべて解放する."""
        for handle in self.ballot.iter_previews():
            self.preview_service.revoke(handle)

    # ------------------------------------------------------------------
    # 内部ヘルパー
    # ------------------------------------------------------------------

    def _edited(self, error_key: str | None = None) -> None:
        self.has_unsaved_changes = True
        if error_key is not None:
            self.errors.pop(error_key, None)

    async def _sync(
        self, pending: Awaitable[SyncFieldOutputDto]
    ) -> SyncFieldOutputDto | None:
        try:
            result = await pending
        except PreconditionFailed as e:
            self.api_error = str(e)
            return None
        if not result.success:
            self.api_error = result.error_message
        return result

    async def _retry_pending_images(self) -> int:
        """保留中の画像を再送する. 送信できなかった件数を返す."""
        unsent = 0
        for position, candidate in list(self.ballot.iter_candidates()):
            if candidate.pending_image is None:
                continue
            file_path = await self.upload_usecase.retry_pending(candidate.pending_image)
            if file_path is None:
                unsent += 1
                continue
            previous = self.ballot
            self.store.attach_image(position.id, candidate.id, image_url=file_path)
            self._release_orphaned_previews(previous)
            self.errors.pop(image_error_key(candidate.id), None)
        return unsent

    def _image_sent(
        self,
        position_id: Identity,
        candidate_id: Identity,
        sent: ImageUpload,
        saved: Candidate,
    ) -> None:
        """候補者と一緒に送信した画像を送信済みにする."""
        try:
            current = self.ballot.find_candidate(position_id, candidate_id)
        except EntityNotFound:
            return
        if current.pending_image is not sent:
            return
        previous = self.ballot
        self.store.attach_image(
            position_id,
            candidate_id,
            image_url=saved.image_url,
            local_preview=None if saved.image_url else current.local_preview,
        )
        self._release_orphaned_previews(previous)
        self.errors.pop(image_error_key(candidate_id), None)

    def _release_orphaned_previews(self, previous: Ballot) -> None:
        """ツリーから参照されなくなったプレビューを解放する."""
        live = set(self.ballot.iter_previews())
        for handle in previous.iter_previews():
            if handle not in live:
                self.preview_service.revoke(handle)
