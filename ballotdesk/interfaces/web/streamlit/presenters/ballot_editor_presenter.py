"""投票用紙エディタのプレゼンター."""

from __future__ import annotations

from typing import Any

import pandas as pd

from ballotdesk.application.dtos.ballot_dto import (
    SaveBallotOutputDto,
    SaveCandidatesOutputDto,
    UploadImageOutputDto,
)
from ballotdesk.application.services.ballot_editor_service import BallotEditorService
from ballotdesk.domain.entities.ballot import Ballot, Candidate
from ballotdesk.domain.services.candidate_image_service import CandidateImageService
from ballotdesk.domain.value_objects.image_upload import ImageUpload
from ballotdesk.domain.value_objects.workflow_policy import WorkflowPolicy, policy_for
from ballotdesk.infrastructure.di.container import Container
from ballotdesk.interfaces.web.streamlit.presenters.base import BasePresenter
from ballotdesk.interfaces.web.streamlit.utils.session_manager import SessionManager


class BallotEditorPresenter(BasePresenter[Ballot | None]):
    """投票用紙エディタのプレゼンター.

    編集セッション（BallotEditorService）は選挙ごとにセッション状態へ保持し、
    再実行をまたいで編集内容を維持する。
    """

    def __init__(
        self,
        election_id: int,
        workflow: str | None = None,
        container: Container | None = None,
    ):
        super().__init__(container)
        self.election_id = election_id
        self.settings = self.container.settings()
        self.policy: WorkflowPolicy = policy_for(workflow or self.settings.workflow)
        self.session = SessionManager(namespace="ballot_editor")
        self._editor_key = f"{self.policy.name}.{election_id}"
        self.load_error: str | None = None

    # ------------------------------------------------------------------
    # セッション
    # ------------------------------------------------------------------

    @property
    def editor(self) -> BallotEditorService | None:
        return self.session.get(self._editor_key)

    def load_data(self) -> Ballot | None:
        """編集セッションを取得する. なければ投票用紙を読み込んで開始する."""
        editor = self.editor
        if editor is not None:
            return editor.ballot
        try:
            editor = self._run_async(
                BallotEditorService.open(
                    self.election_id,
                    self.policy,
                    self.container.services.ballot_gateway(),
                    self.container.services.preview_service(),
                )
            )
        except Exception as e:
            self.logger.error(f"Failed to open ballot editor: {e}")
            self.load_error = str(e)
            return None
        self.session.set(self._editor_key, editor)
        return editor.ballot

    def discard(self) -> None:
        """編集セッションを破棄する（キャンセル・再読み込み時）."""
        editor = self.editor
        if editor is not None:
            editor.close()
            self.session.delete(self._editor_key)

    # ------------------------------------------------------------------
    # 操作
    # ------------------------------------------------------------------

    def handle_action(self, action: str, **kwargs: Any) -> Any:
        """ユーザー操作を編集セッションに適用する."""
        editor = self._require_editor()
        if action == "set_description":
            return self._run_async(editor.set_description(kwargs["text"]))
        if action == "add_position":
            return self._run_async(editor.add_position())
        if action == "update_position":
            return self._run_async(
                editor.update_position_field(
                    kwargs["position_id"], kwargs["field"], kwargs["value"]
                )
            )
        if action == "remove_position":
            return self._run_async(editor.remove_position(kwargs["position_id"]))
        if action == "add_candidate":
            return self._run_async(editor.add_candidate(kwargs["position_id"]))
        if action == "update_candidate":
            return self._run_async(
                editor.update_candidate_field(
                    kwargs["position_id"],
                    kwargs["candidate_id"],
                    kwargs["field"],
                    kwargs["value"],
                )
            )
        if action == "remove_candidate":
            return self._run_async(
                editor.remove_candidate(kwargs["position_id"], kwargs["candidate_id"])
            )
        if action == "select_image":
            return self.select_image(
                kwargs["position_id"], kwargs["candidate_id"], kwargs.get("image")
            )
        if action == "preview":
            return editor.validate_for_preview()
        if action == "save":
            return self.save()
        if action == "save_candidates":
            return self.save_candidates()
        raise ValueError(f"Unknown action: {action}")

    def select_image(
        self, position_id: Any, candidate_id: Any, image: ImageUpload | None
    ) -> UploadImageOutputDto:
        editor = self._require_editor()
        return self._run_async(
            editor.select_candidate_image(position_id, candidate_id, image)
        )

    def save(self) -> SaveBallotOutputDto:
        editor = self._require_editor()
        return self._run_async(editor.save())

    def save_candidates(self) -> SaveCandidatesOutputDto | None:
        editor = self._require_editor()
        return self._run_async(editor.save_candidates_individually())

    def _require_editor(self) -> BallotEditorService:
        editor = self.editor
        if editor is None:
            raise RuntimeError("Ballot editor is not loaded")
        return editor

    # ------------------------------------------------------------------
    # 表示用
    # ------------------------------------------------------------------

    def image_source(self, candidate: Candidate) -> str:
        """st.image に渡す画像の表示元."""
        preview = candidate.local_preview
        if preview is not None and preview.path is not None:
            return str(preview.path)
        return CandidateImageService.display_source(
            candidate, self.settings.asset_base_url
        )

    def to_dataframe(self, ballot: Ballot) -> pd.DataFrame | None:
        """候補者一覧をDataFrameに変換する."""
        rows = [
            {
                "表示順": position.display_order,
                "ポジション": position.name,
                "最大選択数": position.max_choices,
                "候補者": candidate.full_name,
                "政党": candidate.party,
                "画像": _image_status(candidate),
                "状態": "未保存" if candidate.is_new else "保存済み",
                "エラー": candidate.save_error or "",
            }
            for position, candidate in ballot.iter_candidates()
        ]
        if not rows:
            return None
        return pd.DataFrame(rows)


def _image_status(candidate: Candidate) -> str:
    if candidate.pending_image is not None:
        return "保留中"
    return "あり" if candidate.image_url else "なし"
