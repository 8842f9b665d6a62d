"""投票用紙エディタに関するDTO."""

from dataclasses import dataclass, field
from enum import Enum

from ballotdesk.domain.entities import Ballot, Candidate, Election, Position
from ballotdesk.domain.value_objects.identity import Identity
from ballotdesk.domain.value_objects.image_upload import PreviewHandle


# =============================================================================
# 読み込み
# =============================================================================


@dataclass
class LoadBallotOutputDto:
    """投票用紙読み込みの出力DTO."""

    success: bool
    ballot: Ballot | None = None
    election: Election | None = None
    is_default: bool = False
    error_message: str | None = None


# =============================================================================
# 即時同期（Mode A）
# =============================================================================


class SyncStatus(Enum):
    """フィールド単位の同期結果."""

    SYNCED = "synced"
    BUFFERED = "buffered"  # 未保存エンティティのためローカルにのみ保持
    FAILED = "failed"


@dataclass
class SyncFieldOutputDto:
    """即時同期の出力DTO.

    失敗してもローカルの編集は保持されるため、呼び出し側は
    error_message を非致命的なエラーとして表示するだけでよい。
    """

    status: SyncStatus
    position: Position | None = None
    candidate: Candidate | None = None
    error_message: str | None = None
    retryable: bool = False

    @property
    def success(self) -> bool:
        return self.status is not SyncStatus.FAILED


# =============================================================================
# 一括保存（Mode B）
# =============================================================================


@dataclass
class SaveBallotOutputDto:
    """一括保存の出力DTO."""

    success: bool
    ballot: Ballot | None = None
    created: bool = False
    warning: str | None = None
    error_message: str | None = None
    retryable: bool = False


@dataclass
class CandidateSaveOutcome:
    """候補者1人分の個別保存結果."""

    position_id: Identity
    original_id: Identity
    candidate: Candidate
    success: bool
    warning: str | None = None
    error_message: str | None = None


@dataclass
class SaveCandidatesOutputDto:
    """候補者個別保存の出力DTO."""

    ballot: Ballot
    outcomes: list[CandidateSaveOutcome] = field(default_factory=list)

    @property
    def failed(self) -> list[CandidateSaveOutcome]:
        return [o for o in self.outcomes if not o.success]

    @property
    def success(self) -> bool:
        return not self.failed


# =============================================================================
# 画像アップロード
# =============================================================================


@dataclass
class UploadImageOutputDto:
    """候補者画像アップロードの出力DTO.

    Attributes:
        success: アップロードが完了したか
        rejected: クライアント側の検証で拒否されたか（サーバー未接触）
        preview: 生成したローカルプレビュー（拒否時はNone）
        file_path: サーバーが返した画像パス
        error_message: フィールドに表示するエラー
    """

    success: bool
    rejected: bool = False
    preview: PreviewHandle | None = None
    file_path: str | None = None
    error_message: str | None = None
