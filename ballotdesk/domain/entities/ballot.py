"""投票用紙・ポジション・候補者のエンティティ.

投票用紙は ポジション → 候補者 の木構造を持つ。各エンティティは
イミュータブルで、更新は dataclasses.replace による構造共有で行う。
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field

from ballotdesk.domain.exceptions import EntityNotFound
from ballotdesk.domain.value_objects.identity import Identity
from ballotdesk.domain.value_objects.image_upload import ImageUpload, PreviewHandle


@dataclass(frozen=True)
class Candidate:
    """ポジションに立候補する候補者.

    pending_image / local_preview / save_error はセッション内だけの
    一時的な状態で、バックエンドには送信しない。
    """

    id: Identity
    first_name: str = ""
    last_name: str = ""
    party: str = ""
    slogan: str = ""
    platform: str = ""
    image_url: str | None = None
    pending_image: ImageUpload | None = field(default=None, repr=False)
    local_preview: PreviewHandle | None = None
    save_error: str | None = None

    EDITABLE_FIELDS = frozenset(
        {"first_name", "last_name", "party", "slogan", "platform", "image_url"}
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_new(self) -> bool:
        """未保存（ローカルID）かどうか."""
        return self.id.is_local


@dataclass(frozen=True)
class Position:
    """投票用紙上の役職（例: 会長）."""

    id: Identity
    name: str = ""
    max_choices: int = 1
    display_order: int = 0
    candidates: tuple[Candidate, ...] = ()

    EDITABLE_FIELDS = frozenset({"name", "max_choices", "display_order"})

    def find_candidate(self, candidate_id: Identity) -> Candidate:
        for candidate in self.candidates:
            if candidate.id == candidate_id:
                return candidate
        raise EntityNotFound(f"Candidate {candidate_id} not found in {self.id}")


@dataclass(frozen=True)
class Ballot:
    """選挙で有権者に提示するポジションと候補者の全体."""

    id: Identity
    election_id: int
    description: str = ""
    positions: tuple[Position, ...] = ()

    @property
    def is_persisted(self) -> bool:
        return not self.id.is_local

    def find_position(self, position_id: Identity) -> Position:
        for position in self.positions:
            if position.id == position_id:
                return position
        raise EntityNotFound(f"Position {position_id} not found")

    def find_candidate(
        self, position_id: Identity, candidate_id: Identity
    ) -> Candidate:
        return self.find_position(position_id).find_candidate(candidate_id)

    def iter_candidates(self) -> Iterator[tuple[Position, Candidate]]:
        """(ポジション, 候補者) の組を順に返す."""
        for position in self.positions:
            for candidate in position.candidates:
                yield position, candidate

    def iter_identities(self) -> Iterator[Identity]:
        """ツリーから到達可能な全識別子を返す."""
        yield self.id
        for position in self.positions:
            yield position.id
            for candidate in position.candidates:
                yield candidate.id

    def iter_previews(self) -> Iterator[PreviewHandle]:
        """ツリーから参照されているプレビューハンドルを返す."""
        for _, candidate in self.iter_candidates():
            if candidate.local_preview is not None:
                yield candidate.local_preview
