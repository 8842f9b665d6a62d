"""投票用紙ツリーのインメモリ状態ストア.

ユーザーの編集をネットワークとは独立に、純粋な構造共有更新として適用する。
更新対象でないポジション・候補者は同一オブジェクトのまま保持されるため、
参照の同一性で再描画を判定するビューでも無駄な再生成が起きない。
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import replace
from typing import Any

from ballotdesk.domain.entities.ballot import Ballot, Candidate, Position
from ballotdesk.domain.exceptions import ConstraintViolation, EntityNotFound
from ballotdesk.domain.value_objects.identity import Identity, LocalId
from ballotdesk.domain.value_objects.image_upload import ImageUpload, PreviewHandle
from ballotdesk.domain.value_objects.workflow_policy import WorkflowPolicy


IdFactory = Callable[[str], LocalId]


def new_ballot(election_id: int, id_factory: IdFactory = LocalId.generate) -> Ballot:
    """ポジションを持たない空の投票用紙を生成する."""
    return Ballot(id=id_factory("ballot"), election_id=election_id)


def default_ballot(
    election_id: int,
    policy: WorkflowPolicy,
    id_factory: IdFactory = LocalId.generate,
) -> Ballot:
    """新規選挙向けの初期投票用紙を生成する.

    空のポジションを1つと、ポリシーが定める数の空の候補者を含む。
    """
    store = BallotStateStore(new_ballot(election_id, id_factory), policy, id_factory)
    store.add_position()
    return store.ballot


def carry_over_pending_images(previous: Ballot, saved: Ballot) -> Ballot:
    """未送信の画像とプレビューを保存後のツリーへ引き継ぐ.

    永続IDを持つ要素はIDで、保存前にローカルIDだった要素は
    ポジション・候補者の並び順で対応付ける。対応先がなければ引き継がない。
    """
    if not any(c.pending_image is not None for _, c in previous.iter_candidates()):
        return saved
    positions = list(saved.positions)
    for p_index, position in enumerate(previous.positions):
        pending = [
            (c_index, candidate)
            for c_index, candidate in enumerate(position.candidates)
            if candidate.pending_image is not None
        ]
        if not pending:
            continue
        target_index = _match_index(positions, position.id, p_index)
        if target_index is None:
            continue
        candidates = list(positions[target_index].candidates)
        for c_index, candidate in pending:
            match = _match_index(candidates, candidate.id, c_index)
            if match is None:
                continue
            candidates[match] = replace(
                candidates[match],
                pending_image=candidate.pending_image,
                local_preview=candidate.local_preview,
            )
        positions[target_index] = replace(
            positions[target_index], candidates=tuple(candidates)
        )
    return replace(saved, positions=tuple(positions))


def _match_index(
    entities: list[Position] | list[Candidate], identity: Identity, index: int
) -> int | None:
    if not identity.is_local:
        for i, entity in enumerate(entities):
            if entity.id == identity:
                return i
        return None
    return index if index < len(entities) else None


class BallotStateStore:
    """投票用紙ツリーを保持し、編集操作を適用するストア.

    いずれの操作もI/Oを行わない。制約違反時は ConstraintViolation を送出し、
    ツリーは変更しない。
    """

    def __init__(
        self,
        ballot: Ballot,
        policy: WorkflowPolicy,
        id_factory: IdFactory | None = None,
    ) -> None:
        """ストアを初期化する.

        Args:
            ballot: 編集対象の投票用紙
            policy: ワークフローポリシー
            id_factory: ローカルID生成関数（テスト時に決定的なIDを与える）
        """
        self._ballot = ballot
        self.policy = policy
        self._new_id: IdFactory = id_factory or LocalId.generate

    @property
    def ballot(self) -> Ballot:
        return self._ballot

    def replace(self, ballot: Ballot) -> Ballot:
        """ツリー全体を置き換える（一括保存の結果反映など）."""
        self._ballot = ballot
        return ballot

    # ------------------------------------------------------------------
    # 投票用紙
    # ------------------------------------------------------------------

    def set_description(self, text: str) -> Ballot:
        self._ballot = replace(self._ballot, description=text)
        return self._ballot

    # ------------------------------------------------------------------
    # ポジション
    # ------------------------------------------------------------------

    def new_candidate(self) -> Candidate:
        """空の候補者を生成する（ツリーには追加しない）."""
        return Candidate(id=self._new_id("cand"))

    def new_position(self, placeholders: int | None = None) -> Position:
        """空のポジションを生成する（ツリーには追加しない）."""
        count = self.policy.placeholder_count if placeholders is None else placeholders
        return Position(
            id=self._new_id("pos"),
            name="",
            max_choices=1,
            display_order=len(self._ballot.positions) + 1,
            candidates=tuple(self.new_candidate() for _ in range(count)),
        )

    def add_position(self) -> Position:
        """末尾に新しいポジションを追加し、追加したポジションを返す."""
        position = self.new_position()
        self._ballot = replace(
            self._ballot, positions=(*self._ballot.positions, position)
        )
        return position

    def update_position_field(
        self, position_id: Identity, field: str, value: Any
    ) -> Ballot:
        """ポジションの1フィールドを置き換える."""
        if field not in Position.EDITABLE_FIELDS:
            raise ValueError(f"Position field is not editable: {field}")
        return self._map_position(
            position_id, lambda position: replace(position, **{field: value})
        )

    def replace_position(self, position_id: Identity, position: Position) -> Ballot:
        """ポジションを丸ごと置き換える（識別子の差し替えを含む）."""
        return self._map_position(position_id, lambda _: position)

    def remove_position(self, position_id: Identity) -> Ballot:
        """ポジションを削除する.

        Raises:
            ConstraintViolation: 最後の1つを削除しようとした場合
            EntityNotFound: ポジションが存在しない場合
        """
        self._ballot.find_position(position_id)
        if len(self._ballot.positions) <= 1:
            raise ConstraintViolation("少なくとも1つのポジションが必要です。")

        remaining = tuple(p for p in self._ballot.positions if p.id != position_id)
        self._ballot = replace(self._ballot, positions=remaining)
        return self._ballot

    # ------------------------------------------------------------------
    # 候補者
    # ------------------------------------------------------------------

    def add_candidate(self, position_id: Identity) -> Candidate:
        """ポジション末尾に空の候補者を追加し、追加した候補者を返す."""
        candidate = self.new_candidate()
        self._map_position(
            position_id,
            lambda position: replace(
                position, candidates=(*position.candidates, candidate)
            ),
        )
        return candidate

    def update_candidate_field(
        self,
        position_id: Identity,
        candidate_id: Identity,
        field: str,
        value: Any,
    ) -> Ballot:
        """候補者の1フィールドを置き換える."""
        if field not in Candidate.EDITABLE_FIELDS:
            raise ValueError(f"Candidate field is not editable: {field}")
        return self._map_candidate(
            position_id,
            candidate_id,
            lambda candidate: replace(candidate, **{field: value}),
        )

    def replace_candidate(
        self, position_id: Identity, candidate_id: Identity, candidate: Candidate
    ) -> Ballot:
        """候補者を丸ごと置き換える（識別子の差し替えを含む）."""
        return self._map_candidate(position_id, candidate_id, lambda _: candidate)

    def attach_image(
        self,
        position_id: Identity,
        candidate_id: Identity,
        *,
        image_url: str | None = None,
        pending_image: ImageUpload | None = None,
        local_preview: PreviewHandle | None = None,
    ) -> Ballot:
        """候補者の画像関連の状態をまとめて更新する.

        image_url が None の場合は既存の永続パスを維持する。
        """
        return self._map_candidate(
            position_id,
            candidate_id,
            lambda candidate: replace(
                candidate,
                image_url=image_url if image_url is not None else candidate.image_url,
                pending_image=pending_image,
                local_preview=local_preview,
            ),
        )

    def remove_candidate(self, position_id: Identity, candidate_id: Identity) -> Ballot:
        """候補者を削除する.

        Raises:
            ConstraintViolation: ポリシーの最小人数を下回る場合
            EntityNotFound: ポジション・候補者が存在しない場合
        """
        position = self._ballot.find_position(position_id)
        position.find_candidate(candidate_id)
        minimum = self.policy.min_candidates_per_position
        if len(position.candidates) <= minimum:
            raise ConstraintViolation(
                f"各ポジションには少なくとも{minimum}人の候補者が必要です。"
            )

        def _remove(target: Position) -> Position:
            remaining = tuple(c for c in target.candidates if c.id != candidate_id)
            if not remaining:
                remaining = (self.new_candidate(),)
            return replace(target, candidates=remaining)

        return self._map_position(position_id, _remove)

    # ------------------------------------------------------------------
    # 内部ヘルパー
    # ------------------------------------------------------------------

    def _map_position(
        self, position_id: Identity, update: Callable[[Position], Position]
    ) -> Ballot:
        found = False
        positions: list[Position] = []
        for position in self._ballot.positions:
            if position.id == position_id:
                found = True
                positions.append(update(position))
            else:
                positions.append(position)
        if not found:
            raise EntityNotFound(f"Position {position_id} not found")
        self._ballot = replace(self._ballot, positions=tuple(positions))
        return self._ballot

    def _map_candidate(
        self,
        position_id: Identity,
        candidate_id: Identity,
        update: Callable[[Candidate], Candidate],
    ) -> Ballot:
        def _update_position(position: Position) -> Position:
            target = position.find_candidate(candidate_id)
            return replace(
                position,
                candidates=tuple(
                    update(c) if c is target else c for c in position.candidates
                ),
            )

        return self._map_position(position_id, _update_position)
