"""APIのJSONとドメインエンティティを相互変換するコンバーター.

純粋な変換ロジックのみ担当。バックエンドはエンドポイントごとに
応答の形が異なるため、抽出は寛容に行う。
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ballotdesk.domain.entities.ballot import Ballot, Candidate, Position
from ballotdesk.domain.entities.election import Election
from ballotdesk.domain.value_objects.identity import PersistedId, identity_from_raw


def _first(payload: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    """最初に存在するキーの値を返す（snake_case / camelCase 両対応）."""
    for key in keys:
        value = payload.get(key)
        if value is not None:
            return value
    return default


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


class BallotApiConverter:
    """APIレスポンスの純粋変換ロジック."""

    # ------------------------------------------------------------------
    # 応答からの抽出
    # ------------------------------------------------------------------

    @staticmethod
    def extract_ballot(data: Any) -> dict[str, Any] | None:
        """応答から投票用紙部分を取り出す.

        対応する形:
            {"ballot": {...}}
            {"data": {"ballot": {...}}}
            投票用紙そのもの（id または positions を持つ）
            {"data": {...投票用紙...}}
            {"election": {"ballot": {...}}}
        """
        if not isinstance(data, Mapping):
            return None
        if isinstance(data.get("ballot"), Mapping):
            return dict(data["ballot"])
        nested = data.get("data")
        if isinstance(nested, Mapping) and isinstance(nested.get("ballot"), Mapping):
            return dict(nested["ballot"])
        if "id" in data or "positions" in data:
            return dict(data)
        if isinstance(nested, Mapping) and ("id" in nested or "positions" in nested):
            return dict(nested)
        election = data.get("election")
        if isinstance(election, Mapping) and isinstance(
            election.get("ballot"), Mapping
        ):
            return dict(election["ballot"])
        return None

    @staticmethod
    def extract_entity(data: Any, key: str) -> dict[str, Any] | None:
        """{key: {...}} または裸のオブジェクトからエンティティを取り出す."""
        if not isinstance(data, Mapping):
            return None
        if isinstance(data.get(key), Mapping):
            return dict(data[key])
        nested = data.get("data")
        if isinstance(nested, Mapping) and isinstance(nested.get(key), Mapping):
            return dict(nested[key])
        if "id" in data:
            return dict(data)
        return None

    @staticmethod
    def extract_file_path(data: Any) -> str | None:
        """画像アップロード応答からサーバー上のパスを取り出す."""
        if not isinstance(data, Mapping):
            return None
        path = _first(data, "filePath", "file_path", "imageUrl", "image_url")
        return str(path) if path else None

    # ------------------------------------------------------------------
    # JSON → エンティティ
    # ------------------------------------------------------------------

    @staticmethod
    def to_election(data: Any, election_id: int) -> Election:
        payload = BallotApiConverter.extract_entity(data, "election") or {}
        return Election(
            id=_int(payload.get("id"), election_id),
            title=_text(_first(payload, "title", "name", default="")),
            status=_text(payload.get("status") or "draft"),
            needs_approval=bool(_first(payload, "needs_approval", "needsApproval")),
        )

    @staticmethod
    def to_candidate(
        payload: Mapping[str, Any], sent: Candidate | None = None
    ) -> Candidate:
        """候補者JSONを変換する.

        応答に欠けているフィールドは送信した候補者の値で補う。
        """
        base = sent or Candidate(id=identity_from_raw(None, "cand"))

        def field(keys: tuple[str, ...], fallback: str) -> str:
            value = _first(payload, *keys)
            return fallback if value in (None, "") else str(value)

        raw_id = payload.get("id")
        image_url = _first(payload, "image_url", "imageUrl")
        return Candidate(
            id=base.id if raw_id is None else identity_from_raw(raw_id, "cand"),
            first_name=field(("first_name", "firstName"), base.first_name),
            last_name=field(("last_name", "lastName"), base.last_name),
            party=field(("party",), base.party),
            slogan=field(("slogan",), base.slogan),
            platform=field(("platform",), base.platform),
            image_url=str(image_url) if image_url else base.image_url,
        )

    @staticmethod
    def to_position(payload: Mapping[str, Any], index: int = 0) -> Position:
        raw_candidates = payload.get("candidates") or []
        return Position(
            id=identity_from_raw(payload.get("id"), "pos"),
            name=_text(payload.get("name")),
            max_choices=_int(_first(payload, "max_choices", "maxChoices"), 1),
            display_order=_int(
                _first(payload, "display_order", "displayOrder"), index + 1
            ),
            candidates=tuple(
                BallotApiConverter.to_candidate(c)
                for c in raw_candidates
                if isinstance(c, Mapping)
            ),
        )

    @staticmethod
    def to_ballot(data: Any, election_id: int) -> Ballot | None:
        """応答を投票用紙に変換する. 投票用紙が含まれなければNone."""
        payload = BallotApiConverter.extract_ballot(data)
        if payload is None:
            return None
        raw_positions = [
            p for p in payload.get("positions") or [] if isinstance(p, Mapping)
        ]
        positions = [
            BallotApiConverter.to_position(p, i) for i, p in enumerate(raw_positions)
        ]
        positions.sort(key=lambda p: p.display_order)
        return Ballot(
            id=identity_from_raw(payload.get("id"), "ballot"),
            election_id=_int(_first(payload, "election_id", "electionId"), election_id),
            description=_text(payload.get("description")),
            positions=tuple(positions),
        )

    # ------------------------------------------------------------------
    # エンティティ → JSON
    # ------------------------------------------------------------------

    @staticmethod
    def candidate_fields(candidate: Candidate) -> dict[str, Any]:
        """候補者の送信フィールド. 識別子とセッション内の状態は含めない."""
        return {
            "first_name": candidate.first_name,
            "last_name": candidate.last_name,
            "party": candidate.party,
            "slogan": candidate.slogan,
            "platform": candidate.platform,
            "image_url": candidate.image_url,
        }

    @staticmethod
    def candidate_payload(candidate: Candidate) -> dict[str, Any]:
        payload = BallotApiConverter.candidate_fields(candidate)
        if isinstance(candidate.id, PersistedId):
            payload = {"id": candidate.id.value, **payload}
        return payload

    @staticmethod
    def position_payload(
        position: Position, include_candidates: bool = True
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "name": position.name,
            "max_choices": position.max_choices,
            "display_order": position.display_order,
        }
        if isinstance(position.id, PersistedId):
            payload = {"id": position.id.value, **payload}
        if include_candidates:
            payload["candidates"] = [
                BallotApiConverter.candidate_payload(c) for c in position.candidates
            ]
        return payload

    @staticmethod
    def ballot_payload(ballot: Ballot) -> dict[str, Any]:
        """投票用紙ツリー全体の送信データ.

        ローカルIDのエンティティは id を省略し、バックエンドに新規作成させる。
        """
        payload: dict[str, Any] = {
            "election_id": ballot.election_id,
            "description": ballot.description,
            "positions": [
                BallotApiConverter.position_payload(p) for p in ballot.positions
            ],
        }
        if isinstance(ballot.id, PersistedId):
            payload = {"id": ballot.id.value, **payload}
        return payload
