"""投票用紙のバリデーションルール."""

from ballotdesk.domain.entities.ballot import Ballot, Candidate
from ballotdesk.domain.value_objects.workflow_policy import WorkflowPolicy


class BallotValidationService:
    """プレビュー・保存へ進む前に投票用紙全体を検証するドメインサービス.

    最初の失敗で止まらず、全ルールの違反をフィールドキー付きの
    エラーマップに蓄積して返す。
    """

    def __init__(self, policy: WorkflowPolicy) -> None:
        self.policy = policy

    def validate(self, ballot: Ballot) -> dict[str, str]:
        """投票用紙を検証する.

        Returns:
            フィールドキー → エラーメッセージ。空なら検証成功。
        """
        errors: dict[str, str] = {}

        if not ballot.description.strip():
            errors["description"] = "説明は必須です。"

        minimum = self.policy.min_candidates_per_position
        for position in ballot.positions:
            key = position.id.key
            if not position.name.strip():
                errors[f"position-{key}"] = "ポジション名は必須です。"

            if position.max_choices < 1:
                errors[f"position-max-choices-{key}"] = (
                    "最大選択数は1以上である必要があります。"
                )

            if (
                self.policy.enforce_candidate_minimum
                and len(position.candidates) < minimum
            ):
                errors[f"position-candidates-{key}"] = (
                    f"このポジションには少なくとも{minimum}人の候補者が必要です。"
                )

            for candidate in position.candidates:
                message = self._candidate_name_error(candidate)
                if message:
                    errors[f"candidate-name-{candidate.id.key}"] = message

        return errors

    def is_valid(self, ballot: Ballot) -> bool:
        return not self.validate(ballot)

    @staticmethod
    def _candidate_name_error(candidate: Candidate) -> str | None:
        missing_first = not candidate.first_name.strip()
        missing_last = not candidate.last_name.strip()
        if missing_first and missing_last:
            return "名と姓は必須です。"
        if missing_first:
            return "名は必須です。"
        if missing_last:
            return "姓は必須です。"
        return None
