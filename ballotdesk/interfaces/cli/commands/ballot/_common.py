"""ballot コマンド群の共通処理."""

from __future__ import annotations

import json

from pathlib import Path
from typing import TYPE_CHECKING

import click

from ballotdesk.domain.entities.ballot import Ballot
from ballotdesk.infrastructure.external.ballot_api.converter import (
    BallotApiConverter,
)


if TYPE_CHECKING:
    from ballotdesk.infrastructure.di.container import Container


WORKFLOW_OPTION = click.option(
    "--workflow",
    type=click.Choice(["admin", "superadmin"], case_sensitive=False),
    default=None,
    help="ワークフロー（デフォルト: 設定値）",
)


def resolve_container() -> Container:
    from ballotdesk.infrastructure.di.container import get_container, init_container

    try:
        return get_container()
    except RuntimeError:
        return init_container()


def resolve_workflow(container: Container, workflow: str | None) -> str:
    return workflow or container.settings().workflow


def read_ballot_file(path: Path, election_id: int | None = None) -> Ballot:
    """JSONファイルから投票用紙を読み込む.

    id を持たないエンティティは未保存（ローカルID）として扱う。
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"JSONとして読み込めません: {e}") from e

    if election_id is None:
        payload = BallotApiConverter.extract_ballot(data) or {}
        raw = payload.get("election_id", payload.get("electionId"))
        if raw is None:
            raise click.BadParameter(
                "election_id がファイルにありません。--election-id で指定してください。"
            )
        election_id = int(raw)

    ballot = BallotApiConverter.to_ballot(data, election_id)
    if ballot is None:
        raise click.BadParameter(f"投票用紙が見つかりません: {path}")
    return ballot


def write_ballot_file(path: Path, ballot: Ballot) -> None:
    payload = BallotApiConverter.ballot_payload(ballot)
    path.write_text(
        json.dumps(payload, ensure_ascii=False, indent=2) + "\n", encoding="utf-8"
    )


def echo_errors(errors: dict[str, str]) -> None:
    for key, message in sorted(errors.items()):
        click.echo(f"  - {key}: {message}")


def echo_ballot(ballot: Ballot) -> None:
    status = "保存済み" if ballot.is_persisted else "未保存"
    click.echo(f"=== 投票用紙 {ballot.id} ({status}) 選挙ID: {ballot.election_id} ===")
    click.echo(f"説明: {ballot.description or '(なし)'}")
    for position in ballot.positions:
        click.echo(
            f"\n[{position.display_order}] {position.name or '(名称未設定)'}"
            f"  最大選択数: {position.max_choices}  id: {position.id}"
        )
        for i, candidate in enumerate(position.candidates, 1):
            party = f" [{candidate.party}]" if candidate.party else ""
            name = candidate.full_name or "(氏名未入力)"
            click.echo(f"  {i:>3}. {name}{party}  id: {candidate.id}")
