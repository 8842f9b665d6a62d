"""BallotApiConverter のユニットテスト."""

import pytest

from ballotdesk.domain.value_objects.identity import LocalId, PersistedId
from ballotdesk.infrastructure.external.ballot_api.converter import (
    BallotApiConverter,
)
from tests.fixtures.ballot_factories import (
    ballot_json,
    make_ballot,
    make_candidate,
    make_local_ballot,
    make_position,
)


class TestExtractBallot:
    @pytest.mark.parametrize(
        "wrap",
        [
            lambda b: {"ballot": b},
            lambda b: {"data": {"ballot": b}},
            lambda b: b,
            lambda b: {"data": b},
            lambda b: {"election": {"id": 42, "ballot": b}},
        ],
    )
    def test_supported_shapes(self, wrap) -> None:
        extracted = BallotApiConverter.extract_ballot(wrap(ballot_json()))

        assert extracted is not None
        assert extracted["id"] == 10

    @pytest.mark.parametrize("data", [None, [], {"message": "ok"}, "text"])
    def test_unknown_shapes(self, data) -> None:
        assert BallotApiConverter.extract_ballot(data) is None


class TestToBallot:
    def test_converts_tree(self) -> None:
        ballot = BallotApiConverter.to_ballot({"ballot": ballot_json()}, 42)

        assert ballot.id == PersistedId(10)
        assert ballot.election_id == 42
        position = ballot.positions[0]
        assert position.id == PersistedId(100)
        assert [c.id for c in position.candidates] == [
            PersistedId(1000),
            PersistedId(1001),
        ]
        assert position.candidates[0].image_url == "/uploads/candidates/a.png"
        assert position.candidates[1].party == ""

    def test_positions_are_sorted_by_display_order(self) -> None:
        data = ballot_json(
            positions=[
                {"id": 2, "name": "書記", "max_choices": 1, "display_order": 2},
                {"id": 1, "name": "会長", "max_choices": 1, "display_order": 1},
            ]
        )

        ballot = BallotApiConverter.to_ballot(data, 42)

        assert [p.name for p in ballot.positions] == ["会長", "書記"]

    def test_camel_case_fields(self) -> None:
        data = {
            "id": 10,
            "electionId": 42,
            "positions": [
                {
                    "id": 100,
                    "name": "会長",
                    "maxChoices": 2,
                    "candidates": [
                        {"id": 1000, "firstName": "Ana", "lastName": "Cruz"}
                    ],
                }
            ],
        }

        ballot = BallotApiConverter.to_ballot(data, 0)

        assert ballot.election_id == 42
        assert ballot.positions[0].max_choices == 2
        assert ballot.positions[0].display_order == 1
        assert ballot.positions[0].candidates[0].full_name == "Ana Cruz"

    def test_missing_ballot(self) -> None:
        assert BallotApiConverter.to_ballot({"message": "ok"}, 42) is None


class TestToCandidate:
    def test_missing_fields_fall_back_to_sent_values(self) -> None:
        sent = make_candidate(LocalId("c1"), slogan="前へ", image_url="/a.png")

        candidate = BallotApiConverter.to_candidate(
            {"id": 2000, "first_name": "花子"}, sent=sent
        )

        assert candidate.id == PersistedId(2000)
        assert candidate.last_name == "山田"
        assert candidate.slogan == "前へ"
        assert candidate.image_url == "/a.png"

    def test_missing_id_keeps_sent_identity(self) -> None:
        sent = make_candidate(1000)

        candidate = BallotApiConverter.to_candidate({}, sent=sent)

        assert candidate.id == PersistedId(1000)


class TestToElection:
    def test_defaults(self) -> None:
        election = BallotApiConverter.to_election({"election": {"id": 42}}, 42)

        assert election.status == "draft"
        assert election.is_new is True

    def test_needs_approval(self) -> None:
        election = BallotApiConverter.to_election(
            {"id": 42, "title": "生徒会選挙", "status": "active", "needsApproval": True},
            42,
        )

        assert election.title == "生徒会選挙"
        assert election.needs_approval is True
        assert election.is_new is False


class TestExtractFilePath:
    @pytest.mark.parametrize("key", ["filePath", "file_path", "imageUrl", "image_url"])
    def test_keys(self, key) -> None:
        assert BallotApiConverter.extract_file_path({key: "/u/a.png"}) == "/u/a.png"

    def test_missing(self) -> None:
        assert BallotApiConverter.extract_file_path({"raw": "ok"}) is None


class TestPayloads:
    def test_local_identities_are_never_serialized(self) -> None:
        payload = BallotApiConverter.ballot_payload(make_local_ballot())

        assert "id" not in payload
        assert payload["election_id"] == 42
        position = payload["positions"][0]
        assert "id" not in position
        assert all("id" not in c for c in position["candidates"])
        assert "c1" not in repr(payload)

    def test_persisted_identities_are_included(self) -> None:
        payload = BallotApiConverter.ballot_payload(make_ballot())

        assert payload["id"] == 10
        assert payload["positions"][0]["id"] == 100
        assert [c["id"] for c in payload["positions"][0]["candidates"]] == [
            1000,
            1001,
        ]

    def test_mixed_tree(self) -> None:
        position = make_position(
            100, candidates=(make_candidate(1000), make_candidate(LocalId("c9")))
        )

        payload = BallotApiConverter.position_payload(position)

        assert [c.get("id") for c in payload["candidates"]] == [1000, None]

    def test_position_without_candidates(self) -> None:
        payload = BallotApiConverter.position_payload(
            make_position(100), include_candidates=False
        )

        assert "candidates" not in payload
