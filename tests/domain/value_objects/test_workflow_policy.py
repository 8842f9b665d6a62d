"""ワークフローポリシーのテスト."""

import pytest

from ballotdesk.domain.value_objects.workflow_policy import (
    ADMIN_CREATE,
    MAX_CANDIDATE_IMAGE_BYTES,
    SUPERADMIN_EDIT,
    AmbiguousSuccessPolicy,
    SyncMode,
    policy_for,
)


class TestWorkflowPolicy:
    def test_admin_create_preset(self):
        assert ADMIN_CREATE.min_candidates_per_position == 2
        assert ADMIN_CREATE.sync_mode is SyncMode.EAGER
        assert ADMIN_CREATE.is_eager is True
        assert ADMIN_CREATE.placeholder_count == 2
        assert ADMIN_CREATE.submit_for_approval_on_save is True
        assert ADMIN_CREATE.ambiguous_success.tolerated_statuses == frozenset({400})

    def test_superadmin_edit_preset(self):
        assert SUPERADMIN_EDIT.min_candidates_per_position == 1
        assert SUPERADMIN_EDIT.sync_mode is SyncMode.DEFERRED
        assert SUPERADMIN_EDIT.enforce_candidate_minimum is False
        assert SUPERADMIN_EDIT.ambiguous_success.tolerated_statuses == frozenset()

    def test_image_ceiling_is_two_megabytes(self):
        assert MAX_CANDIDATE_IMAGE_BYTES == 2 * 1024 * 1024
        assert ADMIN_CREATE.max_image_bytes == MAX_CANDIDATE_IMAGE_BYTES

    def test_disabled_ambiguous_policy_tolerates_nothing(self):
        policy = AmbiguousSuccessPolicy(enabled=False, statuses=frozenset({400, 409}))
        assert policy.tolerated_statuses == frozenset()


class TestPolicyFor:
    @pytest.mark.parametrize(
        "name,expected",
        [("admin", ADMIN_CREATE), ("SuperAdmin", SUPERADMIN_EDIT)],
    )
    def test_lookup_is_case_insensitive(self, name, expected):
        assert policy_for(name) is expected

    def test_unknown_workflow(self):
        with pytest.raises(ValueError, match="Unknown workflow"):
            policy_for("voter")
