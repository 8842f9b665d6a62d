"""値オブジェクト."""

from ballotdesk.domain.value_objects.identity import (
    Identity,
    LocalId,
    PersistedId,
    identity_from_raw,
)
from ballotdesk.domain.value_objects.image_upload import ImageUpload, PreviewHandle
from ballotdesk.domain.value_objects.workflow_policy import (
    ADMIN_CREATE,
    SUPERADMIN_EDIT,
    AmbiguousSuccessPolicy,
    SyncMode,
    WorkflowPolicy,
    policy_for,
)


__all__ = [
    "ADMIN_CREATE",
    "SUPERADMIN_EDIT",
    "AmbiguousSuccessPolicy",
    "Identity",
    "ImageUpload",
    "LocalId",
    "PersistedId",
    "PreviewHandle",
    "SyncMode",
    "WorkflowPolicy",
    "identity_from_raw",
    "policy_for",
]
