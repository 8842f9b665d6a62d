"""ドメインサービス."""

from ballotdesk.domain.services.ballot_state_store import (
    BallotStateStore,
    default_ballot,
    new_ballot,
)
from ballotdesk.domain.services.ballot_validation_service import (
    BallotValidationService,
)
from ballotdesk.domain.services.candidate_image_service import (
    DEFAULT_CANDIDATE_IMAGE,
    CandidateImageService,
)


__all__ = [
    "DEFAULT_CANDIDATE_IMAGE",
    "BallotStateStore",
    "BallotValidationService",
    "CandidateImageService",
    "default_ballot",
    "new_ballot",
]
