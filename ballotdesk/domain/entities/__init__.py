"""ドメインエンティティ."""

from ballotdesk.domain.entities.ballot import Ballot, Candidate, Position
from ballotdesk.domain.entities.election import Election


__all__ = ["Ballot", "Candidate", "Election", "Position"]
