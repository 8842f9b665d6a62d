"""アプリケーションサービス."""

from ballotdesk.application.services.ballot_editor_service import BallotEditorService


__all__ = ["BallotEditorService"]
