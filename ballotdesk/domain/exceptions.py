"""ドメイン例外."""


class BallotDeskError(Exception):
    """ballotdeskの基底例外."""


class PreconditionFailed(BallotDeskError):
    """操作の前提条件を満たしていない（ルートパラメータ欠落など）."""


class AuthenticationRequired(PreconditionFailed):
    """認証トークンが存在しない."""

    def __init__(self, message: str = "認証が必要です。再度ログインしてください。"):
        super().__init__(message)


class ConstraintViolation(BallotDeskError):
    """最小件数などの制約によりローカル操作が拒否された.

    ユーザーへのアラートとして表示され、ネットワークには到達しない。
    """


class EntityNotFound(BallotDeskError, KeyError):
    """指定されたポジション・候補者が投票用紙ツリーに存在しない."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else "entity not found"


class BackendError(BallotDeskError):
    """バックエンドAPIがエラーを返した.

    Attributes:
        status_code: HTTPステータスコード（通信エラー時はNone）
        retryable: 再試行しても安全かどうか
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        retryable: bool = False,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.retryable = retryable


class BackendUnavailableError(BackendError):
    """リクエストがサーバーに到達しなかった（通信エラー・タイムアウト）."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=None, retryable=True)
