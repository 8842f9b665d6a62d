"""選挙バックエンドAPIクライアントパッケージ."""

from .client import BallotApiClient
from .converter import BallotApiConverter
from .gateway import BallotGatewayImpl
from .types import ApiResponse


__all__ = [
    "ApiResponse",
    "BallotApiClient",
    "BallotApiConverter",
    "BallotGatewayImpl",
]
