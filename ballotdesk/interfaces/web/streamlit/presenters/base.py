"""Streamlitプレゼンターの基底クラス."""

import asyncio
import threading

from abc import ABC, abstractmethod
from collections.abc import Coroutine
from typing import Any, Generic, TypeVar

from ballotdesk.common.logging import get_logger
from ballotdesk.infrastructure.di.container import Container


T = TypeVar("T")
R = TypeVar("R")

# 専用バックグラウンドスレッドのevent loop
_dedicated_loop: asyncio.AbstractEventLoop | None = None
_dedicated_loop_lock = threading.Lock()


def _get_dedicated_loop() -> asyncio.AbstractEventLoop:
    """非同期処理用の専用event loopを取得する（なければ起動する）."""
    global _dedicated_loop
    with _dedicated_loop_lock:
        if _dedicated_loop is None or _dedicated_loop.is_closed():
            _dedicated_loop = asyncio.new_event_loop()
            thread = threading.Thread(
                target=_dedicated_loop.run_forever,
                daemon=True,
                name="presenter-async",
            )
            thread.start()
        return _dedicated_loop


class BasePresenter(ABC, Generic[T]):
    """プレゼンターの基底クラス.

    ユースケースは非同期のため、専用スレッドのevent loopで実行する。
    Streamlit/TornadoのメインEvent Loopには触れない。
    """

    def __init__(self, container: Container | None = None):
        self.container = container or Container.create_for_environment()
        self.logger = get_logger(self.__class__.__name__)

    @abstractmethod
    def load_data(self) -> T:
        """画面に表示するデータを読み込む."""

    @abstractmethod
    def handle_action(self, action: str, **kwargs: Any) -> Any:
        """ユーザー操作を処理する."""

    def _run_async(self, coro: Coroutine[Any, Any, R]) -> R:
        """非同期コルーチンを同期的に実行する."""
        try:
            loop = _get_dedicated_loop()
            future = asyncio.run_coroutine_threadsafe(coro, loop)
            return future.result()
        except Exception as e:
            self.logger.error(f"Failed to run async operation: {e}")
            raise
