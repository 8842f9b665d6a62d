"""Streamlitのセッション状態へのアクセス."""

from collections.abc import Callable
from typing import Any, TypeVar

import streamlit as st


T = TypeVar("T")


class SessionManager:
    """st.session_state の薄いラッパー.

    namespace を指定するとキーにプレフィックスを付ける。
    """

    def __init__(self, namespace: str | None = None):
        self.namespace = namespace

    def _key(self, key: str) -> str:
        return f"{self.namespace}.{key}" if self.namespace else key

    def get(self, key: str, default: Any = None) -> Any:
        return st.session_state.get(self._key(key), default)

    def set(self, key: str, value: Any) -> None:
        st.session_state[self._key(key)] = value

    def has(self, key: str) -> bool:
        return self._key(key) in st.session_state

    def delete(self, key: str) -> None:
        full_key = self._key(key)
        if full_key in st.session_state:
            del st.session_state[full_key]

    def get_or_create(self, key: str, default: T) -> T:
        """値がなければ default を保存して返す."""
        full_key = self._key(key)
        if full_key not in st.session_state:
            st.session_state[full_key] = default
        return st.session_state[full_key]

    def get_or_build(self, key: str, factory: Callable[[], T]) -> T:
        """値がなければ factory() の結果を保存して返す."""
        full_key = self._key(key)
        if full_key not in st.session_state:
            st.session_state[full_key] = factory()
        return st.session_state[full_key]
