"""Streamlitユーティリティ."""
