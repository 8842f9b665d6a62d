"""Streamlitページ."""
