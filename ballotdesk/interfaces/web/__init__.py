"""Webインターフェース."""
