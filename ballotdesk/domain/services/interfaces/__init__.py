"""ドメインサービスのインターフェース."""
