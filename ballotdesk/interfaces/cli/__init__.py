"""コマンドラインインターフェース."""
