"""アプリケーションDTO."""
