"""インターフェース層."""
