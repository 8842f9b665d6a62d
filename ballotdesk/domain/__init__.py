"""ドメイン層."""
