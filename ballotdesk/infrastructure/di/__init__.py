"""依存性注入."""
