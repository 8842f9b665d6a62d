"""インフラストラクチャ層."""
