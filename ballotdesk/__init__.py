"""ballotdesk: 選挙管理コンソールの投票用紙編集クライアント."""

__version__ = "0.1.0"
