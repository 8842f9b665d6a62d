"""設定のテスト."""

import pytest

from pydantic import ValidationError

from ballotdesk.infrastructure.config.settings import (
    Settings,
    find_env_file,
    get_settings,
    reload_settings,
)


class TestSettings:
    def test_defaults(self, monkeypatch) -> None:
        monkeypatch.delenv("BALLOTDESK_API_BASE_URL", raising=False)

        settings = Settings(_env_file=None)

        assert settings.api_base_url == "http://localhost:5000/api"
        assert settings.request_timeout_seconds is None
        assert settings.workflow == "admin"

    def test_environment_overrides(self, monkeypatch) -> None:
        monkeypatch.setenv("BALLOTDESK_API_BASE_URL", "https://vote.example/api/")
        monkeypatch.setenv("BALLOTDESK_REQUEST_TIMEOUT_SECONDS", "7.5")
        monkeypatch.setenv("BALLOTDESK_WORKFLOW", "SuperAdmin")

        settings = Settings(_env_file=None)

        assert settings.api_base_url == "https://vote.example/api"
        assert settings.request_timeout_seconds == 7.5
        assert settings.workflow == "superadmin"

    def test_invalid_workflow(self) -> None:
        with pytest.raises(ValidationError):
            Settings(_env_file=None, workflow="voter")

    def test_timeout_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            Settings(_env_file=None, request_timeout_seconds=0)

    def test_reload_settings_rereads_environment(self, monkeypatch) -> None:
        monkeypatch.setenv("BALLOTDESK_LOG_LEVEL", "DEBUG")
        reload_settings()
        assert get_settings().log_level == "DEBUG"

        monkeypatch.setenv("BALLOTDESK_LOG_LEVEL", "WARNING")
        assert get_settings().log_level == "DEBUG"
        assert reload_settings().log_level == "WARNING"

        monkeypatch.delenv("BALLOTDESK_LOG_LEVEL")
        reload_settings()


class TestFindEnvFile:
    def test_searches_parent_directories(self, tmp_path) -> None:
        env_file = tmp_path / ".env"
        env_file.write_text("BALLOTDESK_LOG_LEVEL=DEBUG\n")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)

        assert find_env_file(nested) == env_file
