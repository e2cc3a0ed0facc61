"""Тесты Settings.from_env."""

from pathlib import Path

import pytest

from src.config import Settings
from src.errors import ConfigError


class TestSettingsFromEnv:
    """Тесты Settings.from_env."""

    def test_defaults(self, monkeypatch):
        monkeypatch.setenv("API_TOKEN", "tok")
        for name in ("API_URL", "HEADER_ROW", "SHEET_NAME", "RETRY_MAX", "REPORTS_DIR"):
            monkeypatch.delenv(name, raising=False)
        settings = Settings.from_env()

        assert settings.api_token == "tok"
        assert settings.api_url == "https://seller-analytics-api.wildberries.ru/"
        assert settings.header_row == 6
        assert settings.sheet_name == "Лист2"
        assert settings.retry_max == 3
        assert settings.retry_delay == 70.0
        assert settings.reports_dir == Path(".")

    def test_overrides(self, monkeypatch):
        monkeypatch.setenv("API_TOKEN", "tok")
        monkeypatch.setenv("HEADER_ROW", "1")
        monkeypatch.setenv("SHEET_NAME", "Статистика")
        monkeypatch.setenv("REPORT_WORKERS", "8")
        settings = Settings.from_env()

        assert settings.header_row == 1
        assert settings.sheet_name == "Статистика"
        assert settings.report_workers == 8

    def test_missing_token(self, monkeypatch):
        monkeypatch.delenv("API_TOKEN", raising=False)
        with pytest.raises(ConfigError):
            Settings.from_env()

    def test_missing_sheet_id(self, monkeypatch):
        monkeypatch.setenv("API_TOKEN", "tok")
        monkeypatch.delenv("GOOGLE_SHEET_ID", raising=False)
        with pytest.raises(ConfigError, match="GOOGLE_SHEET_ID"):
            Settings.from_env(require_sheet=True)

    def test_bad_number(self, monkeypatch):
        monkeypatch.setenv("API_TOKEN", "tok")
        monkeypatch.setenv("HEADER_ROW", "abc")
        with pytest.raises(ConfigError, match="HEADER_ROW"):
            Settings.from_env()

    def test_bad_float(self, monkeypatch):
        monkeypatch.setenv("API_TOKEN", "tok")
        monkeypatch.setenv("RETRY_DELAY_SECONDS", "70s")
        with pytest.raises(ConfigError, match="RETRY_DELAY_SECONDS"):
            Settings.from_env()
