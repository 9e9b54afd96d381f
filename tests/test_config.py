"""Unit tests for settings."""

import json

import pytest

from wordbank.config import (
    Settings,
    get_database_path,
    get_settings_path,
    load_settings,
    save_settings,
    update_settings,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("OPENAI_API_KEY", "GEMINI_API_KEY", "WORDBANK_DEBUG"):
        monkeypatch.delenv(name, raising=False)


class TestSettings:
    def test_defaults(self) -> None:
        settings = Settings()
        assert settings.general.words_per_session == 10
        assert settings.general.srs_method == "default"
        assert settings.ai.service == "openai"
        assert settings.ai.api_url == "https://api.openai.com/v1/"
        assert settings.ai.model_name is None
        assert not settings.advanced.debug_mode
        assert not settings.is_ai_configured()

    def test_paths_follow_wordbank_home(self, monkeypatch, tmp_path) -> None:
        monkeypatch.setenv("WORDBANK_HOME", str(tmp_path))
        assert get_settings_path() == tmp_path / "settings.json"
        assert get_database_path() == tmp_path / "wordbank.duckdb"

    def test_missing_file_gives_defaults(self, tmp_path) -> None:
        assert load_settings(tmp_path / "none.json", use_env=False) == Settings()

    def test_invalid_file_gives_defaults(self, tmp_path) -> None:
        path = tmp_path / "settings.json"
        path.write_text("{broken")
        assert load_settings(path, use_env=False) == Settings()

    def test_save_and_load(self, tmp_path) -> None:
        settings = Settings()
        settings.general.words_per_session = 25
        settings.ai.api_key = "sk-test"
        path = save_settings(settings, tmp_path / "settings.json")

        assert json.loads(path.read_text())["general"]["words_per_session"] == 25
        assert load_settings(path, use_env=False) == settings

    def test_update_settings_merges_sections(self, tmp_path) -> None:
        path = tmp_path / "settings.json"
        update_settings({"general": {"theme": "dark"}}, path)
        settings = update_settings({"ai": {"service": "gemini", "api_key": "g-key"}}, path)

        assert settings.general.theme == "dark"
        assert settings.ai.service == "gemini"
        assert load_settings(path, use_env=False).ai.api_key == "g-key"

    def test_environment_overrides(self, monkeypatch, tmp_path) -> None:
        monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
        monkeypatch.setenv("WORDBANK_DEBUG", "true")
        settings = load_settings(tmp_path / "none.json")
        assert settings.ai.api_key == "sk-env"
        assert settings.advanced.debug_mode
        assert settings.is_ai_configured()

    def test_environment_key_matches_service(self, monkeypatch, tmp_path) -> None:
        path = tmp_path / "settings.json"
        update_settings({"ai": {"service": "gemini"}}, path)
        monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
        monkeypatch.setenv("GEMINI_API_KEY", "g-env")
        assert load_settings(path).ai.api_key == "g-env"
