"""Tests for configuration loading and the tagger config."""

import pytest

from tagsmith.lib.config_manager import ConfigManager, _parse_as
from tagsmith.services.tagger.config import TaggerConfig


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Run from an empty directory with no tagger variables set."""
    monkeypatch.chdir(tmp_path)
    for key in ("LLM_API_KEY", "MAX_EXTENDED_FIELDS", "TAGS_INCLUDE_COUNTS", "LLM_MODEL"):
        # setenv first so teardown also removes values loaded from .env files
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)
    return tmp_path


class TestParseAs:

    @pytest.mark.parametrize(
        "value,default,expected",
        [
            ("5", 3, 5),
            ("oops", 3, 3),
            ("0.5", 0.2, 0.5),
            ("false", True, False),
            ("YES", False, True),
            ("text", "default", "text"),
            ("raw", None, "raw"),
        ],
    )
    def test_coercion(self, value, default, expected):
        assert _parse_as(value, default) == expected


class TestConfigManager:
    """Tests for the .env → environment → defaults hierarchy."""

    def test_defaults(self, clean_env):
        manager = ConfigManager()

        assert manager.get("MAX_EXTENDED_FIELDS") == 3
        assert manager.get("TAGS_TOTAL_SOFT_TRIGGER") == 1500
        assert manager.get("UNKNOWN_KEY") is None

    def test_environment_overrides_default(self, clean_env, monkeypatch):
        monkeypatch.setenv("MAX_EXTENDED_FIELDS", "5")
        monkeypatch.setenv("TAGS_INCLUDE_COUNTS", "false")

        manager = ConfigManager()

        assert manager.get("MAX_EXTENDED_FIELDS") == 5
        assert manager.get("TAGS_INCLUDE_COUNTS") is False

    def test_env_file_loaded(self, clean_env, monkeypatch):
        env_file = clean_env / "custom.env"
        env_file.write_text("LLM_MODEL=my-model\n", encoding="utf-8")

        manager = ConfigManager(env_file=env_file)

        assert manager.get("LLM_MODEL") == "my-model"

    def test_display_masks_secrets(self, clean_env):
        manager = ConfigManager()

        assert manager.display_value("LLM_API_KEY", "sk-1234567890") == "sk-1*****7890"
        assert manager.display_value("LLM_API_KEY", "short") == "*****"
        assert manager.display_value("LLM_MODEL", "deepseek-chat") == "deepseek-chat"


class TestTaggerConfig:

    def test_from_env(self, clean_env, monkeypatch):
        monkeypatch.setenv("LLM_API_KEY", "sk-real")
        monkeypatch.setenv("MAX_EXTENDED_FIELDS", "2")

        config = TaggerConfig.from_env(ConfigManager())

        assert config.api_key == "sk-real"
        assert config.max_extended_fields == 2
        assert config.summary_temperature == 0.2
        assert config.extract_temperature == 0.1
        assert config.yaml_mark == "# ai_metadata"

    @pytest.mark.parametrize(
        "key,expected",
        [
            ("", False),
            ("   ", False),
            ("YOUR_DEEPSEEK_API_KEY_HERE", False),
            ("your_api_key_here", False),
            ("sk-abc123", True),
        ],
    )
    def test_has_api_key(self, key, expected):
        assert TaggerConfig(api_key=key).has_api_key() is expected
