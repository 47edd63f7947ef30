"""Tests for rewrite.config — load_settings() precedence.

Covers:
- Built-in defaults when nothing is configured
- YAML data < environment variables < explicit overrides
- Per-key merging within a section
- Invalid environment values and settings raise ValueError
- .env loading
"""

import os
from unittest.mock import patch

import pytest

from rewrite.config import load_settings
from rewrite.models import DEFAULT_OWNER


def _load(**kwargs):
    kwargs.setdefault("yaml_data", {})
    kwargs.setdefault("dotenv", False)
    return load_settings(**kwargs)


class TestDefaults:
    def test_zero_config(self):
        settings = _load()
        assert settings.project.default_owner == DEFAULT_OWNER
        assert settings.project.strict is False
        assert settings.diff.context_lines == 3

    def test_discovers_yaml_when_not_given(self, tmp_path, monkeypatch):
        cfg = tmp_path / "settings.yml"
        cfg.write_text("project:\n  default_owner: from-yaml\n")
        monkeypatch.setenv("REWRITE_CONFIG", str(cfg))
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("HOME", str(tmp_path / "home"))
        settings = load_settings(dotenv=False)
        assert settings.project.default_owner == "from-yaml"


class TestPrecedence:
    """Overrides > environment > YAML > defaults."""

    def test_yaml_values_used(self):
        settings = _load(yaml_data={"project": {"strict": True}, "diff": {"context_lines": 1}})
        assert settings.project.strict is True
        assert settings.diff.context_lines == 1

    def test_env_beats_yaml(self, monkeypatch):
        monkeypatch.setenv("REWRITE_DEFAULT_OWNER", "env-bot")
        monkeypatch.setenv("REWRITE_DIFF_CONTEXT", "7")
        settings = _load(
            yaml_data={"project": {"default_owner": "yaml-bot"}, "diff": {"context_lines": 1}}
        )
        assert settings.project.default_owner == "env-bot"
        assert settings.diff.context_lines == 7

    def test_overrides_beat_env(self, monkeypatch):
        monkeypatch.setenv("REWRITE_STRICT", "false")
        settings = _load(overrides={"project": {"strict": True}})
        assert settings.project.strict is True

    def test_sections_merge_per_key(self):
        settings = _load(
            yaml_data={"project": {"inputs": ["lib/**/*.ex"], "strict": False}},
            overrides={"project": {"strict": True}},
        )
        assert settings.project.inputs == ["lib/**/*.ex"]
        assert settings.project.strict is True

    def test_log_level_from_env(self, monkeypatch):
        monkeypatch.setenv("REWRITE_LOG_LEVEL", "warning")
        assert _load().logging.level == "WARNING"

    @pytest.mark.parametrize("raw, expected", [("1", True), ("yes", True), ("Off", False)])
    def test_bool_spellings(self, monkeypatch, raw, expected):
        monkeypatch.setenv("REWRITE_STRICT", raw)
        assert _load().project.strict is expected


class TestInvalid:
    def test_bad_bool(self, monkeypatch):
        monkeypatch.setenv("REWRITE_STRICT", "maybe")
        with pytest.raises(ValueError, match="REWRITE_STRICT"):
            _load()

    @pytest.mark.parametrize("raw", ["many", "-1", "1001"])
    def test_bad_context(self, monkeypatch, raw):
        monkeypatch.setenv("REWRITE_DIFF_CONTEXT", raw)
        with pytest.raises(ValueError, match="between 0 and 1000"):
            _load()

    def test_empty_owner(self, monkeypatch):
        monkeypatch.setenv("REWRITE_DEFAULT_OWNER", "  ")
        with pytest.raises(ValueError, match="cannot be empty"):
            _load()

    def test_bad_yaml_value(self):
        with pytest.raises(ValueError, match="Invalid rewrite settings"):
            _load(yaml_data={"logging": {"level": "chatty"}})

    def test_non_mapping_section(self):
        with pytest.raises(ValueError, match="expected a mapping"):
            _load(yaml_data={"project": "strict"}, overrides={"project": {"strict": True}})


class TestDotenv:
    def test_env_file_loaded(self, tmp_path, monkeypatch):
        (tmp_path / ".env").write_text("REWRITE_DEFAULT_OWNER=dotenv-bot\n")
        monkeypatch.chdir(tmp_path)
        with patch.dict(os.environ):
            settings = load_settings(yaml_data={}, dotenv=True)
        assert settings.project.default_owner == "dotenv-bot"

    def test_real_env_beats_env_file(self, tmp_path, monkeypatch):
        (tmp_path / ".env").write_text("REWRITE_DEFAULT_OWNER=dotenv-bot\n")
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("REWRITE_DEFAULT_OWNER", "shell-bot")
        with patch.dict(os.environ):
            settings = load_settings(yaml_data={}, dotenv=True)
        assert settings.project.default_owner == "shell-bot"
