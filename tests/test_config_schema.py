"""Tests for rewrite.config_schema — Pydantic settings models.

Covers:
- Zero-config defaults
- Field validation (owner, context lines, log level)
- Frozen models
- build_settings() with partial and empty input
"""

import pytest
from pydantic import ValidationError

from rewrite.config_schema import (
    DiffSettings,
    LoggingConfig,
    ProjectSettings,
    RewriteSettings,
    build_settings,
)
from rewrite.models import DEFAULT_OWNER


class TestDefaults:
    """Zero-config settings are always valid."""

    def test_project_defaults(self):
        project = RewriteSettings().project
        assert project.default_owner == DEFAULT_OWNER
        assert project.strict is False
        assert project.formatter_filename == ".formatter.yml"
        assert project.inputs == ["**/*.{ex,exs}", "**/.formatter.yml"]

    def test_diff_defaults(self):
        assert RewriteSettings().diff.context_lines == 3

    def test_logging_defaults(self):
        logging_cfg = RewriteSettings().logging
        assert logging_cfg.level == "INFO"
        assert logging_cfg.file is None


class TestValidation:
    """Field constraints on the section models."""

    def test_empty_owner_rejected(self):
        with pytest.raises(ValidationError):
            ProjectSettings(default_owner="")

    def test_empty_formatter_filename_rejected(self):
        with pytest.raises(ValidationError):
            ProjectSettings(formatter_filename="")

    @pytest.mark.parametrize("value", [-1, 1001])
    def test_context_lines_range(self, value):
        with pytest.raises(ValidationError):
            DiffSettings(context_lines=value)

    def test_context_lines_bounds_accepted(self):
        assert DiffSettings(context_lines=0).context_lines == 0
        assert DiffSettings(context_lines=1000).context_lines == 1000

    def test_level_normalised(self):
        assert LoggingConfig(level="debug").level == "DEBUG"

    def test_unknown_level(self):
        with pytest.raises(ValidationError, match="Valid options"):
            LoggingConfig(level="chatty")

    def test_frozen(self):
        settings = RewriteSettings()
        with pytest.raises(ValidationError):
            settings.project.strict = True


class TestBuildSettings:
    """Tests for build_settings()."""

    def test_empty_input(self):
        assert build_settings({}) == RewriteSettings()

    def test_partial_sections(self):
        settings = build_settings({"project": {"strict": True}, "diff": {"context_lines": 0}})
        assert settings.project.strict is True
        assert settings.project.default_owner == DEFAULT_OWNER
        assert settings.diff.context_lines == 0
        assert settings.logging.level == "INFO"

    def test_invalid_section_raises(self):
        with pytest.raises(ValidationError):
            build_settings({"diff": {"context_lines": "many"}})
