"""Library settings schema for rewrite.

Defines Pydantic models for the settings structure with dedicated
sections for project loading, diff rendering and logging.

Usage:
    from rewrite.config_schema import RewriteSettings, build_settings

    raw = load_hierarchical_config()
    settings = build_settings(raw)
"""

from __future__ import annotations

import logging

from pydantic import BaseModel, Field, field_validator

from rewrite.models import DEFAULT_OWNER

logger = logging.getLogger(__name__)

_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


# ---------------------------------------------------------------------------
# Section models
# ---------------------------------------------------------------------------


class ProjectSettings(BaseModel):
    """Defaults used when loading and editing projects."""

    default_owner: str = Field(
        default=DEFAULT_OWNER,
        min_length=1,
        description="Owner recorded in history when none is given",
    )
    strict: bool = Field(
        default=False,
        description="Abort project loads on the first failing file",
    )
    formatter_filename: str = Field(
        default=".formatter.yml",
        min_length=1,
        description="File name of formatter configuration files",
    )
    inputs: list[str] = Field(
        default_factory=lambda: ["**/*.{ex,exs}", "**/.formatter.yml"],
        description="Glob patterns loaded by Project.new() by default",
    )

    model_config = {"frozen": True}


class DiffSettings(BaseModel):
    """Diff rendering settings."""

    context_lines: int = Field(
        default=3,
        ge=0,
        le=1000,
        description="Unchanged lines shown around each change (0-1000)",
    )

    model_config = {"frozen": True}


class LoggingConfig(BaseModel):
    """Logging configuration.

    Attributes:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        file: Optional log file path.
    """

    level: str = Field(default="INFO", description="Log level")
    file: str | None = Field(default=None, description="Log file path")

    model_config = {"frozen": True}

    @field_validator("level")
    @classmethod
    def _check_level(cls, value: str) -> str:
        level = value.upper()
        if level not in _LEVELS:
            raise ValueError(
                f"Unknown log level '{value}'. Valid options: {', '.join(_LEVELS)}"
            )
        return level


# ---------------------------------------------------------------------------
# Top-level settings
# ---------------------------------------------------------------------------


class RewriteSettings(BaseModel):
    """Top-level settings.

    Every section has sensible defaults, so ``RewriteSettings()``
    (zero-config) is always valid.
    """

    project: ProjectSettings = Field(default_factory=ProjectSettings)
    diff: DiffSettings = Field(default_factory=DiffSettings)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Factory function
# ---------------------------------------------------------------------------


def build_settings(raw_data: dict) -> RewriteSettings:
    """Construct ``RewriteSettings`` from the raw dict returned by
    ``load_hierarchical_config()``.

    Handles missing sections gracefully; anything absent gets defaults.

    Args:
        raw_data: Merged configuration dictionary.

    Returns:
        Validated ``RewriteSettings`` instance.

    Raises:
        pydantic.ValidationError: If a section holds invalid values.
    """
    if not raw_data:
        return RewriteSettings()

    return RewriteSettings(**raw_data)
