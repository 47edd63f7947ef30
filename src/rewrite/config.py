"""Settings resolution for rewrite.

Reads library settings from explicit overrides, environment variables,
.env files, and YAML settings files.

Precedence (highest to lowest):
    Overrides > Environment variables > .env file > YAML settings > Built-in defaults

Environment variables:
    REWRITE_STRICT: Abort project loads on the first failing file (default: false)
    REWRITE_DEFAULT_OWNER: Owner recorded in history (default: rewrite)
    REWRITE_LOG_LEVEL: Log level (default: INFO)
    REWRITE_DIFF_CONTEXT: Context lines in rendered diffs (default: 3)
"""

import logging
import os
from typing import Any

from dotenv import find_dotenv, load_dotenv
from pydantic import ValidationError

from rewrite.config_loader import load_hierarchical_config
from rewrite.config_schema import RewriteSettings, build_settings

logger = logging.getLogger(__name__)

_TRUE = ("true", "1", "yes", "on")
_FALSE = ("false", "0", "no", "off")


def _get_bool_env(key: str) -> bool | None:
    """Return True/False from env var, or None if unset."""
    val = os.getenv(key)
    if val is None:
        return None
    lowered = val.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ValueError(f"Invalid {key} '{val}': must be one of true/false, 1/0, yes/no, on/off")


def _get_int_env(key: str, low: int, high: int) -> int | None:
    val = os.getenv(key)
    if val is None:
        return None
    try:
        number = int(val)
    except ValueError:
        raise ValueError(
            f"Invalid {key} '{val}': must be a number between {low} and {high}"
        ) from None
    if not (low <= number <= high):
        raise ValueError(f"Invalid {key} '{val}': must be a number between {low} and {high}")
    return number


def _env_overrides() -> dict[str, dict[str, Any]]:
    sections: dict[str, dict[str, Any]] = {"project": {}, "diff": {}, "logging": {}}

    strict = _get_bool_env("REWRITE_STRICT")
    if strict is not None:
        sections["project"]["strict"] = strict

    owner = os.getenv("REWRITE_DEFAULT_OWNER")
    if owner is not None:
        if not owner.strip():
            raise ValueError("REWRITE_DEFAULT_OWNER cannot be empty")
        sections["project"]["default_owner"] = owner.strip()

    level = os.getenv("REWRITE_LOG_LEVEL")
    if level:
        sections["logging"]["level"] = level.strip()

    context = _get_int_env("REWRITE_DIFF_CONTEXT", 0, 1000)
    if context is not None:
        sections["diff"]["context_lines"] = context

    return sections


def load_settings(
    overrides: dict[str, dict[str, Any]] | None = None,
    yaml_data: dict[str, Any] | None = None,
    dotenv: bool = True,
) -> RewriteSettings:
    """Load settings with unified precedence.

    Each section is merged key by key, so an override for
    ``project.strict`` keeps ``project.inputs`` from the YAML files.

    Args:
        overrides: Section dicts that win over everything else, e.g.
            ``{"project": {"strict": True}}``.
        yaml_data: Raw settings as returned by
            ``load_hierarchical_config()``; discovered when ``None``.
        dotenv: Load a ``.env`` file (searched upward from the CWD) into
            the environment first.

    Returns:
        Validated ``RewriteSettings`` instance.

    Raises:
        ValueError: If an environment variable or settings value is
            invalid.
    """
    if dotenv:
        load_dotenv(find_dotenv(usecwd=True))

    raw = load_hierarchical_config() if yaml_data is None else dict(yaml_data)

    layers = [_env_overrides(), overrides or {}]
    for layer in layers:
        for section, values in layer.items():
            if not values:
                continue
            current = raw.get(section) or {}
            if not isinstance(current, dict):
                raise ValueError(
                    f"Invalid settings section '{section}': expected a mapping"
                )
            raw[section] = {**current, **values}

    try:
        settings = build_settings(raw)
    except ValidationError as exc:
        raise ValueError(f"Invalid rewrite settings: {exc}") from exc

    logger.debug(
        "Settings resolved: owner=%s strict=%s",
        settings.project.default_owner,
        settings.project.strict,
    )
    return settings
