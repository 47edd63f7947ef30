"""Programmatic editing of source artifacts with tracked provenance.

Load a project, edit sources as text or as trees, and write them back
formatted according to the ``.formatter.yml`` files found alongside
them::

    from rewrite import Project

    project = Project.new("lib/**/*.ex", root="my_app")
    project = project.format(by="my-tool")
    project, errors = project.write_all()

Library settings (default owner, strictness, diff context, logging) come
from ``load_settings()``; ``setup_logging()`` configures log output::

    from rewrite import Project, load_settings, setup_logging

    settings = load_settings()
    setup_logging(level=settings.logging.level, log_file=settings.logging.file)
    project = Project.new(settings=settings)
"""

__version__ = "0.4.0"

from rewrite.config import load_settings
from rewrite.config_schema import RewriteSettings
from rewrite.diff import DiffHunk, TextDiff, apply, diff, render
from rewrite.dot_formatter import (
    Claims,
    FormatOptions,
    FormattingResolver,
    Plugin,
    select_plugin,
)
from rewrite.errors import (
    CollisionError,
    ConfigError,
    HookError,
    NotFoundError,
    ParseError,
    RewriteError,
    SourceIOError,
)
from rewrite.hooks import DotFormatterUpdater, Hook
from rewrite.logger import setup_logging
from rewrite.models import Event, EventKind, HistoryEntry, Issue
from rewrite.project import Project
from rewrite.source import Source

__all__ = [
    "Claims",
    "CollisionError",
    "ConfigError",
    "DiffHunk",
    "DotFormatterUpdater",
    "Event",
    "EventKind",
    "FormatOptions",
    "FormattingResolver",
    "HistoryEntry",
    "Hook",
    "HookError",
    "Issue",
    "NotFoundError",
    "ParseError",
    "Plugin",
    "Project",
    "RewriteError",
    "RewriteSettings",
    "Source",
    "SourceIOError",
    "TextDiff",
    "__version__",
    "apply",
    "diff",
    "load_settings",
    "render",
    "select_plugin",
    "setup_logging",
]
