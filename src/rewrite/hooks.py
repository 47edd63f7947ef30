"""Project hooks.

A hook is any object with ``handle(event, project)`` (or a plain
callable with the same signature).  Hooks run synchronously, in
registration order, after every committed external project mutation.

The project a hook receives is marked as being inside a hook run:
mutations made on it (or on projects derived from it) commit normally
but do not fire hooks again.  Returning the derived project keeps those
changes; returning ``None`` keeps the project as it was handed over.
The mark expires when the run ends: a project kept by a hook and
mutated later fires hooks like any other.
An exception aborts the triggering call with ``HookError``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Protocol

from rewrite.models import Event, EventKind

if TYPE_CHECKING:
    from rewrite.project import Project

logger = logging.getLogger(__name__)


class Hook(Protocol):
    """Protocol that all project hooks must satisfy."""

    def handle(self, event: Event, project: Project) -> Project | None:
        """React to *event*; optionally return an updated project."""
        ...  # pragma: no cover


def hook_name(hook: Any) -> str:
    """Human-readable name used in logs and ``HookError``."""
    name = getattr(hook, "name", None)
    if isinstance(name, str):
        return name
    return getattr(hook, "__qualname__", None) or type(hook).__name__


class DotFormatterUpdater:
    """Reformat every source when formatter configuration changes.

    Fires on any event touching a formatter config path; the reformatting
    is attributed to *by*.
    """

    name = "DotFormatterUpdater"

    def __init__(self, by: str = "DotFormatterUpdater") -> None:
        self.by = by

    def handle(self, event: Event, project: Project) -> Project | None:
        if event.kind is EventKind.NEW:
            return None
        if not any(project.is_config_path(path) for path in event.paths):
            return None
        logger.info("Formatter configuration changed (%s); reformatting", event)
        return project.format(by=self.by)
