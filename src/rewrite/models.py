"""Pydantic models shared across rewrite.

Defines the small data contracts that travel between sources, projects
and hooks:

- ``HistoryEntry``: One append-only record of a source update.
- ``Issue``: A non-fatal diagnostic attached to a source.
- ``EventKind``: Enum of project mutations hooks are told about.
- ``Event``: One mutation notification handed to every hook.

All models are frozen (immutable) for safety.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

DEFAULT_OWNER = "rewrite"


class HistoryEntry(BaseModel):
    """One recorded update of a source.

    Attributes:
        field: The field that changed (``content``, ``tree`` or ``path``).
        owner: Who made the change.
        prior_value: The value of *field* before the change.
        companion: For ``content`` and ``tree`` entries, the value the
            other representation had before the change.
    """

    field: str
    owner: str = DEFAULT_OWNER
    prior_value: Any = None
    companion: Any = None

    model_config = {"frozen": True, "arbitrary_types_allowed": True}


class Issue(BaseModel):
    """A diagnostic collected while loading or transforming a source.

    Attributes:
        reporter: Owner that raised the issue.
        message: Human-readable description.
        line: 1-based line, when the issue points into the content.
        column: 1-based column, when known.
        meta: Free-form extra data.
        version: Source version the issue was recorded against.
    """

    reporter: str = DEFAULT_OWNER
    message: str
    line: int | None = None
    column: int | None = None
    meta: dict[str, Any] = Field(default_factory=dict)
    version: int = 1

    model_config = {"frozen": True}


class EventKind(str, Enum):
    """Project mutations reported to hooks."""

    NEW = "new"
    ADDED = "added"
    UPDATED = "updated"
    BATCH_UPDATED = "batch_updated"
    MOVED = "moved"
    REMOVED = "removed"


class Event(BaseModel):
    """Notification passed to hooks after a committed mutation.

    Attributes:
        kind: What happened.
        paths: Affected keys. For ``MOVED`` this is ``(old, new)``.
    """

    kind: EventKind
    paths: tuple[str, ...] = ()

    model_config = {"frozen": True}

    def __str__(self) -> str:
        return f"{self.kind.value}{list(self.paths)}"
