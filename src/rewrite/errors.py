"""Exception taxonomy for rewrite.

Every error carries the path (and, where relevant, the owner or field)
that failed so callers can pinpoint and retry the specific operation.
Nothing raised here is retried internally.
"""

from __future__ import annotations

from typing import Any


class RewriteError(Exception):
    """Base class for all errors raised by rewrite."""


class ParseError(RewriteError):
    """Content could not be turned into a tree.

    Attributes:
        reason: Short description of what went wrong.
        line: 1-based line of the offending token, if known.
        column: 1-based column of the offending token, if known.
        path: Path of the source being parsed, if any.
    """

    def __init__(
        self,
        reason: str,
        line: int | None = None,
        column: int | None = None,
        path: str | None = None,
    ) -> None:
        self.reason = reason
        self.line = line
        self.column = column
        self.path = path
        super().__init__(self._describe())

    def _describe(self) -> str:
        location = self.path or "nofile"
        if self.line is not None:
            location += f":{self.line}"
            if self.column is not None:
                location += f":{self.column}"
        return f"{location}: {self.reason}"

    def with_path(self, path: str | None) -> ParseError:
        """Return a copy of this error attributed to *path*."""
        return ParseError(self.reason, self.line, self.column, path)


class CollisionError(RewriteError):
    """A path is already taken by another source.

    Attributes:
        path: The contested path.
        existing_id: Identity of the source already stored at *path*.
        new_id: Identity of the source that tried to take *path*.
    """

    def __init__(self, path: str, existing_id: str, new_id: str) -> None:
        self.path = path
        self.existing_id = existing_id
        self.new_id = new_id
        super().__init__(
            f"Path {path!r} is already taken by source {existing_id} "
            f"(rejected source {new_id})"
        )


class NotFoundError(RewriteError, KeyError):
    """An operation addressed a path that is not in the project."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(path)

    def __str__(self) -> str:
        return f"No source found for {self.path!r}"


class ConfigError(RewriteError):
    """Formatter configuration is malformed or contradictory."""

    def __init__(self, message: str, path: str | None = None) -> None:
        self.message = message
        self.path = path
        prefix = f"{path}: " if path else ""
        super().__init__(f"{prefix}{message}")


class HookError(RewriteError):
    """A hook raised or returned something other than a project.

    Attributes:
        hook: Name of the failing hook.
        event: The event the hook was handling.
        cause: The underlying exception.
    """

    def __init__(self, hook: str, event: Any, cause: BaseException) -> None:
        self.hook = hook
        self.event = event
        self.cause = cause
        super().__init__(f"Hook {hook} failed while handling {event}: {cause}")


class SourceIOError(RewriteError):
    """The file-system collaborator could not read or write a path."""

    def __init__(self, path: str | None, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"{path or '<no path>'}: {reason}")
