"""One tracked text artifact with synchronised text and tree.

A ``Source`` is an immutable value: every update returns a new instance
and the original stays untouched.  Updates to ``content``, ``tree`` or
``path`` append exactly one ``HistoryEntry`` each, unless the update
would not change anything observable, in which case the very same
source is returned.

Key design choices:

* **Both representations in history** -- ``content`` and ``tree``
  entries also store the other representation's prior value, so
  ``read_at()`` can rebuild either one at any earlier version by folding
  over the history suffix.
* **Out-of-range reads clamp** -- ``read_at()`` with an index beyond the
  recorded history returns the oldest value instead of failing.
* **Path changes always count** -- any change of path is recorded and
  marks the formatting options stale, even if text and tree are equal.
* **Kind policy** -- whether a parse failure raises or becomes an issue
  is decided by the source's kind (see ``rewrite.filetypes``).
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Literal

from pydantic import BaseModel, Field, PrivateAttr

from rewrite.diff import Colorizer, TextDiff, diff, render
from rewrite.dot_formatter import FormatOptions, FormattingResolver
from rewrite.errors import ConfigError, ParseError, SourceIOError
from rewrite.file_handler import LocalFileSystem, content_hash
from rewrite.filetypes import Filetype, filetype_for, get_filetype, load_tree
from rewrite.models import DEFAULT_OWNER, HistoryEntry, Issue

logger = logging.getLogger(__name__)

SourceField = Literal["content", "tree", "path"]
FIELDS = ("content", "tree", "path")


def _new_id() -> str:
    return uuid.uuid4().hex


class Source(BaseModel):
    """An artifact's text, tree, formatting options and history.

    Build instances with ``from_text()``, ``from_tree()`` or ``read()``.
    Do not assign fields directly; use ``update()`` so history is kept.
    """

    id: str = Field(default_factory=_new_id)
    path: str | None = None
    content: str = ""
    tree: Any = None
    kind: str = "text"
    formatting_options: FormatOptions | None = None
    history: tuple[HistoryEntry, ...] = ()
    issues: tuple[Issue, ...] = ()
    private: dict[tuple[str, str], Any] = Field(default_factory=dict)
    owner: str = DEFAULT_OWNER
    origin: Literal["file", "string", "tree"] = "string"
    last_sync_time: int | None = None
    sync_hash: str | None = None
    sync_path: str | None = None

    model_config = {"frozen": True, "arbitrary_types_allowed": True}

    _config_error: ConfigError | None = PrivateAttr(default=None)

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_text(
        cls,
        content: str,
        path: str | None = None,
        kind: str | None = None,
        options: FormatOptions | None = None,
        owner: str = DEFAULT_OWNER,
        strict: bool | None = None,
    ) -> Source:
        """Wrap literal text, parsing it with the kind's parser.

        Args:
            content: The text.
            path: Optional path; also selects the kind when *kind* is
                not given.
            kind: Kind name (``ex``, ``formatter``, ``text``).
            options: Formatting options to start with.
            owner: Creator of the source.
            strict: Override the kind's parse-failure policy.

        Raises:
            ParseError: If parsing fails and the policy is strict.
        """
        filetype = get_filetype(kind) if kind else filetype_for(path)
        tree, error = load_tree(filetype, content, path, strict)
        issues = (_issue_from(error, owner, 1),) if error is not None else ()
        return cls(
            path=path,
            content=content,
            tree=tree,
            kind=filetype.name,
            formatting_options=options,
            issues=issues,
            owner=owner,
        )

    @classmethod
    def from_tree(
        cls,
        tree: Any,
        path: str | None = None,
        kind: str = "ex",
        options: FormatOptions | None = None,
        owner: str = DEFAULT_OWNER,
    ) -> Source:
        """Wrap a pre-built tree, printing it to get the content."""
        filetype = get_filetype(kind)
        content = filetype.print(tree, options or FormatOptions(), path)
        return cls(
            path=path,
            content=content,
            tree=tree,
            kind=filetype.name,
            formatting_options=options,
            owner=owner,
            origin="tree",
        )

    @classmethod
    def read(
        cls,
        path: str,
        fs: LocalFileSystem | None = None,
        kind: str | None = None,
        owner: str = DEFAULT_OWNER,
        strict: bool | None = None,
    ) -> Source:
        """Read *path* through the file-system collaborator.

        Raises:
            SourceIOError: If the file cannot be read.
            ParseError: If parsing fails and the policy is strict.
        """
        fs = fs or LocalFileSystem()
        content = fs.read(path)
        source = cls.from_text(content, path=path, kind=kind, owner=owner, strict=strict)
        return source.model_copy(
            update={
                "origin": "file",
                "last_sync_time": fs.mtime(path),
                "sync_hash": content_hash(content),
                "sync_path": path,
            }
        )

    # ------------------------------------------------------------------
    # Basic queries
    # ------------------------------------------------------------------

    @property
    def filetype(self) -> Filetype:
        return get_filetype(self.kind)

    @property
    def version(self) -> int:
        """1 for a fresh source, plus one per history entry."""
        return len(self.history) + 1

    @property
    def created(self) -> bool:
        """True if the source was not read from disk."""
        return self.origin != "file"

    def get(self, field: SourceField) -> Any:
        """Current value of ``content``, ``tree`` or ``path``."""
        if field not in FIELDS:
            raise ValueError(
                f"Unknown field '{field}'. Valid options: {', '.join(FIELDS)}"
            )
        return getattr(self, field)

    def updated(self, field: SourceField | None = None) -> bool:
        """True if the source (or the given field) was ever updated."""
        if field is None:
            return bool(self.history)
        return any(entry.field == field for entry in self.history)

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def read_at(self, field: SourceField, index: int = 0) -> Any:
        """Value of *field* as it was *index* updates ago.

        ``0`` is the current value; each step back undoes one history
        entry.  Indices past the start of history return the oldest
        value.

        Raises:
            ValueError: For negative indices or unknown fields.
        """
        if index < 0:
            raise ValueError(f"index must be >= 0, got {index}")
        value = self.get(field)
        for entry in list(reversed(self.history))[:index]:
            value = _undo(entry, field, value)
        return value

    def named_units(self, at: int = 0) -> list[str]:
        """Kind-specific derived facts (module names for code sources)."""
        return self.filetype.named_units(self.read_at("tree", at))

    def text_diff(self) -> TextDiff:
        """Diff from the original content to the current one."""
        return diff(self.read_at("content", len(self.history)), self.content)

    def diff(
        self,
        context_lines: int = 3,
        colorizer: Colorizer | None = None,
    ) -> str:
        """Unified diff from the original content to the current one."""
        labels = None
        if self.path is not None:
            labels = (self.read_at("path", len(self.history)) or self.path, self.path)
        return render(self.text_diff(), context_lines, colorizer, labels)

    # ------------------------------------------------------------------
    # Updates
    # ------------------------------------------------------------------

    def update(
        self,
        field: SourceField,
        value: Any,
        by: str | None = None,
        *,
        sync_tree: bool = True,
        dot_formatter: FormattingResolver | None = None,
    ) -> Source:
        """Return a source with *field* set to *value*.

        Args:
            field: ``content``, ``tree`` or ``path``.
            value: The new value.
            by: Owner recorded in history (default: ``"rewrite"``).
            sync_tree: For ``content`` updates, re-derive the tree.  With
                ``False`` the tree is left as is and may diverge.
            dot_formatter: For ``tree`` updates, resolve printing options
                from this resolver instead of the source's own options.

        Raises:
            ParseError: If the new content cannot be parsed; the source
                is left unchanged.
            ValueError: For unknown fields or tree updates on kinds
                without a tree.
        """
        owner = by or DEFAULT_OWNER
        if field == "content":
            return self._update_content(value, owner, sync_tree)
        if field == "tree":
            return self._update_tree(value, owner, dot_formatter)
        if field == "path":
            return self._update_path(value, owner)
        raise ValueError(
            f"Unknown field '{field}'. Valid options: {', '.join(FIELDS)}"
        )

    def _update_content(self, content: str, owner: str, sync_tree: bool) -> Source:
        error: ParseError | None = None
        if sync_tree:
            tree, error = load_tree(self.filetype, content, self.path)
        else:
            tree = self.tree
        if content == self.content and tree == self.tree:
            return self
        entry = HistoryEntry(
            field="content", owner=owner, prior_value=self.content, companion=self.tree
        )
        return self._append(entry, error, content=content, tree=tree)

    def _update_tree(
        self, tree: Any, owner: str, dot_formatter: FormattingResolver | None
    ) -> Source:
        filetype = self.filetype
        if not filetype.has_tree:
            raise ValueError(f"{self.kind} sources have no tree")
        content = filetype.print(tree, self._print_options(dot_formatter), self.path)
        if tree == self.tree and content == self.content:
            return self
        entry = HistoryEntry(
            field="tree", owner=owner, prior_value=self.tree, companion=self.content
        )
        return self._append(entry, None, content=content, tree=tree)

    def _update_path(self, path: str | None, owner: str) -> Source:
        if path == self.path:
            return self
        entry = HistoryEntry(field="path", owner=owner, prior_value=self.path)
        return self._append(entry, None, path=path, formatting_options=None)

    def _append(self, entry: HistoryEntry, error: ParseError | None, **changes: Any) -> Source:
        history = self.history + (entry,)
        if error is not None:
            changes["issues"] = self.issues + (
                _issue_from(error, entry.owner, len(history) + 1),
            )
        logger.debug(
            "Source %s: %s updated by %s", self.path or self.id, entry.field, entry.owner
        )
        return self.model_copy(update={"history": history, **changes})

    def _print_options(self, dot_formatter: FormattingResolver | None) -> FormatOptions:
        if dot_formatter is not None:
            return dot_formatter.resolve(self.path)
        error = self._config_error
        if error is not None:
            raise ConfigError(error.message, error.path) from error
        return self.formatting_options or FormatOptions()

    def format(
        self,
        by: str | None = None,
        dot_formatter: FormattingResolver | None = None,
    ) -> Source:
        """Return the source with canonically formatted content.

        Follows the same no-op and history rules as ``update()``; the
        change is recorded as a ``content`` entry.
        """
        filetype = self.filetype
        if not filetype.formattable:
            return self
        options = self._print_options(dot_formatter)
        formatted = filetype.format(self.content, self.tree, options, self.path)
        if formatted == self.content:
            return self
        return self._update_content(formatted, by or DEFAULT_OWNER, sync_tree=True)

    def with_formatting_options(self, options: FormatOptions | None) -> Source:
        """Attach resolved options without touching history."""
        return self.model_copy(update={"formatting_options": options})

    def with_config_error(self, error: ConfigError | None) -> Source:
        """Mark the formatting options as unresolvable.

        Text edits still work; anything that prints (tree updates,
        ``format()``) raises a copy of *error* instead.
        """
        source = self.model_copy()
        source._config_error = error
        return source

    # ------------------------------------------------------------------
    # Issues and private data
    # ------------------------------------------------------------------

    def add_issue(self, message: str, by: str | None = None, **details: Any) -> Source:
        """Record a non-fatal issue against the current version."""
        issue = Issue(
            reporter=by or DEFAULT_OWNER, message=message, version=self.version, **details
        )
        return self.model_copy(update={"issues": self.issues + (issue,)})

    def add_issues(self, issues: list[Issue]) -> Source:
        return self.model_copy(update={"issues": self.issues + tuple(issues)})

    def has_issues(self, version: int | Literal["actual", "all"] = "actual") -> bool:
        """True if there are issues for the current version, all, or one."""
        if version == "all":
            return bool(self.issues)
        target = self.version if version == "actual" else version
        return any(issue.version == target for issue in self.issues)

    def put_private(self, owner: str, key: str, value: Any) -> Source:
        """Store *value* under ``(owner, key)``; not recorded in history."""
        return self.model_copy(update={"private": {**self.private, (owner, key): value}})

    def get_private(self, owner: str, key: str, default: Any = None) -> Any:
        return self.private.get((owner, key), default)

    # ------------------------------------------------------------------
    # Disk synchronisation
    # ------------------------------------------------------------------

    def file_changed(self, fs: LocalFileSystem | None = None) -> bool:
        """True if the file at ``path`` changed since the last read/write."""
        if self.path is None:
            return False
        fs = fs or LocalFileSystem()
        if not fs.exists(self.path):
            return self.sync_hash is not None and self.sync_path == self.path
        if self.sync_hash is None or self.sync_path != self.path:
            return True
        if fs.mtime(self.path) != self.last_sync_time:
            return True
        # Timestamps may not advance between quick successive writes
        return content_hash(fs.read(self.path)) != self.sync_hash

    def write(self, fs: LocalFileSystem | None = None, force: bool = False) -> Source:
        """Write ``content`` to ``path``.

        After a move the file at the previously synced path is removed.

        Raises:
            SourceIOError: If the source has no path, the file changed on
                disk since it was read (unless *force*), or writing fails.
        """
        if self.path is None:
            raise SourceIOError(None, "source has no path")
        fs = fs or LocalFileSystem()
        current_hash = content_hash(self.content)
        if (
            self.sync_path == self.path
            and self.sync_hash == current_hash
            and not self.file_changed(fs)
        ):
            return self
        if not force and self.file_changed(fs):
            raise SourceIOError(self.path, "file changed on disk since it was read")

        fs.write(self.path, self.content)
        if (
            self.sync_path is not None
            and self.sync_path != self.path
            and fs.exists(self.sync_path)
        ):
            fs.remove(self.sync_path)
        logger.info("Wrote %s", self.path)
        return self.model_copy(
            update={
                "last_sync_time": fs.mtime(self.path),
                "sync_hash": current_hash,
                "sync_path": self.path,
            }
        )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _undo(entry: HistoryEntry, field: str, value: Any) -> Any:
    if entry.field == field:
        return entry.prior_value
    if {entry.field, field} == {"content", "tree"}:
        return entry.companion
    return value


def _issue_from(error: ParseError, owner: str, version: int) -> Issue:
    return Issue(
        reporter=owner,
        message=error.reason,
        line=error.line,
        column=error.column,
        meta={"path": error.path} if error.path else {},
        version=version,
    )
