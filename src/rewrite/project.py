"""Path-indexed collection of sources with hooks.

A ``Project`` is an immutable value.  Every mutating operation returns a
new project; the one it was called on is never changed, so a failing
call (collision, missing path, parse error, hook error) has no
observable effect.

Key design choices:

* **Keys** -- sources with a path are stored under that path; sources
  without one are stored under their ``id``.  No two entries ever share
  a path.
* **Version** -- incremented once per committed external mutation.
  Batches count once and mutations made by hooks do not count.
* **Hook re-entrancy** -- hooks receive a project carrying a token for
  the current hook run.  Mutations on a token-bearing project commit
  without firing hooks; the token is dropped again before the outermost
  call returns and expires when the run ends, so a project a hook kept
  around behaves like any other afterwards.  No global state is involved.
* **Resolver cache** -- the ``FormattingResolver`` is built lazily and
  cached together with a fingerprint of all formatter configuration
  sources.  Any change to those sources changes the fingerprint and
  forces a rebuild on next access.
"""

from __future__ import annotations

import logging
import posixpath
from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass, field, replace
from typing import Any

from rewrite.config_schema import RewriteSettings
from rewrite.diff import Colorizer
from rewrite.dot_formatter import FormattingResolver
from rewrite.errors import (
    CollisionError,
    ConfigError,
    HookError,
    NotFoundError,
    SourceIOError,
)
from rewrite.file_handler import LocalFileSystem
from rewrite.filetypes import Filetype, filetype_for, get_filetype
from rewrite.hooks import hook_name
from rewrite.models import Event, EventKind, Issue
from rewrite.source import Source

logger = logging.getLogger(__name__)

Updater = Callable[[Source], Source]


class _HookRun:
    """Token shared by the projects handed to hooks during one run."""

    __slots__ = ("active",)

    def __init__(self) -> None:
        self.active = True


def _key_of(source: Source) -> str:
    return source.path if source.path is not None else source.id


def _rekey(
    index: Mapping[str, Source], key: str, new_key: str, source: Source
) -> dict[str, Source]:
    """Replace *key* by *new_key* in place, keeping entry order."""
    return {
        (new_key if k == key else k): (source if k == key else v)
        for k, v in index.items()
    }


@dataclass(frozen=True)
class Project:
    """An immutable, path-indexed set of sources.

    Use ``Project.new()`` to load from disk or ``Project.from_sources()``
    to wrap existing sources.
    """

    index: Mapping[str, Source] = field(default_factory=dict)
    hooks: tuple[Any, ...] = ()
    extensions: Mapping[str, str] = field(default_factory=dict)
    plugins: Mapping[str, Any] = field(default_factory=dict)
    strict: bool = False
    fs: LocalFileSystem = field(default_factory=LocalFileSystem, compare=False)
    settings: RewriteSettings = field(default_factory=RewriteSettings, compare=False)
    version: int = 0
    _resolver_cache: tuple[Any, FormattingResolver] | None = field(
        default=None, compare=False, repr=False
    )
    _hook_token: _HookRun | None = field(default=None, compare=False, repr=False)

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def new(
        cls,
        inputs: str | Iterable[str] | None = None,
        *,
        hooks: Iterable[Any] = (),
        extensions: Mapping[str, str] | None = None,
        plugins: Mapping[str, Any] | None = None,
        strict: bool | None = None,
        fs: LocalFileSystem | None = None,
        root: str | None = None,
        settings: RewriteSettings | None = None,
    ) -> Project:
        """Discover *inputs* and load every file found.

        Args:
            inputs: Glob pattern(s) or paths, relative to the file
                system root.  Defaults to ``settings.project.inputs``.
            hooks: Hooks in registration order.
            extensions: Extension to kind overrides (``{".eex": "text"}``).
            plugins: Formatter plugins addressable by name from
                ``.formatter.yml``.
            strict: Abort on the first file that fails to load instead of
                recording an issue on it.
            fs: File-system collaborator (default: ``LocalFileSystem(root)``).
            root: Root directory for the default collaborator.
            settings: Library settings (default: built-in defaults).

        Raises:
            ParseError, SourceIOError: In strict mode, for the first file
                that fails to load.
            HookError: If a hook fails while handling the ``new`` event.
        """
        settings = settings or RewriteSettings()
        project = cls(
            hooks=tuple(hooks),
            extensions=dict(extensions or {}),
            plugins=dict(plugins or {}),
            strict=settings.project.strict if strict is None else strict,
            fs=fs or LocalFileSystem(root),
            settings=settings,
        )
        patterns = settings.project.inputs if inputs is None else inputs
        paths = project.fs.discover(patterns)
        index = {path: project._load(path) for path in paths}
        logger.info("Loaded %d source(s)", len(index))
        loaded = replace(project, index=index)
        return loaded._run_hooks(Event(kind=EventKind.NEW, paths=tuple(paths)))

    @classmethod
    def from_sources(
        cls,
        sources: Iterable[Source],
        *,
        hooks: Iterable[Any] = (),
        extensions: Mapping[str, str] | None = None,
        plugins: Mapping[str, Any] | None = None,
        fs: LocalFileSystem | None = None,
        settings: RewriteSettings | None = None,
    ) -> Project:
        """Wrap existing sources.

        Raises:
            CollisionError: If two sources share a path.
        """
        settings = settings or RewriteSettings()
        index: dict[str, Source] = {}
        for source in sources:
            key = _key_of(source)
            if key in index:
                raise CollisionError(key, index[key].id, source.id)
            index[key] = source
        project = cls(
            index=index,
            hooks=tuple(hooks),
            extensions=dict(extensions or {}),
            plugins=dict(plugins or {}),
            strict=settings.project.strict,
            fs=fs or LocalFileSystem(),
            settings=settings,
        )
        return project._run_hooks(Event(kind=EventKind.NEW, paths=tuple(index)))

    def _load(self, path: str) -> Source:
        filetype = self.filetype_for(path)
        try:
            return Source.read(
                path, fs=self.fs, kind=filetype.name, owner=self.owner, strict=self.strict
            )
        except SourceIOError as exc:
            if self.strict:
                raise
            logger.warning("Could not read %s: %s", path, exc.reason)
            source = Source.from_text(
                "", path=path, kind=filetype.name, owner=self.owner, strict=False
            )
            return source.add_issue(f"could not read file: {exc.reason}", by=self.owner)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def owner(self) -> str:
        return self.settings.project.default_owner

    def filetype_for(self, path: str | None) -> Filetype:
        return filetype_for(
            path, self.extensions, self.settings.project.formatter_filename
        )

    def is_config_path(self, path: str | None) -> bool:
        """True if *path* names a formatter configuration file."""
        return (
            path is not None
            and posixpath.basename(path) == self.settings.project.formatter_filename
        )

    def source(self, key: str) -> Source:
        """The source stored under *key* (a path, or an id when path-less).

        Raises:
            NotFoundError: If there is no such source.
        """
        try:
            return self.index[key]
        except KeyError:
            raise NotFoundError(key) from None

    def has_source(self, key: str) -> bool:
        return key in self.index

    def source_by(self, predicate: Callable[[list[str]], bool]) -> Source | None:
        """First source whose derived facts satisfy *predicate*."""
        for source in self.index.values():
            if predicate(source.named_units()):
                return source
        return None

    def source_by_unit(self, name: str) -> Source | None:
        """First source defining the named unit (e.g. a module)."""
        return self.source_by(lambda units: name in units)

    def sources(self) -> list[Source]:
        return list(self.index.values())

    def paths(self) -> list[str]:
        """Sorted paths of all sources that have one."""
        return sorted(s.path for s in self.index.values() if s.path is not None)

    def issues(self) -> list[tuple[str, Issue]]:
        return [(key, issue) for key, s in self.index.items() for issue in s.issues]

    def has_issues(self) -> bool:
        return any(s.issues for s in self.index.values())

    def updated(self) -> list[Source]:
        """Sources with at least one recorded update."""
        return [s for s in self.index.values() if s.updated()]

    def diff(self, key: str, colorizer: Colorizer | None = None) -> str:
        """Unified diff of the source at *key* since it was created or loaded.

        Uses ``settings.diff.context_lines`` lines of context.
        """
        return self.source(key).diff(self.settings.diff.context_lines, colorizer)

    def count(self, extension: str) -> int:
        """Number of sources whose path ends with *extension*."""
        if not extension.startswith("."):
            extension = "." + extension
        return sum(
            1
            for s in self.index.values()
            if s.path is not None and s.path.endswith(extension)
        )

    def __iter__(self) -> Iterator[Source]:
        return iter(self.index.values())

    def __len__(self) -> int:
        return len(self.index)

    def __contains__(self, key: object) -> bool:
        return key in self.index

    # ------------------------------------------------------------------
    # Formatting resolver
    # ------------------------------------------------------------------

    def _config_sources(self) -> list[Source]:
        return [s for s in self.index.values() if self.is_config_path(s.path)]

    def dot_formatter(self) -> FormattingResolver:
        """The resolver for the current configuration sources.

        Raises:
            ConfigError: If any configuration source is malformed.
        """
        config_sources = self._config_sources()
        fingerprint = tuple((s.path, s.content) for s in config_sources)
        cached = self._resolver_cache
        if cached is not None and cached[0] == fingerprint:
            return cached[1]
        logger.debug("Building formatting resolver from %d config(s)", len(config_sources))
        resolver = FormattingResolver.build(config_sources, plugins=self.plugins)
        # Memoisation only; the cached value is a pure function of the index.
        object.__setattr__(self, "_resolver_cache", (fingerprint, resolver))
        return resolver

    def _prepare(self, source: Source) -> Source:
        """Attach freshly resolved formatting options to *source*.

        A malformed configuration only fails updates that print; the
        source keeps its previous options and carries the error.
        """
        if self.is_config_path(source.path):
            return source
        try:
            options = self.dot_formatter().resolve(source.path)
        except ConfigError as exc:
            logger.debug("Formatting options for %s unavailable: %s", source.path, exc)
            return source.with_config_error(exc)
        if options == source.formatting_options:
            return source
        return source.with_formatting_options(options)

    # ------------------------------------------------------------------
    # Commit and hooks
    # ------------------------------------------------------------------

    def _commit(self, index: dict[str, Source], event: Event) -> Project:
        token = self._hook_token
        if token is not None and token.active:
            return replace(self, index=index)
        committed = replace(
            self, index=index, version=self.version + 1, _hook_token=None
        )
        logger.debug("Committed %s (version %d)", event, committed.version)
        return committed._run_hooks(event)

    def _run_hooks(self, event: Event) -> Project:
        if not self.hooks:
            return self
        token = _HookRun()
        current = replace(self, _hook_token=token)
        try:
            for hook in self.hooks:
                name = hook_name(hook)
                handler = getattr(hook, "handle", hook)
                logger.debug("Running hook %s for %s", name, event)
                try:
                    result = handler(event, current)
                except Exception as exc:
                    logger.error("Hook %s failed for %s: %s", name, event, exc)
                    raise HookError(name, event, exc) from exc
                if result is None:
                    continue
                if not isinstance(result, Project):
                    raise HookError(
                        name,
                        event,
                        TypeError(
                            f"expected a Project or None, got {type(result).__name__}"
                        ),
                    )
                if result._hook_token is not token:
                    result = replace(result, _hook_token=token)
                current = result
        finally:
            token.active = False
        return replace(current, _hook_token=None)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add(self, source: Source) -> Project:
        """Add *source*.

        Raises:
            CollisionError: If its path (or id) is already present.
        """
        key = _key_of(source)
        existing = self.index.get(key)
        if existing is not None:
            raise CollisionError(key, existing.id, source.id)
        return self._commit({**self.index, key: source}, Event(kind=EventKind.ADDED, paths=(key,)))

    def new_source(
        self,
        path: str,
        content: str,
        kind: str | None = None,
        by: str | None = None,
    ) -> Project:
        """Create a source from *content* at *path* and add it.

        Raises:
            CollisionError: If *path* is taken.
            ParseError: If the content does not parse and the kind is strict.
        """
        filetype = get_filetype(kind) if kind else self.filetype_for(path)
        source = Source.from_text(
            content, path=path, kind=filetype.name, owner=by or self.owner
        )
        return self.add(source)

    def _apply(
        self, index: dict[str, Source], key: str, updater: Updater
    ) -> tuple[dict[str, Source], str | None]:
        source = index.get(key)
        if source is None:
            raise NotFoundError(key)
        prepared = self._prepare(source)
        updated = updater(prepared)
        if not isinstance(updated, Source):
            raise TypeError(
                f"updater must return a Source, got {type(updated).__name__}"
            )
        if updated == prepared:
            return index, None
        if updated is not source:
            updated = updated.with_config_error(None)
        new_key = _key_of(updated)
        if new_key != key and new_key in index:
            raise CollisionError(new_key, index[new_key].id, updated.id)
        return _rekey(index, key, new_key, updated), new_key

    def update(self, key: str, updater: Updater) -> Project:
        """Replace the source at *key* with ``updater(source)``.

        The updater receives the source with freshly resolved formatting
        options.  Returning an unchanged source commits nothing.

        Raises:
            NotFoundError: If *key* is absent.
            CollisionError: If the updater moved the source onto a taken path.
            TypeError: If the updater does not return a ``Source``.
            HookError: If a hook fails; nothing is committed.
        """
        index, new_key = self._apply(dict(self.index), key, updater)
        if new_key is None:
            return self
        if new_key == key:
            event = Event(kind=EventKind.UPDATED, paths=(key,))
        else:
            event = Event(kind=EventKind.MOVED, paths=(key, new_key))
        return self._commit(index, event)

    def update_many(self, keys: Iterable[str], updater: Updater) -> Project:
        """Apply *updater* to every key, firing hooks once for the batch."""
        keys = list(keys)
        for key in keys:
            self.source(key)
        index = dict(self.index)
        changed: list[str] = []
        for key in keys:
            index, new_key = self._apply(index, key, updater)
            if new_key is not None:
                changed.append(new_key)
        if not changed:
            return self
        return self._commit(index, Event(kind=EventKind.BATCH_UPDATED, paths=tuple(changed)))

    def move(self, path: str, new_path: str, by: str | None = None) -> Project:
        """Re-key the source at *path* to *new_path*, keeping its identity.

        Raises:
            NotFoundError: If *path* is absent.
            CollisionError: If *new_path* is taken.
        """
        source = self.source(path)
        if new_path == path:
            return self
        existing = self.index.get(new_path)
        if existing is not None:
            raise CollisionError(new_path, existing.id, source.id)
        moved = source.update("path", new_path, by=by or self.owner)
        return self._commit(
            _rekey(self.index, path, new_path, moved),
            Event(kind=EventKind.MOVED, paths=(path, new_path)),
        )

    def remove(self, key: str) -> Project:
        """Drop the source at *key*.

        Raises:
            NotFoundError: If *key* is absent.
        """
        self.source(key)
        index = {k: v for k, v in self.index.items() if k != key}
        return self._commit(index, Event(kind=EventKind.REMOVED, paths=(key,)))

    def format(self, by: str | None = None) -> Project:
        """Format every formattable source as one batch."""
        owner = by or self.owner
        keys = [k for k, s in self.index.items() if s.filetype.formattable]
        return self.update_many(keys, lambda source: source.format(by=owner))

    # ------------------------------------------------------------------
    # Disk
    # ------------------------------------------------------------------

    def read(self, inputs: str | Iterable[str], force: bool = False) -> Project:
        """Load more files; existing paths are only re-read with *force*."""
        index = dict(self.index)
        added: list[str] = []
        for path in self.fs.discover(inputs):
            if path in index and not force:
                continue
            index[path] = self._load(path)
            added.append(path)
        if not added:
            return self
        return self._commit(index, Event(kind=EventKind.ADDED, paths=tuple(added)))

    def write(self, key: str, force: bool = False) -> Project:
        """Write one source to disk.

        Raises:
            NotFoundError: If *key* is absent.
            SourceIOError: If the file changed on disk (unless *force*)
                or writing fails.
        """
        source = self.source(key)
        written = source.write(self.fs, force=force)
        if written is source:
            return self
        return replace(self, index={**self.index, key: written})

    def write_all(
        self, exclude: Iterable[str] = (), force: bool = False
    ) -> tuple[Project, list[SourceIOError]]:
        """Write every source with a path, collecting failures."""
        excluded = set(exclude)
        index = dict(self.index)
        errors: list[SourceIOError] = []
        for key, source in self.index.items():
            if source.path is None or source.path in excluded:
                continue
            try:
                index[key] = source.write(self.fs, force=force)
            except SourceIOError as exc:
                logger.warning("Could not write %s: %s", exc.path, exc.reason)
                errors.append(exc)
        return replace(self, index=index), errors
